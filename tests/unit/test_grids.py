import numpy as np
import pytest

from menucost.errors import InvalidGridError, InvalidParameterError
from menucost.grids import find_reset_node, generator_mass_defect, make_generator, make_grid
from menucost.objects import BoundaryRegime


KAPPA = 0.05


@pytest.fixture
def grid():
    return make_grid(-2.0, 2.0, 0.01)


def test__make_grid__default_domain(grid):
    assert grid.node_count == 401
    x = grid.nodes
    assert x.shape == (401,)
    assert np.isclose(x[0], -2.0)
    assert np.isclose(x[-1], 2.0)
    assert np.isclose(x[200], 0.0)
    assert np.all(np.diff(x) > 0)
    # symmetric about 0
    assert np.allclose(x, -x[::-1])


@pytest.mark.parametrize(
    "x_min, x_max, step",
    [
        (-1.0, 1.0, 0.0),
        (-1.0, 1.0, -0.1),
        (1.0, 1.0, 0.1),
        (1.0, -1.0, 0.1),
        (-1.0, np.nan, 0.1),
        (-1.0, np.inf, 0.1),
        (0.0, 0.01, 0.01),  # only 2 nodes
    ],
)
def test__make_grid__rejects_bad_bounds(x_min, x_max, step):
    with pytest.raises(InvalidGridError):
        make_grid(x_min, x_max, step)


def test__find_reset_node__is_center_of_odd_symmetric_grid(grid):
    assert find_reset_node(grid) == 200


def test__find_reset_node__tie_goes_to_lower_index():
    # nodes -1.5, -0.5, 0.5, 1.5: two nodes equally close to 0
    g = make_grid(-1.5, 1.5, 1.0)
    assert g.node_count == 4
    assert find_reset_node(g) == 1


def test__find_reset_node__at_lower_edge():
    g = make_grid(0.0, 1.0, 0.1)
    assert find_reset_node(g) == 0


def test__find_reset_node__rejects_grid_without_zero():
    g = make_grid(1.0, 2.0, 0.1)
    with pytest.raises(InvalidParameterError):
        find_reset_node(g)


@pytest.mark.parametrize("regime", list(BoundaryRegime))
@pytest.mark.parametrize("theta", [0.0, 0.1, 0.5])
def test__make_generator__columns_sum_to_zero(grid, regime, theta):
    gen = make_generator(grid, KAPPA, theta, regime)
    assert gen.matrix.shape == (401, 401)
    assert generator_mass_defect(gen) < 1e-9


@pytest.mark.parametrize("regime", list(BoundaryRegime))
def test__make_generator__conserves_mass_on_uneven_grid(regime):
    # reset node off-center
    g = make_grid(-1.0, 2.0, 0.1)
    gen = make_generator(g, 0.2, 0.3, regime)
    assert generator_mass_defect(gen) < 1e-9


def test__make_generator__periodic_entries(grid):
    theta = 0.1
    gen = make_generator(grid, KAPPA, theta, BoundaryRegime.PERIODIC_RESET)
    A = gen.matrix.toarray()
    d = KAPPA / grid.step**2
    mid = gen.reset_node

    # base stencil at an interior node
    assert np.isclose(A[50, 50], -2 * d - theta)
    assert np.isclose(A[50, 49], d)
    assert np.isclose(A[50, 51], d)
    assert A[50, 10] == 0.0

    # edges leak into the reset node, plus theta from every column
    assert np.isclose(A[mid, 0], d + theta)
    assert np.isclose(A[mid, -1], d + theta)
    assert np.isclose(A[mid, 10], theta)
    assert np.isclose(A[mid, mid], -2 * d - theta + theta)

    # boundary nodes keep full diffusive loss
    assert np.isclose(A[0, 0], -2 * d - theta)
    assert np.isclose(A[1, 0], d)


def test__make_generator__reflecting_entries(grid):
    theta = 0.1
    gen = make_generator(grid, KAPPA, theta, BoundaryRegime.REFLECTING_RESET)
    A = gen.matrix.toarray()
    d = KAPPA / grid.step**2
    mid = gen.reset_node
    n = grid.node_count

    assert np.isclose(A[0, 0], -theta)
    assert np.isclose(A[-1, -1], -theta)
    assert A[1, 0] == 0.0
    assert A[n - 2, n - 1] == 0.0
    # inflow from the neighbours is kept
    assert np.isclose(A[0, 1], d)
    assert np.isclose(A[-1, -2], d)
    # no wrap-around into the reset node
    assert np.isclose(A[mid, 0], theta)
    assert np.isclose(A[mid, -1], theta)


def test__make_generator__is_sparse(grid):
    gen = make_generator(grid, KAPPA, 0.1, BoundaryRegime.PERIODIC_RESET)
    n = grid.node_count
    # tridiagonal + one dense reset row
    assert gen.matrix.nnz <= 3 * n + n


def test__make_generator__accepts_regime_name(grid):
    gen = make_generator(grid, KAPPA, 0.1, "reflecting_reset")
    assert gen.regime is BoundaryRegime.REFLECTING_RESET


def test__make_generator__rejects_negative_theta(grid):
    with pytest.raises(InvalidParameterError):
        make_generator(grid, KAPPA, -0.1, BoundaryRegime.PERIODIC_RESET)


def test__make_generator__rejects_negative_kappa(grid):
    with pytest.raises(InvalidParameterError):
        make_generator(grid, -KAPPA, 0.1, BoundaryRegime.PERIODIC_RESET)


def test__make_generator__rejects_unknown_regime(grid):
    with pytest.raises(InvalidParameterError):
        make_generator(grid, KAPPA, 0.1, "absorbing")
