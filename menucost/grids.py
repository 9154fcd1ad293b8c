import math

import numpy as np
from scipy import sparse

from menucost.errors import InvalidGridError, InvalidParameterError
from menucost.objects import BoundaryRegime, Generator, GridSpec


def make_grid(x_min, x_max, step):
    """
    Build the discretized price-gap domain.

    Args:
        x_min (float): Lower bound of the truncated domain.
        x_max (float): Upper bound.
        step (float): Node spacing (dx).

    Returns:
        GridSpec with node_count = round((x_max - x_min) / step) + 1.
    """
    if not all(np.isfinite([x_min, x_max, step])):
        raise InvalidGridError(
            f"Grid bounds must be finite: x_min={x_min}, x_max={x_max}, step={step}"
        )
    if step <= 0:
        raise InvalidGridError(f"Grid step must be positive, got step={step}")
    if x_max <= x_min:
        raise InvalidGridError(
            f"Grid requires x_max > x_min, got x_min={x_min}, x_max={x_max}"
        )

    grid = GridSpec(float(x_min), float(x_max), float(step))
    if grid.node_count < 3:
        raise InvalidGridError(
            f"Grid has {grid.node_count} nodes; the centred stencil needs at least 3 \n"
            f"  > x_min={x_min}, x_max={x_max}, step={step}"
        )
    return grid


def find_reset_node(grid):
    """
    Index of the node nearest 0, ties toward the lower index.

    For an even node count centred on 0 the two middle nodes are equally
    close; the lower one is chosen.
    """
    if not (grid.x_min <= 0.0 <= grid.x_max):
        raise InvalidParameterError(
            f"Reset point 0 lies outside the grid [{grid.x_min}, {grid.x_max}]"
        )
    pos = round(-grid.x_min / grid.step, 9) # fractional index of x = 0
    idx = math.ceil(pos - 0.5)
    return min(max(idx, 0), grid.node_count - 1)


def make_generator(grid, kappa, theta, regime):
    """
    Assemble the generator of the diffusion-with-reset process.

    Discretizes kappa * d_xx - theta * I with a centred second difference
    and re-injects the theta outflow of every node into the reset node.

    Args:
        grid (GridSpec): Discretized domain.
        kappa (float): Diffusivity, >= 0.
        theta (float): Reset intensity, >= 0.
        regime (BoundaryRegime): Edge treatment.

    Returns:
        Generator wrapping a (n, n) csr matrix whose columns sum to zero.
    """
    if not (np.isfinite(kappa) and np.isfinite(theta)):
        raise InvalidParameterError(f"kappa and theta must be finite: kappa={kappa}, theta={theta}")
    if kappa < 0 or theta < 0:
        raise InvalidParameterError(
            f"Negative rates are not allowed: kappa={kappa}, theta={theta}"
        )
    regime = _as_regime(regime)

    n = grid.node_count
    mid = find_reset_node(grid)
    d = kappa / grid.step**2 # diffusion rate between neighbours

    # base stencil
    idx = np.arange(n)
    rows = [idx[1:], idx, idx[:-1]]
    cols = [idx[:-1], idx, idx[1:]]
    data = [np.full(n - 1, d), np.full(n, -2 * d - theta), np.full(n - 1, d)]

    # theta outflow of every node re-enters at the reset node
    rows.append(np.full(n, mid)); cols.append(idx); data.append(np.full(n, theta))

    if regime is BoundaryRegime.PERIODIC_RESET:
        # edges leak into the reset node
        rows.append(np.array([mid, mid])); cols.append(np.array([0, n - 1]))
        data.append(np.array([d, d]))
    else:
        # cut edge couplings: (1, 0) and (n-2, n-1)
        rows.append(np.array([1, n - 2])); cols.append(np.array([0, n - 1]))
        data.append(np.array([-d, -d]))
        # boundary diagonals keep only -theta
        rows.append(np.array([0, n - 1])); cols.append(np.array([0, n - 1]))
        data.append(np.array([2 * d, 2 * d]))

    # duplicates are summed on conversion
    A = sparse.coo_matrix(
        (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
        shape=(n, n),
    ).tocsr()
    A.eliminate_zeros()

    return Generator(
        matrix=A, grid=grid, kappa=float(kappa), theta=float(theta),
        regime=regime, reset_node=mid,
    )


def generator_mass_defect(generator):
    """Largest absolute column sum; zero for a conservative generator."""
    col_sums = np.asarray(generator.matrix.sum(axis=0)).ravel()
    return float(np.max(np.abs(col_sums)))


def _as_regime(regime):
    if isinstance(regime, BoundaryRegime):
        return regime
    try:
        return BoundaryRegime(regime)
    except ValueError:
        raise InvalidParameterError(
            f"Unknown boundary regime {regime!r}; expected one of "
            f"{[r.value for r in BoundaryRegime]}"
        ) from None
