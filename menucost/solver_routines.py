import numpy as np
from scipy.linalg import null_space
from scipy.sparse.csgraph import connected_components
from scipy.sparse.linalg import expm_multiply, spsolve
from tqdm import tqdm

from menucost.errors import (
    DegenerateNullSpaceError,
    NegativeDensityError,
    NumericalInstabilityError,
)
from menucost.objects import Trajectory

# ==============================================================================
# Stationary Distribution Solver
# ==============================================================================

def solve_stationary_density(generator, rcond=1e-10, neg_tol=1e-8, dense_limit=500):
    """
    Stationary density as the right null vector of the generator (0 = A u).

    Grids up to `dense_limit` nodes use a dense SVD null space. Larger grids
    stay sparse: the null dimension is the number of closed classes of the
    rate graph, and the null vector comes from a sparse solve with the
    reset-node equation replaced by the normalization sum(u) * dx = 1.

    Args:
        generator: Generator object
        rcond: Relative singular-value cutoff defining the null space (dense route)
        neg_tol: Negative entries below -neg_tol * max(u) are rejected
        dense_limit: Largest node count solved densely

    Returns:
        u_hat (np.ndarray): (n,) density with sum(u_hat) * dx = 1
    """
    dx = generator.grid.step

    if generator.node_count <= dense_limit:
        # SVD null space
        basis = null_space(generator.matrix.toarray(), rcond=rcond)
        dim = basis.shape[1]
        if dim != 1:
            _raise_degenerate(generator, dim, f"rcond={rcond}")
        u_hat = basis[:, 0]
    else:
        dim = _count_closed_classes(generator.matrix)
        if dim != 1:
            _raise_degenerate(generator, dim, "closed classes of the rate graph")
        u_hat = _solve_normalized_system(generator)
        if not np.all(np.isfinite(u_hat)):
            _raise_degenerate(generator, 0, "sparse solve returned non-finite values")

    # solver sign is arbitrary
    if np.count_nonzero(u_hat < 0) > np.count_nonzero(u_hat > 0):
        u_hat = -u_hat
    u_hat = u_hat / (np.sum(u_hat) * dx)

    worst = np.min(u_hat)
    if worst < -neg_tol * np.max(np.abs(u_hat)):
        raise NegativeDensityError(
            f"Stationary density has negative mass after sign correction \n"
            f"  > Min entry={worst:.3e} at node {int(np.argmin(u_hat))} \n"
            f"  > Regime={generator.regime.value}, kappa={generator.kappa}, theta={generator.theta}, dx={dx}"
        )

    return u_hat


def _count_closed_classes(A):
    """
    Number of closed communicating classes of a generator.

    Each closed class carries exactly one stationary direction, so this is
    the dimension of the null space. Rate j -> i is A[i, j] > 0, i != j.
    """
    n_comp, labels = connected_components(A, directed=True, connection="strong")
    coo = A.tocoo()
    off = (coo.row != coo.col) & (coo.data > 0)
    src = labels[coo.col[off]]
    dst = labels[coo.row[off]]
    has_exit = np.zeros(n_comp, dtype=bool)
    has_exit[src[src != dst]] = True
    return int(np.count_nonzero(~has_exit))


def _solve_normalized_system(generator):
    """Sparse solve of A u = 0 with the reset-node row swapped for sum(u) * dx = 1."""
    n = generator.node_count
    mid = generator.reset_node

    B = generator.matrix.tolil()
    B[mid, :] = generator.grid.step
    rhs = np.zeros(n)
    rhs[mid] = 1.0
    return spsolve(B.tocsc(), rhs)


def _raise_degenerate(generator, dim, detail):
    raise DegenerateNullSpaceError(
        f"Stationary solve expected a 1-dimensional null space, found {dim} \n"
        f"  > Regime={generator.regime.value}, kappa={generator.kappa}, theta={generator.theta} \n"
        f"  > Nodes={generator.node_count}, dx={generator.grid.step}, {detail}",
        dimension=dim,
    )


# ==============================================================================
# Transition Dynamics (action of exp(A * tau))
# ==============================================================================

def propagate_density(generator, initial_density, taus, progress=False):
    """
    Evolve a density forward: u(tau) = exp(A * tau) @ u0 for every tau.

    Only the action of the exponential is evaluated (Al-Mohy & Higham),
    never the dense exp(A * tau). Distinct taus are solved once, in
    ascending order, and scattered back to the caller's order.

    Args:
        generator: Generator object
        initial_density: (n,) initial density u0
        taus: Non-negative time offsets, any order, duplicates allowed
        progress: Report progress (tqdm bar when stepping, one status line
            for an evenly spaced grid evaluated in a single call)

    Returns:
        Trajectory with densities[k] = u(taus[k])
    """
    u0 = np.asarray(initial_density, dtype=float)
    n = generator.node_count
    if u0.shape != (n,):
        raise ValueError(f"Initial density has shape {u0.shape}, expected ({n},)")
    if not np.all(np.isfinite(u0)):
        raise ValueError("Initial density contains non-finite values")
    taus = np.atleast_1d(np.asarray(taus, dtype=float))
    if taus.ndim != 1:
        raise ValueError("taus must be a 1-D sequence")
    if not np.all(np.isfinite(taus)) or np.any(taus < 0):
        raise ValueError(f"taus must be finite and non-negative, got min={taus.min() if taus.size else None}")
    if taus.size == 0:
        return Trajectory(taus=taus, densities=np.empty((0, n)))

    # shared across the sweep
    A = generator.matrix.tocsc()
    trace_A = float(A.diagonal().sum())

    uniq, inverse = np.unique(taus, return_inverse=True)
    steps = np.diff(uniq)

    if uniq.size >= 3 and np.allclose(steps, steps[0], rtol=1e-9, atol=1e-12):
        # evenly spaced: one call evaluates the whole time grid
        if progress:
            print(f"  > Propagating {uniq.size} evenly spaced taus in [{uniq[0]:g}, {uniq[-1]:g}] in one pass...")
        solved = expm_multiply(
            A, u0, start=uniq[0], stop=uniq[-1], num=uniq.size,
            endpoint=True, traceA=trace_A,
        )
    else:
        solved = np.empty((uniq.size, n))
        u = u0
        t_prev = 0.0
        for k in tqdm(range(uniq.size), desc="Propagating", disable=not progress):
            dt = uniq[k] - t_prev
            if dt > 0:
                u = expm_multiply(A * dt, u, traceA=trace_A * dt)
            solved[k] = u
            t_prev = uniq[k]

    if not np.all(np.isfinite(solved)):
        bad = uniq[~np.all(np.isfinite(solved), axis=1)]
        raise NumericalInstabilityError(
            f"Non-finite density while evaluating exp(A * tau) @ u0 \n"
            f"  > First failing tau={bad[0]:.4g} \n"
            f"  > kappa/dx^2={generator.kappa / generator.grid.step**2:.4g}, theta={generator.theta}"
        )

    return Trajectory(taus=taus, densities=solved[inverse.ravel()])
