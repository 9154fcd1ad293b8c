import numbers

import numpy as np

from menucost.errors import InvalidDisplacementError


def shock_density(stationary_density, grid, displacement_nodes, reinject_node=None):
    """
    Post-shock initial density: the stationary density displaced by a number of nodes.

    A positive displacement lowers every price gap, result[i] = u[i + k];
    the trailing k nodes are zero-filled. Mass shifted off the grid is put
    back at `reinject_node` so that sum(u_init) * dx = 1.

    Args:
        stationary_density (np.ndarray): (n,) density to displace
        grid (GridSpec): Discretized domain
        displacement_nodes (int): Shift k in grid positions (sign = direction)
        reinject_node (int): Node receiving lost mass. Defaults to the edge the
            shift runs into (0 for k > 0, n-1 for k < 0).

    Returns:
        u_init (np.ndarray): (n,) shocked density, sum(u_init) * dx = 1
    """
    u = np.asarray(stationary_density, dtype=float)
    n = grid.node_count
    if u.shape != (n,):
        raise ValueError(f"Density has shape {u.shape}, expected ({n},)")
    if isinstance(displacement_nodes, bool) or not isinstance(displacement_nodes, numbers.Integral):
        raise InvalidDisplacementError(
            f"displacement_nodes must be an integer, got {displacement_nodes!r}"
        )
    k = int(displacement_nodes)
    if abs(k) >= n:
        raise InvalidDisplacementError(
            f"Shift of {k} nodes empties a grid of {n} nodes"
        )

    if reinject_node is None:
        reinject_node = 0 if k > 0 else n - 1
    if not 0 <= reinject_node < n:
        raise ValueError(f"reinject_node={reinject_node} outside [0, {n - 1}]")

    u_init = np.zeros(n)
    if k > 0:
        u_init[:n - k] = u[k:]
    elif k < 0:
        u_init[-k:] = u[:n + k]
    else:
        u_init[:] = u

    # restore unit mass (in density units)
    dx = grid.step
    u_init[reinject_node] += (1.0 - np.sum(u_init) * dx) / dx

    return u_init


def uniform_density(grid):
    """Flat density over the grid, sum * dx = 1."""
    n = grid.node_count
    return np.full(n, 1.0 / (n * grid.step))


def density_mass(density, grid):
    return float(np.sum(density) * grid.step)


def density_moments(density, grid):
    """
    Mean and standard deviation of the price gap under a density.

    Returns:
        (mean, std) (tuple of float)
    """
    x = grid.nodes
    w = np.asarray(density, dtype=float) * grid.step
    mass = np.sum(w)
    mean = np.sum(w * x) / mass
    var = np.sum(w * (x - mean)**2) / mass
    return float(mean), float(np.sqrt(max(var, 0.0)))


def mean_path(trajectory, grid):
    """Average price gap at every tau of a trajectory (the scalar impulse response)."""
    x = grid.nodes
    w = trajectory.densities * grid.step
    return (w @ x) / np.sum(w, axis=1)
