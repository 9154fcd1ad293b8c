import time

import numpy as np
from tqdm import tqdm

from menucost.grids import make_generator
from menucost.objects import BoundaryRegime, ImpulseResponse
from menucost.solver_routines import propagate_density, solve_stationary_density
from menucost.static_funcs import shock_density, uniform_density

# ==========================================
# Orchestrators
# ==========================================

def solve_stationary_main(params, regime=None, theta=None):
    """
    Stationary distribution of price gaps for one (regime, theta).

    Returns:
        grid, generator, u_hat
    """
    regime = BoundaryRegime(regime or params.regime)
    mp = params.model_parameters(_default_theta(params, regime) if theta is None else theta)

    grid = params.make_grid()
    generator = make_generator(grid, mp.kappa, mp.theta, regime)
    u_hat = solve_stationary_density(
        generator, rcond=params.null_rcond, neg_tol=params.neg_tol, dense_limit=params.dense_limit
        )
    return grid, generator, u_hat


def solve_transition_main(params):
    """
    Convergence from a uniform distribution (menu cost regime, theta from params).

    Returns:
        grid, generator, trajectory
    """
    print("--- Transition from Uniform Distribution ---")
    grid = params.make_grid()
    mp = params.model_parameters()
    generator = make_generator(grid, mp.kappa, mp.theta, BoundaryRegime.PERIODIC_RESET)
    u0 = uniform_density(grid)
    trajectory = propagate_density(generator, u0, params.tau_transition, progress=True)
    return grid, generator, trajectory


def generate_impulse_response(params, regime=None, theta=None, reinject="boundary"):
    """
    Main function: stationary density -> monetary shock -> return to steady state.

    Args:
        params: ModelConfig object
        regime: BoundaryRegime, defaults to params.regime
        theta: Reset intensity, defaults to params.theta (menu cost) or
            params.theta_calvo (pure Calvo)
        reinject: "boundary" puts mass shifted off the grid on the edge node,
            "reset" puts it on the reset node

    Returns:
        ImpulseResponse object
    """
    regime = BoundaryRegime(regime or params.regime)
    print(f"--- Impulse Response ({regime.value}) ---")
    start_time = time.time()

    response = ImpulseResponse()

    print("Step 1: Solving Stationary Distribution...")
    response.grid, response.generator, response.stationary = solve_stationary_main(
        params, regime=regime, theta=theta
        )

    print(f"Step 2: Shifting by {params.delta_ind} nodes...")
    if reinject == "boundary":
        reinject_node = None
    elif reinject == "reset":
        reinject_node = response.generator.reset_node
    else:
        raise ValueError(f"reinject must be 'boundary' or 'reset', got {reinject!r}")
    response.shocked = shock_density(
        response.stationary, response.grid, params.delta_ind, reinject_node=reinject_node
        )

    print("Step 3: Propagating back to Steady State...")
    taus = params.tau_shock if regime is BoundaryRegime.PERIODIC_RESET else params.tau_calvo
    response.trajectory = propagate_density(response.generator, response.shocked, taus, progress=True)

    elapsed = time.time() - start_time
    print(f"--- Impulse Response Finished in {elapsed:.2f} seconds ---")
    return response


def solve_theta_sweep(params, regime=None, thetas=None):
    """
    Stationary densities over a range of reset intensities.

    Returns:
        thetas (np.ndarray): (n_theta,)
        densities (np.ndarray): (n_theta, n)
    """
    regime = BoundaryRegime(regime or params.regime)
    thetas = params.theta_grid() if thetas is None else np.asarray(thetas, dtype=float)
    grid = params.make_grid()

    densities = np.zeros((thetas.size, grid.node_count))
    for i, theta in enumerate(tqdm(thetas, desc="Theta Sweep")):
        _, _, densities[i] = solve_stationary_main(params, regime=regime, theta=theta)

    return thetas, densities


def _default_theta(params, regime):
    if regime is BoundaryRegime.REFLECTING_RESET:
        return params.theta_calvo
    return params.theta
