import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns

from menucost.config import ModelConfig
from menucost.grids import generator_mass_defect
from menucost.objects import BoundaryRegime
from menucost.solver import (
    generate_impulse_response,
    solve_stationary_main,
    solve_theta_sweep,
    solve_transition_main,
)
from menucost.static_funcs import density_moments, mean_path


sns.set_theme(style="white")
plt.rcParams['figure.figsize'] = [10, 6]
plt.rcParams['font.size'] = 12

def run_all():
    """
    Solve both regimes and both impulse responses, return everything for plotting.
    """
    # 1. Load model configuration
    params = ModelConfig()
    params.print_summary()

    # 2. Stationary distributions (menu cost vs. pure Calvo)
    grid, gen_m, u_hat = solve_stationary_main(params, BoundaryRegime.PERIODIC_RESET)
    _, gen_c, u_c = solve_stationary_main(params, BoundaryRegime.REFLECTING_RESET)
    print(f"  > Mass defect: menu cost {generator_mass_defect(gen_m):.2e}, Calvo {generator_mass_defect(gen_c):.2e}")

    # 3. Impulse responses
    irf_m = generate_impulse_response(params, BoundaryRegime.PERIODIC_RESET, reinject="reset")
    irf_c = generate_impulse_response(params, BoundaryRegime.REFLECTING_RESET)

    return params, grid, u_hat, u_c, irf_m, irf_c

# ============================================================
#               Visualization Functions
# ============================================================

def plot_density(grid, density, title="Stationary Distribution of Price Gaps", ax=None):
    """Filled density curve"""
    if ax is None:
        _, ax = plt.subplots()
    x = grid.nodes
    ax.plot(x, density, color='blue')
    ax.fill_between(x, 0, density, color='blue', alpha=0.25)
    ax.set_ylim(0, 1.75)
    ax.set_title(title)
    ax.set_xlabel("Price Gap")
    ax.set_ylabel("Density")
    return ax

def plot_stationary_comparison(grid, u_hat, u_c):
    """Menu cost vs. Calvo stationary distributions"""
    fig, axes = plt.subplots(1, 2, figsize=(16, 6), sharey=True)
    plot_density(grid, u_hat, "Menu Cost (periodic reset)", ax=axes[0])
    plot_density(grid, u_c, "Pure Calvo (reflecting reset)", ax=axes[1])
    for ax, u in zip(axes, [u_hat, u_c]):
        mean, std = density_moments(u, grid)
        ax.text(0.02, 0.92, f"mean={mean:.3f}, std={std:.3f}", transform=ax.transAxes)
    plt.tight_layout()
    plt.savefig('figure_stationary.png')
    plt.show()

def plot_trajectory_snapshots(grid, trajectory, n_snapshots=6, title="Transition Dynamics"):
    """Density at a handful of taus, light to dark"""
    idx = np.linspace(0, len(trajectory) - 1, n_snapshots).astype(int)
    colors = sns.color_palette("Blues", n_snapshots)

    plt.figure()
    for c, k in zip(colors, idx):
        plt.plot(grid.nodes, trajectory.densities[k], color=c, label=f"$\\tau$={trajectory.taus[k]:.2f}")
    plt.ylim(0, 1.75)
    plt.title(title)
    plt.xlabel("Price Gap")
    plt.ylabel("Density")
    plt.legend()
    plt.tight_layout()
    plt.show()

def plot_mean_response(irf_m, irf_c):
    """Average price gap after the shock"""
    plt.figure()
    plt.plot(irf_m.trajectory.taus, mean_path(irf_m.trajectory, irf_m.grid), label='Menu Cost', color='#1f77b4')
    plt.plot(irf_c.trajectory.taus, mean_path(irf_c.trajectory, irf_c.grid), label='Calvo', color='#d62728')
    plt.axhline(0, color='k', lw=0.5)
    plt.title("Impulse Response of the Average Price Gap")
    plt.xlabel("$\\tau$")
    plt.ylabel("Mean Price Gap")
    plt.legend()
    plt.tight_layout()
    plt.savefig('figure_mean_response.png')
    plt.show()

def plot_theta_sweep(params, regime=BoundaryRegime.PERIODIC_RESET):
    """Stationary density heatmap over theta"""
    thetas, densities = solve_theta_sweep(params, regime=regime)
    grid = params.make_grid()

    plt.figure(figsize=(12, 6))
    plt.pcolormesh(grid.nodes, thetas, densities, cmap="viridis", shading="auto")
    plt.colorbar(label="Density")
    plt.title(f"Stationary Distribution by Reset Intensity ({regime.value})")
    plt.xlabel("Price Gap")
    plt.ylabel("$\\theta$")
    plt.tight_layout()
    plt.savefig('figure_theta_sweep.png')
    plt.show()


if __name__ == "__main__":
    params, grid, u_hat, u_c, irf_m, irf_c = run_all()
    plot_stationary_comparison(grid, u_hat, u_c)

    _, _, transition = solve_transition_main(params)
    plot_trajectory_snapshots(grid, transition, title="Convergence from a Uniform Distribution")

    plot_density(grid, irf_m.shocked, "Initial Distribution after the Shock")
    plt.show()
    plot_trajectory_snapshots(grid, irf_m.trajectory, title="Menu Cost: Return to Steady State")
    plot_trajectory_snapshots(grid, irf_c.trajectory, title="Calvo: Return to Steady State")
    plot_mean_response(irf_m, irf_c)
    plot_theta_sweep(params)
