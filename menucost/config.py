import numpy as np

from menucost.grids import make_grid
from menucost.objects import BoundaryRegime, ModelParameters

class ModelConfig:
    """
    Central configuration for the price-gap diffusion (menu cost / Calvo) model.
    """
    def __init__(self):
        # ==========================================
        # Price Gap Process
        # dx = kappa * d_xx - theta * (reset to 0)
        # ==========================================
        self.kappa          = 0.05 # diffusivity of the price gap
        self.theta          = 0.0  # reset (Calvo) intensity
        self.theta_calvo    = 0.1  # theta for the pure Calvo comparison (theta = 0 is degenerate there)
        # Theta sweep (replaces the interactive slider)
        self.theta_min      = 0.0
        self.theta_max      = 0.5
        self.theta_step     = 0.01

        # ==========================================
        # Discretization of state-space
        # ==========================================
        self.x_bound        = 2.0  # grid is [-x_bound, x_bound]
        self.dx             = 0.01 # node spacing
        self.regime         = BoundaryRegime.PERIODIC_RESET

        # ==========================================
        # Monetary Shock
        # ==========================================
        self.delta_ind      = 25   # displacement in grid nodes

        # ==========================================
        # Transition Dynamics (tau samples)
        # ==========================================
        self.tau_transition = np.linspace(0.0, 5.0, 501)  # uniform start
        self.tau_shock      = np.linspace(0.0, 4.0, 201)  # menu cost impulse response
        self.tau_calvo      = np.linspace(0.0, 20.0, 401) # Calvo impulse response

        # ==========================================
        # Solver Constraints
        # ==========================================
        self.null_rcond     = 1e-10 # relative singular value cutoff for the null space
        self.neg_tol        = 1e-8  # tolerated negative mass in the stationary density
        self.dense_limit    = 500   # largest grid solved with a dense SVD, sparse beyond

    def make_grid(self):
        return make_grid(-self.x_bound, self.x_bound, self.dx)

    def model_parameters(self, theta=None):
        return ModelParameters(self.kappa, self.theta if theta is None else theta)

    def theta_grid(self):
        """Theta values of the sweep, endpoints included."""
        n = int(round((self.theta_max - self.theta_min) / self.theta_step)) + 1
        return np.linspace(self.theta_min, self.theta_max, n)

    def print_summary(self):
        """Helper to eyeball the configuration"""
        grid = self.make_grid()
        print("=== Model Configuration ===")
        print(f"Diffusivity (kappa): {self.kappa}")
        print(f"Reset intensity (theta): {self.theta} (Calvo comparison: {self.theta_calvo})")
        print(f"Theta sweep: [{self.theta_min}, {self.theta_max}] step {self.theta_step}")
        print("-" * 30)
        print(f"Grid: [{grid.x_min}, {grid.x_max}], dx={grid.step}, nodes={grid.node_count}")
        print(f"Regime: {self.regime.value}")
        print(f"Shock: {self.delta_ind} nodes ({self.delta_ind * self.dx:.2f} in price gap)")
        print("-" * 30)
        print(f"Tau samples: transition={len(self.tau_transition)}, "
              f"shock={len(self.tau_shock)}, calvo={len(self.tau_calvo)}")
        print("=========================")

if __name__ == "__main__":
    # Test run
    conf = ModelConfig()
    conf.print_summary()
