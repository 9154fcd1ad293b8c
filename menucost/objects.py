from dataclasses import dataclass
from enum import Enum

import numpy as np
import scipy.sparse as sp


class BoundaryRegime(Enum):
    """
    Treatment of the edges of the truncated price-gap grid.

    PERIODIC_RESET: flow leaving either edge re-enters at the reset node
        (Calvo-plus / menu cost).
    REFLECTING_RESET: no diffusive loss at the edges, only the theta reset
        brings mass back (pure Calvo).
    """
    PERIODIC_RESET = "periodic_reset"
    REFLECTING_RESET = "reflecting_reset"


@dataclass(frozen=True)
class GridSpec:
    """
    Uniform grid over the price gap [x_min, x_max] with spacing step.
    Use grids.make_grid to build a validated instance.
    """
    x_min: float
    x_max: float
    step: float

    @property
    def node_count(self) -> int:
        return int(round((self.x_max - self.x_min) / self.step)) + 1

    @property
    def nodes(self) -> np.ndarray:
        """Grid coordinates, ascending."""
        return self.x_min + self.step * np.arange(self.node_count, dtype=float)


@dataclass(frozen=True)
class ModelParameters:
    kappa: float # diffusivity
    theta: float # reset (Calvo) intensity


@dataclass(frozen=True)
class Generator:
    """
    Infinitesimal generator acting on column densities, du/dt = matrix @ u.

    Every column of `matrix` sums to zero, so total mass is preserved.
    """
    matrix: sp.csr_matrix
    grid: GridSpec
    kappa: float
    theta: float
    regime: BoundaryRegime
    reset_node: int

    @property
    def node_count(self) -> int:
        return self.matrix.shape[0]


@dataclass(frozen=True)
class Trajectory:
    """
    Densities at caller-ordered time offsets.

    taus (np.ndarray): (n_tau,) time offsets, duplicates allowed
    densities (np.ndarray): (n_tau, node_count), row k is the density at taus[k]
    """
    taus: np.ndarray
    densities: np.ndarray

    def __len__(self):
        return self.taus.shape[0]

    def items(self):
        for k in range(len(self)):
            yield float(self.taus[k]), self.densities[k]

    def density_at(self, tau):
        """Density at the first sample equal to tau."""
        match = np.flatnonzero(np.isclose(self.taus, tau, rtol=0.0, atol=1e-12))
        if match.size == 0:
            raise KeyError(f"tau={tau} was not propagated")
        return self.densities[match[0]]


@dataclass
class ImpulseResponse:
    """
    restore the pieces of an impulse response run
    """
    grid: GridSpec = None
    generator: Generator = None
    stationary: np.ndarray = None # steady state density (n,)
    shocked: np.ndarray = None    # displaced initial density (n,)
    trajectory: Trajectory = None # return path to steady state
