class MenuCostError(Exception):
    """Base class for failures raised by the price-gap solver."""


# ==========================================
# Bad inputs (caller must change the grid / parameters)
# ==========================================

class InvalidGridError(MenuCostError, ValueError):
    """Spatial bounds or step do not describe a usable grid."""


class InvalidParameterError(MenuCostError, ValueError):
    """Negative / non-finite kappa or theta, or no reset node on the grid."""


class InvalidDisplacementError(MenuCostError, ValueError):
    """Shock shift would push the whole distribution off the grid."""


# ==========================================
# Numerical failures
# ==========================================

class DegenerateNullSpaceError(MenuCostError, RuntimeError):
    """
    Stationary solve found no null direction or more than one.

    Attributes:
        dimension (int): dimension of the computed null space.
    """
    def __init__(self, message, dimension):
        super().__init__(message)
        self.dimension = dimension


class NegativeDensityError(MenuCostError, RuntimeError):
    """Null vector still has negative mass after sign correction."""


class NumericalInstabilityError(MenuCostError, RuntimeError):
    """Matrix-exponential action produced non-finite values."""
