""" Exceptions raised by the material point update and its history.

None of these are handled inside the constitutive update. Choosing a
smaller increment, or restarting from the converged state, is up to the
caller.
"""

class ConstitutiveError(ArithmeticError):
    """Base class for a failed material point update.

    Attributes:
        point_id: the integration point the failure occurred at, if known
    """
    def __init__(self, message, point_id=None):
        ArithmeticError.__init__(self, message)
        self.point_id = point_id

class InvalidDeformationGradient(ConstitutiveError):
    """The deformation gradient has a non-positive Jacobian."""

class SingularPlasticDeformation(ConstitutiveError):
    """The plastic deformation gradient cannot be inverted."""

class PlasticSolveDivergence(ConstitutiveError):
    """The active set iteration did not settle within its cap."""

class Infeasible(PlasticSolveDivergence):
    """Every candidate system was removed but the yield violation remains."""

class NumericalOverflow(ConstitutiveError):
    """Non-finite values came out of an ill-conditioned reduced system."""

class HistoryStateError(RuntimeError):
    """An operation was attempted in the wrong history state.

    For example committing an increment while a point has a pending
    failure, or reading a provisional state that was never written.
    """
