""" Converged and provisional material point history.

Each integration point owns two generations of state. The converged
generation is the trusted restart point. The provisional generation is
written by every constitutive update during the outer iterations of an
increment, and is either promoted to converged once the whole domain has
converged, or thrown away.

The store as a whole moves between two states:
- Converged: no provisional data is held. The converged state can be
  read, or written through the restart accessors.
- Provisional: at least one point has a provisional state, or has
  recorded a failed update, since the last commit or discard.
"""

import copy
import numpy
from numpy import eye, zeros
from recordclass import recordclass
from constitutiveErrors import HistoryStateError

## A recordclass for the history of one material point
##
## Members:
## - **F_e**: the elastic deformation gradient \f$\mathbf{F}^e\f$, lattice frame
## - **F_p**: the plastic deformation gradient \f$\mathbf{F}^p\f$, lattice frame
## - **s_alphas**: the slip resistances \f$s^\alpha\f$ of every system
## - **twin_fractions**: volume fraction of each twin system
## - **slip_fractions**: accumulated shear on each slip system
## - **twinned**: whether the point has reoriented by twinning
## - **orientation**: rotation vector of the lattice to sample rotation
## - **grain_id**: the grain the point belongs to
MaterialPointState = recordclass('MaterialPointState', ['F_e','F_p','s_alphas',
                                 'twin_fractions','slip_fractions','twinned',
                                 'orientation','grain_id'])

CONVERGED = 'converged'
PROVISIONAL = 'provisional'

def initialMaterialPointState(mprops, orientation=None, grain_id=0):
    """The undeformed state of a point.

    Args:
        mprops: a anand1996.CrystalMaterialProperties instance
        orientation: rotation vector of the lattice, the identity by default
        grain_id: the grain the point belongs to
    Returns:
        A historyStore.MaterialPointState
    """
    if orientation is None:
        orientation = zeros(3)
    slip_systems = mprops.slip_systems
    return MaterialPointState(F_e=eye(3),
                              F_p=eye(3),
                              s_alphas=numpy.array(mprops.s_0, dtype=float),
                              twin_fractions=zeros(slip_systems.n_twin),
                              slip_fractions=zeros(slip_systems.n_slip),
                              twinned=False,
                              orientation=numpy.array(orientation, dtype=float),
                              grain_id=grain_id)

def copyMaterialPointState(state):
    """A copy of the state that shares no arrays with it."""
    return MaterialPointState(*[copy.deepcopy(value) for value in state])

class HistoryStore():
    """The double buffered history of a set of material points."""

    def __init__(self, states):
        """Store constructor.

        Args:
            states: the initial converged historyStore.MaterialPointState of each point
        """
        self._converged = [copyMaterialPointState(state) for state in states]
        self._provisional = [None]*len(self._converged)
        self._failed = set()

    @property
    def n_points(self):
        return len(self._converged)

    @property
    def status(self):
        """Either historyStore.CONVERGED or historyStore.PROVISIONAL."""
        if self._failed or any(state is not None for state in self._provisional):
            return PROVISIONAL
        return CONVERGED

    def getConverged(self, point_id):
        """The converged state of a point.

        This is the stored instance, which must be treated as read-only.
        Use historyStore.HistoryStore.setConvergedField to change it.
        """
        return self._converged[point_id]

    def getProvisional(self, point_id):
        state = self._provisional[point_id]
        if state is None:
            raise HistoryStateError("Point %d has no provisional state." % point_id)
        return state

    def hasProvisional(self, point_id):
        return self._provisional[point_id] is not None

    def writeProvisional(self, point_id, state):
        """Record the outcome of a successful update.

        A later update of the same point in the same increment overwrites it.
        """
        self._provisional[point_id] = state
        self._failed.discard(point_id)

    def recordFailure(self, point_id):
        """Record a failed update, dropping any provisional state of the point."""
        self._provisional[point_id] = None
        self._failed.add(point_id)

    @property
    def failed_points(self):
        return sorted(self._failed)

    def commit(self):
        """Promote every provisional state to converged.

        Points without a provisional state keep their converged state.

        Returns:
            The ids of the points that were promoted
        Raises:
            HistoryStateError: if any point has a failed update pending
        """
        if self._failed:
            raise HistoryStateError("Cannot commit with failed updates at points %s." % self.failed_points)
        promoted = []
        for point_id, state in enumerate(self._provisional):
            if state is not None:
                self._converged[point_id] = state
                promoted.append(point_id)
        self._provisional = [None]*self.n_points
        return promoted

    def discard(self):
        """Drop every provisional state and failure, returning to the converged state."""
        self._provisional = [None]*self.n_points
        self._failed = set()

    def _assertConverged(self):
        if self.status != CONVERGED:
            raise HistoryStateError("Converged history can only be changed between increments.")

    @staticmethod
    def _assertField(field):
        if field not in MaterialPointState.__fields__:
            raise KeyError("Unknown material point field \"%s\"" % field)

    def getConvergedField(self, point_id, field):
        """Copy of one field of a converged state, for checkpointing."""
        self._assertField(field)
        return copy.deepcopy(getattr(self._converged[point_id], field))

    def setConvergedField(self, point_id, field, value):
        """Overwrite one field of a converged state, for restarting."""
        self._assertField(field)
        self._assertConverged()
        state = copyMaterialPointState(self._converged[point_id])
        setattr(state, field, copy.deepcopy(value))
        self._converged[point_id] = state

    def setConverged(self, point_id, state):
        """Replace a whole converged state."""
        self._assertConverged()
        self._converged[point_id] = copyMaterialPointState(state)

    def snapshot(self):
        """Copies of every converged state."""
        return [copyMaterialPointState(state) for state in self._converged]

    def restore(self, states):
        """Restart from states produced by historyStore.HistoryStore.snapshot."""
        if len(states) != self.n_points:
            raise ValueError("Expected %d states, got %d." % (self.n_points, len(states)))
        self._converged = [copyMaterialPointState(state) for state in states]
        self.discard()

    def __repr__(self):
        return "HistoryStore(n_points=%d, status=%s)" % (self.n_points, self.status)
