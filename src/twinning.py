""" Discrete reorientation of hexagonal crystals by twinning.

A point starts untwinned. At the end of an increment, once its state has
been committed, it twins if its largest twin volume fraction exceeds
\f[
f_{\mathrm{crit}} = 0.25 + 0.25 \frac{F_e}{F_r},
\f]
where \f$F_e\f$ is the volume fraction of the aggregate that has already
twinned and \f$F_r\f$ is the volume averaged sum of the twin fractions.
Twinning is terminal, and a twinned point is never checked again.
"""

import logging
import numpy
from numpy import pi
from continuum import composeRotationVectors
from historyStore import copyMaterialPointState

logger = logging.getLogger(__name__)

## The threshold with no twin activity anywhere
BASE_TWIN_THRESHOLD = 0.25

## Weight of the aggregate activity ratio in the threshold
TWIN_ACTIVITY_WEIGHT = 0.25

def volumeAveragedTwinActivity(states, volumes):
    """The aggregate twin measures \f$F_e\f$ and \f$F_r\f$.

    \f{eqnarray}{
    F_e & = & \frac{\sum_p v_p \chi_p}{\sum_p v_p}\\
    F_r & = & \frac{\sum_p v_p \sum_i f_{p,i}}{\sum_p v_p}
    \f}
    with \f$\chi_p\f$ the twinned flag of point \f$p\f$.

    Args:
        states: the historyStore.MaterialPointState of each point
        volumes: the volume of each point
    Returns:
        The tuple (F_e, F_r)
    """
    volumes = numpy.asarray(volumes, dtype=float)
    total_volume = volumes.sum()
    twinned = numpy.array([float(state.twinned) for state in states])
    summed_fractions = numpy.array([numpy.sum(state.twin_fractions) for state in states])
    F_e = volumes.dot(twinned)/total_volume
    F_r = volumes.dot(summed_fractions)/total_volume
    return F_e, F_r

def twinActivityRatio(F_e, F_r):
    """\f$F_e/F_r\f$, taken as zero while there is no twin activity."""
    if F_r <= 0.0:
        return 0.0
    return F_e/F_r

def twinningThreshold(F_e, F_r):
    return BASE_TWIN_THRESHOLD + TWIN_ACTIVITY_WEIGHT*twinActivityRatio(F_e, F_r)

def applyTwinTransformation(state, slip_systems, i_twin):
    """Reorient a point by the twin system i_twin.

    The lattice rotation is composed with the rotation by \f$\pi\f$
    about the twin plane normal \f$\mathbf{n}\f$,
    \f[
    \mathbf{R} \leftarrow \mathbf{R}\,\mathbf{Q}(\pi, \mathbf{n}),
    \f]
    and the lattice frame deformation gradients follow with
    \f$\mathbf{Q} = 2\mathbf{n}\otimes\mathbf{n} - \mathbf{1}\f$:
    \f{eqnarray}{
    \mathbf{F}^e & \leftarrow & \mathbf{Q}\mathbf{F}^e\mathbf{Q}\\
    \mathbf{F}^p & \leftarrow & \mathbf{Q}\mathbf{F}^p\mathbf{Q}
    \f}
    The twin fractions are reset and the point is flagged as twinned.

    Args:
        state: the converged historyStore.MaterialPointState
        slip_systems: the slipSystems.SlipSystemTable
        i_twin: the twin system, counted from the first twin
    Returns:
        The twinned historyStore.MaterialPointState
    """
    Q = slip_systems.twinReflection(i_twin)
    n = slip_systems.twinNormal(i_twin)
    twinned_state = copyMaterialPointState(state)
    twinned_state.orientation = composeRotationVectors(state.orientation, pi*n)
    twinned_state.F_e = Q.dot(state.F_e).dot(Q)
    twinned_state.F_p = Q.dot(state.F_p).dot(Q)
    twinned_state.twin_fractions = numpy.zeros_like(state.twin_fractions)
    twinned_state.twinned = True
    return twinned_state

def updateTwinning(states, slip_systems, F_e, F_r):
    """Apply the twin transition to every point that reaches the threshold.

    Args:
        states: the converged historyStore.MaterialPointState of each point
        slip_systems: the slipSystems.SlipSystemTable
        F_e, F_r: the aggregate measures from twinning.volumeAveragedTwinActivity
    Returns:
        A dictionary mapping each point that twinned to its new state
    """
    if not slip_systems.has_twins:
        return {}
    threshold = twinningThreshold(F_e, F_r)
    twinned_states = {}
    for point_id, state in enumerate(states):
        if state.twinned:
            continue
        i_twin = int(numpy.argmax(state.twin_fractions))
        if state.twin_fractions[i_twin] > threshold:
            logger.info("Point %d twins on system %d with fraction %.3f over threshold %.3f",
                        point_id, i_twin, state.twin_fractions[i_twin], threshold)
            twinned_states[point_id] = applyTwinTransformation(state, slip_systems, i_twin)
    return twinned_states
