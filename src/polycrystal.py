""" Material points embedded in a driver, and a Taylor polycrystal.

polycrystal.CrystalPlasticityMaterial is the interface a finite
element driver works through: it evaluates points during the outer
iterations of an increment, commits or discards the increment, and
produces the post-processing fields.

Polycrystal is the simplest such driver. Every point sees the same
deformation gradient, as in the Taylor model used in Kalidindi1992.
"""

import logging
import numpy
from numpy import zeros, eye, ones
from recordclass import recordclass
from scipy.spatial.transform import Rotation
from anand1996 import constitutiveUpdate
from continuum import rotationMatrix, composeRotationVectors, polarDecomposition
from continuum import vonMisesStress, equivalentStrain, greenLagrangeStrain
from historyStore import HistoryStore, initialMaterialPointState
from twinning import volumeAveragedTwinActivity, updateTwinning
from constitutiveErrors import ConstitutiveError

logger = logging.getLogger(__name__)

## Post-processing scalars of a point
PostprocessValues = recordclass('PostprocessValues', ['von_mises_stress',
                                'equivalent_strain','grain_id','twinned'])

## Volume averaged aggregates at the end of an increment
##
## Members:
## - **global_stress**: the volume averaged Cauchy stress
## - **global_strain**: the volume averaged Green-Lagrange strain
## - **F_e**, **F_r**: the aggregate twin measures, see twinning.volumeAveragedTwinActivity
## - **twinned_points**: the points that twinned at this increment
IncrementSummary = recordclass('IncrementSummary', ['global_stress','global_strain',
                               'F_e','F_r','twinned_points'])

def updatePoint(args):
    """Evaluate one point, in a form that can be mapped over by an executor."""
    mprops, F, state, compute_tangent, elastic_tangent = args
    R = rotationMatrix(state.orientation)
    return constitutiveUpdate(mprops, F, state, R,
                              compute_tangent=compute_tangent,
                              elastic_tangent=elastic_tangent)

class CrystalPlasticityMaterial():
    """The crystal plasticity model over a set of integration points."""

    def __init__(self, mprops, orientations, grain_ids=None, volumes=None,
                 compute_tangent=True, elastic_tangent=False):
        """Material constructor.

        Args:
            mprops: a anand1996.CrystalMaterialProperties instance, shared by every point
            orientations: the rotation vector of each point
            grain_ids: the grain of each point, the point index by default
            volumes: the volume of each point, used for averaging
            compute_tangent: whether updates evaluate the consistent tangent
            elastic_tangent: use the elastic predictor tangent instead
        """
        self.mprops = mprops
        n_points = len(orientations)
        if grain_ids is None:
            grain_ids = list(range(n_points))
        if volumes is None:
            volumes = ones(n_points)
        self._volumes = numpy.asarray(volumes, dtype=float)
        if len(grain_ids) != n_points or len(self._volumes) != n_points:
            raise ValueError("Need one grain id and one volume per orientation.")
        self.compute_tangent = compute_tangent
        self.elastic_tangent = elastic_tangent

        states = [initialMaterialPointState(mprops, orientation, grain_id)
                  for orientation, grain_id in zip(orientations, grain_ids)]
        self.history = HistoryStore(states)

        # Kinematics and stress of the latest converged and trial evaluations
        self._F_conv = [eye(3) for i in range(n_points)]
        self._T_conv = [zeros((3,3)) for i in range(n_points)]
        self._F_iter = list(self._F_conv)
        self._T_iter = list(self._T_conv)
        self.deformed_orientations = [state.orientation.copy() for state in states]

    @property
    def n_points(self):
        return self.history.n_points

    def _acceptIterate(self, point_id, F, result):
        self.history.writeProvisional(point_id, result.state)
        self._F_iter[point_id] = numpy.array(F, dtype=float)
        self._T_iter[point_id] = result.T

    def _recordFailure(self, point_id, error):
        self.history.recordFailure(point_id)
        error.point_id = point_id
        logger.warning("Update failed at point %d: %s", point_id, error)

    def calculatePlasticity(self, point_id, F):
        """Evaluate one point for an outer iteration.

        Writes the provisional state of the point.

        Args:
            point_id: the point
            F: its deformation gradient, sample frame
        Returns:
            The tuple (T, P, dP_dF) of the Cauchy stress, the first
            Piola-Kirchhoff stress and the consistent tangent
        """
        state = self.history.getConverged(point_id)
        try:
            result = updatePoint((self.mprops, F, state, self.compute_tangent, self.elastic_tangent))
        except ConstitutiveError as error:
            self._recordFailure(point_id, error)
            raise
        self._acceptIterate(point_id, F, result)
        return result.T, result.P, result.dP_dF

    def calculatePlasticityAll(self, Fs, executor=None):
        """Evaluate every point for an outer iteration.

        The points are independent, so they may be mapped over by a
        concurrent.futures executor. Results are written back in point
        order. The first failure is recorded and raised.

        Args:
            Fs: the deformation gradient of each point, sample frame
            executor: an optional executor to map the points over
        Returns:
            The anand1996.ConstitutiveUpdateResult of each point
        """
        if len(Fs) != self.n_points:
            raise ValueError("Expected %d deformation gradients, got %d." % (self.n_points, len(Fs)))
        args = [(self.mprops, F, self.history.getConverged(point_id),
                 self.compute_tangent, self.elastic_tangent)
                for point_id, F in enumerate(Fs)]
        mapper = map if executor is None else executor.map
        results = []
        point_id = 0
        try:
            for result in mapper(updatePoint, args):
                self._acceptIterate(point_id, Fs[point_id], result)
                results.append(result)
                point_id += 1
        except ConstitutiveError as error:
            self._recordFailure(point_id, error)
            raise
        return results

    def postprocessValues(self, point_id):
        """Post-processing scalars at the latest evaluation of a point.

        Returns:
            A polycrystal.PostprocessValues with the equivalent von Mises
            stress, the equivalent strain, the grain id and the twin flag.
        """
        state = self.history.getConverged(point_id)
        return PostprocessValues(von_mises_stress=vonMisesStress(self._T_iter[point_id]),
                                 equivalent_strain=equivalentStrain(self._F_iter[point_id]),
                                 grain_id=state.grain_id,
                                 twinned=state.twinned)

    def updateAfterIncrement(self):
        """Close an increment once the outer iteration has converged.

        Commits the provisional states, forms the volume averaged
        aggregates, applies any twin transitions and updates the
        deformed texture.

        Returns:
            A polycrystal.IncrementSummary
        """
        self.history.commit()
        self._F_conv = list(self._F_iter)
        self._T_conv = list(self._T_iter)

        total_volume = self._volumes.sum()
        global_stress = zeros((3,3))
        global_strain = zeros((3,3))
        for volume, T, F in zip(self._volumes, self._T_conv, self._F_conv):
            global_stress += volume*T
            global_strain += volume*greenLagrangeStrain(F)
        global_stress /= total_volume
        global_strain /= total_volume

        states = [self.history.getConverged(point_id) for point_id in range(self.n_points)]
        F_e, F_r = volumeAveragedTwinActivity(states, self._volumes)
        twinned_states = updateTwinning(states, self.mprops.slip_systems, F_e, F_r)
        for point_id, state in twinned_states.items():
            self.history.setConverged(point_id, state)

        self.deformed_orientations = self.reorient()
        return IncrementSummary(global_stress=global_stress,
                                global_strain=global_strain,
                                F_e=F_e, F_r=F_r,
                                twinned_points=sorted(twinned_states.keys()))

    def discardIncrement(self):
        """Throw away the provisional states after a failed outer iteration."""
        self.history.discard()
        self._F_iter = list(self._F_conv)
        self._T_iter = list(self._T_conv)

    def reorient(self):
        """The deformed lattice orientation of each point.

        The lattice rotates with the rotation part of the elastic
        deformation, \f$\mathbf{F}^e = \mathbf{R}^e\mathbf{U}^e\f$, so the
        deformed orientation is \f$\mathbf{R}\mathbf{R}^e\f$.

        Returns:
            The rotation vector of each point
        """
        orientations = []
        for point_id in range(self.n_points):
            state = self.history.getConverged(point_id)
            R_e, U_e = polarDecomposition(state.F_e)
            omega_e = Rotation.from_matrix(R_e).as_rotvec()
            orientations.append(composeRotationVectors(state.orientation, omega_e))
        return orientations

    def __repr__(self):
        return "CrystalPlasticityMaterial(%s, n_points=%d)" % (self.mprops.crystal_type, self.n_points)

class Polycrystal():
    """A Taylor aggregate of crystals sharing one deformation gradient.

    The polycrystal is responsible for stepping its crystals between
    prescribed deformation gradients. A step that fails in any crystal is
    discarded in all of them, and retried as a smaller step.
    """

    ## Factor applied to a failed step
    r_t = 0.5

    ## Number of times a step may be cut before giving up
    max_cuts = 8

    def __init__(self, material, executor=None):
        """Polycrystal constructor

        Args:
            material: a polycrystal.CrystalPlasticityMaterial
            executor: an optional concurrent.futures executor for the point updates
        """
        self.material = material
        self.executor = executor
        self.F = eye(3)
        self.strain_history = []
        self.stress_history = []
        self._last_error = None
        self._summary = None

    def step(self, F_next):
        """Attempt a step to a new deformation gradient.

        The step is accepted if it is good in all of the crystals.
        Otherwise it is discarded in all of them.

        Args:
            F_next: the deformation gradient at the end of the step

        Returns:
            'True' if the step was accepted and 'False' otherwise.
        """
        n_points = self.material.n_points
        try:
            self.material.calculatePlasticityAll([F_next]*n_points, executor=self.executor)
        except ConstitutiveError as error:
            self._last_error = error
            self.material.discardIncrement()
            return False
        self._summary = self.material.updateAfterIncrement()
        self.F = numpy.array(F_next, dtype=float)
        return True

    def advanceTo(self, F_target):
        """Reach a deformation gradient, cutting the step on failure.

        Returns:
            The polycrystal.IncrementSummary of the final step
        """
        F_start = self.F.copy()
        fraction_done = 0.0
        dfraction = 1.0
        n_cuts = 0
        while fraction_done < 1.0:
            fraction = min(1.0, fraction_done + dfraction)
            if self.step(F_start + fraction*(F_target - F_start)):
                fraction_done = fraction
            else:
                n_cuts += 1
                if n_cuts > self.max_cuts:
                    raise self._last_error
                dfraction *= self.r_t
                logger.info("Cutting step to %.4g of the increment", dfraction)
        return self._summary

    def run(self, F_history):
        """Step through a prescribed deformation history.

        Args:
            F_history: the sequence of deformation gradients to reach
        Returns:
            The tuple (strain_history, stress_history) of the volume
            averaged Green-Lagrange strains and Cauchy stresses
        """
        for F_target in F_history:
            summary = self.advanceTo(numpy.asarray(F_target, dtype=float))
            self.strain_history.append(summary.global_strain)
            self.stress_history.append(summary.global_stress)
        return self.strain_history, self.stress_history

    def __repr__(self):
        return "Polycrystal(%s)" % (self.material.__repr__())

    def __str__(self):
        return self.__repr__()
