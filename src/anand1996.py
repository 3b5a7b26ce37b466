""" A library for the rate-independent crystal plasticity update of Anand1996.

Anand1996 refers to the paper Lallit Anand and Manish Kothari. A
computational procedure for rate-independent crystal plasticity. Journal
of the Mechanics and Physics of Solids, 44(4):525--558, 1996.

We also make reference to Kalidindi1992, which is the paper Surya R.
Kalidindi, Curt A. Bronkhorst and Lallit Anand. Crystallographic texture
evolution in bulk deformation processing of FCC metals. Journal of the
Mechanics and Physics of Solids, 40(3):537--569, 1992.

All of the constitutive quantities are evaluated in the lattice frame of
the crystal. The deformation gradient \f$\mathbf{F}\f$ passed in, and the
stresses and tangent passed back, are in the sample frame.

The unit system is:
- Stress: MPa
"""

import logging
import numpy
from numpy import array, zeros, ones, eye, sign, einsum, outer
from numpy.linalg import inv, det, LinAlgError
from scipy.linalg import lu_factor, lu_solve, svd
from recordclass import recordclass
from numba import jit
from linearAlgebra import *
from continuum import cubicElasticityTensor, hexagonalElasticityTensor
from slipSystems import getSlipSystems, latentHardeningMatrix
from historyStore import MaterialPointState
from constitutiveErrors import *

logger = logging.getLogger(__name__)

## Yield violation tolerated when the active set empties, relative to the largest slip resistance
RELATIVE_YIELD_TOLERANCE = 1e-8

## Smallest pivot or singular value of a reduced consistency matrix, relative to its largest, that is not treated as zero
RELATIVE_RANK_TOLERANCE = 1e-10

## The factor applied to \f$s_s\f$ when a slip resistance has passed saturation
SATURATION_CLAMP = 0.98

## A recordclass for the material properties of a crystal
##
## A recordclass is a mutable named tuple
## Members:
## - **crystal_type**: the type of crystal, drawn from {'fcc', 'bcc', 'hcp'} or a custom name
## - **slip_systems**: the slipSystems.SlipSystemTable of the crystal
## - **n_alpha**: the number of slip and twin systems
## - **S_0**: the Schmid tensors \f$\mathbf{S}_0^\alpha \equiv \mathbf{m}_0^\alpha \otimes \mathbf{n}_0^\alpha\f$
## - **L**: the lattice frame elasticity tensor \f$\mathcal{L}\f$
## - **h_0**, **a**, **s_s**: per system slip hardening parameters, Equation 43 in Kalidindi1992
## - **s_0**: per system initial slip resistance
## - **q**: the interaction matrix \f$q_{\alpha\beta}\f$
CrystalMaterialProperties = recordclass('CrystalMaterialProperties', ['crystal_type',
                                'slip_systems','n_alpha','S_0','L',
                                'h_0','a','s_s','s_0','q'])

## The outcome of a material point update
##
## Members:
## - **T**: the Cauchy stress, sample frame
## - **P**: the first Piola-Kirchhoff stress, sample frame
## - **T_star**: the second Piola-Kirchhoff stress \f$\mathbf{T}^*\f$, lattice frame
## - **state**: the provisional historyStore.MaterialPointState
## - **active_set**: indices of the systems that slipped
## - **Dgamma_alphas**: the shear increments \f$\Delta\gamma^\alpha \geq 0\f$ of every system
## - **tau_alphas**: the resolved shear stresses at the end of the increment
## - **plastic_work**: \f$\sum_\alpha |\tau^\alpha| \Delta\gamma^\alpha\f$ over the increment
## - **dP_dF**: the consistent tangent \f$\partial P_{ij}/\partial F_{kl}\f$, sample frame, or None
ConstitutiveUpdateResult = recordclass('ConstitutiveUpdateResult', ['T','P',
                                'T_star','state','active_set','Dgamma_alphas',
                                'tau_alphas','plastic_work','dP_dF'])

def buildCrystalMaterialProperties(crystal_type, slip_systems, L, h_0, a, s_s, s_0,
                                   q_latent=1.4, q_self=1.0, q=None):
    """Assemble a anand1996.CrystalMaterialProperties instance.

    The hardening parameters are given per hardening family, and are
    expanded to every system through the family ids of the slip system
    table. Scalars apply to every family.

    Args:
        crystal_type: a name for the crystal
        slip_systems: a slipSystems.SlipSystemTable
        L: the lattice frame elasticity tensor
        h_0, a, s_s, s_0: hardening parameters, one per family
        q_latent: ratio of the latent hardening rate to the self-hardening rate
        q_self: the self-hardening ratio
        q: an explicit interaction matrix, overriding q_latent and q_self
    Returns:
        A anand1996.CrystalMaterialProperties instance
    """
    families = slip_systems.family_ids
    n_families = slip_systems.n_families

    def perSystem(values, name):
        values = numpy.atleast_1d(numpy.asarray(values, dtype=float))
        if values.size == 1:
            values = values[0]*ones(n_families)
        if values.size != n_families:
            raise ValueError("Expected %d values of %s, got %d." % (n_families, name, values.size))
        return values[families]

    if q is None:
        q = latentHardeningMatrix(slip_systems.group_ids, q_latent, q_self)
    q = numpy.asarray(q, dtype=float)
    if q.shape != (slip_systems.n_alpha, slip_systems.n_alpha):
        raise ValueError("Interaction matrix must be %d x %d." % (slip_systems.n_alpha, slip_systems.n_alpha))

    mprops = CrystalMaterialProperties(crystal_type=crystal_type,
                                       slip_systems=slip_systems,
                                       n_alpha=slip_systems.n_alpha,
                                       S_0=slip_systems.S_0,
                                       L=numpy.ascontiguousarray(L, dtype=float),
                                       h_0=perSystem(h_0, 'h_0'),
                                       a=perSystem(a, 'a'),
                                       s_s=perSystem(s_s, 's_s'),
                                       s_0=perSystem(s_0, 's_0'),
                                       q=q)
    return mprops

def getDefaultFCCProperties():
    """Copper-like FCC properties.

    The hardening constants are those of Kalidindi1992 in MPa, with an
    initial slip resistance of 16 MPa.
    """
    L = cubicElasticityTensor(C11=170.0e3, C12=124.0e3, C44=75.0e3)
    return buildCrystalMaterialProperties('fcc', getSlipSystems('fcc'), L,
                                          h_0=180.0, a=2.25, s_s=148.0, s_0=16.0,
                                          q_latent=1.4, q_self=1.0)

def getDefaultBCCProperties():
    """Iron-like BCC properties, with {110}<111> slip only."""
    L = cubicElasticityTensor(C11=231.4e3, C12=134.7e3, C44=116.4e3)
    return buildCrystalMaterialProperties('bcc', getSlipSystems('bcc'), L,
                                          h_0=400.0, a=2.25, s_s=200.0, s_0=60.0,
                                          q_latent=1.4, q_self=1.0)

def getDefaultHCPProperties():
    """Magnesium-like HCP properties with tensile twinning.

    The families are basal, prismatic, pyramidal <a>, pyramidal <c+a>
    and tensile twin, in that order.
    """
    L = hexagonalElasticityTensor(C11=59.3e3, C12=25.7e3, C13=21.4e3, C33=61.5e3, C44=16.4e3)
    return buildCrystalMaterialProperties('hcp', getSlipSystems('hcp'), L,
                                          h_0=[20.0, 1500.0, 1500.0, 3000.0, 100.0],
                                          a=[2.0, 1.1, 1.1, 2.0, 2.0],
                                          s_s=[30.0, 135.0, 150.0, 170.0, 50.0],
                                          s_0=[6.0, 50.0, 55.0, 60.0, 30.0],
                                          q_latent=1.4, q_self=1.0)

def getDefaultCrystalMaterialProperties(crystal_type='fcc'):
    """Generate default crystal material properties.

    Args:
        crystal_type: drawn from {'fcc', 'bcc', 'hcp'}
    Returns:
        A anand1996.CrystalMaterialProperties instance
    """
    if crystal_type == 'fcc':
        return getDefaultFCCProperties()
    elif crystal_type == 'bcc':
        return getDefaultBCCProperties()
    elif crystal_type == 'hcp':
        return getDefaultHCPProperties()
    else:
        raise LookupError("No default properties for \"%s\"" % (crystal_type))

@jit('f8(f8,f8,f8,f8)', nopython=True)
def SlipHardeningRate(h_0, s_s, a, s_beta):
    """
    Get the slip hardening rate from the slip deformation resistance in a single system.

    This evaluates Equation 43 in Kalidindi1992. The equation is:
    \f[
    h^{(\beta)} = h_0 \left(1-\frac{s^\beta}{s_s}\right)^a
    \f]
    A resistance that has passed \f$s_s\f$ is first pulled back to
    \f$0.98 s_s\f$, so the base of the power stays positive.

    Args:
        h_0, s_s, a: the hardening parameters of the system
        s_beta: \f$s^\beta\f$
    Returns:
        \f$h^{(\beta)}\f$
    """
    if s_beta > s_s:
        s_beta = SATURATION_CLAMP*s_s
    return h_0*((1.0-s_beta/s_s))**a

@jit('f8[:](f8[:],f8[:],f8[:],f8[:])', nopython=True)
def SlipHardeningRates(h_0, s_s, a, s_alphas):
    """Evaluate anand1996.SlipHardeningRate on every system."""
    n_alpha = s_alphas.shape[0]
    h = zeros(n_alpha)
    for beta in range(n_alpha):
        h[beta] = SlipHardeningRate(h_0[beta], s_s[beta], a[beta], s_alphas[beta])
    return h

@jit('f8[:](f8[:,:,:],f8[:,:])', nopython=True)
def ResolvedShearStresses(S_0, T):
    """The resolved shear stresses \f$\tau^\alpha = \mathbf{T}^* : \mathbf{S}_0^\alpha\f$."""
    n_alpha = S_0.shape[0]
    tau = zeros(n_alpha)
    for alpha in range(n_alpha):
        tau[alpha] = tensorInnerKalidindi2_2(T, S_0[alpha,:,:])
    return tau

@jit('f8[:,:,:](f8[:,:,:,:],f8[:,:],f8[:,:,:])', nopython=True)
def TensorC_alphas(L, C_e, S_0):
    """Return the tensors \f$\mathbf{C}^\alpha\f$, as in Equation 29 of Kalidindi1992.

    The equation is:
    \f[
    \mathbf{C}^\alpha \equiv \mathcal{L}\left[\frac{1}{2} \left(\mathbf{C}^e \mathbf{S}_0^\alpha
    + \mathbf{S}_0^{\alpha^T}\mathbf{C}^e \right)\right],
    \f]
    where \f$\mathbf{C}^e\f$ is the trial elastic right Cauchy-Green
    tensor. The trial stress relaxes by \f$\Delta\gamma^\alpha \mathbf{C}^\alpha\f$
    for each increment of slip on system \f$\alpha\f$.

    Args:
        L: \f$\mathcal{L}\f$
        C_e: \f$\mathbf{C}^e\f$
        S_0: list of \f$\mathbf{S}_0^\alpha\f$ for each \f$\alpha\f$
    Returns:
        list of \f$\mathbf{C}^\alpha\f$ for each \f$\alpha\f$
    """
    n_alpha = S_0.shape[0]
    C_alphas = zeros((n_alpha, 3, 3))
    for alpha in range(n_alpha):
        B_alpha = AB_plusB_T_A3(C_e, S_0[alpha,:,:])
        C_alphas[alpha,:,:] = tensordotKalidindi4_2(L, 0.5*B_alpha)
    return C_alphas

def ConsistencyMatrix(mprops, h_betas, tau_trial, C_alphas):
    """The matrix of the consistency conditions, Equation 33 of Anand1996.

    \f[
    A^{\alpha\beta} = q^{\alpha\beta} h^\beta + \mathrm{sgn}(\tau^\alpha)\,\mathrm{sgn}(\tau^\beta)\,
    \mathbf{S}_0^\alpha : \mathbf{C}^\beta
    \f]
    with the signs taken from the trial resolved shear stresses.

    Returns:
        The tuple (A, signs)
    """
    signs = sign(tau_trial)
    signs[signs == 0.0] = 1.0
    S_ddot_C = einsum('aij,bij->ab', mprops.S_0, C_alphas)
    A = mprops.q*h_betas[None,:] + outer(signs, signs)*S_ddot_C
    return A, signs

def ReducedInverse(A_r):
    """The inverse of a reduced consistency matrix, or its pseudo-inverse if it is singular.

    The reduced matrix is singular whenever the active systems are
    linearly dependent, as for more than nine FCC systems, since the
    interaction matrix has rank four and the symmetric Schmid tensors
    span five dimensions. Following Anand1996, the
    singular case is solved with the Moore-Penrose pseudo-inverse from
    the singular value decomposition, which picks the smallest shear
    increments among the solutions.

    Returns:
        The tuple (A_inv, lu_piv), with lu_piv None when A_r is singular
    """
    lu_piv = lu_factor(A_r)
    pivots = numpy.abs(numpy.diag(lu_piv[0]))
    if pivots.min() > RELATIVE_RANK_TOLERANCE*pivots.max():
        return lu_solve(lu_piv, eye(A_r.shape[0])), lu_piv
    try:
        U, singular_values, V_T = svd(A_r)
    except LinAlgError as error:
        raise NumericalOverflow("Singular value decomposition of the consistency matrix failed.") from error
    kept = singular_values > RELATIVE_RANK_TOLERANCE*singular_values[0]
    A_inv = (V_T[kept].T/singular_values[kept]).dot(U[:,kept].T)
    return A_inv, None

def solveActiveSet(PA, A, b, tol=0.0, max_iter=None):
    """Find the active systems and their shear increments.

    Solves the consistency conditions
    \f[
    \sum_{\beta \in \mathcal{A}} A^{\alpha\beta} \Delta\gamma^\beta = b^\alpha,
    \quad \alpha \in \mathcal{A},
    \f]
    starting from the potentially active set \f$\mathcal{A} = \mathcal{PA}\f$.
    Every system with \f$\Delta\gamma^\beta < 0\f$ is dropped and the
    reduced system is solved again. Once every increment is admissible,
    any system outside \f$\mathcal{A}\f$ left above yield, that is with
    \f[
    b^\alpha - \sum_{\beta \in \mathcal{A}} A^{\alpha\beta} \Delta\gamma^\beta > \mathrm{tol},
    \f]
    is added and the system is solved again. The number of passes is
    capped at the number of systems.

    Args:
        PA: indices of the potentially active systems
        A: the full consistency matrix
        b: the yield violations \f$b^\alpha = |\tau^\alpha| - s^\alpha\f$ of every system
        tol: the violation that may remain on systems outside the active set
        max_iter: the cap on the number of passes, defaults to the number of systems
    Returns:
        The tuple (active_set, x, A_inv), with the shear increments x of
        the active systems and the inverse, or pseudo-inverse, of the
        reduced matrix, which is None for an empty set.
    Raises:
        NumericalOverflow: if the system or its solution is not finite
        PlasticSolveDivergence: if the cap is reached
        Infeasible: if the set empties while a violation above tol remains
    """
    if max_iter is None:
        max_iter = A.shape[0]
    PA = numpy.asarray(PA, dtype=int)
    if not (numpy.all(numpy.isfinite(A)) and numpy.all(numpy.isfinite(b))):
        raise NumericalOverflow("Consistency system contains non-finite entries.")

    active = PA.copy()
    n_iter = 0
    while len(active) > 0:
        if n_iter >= max_iter:
            raise PlasticSolveDivergence("Active set did not settle in %d iterations." % max_iter)
        n_iter += 1
        A_inv, lu_piv = ReducedInverse(A[numpy.ix_(active, active)])
        if lu_piv is None:
            logger.debug("Consistency matrix is singular on systems %s", active.tolist())
            x = A_inv.dot(b[active])
        else:
            x = lu_solve(lu_piv, b[active])
        if not numpy.all(numpy.isfinite(x)):
            raise NumericalOverflow("Non-finite shear increments on systems %s." % active.tolist())
        inadmissible = x < 0.0
        if numpy.any(inadmissible):
            logger.debug("Dropping systems %s from the active set", active[inadmissible].tolist())
            active = active[~inadmissible]
            continue

        # Systems left above yield by the slip on the others
        violations = b - A[:,active].dot(x)
        violations[active] = 0.0
        violators = numpy.flatnonzero(violations > tol)
        if len(violators) == 0:
            return active, x, A_inv
        logger.debug("Adding systems %s to the active set", violators.tolist())
        active = numpy.union1d(active, violators)

    if len(PA) > 0 and numpy.max(b) > tol:
        raise Infeasible("Yield violation %g remains with no active systems." % numpy.max(b))
    return active, zeros(0), None

def PlasticDeformationGradientUpdate(S_0, F_p_prev_time, signed_Dgamma_alphas):
    """Update the plastic deformation gradient

    Evaluates Equation 17 in Kalidindi1992. The equation is:
    \f[
    \mathbf{F}^p (t_{i+1}) = \left( \mathbf{1}+\sum_\alpha \Delta \gamma^\alpha \mathbf{S}_0^\alpha \right) \mathbf{F}^p (t_i).
    \f]
    It is further divided by \f$\sqrt[3]{\det{\mathbf{F}^p}}\f$ to force a unit determinant.

    Args:
        S_0: list of \f$\mathbf{S}_0^\alpha\f$
        F_p_prev_time: \f$\mathbf{F}^p (t_i)\f$
        signed_Dgamma_alphas: \f$\mathrm{sgn}(\tau^\alpha)\Delta \gamma^\alpha\f$ for each \f$\alpha\f$
    Returns:
        \f$\mathbf{F}^p (t_{i+1})\f$
    """
    F_p = (eye(3) + einsum('a,aij->ij', signed_Dgamma_alphas, S_0)).dot(F_p_prev_time)
    if not det(F_p) > 0.0:
        raise SingularPlasticDeformation("Updated plastic deformation gradient has det %g." % det(F_p))

    # Force unit determinant
    scaleToUnitDeterminant3(F_p)
    return F_p

def invertPlasticDeformationGradient(F_p):
    """Inverse of \f$\mathbf{F}^p\f$, raising constitutiveErrors.SingularPlasticDeformation if there is none."""
    if not numpy.all(numpy.isfinite(F_p)):
        raise SingularPlasticDeformation("Plastic deformation gradient is not finite.")
    try:
        F_p_inv = inv(F_p)
    except LinAlgError as error:
        raise SingularPlasticDeformation("Plastic deformation gradient is singular.") from error
    if not numpy.all(numpy.isfinite(F_p_inv)):
        raise SingularPlasticDeformation("Plastic deformation gradient is singular.")
    return F_p_inv

def constitutiveUpdate(mprops, F, state, R, compute_tangent=True, elastic_tangent=False):
    """Integrate the material point over one increment.

    This is the procedure of Section 4 of Anand1996:
    1. Rotate into the lattice frame, \f$\mathbf{F}_c = \mathbf{R}^T\mathbf{F}\mathbf{R}\f$.
    2. Form the trial elastic state \f$\mathbf{F}^{e*} = \mathbf{F}_c \mathbf{F}^{p^{-1}}(t)\f$,
       \f$\mathbf{T}^{*tr} = \mathcal{L}[\frac{1}{2}(\mathbf{C}^{e*}-\mathbf{1})]\f$.
    3. Collect the potentially active systems \f$|\tau^\alpha| - s^\alpha \geq 0\f$.
       With none, the step is elastic and \f$\mathbf{F}^p\f$ is carried over unchanged.
    4. Otherwise find the active set and increments with anand1996.solveActiveSet,
       then update \f$\mathbf{F}^p\f$, \f$\mathbf{T}^*\f$ and \f$s^\alpha\f$.
    5. Recover the Cauchy and first Piola-Kirchhoff stresses in the sample frame.

    The converged state passed in is never modified.

    Args:
        mprops: a anand1996.CrystalMaterialProperties instance
        F: the deformation gradient \f$\mathbf{F}(t_{i+1})\f$, sample frame
        state: the converged historyStore.MaterialPointState
        R: the lattice to sample rotation \f$\mathbf{R}\f$
        compute_tangent: whether to evaluate the consistent tangent
        elastic_tangent: evaluate the elastic predictor tangent instead
    Returns:
        A anand1996.ConstitutiveUpdateResult
    """
    F = numpy.asarray(F, dtype=float)
    if F.shape != (3,3) or not numpy.all(numpy.isfinite(F)):
        raise InvalidDeformationGradient("Deformation gradient must be a finite 3x3 array.")
    det_F = det(F)
    if not det_F > 0.0:
        raise InvalidDeformationGradient("Deformation gradient has det %g." % det_F)

    # Lattice frame trial state
    F_c = (R.T).dot(F).dot(R)
    F_p_t = state.F_p
    F_p_t_inv = invertPlasticDeformationGradient(F_p_t)
    F_e_trial = F_c.dot(F_p_t_inv)
    C_e_trial = (F_e_trial.T).dot(F_e_trial)
    T_star_trial = tensordotKalidindi4_2(mprops.L, 0.5*(C_e_trial-eye(3)))
    tau_trial = ResolvedShearStresses(mprops.S_0, T_star_trial)

    # Potentially active systems
    s_t = state.s_alphas
    b = numpy.abs(tau_trial) - s_t
    PA = numpy.flatnonzero(b >= 0.0)

    n_alpha = mprops.n_alpha
    Dgamma_alphas = zeros(n_alpha)
    active = zeros(0, dtype=int)
    A_inv = None
    signs = ones(n_alpha)
    C_alphas = None
    if len(PA) > 0:
        C_alphas = TensorC_alphas(mprops.L, C_e_trial, mprops.S_0)
        h_betas = SlipHardeningRates(mprops.h_0, mprops.s_s, mprops.a, s_t)
        A, signs = ConsistencyMatrix(mprops, h_betas, tau_trial, C_alphas)
        tol = RELATIVE_YIELD_TOLERANCE*numpy.max(s_t)
        active, x, A_inv = solveActiveSet(PA, A, b, tol=tol)
        Dgamma_alphas[active] = x

    if len(active) > 0:
        signed_Dgamma = signs*Dgamma_alphas
        F_p_tau = PlasticDeformationGradientUpdate(mprops.S_0, F_p_t, signed_Dgamma)
        F_e_tau = F_c.dot(inv(F_p_tau))
        T_star_tau = T_star_trial - einsum('a,aij->ij', signed_Dgamma, C_alphas)
        h_alpha_beta = mprops.q*h_betas[None,:]
        s_tau = s_t + h_alpha_beta.dot(Dgamma_alphas)
    else:
        F_p_tau = F_p_t.copy()
        F_e_tau = F_e_trial
        T_star_tau = T_star_trial
        s_tau = s_t.copy()

    # Stresses, rotated back to the sample frame
    T_cauchy_c = F_e_tau.dot(T_star_tau).dot(F_e_tau.T)/det(F_e_tau)
    T_cauchy = R.dot(T_cauchy_c).dot(R.T)
    P = det_F*T_cauchy.dot(inv(F).T)
    if not (numpy.all(numpy.isfinite(T_cauchy)) and numpy.all(numpy.isfinite(P))):
        raise NumericalOverflow("Non-finite stress after the plastic update.")

    tau_alphas = ResolvedShearStresses(mprops.S_0, T_star_tau)
    plastic_work = numpy.abs(tau_alphas).dot(Dgamma_alphas)

    # Systems outside the active set end within their yield surface. The
    # active set solve guarantees this for the sign of the trial stress.
    if len(PA) > 0:
        inactive = numpy.ones(n_alpha, dtype=bool)
        inactive[active] = False
        overshoot = numpy.abs(tau_alphas[inactive]) - s_tau[inactive]
        if numpy.any(overshoot > tol):
            raise Infeasible("Inactive systems %s end above yield." % numpy.flatnonzero(inactive)[overshoot > tol].tolist())

    # Twin and slip bookkeeping. Shear on a twin system adds to its fraction
    # whatever its sign, as for slip, so twinning is not treated as polar.
    slip_systems = mprops.slip_systems
    twin_fractions = state.twin_fractions + Dgamma_alphas[slip_systems.twin_systems]/slip_systems.twin_shear
    slip_fractions = state.slip_fractions + Dgamma_alphas[:slip_systems.n_slip]

    provisional_state = MaterialPointState(F_e=F_e_tau,
                                           F_p=F_p_tau,
                                           s_alphas=s_tau,
                                           twin_fractions=twin_fractions,
                                           slip_fractions=slip_fractions,
                                           twinned=state.twinned,
                                           orientation=numpy.array(state.orientation, dtype=float),
                                           grain_id=state.grain_id)

    dP_dF = None
    if compute_tangent:
        if elastic_tangent or len(active) == 0:
            dP_dF_c = ElasticTangent(mprops, F_c, F_e_trial, F_p_t_inv, F_p_tau, T_star_tau)
        else:
            dP_dF_c = TangentModulus(mprops, F_c, F_e_trial, F_p_t, F_p_tau, T_star_tau,
                                     C_alphas, signs, Dgamma_alphas, active, A_inv)
        dP_dF = rotateFourthOrder3(R, dP_dF_c)

    return ConstitutiveUpdateResult(T=T_cauchy, P=P, T_star=T_star_tau,
                                    state=provisional_state,
                                    active_set=active,
                                    Dgamma_alphas=Dgamma_alphas,
                                    tau_alphas=tau_alphas,
                                    plastic_work=plastic_work,
                                    dP_dF=dP_dF)

def TrialStressDerivative(mprops, F_e_trial, F_p_t_inv):
    """Derivatives of the trial elastic state with respect to \f$\mathbf{F}_c\f$.

    \f{eqnarray}{
    \frac{\partial C^{e*}_{ij}}{\partial F_{kl}} & = & F^{p^{-1}}_{li} F^{e*}_{kj} + F^{e*}_{ki} F^{p^{-1}}_{lj}\\
    \frac{\partial \mathbf{T}^{*tr}}{\partial \mathbf{F}} & = & \mathcal{L} : \frac{1}{2}\frac{\partial \mathbf{C}^{e*}}{\partial \mathbf{F}}
    \f}

    Returns:
        The tuple (dC_e, dT_tr) of 3x3x3x3 arrays
    """
    dC_e = einsum('li,kj->ijkl', F_p_t_inv, F_e_trial) + einsum('ki,lj->ijkl', F_e_trial, F_p_t_inv)
    dT_tr = fourthOrderDoubleContraction3(mprops.L, 0.5*dC_e)
    return dC_e, dT_tr

def PK1Derivative(F_c, F_p_inv, T_star, dF_p_inv, dT_star):
    """Derivative of \f$\mathbf{P} = \mathbf{F}\mathbf{F}^{p^{-1}}\mathbf{T}^*\mathbf{F}^{p^{-T}}\f$.

    This form of \f$\mathbf{P}\f$ holds because \f$\det \mathbf{F}^p = 1\f$.
    """
    S_pk2 = F_p_inv.dot(T_star).dot(F_p_inv.T)
    dP = einsum('iakl,aj->ijkl', fourthOrderIdentity3(), S_pk2)
    dP += einsum('ia,abkl,jb->ijkl', F_c.dot(F_p_inv), dT_star, F_p_inv)
    if dF_p_inv is not None:
        dP += einsum('ia,abkl,bj->ijkl', F_c, dF_p_inv, T_star.dot(F_p_inv.T))
        dP += einsum('ia,jakl->ijkl', F_c.dot(F_p_inv).dot(T_star), dF_p_inv)
    return dP

def ElasticTangent(mprops, F_c, F_e_trial, F_p_t_inv, F_p, T_star):
    """The lattice frame tangent with the plastic deformation held fixed.

    This is exact for an elastic step, and the elastic predictor
    approximation otherwise.
    """
    dC_e, dT_tr = TrialStressDerivative(mprops, F_e_trial, F_p_t_inv)
    return PK1Derivative(F_c, inv(F_p), T_star, None, dT_tr)

def TangentModulus(mprops, F_c, F_e_trial, F_p_t, F_p, T_star, C_alphas, signs,
                   Dgamma_alphas, active, A_inv):
    """The consistent tangent \f$\partial \mathbf{P}/\partial \mathbf{F}_c\f$ in the lattice frame.

    This is the exact derivative of the update in anand1996.constitutiveUpdate
    with the active set \f$\mathcal{A}\f$ and the signs
    \f$\sigma^\alpha = \mathrm{sgn}(\tau^{\alpha,tr})\f$ held fixed. With
    \f$\mathbf{G} = \sum_\beta \sigma^\beta \Delta\gamma^\beta \mathbf{C}^\beta\f$,
    differentiating the consistency conditions gives
    \f[
    \sum_{\beta\in\mathcal{A}} A^{\alpha\beta} d\Delta\gamma^\beta =
    \sigma^\alpha \mathbf{S}_0^\alpha : \left(d\mathbf{T}^{*tr} - d\mathbf{G}\right),
    \f]
    which is solved with the inverse of the reduced matrix already
    computed for the stress update. Then
    \f{eqnarray}{
    d\mathbf{T}^* & = & d\mathbf{T}^{*tr} - d\mathbf{G} - \sum_\beta \sigma^\beta d\Delta\gamma^\beta \mathbf{C}^\beta \\
    d\mathbf{F}^p & = & J^{-1/3} d\hat{\mathbf{F}}^p - \frac{1}{3}\mathbf{F}^p
    \mathrm{tr}(\hat{\mathbf{F}}^{p^{-1}} d\hat{\mathbf{F}}^p),
    \f}
    where \f$\hat{\mathbf{F}}^p\f$ is the plastic deformation gradient
    before scaling to unit determinant, and \f$J = \det \hat{\mathbf{F}}^p\f$.

    Args:
        mprops: a anand1996.CrystalMaterialProperties instance
        F_c: the lattice frame deformation gradient
        F_e_trial: the trial elastic deformation gradient
        F_p_t: \f$\mathbf{F}^p(t)\f$
        F_p: \f$\mathbf{F}^p(t_{i+1})\f$
        T_star: \f$\mathbf{T}^*(t_{i+1})\f$
        C_alphas: list of \f$\mathbf{C}^\alpha\f$
        signs: \f$\sigma^\alpha\f$
        Dgamma_alphas: the shear increments of every system
        active: the active set
        A_inv: the inverse, or pseudo-inverse, of the reduced consistency matrix
    Returns:
        \f$\partial P_{ij}/\partial F_{c,kl}\f$
    """
    F_p_t_inv = inv(F_p_t)
    dC_e, dT_tr = TrialStressDerivative(mprops, F_e_trial, F_p_t_inv)

    S_act = mprops.S_0[active]
    sig_act = signs[active]
    x_act = Dgamma_alphas[active]

    # d(sym(C_e S_beta)) and dC_beta for the active systems
    dsym = 0.5*(einsum('prkl,brq->bpqkl', dC_e, S_act) + einsum('brp,rqkl->bpqkl', S_act, dC_e))
    dC_act = einsum('ijpq,bpqkl->bijkl', mprops.L, dsym)
    dG = einsum('b,bijkl->ijkl', sig_act*x_act, dC_act)

    # Increments
    rhs = sig_act[:,None,None]*einsum('aij,ijkl->akl', S_act, dT_tr - dG)
    dx = einsum('ab,bkl->akl', A_inv, rhs)

    # Stress
    dT_star = dT_tr - dG - einsum('bkl,bij->ijkl', sig_act[:,None,None]*dx, C_alphas[active])

    # Plastic deformation gradient
    F_p_hat = (eye(3) + einsum('b,bij->ij', sig_act*x_act, S_act)).dot(F_p_t)
    J = det(F_p_hat)
    dF_p_hat = einsum('bkl,bij->ijkl', sig_act[:,None,None]*dx, einsum('bia,aj->bij', S_act, F_p_t))
    trace_term = einsum('ji,ijkl->kl', inv(F_p_hat), dF_p_hat)
    dF_p = J**(-1.0/3.0)*dF_p_hat - (1.0/3.0)*einsum('ij,kl->ijkl', F_p, trace_term)
    F_p_inv = inv(F_p)
    dF_p_inv = -einsum('ia,abkl,bj->ijkl', F_p_inv, dF_p, F_p_inv)

    return PK1Derivative(F_c, F_p_inv, T_star, dF_p_inv, dT_star)
