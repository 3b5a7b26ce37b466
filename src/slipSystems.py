""" Slip and twin system geometry for cubic and hexagonal crystals.

Every system \f$\alpha\f$ carries a unit slip direction
\f$\mathbf{m}_0^\alpha\f$ and a unit plane normal \f$\mathbf{n}_0^\alpha\f$
in the lattice frame, along with two integer labels:
- a hardening family, indexing the per-family hardening constants
  \f$h_0\f$, \f$a\f$, \f$s_s\f$ and \f$s_0\f$;
- an interaction group. Systems in the same group harden each other at
  the self-hardening rate, and all other pairs at the latent rate.

Twin systems are treated as slip systems, and occupy a contiguous range
of indices at the end of the table.
"""

import numpy
from numpy import array, zeros, ones, sqrt, eye
from numpy.linalg import norm
from numba import jit
from linearAlgebra import numbaOuter3

## Axial ratio of magnesium
MG_C_OVER_A = 1.624

## Characteristic shear of the magnesium {10-12} tensile twin
MG_TWIN_SHEAR = 0.129

@jit('f8[:,:,:](f8[:,:],f8[:,:])', nopython=True)
def getS_0_Internal(m, n):
    """Gets the slip system outer products.

    This function evaluates
    \f[
    \mathbf{S}_0^\alpha = \mathbf{m}_0^\alpha \otimes \mathbf{n}_0^\alpha
    \f]
    for each slip system labeled by \f$\alpha\f$. It provides a
    JIT-compiled inner loop for slipSystems.getS_0.
    """
    n_systems = m.shape[0]
    S_0 = zeros((n_systems,3,3))
    for i in range(n_systems):
        S_0[i,:,:] = numbaOuter3(m[i,:], n[i,:])
    return S_0

def getS_0(m_0, n_0):
    """Gets the Schmid tensors of a set of slip systems.

    This function evaluates
    \f[
    \mathbf{S}_0^\alpha = \mathbf{m}_0^\alpha \otimes \mathbf{n}_0^\alpha
    \f]
    for each slip system labeled by \f$\alpha\f$.

    Args:
        m_0: A list of \f$\mathbf{m}_0^\alpha\f$ for each slip system
        n_0: A list of \f$\mathbf{n}_0^\alpha\f$ for each slip system
    Returns:
        An array of the outer products for each slip system, with the
        first dimension of the array indexing the slip system, and the
        second and third dimensions indexing the components of the
        2nd order tensor.
    """
    m_0 = numpy.ascontiguousarray(m_0, dtype=numpy.float64)
    n_0 = numpy.ascontiguousarray(n_0, dtype=numpy.float64)
    return getS_0_Internal(m_0, n_0)

def millerBravaisDirection(uvtw, c_over_a):
    """Cartesian components of a four index hexagonal direction.

    The basal axes are \f$\mathbf{a}_1 = \mathbf{e}_1\f$,
    \f$\mathbf{a}_2 = -\frac{1}{2}\mathbf{e}_1 + \frac{\sqrt{3}}{2}\mathbf{e}_2\f$,
    \f$\mathbf{a}_3 = -(\mathbf{a}_1 + \mathbf{a}_2)\f$, and
    \f$\mathbf{c} = (c/a)\mathbf{e}_3\f$, in units of \f$a\f$.

    Args:
        uvtw: the direction \f$[uvtw]\f$
        c_over_a: the axial ratio \f$c/a\f$
    Returns:
        The unnormalised direction
    """
    u, v, t, w = uvtw
    return array([u - 0.5*v - 0.5*t, 0.5*sqrt(3.0)*(v - t), c_over_a*w])

def millerBravaisPlane(hkil, c_over_a):
    """Cartesian components of the normal to a four index hexagonal plane.

    Args:
        hkil: the plane \f$(hkil)\f$
        c_over_a: the axial ratio \f$c/a\f$
    Returns:
        The unnormalised plane normal
    """
    h, k, i, l = hkil
    return array([h, (h + 2.0*k)/sqrt(3.0), l/c_over_a])

def coplanarGroups(n_0, tol=1e-8):
    """Label systems that share a slip plane.

    Normals that are parallel or anti-parallel get the same label, with
    labels assigned in order of first appearance.
    """
    group_ids = -ones(len(n_0), dtype=int)
    n_groups = 0
    for alpha in range(len(n_0)):
        if group_ids[alpha] >= 0:
            continue
        for beta in range(alpha, len(n_0)):
            if group_ids[beta] < 0 and abs(abs(n_0[alpha].dot(n_0[beta])) - 1.0) < tol:
                group_ids[beta] = n_groups
        n_groups += 1
    return group_ids

class SlipSystemTable():
    """The slip and twin systems of one crystal structure.

    The table is read-only once built and is shared between all the
    material points of a phase.
    """

    def __init__(self, m_0, n_0, family_ids=None, group_ids=None,
                 n_twin=0, twin_shear=MG_TWIN_SHEAR, tol=1e-8):
        """Table constructor.

        Normalises the directions and normals, and checks that each
        direction lies in its plane.

        Args:
            m_0: slip directions, one row per system
            n_0: plane normals, one row per system
            family_ids: hardening family of each system, all zero by default
            group_ids: interaction group of each system, the coplanar
            groups by default
            n_twin: the number of twin systems at the end of the table
            twin_shear: characteristic twinning shear, converting twin
            shear increments into volume fractions
        """
        m_0 = array(m_0, dtype=float)
        n_0 = array(n_0, dtype=float)
        if m_0.shape != n_0.shape or m_0.ndim != 2 or m_0.shape[1] != 3:
            raise ValueError("Slip directions and normals must both be n_alpha x 3.")
        self.m_0 = m_0/norm(m_0, axis=1)[:,None]
        self.n_0 = n_0/norm(n_0, axis=1)[:,None]
        non_orthogonal = numpy.abs(numpy.sum(self.m_0*self.n_0, axis=1)) > tol
        if numpy.any(non_orthogonal):
            raise ValueError("Slip direction not in slip plane for systems %s"
                             % numpy.flatnonzero(non_orthogonal).tolist())
        self.n_alpha = m_0.shape[0]
        self.S_0 = getS_0(self.m_0, self.n_0)

        if family_ids is None:
            family_ids = zeros(self.n_alpha, dtype=int)
        if group_ids is None:
            group_ids = coplanarGroups(self.n_0)
        self.family_ids = array(family_ids, dtype=int)
        self.group_ids = array(group_ids, dtype=int)
        if len(self.family_ids) != self.n_alpha or len(self.group_ids) != self.n_alpha:
            raise ValueError("Need one family id and one group id per system.")
        self.n_families = int(self.family_ids.max()) + 1

        if n_twin < 0 or n_twin > self.n_alpha:
            raise ValueError("Invalid number of twin systems %d." % n_twin)
        self.n_twin = n_twin
        self.n_slip = self.n_alpha - n_twin
        self.twin_systems = slice(self.n_slip, self.n_alpha)
        self.twin_shear = twin_shear

    @property
    def has_twins(self):
        return self.n_twin > 0

    def twinNormal(self, i_twin):
        """Plane normal of twin system i_twin, counted from the first twin."""
        return self.n_0[self.n_slip + i_twin]

    def twinReflection(self, i_twin):
        """The twin transformation \f$2\mathbf{n}\otimes\mathbf{n} - \mathbf{1}\f$.

        This is the rotation by \f$\pi\f$ about the twin plane normal.
        """
        n = self.twinNormal(i_twin)
        return 2.0*numpy.outer(n, n) - eye(3)

    def __repr__(self):
        return "SlipSystemTable(n_alpha=%d, n_twin=%d, n_families=%d)" % (
            self.n_alpha, self.n_twin, self.n_families)

def latentHardeningMatrix(group_ids, q_latent, q_self=1.0):
    """Get the interaction matrix \f$q_{\alpha\beta}\f$.

    This generalises the block structure of Equation 42 in Kalidindi1992
    to arbitrary groupings:
    \f[
    q_{\alpha\beta} = \left\{
    \begin{array}{ll}
    q_{\mathrm{self}} & \mathrm{if}\ g(\alpha) = g(\beta)\\
    q_{\mathrm{latent}} & \mathrm{otherwise}
    \end{array}\right.
    \f]

    Args:
        group_ids: the interaction group \f$g(\alpha)\f$ of each system
        q_latent: ratio of the latent hardening rate to the self-hardening rate
        q_self: the self-hardening ratio
    Returns:
        \f$\mathbf{q}\f$
    """
    group_ids = numpy.asarray(group_ids)
    same_group = group_ids[:,None] == group_ids[None,:]
    return numpy.where(same_group, q_self, q_latent).astype(float)

def fccSlipSystems():
    """The twelve {111}<110> systems, as in Table A1 of Kalidindi1992."""
    m_0 = array([[1,-1,0],[-1,0,1],[0,1,-1],
                 [1,0,1],[-1,-1,0],[0,1,-1],
                 [-1,0,1],[0,-1,-1],[1,1,0],
                 [-1,1,0],[1,0,1],[0,-1,-1]], dtype=float)
    n_0 = zeros((12,3))
    n_0[0:3,:] = array((1,1,1))
    n_0[3:6,:] = array((-1,1,1))
    n_0[6:9,:] = array((1,-1,1))
    n_0[9:12,:] = array((-1,-1,1))
    return SlipSystemTable(m_0, n_0, group_ids=numpy.repeat(numpy.arange(4), 3))

def bccSlipSystems():
    """The twelve {110}<111> systems."""
    m_0 = array([[1,-1,1],[-1,-1,1],
                 [1,1,1],[-1,1,1],
                 [-1,1,1],[-1,-1,1],
                 [1,1,1],[1,-1,1],
                 [-1,1,1],[-1,1,-1],
                 [1,1,1],[1,1,-1]], dtype=float)
    n_0 = array([[0,1,1],[0,1,1],
                 [0,-1,1],[0,-1,1],
                 [1,0,1],[1,0,1],
                 [-1,0,1],[-1,0,1],
                 [1,1,0],[1,1,0],
                 [-1,1,0],[-1,1,0]], dtype=float)
    return SlipSystemTable(m_0, n_0, group_ids=numpy.repeat(numpy.arange(6), 2))

def hcpSlipSystems(c_over_a=MG_C_OVER_A, twin_shear=MG_TWIN_SHEAR):
    """The slip and tensile twin systems of a hexagonal close packed crystal.

    In order, with one hardening family each:
    - 3 basal \f$(0001)\langle 11\bar{2}0 \rangle\f$
    - 3 prismatic \f$\{10\bar{1}0\}\langle 11\bar{2}0 \rangle\f$
    - 6 pyramidal \f$\langle a \rangle\f$ \f$\{10\bar{1}1\}\langle 11\bar{2}0 \rangle\f$
    - 6 pyramidal \f$\langle c+a \rangle\f$ \f$\{11\bar{2}2\}\langle 11\bar{2}3 \rangle\f$
    - 6 tensile twins \f$\{10\bar{1}2\}\langle \bar{1}011 \rangle\f$
    """
    planes_and_directions = [
        # Basal
        ((0,0,0,1), (2,-1,-1,0)),
        ((0,0,0,1), (-1,2,-1,0)),
        ((0,0,0,1), (-1,-1,2,0)),
        # Prismatic
        ((1,0,-1,0), (-1,2,-1,0)),
        ((0,1,-1,0), (2,-1,-1,0)),
        ((-1,1,0,0), (-1,-1,2,0)),
        # Pyramidal <a>
        ((1,0,-1,1), (-1,2,-1,0)),
        ((0,1,-1,1), (-2,1,1,0)),
        ((-1,1,0,1), (-1,-1,2,0)),
        ((-1,0,1,1), (1,-2,1,0)),
        ((0,-1,1,1), (2,-1,-1,0)),
        ((1,-1,0,1), (1,1,-2,0)),
        # Pyramidal <c+a>
        ((1,1,-2,2), (-1,-1,2,3)),
        ((-1,2,-1,2), (1,-2,1,3)),
        ((-2,1,1,2), (2,-1,-1,3)),
        ((-1,-1,2,2), (1,1,-2,3)),
        ((1,-2,1,2), (-1,2,-1,3)),
        ((2,-1,-1,2), (-2,1,1,3)),
        # Tensile twins
        ((1,0,-1,2), (-1,0,1,1)),
        ((0,1,-1,2), (0,-1,1,1)),
        ((-1,1,0,2), (1,-1,0,1)),
        ((-1,0,1,2), (1,0,-1,1)),
        ((0,-1,1,2), (0,1,-1,1)),
        ((1,-1,0,2), (-1,1,0,1)),
    ]
    n_0 = array([millerBravaisPlane(p, c_over_a) for p, d in planes_and_directions])
    m_0 = array([millerBravaisDirection(d, c_over_a) for p, d in planes_and_directions])
    family_ids = [0]*3 + [1]*3 + [2]*6 + [3]*6 + [4]*6
    return SlipSystemTable(m_0, n_0, family_ids=family_ids, group_ids=family_ids,
                           n_twin=6, twin_shear=twin_shear)

def getSlipSystems(crystal_type):
    """Get the slip system table for a given crystal type.

    Args:
        crystal_type: the name of the type of crystal, drawn from {'fcc', 'bcc', 'hcp'}
    Returns:
        A slipSystems.SlipSystemTable
    """
    if crystal_type == 'fcc':
        return fccSlipSystems()
    elif crystal_type == 'bcc':
        return bccSlipSystems()
    elif crystal_type == 'hcp':
        return hcpSlipSystems()
    else:
        raise LookupError("No slip system defined for \"%s\"" % (crystal_type))

def loadSlipSystemTable(normals_filename, directions_filename, family_ids=None,
                        group_ids=None, n_twin=0, twin_shear=MG_TWIN_SHEAR):
    """Read a slip system table from a pair of text files.

    Each file holds three components per system, separated by tabs or
    other whitespace. Line breaks between systems are optional.

    Args:
        normals_filename: file of slip plane normals
        directions_filename: file of slip directions
        family_ids, group_ids, n_twin, twin_shear: as for slipSystems.SlipSystemTable
    Returns:
        A slipSystems.SlipSystemTable
    """
    n_0 = numpy.loadtxt(normals_filename, ndmin=1).reshape(-1,3)
    m_0 = numpy.loadtxt(directions_filename, ndmin=1).reshape(-1,3)
    if n_0.shape != m_0.shape:
        raise ValueError("Found %d normals but %d directions." % (len(n_0), len(m_0)))
    return SlipSystemTable(m_0, n_0, family_ids=family_ids, group_ids=group_ids,
                           n_twin=n_twin, twin_shear=twin_shear)
