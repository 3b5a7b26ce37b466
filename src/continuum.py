""" Continuum kinematics, rotations and anisotropic elasticity.

Orientations are carried as rotation vectors \f$\boldsymbol{\omega} = \theta
\hat{\mathbf{a}}\f$, and the associated rotation matrix \f$\mathbf{R}\f$
maps vectors from the crystal lattice frame to the sample frame.
"""

import numpy as np
from numpy import cos, sin, arctan, zeros, eye, sqrt
from numpy.linalg import inv, norm
from scipy.linalg import sqrtm
from scipy.spatial.transform import Rotation
from linearAlgebra import deviatoricComponent3, voigtAsFourthOrder3

def deviatoricStressTensor(T):
    """The deviatoric component of the stress tensor T.

    Args:
        T: the stress tensor
    Returns:
        The deviatoric component of the stress tensor.
    """
    return deviatoricComponent3(T)

def greenLagrangeStrain(F):
    """The Green-Lagrange strain tensor.

    \f[
    \mathbf{E} = \frac{1}{2}\left(\mathbf{F}^T \mathbf{F} - \mathbf{1}\right)
    \f]

    Args:
        F: \f$\mathbf{F}\f$
    Returns:
        \f$\mathbf{E}\f$
    """
    return 0.5*((F.T).dot(F) - eye(3))

def vonMisesStress(T):
    """Equivalent von Mises stress \f$\sqrt{3/2}\,|\mathbf{T}'|\f$.
    """
    return sqrt(1.5)*norm(deviatoricStressTensor(T))

def equivalentStrain(F):
    """Equivalent strain \f$\sqrt{2/3}\,|\mathbf{E}'|\f$ of the Green-Lagrange strain.
    """
    return sqrt(2.0/3.0)*norm(deviatoricComponent3(greenLagrangeStrain(F)))

def simpleShearDeformationGradient(gamma):
    """Deformation gradient for simple shear in the 1-2 plane.

    \f[
    \mathbf{F} = \mathbf{1} + \gamma \mathbf{e}_1 \otimes \mathbf{e}_2
    \f]

    Args:
        gamma: the shear \f$\gamma\f$
    Returns:
        \f$\mathbf{F}\f$
    """
    F = eye(3)
    F[0,1] = gamma
    return F

def polarDecomposition(F):
    """Compute the polar decomposition of a tensor.

    The polar decomposition is
    \f[
    \mathbf{F} = \mathbf{R} \mathbf{U},
    \f]
    where \f$\mathbf{R}\f$ is an orthogonal rotation tensor, and
    \f$\mathbf{U}\f$ is the s.p.d. right stretching tensor. The computation
    is
    \f{eqnarray}{
    & \mathbf{U}^2 = \mathbf{F}^T \mathbf{F}\\
    \Rightarrow & \mathbf{U} = \sqrt{\mathbf{F}^T \mathbf{F}},
    \f}
    followed by
    \f[
    \mathbf{R} = \mathbf{F} \mathbf{U}^{-1}
    \f]
    """
    U = np.real(sqrtm((F.T).dot(F)))
    R = F.dot(inv(U))
    return R, U

def EulerZXZRotationMatrix(alpha, beta, gamma):
    """Returns the active, intrinsic, right-handed EulerZXZ rotation matrix.

    The matrix is defined by
    \f{equation}
    R = Z_1 X_2 Z_3 =
    \begin{bmatrix}
    c_1 c_3 - c_2 s_1 s_3 & -c_1 s_3 - c_2 c_3 s_1 & s_1 s_2 \\
    c_3 s_1 + c_1 c_2 s_3 & c_1 c_2 c_3 - s_1 s_3 & -c_1 s_2 \\
    s_2 s_3 & c_3 s_2 & c_2
    \end{bmatrix},
    \f}
    where \f$c_i\f$ and \f$s_i\f$ are the cosines and sines of the
    proper Euler angles \f$\alpha\f$, \f$\beta\f$, \f$\gamma\f$.

    Args:
        alpha: \f$\alpha\f$
        beta: \f$\beta\f$
        gamma: \f$\gamma\f$
    Returns:
        \f$R\f$
    """
    c1 = cos(alpha)
    c2 = cos(beta)
    c3 = cos(gamma)
    s1 = sin(alpha)
    s2 = sin(beta)
    s3 = sin(gamma)
    R = zeros((3,3))
    R[0,0] = c1*c3 - c2*s1*s3
    R[0,1] = -c1*s3 - c2*c3*s1
    R[0,2] = s1*s2
    R[1,0] = c3*s1 + c1*c2*s3
    R[1,1] = c1*c2*c3 - s1*s3
    R[1,2] = -c1*s2
    R[2,0] = s2*s3
    R[2,1] = c3*s2
    R[2,2] = c2
    return R

def BungeEulerRotationMatrix(phi_1, PHI, phi_2):
    """Bunge-Euler rotation matrix.

    This is the passive version of the Euler ZXZ matrix, taking sample
    frame components to crystal frame components. The active version is
    obtained using continuum.EulerZXZRotationMatrix.

    Args:
        phi_1: \f$\phi_1\f$
        PHI: \f$\Phi\f$
        phi_2: \f$\phi_2\f$
    Returns:
        The passive rotation matrix \f$R^T\f$
    """
    R = EulerZXZRotationMatrix(phi_1, PHI, phi_2)
    return R.T

def rotationVectorFromBungeEuler(phi_1, PHI, phi_2):
    """Rotation vector of the lattice-to-sample rotation for Bunge-Euler angles.
    """
    R = EulerZXZRotationMatrix(phi_1, PHI, phi_2)
    return Rotation.from_matrix(R).as_rotvec()

def rotationVectorFromRodrigues(r):
    """Convert a Rodrigues vector \f$\mathbf{r} = \tan(\theta/2)\hat{\mathbf{a}}\f$
    into a rotation vector \f$\theta \hat{\mathbf{a}}\f$.

    Args:
        r: the Rodrigues vector
    Returns:
        The rotation vector
    """
    r = np.asarray(r, dtype=float)
    r_norm = norm(r)
    if r_norm == 0.0:
        return zeros(3)
    return (2.0*arctan(r_norm)/r_norm)*r

def rodriguesFromRotationVector(omega):
    """Convert a rotation vector into a Rodrigues vector.

    Raises:
        ValueError: for rotations by \f$\pi\f$, which have no Rodrigues vector.
    """
    omega = np.asarray(omega, dtype=float)
    theta = norm(omega)
    if theta == 0.0:
        return zeros(3)
    if abs(cos(0.5*theta)) < 1e-12:
        raise ValueError("A rotation by pi has no Rodrigues representation.")
    return (np.tan(0.5*theta)/theta)*omega

def rotationMatrix(omega):
    """Rotation matrix for a rotation vector.

    Args:
        omega: the rotation vector \f$\boldsymbol{\omega}\f$
    Returns:
        \f$\mathbf{R}\f$
    """
    return Rotation.from_rotvec(omega).as_matrix()

def composeRotationVectors(omega_1, omega_2):
    """Rotation vector of \f$\mathbf{R}(\boldsymbol{\omega}_1)\mathbf{R}(\boldsymbol{\omega}_2)\f$.

    The composition is done on quaternions, so rotations by
    \f$\pi\f$ are handled without loss.
    """
    composed = Rotation.from_rotvec(omega_1)*Rotation.from_rotvec(omega_2)
    return composed.as_rotvec()

def cubicElasticityTensor(C11, C12, C44):
    """Return the elasticity tensor of a cubic crystal in its lattice frame.

    Args:
        C11: \f$C_{11}\f$
        C12: \f$C_{12}\f$
        C44: \f$C_{44}\f$
    Returns:
        \f$\mathcal{D}\f$
    """
    C_voigt = zeros((6,6))
    for i in range(3):
        for j in range(3):
            C_voigt[i,j] = C12
        C_voigt[i,i] = C11
        C_voigt[i+3,i+3] = C44
    return voigtAsFourthOrder3(C_voigt)

def hexagonalElasticityTensor(C11, C12, C13, C33, C44):
    """Return the elasticity tensor of a hexagonal crystal in its lattice frame.

    The c-axis is along \f$\mathbf{e}_3\f$, and
    \f$C_{66} = (C_{11}-C_{12})/2\f$.

    Args:
        C11: \f$C_{11}\f$
        C12: \f$C_{12}\f$
        C13: \f$C_{13}\f$
        C33: \f$C_{33}\f$
        C44: \f$C_{44}\f$
    Returns:
        \f$\mathcal{D}\f$
    """
    C_voigt = zeros((6,6))
    C_voigt[0,0] = C_voigt[1,1] = C11
    C_voigt[0,1] = C_voigt[1,0] = C12
    C_voigt[0,2] = C_voigt[2,0] = C13
    C_voigt[1,2] = C_voigt[2,1] = C13
    C_voigt[2,2] = C33
    C_voigt[3,3] = C_voigt[4,4] = C44
    C_voigt[5,5] = 0.5*(C11-C12)
    return voigtAsFourthOrder3(C_voigt)
