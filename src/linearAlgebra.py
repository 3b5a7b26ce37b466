""" A library for linear algebra and tensor manipulations.

The fourth order tensors here are all 3x3x3x3 arrays indexed as
\f$A_{ijkl}\f$, and the double contraction is the
\f$C_{ij} = A_{ijkl} B_{kl}\f$ kind throughout.
"""

import numpy
from numba import jit
from numpy import zeros, sqrt, eye, ones
from numpy.linalg import det
from numpy.random import normal
from numpy import sign, outer, dot, trace

## Voigt index of each symmetric pair of tensor indices
VOIGT_INDEX = numpy.array([[0,5,4],
                           [5,1,3],
                           [4,3,2]])

@jit(nopython=True)
def fourthOrderIdentity3():
    """Return the 3x3x3x3 fourth order identity tensor \f$\mathcal{I}\f$.

    The tensor is defined by
    \f[
    I_{ijkl} = \delta_{ik}\delta_{jl}
    \f]

    Test coverage in linearAlgebra_test.TestTensorBasics.test_fourthOrderIdentity.

    Returns:
        \f$\mathcal{I}\f$
    """
    I = zeros((3,3,3,3))
    for i in range(3):
        for j in range(3):
            I[i,j,i,j] = 1.0
    return I

@jit('f8[:,:](f8[:,:,:,:])', nopython=True)
def fourthOrderAsSecondOrder3(T):
    """Flatten a 3x3x3x3 tensor into a 9x9 matrix.

    The tensor \f$\mathbf{T}\f$ is flattened into the matrix \f$A\f$
    according to:
    \f[
    T_{ijkl} = A_{3i+j,3k+l}.
    \f]
    That is, it's a row-major flattening, under which the double
    contraction of two fourth order tensors becomes a matrix product.

    Test coverage in linearAlgebra_test.TestTensorBasics.test_TensorOrderConversions.

    Args:
        T: the 3x3x3x3 tensor \f$\mathbf{T}\f$
    Returns:
        A: the 9x9 matrix \f$A\f$
    """
    A = zeros((9,9))
    for i4 in range(3):
        for j4 in range(3):
            for k4 in range(3):
                for l4 in range(3):
                    A[i4*3+j4,k4*3+l4] = T[i4,j4,k4,l4]
    return A

@jit('f8[:,:,:,:](f8[:,:])', nopython=True)
def secondOrderAsFourthOrder3(A):
    """Pack a 9x9 matrix into a 3x3x3x3 tensor.

    This is the reverse of linearAlgebra.fourthOrderAsSecondOrder3.

    Test coverage in linearAlgebra_test.TestTensorBasics.test_TensorOrderConversions.

    Args:
        A: the 9x9 matrix \f$A\f$
    Returns:
        The 3x3x3x3 tensor \f$T\f$
    """
    T = zeros((3,3,3,3))
    for i4 in range(3):
        for j4 in range(3):
            for k4 in range(3):
                for l4 in range(3):
                    T[i4,j4,k4,l4] = A[i4*3+j4,k4*3+l4]
    return T

def fourthOrderDoubleContraction3(A, B):
    """Double contraction of two 3x3x3x3 tensors.

    Evaluates
    \f[
    C_{ijkl} = A_{ijmn} B_{mnkl}
    \f]
    through the flattening in linearAlgebra.fourthOrderAsSecondOrder3.

    Args:
        A: \f$\mathcal{A}\f$
        B: \f$\mathcal{B}\f$
    Returns:
        \f$\mathcal{C}\f$
    """
    C = fourthOrderAsSecondOrder3(A).dot(fourthOrderAsSecondOrder3(B))
    return secondOrderAsFourthOrder3(C)

@jit('f8[:,:,:,:](f8[:,:])', nopython=True)
def voigtAsFourthOrder3(C_voigt):
    """Expand a 6x6 Voigt stiffness matrix into a 3x3x3x3 tensor.

    The Voigt ordering is 11, 22, 33, 23, 13, 12, with engineering
    shear strains, so that
    \f[
    \mathcal{C}_{ijkl} = C_{V(ij),V(kl)}.
    \f]

    Args:
        C_voigt: the 6x6 stiffness matrix
    Returns:
        The fourth order stiffness tensor \f$\mathcal{C}\f$
    """
    C = zeros((3,3,3,3))
    for i in range(3):
        for j in range(3):
            for k in range(3):
                for l in range(3):
                    C[i,j,k,l] = C_voigt[VOIGT_INDEX[i,j],VOIGT_INDEX[k,l]]
    return C

@jit('f8(f8[:,:],f8[:,:])', nopython=True)
def tensorInnerKalidindi2_2(A,B):
    """Return the inner product of two 3x3 tensors.

    This is the \f$C = A_{ij}\f$ \f$B_{ij}\f$ kind. Test coverage in
    linearAlgebra_test.TestTensorBasics.test_TensorProducts.

    Args:
        A: \f$\mathbf{A}\f$
        B: \f$\mathbf{B}\f$
    Returns:
        The product \f$C\f$
    """
    C = 0.0
    for i in range(3):
        for j in range(3):
            C += A[i,j]*B[i,j]
    return C

@jit('f8[:,:](f8[:,:,:,:],f8[:,:])', nopython=True)
def tensordotKalidindi4_2(A,B):
    """Return the inner product of a 3x3x3x3 tensor and a 3x3 tensor.

    This is the \f$C_{ij} = A_{ijkl}\f$ \f$B_{kl}\f$ kind. Test coverage in
    linearAlgebra_test.TestTensorBasics.test_TensorProducts.

    Args:
        A: \f$\mathbf{A}\f$
        B: \f$\mathbf{B}\f$
    Returns:
        The product \f$\mathbf{C}\f$
    """
    C = zeros((3,3))
    for i in range(3):
        for j in range(3):
            for k in range(3):
                for l in range(3):
                    C[i,j] += A[i,j,k,l]*B[k,l]
    return C

@jit('f8[:,:](f8[:],f8[:])', nopython=True)
def numbaOuter3(v,w):
    """Computes the outer product of two vectors.

    Evaluates
    \f[
        \mathbf{A} = \mathbf{v} \otimes \mathbf{w}
    \f]
    This is a version for JIT compilation with Numba.

    Args:
        v: \f$\mathbf{v}\f$
        w: \f$\mathbf{w}\f$
    Returns:
        A: \f$\mathbf{A}\f$
    """
    A = zeros((3,3))
    for i in range(3):
        for j in range(3):
            A[i,j] = v[i]*w[j]
    return A

@jit('f8[:,:](f8[:,:],f8[:,:])', nopython=True)
def AB_plusB_T_A3(A, B):
    """A*B + (B^T)*A
    """
    C = zeros((3,3))
    for i in range(3):
        for j in range(3):
            for k in range(3):
                C[i,j] += A[i,k]*B[k,j] + B[k,i]*A[k,j]
    return C

@jit('f8[:,:,:,:](f8[:,:],f8[:,:,:,:])', nopython=True)
def rotateFourthOrder3(R, A):
    """Rotate all four legs of a 3x3x3x3 tensor.

    Evaluates
    \f[
    A'_{mnop} = R_{mi} R_{nj} R_{ok} R_{pl} A_{ijkl}
    \f]
    one leg at a time.

    Test coverage in linearAlgebra_test.TestTensorBasics.test_Rotations.

    Args:
        R: the rotation matrix \f$\mathbf{R}\f$
        A: the tensor \f$\mathcal{A}\f$
    Returns:
        The rotated tensor \f$\mathcal{A}'\f$
    """
    B = zeros((3,3,3,3))
    C = zeros((3,3,3,3))
    for m in range(3):
        for j in range(3):
            for k in range(3):
                for l in range(3):
                    for i in range(3):
                        B[m,j,k,l] += R[m,i]*A[i,j,k,l]
    for m in range(3):
        for n in range(3):
            for k in range(3):
                for l in range(3):
                    for j in range(3):
                        C[m,n,k,l] += R[n,j]*B[m,j,k,l]
    B[:,:,:,:] = 0.0
    for m in range(3):
        for n in range(3):
            for o in range(3):
                for l in range(3):
                    for k in range(3):
                        B[m,n,o,l] += R[o,k]*C[m,n,k,l]
    C[:,:,:,:] = 0.0
    for m in range(3):
        for n in range(3):
            for o in range(3):
                for p in range(3):
                    for l in range(3):
                        C[m,n,o,p] += R[p,l]*B[m,n,o,l]
    return C

def scaleToUnitDeterminant3(A):
    """Scale a 3x3 tensor in place so that its determinant is one.

    Evaluates
    \f[
    \mathbf{A} \leftarrow \mathbf{A} / \det(\mathbf{A})^{1/3}
    \f]
    """
    determinant = det(A)
    det_cube_root = numpy.cbrt(determinant)
    A /= det_cube_root

def deviatoricComponent3(A):
    """Return the deviatoric component of a 3x3 tensor.

    Defined by
    \f[
        A' = A_ij - \frac{A_{kk}}{3} \delta_{ij}
    \f]
    """
    return A - (trace(A)/3.0)*eye(3)

# This is adapted from scipy/linalg/tests/test_decomp.py.
def random_rot(dim):
    """Return a random rotation matrix, drawn from the Haar distribution
    (the only uniform distribution on SO(n)).
    The algorithm is described in the paper
    Stewart, G.W., 'The efficient generation of random orthogonal
    matrices with an application to condition estimators', SIAM Journal
    on Numerical Analysis, 17(3), pp. 403-409, 1980.
    For more information see
    http://en.wikipedia.org/wiki/Orthogonal_matrix#Randomization"""
    H = eye(dim)
    D = ones((dim,))
    for n in range(1, dim):
        x = normal(size=(dim-n+1,))
        D[n-1] = sign(x[0])
        x[0] -= D[n-1]*sqrt((x*x).sum())
        # Householder transformation

        Hx = eye(dim-n+1) - 2.*outer(x, x)/(x*x).sum()
        mat = eye(dim)
        mat[n-1:,n-1:] = Hx
        H = dot(H, mat)
    # Fix the last sign such that the determinant is 1
    D[-1] = (-1)**(1-(dim % 2))*D.prod()
    H = (D*H.T).T
    return H
