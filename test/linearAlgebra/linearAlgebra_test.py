""" Tests for the linearAlgebra library
"""

import unittest
import numpy
from numpy import tensordot, array, einsum
from numpy.random import rand, seed
from numpy.linalg import norm, det

import os
import sys
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "..", "src"))
from linearAlgebra import *

MACHINE_PRECISION = 1e-15

class TestTensorBasics(unittest.TestCase):

    def setUp(self):
        seed(1)

    def test_fourthOrderIdentity(self):
        """Test linearAlgebra.fourthOrderIdentity3

        The tensor dot with a random second order tensor should return
        the same tensor.
        """
        I = fourthOrderIdentity3()
        A = rand(3,3)
        IA = tensordot(I,A)
        self.assertTrue(numpy.all(A==IA))

    def test_TensorOrderConversions(self):
        """Test the fourth order <-> second order conversion functions.

        The functions covered are:
        - linearAlgebra.fourthOrderAsSecondOrder3
        - linearAlgebra.secondOrderAsFourthOrder3

        Call the mapping from fourth order to second order \f$\mathcal{L}\f$.
        This creates two random fourth order tensors and checks that
        \f[
        A + B = \mathcal{L}^{-1} (\mathcal{L}(A) + \mathcal{L}(B))
        \f]
        """
        A = rand(3,3,3,3)
        B = rand(3,3,3,3)
        A_plus_B_direct = A+B
        A2ndOrder_plus_B2ndOrder = fourthOrderAsSecondOrder3(A) + \
                                   fourthOrderAsSecondOrder3(B)
        A_plus_B_converted = secondOrderAsFourthOrder3(A2ndOrder_plus_B2ndOrder)
        self.assertTrue(numpy.all(A_plus_B_direct==A_plus_B_converted))

    def test_TensorProducts(self):
        """Test the tensor product functions.

        The functions covered are:
        - linearAlgebra.tensorInnerKalidindi2_2
        - linearAlgebra.tensordotKalidindi4_2
        - linearAlgebra.fourthOrderDoubleContraction3
        - linearAlgebra.numbaOuter3
        - linearAlgebra.AB_plusB_T_A3
        """
        # 2nd order double inner product: A_ij B_ij version
        A = rand(3,3)
        B = rand(3,3)
        A_ddot_B = tensorInnerKalidindi2_2(A,B)
        A_ddot_B_reference = einsum('ij,ij',A,B)
        self.assertTrue(abs(A_ddot_B-A_ddot_B_reference)/abs(A_ddot_B_reference) < 10*MACHINE_PRECISION)

        # 4th order product with 2nd order: A_ijkl B_kl version
        A = rand(3,3,3,3)
        B = rand(3,3)
        AB = tensordotKalidindi4_2(A,B)
        AB_reference = einsum('ijkl,kl->ij',A,B)
        self.assertTrue(norm(AB-AB_reference)/norm(AB_reference) < 10*MACHINE_PRECISION)

        # 4th order product with 4th order
        A = rand(3,3,3,3)
        B = rand(3,3,3,3)
        AB = fourthOrderDoubleContraction3(A,B)
        AB_reference = einsum('ijmn,mnkl->ijkl',A,B)
        self.assertTrue(norm(AB-AB_reference)/norm(AB_reference) < 100*MACHINE_PRECISION)

        # Vector outer product
        v = rand(3)
        w = rand(3)
        self.assertTrue(numpy.all(numbaOuter3(v,w)==numpy.outer(v,w)))

        # A*B + B^T*A
        A = rand(3,3)
        B = rand(3,3)
        C = AB_plusB_T_A3(A,B)
        self.assertTrue(norm(C-(A.dot(B)+(B.T).dot(A)))/norm(C) < 10*MACHINE_PRECISION)

    def test_Rotations(self):
        """Test linearAlgebra.rotateFourthOrder3 against a direct contraction.

        Rotating by \f$\mathbf{R}\f$ then \f$\mathbf{R}^T\f$ must also
        return the original tensor.
        """
        R = random_rot(3)
        A = rand(3,3,3,3)
        A_rotated = rotateFourthOrder3(R, A)
        A_reference = einsum('mi,nj,ok,pl,ijkl->mnop', R, R, R, R, A)
        self.assertTrue(norm(A_rotated-A_reference)/norm(A_reference) < 100*MACHINE_PRECISION)
        A_back = rotateFourthOrder3(R.T.copy(), A_rotated)
        self.assertTrue(norm(A_back-A)/norm(A) < 100*MACHINE_PRECISION)

    def test_VoigtExpansion(self):
        """Test linearAlgebra.voigtAsFourthOrder3.

        A symmetric Voigt matrix must give a tensor with both minor
        symmetries and the major symmetry.
        """
        C_voigt = rand(6,6)
        C_voigt = C_voigt + C_voigt.T
        C = voigtAsFourthOrder3(C_voigt)
        self.assertEqual(C[0,0,1,1], C_voigt[0,1])
        self.assertEqual(C[1,2,0,1], C_voigt[3,5])
        self.assertEqual(C[0,2,2,0], C_voigt[4,4])
        self.assertTrue(numpy.all(C==C.transpose(1,0,2,3)))
        self.assertTrue(numpy.all(C==C.transpose(0,1,3,2)))
        self.assertTrue(numpy.all(C==C.transpose(2,3,0,1)))

class TestArrayBasics(unittest.TestCase):

    def test_scaleToUnitDeterminant(self):
        A = numpy.eye(3) + 0.1*rand(3,3)
        A_scaled = A.copy()
        scaleToUnitDeterminant3(A_scaled)
        self.assertAlmostEqual(det(A_scaled), 1.0, places=14)
        self.assertTrue(norm(A_scaled/A_scaled[0,0] - A/A[0,0]) < 1e-13)

    def test_deviatoricComponent(self):
        A = rand(3,3)
        A_dev = deviatoricComponent3(A)
        self.assertAlmostEqual(numpy.trace(A_dev), 0.0, places=14)
        self.assertTrue(norm((A-A_dev) - (numpy.trace(A)/3.0)*numpy.eye(3)) < 1e-14)

    def test_random_rot(self):
        """Every draw is proper, in odd and even dimensions."""
        for dim in [2,3,4]:
            for i in range(10):
                R = random_rot(dim)
                self.assertTrue(norm((R.T).dot(R) - numpy.eye(dim)) < 1e-13)
                self.assertAlmostEqual(det(R), 1.0, places=13)

if __name__ == '__main__':
    unittest.main()
