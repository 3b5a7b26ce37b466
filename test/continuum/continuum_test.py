""" Tests for the continuum library
"""

import unittest
import numpy
from numpy import array, eye, zeros, pi, einsum
from numpy.linalg import norm, det
from numpy.random import rand, seed

import os
import sys
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "..", "src"))
from continuum import *
from linearAlgebra import random_rot, rotateFourthOrder3

class TestKinematics(unittest.TestCase):

    def setUp(self):
        seed(3)

    def test_polarDecomposition(self):
        F = eye(3) + 0.3*rand(3,3)
        R, U = polarDecomposition(F)
        self.assertTrue(norm(R.dot(U)-F) < 1e-12)
        self.assertTrue(norm((R.T).dot(R)-eye(3)) < 1e-12)
        self.assertTrue(norm(U-U.T) < 1e-12)
        self.assertAlmostEqual(det(R), 1.0, places=12)

    def test_greenLagrangeStrain(self):
        gamma = 0.2
        E = greenLagrangeStrain(simpleShearDeformationGradient(gamma))
        self.assertAlmostEqual(E[0,1], 0.5*gamma, places=15)
        self.assertAlmostEqual(E[1,1], 0.5*gamma**2, places=15)
        self.assertTrue(norm(greenLagrangeStrain(random_rot(3))) < 1e-14)

    def test_vonMisesStress(self):
        """Uniaxial tension and pure shear."""
        T = zeros((3,3))
        T[0,0] = 100.0
        self.assertAlmostEqual(vonMisesStress(T), 100.0, places=10)
        T = zeros((3,3))
        T[0,1] = T[1,0] = 10.0
        self.assertAlmostEqual(vonMisesStress(T), numpy.sqrt(3.0)*10.0, places=10)
        self.assertAlmostEqual(vonMisesStress(50.0*eye(3)), 0.0, places=10)

    def test_equivalentStrain(self):
        self.assertAlmostEqual(equivalentStrain(random_rot(3)), 0.0, places=10)
        F = eye(3)*1.01
        self.assertAlmostEqual(equivalentStrain(F), 0.0, places=10)
        self.assertTrue(equivalentStrain(simpleShearDeformationGradient(0.1)) > 0.0)

class TestRotations(unittest.TestCase):

    def test_BungeEuler(self):
        """The passive Bunge matrix is the transpose of the lattice to sample rotation."""
        angles = (0.3, 1.2, -0.4)
        R_active = EulerZXZRotationMatrix(*angles)
        self.assertTrue(norm(BungeEulerRotationMatrix(*angles)-R_active.T) < 1e-15)
        omega = rotationVectorFromBungeEuler(*angles)
        self.assertTrue(norm(rotationMatrix(omega)-R_active) < 1e-12)

    def test_Rodrigues(self):
        r = array([0.1, -0.3, 0.2])
        omega = rotationVectorFromRodrigues(r)
        self.assertAlmostEqual(norm(omega), 2.0*numpy.arctan(norm(r)), places=14)
        self.assertTrue(norm(rodriguesFromRotationVector(omega)-r) < 1e-14)
        self.assertTrue(norm(rotationVectorFromRodrigues(zeros(3))) == 0.0)

    def test_RodriguesHalfTurn(self):
        with self.assertRaises(ValueError):
            rodriguesFromRotationVector(array([0.0, 0.0, pi]))

    def test_composeRotationVectors(self):
        omega_1 = array([0.2, 0.1, -0.5])
        omega_2 = array([-0.3, 0.4, 0.1])
        R_12 = rotationMatrix(composeRotationVectors(omega_1, omega_2))
        self.assertTrue(norm(R_12-rotationMatrix(omega_1).dot(rotationMatrix(omega_2))) < 1e-12)

    def test_composeHalfTurns(self):
        """Two half turns about the same axis give the identity."""
        omega = array([pi, 0.0, 0.0])
        composed = composeRotationVectors(omega, omega)
        self.assertTrue(norm(rotationMatrix(composed)-eye(3)) < 1e-12)
        R_half = rotationMatrix(omega)
        self.assertTrue(norm(R_half-numpy.diag([1.0,-1.0,-1.0])) < 1e-12)

class TestElasticity(unittest.TestCase):

    def test_cubicElasticityTensor(self):
        L = cubicElasticityTensor(C11=170.0e3, C12=124.0e3, C44=75.0e3)
        self.assertEqual(L[0,0,0,0], 170.0e3)
        self.assertEqual(L[0,0,1,1], 124.0e3)
        self.assertEqual(L[1,2,1,2], 75.0e3)
        self.assertEqual(L[1,2,2,1], 75.0e3)
        self.assertEqual(L[0,1,0,2], 0.0)

        # Cubic symmetry: invariant under a quarter turn about a cube axis
        Q = rotationMatrix(array([0.0, 0.0, 0.5*pi]))
        self.assertTrue(norm(rotateFourthOrder3(Q, L)-L)/norm(L) < 1e-12)

    def test_isotropicLimit(self):
        """With C44 = (C11-C12)/2 the cubic tensor is isotropic."""
        L = cubicElasticityTensor(C11=3.0, C12=1.0, C44=1.0)
        R = random_rot(3)
        self.assertTrue(norm(rotateFourthOrder3(R, L)-L)/norm(L) < 1e-12)

    def test_hexagonalElasticityTensor(self):
        L = hexagonalElasticityTensor(C11=59.3e3, C12=25.7e3, C13=21.4e3, C33=61.5e3, C44=16.4e3)
        self.assertEqual(L[2,2,2,2], 61.5e3)
        self.assertEqual(L[0,0,2,2], 21.4e3)
        self.assertAlmostEqual(L[0,1,0,1], 0.5*(59.3e3-25.7e3), places=8)

        # Transversely isotropic about the c-axis
        Q = rotationMatrix(array([0.0, 0.0, 0.37]))
        self.assertTrue(norm(rotateFourthOrder3(Q, L)-L)/norm(L) < 1e-12)

if __name__ == '__main__':
    unittest.main()
