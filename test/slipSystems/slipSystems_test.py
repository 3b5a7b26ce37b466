""" Tests for the slipSystems library
"""

import unittest
import tempfile
import shutil
import numpy
from numpy import array, eye
from numpy.linalg import norm

import os
import sys
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "..", "src"))
from slipSystems import *

class TestSlipSystemTables(unittest.TestCase):

    def checkTable(self, table, n_alpha):
        self.assertEqual(table.n_alpha, n_alpha)
        self.assertTrue(numpy.all(numpy.abs(norm(table.m_0, axis=1)-1.0) < 1e-14))
        self.assertTrue(numpy.all(numpy.abs(norm(table.n_0, axis=1)-1.0) < 1e-14))
        self.assertTrue(numpy.all(numpy.abs(numpy.sum(table.m_0*table.n_0, axis=1)) < 1e-12))
        # Schmid tensors are traceless
        self.assertTrue(numpy.all(numpy.abs(numpy.trace(table.S_0, axis1=1, axis2=2)) < 1e-12))

    def test_fcc(self):
        table = getSlipSystems('fcc')
        self.checkTable(table, 12)
        self.assertEqual(table.n_twin, 0)
        self.assertFalse(table.has_twins)
        self.assertEqual(table.group_ids.tolist(), [0,0,0,1,1,1,2,2,2,3,3,3])

    def test_bcc(self):
        table = getSlipSystems('bcc')
        self.checkTable(table, 12)
        self.assertEqual(table.n_slip, 12)

    def test_hcp(self):
        table = getSlipSystems('hcp')
        self.checkTable(table, 24)
        self.assertEqual(table.n_twin, 6)
        self.assertEqual(table.n_slip, 18)
        self.assertEqual(table.n_families, 5)
        self.assertEqual(table.family_ids[18:].tolist(), [4]*6)
        # Basal normal along the c-axis
        self.assertTrue(norm(table.n_0[0]-array([0.0,0.0,1.0])) < 1e-14)

    def test_twinReflection(self):
        table = getSlipSystems('hcp')
        for i_twin in range(table.n_twin):
            Q = table.twinReflection(i_twin)
            n = table.twinNormal(i_twin)
            self.assertTrue(norm(Q.dot(Q)-eye(3)) < 1e-14)
            self.assertTrue(norm(Q.dot(n)-n) < 1e-14)
            self.assertAlmostEqual(numpy.linalg.det(Q), 1.0, places=14)

    def test_unknownCrystal(self):
        with self.assertRaises(LookupError):
            getSlipSystems('orthorhombic')

    def test_directionOutOfPlane(self):
        with self.assertRaises(ValueError):
            SlipSystemTable([[1.0,0.0,0.0]], [[1.0,1.0,0.0]])

    def test_coplanarGroups(self):
        n_0 = array([[0.0,0.0,1.0],[1.0,0.0,0.0],[0.0,0.0,-1.0]])
        self.assertEqual(coplanarGroups(n_0).tolist(), [0,1,0])

    def test_millerBravais(self):
        """[2-1-10] lies along a_1 and the prism plane (10-10) is normal to it."""
        d = millerBravaisDirection((2,-1,-1,0), MG_C_OVER_A)
        self.assertTrue(norm(d/norm(d)-array([1.0,0.0,0.0])) < 1e-14)
        n = millerBravaisPlane((1,0,-1,0), MG_C_OVER_A)
        self.assertAlmostEqual(n.dot(millerBravaisDirection((-1,2,-1,0), MG_C_OVER_A)), 0.0, places=14)

class TestLatentHardening(unittest.TestCase):

    def test_latentHardeningMatrix(self):
        """The block structure of Equation 42 in Kalidindi1992."""
        table = getSlipSystems('fcc')
        q = latentHardeningMatrix(table.group_ids, 1.4)
        self.assertEqual(q.shape, (12,12))
        for alpha in range(12):
            for beta in range(12):
                if alpha//3 == beta//3:
                    self.assertEqual(q[alpha,beta], 1.0)
                else:
                    self.assertEqual(q[alpha,beta], 1.4)

class TestLoading(unittest.TestCase):

    def setUp(self):
        self.dirname = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.dirname)

    def test_loadSlipSystemTable(self):
        """Tab separated files, with all of the systems on one line."""
        table = getSlipSystems('fcc')
        normals_filename = os.path.join(self.dirname, "slipNormals.txt")
        directions_filename = os.path.join(self.dirname, "slipDirections.txt")
        with open(normals_filename, "w") as f:
            f.write("\t".join(["%.17g" % v for v in table.n_0.flatten()]) + "\n")
        numpy.savetxt(directions_filename, table.m_0, delimiter="\t")
        loaded = loadSlipSystemTable(normals_filename, directions_filename)
        self.assertEqual(loaded.n_alpha, 12)
        self.assertTrue(norm(loaded.S_0-table.S_0) < 1e-14)
        self.assertEqual(loaded.group_ids.tolist(), table.group_ids.tolist())

    def test_mismatchedFiles(self):
        normals_filename = os.path.join(self.dirname, "slipNormals.txt")
        directions_filename = os.path.join(self.dirname, "slipDirections.txt")
        numpy.savetxt(normals_filename, array([[0.0,0.0,1.0],[0.0,0.0,1.0]]))
        numpy.savetxt(directions_filename, array([[1.0,0.0,0.0]]))
        with self.assertRaises(ValueError):
            loadSlipSystemTable(normals_filename, directions_filename)

if __name__ == '__main__':
    unittest.main()
