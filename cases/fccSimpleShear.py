"""Simple shear of a Taylor aggregate of FCC crystals.

Writes the volume averaged strain and stress at each increment to
stressstrain.txt, and plots the shear response.
"""

import sys
import os
import logging
from concurrent.futures import ThreadPoolExecutor
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "src"))
from numpy import savetxt, array
from numpy.random import seed
from scipy.spatial.transform import Rotation
from anand1996 import getDefaultCrystalMaterialProperties
from continuum import simpleShearDeformationGradient
from linearAlgebra import random_rot
from polycrystal import CrystalPlasticityMaterial, Polycrystal
from plotting import setPlotDefaults, plotStressStrainFile

logging.basicConfig(level=logging.INFO)
setPlotDefaults('journal')

# Problem parameters
n_crystals = 64
gamma_final = 0.2
n_increments = 100
n_threads = 4
output_filename = "stressstrain.txt"
plot_filename = "fccSimpleShear.png"

# Material and texture
seed(0)
mprops = getDefaultCrystalMaterialProperties('fcc')
orientations = [Rotation.from_matrix(random_rot(3)).as_rotvec() for i in range(n_crystals)]
material = CrystalPlasticityMaterial(mprops, orientations, compute_tangent=False)

# Load history
gammas = [gamma_final*(i+1)/n_increments for i in range(n_increments)]
F_history = [simpleShearDeformationGradient(gamma) for gamma in gammas]

with ThreadPoolExecutor(max_workers=n_threads) as executor:
    polycrystal = Polycrystal(material, executor=executor)
    strains, stresses = polycrystal.run(F_history)

# Output in Voigt order, strains then stresses
rows = []
for E, T in zip(strains, stresses):
    rows.append([E[0,0], E[1,1], E[2,2], E[1,2], E[0,2], E[0,1],
                 T[0,0], T[1,1], T[2,2], T[1,2], T[0,2], T[0,1]])
savetxt(output_filename, array(rows), delimiter='\t')
plotStressStrainFile(output_filename, plot_filename)

print("Final shear stress T_12 = %.2f MPa at gamma = %.3f" % (stresses[-1][0,1], gammas[-1]))
for point_id in range(3):
    print(material.postprocessValues(point_id))
