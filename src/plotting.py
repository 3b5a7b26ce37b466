import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from numpy import array, zeros, loadtxt
from itertools import cycle

# Plot parameter sets
allParamSets = {}

# Journal defaults
journal_figsize = (16,12)
journal_textsize = 28
journal_markersize = 16
journal_markeredgewidth = journal_markersize/4
journal_linewidth = 4
journalRCParams = {}
journalRCParams['lines.linewidth'] = journal_linewidth
journalRCParams['lines.markersize'] = journal_markersize
journalRCParams['lines.markeredgewidth'] = journal_markeredgewidth
journalRCParams['legend.fontsize'] = journal_textsize
journalRCParams['font.size'] = journal_textsize
journalRCParams['figure.figsize'] = journal_figsize
journalRCParams['savefig.bbox'] = 'tight'
journalRCParams['legend.loc'] = 'lower right'
journalRCParams['xtick.labelsize'] = 'large'
journalRCParams['ytick.labelsize'] = 'large'
journalRCParams['axes.labelsize'] = 'large'
allParamSets['journal'] = journalRCParams

def blackLinesGenerator():
    return cycle(["k-","k--","k-.","k:"])

def setPlotDefaults(kind):
    for key, value in allParamSets[kind].items():
        matplotlib.rcParams[key] = value

def plotStressStrain(strains, stresses, filename, components=((0,1),),
                     strain_label="Green-Lagrange strain", stress_label="Cauchy stress (MPa)"):
    """Plot stress against strain components and save the figure.

    Args:
        strains: sequence of 3x3 strain tensors
        stresses: sequence of 3x3 stress tensors
        filename: where to save the figure
        components: the (i,j) components to plot, one line each
    """
    strains = array(strains)
    stresses = array(stresses)
    fig = plt.figure()
    lines = blackLinesGenerator()
    for i, j in components:
        plt.plot(strains[:,i,j], stresses[:,i,j], next(lines), label="$%d%d$" % (i+1, j+1))
    plt.xlabel(strain_label)
    plt.ylabel(stress_label)
    plt.legend()
    plt.savefig(filename)
    plt.close(fig)

def plotStressStrainFile(data_filename, filename):
    """Plot a stress-strain history written by cases/fccSimpleShear.py.

    The file holds one increment per row, with the 11, 22, 33, 23, 13, 12
    strain components followed by the same stress components.
    """
    data = loadtxt(data_filename, ndmin=2)
    voigt_pairs = [(0,0),(1,1),(2,2),(1,2),(0,2),(0,1)]
    strains = []
    stresses = []
    for row in data:
        E = zeros((3,3))
        T = zeros((3,3))
        for v, (i, j) in enumerate(voigt_pairs):
            E[i,j] = E[j,i] = row[v]
            T[i,j] = T[j,i] = row[v+6]
        strains.append(E)
        stresses.append(T)
    plotStressStrain(strains, stresses, filename)
