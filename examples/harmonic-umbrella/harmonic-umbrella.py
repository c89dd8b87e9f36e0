"""
Example illustrating the application of WHAM to compute a 1D PMF from an umbrella sampling simulation.

The data are drawn analytically from a harmonic well U0(x) = (K0/2) x^2 restrained
by harmonic umbrellas, so the exact PMF is known and printed alongside the estimate.

"""

import numpy as np

import pywham
from pywham import testsystems

# Parameters
K0 = 10.0  # spring constant of the well in kJ/mol/nm**2
Ku = 100.0  # umbrella spring constant in kJ/mol/nm**2
centers = np.linspace(-2.0, 2.0, 17)  # umbrella centers in nm
temperature = 300.0  # K
n_samples = 2000  # samples per umbrella
x_min = -2.5  # min for PMF
x_max = +2.5  # max for PMF
nbins = 50  # number of bins for 1D PMF

test = testsystems.HarmonicUmbrellaTestCase(K0=K0, centers=centers, Ku=Ku, temperature=temperature)

# x_kn[k,n] is the coordinate of snapshot n from umbrella simulation k
x_kn = test.sample(n_samples, seed=0)

histograms = [pywham.Histogram.from_samples(x_n, [x_min], [x_max], [nbins]) for x_n in x_kn]
dataset = pywham.Dataset.from_bounds([x_min], [x_max], [nbins], centers, Ku,
                                     pywham.constants.thermal_energy(temperature), histograms)
print(dataset)

wham = pywham.WHAM(dataset, tolerance=1.0e-6).run()
print(f"Converged: {wham.converged} after {wham.iterations:d} iterations")

results = wham.get_pmf()
x_i = results["x"][:, 0]
f_i = results["f_i"]
exact_i = test.analytical_pmf(x_i)

# Write out PMF
print("PMF (in kJ/mol)")
print(f"{'bin':>8s} {'f':>8s} {'exact':>8s}")
for i in range(nbins):
    print(f"{x_i[i]:8.3f} {f_i[i]:8.3f} {exact_i[i]:8.3f}")

offsets = wham.get_bias_offsets()
print("Umbrella free energies (in kJ/mol)")
print(f"{'window':>8s} {'center':>8s} {'f_k':>10s}")
for k in range(len(centers)):
    print(f"{k:8d} {centers[k]:8.3f} {offsets['f_k'][k]:10.4f}")
