import numpy as np

from pywham.constants import thermal_energy
from pywham.histogram import Histogram, Dataset


class HarmonicUmbrellaTestCase(object):

    """Umbrella sampling of a one-dimensional harmonic well.

    Examples
    --------

    Generate a binned dataset with default parameters.

    >>> testcase = HarmonicUmbrellaTestCase()
    >>> dataset = testcase.dataset(n_samples=100, seed=1)

    Retrieve the analytical PMF on the bin centers.

    >>> pmf = testcase.analytical_pmf(dataset.bin_coords[:, 0])

    """

    def __init__(self, K0=10.0, x0=0.0, centers=np.linspace(-2.0, 2.0, 17), Ku=100.0,
                 temperature=300.0):
        """Generate a test case with harmonic umbrellas on a harmonic well.

        Parameters
        ----------
        K0 : float, optional, default=10.0
            Force constant of the unbiased potential in kJ/(mol nm^2).
        x0 : float, optional, default=0.0
            Minimum of the unbiased potential.
        centers : np.ndarray, float, shape=(n_windows)
            Umbrella centers.
        Ku : float or np.ndarray, optional, default=100.0
            Umbrella force constants in kJ/(mol nm^2), scalar or one per window.
        temperature : float, optional, default=300.0
            Temperature in K.

        Notes
        -----
        The unbiased potential is U0(x) = (K0 / 2) * (x - x0)^2 and the bias of
        window k is Uk(x) = (Ku_k / 2) * (x - c_k)^2. The biased distribution
        of window k is therefore Gaussian with mean
        (K0 x0 + Ku_k c_k) / (K0 + Ku_k) and variance kT / (K0 + Ku_k).

        """
        self.K0 = float(K0)
        self.x0 = float(x0)
        self.centers = np.array(centers, np.float64)
        self.n_windows = len(self.centers)
        self.Ku = np.array(np.broadcast_to(Ku, self.centers.shape), np.float64)
        self.temperature = float(temperature)
        self.kT = thermal_energy(self.temperature)

    def analytical_pmf(self, x):
        """Unbiased free energy at ``x``, zero at the well minimum."""
        x = np.asarray(x, dtype=np.float64)
        return 0.5 * self.K0 * (x - self.x0) ** 2

    def analytical_means(self):
        return (self.K0 * self.x0 + self.Ku * self.centers) / (self.K0 + self.Ku)

    def analytical_standard_deviations(self):
        return np.sqrt(self.kT / (self.K0 + self.Ku))

    def sample(self, n_samples=1000, seed=None):
        """Draw samples from every biased window.

        Returns
        -------
        x_kn : np.ndarray, float, shape=(n_windows, n_samples)
            x_kn[k, n] is sample n of window k.
        """
        rng = np.random.default_rng(seed)
        mu = self.analytical_means()
        sigma = self.analytical_standard_deviations()
        return rng.normal(mu[:, np.newaxis], sigma[:, np.newaxis], size=(self.n_windows, n_samples))

    def dataset(self, n_samples=1000, hist_min=-2.5, hist_max=2.5, num_bins=50, seed=None):
        """Sample all windows and bin them into a Dataset."""
        x_kn = self.sample(n_samples, seed=seed)
        histograms = [Histogram.from_samples(x_n, [hist_min], [hist_max], [num_bins]) for x_n in x_kn]
        return Dataset.from_bounds([hist_min], [hist_max], [num_bins], self.centers, self.Ku,
                                   self.kT, histograms)
