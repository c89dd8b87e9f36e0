##############################################################################
# pywham: A Python Library for the Weighted Histogram Analysis Method
#
# Copyright 2018-2024 The pywham developers
#
# pywham is free software: you can redistribute it and/or modify
# it under the terms of the MIT License.
#
# This library is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# MIT License for more details.
#
# You should have received a copy of the MIT License along with pywham.
##############################################################################

"""
Binned representation of a set of umbrella sampling windows.

A :class:`Dataset` holds one :class:`Histogram` per window together with the
geometry of the (possibly multi-dimensional, possibly periodic) bin grid and
the harmonic bias potential of every window. All bins are addressed by a
single flat index in row-major order; :meth:`Dataset.get_coords_for_bin` and
:meth:`Dataset.get_bin_for_coords` are the only places that map between flat
indices and coordinates.

"""

import logging
import numpy as np
import numexpr

from pywham.utils import ensure_type, ParameterError

logger = logging.getLogger(__name__)


class Histogram:

    """Binned samples of a single simulation window.

    Parameters
    ----------
    num_points : int
        Total number of samples of the window, including samples that fell
        outside of the histogram boundaries. Must be at least ``sum(bins)``.
    bins : np.ndarray, float, shape=(num_bins)
        ``bins[i]`` is the number of samples in flat bin ``i``.

    Examples
    --------

    >>> h = Histogram(10, [0.0, 1.0, 1.0, 8.0, 0.0])
    >>> len(h)
    5

    """

    def __init__(self, num_points, bins):
        if num_points < 0:
            raise ParameterError("num_points must be non-negative, got %s" % num_points)
        bins = ensure_type(bins, np.float64, 1, "bins", warn_on_cast=False).copy()
        if np.any(bins < 0):
            raise ParameterError("Histogram bin counts must be non-negative")
        if bins.sum() > num_points:
            raise ParameterError(
                "num_points={} is smaller than the {:g} samples counted in the bins".format(num_points, bins.sum())
            )
        bins.flags.writeable = False

        self.num_points = int(num_points)
        self.bins = bins

    @classmethod
    def from_samples(cls, samples, hist_min, hist_max, num_bins_per_dim):
        """Histogram raw samples on a regular grid.

        A sample is counted if ``hist_min[d] <= x[d] < hist_max[d]`` holds in
        every dimension; ``num_points`` counts all samples.

        Parameters
        ----------
        samples : np.ndarray, float, shape=(n_samples, dimens)
        hist_min, hist_max : np.ndarray, float, shape=(dimens)
        num_bins_per_dim : np.ndarray, int, shape=(dimens)

        Returns
        -------
        histogram : Histogram
        """
        hist_min = np.atleast_1d(np.asarray(hist_min, dtype=np.float64))
        hist_max = np.atleast_1d(np.asarray(hist_max, dtype=np.float64))
        num_bins_per_dim = np.atleast_1d(np.asarray(num_bins_per_dim, dtype=np.int64))
        samples = np.asarray(samples, dtype=np.float64)
        if samples.ndim == 1:
            samples = samples[:, np.newaxis]
        samples = ensure_type(samples, np.float64, 2, "samples", shape=(None, len(hist_min)),
                              warn_on_cast=False)
        bin_width = (hist_max - hist_min) / num_bins_per_dim

        inside = np.all((samples >= hist_min) & (samples < hist_max), axis=1)
        indices = np.floor((samples[inside] - hist_min) / bin_width).astype(np.int64)
        # guard against x just below hist_max rounding up into a missing bin
        indices = np.minimum(indices, num_bins_per_dim - 1)
        flat = np.ravel_multi_index(tuple(indices.T), tuple(num_bins_per_dim))
        bins = np.bincount(flat, minlength=int(np.prod(num_bins_per_dim))).astype(np.float64)

        return cls(len(samples), bins)

    def __len__(self):
        return len(self.bins)

    def __repr__(self):
        return "Histogram(num_points={:d}, num_bins={:d}, counted={:g})".format(
            self.num_points, len(self.bins), self.bins.sum()
        )


class Dataset:

    """All windows of an umbrella sampling run, binned on a common grid.

    The dataset is read-only once constructed; the bias weights
    ``exp(-U_k(x_i) / kT)`` are computed on first use and cached.

    Parameters
    ----------
    num_bins : int
        Total number of bins, must equal ``prod(num_bins_per_dim)``.
    num_bins_per_dim : array_like, int, shape=(dimens)
        Number of bins along each dimension.
    bin_width : array_like, float, shape=(dimens)
        Bin width along each dimension.
    hist_min : array_like, float, shape=(dimens)
        Lower histogram boundary along each dimension.
    hist_max : array_like, float, shape=(dimens)
        Upper histogram boundary along each dimension. For cyclic datasets
        ``hist_max - hist_min`` is the period.
    center : array_like, float, shape=(num_windows, dimens)
        Center of the harmonic bias of each window. A flat sequence of length
        ``num_windows * dimens`` (window-major) or ``num_windows`` is accepted.
    force_constant : array_like, float, shape=(num_windows, dimens)
        Spring constant of the harmonic bias of each window, in energy per
        squared coordinate unit. Same accepted shapes as ``center``.
    kT : float
        Thermal energy in the same energy unit as the bias.
    histograms : sequence of Histogram
        One histogram per window.
    cyclic : bool, optional, default=False
        If True, every dimension is periodic and bias distances use the
        minimum image convention.

    Notes
    -----
    The bias of window ``k`` at coordinate ``x`` is

        U_k(x) = sum_d 0.5 * force_constant[k, d] * (x_d - center[k, d])**2

    Examples
    --------

    >>> from pywham.constants import k_B
    >>> h1 = Histogram(10, [0.0, 1.0, 1.0, 8.0, 0.0])
    >>> h2 = Histogram(10, [0.0, 0.0, 8.0, 1.0, 1.0])
    >>> ds = Dataset(5, [5], [1.0], [0.0], [4.0], [1.0, 1.0], [10.0, 10.0], 300.0 * k_B, [h1, h2])
    >>> ds.get_coords_for_bin(2)
    array([2.5])

    """

    def __init__(self, num_bins, num_bins_per_dim, bin_width, hist_min, hist_max,
                 center, force_constant, kT, histograms, cyclic=False):

        self.num_bins_per_dim = ensure_type(
            num_bins_per_dim, np.int64, 1, "num_bins_per_dim",
            warn_on_cast=False, add_newaxis_on_deficient_ndim=True
        )
        self.dimens = len(self.num_bins_per_dim)
        if self.dimens == 0:
            raise ParameterError("At least one dimension is required")
        if np.any(self.num_bins_per_dim <= 0):
            raise ParameterError("Every dimension needs at least one bin, got %s" % self.num_bins_per_dim)

        self.num_bins = int(num_bins)
        if self.num_bins != int(np.prod(self.num_bins_per_dim)):
            raise ParameterError(
                "num_bins={:d} does not match the product of num_bins_per_dim={}".format(
                    self.num_bins, self.num_bins_per_dim.tolist()
                )
            )

        self.bin_width = self._per_dimension(bin_width, "bin_width")
        self.hist_min = self._per_dimension(hist_min, "hist_min")
        self.hist_max = self._per_dimension(hist_max, "hist_max")
        if np.any(self.bin_width <= 0):
            raise ParameterError("bin_width must be positive, got %s" % self.bin_width)

        self.cyclic = bool(cyclic)
        if self.cyclic and np.any(self.hist_max <= self.hist_min):
            raise ParameterError("A cyclic dataset needs hist_max > hist_min in every dimension")

        self.kT = float(kT)
        if not self.kT > 0:
            raise ParameterError("kT must be strictly positive, got %s" % kT)

        self.histograms = tuple(histograms)
        self.num_windows = len(self.histograms)
        if self.num_windows == 0:
            raise ParameterError("At least one histogram is required")
        for window, h in enumerate(self.histograms):
            if len(h.bins) != self.num_bins:
                raise ParameterError(
                    "Histogram of window {:d} has {:d} bins, expected {:d}".format(
                        window, len(h.bins), self.num_bins
                    )
                )

        self.center = self._per_window(center, "center")
        self.force_constant = self._per_window(force_constant, "force_constant")

        # per-window sample counts and per-bin totals do not change during iteration
        self.num_points = np.array([h.num_points for h in self.histograms], dtype=np.float64)
        self.bin_counts = np.sum([h.bins for h in self.histograms], axis=0)
        for array in (self.num_points, self.bin_counts):
            array.flags.writeable = False

        self._bin_coords = None
        self._bias = None

    @classmethod
    def from_bounds(cls, hist_min, hist_max, num_bins_per_dim, center, force_constant, kT,
                    histograms, cyclic=False):
        """Construct a dataset whose bin width is derived from the boundaries.

        ``bin_width = (hist_max - hist_min) / num_bins_per_dim``
        """
        hist_min = np.atleast_1d(np.asarray(hist_min, dtype=np.float64))
        hist_max = np.atleast_1d(np.asarray(hist_max, dtype=np.float64))
        num_bins_per_dim = np.atleast_1d(np.asarray(num_bins_per_dim, dtype=np.int64))
        if hist_min.shape != hist_max.shape or hist_min.shape != num_bins_per_dim.shape:
            raise ParameterError("hist_min, hist_max and num_bins_per_dim must have the same length")
        if np.any(hist_max <= hist_min):
            raise ParameterError("hist_max must be larger than hist_min in every dimension")
        if np.any(num_bins_per_dim <= 0):
            raise ParameterError("Every dimension needs at least one bin, got %s" % num_bins_per_dim)
        bin_width = (hist_max - hist_min) / num_bins_per_dim
        return cls(int(np.prod(num_bins_per_dim)), num_bins_per_dim, bin_width, hist_min, hist_max,
                   center, force_constant, kT, histograms, cyclic=cyclic)

    def _per_dimension(self, values, name):
        values = ensure_type(values, np.float64, 1, name, length=self.dimens,
                             warn_on_cast=False, add_newaxis_on_deficient_ndim=True).copy()
        values.flags.writeable = False
        return values

    def _per_window(self, values, name):
        values = np.array(values, dtype=np.float64)
        if values.ndim == 0:
            values = np.full((self.num_windows, self.dimens), float(values))
        elif values.ndim == 1 and values.size == self.num_windows * self.dimens:
            values = values.reshape(self.num_windows, self.dimens)
        elif values.ndim == 1 and values.size == self.num_windows:
            # one scalar per window, shared by all dimensions
            values = np.repeat(values[:, np.newaxis], self.dimens, axis=1)
        if values.shape != (self.num_windows, self.dimens):
            raise ParameterError(
                "{} must have shape ({:d}, {:d}) (one value per window and dimension), got {}".format(
                    name, self.num_windows, self.dimens, values.shape
                )
            )
        values = np.ascontiguousarray(values)
        values.flags.writeable = False
        return values

    # =========================================================================
    # Coordinate mapping
    # =========================================================================

    def get_indices_for_bin(self, bin):
        """Split a flat bin index into one index per dimension."""
        if not 0 <= bin < self.num_bins:
            raise IndexError("bin {} out of range for {:d} bins".format(bin, self.num_bins))
        return np.array(np.unravel_index(bin, tuple(self.num_bins_per_dim)), dtype=np.int64)

    def get_coords_for_bin(self, bin):
        """Coordinates of the center of a flat bin index.

        Parameters
        ----------
        bin : int
            Flat bin index.

        Returns
        -------
        coords : np.ndarray, float, shape=(dimens)
            ``hist_min[d] + (index_d + 0.5) * bin_width[d]``
        """
        return self.hist_min + (self.get_indices_for_bin(bin) + 0.5) * self.bin_width

    def get_bin_for_coords(self, coords):
        """Flat bin index containing ``coords``, or -1 if outside the grid."""
        coords = np.atleast_1d(np.asarray(coords, dtype=np.float64))
        if coords.shape != (self.dimens,):
            raise ParameterError("coords must have {:d} entries, got {}".format(self.dimens, coords.shape))
        indices = np.floor((coords - self.hist_min) / self.bin_width).astype(np.int64)
        if np.any(indices < 0) or np.any(indices >= self.num_bins_per_dim):
            return -1
        return int(np.ravel_multi_index(tuple(indices), tuple(self.num_bins_per_dim)))

    @property
    def bin_coords(self):
        """Bin center coordinates of all bins, shape=(num_bins, dimens)."""
        if self._bin_coords is None:
            indices = np.indices(tuple(self.num_bins_per_dim)).reshape(self.dimens, -1).T
            coords = self.hist_min + (indices + 0.5) * self.bin_width
            coords.flags.writeable = False
            self._bin_coords = coords
        return self._bin_coords

    # =========================================================================
    # Bias
    # =========================================================================

    def distance(self, x, y):
        """Per-dimension signed displacement ``x - y``.

        For cyclic datasets the minimum image is used, so no component
        exceeds half the period in magnitude.
        """
        delta = np.asarray(x, dtype=np.float64) - np.asarray(y, dtype=np.float64)
        if self.cyclic:
            period = self.hist_max - self.hist_min
            delta = delta - period * np.round(delta / period)
        return delta

    def calc_bias_energy(self, bin, window):
        """Harmonic bias energy of ``window`` at the center of ``bin``."""
        delta = self.distance(self.get_coords_for_bin(bin), self.center[window])
        return float(np.sum(0.5 * self.force_constant[window] * delta**2))

    def calc_bias(self, bin, window):
        """Bias weight ``exp(-U_window(x_bin) / kT)`` of one bin and window."""
        if not 0 <= bin < self.num_bins:
            raise IndexError("bin {} out of range for {:d} bins".format(bin, self.num_bins))
        if not 0 <= window < self.num_windows:
            raise IndexError("window {} out of range for {:d} windows".format(window, self.num_windows))
        return self.bias[window, bin]

    @property
    def bias(self):
        """Bias weights of all windows and bins, shape=(num_windows, num_bins).

        ``bias[k, i] = exp(-U_k(x_i) / kT)``. Computed once on first access.
        """
        if self._bias is None:
            self._bias = self._compute_bias()
        return self._bias

    def _compute_bias(self):
        logger.debug(
            "Computing bias weights for {:d} windows x {:d} bins".format(self.num_windows, self.num_bins)
        )
        # delta has shape (num_windows, num_bins, dimens)
        delta = self.distance(self.bin_coords[np.newaxis, :, :], self.center[:, np.newaxis, :])
        energy = np.sum(0.5 * self.force_constant[:, np.newaxis, :] * delta**2, axis=2)
        kT = self.kT
        bias = numexpr.evaluate("exp(-energy / kT)")
        bias.flags.writeable = False
        return bias

    def __str__(self):
        return (
            "Dataset: {:d} windows, {:d} dimension(s), {:d} bins {}, hist_min={}, hist_max={}, "
            "bin_width={}, kT={:.6g}, cyclic={}, samples={:g} ({:g} inside the histogram)".format(
                self.num_windows, self.dimens, self.num_bins, self.num_bins_per_dim.tolist(),
                self.hist_min.tolist(), self.hist_max.tolist(), self.bin_width.tolist(), self.kT,
                self.cyclic, self.num_points.sum(), self.bin_counts.sum()
            )
        )
