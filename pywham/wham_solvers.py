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
The WHAM equations.

Bias offsets are carried in exponential form, ``F[k] = exp(f_k / kT)`` where
``f_k`` is the free energy offset of window ``k``. Use
:func:`to_free_energy` and :func:`from_free_energy` to convert between the
two representations.

Each of the two equations is independent across its index (bins for the
first, windows for the second), so both are evaluated for all indices at
once as matrix-vector products over :attr:`Dataset.bias`.

"""

import logging

import numpy as np

from pywham.utils import ensure_type, ParameterError

logger = logging.getLogger(__name__)


def validate_inputs(dataset, F=None, P=None):
    """Check types and return bias offsets and probabilities for a dataset.

    Parameters
    ----------
    dataset : Dataset
    F : array_like, shape=(num_windows), optional
        Bias offsets in exponential form. Only the first ``num_windows``
        entries are used if more are given.
    P : array_like, shape=(num_bins), optional
        Bin probabilities.

    Returns
    -------
    F : np.ndarray, float, shape=(num_windows) or None
    P : np.ndarray, float, shape=(num_bins) or None
    """
    if F is not None:
        F = ensure_type(F, np.float64, 1, "F", warn_on_cast=False)
        if len(F) < dataset.num_windows:
            raise ParameterError(
                "F must have at least {:d} entries (one per window), got {:d}".format(
                    dataset.num_windows, len(F)
                )
            )
        F = F[: dataset.num_windows]
    if P is not None:
        P = ensure_type(P, np.float64, 1, "P", length=dataset.num_bins, warn_on_cast=False)
    return F, P


def calc_bin_probability(bin, dataset, F):
    """Evaluate the first WHAM equation for one bin.

    Parameters
    ----------
    bin : int
        Flat bin index.
    dataset : Dataset
    F : np.ndarray, shape=(num_windows), dtype='float'
        Bias offsets ``exp(f_k / kT)``.

    Returns
    -------
    p : float
        Unnormalized probability of the bin,

            P[i] = sum_k n_k[i] / sum_k N_k * c_k[i] * F[k]

        where ``n_k[i]`` is the count of window ``k`` in bin ``i``, ``N_k`` the
        number of samples of window ``k`` and ``c_k[i]`` the bias weight.
        NaN or Inf if the denominator vanishes.
    """
    if not 0 <= bin < dataset.num_bins:
        raise IndexError("bin {} out of range for {:d} bins".format(bin, dataset.num_bins))
    F, _ = validate_inputs(dataset, F=F)
    denominator = np.sum(dataset.num_points * dataset.bias[:, bin] * F)
    with np.errstate(divide="ignore", invalid="ignore"):
        return dataset.bin_counts[bin] / denominator


def calc_window_F(window, dataset, P):
    """Evaluate the second WHAM equation for one window.

    Parameters
    ----------
    window : int
        Window index.
    dataset : Dataset
    P : np.ndarray, shape=(num_bins), dtype='float'
        Bin probabilities.

    Returns
    -------
    F : float
        New bias offset ``1 / sum_i P[i] * c_k[i]`` in exponential form.
        Inf or NaN if the sum vanishes or is undefined.
    """
    if not 0 <= window < dataset.num_windows:
        raise IndexError("window {} out of range for {:d} windows".format(window, dataset.num_windows))
    _, P = validate_inputs(dataset, P=P)
    with np.errstate(divide="ignore", invalid="ignore"):
        return 1.0 / np.sum(P * dataset.bias[window])


def calc_bin_probabilities(dataset, F, out=None):
    """First WHAM equation for all bins at once. See :func:`calc_bin_probability`."""
    denominator = np.dot(dataset.num_points * F, dataset.bias)
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.divide(dataset.bin_counts, denominator, out=out)


def calc_window_Fs(dataset, P, out=None):
    """Second WHAM equation for all windows at once. See :func:`calc_window_F`."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.divide(1.0, np.dot(dataset.bias, P), out=out)


def perform_wham_iteration(dataset, F_prev, F=None, P=None):
    """One full WHAM iteration.

    Evaluates the first equation for every bin from ``F_prev``, then the
    second equation for every window from the probabilities just computed.

    Parameters
    ----------
    dataset : Dataset
    F_prev : np.ndarray, shape=(num_windows), dtype='float'
        Bias offsets of the previous iteration, exponential form.
    F : np.ndarray, shape=(num_windows), dtype='float', optional
        If given, the new bias offsets are written into this array.
    P : np.ndarray, shape=(num_bins), dtype='float', optional
        If given, the new probabilities are written into this array.

    Returns
    -------
    F : np.ndarray, shape=(num_windows), dtype='float'
        Updated bias offsets.
    P : np.ndarray, shape=(num_bins), dtype='float'
        Unnormalized bin probabilities.
    """
    F_prev, _ = validate_inputs(dataset, F=F_prev)
    for name, out, size in (("F", F, dataset.num_windows), ("P", P, dataset.num_bins)):
        if out is not None and (not isinstance(out, np.ndarray) or out.shape != (size,)
                                or out.dtype != np.float64):
            raise ParameterError("{} must be a float64 array of shape ({:d},)".format(name, size))
    if F is not None and np.shares_memory(F, F_prev):
        # the second phase must not overwrite the offsets the first phase reads
        F_prev = F_prev.copy()

    P = calc_bin_probabilities(dataset, F_prev, out=P)
    F = calc_window_Fs(dataset, P, out=F)
    return F, P


def is_converged(old_F, new_F, tolerance):
    """True if no element of ``new_F`` differs from ``old_F`` by more than ``tolerance``.

    Both arguments should be in free energy units. NaN differences are never
    converged.
    """
    diff = np.abs(np.asarray(new_F, dtype=np.float64) - np.asarray(old_F, dtype=np.float64))
    return bool(np.all(diff <= tolerance))


def diff_avg(F, F_prev):
    """Mean absolute difference between two sets of bias offsets."""
    return float(np.mean(np.abs(np.asarray(F, dtype=np.float64) - np.asarray(F_prev, dtype=np.float64))))


def to_free_energy(F, kT):
    """Convert exponential bias offsets ``F = exp(f / kT)`` to free energies ``f = kT ln F``.

    ``f_k = -kT ln sum_i P[i] * c_k[i]`` is the free energy of window ``k``
    relative to the unbiased ensemble.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        return kT * np.log(F)


def from_free_energy(f, kT):
    """Inverse of :func:`to_free_energy`."""
    return np.exp(np.asarray(f, dtype=np.float64) / kT)


def normalize_probabilities(P):
    """Return ``P / sum(P)``."""
    P = np.asarray(P, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        return P / np.sum(P)


def calc_free_energy(kT, P):
    """Free energy profile of a probability distribution.

    Parameters
    ----------
    kT : float or Dataset
        Thermal energy; a :class:`Dataset` may be passed to use its ``kT``.
    P : np.ndarray, shape=(num_bins), dtype='float'
        Bin probabilities.

    Returns
    -------
    free_energy : np.ndarray, shape=(num_bins), dtype='float'
        ``-kT ln P`` shifted so that its smallest finite value is exactly 0.
        Empty bins have ``+Inf`` free energy; NaN probabilities stay NaN.
    """
    kT = getattr(kT, "kT", kT)
    P = np.asarray(P, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        free_energy = -kT * np.log(P)
    finite = np.isfinite(free_energy)
    if np.any(finite):
        free_energy -= np.min(free_energy[finite])
    else:
        logger.warning("No bin has a finite free energy")
    return free_energy
