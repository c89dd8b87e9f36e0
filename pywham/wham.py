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
A module implementing the self-consistent WHAM iteration.

"""

import logging

import numpy as np

from pywham.histogram import Dataset
from pywham.utils import ParameterError, NumericalError
from pywham.wham_solvers import (
    perform_wham_iteration,
    is_converged,
    diff_avg,
    to_free_energy,
    normalize_probabilities,
    calc_free_energy,
)

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1.0e-6
DEFAULT_MAX_ITERATIONS = 100000
# convergence is only tested every this many iterations
DEFAULT_CHECK_INTERVAL = 10

# =========================================================================
# WHAM class definition
# =========================================================================


class WHAM:
    """Weighted Histogram Analysis Method.

    Iterates the two WHAM equations until the bias offsets, expressed in
    energy units, change by no more than ``tolerance`` between two
    consecutive iterations, or until ``max_iterations`` is reached.

    Notes
    -----
    The bias offsets ``F`` are stored as ``exp(f_k / kT)`` throughout. The
    convergence test converts copies of ``F`` and ``F_prev`` to energy units;
    ``F`` itself is never modified by the test.

    Reaching ``max_iterations`` is not an error: a warning is logged and the
    current estimate is reported.

    References
    ----------

    [1] Kumar S, Rosenberg JM, Bouzida D, Swendsen RH and Kollman PA.
    The weighted histogram analysis method for free-energy calculations on
    biomolecules. I. The method. J. Comput. Chem. 13:1011-1021, 1992
    http://dx.doi.org/10.1002/jcc.540130812

    [2] Roux B. The calculation of the potential of mean force using
    computer simulations. Comput. Phys. Commun. 91:275-282, 1995
    http://dx.doi.org/10.1016/0010-4655(95)00053-I

    Examples
    --------

    >>> from pywham import testsystems
    >>> dataset = testsystems.HarmonicUmbrellaTestCase().dataset(n_samples=500, seed=0)
    >>> wham = WHAM(dataset, tolerance=1e-4).run()
    >>> results = wham.get_pmf()

    """

    def __init__(self, dataset, tolerance=DEFAULT_TOLERANCE, max_iterations=DEFAULT_MAX_ITERATIONS,
                 check_interval=DEFAULT_CHECK_INTERVAL, verbose=False):
        """Set up a WHAM calculation on a dataset.

        Parameters
        ----------
        dataset : Dataset
            The binned windows. Not modified.
        tolerance : float, optional
            Largest change of any bias offset, in the energy unit of
            ``dataset.kT``, that counts as converged.
        max_iterations : int, optional
            Iteration budget.
        check_interval : int, optional, default=10
            Convergence is tested every ``check_interval`` iterations.
        verbose : bool, optional
            Log a summary of the dataset and each convergence check.
        """
        if not isinstance(dataset, Dataset):
            raise ParameterError("dataset must be a pywham.Dataset, got %s" % type(dataset))
        if not tolerance >= 0:
            raise ParameterError("tolerance must be non-negative, got %s" % tolerance)
        if int(max_iterations) != max_iterations or max_iterations < 1:
            raise ParameterError("max_iterations must be a positive integer, got %s" % max_iterations)
        if int(check_interval) != check_interval or check_interval < 1:
            raise ParameterError("check_interval must be a positive integer, got %s" % check_interval)

        self.dataset = dataset
        self.tolerance = float(tolerance)
        self.max_iterations = int(max_iterations)
        self.check_interval = int(check_interval)
        self.verbose = verbose

        if self.verbose:
            logger.info(str(dataset))
            for window, h in enumerate(dataset.histograms):
                logger.info(
                    "window {:d}: center={}, force_constant={}, {!r}".format(
                        window, dataset.center[window].tolist(), dataset.force_constant[window].tolist(), h
                    )
                )

        self._reset()

    def _reset(self):
        K = self.dataset.num_windows
        # bias offsets exp(f_k/kT), starting from f_k = 0
        self.F = np.ones([K], dtype=np.float64)
        self.F_prev = np.full([K], np.nan, dtype=np.float64)
        self.P = np.full([self.dataset.num_bins], np.nan, dtype=np.float64)
        self.free_energy = None
        self.iterations = 0
        self.converged = False
        self.convergence_history = []

    def run(self):
        """Iterate the WHAM equations from ``f_k = 0`` until convergence.

        Returns
        -------
        self : WHAM

        Raises
        ------
        NumericalError
            If any bias offset becomes NaN or infinite.
        """
        self._reset()
        dataset = self.dataset
        F, F_prev, P = self.F, self.F_prev, self.P

        while not self.converged and self.iterations < self.max_iterations:
            self.iterations += 1
            np.copyto(F_prev, F)
            perform_wham_iteration(dataset, F_prev, F=F, P=P)

            if not np.all(np.isfinite(F)):
                self._raise_numerical_error()

            if self.iterations % self.check_interval == 0:
                f_k = to_free_energy(F, dataset.kT)
                f_k_prev = to_free_energy(F_prev, dataset.kT)
                self.converged = is_converged(f_k_prev, f_k, self.tolerance)
                dF = diff_avg(f_k, f_k_prev)
                self.convergence_history.append((self.iterations, dF))
                if self.verbose:
                    logger.info("Iteration {:d}: dF={}".format(self.iterations, dF))
                else:
                    logger.debug("Iteration {:d}: dF={}".format(self.iterations, dF))

        self.P = normalize_probabilities(P)
        self.free_energy = calc_free_energy(dataset.kT, self.P)

        if self.converged:
            logger.info("WHAM converged after {:d} iterations".format(self.iterations))
        else:
            logger.warning(
                "WHAM not converged! (max iterations reached: {:d})".format(self.max_iterations)
            )
        return self

    def _raise_numerical_error(self):
        bad_windows = np.flatnonzero(~np.isfinite(self.F))
        bad_bins = np.flatnonzero(~np.isfinite(self.P))
        msg = "Non-finite bias offsets for windows {} in iteration {:d}.".format(
            bad_windows.tolist(), self.iterations
        )
        if len(bad_bins) > 0:
            shown = ", ".join(str(b) for b in bad_bins[:10])
            if len(bad_bins) > 10:
                shown += ", ..."
            msg += (
                " Bins [{}] have no weight in any window; "
                "consider narrowing the histogram range.".format(shown)
            )
        raise NumericalError(msg)

    def _check_ran(self):
        if self.free_energy is None:
            raise ParameterError("run() must be called first")

    def get_pmf(self):
        """Potential of mean force on the bin centers.

        Returns
        -------
        result_vals : dict

            'x' : np.ndarray, float, shape=(num_bins, dimens)
                bin center coordinates
            'f_i' : np.ndarray, float, shape=(num_bins)
                free energy of each bin, the lowest is 0
            'p_i' : np.ndarray, float, shape=(num_bins)
                normalized probability of each bin
        """
        self._check_ran()
        result_vals = dict()
        result_vals["x"] = self.dataset.bin_coords
        result_vals["f_i"] = self.free_energy
        result_vals["p_i"] = self.P
        return result_vals

    def get_bias_offsets(self):
        """Bias offsets of the windows.

        Returns
        -------
        result_vals : dict

            'F' : np.ndarray, float, shape=(num_windows)
                offsets in exponential form ``exp(f_k / kT)``
            'f_k' : np.ndarray, float, shape=(num_windows)
                free energy of each window in energy units, ``kT ln F``
            'df_k' : np.ndarray, float, shape=(num_windows)
                change of ``f_k`` during the last iteration
        """
        self._check_ran()
        kT = self.dataset.kT
        f_k = to_free_energy(self.F, kT)
        result_vals = dict()
        result_vals["F"] = self.F
        result_vals["f_k"] = f_k
        result_vals["df_k"] = np.abs(f_k - to_free_energy(self.F_prev, kT))
        return result_vals
