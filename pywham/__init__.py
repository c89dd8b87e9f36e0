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

"""The pywham package estimates unbiased probability distributions and
potentials of mean force from biased umbrella sampling histograms with the
weighted histogram analysis method (WHAM).

"""

__license__ = "MIT"

from . import testsystems
from .constants import k_B
from .histogram import Histogram, Dataset
from .wham import WHAM
from .wham_solvers import (
    calc_bin_probability,
    calc_window_F,
    perform_wham_iteration,
    is_converged,
    calc_free_energy,
)
from .utils import ParameterError, DataError, ConvergenceError, NumericalError

from ._version import __version__

__all__ = [
    "k_B",
    "Histogram",
    "Dataset",
    "WHAM",
    "calc_bin_probability",
    "calc_window_F",
    "perform_wham_iteration",
    "is_converged",
    "calc_free_energy",
    "ParameterError",
    "DataError",
    "ConvergenceError",
    "NumericalError",
    "testsystems",
    "utils",
]
