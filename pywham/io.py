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
Reading umbrella sampling input and writing WHAM results.

Metadata file
-------------
One window per line. Blank lines and lines starting with ``#`` are ignored::

    /path/to/timeseries  center_1 [... center_D]  force_constant_1 [... force_constant_D]

Relative paths are resolved against the directory of the metadata file.
Any further fields are ignored.

Time series file
----------------
Whitespace separated columns ``time x_1 [... x_D]``. Lines starting with
``#`` or ``@`` are ignored, as are columns after ``x_D``.

"""

import logging
from pathlib import Path

import numpy as np

from pywham.constants import thermal_energy
from pywham.histogram import Histogram, Dataset
from pywham.utils import DataError
from pywham.wham_solvers import to_free_energy

logger = logging.getLogger(__name__)


class WindowMetadata:
    """Location and bias parameters of one window, as read from a metadata file."""

    def __init__(self, path, center, force_constant):
        self.path = Path(path)
        self.center = np.asarray(center, dtype=np.float64)
        self.force_constant = np.asarray(force_constant, dtype=np.float64)

    def __repr__(self):
        return "WindowMetadata(path='{}', center={}, force_constant={})".format(
            self.path, self.center.tolist(), self.force_constant.tolist()
        )


def read_metadata(filename, dimens=1):
    """Read a metadata file.

    Parameters
    ----------
    filename : str or Path
    dimens : int, optional, default=1
        Number of coordinate dimensions.

    Returns
    -------
    windows : list of WindowMetadata
    """
    filename = Path(filename)
    windows = []
    with open(filename, "r") as infile:
        for lineno, line in enumerate(infile, start=1):
            line = line.strip()
            if not line or line[0] == "#":
                continue
            tokens = line.split()
            if len(tokens) < 1 + 2 * dimens:
                raise DataError(
                    "{}:{:d}: expected a path, {:d} center(s) and {:d} force constant(s), got '{}'".format(
                        filename, lineno, dimens, dimens, line
                    )
                )
            try:
                values = [float(t) for t in tokens[1 : 1 + 2 * dimens]]
            except ValueError:
                raise DataError("{}:{:d}: could not parse '{}'".format(filename, lineno, line))
            path = Path(tokens[0])
            if not path.is_absolute():
                path = filename.parent / path
            windows.append(WindowMetadata(path, values[:dimens], values[dimens:]))

    if not windows:
        raise DataError("No windows found in metadata file {}".format(filename))
    logger.debug("Read {:d} windows from {}".format(len(windows), filename))
    return windows


def read_timeseries(filename, dimens=1):
    """Read the coordinates of a time series file.

    Returns
    -------
    x_n : np.ndarray, float, shape=(n_samples, dimens)
    """
    x_n = []
    with open(filename, "r") as infile:
        for lineno, line in enumerate(infile, start=1):
            stripped = line.lstrip()
            if not stripped or stripped[0] == "#" or stripped[0] == "@":
                continue
            tokens = line.split()
            if len(tokens) < 1 + dimens:
                raise DataError(
                    "{}:{:d}: expected time and {:d} coordinate(s), got '{}'".format(
                        filename, lineno, dimens, line.strip()
                    )
                )
            try:
                x_n.append([float(t) for t in tokens[1 : 1 + dimens]])
            except ValueError:
                raise DataError("{}:{:d}: could not parse '{}'".format(filename, lineno, line.strip()))
    return np.array(x_n, dtype=np.float64).reshape(-1, dimens)


def read_data(config):
    """Read all windows listed in a metadata file and bin them.

    Parameters
    ----------
    config : pywham.cli.Config
        Uses ``metadata_file``, ``hist_min``, ``hist_max``, ``num_bins``,
        ``dimens``, ``temperature`` and ``cyclic``.

    Returns
    -------
    dataset : Dataset

    Raises
    ------
    DataError
        If no sample of any window lies within the histogram boundaries.
    """
    windows = read_metadata(config.metadata_file, config.dimens)

    histograms = []
    for window in windows:
        logger.debug("Reading {}".format(window.path))
        x_n = read_timeseries(window.path, config.dimens)
        histograms.append(Histogram.from_samples(x_n, config.hist_min, config.hist_max, config.num_bins))

    if sum(h.bins.sum() for h in histograms) == 0:
        raise DataError("No datapoints in histogram boundaries.")

    return Dataset.from_bounds(
        config.hist_min,
        config.hist_max,
        config.num_bins,
        [w.center for w in windows],
        [w.force_constant for w in windows],
        thermal_energy(config.temperature),
        histograms,
        cyclic=config.cyclic,
    )


def _pmf_table(dataset, free_energy, P):
    return np.column_stack([dataset.bin_coords, free_energy, P])


def _offset_table(dataset, F, F_prev):
    f_k = to_free_energy(np.asarray(F, dtype=np.float64), dataset.kT)
    f_k_prev = to_free_energy(np.asarray(F_prev, dtype=np.float64), dataset.kT)
    return np.column_stack([np.arange(dataset.num_windows), f_k, np.abs(f_k - f_k_prev)])


def _pmf_header(dataset):
    if dataset.dimens == 1:
        coords = ["x"]
    else:
        coords = ["x{:d}".format(d + 1) for d in range(dataset.dimens)]
    return "\t".join(coords + ["Free Energy", "P(x)"])


def dump_state(dataset, F, F_prev, P, free_energy):
    """Log the PMF and bias offset tables at INFO level."""
    logger.info("# PMF")
    logger.info("#" + _pmf_header(dataset))
    for row in _pmf_table(dataset, free_energy, P):
        logger.info("\t".join("{:9.5f}".format(v) for v in row))
    logger.info("# Bias offsets")
    logger.info("#Window\tF\tdF")
    for window, f, df in _offset_table(dataset, F, F_prev):
        logger.info("{:d}\t{:9.5f}\t{:.8f}".format(int(window), f, df))


def write_results(filename, dataset, free_energy, P, F=None, F_prev=None):
    """Write the PMF, and optionally the bias offsets, to a text file.

    Parameters
    ----------
    filename : str or Path
    dataset : Dataset
    free_energy : np.ndarray, shape=(num_bins)
    P : np.ndarray, shape=(num_bins)
        Normalized bin probabilities.
    F, F_prev : np.ndarray, shape=(num_windows), optional
        Final and previous bias offsets in exponential form. Written as
        offsets in energy units and their change if both are given.
    """
    with open(filename, "w") as outfile:
        outfile.write("# PMF\n")
        np.savetxt(outfile, _pmf_table(dataset, free_energy, P), fmt="%.8g", delimiter="\t",
                   header=_pmf_header(dataset), comments="#")
        if F is not None and F_prev is not None:
            outfile.write("# Bias offsets\n")
            np.savetxt(outfile, _offset_table(dataset, F, F_prev), fmt=["%d", "%.8g", "%.8g"],
                       delimiter="\t", header="Window\tF\tdF", comments="#")
    logger.info("Wrote results to {}".format(filename))
