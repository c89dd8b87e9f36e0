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
Command line interface: ``pywham -f metadata.dat --min -180 --max 180 --bins 36 -T 300``

"""

import argparse
import logging
import sys

import numpy as np

from pywham import io
from pywham.logging_utils import setup_logging
from pywham.utils import ParameterError, DataError, NumericalError
from pywham.wham import WHAM, DEFAULT_TOLERANCE, DEFAULT_MAX_ITERATIONS

logger = logging.getLogger(__name__)


class Config:
    """Options of a WHAM run."""

    def __init__(self, metadata_file, hist_min, hist_max, num_bins, temperature,
                 tolerance=DEFAULT_TOLERANCE, max_iterations=DEFAULT_MAX_ITERATIONS,
                 cyclic=False, verbose=False, output="wham.out"):
        self.metadata_file = metadata_file
        self.hist_min = [float(v) for v in np.atleast_1d(hist_min)]
        self.hist_max = [float(v) for v in np.atleast_1d(hist_max)]
        self.num_bins = [int(v) for v in np.atleast_1d(num_bins)]
        self.dimens = len(self.hist_min)
        self.temperature = float(temperature)
        self.tolerance = float(tolerance)
        self.max_iterations = int(max_iterations)
        self.cyclic = bool(cyclic)
        self.verbose = bool(verbose)
        self.output = output

    def validate(self):
        """Raise ParameterError if the options are inconsistent."""
        if not (len(self.hist_max) == self.dimens and len(self.num_bins) == self.dimens):
            raise ParameterError(
                "--min, --max and --bins need one value per dimension, got {:d}, {:d} and {:d}".format(
                    len(self.hist_min), len(self.hist_max), len(self.num_bins)
                )
            )
        for d in range(self.dimens):
            if not self.hist_min[d] < self.hist_max[d]:
                raise ParameterError(
                    "hist_min must be smaller than hist_max (dimension {:d}: {} >= {})".format(
                        d, self.hist_min[d], self.hist_max[d]
                    )
                )
            if self.num_bins[d] < 1:
                raise ParameterError("Number of bins must be positive (dimension {:d})".format(d))
        if not self.temperature > 0:
            raise ParameterError("Temperature must be positive, got {}".format(self.temperature))
        if not self.tolerance >= 0:
            raise ParameterError("Tolerance must be non-negative, got {}".format(self.tolerance))
        if self.max_iterations < 1:
            raise ParameterError("max_iterations must be positive, got {}".format(self.max_iterations))
        return self

    def __str__(self):
        return (
            "Metadata={}, hist_min={}, hist_max={}, bins={} verbose={}, tolerance={}, "
            "iterations={}, temperature={}, cyclic={}".format(
                self.metadata_file, self.hist_min, self.hist_max, self.num_bins, self.verbose,
                self.tolerance, self.max_iterations, self.temperature, self.cyclic
            )
        )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="pywham",
        description="Weighted Histogram Analysis Method for umbrella sampling simulations.",
    )
    parser.add_argument("-f", "--file", dest="metadata_file", required=True,
                        help="metadata file listing time series, bias centers and force constants")
    parser.add_argument("--min", dest="hist_min", type=float, nargs="+", required=True,
                        help="lower histogram boundary, one value per dimension")
    parser.add_argument("--max", dest="hist_max", type=float, nargs="+", required=True,
                        help="upper histogram boundary, one value per dimension")
    parser.add_argument("--bins", dest="num_bins", type=int, nargs="+", required=True,
                        help="number of bins, one value per dimension")
    parser.add_argument("-T", "--temperature", type=float, required=True,
                        help="temperature in K")
    parser.add_argument("-t", "--tolerance", type=float, default=DEFAULT_TOLERANCE,
                        help="convergence tolerance in kJ/mol [default: %(default)s]")
    parser.add_argument("-i", "--iterations", dest="max_iterations", type=int,
                        default=DEFAULT_MAX_ITERATIONS,
                        help="maximum number of WHAM iterations [default: %(default)s]")
    parser.add_argument("-c", "--cyclic", action="store_true",
                        help="treat the coordinate space as periodic")
    parser.add_argument("-o", "--output", default="wham.out",
                        help="output file [default: %(default)s]")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="verbose output")
    return parser


def parse_cli(argv=None):
    """Parse command line arguments into a Config."""
    args = build_parser().parse_args(argv)
    return Config(
        args.metadata_file,
        args.hist_min,
        args.hist_max,
        args.num_bins,
        args.temperature,
        tolerance=args.tolerance,
        max_iterations=args.max_iterations,
        cyclic=args.cyclic,
        verbose=args.verbose,
        output=args.output,
    )


def run(config):
    """Read the input, run WHAM and write the results.

    Returns
    -------
    wham : WHAM
        The finished calculation, converged or not.
    """
    config.validate()
    logger.info("Supplied WHAM options: {}".format(config))

    logger.info("Reading input files.")
    dataset = io.read_data(config)
    logger.info(str(dataset))

    wham = WHAM(dataset, tolerance=config.tolerance, max_iterations=config.max_iterations,
                verbose=config.verbose).run()

    logger.info("Finished. Dumping final PMF")
    io.dump_state(dataset, wham.F, wham.F_prev, wham.P, wham.free_energy)
    io.write_results(config.output, dataset, wham.free_energy, wham.P, F=wham.F, F_prev=wham.F_prev)
    return wham


def main(argv=None):
    config = parse_cli(argv)
    setup_logging(logging.DEBUG if config.verbose else logging.INFO)
    try:
        run(config)
    except (ParameterError, DataError, NumericalError, OSError) as err:
        logger.error(str(err))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
