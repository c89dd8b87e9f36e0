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

import numpy as np
from numpy.testing import (
    assert_allclose,
    assert_almost_equal,
    assert_array_almost_equal,
    assert_array_equal,
    assert_equal,
)

from pywham.constants import k_B
from pywham.histogram import Histogram, Dataset

__all__ = [
    "assert_allclose",
    "assert_almost_equal",
    "assert_array_almost_equal",
    "assert_array_equal",
    "assert_equal",
    "two_window_dataset",
    "write_umbrella_files",
]

##############################################################################
# functions
##############################################################################


def two_window_dataset(cyclic=False):
    """Five bins, two identical windows centered at 1.0 with spring constant 10."""
    h1 = Histogram(10, [0.0, 1.0, 1.0, 8.0, 0.0])
    h2 = Histogram(10, [0.0, 0.0, 8.0, 1.0, 1.0])
    return Dataset(5, [5], [1.0], [0.0], [4.0], [1.0, 1.0], [10.0, 10.0], 300.0 * k_B, [h1, h2],
                   cyclic=cyclic)


def write_umbrella_files(directory, x_kn, centers, force_constants, metadata_name="metadata.dat"):
    """Write time series and a metadata file for a set of 1D windows.

    Returns
    -------
    metadata : pathlib.Path
    """
    lines = ["# path center force_constant"]
    for k, x_n in enumerate(x_kn):
        name = "window{:d}.dat".format(k)
        data = np.column_stack([np.arange(len(x_n)), x_n])
        np.savetxt(directory / name, data, header="time x")
        lines.append("{} {} {}".format(name, centers[k], force_constants[k]))
    metadata = directory / metadata_name
    metadata.write_text("\n".join(lines) + "\n")
    return metadata
