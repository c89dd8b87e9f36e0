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

##############################################################################
# imports
##############################################################################

from itertools import zip_longest
import warnings
import numpy as np

##############################################################################
# functions / classes
##############################################################################


class TypeCastPerformanceWarning(RuntimeWarning):
    pass


def ensure_type(val, dtype, ndim, name, length=None, can_be_none=False, shape=None,
                warn_on_cast=True, add_newaxis_on_deficient_ndim=False):
    """Typecheck the size, shape and dtype of an array, with optional
    casting.

    Parameters
    ----------
    val : {array_like, None}
        The array to check. Lists and tuples are converted.
    dtype : {nd.dtype, str}
        The dtype you'd like the array to have
    ndim : int
        The number of dimensions you'd like the array to have
    name : str
        name of the array. This is used when throwing exceptions, so that
        we can describe to the user which array is messed up.
    length : int, optional
        How long should the array be?
    can_be_none : bool
        Is ``val == None`` acceptable?
    shape : tuple, optional
        What should be shape of the array be? If the provided tuple has
        Nones in it, those will be semantically interpreted as matching
        any length in that dimension.
    warn_on_cast : bool, default=True
        Raise a warning when the dtypes of an ndarray don't match and a
        cast is done.
    add_newaxis_on_deficient_ndim : bool, default=False
        Add a new axis to the beginning of the array if the number of
        dimensions is deficient by one compared to the requested shape.

    Returns
    -------
    typechecked_val : np.ndarray, None
        If `val=None` and `can_be_none=True`, then this will return None.
        Otherwise, it will return a C-contiguous array of the requested dtype.

    Raises
    ------
    ParameterError
        If the value cannot be brought to the requested shape.
    """
    if can_be_none and val is None:
        return None

    if not isinstance(val, np.ndarray):
        if np.isscalar(val):
            if add_newaxis_on_deficient_ndim and ndim == 1:
                val = np.array([val])
            else:
                raise ParameterError("%s must be an array. You supplied type %s" % (name, type(val)))
        else:
            try:
                val = np.array(val, dtype=dtype)
            except (TypeError, ValueError) as err:
                raise ParameterError("%s could not be converted to an array: %s" % (name, err))

    if warn_on_cast and val.dtype != dtype:
        warnings.warn("Casting %s dtype=%s to %s " % (name, val.dtype, dtype),
                      TypeCastPerformanceWarning)

    if not val.ndim == ndim:
        if add_newaxis_on_deficient_ndim and val.ndim + 1 == ndim:
            val = val[np.newaxis, ...]
        else:
            raise ParameterError(("%s must be ndim %s. "
                                  "You supplied %s" % (name, ndim, val.ndim)))

    val = np.ascontiguousarray(val, dtype=dtype)

    if length is not None and len(val) != length:
        raise ParameterError(("%s must be length %s. "
                              "You supplied %s" % (name, length, len(val))))

    if shape is not None:
        # the shape specified given by the user can look like (None, 3)
        # which indicates that ANY length is accepted in dimension 0
        sentenel = object()
        error = ParameterError(("%s must be shape %s. You supplied  "
                                "%s" % (name, str(shape).replace('None', 'Any'), val.shape)))
        for a, b in zip_longest(val.shape, shape, fillvalue=sentenel):
            if a is sentenel or b is sentenel:
                raise error
            if b is None:
                continue
            if a != b:
                raise error

    return val


# ============================================================================================
# Exception classes
# =============================================================================================


class ParameterError(Exception):

    """
    An error in the input parameters has been detected.

    """
    pass


class DataError(Exception):

    """
    Input data is missing or inconsistent.

    """
    pass


class ConvergenceError(Exception):

    """
    Convergence could not be achieved.

    """
    pass


class NumericalError(ConvergenceError):

    """
    Non-finite values appeared in the bias offsets during iteration.

    """
    pass
