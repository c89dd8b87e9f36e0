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

"""Physical constants used throughout pywham.

Energies are in kJ/mol, temperatures in K.
"""

# Boltzmann constant in kJ/(mol*K)
k_B = 0.0083144621


def thermal_energy(temperature):
    """Return kT in kJ/mol for a temperature in K."""
    return k_B * temperature
