__all__ = [
    "harmonic_umbrellas",
    "HarmonicUmbrellaTestCase",
]

from pywham.testsystems.harmonic_umbrellas import HarmonicUmbrellaTestCase
