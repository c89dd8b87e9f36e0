import os

from setuptools import setup, find_packages


long_description = """
pywham is a library and command line tool that combines biased
umbrella sampling simulations with the weighted histogram analysis
method (WHAM) to estimate unbiased probability distributions and
potentials of mean force on one- or multi-dimensional, optionally
periodic, coordinates.
"""

about = {}
with open(os.path.join(os.path.dirname(os.path.abspath(__file__)), "pywham", "_version.py")) as f:
    exec(f.read(), about)

setup(
    name="pywham",
    author="The pywham developers",
    description="Python implementation of the weighted histogram analysis method (WHAM)",
    license="MIT",
    keywords="umbrella sampling, potential of mean force, free energy, WHAM",
    packages=find_packages(include=["pywham", "pywham.*"]),
    long_description=long_description[1:],
    classifiers=["License :: OSI Approved :: MIT License", "Programming Language :: Python :: 3"],
    version=about["__version__"],
    python_requires=">=3.8",
    install_requires=["numpy>=1.17",
                      "numexpr",
                      ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["pywham = pywham.cli:main"]},
)
