import pathlib
import sys

from setuptools import find_packages
from setuptools import setup


assert sys.version_info >= (3, 9, 0), "sparseid requires Python 3.9+"

NAME = "sparseid"
VERSION = "0.1.0"
DESCRIPTION = "Sparse regression and null space optimizers for system identification"
PYTHON = ">=3.9"
LICENSE = "MIT"
CLASSIFIERS = [
    "Programming Language :: Python",
    "Programming Language :: Python :: 3",
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "License :: OSI Approved :: MIT License",
    "Topic :: Scientific/Engineering :: Mathematics",
]

here = pathlib.Path(__file__).parent

with open(here / "requirements.txt", "r") as f:
    REQUIRED = [line.strip() for line in f if line.strip()]

with open(here / "README.rst", "r") as f:
    LONG_DESCRIPTION = f.read()


setup(
    name=NAME,
    version=VERSION,
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/x-rst",
    packages=find_packages(exclude=["test", "test.*"]),
    install_requires=REQUIRED,
    extras_require={"dev": ["pytest"]},
    python_requires=PYTHON,
    license=LICENSE,
    classifiers=CLASSIFIERS,
)
