"""Numerics Lab: classical numerical methods with inspectable intermediate steps."""

import logging

__version__ = "0.1.0"

from numerics_lab.data.methods import (
    InterpolationMethod,
    IterativeMethod,
    LinearMethod,
    OdeMethod,
    RootMethod,
)
from numerics_lab.data.tolerances import Tolerance, get_tolerance
from numerics_lab.exceptions import NumericsLabError

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    "InterpolationMethod",
    "IterativeMethod",
    "LinearMethod",
    "NumericsLabError",
    "OdeMethod",
    "RootMethod",
    "Tolerance",
    "get_tolerance",
]
