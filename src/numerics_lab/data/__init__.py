"""Data module for method identifiers, tolerances and input validation."""

from numerics_lab.data.methods import (
    DifferenceMethod,
    InterpolationMethod,
    IterativeMethod,
    LinearMethod,
    OdeMethod,
    QuadratureMethod,
    RootMethod,
    parse_method,
)
from numerics_lab.data.tolerances import (
    Tolerance,
    ToleranceSpec,
    get_spec,
    get_tolerance,
    list_tolerances,
    resolve_tolerance,
)
from numerics_lab.data.validation import (
    as_finite_scalar,
    as_matrix,
    as_square_matrix,
    as_vector,
)

__all__ = [
    "DifferenceMethod",
    "InterpolationMethod",
    "IterativeMethod",
    "LinearMethod",
    "OdeMethod",
    "QuadratureMethod",
    "RootMethod",
    "parse_method",
    "Tolerance",
    "ToleranceSpec",
    "get_spec",
    "get_tolerance",
    "list_tolerances",
    "resolve_tolerance",
    "as_finite_scalar",
    "as_matrix",
    "as_square_matrix",
    "as_vector",
]
