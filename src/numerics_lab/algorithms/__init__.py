"""Numerical algorithms module.

This module contains implementations of:
- Direct solvers (Gaussian elimination, LU, inverse, QR)
- Jacobi and Gauss-Seidel relaxation with pluggable stopping criteria
- Power method, inverse iteration, deflation and the QR algorithm
- Lagrange, Newton and natural cubic spline interpolation
- Euler, Heun and RK4 integrators
- Bisection, fixed-point, Newton and secant root finders
- Finite-difference derivatives and composite quadrature
- Sandboxed parsing of user-entered formulas
- Matrix generation utilities and side-by-side method comparison
"""

from numerics_lab.algorithms.calculus import (
    QuadratureResult,
    backward_difference,
    central_difference,
    differentiate,
    forward_difference,
    integrate,
    midpoint_rule,
    richardson_extrapolation,
    second_derivative,
    simpson_rule,
    trapezoid_rule,
)
from numerics_lab.algorithms.comparison import (
    LinearComparison,
    MethodSummary,
    OdeComparison,
    RootComparison,
    RootSummary,
    compare_linear_methods,
    compare_ode_methods,
    compare_root_methods,
)
from numerics_lab.algorithms.direct import (
    GaussResult,
    GaussStep,
    LUResult,
    LUStep,
    QRResult,
    back_substitution,
    forward_substitution,
    gaussian_elimination,
    lu_decomposition,
    lu_solve,
    matrix_inverse,
    qr_factorization,
    solve,
)
from numerics_lab.algorithms.eigen import (
    EigenPair,
    PowerIteration,
    PowerMethodTrace,
    PowerStep,
    QRAlgorithmTrace,
    deflate,
    dominant_eigenpairs,
    inverse_iteration_step,
    power_iteration_step,
    qr_algorithm,
    rayleigh_quotient,
    run_power_method,
)
from numerics_lab.algorithms.expression import (
    Expression,
    call_checked,
    compile_function,
    evaluate,
    parse_expression,
)
from numerics_lab.algorithms.interpolation import (
    DEFAULT_POINTS,
    NodeSet,
    SplineSegment,
    as_nodes,
    build_natural_spline,
    divided_differences,
    evaluate_spline,
    interpolate_at,
    lagrange_basis,
    lagrange_interpolate,
    newton_coefficients,
    newton_interpolate,
    spline_domain,
)
from numerics_lab.algorithms.iterative import (
    IterationRecord,
    IterativeTrace,
    gauss_seidel_step,
    is_diagonally_dominant,
    iterative_step,
    jacobi_step,
    residual,
    run_iterative,
)
from numerics_lab.algorithms.matrices import (
    DEFAULT_SEED,
    LinearSystem,
    create_diagonally_dominant_matrix,
    create_known_spectrum_matrix,
    create_linear_system,
    default_system,
)
from numerics_lab.algorithms.ode import (
    DEFAULT_PROBLEM,
    ODEProblem,
    ODESolution,
    RK4Slopes,
    StepRecord,
    euler,
    heun,
    integrate_ode,
    rk4,
    step_grid,
)
from numerics_lab.algorithms.roots import (
    RootRecord,
    RootTrace,
    bisection,
    estimate_order,
    fixed_point,
    newton,
    secant,
)
from numerics_lab.algorithms.stopping import (
    AnyOf,
    DivergenceDetector,
    ResidualTolerance,
    StagnationDetector,
    StopDecision,
    StoppingCriterion,
    create_criterion,
    default_criterion,
)

__all__ = [
    # Calculus
    "QuadratureResult",
    "backward_difference",
    "central_difference",
    "differentiate",
    "forward_difference",
    "integrate",
    "midpoint_rule",
    "richardson_extrapolation",
    "second_derivative",
    "simpson_rule",
    "trapezoid_rule",
    # Comparison
    "LinearComparison",
    "MethodSummary",
    "OdeComparison",
    "RootComparison",
    "RootSummary",
    "compare_linear_methods",
    "compare_ode_methods",
    "compare_root_methods",
    # Direct solvers
    "GaussResult",
    "GaussStep",
    "LUResult",
    "LUStep",
    "QRResult",
    "back_substitution",
    "forward_substitution",
    "gaussian_elimination",
    "lu_decomposition",
    "lu_solve",
    "matrix_inverse",
    "qr_factorization",
    "solve",
    # Eigenvalues
    "EigenPair",
    "PowerIteration",
    "PowerMethodTrace",
    "PowerStep",
    "QRAlgorithmTrace",
    "deflate",
    "dominant_eigenpairs",
    "inverse_iteration_step",
    "power_iteration_step",
    "qr_algorithm",
    "rayleigh_quotient",
    "run_power_method",
    # Expressions
    "Expression",
    "call_checked",
    "compile_function",
    "evaluate",
    "parse_expression",
    # Interpolation
    "DEFAULT_POINTS",
    "NodeSet",
    "SplineSegment",
    "as_nodes",
    "build_natural_spline",
    "divided_differences",
    "evaluate_spline",
    "interpolate_at",
    "lagrange_basis",
    "lagrange_interpolate",
    "newton_coefficients",
    "newton_interpolate",
    "spline_domain",
    # Iterative solvers
    "IterationRecord",
    "IterativeTrace",
    "gauss_seidel_step",
    "is_diagonally_dominant",
    "iterative_step",
    "jacobi_step",
    "residual",
    "run_iterative",
    # Matrix generation
    "DEFAULT_SEED",
    "LinearSystem",
    "create_diagonally_dominant_matrix",
    "create_known_spectrum_matrix",
    "create_linear_system",
    "default_system",
    # ODE integrators
    "DEFAULT_PROBLEM",
    "ODEProblem",
    "ODESolution",
    "RK4Slopes",
    "StepRecord",
    "euler",
    "heun",
    "integrate_ode",
    "rk4",
    "step_grid",
    # Root finding
    "RootRecord",
    "RootTrace",
    "bisection",
    "estimate_order",
    "fixed_point",
    "newton",
    "secant",
    # Stopping criteria
    "AnyOf",
    "DivergenceDetector",
    "ResidualTolerance",
    "StagnationDetector",
    "StopDecision",
    "StoppingCriterion",
    "create_criterion",
    "default_criterion",
]
