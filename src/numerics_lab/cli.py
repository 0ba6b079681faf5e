"""
Command-line interface for Numerics Lab.

Usage:
    numerics-lab info            Show methods and default tolerances
    numerics-lab solve           Solve a linear system
    numerics-lab eigen           Dominant eigenpair by the power method
    numerics-lab interpolate     Evaluate an interpolant at a point
    numerics-lab ode             Integrate an initial value problem
    numerics-lab compare         Compare linear solvers on one system
    numerics-lab root            Solve f(x) = 0 with the root finders
    numerics-lab differentiate   Finite-difference estimates of f'(x)
    numerics-lab integrate       Composite quadrature of f over [a, b]
"""

import logging
from typing import Annotated

import numpy as np
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from numerics_lab import __version__
from numerics_lab.algorithms import calculus
from numerics_lab.algorithms.comparison import (
    compare_linear_methods,
    compare_ode_methods,
    compare_root_methods,
)
from numerics_lab.algorithms.direct import gaussian_elimination, lu_decomposition, lu_solve
from numerics_lab.algorithms.eigen import run_power_method
from numerics_lab.algorithms.expression import compile_function
from numerics_lab.algorithms.interpolation import DEFAULT_POINTS, interpolate_at
from numerics_lab.algorithms.iterative import is_diagonally_dominant, run_iterative
from numerics_lab.algorithms.matrices import default_system
from numerics_lab.algorithms.ode import DEFAULT_PROBLEM, integrate_ode
from numerics_lab.data import (
    DifferenceMethod,
    InterpolationMethod,
    LinearMethod,
    OdeMethod,
    QuadratureMethod,
    RootMethod,
    list_tolerances,
    parse_method,
)
from numerics_lab.exceptions import NumericsLabError, ParseError

app = typer.Typer(
    name="numerics-lab",
    help="Classical numerical methods with inspectable intermediate steps",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"numerics-lab version {__version__}")
        raise typer.Exit()


@app.callback()  # type: ignore[misc]
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log solver progress."),
    ] = False,
) -> None:
    """Numerics Lab - Linear systems, eigenvalues, interpolation, ODEs and calculus."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


# =============================================================================
# ARGUMENT PARSING
# =============================================================================


def _parse_matrix(text: str) -> list[list[float]]:
    """Parse '4,-1,1;4,-8,1;-2,1,5' (rows separated by ';')."""
    try:
        return [[float(v) for v in row.split(",")] for row in text.split(";")]
    except ValueError as e:
        raise typer.BadParameter(f"Invalid matrix '{text}': {e}") from e


def _parse_vector(text: str) -> list[float]:
    try:
        return [float(v) for v in text.split(",")]
    except ValueError as e:
        raise typer.BadParameter(f"Invalid vector '{text}': {e}") from e


def _parse_points(text: str) -> list[tuple[float, float]]:
    """Parse '0:1,1:2.7,2:7.4' into (x, y) pairs."""
    try:
        return [
            (float(x), float(y))
            for x, y in (pair.split(":") for pair in text.split(","))
        ]
    except ValueError as e:
        raise typer.BadParameter(
            f"Invalid points '{text}': expected x:y pairs separated by ','"
        ) from e


def _parse_enum(enum_cls, name: str):
    try:
        return parse_method(enum_cls, name)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def _fail(error: NumericsLabError) -> None:
    console.print(f"[red]Error:[/] {escape(str(error))}")
    raise typer.Exit(1)


def _format_vector(v: np.ndarray) -> str:
    return "[" + ", ".join(f"{value:.6g}" for value in v) + "]"


# =============================================================================
# COMMANDS
# =============================================================================


@app.command()  # type: ignore[misc]
def info() -> None:
    """Display available methods and default tolerances."""
    methods = Table(title="Available Methods")
    methods.add_column("Family", style="cyan", no_wrap=True)
    methods.add_column("Methods")
    methods.add_row("Linear systems", ", ".join(m.value for m in LinearMethod))
    methods.add_row("Interpolation", ", ".join(m.value for m in InterpolationMethod))
    methods.add_row(
        "ODE integrators",
        ", ".join(f"{m.value} (order {m.order})" for m in OdeMethod),
    )
    methods.add_row("Root finding", ", ".join(m.value for m in RootMethod))
    methods.add_row(
        "Differentiation",
        ", ".join(f"{m.value} (order {m.order})" for m in DifferenceMethod),
    )
    methods.add_row(
        "Quadrature",
        ", ".join(f"{m.value} (order {m.order})" for m in QuadratureMethod),
    )
    console.print(methods)

    tolerances = Table(title="Default Tolerances")
    tolerances.add_column("Name", style="cyan", no_wrap=True)
    tolerances.add_column("Value", justify="right")
    tolerances.add_column("Description")
    for spec in list_tolerances():
        tolerances.add_row(spec.kind.value, f"{spec.value:.0e}", spec.description)
    console.print(tolerances)


@app.command()  # type: ignore[misc]
def solve(
    matrix: Annotated[
        str | None,
        typer.Option("--matrix", "-A", help="Rows separated by ';', e.g. '2,1;1,3'"),
    ] = None,
    rhs: Annotated[
        str | None,
        typer.Option("--rhs", "-b", help="Right-hand side, e.g. '3,5'"),
    ] = None,
    method: Annotated[
        str,
        typer.Option("--method", "-m", help="gauss, lu, jacobi or gauss_seidel"),
    ] = "gauss",
    max_iterations: Annotated[
        int,
        typer.Option("--max-iter", "-i", help="Sweep budget for iterative methods"),
    ] = 100,
    show_steps: Annotated[
        bool,
        typer.Option("--steps", help="Print the elimination log"),
    ] = False,
) -> None:
    """Solve A x = b (defaults to the classroom 3x3 system)."""
    A, b = _system(matrix, rhs)
    linear_method = _parse_enum(LinearMethod, method)

    try:
        if linear_method is LinearMethod.GAUSS:
            result = gaussian_elimination(A, b)
            if show_steps:
                for step in result.steps:
                    console.print(f"  {step.description}")
            x = result.solution
        elif linear_method is LinearMethod.LU:
            lu = lu_decomposition(A)
            if show_steps:
                for step in lu.steps:
                    console.print(f"  {step.description}")
            x = lu_solve(lu, b)
        else:
            if not is_diagonally_dominant(A):
                console.print(
                    "[yellow]Note:[/] matrix is not strictly diagonally dominant; "
                    "convergence is not guaranteed"
                )
            trace = run_iterative(
                A, b, method=linear_method.value, max_iterations=max_iterations
            )
            if show_steps:
                for record in trace.records:
                    console.print(
                        f"  k={record.iteration:3d}  x={_format_vector(record.x)}  "
                        f"residual={record.residual:.3e}"
                    )
            status = "[green]converged[/]" if trace.converged else f"[yellow]{trace.stop_reason}[/]"
            console.print(f"{linear_method.value}: {status} after {trace.iterations} sweeps")
            x = trace.solution
    except NumericsLabError as e:
        _fail(e)

    console.print(f"[bold]x[/] = {_format_vector(x)}")


@app.command()  # type: ignore[misc]
def eigen(
    matrix: Annotated[
        str | None,
        typer.Option("--matrix", "-A", help="Rows separated by ';'"),
    ] = None,
    max_iterations: Annotated[
        int,
        typer.Option("--max-iter", "-i", min=1, help="Maximum iterations"),
    ] = 500,
    shift: Annotated[
        float | None,
        typer.Option("--shift", help="Run inverse iteration around this shift"),
    ] = None,
) -> None:
    """Estimate an eigenpair by power (or inverse) iteration."""
    A = _parse_matrix(matrix) if matrix else default_system().matrix

    try:
        trace = run_power_method(A, max_iterations=max_iterations, shift=shift)
    except NumericsLabError as e:
        _fail(e)

    status = "[green]converged[/]" if trace.converged else "[yellow]not converged[/]"
    console.print(f"Power method: {status} after {trace.iterations} iterations")
    console.print(f"[bold]λ[/] = {trace.final_eigenvalue:.10g}")
    console.print(f"[bold]v[/] = {_format_vector(trace.final_vector)}")


@app.command()  # type: ignore[misc]
def interpolate(
    at: Annotated[
        float,
        typer.Option("--at", "-x", help="Evaluation point"),
    ],
    points: Annotated[
        str | None,
        typer.Option("--points", "-p", help="Nodes as x:y pairs, e.g. '0:1,1:2.7'"),
    ] = None,
    method: Annotated[
        str | None,
        typer.Option("--method", "-m", help="lagrange, newton or spline (default: all)"),
    ] = None,
) -> None:
    """Evaluate interpolants of a node set at one point."""
    nodes = _parse_points(points) if points else list(DEFAULT_POINTS)
    methods = (
        [_parse_enum(InterpolationMethod, method)] if method else list(InterpolationMethod)
    )

    table = Table(title=f"Interpolation at x = {at:g}")
    table.add_column("Method", style="cyan")
    table.add_column("P(x)", justify="right")

    try:
        for interpolation_method in methods:
            value = interpolate_at(nodes, at, method=interpolation_method)
            table.add_row(interpolation_method.value, f"{value:.10g}")
    except NumericsLabError as e:
        _fail(e)

    console.print(table)


@app.command()  # type: ignore[misc]
def ode(
    rhs: Annotated[
        str | None,
        typer.Option("--rhs", "-f", help="Derivative f(t, y), e.g. '-2*t*y'"),
    ] = None,
    exact: Annotated[
        str | None,
        typer.Option("--exact", "-e", help="Exact solution y(t), e.g. 'exp(-t^2)'"),
    ] = None,
    step: Annotated[
        float,
        typer.Option("--step", "-s", help="Step size"),
    ] = 0.1,
    t0: Annotated[float, typer.Option("--t0", help="Initial time")] = DEFAULT_PROBLEM.t0,
    tf: Annotated[float, typer.Option("--tf", help="Final time")] = DEFAULT_PROBLEM.tf,
    y0: Annotated[float, typer.Option("--y0", help="Initial value")] = DEFAULT_PROBLEM.y0,
    method: Annotated[
        str | None,
        typer.Option("--method", "-m", help="euler, heun or rk4 (default: all)"),
    ] = None,
    show_steps: Annotated[
        bool,
        typer.Option("--steps", help="Print every grid point"),
    ] = False,
) -> None:
    """Integrate y' = f(t, y) with fixed-step integrators."""
    try:
        if rhs is None:
            f, exact_fn = DEFAULT_PROBLEM.rhs, DEFAULT_PROBLEM.exact
        else:
            f = compile_function(rhs, ("t", "y"))
            exact_fn = None
        if exact is not None:
            exact_fn = compile_function(exact, ("t",))
    except ParseError as e:
        raise typer.BadParameter(str(e)) from e

    try:
        if method is None:
            solutions = compare_ode_methods(f, step, t0, tf, y0, exact_fn).solutions
        else:
            ode_method = _parse_enum(OdeMethod, method)
            solutions = (integrate_ode(f, step, t0, tf, y0, exact_fn, method=ode_method),)
    except NumericsLabError as e:
        _fail(e)

    table = Table(title=f"ODE on [{t0:g}, {tf:g}] with h = {step:g}")
    table.add_column("Method", style="cyan")
    table.add_column("Steps", justify="right")
    table.add_column(f"y({tf:g})", justify="right")
    table.add_column("Final error", justify="right")

    for solution in solutions:
        final_error = solution.final_error
        table.add_row(
            solution.method.value,
            str(len(solution.steps) - 1),
            f"{solution.final.y:.10g}",
            "-" if final_error is None else f"{final_error:.3e}",
        )
        if show_steps:
            for record in solution.steps:
                console.print(f"  {solution.method.value} t={record.t:.4g} y={record.y:.10g}")

    console.print(table)


@app.command()  # type: ignore[misc]
def compare(
    matrix: Annotated[
        str | None,
        typer.Option("--matrix", "-A", help="Rows separated by ';'"),
    ] = None,
    rhs: Annotated[
        str | None,
        typer.Option("--rhs", "-b", help="Right-hand side"),
    ] = None,
    max_iterations: Annotated[
        int,
        typer.Option("--max-iter", "-i", help="Sweep budget for iterative methods"),
    ] = 100,
) -> None:
    """Compare every linear solver on one system."""
    A, b = _system(matrix, rhs)

    try:
        report = compare_linear_methods(A, b, max_iterations=max_iterations)
    except NumericsLabError as e:
        _fail(e)

    table = Table(title="Linear Solver Comparison")
    table.add_column("Method", style="cyan", no_wrap=True)
    table.add_column("Sweeps", justify="right")
    table.add_column("Residual", justify="right")
    table.add_column("Error vs Gauss", justify="right")
    table.add_column("Converged", justify="center")

    for summary in report.summaries:
        if summary.failure is not None:
            table.add_row(summary.method.value, "-", "-", "-", "✗", style="dim")
            continue
        table.add_row(
            summary.method.value,
            str(summary.iterations),
            f"{summary.final_residual:.3e}",
            f"{summary.error_vs_reference:.3e}",
            "✓" if summary.converged else "✗",
        )

    console.print(table)
    if not report.diagonally_dominant:
        console.print(
            "\n[yellow]Note:[/] matrix is not strictly diagonally dominant; "
            "Jacobi and Gauss-Seidel may not converge"
        )


def _compile(text: str | None, variables: tuple[str, ...] = ("x",)):
    if text is None:
        return None
    try:
        return compile_function(text, variables)
    except ParseError as e:
        raise typer.BadParameter(str(e)) from e


@app.command()  # type: ignore[misc]
def root(
    function: Annotated[
        str,
        typer.Option("--function", "-f", help="f(x), e.g. 'x^2 - 2'"),
    ] = "x^2 - 2",
    lower: Annotated[float, typer.Option("--lower", "-a", help="Bracket lower end")] = 1.0,
    upper: Annotated[float, typer.Option("--upper", "-b", help="Bracket upper end")] = 2.0,
    derivative: Annotated[
        str | None,
        typer.Option("--derivative", "-d", help="f'(x) for Newton (default: numerical)"),
    ] = None,
    g: Annotated[
        str | None,
        typer.Option("--g", "-g", help="Fixed-point function g(x), e.g. 'sqrt(x + 2)'"),
    ] = None,
    method: Annotated[
        str | None,
        typer.Option(
            "--method", "-m", help="bisection, fixed_point, newton or secant (default: all)"
        ),
    ] = None,
    tolerance: Annotated[
        float | None,
        typer.Option("--tol", help="Step-size target (default 1e-10)"),
    ] = None,
    max_iterations: Annotated[
        int,
        typer.Option("--max-iter", "-i", min=1, help="Iteration budget"),
    ] = 100,
    show_steps: Annotated[
        bool,
        typer.Option("--steps", help="Print every iterate"),
    ] = False,
) -> None:
    """Solve f(x) = 0 on the bracket [a, b]."""
    f = _compile(function)
    df = _compile(derivative)
    g_fn = _compile(g)
    methods = None if method is None else [_parse_enum(RootMethod, method)]
    if methods == [RootMethod.FIXED_POINT] and g_fn is None:
        raise typer.BadParameter("fixed_point needs --g")

    try:
        report = compare_root_methods(
            f,
            lower,
            upper,
            df=df,
            g=g_fn,
            methods=methods,
            tolerance=tolerance,
            max_iterations=max_iterations,
        )
    except NumericsLabError as e:
        _fail(e)

    if methods is not None and report.summaries[0].failure is not None:
        console.print(f"[red]Error:[/] {escape(report.summaries[0].failure)}")
        raise typer.Exit(1)

    table = Table(title=f"Roots of {escape(function)} on [{lower:g}, {upper:g}]")
    table.add_column("Method", style="cyan", no_wrap=True)
    table.add_column("Iterations", justify="right")
    table.add_column("Root", justify="right")
    table.add_column("|f(root)|", justify="right")
    table.add_column("Status")

    for summary in report.summaries:
        trace = summary.trace
        if trace is None:
            failure = escape(summary.failure or "")
            table.add_row(summary.method.value, "-", "-", "-", failure, style="dim")
            continue
        status = "[green]converged[/]" if trace.converged else f"[yellow]{trace.stop_reason}[/]"
        table.add_row(
            summary.method.value,
            str(trace.iterations),
            f"{trace.root:.12g}",
            f"{trace.final_residual:.3e}",
            status,
        )
        if show_steps:
            for record in trace.records:
                step = "-" if record.step is None else f"{record.step:.3e}"
                console.print(
                    f"  {summary.method.value} n={record.iteration:3d}  "
                    f"x={record.x:.12g}  f(x)={record.fx:.3e}  step={step}"
                )

    console.print(table)


@app.command()  # type: ignore[misc]
def differentiate(
    function: Annotated[
        str,
        typer.Option("--function", "-f", help="f(x), e.g. 'exp(x)'"),
    ] = "exp(x)",
    at: Annotated[float, typer.Option("--at", "-x", help="Evaluation point")] = 1.0,
    step: Annotated[float, typer.Option("--step", "-s", help="Step size h")] = 0.1,
    exact: Annotated[
        str | None,
        typer.Option("--exact", "-e", help="Exact f'(x) for error reporting"),
    ] = None,
) -> None:
    """Estimate f'(x) with forward, backward and central differences."""
    f = _compile(function)
    exact_fn = _compile(exact)

    table = Table(title=f"f'({at:g}) with h = {step:g}")
    table.add_column("Method", style="cyan", no_wrap=True)
    table.add_column("Order", justify="right")
    table.add_column("Estimate", justify="right")
    table.add_column("Error", justify="right")

    try:
        reference = None if exact_fn is None else exact_fn(at)
        rows = [
            (m.value, m.order, calculus.differentiate(f, at, step, method=m))
            for m in DifferenceMethod
        ]
        rows.append(("richardson", 4, calculus.richardson_extrapolation(f, at, step)))
    except NumericsLabError as e:
        _fail(e)

    for name, order, estimate in rows:
        error = "-" if reference is None else f"{abs(estimate - reference):.3e}"
        table.add_row(name, str(order), f"{estimate:.12g}", error)
    console.print(table)


@app.command()  # type: ignore[misc]
def integrate(
    function: Annotated[
        str,
        typer.Option("--function", "-f", help="Integrand f(x), e.g. 'exp(-x^2)'"),
    ] = "exp(-x^2)",
    lower: Annotated[float, typer.Option("--lower", "-a", help="Lower limit")] = 0.0,
    upper: Annotated[float, typer.Option("--upper", "-b", help="Upper limit")] = 1.0,
    subintervals: Annotated[
        int,
        typer.Option("--subintervals", "-n", min=1, help="Number of subintervals"),
    ] = 4,
    method: Annotated[
        str | None,
        typer.Option("--method", "-m", help="midpoint, trapezoid or simpson (default: all)"),
    ] = None,
) -> None:
    """Approximate the integral of f over [a, b]."""
    f = _compile(function)
    methods = [_parse_enum(QuadratureMethod, method)] if method else list(QuadratureMethod)

    table = Table(title=f"Integral of {escape(function)} over [{lower:g}, {upper:g}]")
    table.add_column("Method", style="cyan", no_wrap=True)
    table.add_column("n", justify="right")
    table.add_column("Value", justify="right")

    try:
        for quadrature_method in methods:
            result = calculus.integrate(
                f, lower, upper, subintervals, method=quadrature_method
            )
            table.add_row(quadrature_method.value, str(result.n), f"{result.value:.12g}")
    except NumericsLabError as e:
        _fail(e)

    console.print(table)


def _system(matrix: str | None, rhs: str | None) -> tuple[list, list]:
    if matrix is None and rhs is None:
        system = default_system()
        return system.matrix.tolist(), system.rhs.tolist()
    if matrix is None or rhs is None:
        raise typer.BadParameter("--matrix and --rhs must be given together")
    return _parse_matrix(matrix), _parse_vector(rhs)


if __name__ == "__main__":
    app()
