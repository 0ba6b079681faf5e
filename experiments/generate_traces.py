"""Generate convergence traces for numerics-lab visualizations.

This script generates JSON trace files for:
- Linear solver comparison on a random diagonally dominant system
- Power method convergence on a matrix with a prescribed spectrum
- ODE integrator comparison on y' = -2ty over a range of step sizes
- Root finder comparison on x^2 - 2 over [1, 2]

Output JSON files are suitable for web-based visualization.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import numpy as np

from numerics_lab.algorithms.comparison import (
    compare_linear_methods,
    compare_ode_methods,
    compare_root_methods,
)
from numerics_lab.algorithms.eigen import run_power_method
from numerics_lab.algorithms.matrices import create_known_spectrum_matrix, create_linear_system
from numerics_lab.algorithms.ode import DEFAULT_PROBLEM


def _write(output_dir: Path, name: str, payload: dict) -> None:
    output_file = output_dir / name
    with output_file.open("w") as f:
        json.dump(payload, f, indent=2)


def generate_linear_traces(
    matrix_size: int = 50,
    seed: int = 42,
    output_dir: Path | None = None,
) -> None:
    """Generate residual histories for every linear solver.

    Args:
        matrix_size: System dimension.
        seed: Random seed for reproducibility.
        output_dir: Output directory (defaults to experiments/traces/).
    """
    if output_dir is None:
        output_dir = Path(__file__).parent / "traces"
    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"Generating linear solver traces (n={matrix_size})...", end=" ", flush=True)
    system = create_linear_system(matrix_size, seed=seed)
    report = compare_linear_methods(system.matrix, system.rhs, max_iterations=500)

    output = report.to_dict()
    output["metadata"].update({"matrix_size": matrix_size, "seed": seed})
    _write(output_dir, "trace_linear.json", output)

    sweeps = ", ".join(f"{s.method.value}={s.iterations}" for s in report.summaries)
    print(f"✓ {sweeps}")


def generate_power_trace(
    matrix_size: int = 50,
    eigenvalue_gap: float = 1.1,
    seed: int = 42,
    output_dir: Path | None = None,
) -> None:
    """Generate the eigenvalue history of the power method.

    Args:
        matrix_size: Matrix dimension.
        eigenvalue_gap: Ratio λ₁/λ₂ (controls convergence speed).
        seed: Random seed for reproducibility.
        output_dir: Output directory (defaults to experiments/traces/).
    """
    if output_dir is None:
        output_dir = Path(__file__).parent / "traces"
    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"Generating power method trace (n={matrix_size})...", end=" ", flush=True)
    eigenvalues = np.linspace(10.0 / eigenvalue_gap, 1.0, matrix_size)
    eigenvalues[0] = 10.0
    A = create_known_spectrum_matrix(eigenvalues, seed=seed)
    trace = run_power_method(A, max_iterations=2000)

    output = {
        "metadata": {
            "algorithm": "power_method",
            "matrix_size": matrix_size,
            "eigenvalue_gap": eigenvalue_gap,
            "true_eigenvalue": float(eigenvalues[0]),
            "seed": seed,
            "timestamp": datetime.now(UTC).isoformat(),
            "converged": trace.converged,
        },
        "summary": {
            "iterations": trace.iterations,
            "total_time_seconds": trace.total_time,
            "final_eigenvalue": trace.final_eigenvalue,
        },
        "trace": [
            {
                "iteration": step.iteration,
                "eigenvalue": step.eigenvalue,
                "absolute_error": abs(step.eigenvalue - float(eigenvalues[0])),
            }
            for step in trace.history
        ],
    }
    _write(output_dir, "trace_power.json", output)

    print(f"✓ {trace.iterations} iterations, converged={trace.converged}")


def generate_ode_traces(
    step_sizes: tuple[float, ...] = (0.2, 0.1, 0.05, 0.025),
    output_dir: Path | None = None,
) -> None:
    """Generate integrator traces of the classroom problem for several step sizes.

    Args:
        step_sizes: Step sizes to run, coarsest first.
        output_dir: Output directory (defaults to experiments/traces/).
    """
    if output_dir is None:
        output_dir = Path(__file__).parent / "traces"
    output_dir.mkdir(parents=True, exist_ok=True)

    print("Generating ODE traces...")
    problem = DEFAULT_PROBLEM
    for h in step_sizes:
        report = compare_ode_methods(
            problem.rhs, h, problem.t0, problem.tf, problem.y0, problem.exact
        )
        _write(output_dir, f"trace_ode_h{h:g}.json", report.to_dict())

        errors = ", ".join(f"{name}={error:.2e}" for name, error in report.final_errors().items())
        print(f"  h={h:g}: {errors}")


def generate_root_traces(output_dir: Path | None = None) -> None:
    """Generate iteration traces of every root finder on x^2 - 2.

    Args:
        output_dir: Output directory (defaults to experiments/traces/).
    """
    if output_dir is None:
        output_dir = Path(__file__).parent / "traces"
    output_dir.mkdir(parents=True, exist_ok=True)

    print("Generating root finder traces...", end=" ", flush=True)
    report = compare_root_methods(
        lambda x: x * x - 2.0,
        1.0,
        2.0,
        df=lambda x: 2.0 * x,
        g=lambda x: (x + 2.0 / x) / 2.0,
    )
    _write(output_dir, "trace_roots.json", report.to_dict())

    counts = ", ".join(f"{s.method.value}={s.iterations}" for s in report.summaries)
    print(f"✓ {counts}")


def main() -> None:
    """Generate all traces for numerics-lab visualizations."""
    print("=" * 70)
    print("Numerics Lab - Trace Data Generation")
    print("=" * 70)

    output_dir = Path(__file__).parent / "traces"

    generate_linear_traces(output_dir=output_dir)
    generate_power_trace(output_dir=output_dir)
    generate_ode_traces(output_dir=output_dir)
    generate_root_traces(output_dir=output_dir)

    print("\n" + "=" * 70)
    print("✓ All traces generated successfully!")
    print("=" * 70)
    print(f"\nOutput directory: {output_dir.absolute()}")
    print("\nGenerated files:")
    for trace_file in sorted(output_dir.glob("trace_*.json")):
        size_kb = trace_file.stat().st_size / 1024
        print(f"  - {trace_file.name} ({size_kb:.1f} KB)")


if __name__ == "__main__":
    main()
