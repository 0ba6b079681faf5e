"""Tests for the command-line interface."""

import pytest
from typer.testing import CliRunner

from numerics_lab import __version__
from numerics_lab.cli import app


@pytest.fixture
def runner() -> CliRunner:
    """Typer test runner."""
    return CliRunner()


class TestGlobalOptions:
    """Tests for the app callback."""

    def test_version(self, runner: CliRunner) -> None:
        """--version prints the package version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_info(self, runner: CliRunner) -> None:
        """info lists methods and tolerances."""
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "gauss_seidel" in result.output
        assert "rk4" in result.output
        assert "pivot" in result.output


class TestSolve:
    """Tests for the solve command."""

    def test_default_system(self, runner: CliRunner) -> None:
        """Without arguments the classroom system is solved."""
        result = runner.invoke(app, ["solve"])
        assert result.exit_code == 0
        assert "[2, 4, 3]" in result.output

    def test_iterative_method(self, runner: CliRunner) -> None:
        """Iterative methods report convergence."""
        result = runner.invoke(app, ["solve", "--method", "gauss-seidel"])
        assert result.exit_code == 0
        assert "converged" in result.output

    def test_steps(self, runner: CliRunner) -> None:
        """--steps prints the elimination log."""
        result = runner.invoke(app, ["solve", "-A", "2,1;1,3", "-b", "3,5", "--steps"])
        assert result.exit_code == 0
        assert "Initial augmented system" in result.output
        assert "[0.8, 1.4]" in result.output

    def test_singular(self, runner: CliRunner) -> None:
        """Numerical failures exit with status 1."""
        result = runner.invoke(app, ["solve", "-A", "1,2;2,4", "-b", "1,2"])
        assert result.exit_code == 1
        assert "singular" in result.output

    def test_matrix_without_rhs(self, runner: CliRunner) -> None:
        """--matrix needs --rhs."""
        result = runner.invoke(app, ["solve", "-A", "1,0;0,1"])
        assert result.exit_code == 2

    def test_unknown_method(self, runner: CliRunner) -> None:
        """Unknown method names are usage errors."""
        result = runner.invoke(app, ["solve", "--method", "cramer"])
        assert result.exit_code == 2

    def test_bad_number(self, runner: CliRunner) -> None:
        """Malformed numbers are usage errors."""
        result = runner.invoke(app, ["solve", "-A", "1,x;0,1", "-b", "1,1"])
        assert result.exit_code == 2


class TestEigen:
    """Tests for the eigen command."""

    def test_power_method(self, runner: CliRunner) -> None:
        """Dominant eigenvalue of diag(2, 3)."""
        result = runner.invoke(app, ["eigen", "-A", "2,0;0,3"])
        assert result.exit_code == 0
        assert "converged" in result.output
        assert "λ = " in result.output

    def test_empty_budget(self, runner: CliRunner) -> None:
        """--max-iter below 1 is a usage error, never a nan estimate."""
        result = runner.invoke(app, ["eigen", "-A", "2,0;0,3", "--max-iter", "0"])
        assert result.exit_code == 2
        assert "nan" not in result.output


class TestInterpolate:
    """Tests for the interpolate command."""

    def test_all_methods(self, runner: CliRunner) -> None:
        """Without --method every interpolant is shown."""
        result = runner.invoke(app, ["interpolate", "--at", "2.5"])
        assert result.exit_code == 0
        for name in ("lagrange", "newton", "spline"):
            assert name in result.output

    def test_out_of_domain(self, runner: CliRunner) -> None:
        """Spline evaluation outside the nodes fails with status 1."""
        result = runner.invoke(app, ["interpolate", "--at", "10", "--method", "spline"])
        assert result.exit_code == 1
        assert "outside" in result.output

    def test_duplicate_nodes(self, runner: CliRunner) -> None:
        """Repeated x-values fail with status 1."""
        result = runner.invoke(app, ["interpolate", "--at", "0", "-p", "1:2,1:3"])
        assert result.exit_code == 1

    def test_bad_points(self, runner: CliRunner) -> None:
        """Points must be x:y pairs."""
        result = runner.invoke(app, ["interpolate", "--at", "0", "-p", "1,2"])
        assert result.exit_code == 2


class TestOde:
    """Tests for the ode command."""

    def test_default_problem(self, runner: CliRunner) -> None:
        """All integrators run on the classroom problem."""
        result = runner.invoke(app, ["ode"])
        assert result.exit_code == 0
        for name in ("euler", "heun", "rk4"):
            assert name in result.output

    def test_formula(self, runner: CliRunner) -> None:
        """User formulas are parsed in the sandbox."""
        result = runner.invoke(
            app,
            ["ode", "--rhs", "y", "--exact", "exp(t)", "--tf", "1", "--method", "rk4"],
        )
        assert result.exit_code == 0
        assert "rk4" in result.output

    def test_unsafe_formula(self, runner: CliRunner) -> None:
        """Code injection is a usage error, never executed."""
        result = runner.invoke(app, ["ode", "--rhs", "__import__('os').getcwd()"])
        assert result.exit_code == 2

    def test_invalid_step(self, runner: CliRunner) -> None:
        """Non-positive step sizes fail with status 1."""
        result = runner.invoke(app, ["ode", "--step", "0"])
        assert result.exit_code == 1


class TestCompare:
    """Tests for the compare command."""

    def test_default_system(self, runner: CliRunner) -> None:
        """Every linear method appears in the table."""
        result = runner.invoke(app, ["compare"])
        assert result.exit_code == 0
        for method in ("gauss", "lu", "jacobi", "gauss_seidel"):
            assert method in result.output


class TestRoot:
    """Tests for the root command."""

    def test_default_equation(self, runner: CliRunner) -> None:
        """x^2 - 2 on [1, 2] with every method but fixed-point iteration."""
        result = runner.invoke(app, ["root"])
        assert result.exit_code == 0
        for name in ("bisection", "newton", "secant"):
            assert name in result.output
        assert "fixed_point" not in result.output
        assert "1.41421356" in result.output

    def test_fixed_point(self, runner: CliRunner) -> None:
        """--g enables fixed-point iteration."""
        result = runner.invoke(
            app,
            ["root", "-m", "fixed_point", "--g", "cos(x)", "-f", "cos(x) - x"]
            + ["-a", "0", "-b", "1"],
        )
        assert result.exit_code == 0
        assert "0.73908513" in result.output

    def test_fixed_point_without_g(self, runner: CliRunner) -> None:
        """fixed_point alone needs --g."""
        result = runner.invoke(app, ["root", "-m", "fixed_point"])
        assert result.exit_code == 2

    def test_bad_bracket(self, runner: CliRunner) -> None:
        """Bisection without a sign change fails with status 1."""
        result = runner.invoke(app, ["root", "-m", "bisection", "-a", "2", "-b", "3"])
        assert result.exit_code == 1
        assert "same sign" in result.output

    def test_steps(self, runner: CliRunner) -> None:
        """--steps prints each iterate."""
        result = runner.invoke(app, ["root", "-m", "newton", "--steps"])
        assert result.exit_code == 0
        assert "n=  0" in result.output

    def test_empty_budget(self, runner: CliRunner) -> None:
        """--max-iter below 1 is a usage error."""
        result = runner.invoke(app, ["root", "--max-iter", "0"])
        assert result.exit_code == 2


class TestCalculusCommands:
    """Tests for the differentiate and integrate commands."""

    def test_differentiate(self, runner: CliRunner) -> None:
        """All difference formulas plus Richardson are shown."""
        result = runner.invoke(
            app, ["differentiate", "-f", "x^2", "-x", "1", "--exact", "2*x"]
        )
        assert result.exit_code == 0
        for name in ("forward", "backward", "central", "richardson"):
            assert name in result.output
        assert "2.1" in result.output

    def test_differentiate_domain_error(self, runner: CliRunner) -> None:
        """Sampling outside the domain fails with status 1."""
        result = runner.invoke(app, ["differentiate", "-f", "log(x)", "-x", "0"])
        assert result.exit_code == 1

    def test_integrate(self, runner: CliRunner) -> None:
        """Trapezoid of x over [0, 2] with one subinterval."""
        result = runner.invoke(
            app, ["integrate", "-f", "x", "-a", "0", "-b", "2", "-n", "1", "-m", "trapezoid"]
        )
        assert result.exit_code == 0
        assert "trapezoid" in result.output
        assert " 2 " in result.output

    def test_integrate_all_methods(self, runner: CliRunner) -> None:
        """Without --method every rule is shown."""
        result = runner.invoke(app, ["integrate"])
        assert result.exit_code == 0
        for name in ("midpoint", "trapezoid", "simpson"):
            assert name in result.output

    def test_simpson_odd_n(self, runner: CliRunner) -> None:
        """Simpson with an odd n fails with status 1."""
        result = runner.invoke(app, ["integrate", "-n", "3", "-m", "simpson"])
        assert result.exit_code == 1
        assert "even" in result.output

    def test_unsafe_formula(self, runner: CliRunner) -> None:
        """Formulas are parsed in the sandbox."""
        result = runner.invoke(app, ["integrate", "-f", "open('x')"])
        assert result.exit_code == 2
