"""Tests for method identifiers."""

import pytest

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


class TestLinearMethod:
    """Tests for LinearMethod enum."""

    def test_all_methods_defined(self) -> None:
        """Verify all expected methods exist."""
        assert {m.value for m in LinearMethod} == {"gauss", "lu", "jacobi", "gauss_seidel"}

    def test_is_iterative(self) -> None:
        """Only the relaxation methods are iterative."""
        assert LinearMethod.JACOBI.is_iterative
        assert LinearMethod.GAUSS_SEIDEL.is_iterative
        assert not LinearMethod.GAUSS.is_iterative
        assert not LinearMethod.LU.is_iterative


class TestOdeMethod:
    """Tests for OdeMethod enum."""

    def test_orders(self) -> None:
        """Global orders of accuracy."""
        assert [m.order for m in OdeMethod] == [1, 2, 4]


class TestRootMethod:
    """Tests for RootMethod enum."""

    def test_all_methods_defined(self) -> None:
        """Verify all expected methods exist."""
        assert {m.value for m in RootMethod} == {"bisection", "fixed_point", "newton", "secant"}

    def test_only_bisection_brackets(self) -> None:
        """Bisection is the only bracketing method."""
        assert [m for m in RootMethod if m.is_bracketing] == [RootMethod.BISECTION]

    def test_orders(self) -> None:
        """Newton is quadratic, secant superlinear."""
        assert RootMethod.NEWTON.order == 2.0
        assert RootMethod.SECANT.order == pytest.approx(1.618, abs=1e-3)
        assert RootMethod.BISECTION.order == 1.0


class TestCalculusMethods:
    """Tests for DifferenceMethod and QuadratureMethod."""

    def test_difference_orders(self) -> None:
        """Central differences are second order."""
        assert [m.order for m in DifferenceMethod] == [1, 1, 2]

    def test_quadrature_orders(self) -> None:
        """Simpson is fourth order."""
        assert [m.order for m in QuadratureMethod] == [2, 2, 4]

    def test_parse(self) -> None:
        """Names are parsed leniently."""
        assert parse_method(QuadratureMethod, "Simpson") is QuadratureMethod.SIMPSON
        assert parse_method(RootMethod, "fixed-point") is RootMethod.FIXED_POINT


class TestParseMethod:
    """Tests for parse_method."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("gauss_seidel", IterativeMethod.GAUSS_SEIDEL),
            ("Gauss-Seidel", IterativeMethod.GAUSS_SEIDEL),
            ("gauss seidel", IterativeMethod.GAUSS_SEIDEL),
            ("JACOBI", IterativeMethod.JACOBI),
        ],
    )
    def test_lenient_names(self, name: str, expected: IterativeMethod) -> None:
        """Case, hyphens and spaces are normalized."""
        assert parse_method(IterativeMethod, name) is expected

    def test_enum_passthrough(self) -> None:
        """Enum members are returned unchanged."""
        assert parse_method(OdeMethod, OdeMethod.RK4) is OdeMethod.RK4

    def test_unknown_name(self) -> None:
        """Unknown names list the valid choices."""
        with pytest.raises(ValueError, match="Unknown InterpolationMethod"):
            parse_method(InterpolationMethod, "chebyshev")

    def test_member_of_other_enum_parsed_by_value(self) -> None:
        """A member of a sibling enum is matched by its value."""
        assert parse_method(IterativeMethod, LinearMethod.JACOBI) is IterativeMethod.JACOBI
