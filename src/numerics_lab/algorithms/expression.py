"""Sandboxed evaluation of user-entered math formulas.

Formulas such as ``"-2*t*y"`` or ``"exp(-x^2)"`` are parsed into a Python
abstract syntax tree and checked against a whitelist before anything is
evaluated. Evaluation walks the tree against a fixed set of variable
bindings; nothing is ever compiled or executed as code.

Accepted grammar:
- numeric literals and the names of the bound variables
- constants pi, e, tau
- unary + and -, binary + - * / ** % (``^`` is read as ``**``)
- calls to the functions in ``FUNCTIONS`` with positional arguments

Anything else fails with ParseError; evaluation failures (math domain
errors, division by zero, overflow, non-finite results) fail with
EvaluationError instead of yielding a silent 0 or NaN.
"""

from __future__ import annotations

import ast
import math
import operator
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from numerics_lab.exceptions import EvaluationError, ParseError

MAX_EXPRESSION_LENGTH = 500

CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "tau": math.tau,
}

FUNCTIONS: dict[str, Callable[..., float]] = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "atan2": math.atan2,
    "sinh": math.sinh,
    "cosh": math.cosh,
    "tanh": math.tanh,
    "exp": math.exp,
    "log": math.log,
    "ln": math.log,
    "log10": math.log10,
    "log2": math.log2,
    "sqrt": math.sqrt,
    "abs": abs,
    "floor": math.floor,
    "ceil": math.ceil,
    "pow": math.pow,
    "hypot": math.hypot,
    "min": min,
    "max": max,
}

_BINARY_OPERATORS: dict[type[ast.operator], Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
    ast.Mod: operator.mod,
}

_UNARY_OPERATORS: dict[type[ast.unaryop], Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


@dataclass(frozen=True, slots=True)
class Expression:
    """A validated formula over a fixed set of variable names."""

    source: str
    """Original text as entered."""

    variables: tuple[str, ...]
    """Names that must be bound at evaluation time."""

    tree: ast.Expression

    def evaluate(self, **bindings: float) -> float:
        """Evaluate with the given variable values.

        Raises:
            EvaluationError: For missing or extra bindings, math errors or a
                non-finite result.
        """
        missing = set(self.variables) - bindings.keys()
        extra = bindings.keys() - set(self.variables)
        if missing or extra:
            raise EvaluationError(
                f"Expected bindings for {sorted(self.variables)}, "
                f"missing {sorted(missing)}, unexpected {sorted(extra)}",
                expression=self.source,
                bindings=bindings,
            )

        values = {name: float(value) for name, value in bindings.items()}
        try:
            result = _evaluate(self.tree.body, values)
        except (ArithmeticError, ValueError, TypeError) as e:
            raise EvaluationError(
                f"Cannot evaluate '{self.source}' at {values}: {e}",
                expression=self.source,
                bindings=values,
            ) from e

        if isinstance(result, complex) or not math.isfinite(result):
            raise EvaluationError(
                f"'{self.source}' is not a finite real number at {values}",
                expression=self.source,
                bindings=values,
            )
        return float(result)

    def __call__(self, *args: float) -> float:
        """Evaluate with positional values in ``variables`` order."""
        if len(args) != len(self.variables):
            raise EvaluationError(
                f"Expected {len(self.variables)} arguments {self.variables}, "
                f"got {len(args)}",
                expression=self.source,
            )
        return self.evaluate(**dict(zip(self.variables, args)))


def parse_expression(text: str, variables: Sequence[str] = ("x",)) -> Expression:
    """Parse and validate a formula.

    Args:
        text: Formula such as ``"x**2 - 2"`` or ``"-2*t*y"``.
        variables: Names the formula may reference.

    Returns:
        Expression ready for repeated evaluation.

    Raises:
        ParseError: If the text is empty, too long, not valid syntax, or uses
            a construct outside the whitelist.

    Example:
        >>> parse_expression("-2*t*y", ("t", "y")).evaluate(t=1.0, y=0.5)
        -1.0
    """
    if not isinstance(text, str) or not text.strip():
        raise ParseError("Expression is empty", expression=str(text))
    if len(text) > MAX_EXPRESSION_LENGTH:
        raise ParseError(
            f"Expression longer than {MAX_EXPRESSION_LENGTH} characters",
            expression=text,
        )

    variables = tuple(variables)
    for name in variables:
        if not name.isidentifier() or name in CONSTANTS or name in FUNCTIONS:
            raise ValueError(f"Invalid variable name: {name!r}")

    try:
        tree = ast.parse(text.strip().replace("^", "**"), mode="eval")
    except SyntaxError as e:
        raise ParseError(
            f"Invalid syntax in '{text}': {e.msg}",
            expression=text,
            offset=e.offset,
        ) from e

    _validate(tree.body, text, frozenset(variables))
    return Expression(source=text, variables=variables, tree=tree)


def compile_function(
    text: str, variables: Sequence[str] = ("x",)
) -> Callable[..., float]:
    """Parse a formula into a positional callable, e.g. f(t, y)."""
    return parse_expression(text, variables)


def evaluate(text: str, **bindings: float) -> float:
    """One-shot parse and evaluation; variables are the binding names."""
    return parse_expression(text, tuple(bindings)).evaluate(**bindings)


def call_checked(f: Callable[..., float], *args: float, name: str = "f") -> float:
    """Call a user function and insist on a finite real result.

    Plain Python callables get the same guarantee as parsed formulas: math
    errors and non-finite values become EvaluationError.

    Example:
        >>> call_checked(math.sqrt, 4.0)
        2.0
    """
    bindings = {f"arg{i}": float(a) for i, a in enumerate(args)}
    where = ", ".join(f"{a:g}" for a in args)
    try:
        value = f(*args)
    except (ArithmeticError, ValueError) as e:
        raise EvaluationError(
            f"{name}({where}) failed: {e}",
            expression=getattr(f, "source", None),
            bindings=bindings,
        ) from e
    if isinstance(value, complex) or not math.isfinite(value):
        raise EvaluationError(
            f"{name}({where}) is not a finite real number",
            expression=getattr(f, "source", None),
            bindings=bindings,
        )
    return float(value)


# =============================================================================
# INTERNAL HELPERS
# =============================================================================


def _validate(node: ast.AST, source: str, variables: frozenset[str]) -> None:
    """Reject every node type outside the whitelist."""
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise _reject(node, source, f"literal {node.value!r} is not a real number")
    elif isinstance(node, ast.Name):
        if node.id not in variables and node.id not in CONSTANTS:
            raise _reject(node, source, f"unknown name '{node.id}'")
    elif isinstance(node, ast.UnaryOp):
        if type(node.op) not in _UNARY_OPERATORS:
            raise _reject(node, source, "unsupported unary operator")
        _validate(node.operand, source, variables)
    elif isinstance(node, ast.BinOp):
        if type(node.op) not in _BINARY_OPERATORS:
            raise _reject(node, source, "unsupported operator")
        _validate(node.left, source, variables)
        _validate(node.right, source, variables)
    elif isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in FUNCTIONS:
            raise _reject(node, source, "only whitelisted math functions may be called")
        if node.keywords:
            raise _reject(node, source, "keyword arguments are not allowed")
        if not node.args:
            raise _reject(node, source, f"{node.func.id}() needs an argument")
        for arg in node.args:
            _validate(arg, source, variables)
    else:
        raise _reject(node, source, f"{type(node).__name__} is not allowed")


def _reject(node: ast.AST, source: str, reason: str) -> ParseError:
    offset = getattr(node, "col_offset", None)
    return ParseError(f"Unsafe or unsupported expression '{source}': {reason}", source, offset)


def _evaluate(node: ast.AST, values: dict[str, float]) -> float:
    if isinstance(node, ast.Constant):
        return float(node.value)
    if isinstance(node, ast.Name):
        if node.id in values:
            return values[node.id]
        return CONSTANTS[node.id]
    if isinstance(node, ast.UnaryOp):
        return _UNARY_OPERATORS[type(node.op)](_evaluate(node.operand, values))
    if isinstance(node, ast.BinOp):
        left = _evaluate(node.left, values)
        right = _evaluate(node.right, values)
        return _BINARY_OPERATORS[type(node.op)](left, right)
    if isinstance(node, ast.Call):
        args = [_evaluate(arg, values) for arg in node.args]
        return FUNCTIONS[node.func.id](*args)  # type: ignore[attr-defined]
    raise TypeError(f"Unexpected node {type(node).__name__}")


__all__ = [
    "CONSTANTS",
    "FUNCTIONS",
    "Expression",
    "parse_expression",
    "compile_function",
    "evaluate",
    "call_checked",
]
