"""Input parsing and preprocessing module.

This module handles:
- Input sanitization and validation
- SymPy expression parsing with security validation
- Compilation of expressions into plain float callables for the kernel
- Symbolic first derivatives
- Number, matrix and vector text parsing
- Result formatting for tables
"""

from __future__ import annotations

import math
import re
from functools import lru_cache
from tokenize import TokenError
from typing import Any

import sympy as sp
from sympy import parse_expr

from .config import (
    ALLOWED_SYMPY_NAMES,
    CACHE_SIZE_PARSE,
    GROUP_SEPARATOR,
    MAX_EXPRESSION_DEPTH,
    MAX_EXPRESSION_NODES,
    MAX_INPUT_LENGTH,
    OUTPUT_PRECISION,
    ROW_SEPARATOR,
    TRANSFORMATIONS,
)
from .logging_config import get_logger
from .types import ParseError, ValidationError

logger = get_logger("parser")

# Basic denylist to avoid dangerous tokens before SymPy parsing
FORBIDDEN_TOKENS = (
    "__",
    "import",
    "lambda",
    "eval",
    "exec",
    "open",
    "os.",
    "sys.",
    "subprocess",
    "builtins",
    "getattr",
    "setattr",
    "delattr",
    "compile",
    "globals",
    "locals",
)

UNICODE_REPLACEMENTS = {
    "×": "*",
    "·": "*",
    "÷": "/",
    "−": "-",
    "√": "sqrt",
    "π": "pi",
}

ENTRY_SPLIT_RE = re.compile(r"[,\s]+")

# Exceptions the lambdified math functions raise outside their domain
EVALUATION_ERRORS = (ValueError, ZeroDivisionError, OverflowError, TypeError)


def format_number(val: Any, precision: int = OUTPUT_PRECISION) -> str:
    """Format a numeric value with specified precision.

    Args:
        val: Numeric value to format
        precision: Number of significant digits (default: OUTPUT_PRECISION)

    Returns:
        Formatted string representation of the number
    """
    try:
        fmt = "{:." + str(int(precision)) + "g}"
        return fmt.format(float(val))
    except (ValueError, TypeError, OverflowError):
        return str(val)


def is_balanced(input_str: str) -> tuple[bool, int | None]:
    """Check if parentheses/brackets are balanced. Returns (is_balanced, error_position)."""
    pairs = {"(": ")", "[": "]", "{": "}"}
    stack: list[tuple[str, int]] = []  # (char, position)
    for i, char in enumerate(input_str):
        if char in pairs:
            stack.append((char, i))
        elif char in pairs.values():
            if not stack:
                return False, i
            opening, _ = stack.pop()
            if pairs[opening] != char:
                return False, i
    if stack:
        return False, stack[0][1]  # Return position of first unmatched
    return True, None


def preprocess(input_str: str) -> str:
    """Preprocess input string for parsing.

    Validates length, forbidden tokens and bracket balance, and replaces
    common Unicode operators with their ASCII forms. ``^`` is left alone;
    the parser transformations convert it to ``**``.

    Args:
        input_str: Raw input string from user

    Returns:
        Sanitized string ready for SymPy parsing

    Raises:
        ValidationError: If input is empty, too long, contains forbidden tokens,
                        or has unbalanced parentheses/brackets
    """
    input_str = input_str.strip() if input_str else ""
    if not input_str:
        raise ValidationError("Input cannot be empty", "EMPTY_INPUT")
    if len(input_str) > MAX_INPUT_LENGTH:
        raise ValidationError(
            f"Input too long (>{MAX_INPUT_LENGTH} characters)", "TOO_LONG"
        )

    lowered = input_str.lower()
    for tok in FORBIDDEN_TOKENS:
        if tok in lowered:
            logger.warning(
                "Blocked input containing forbidden token",
                extra={"forbidden_token": tok, "input_length": len(input_str)},
            )
            raise ValidationError(
                f"Input contains forbidden token: {tok}", "FORBIDDEN_TOKEN"
            )

    balanced, position = is_balanced(input_str)
    if not balanced:
        raise ValidationError(
            f"Unbalanced parentheses or brackets at position {position}",
            "UNBALANCED_PARENS",
        )

    for symbol, replacement in UNICODE_REPLACEMENTS.items():
        input_str = input_str.replace(symbol, replacement)
    return input_str


def _validate_expression_tree(
    expr: Any, depth: int = 0, node_count: list[int] | None = None
) -> None:
    """Validate expression tree structure - reject anything but real arithmetic."""
    if node_count is None:
        node_count = [0]
    node_count[0] += 1
    if node_count[0] > MAX_EXPRESSION_NODES:
        raise ValidationError(
            f"Expression too complex (>{MAX_EXPRESSION_NODES} nodes)", "TOO_COMPLEX"
        )
    if depth > MAX_EXPRESSION_DEPTH:
        raise ValidationError(
            f"Expression too deeply nested (>{MAX_EXPRESSION_DEPTH} levels)", "TOO_DEEP"
        )

    if not isinstance(expr, sp.Expr):
        raise ValidationError(
            f"Expression type '{type(expr).__name__}' not allowed", "FORBIDDEN_TYPE"
        )
    if expr.has(sp.zoo, sp.nan, sp.oo, -sp.oo, sp.I):
        raise ValidationError("Expression is undefined or not real", "UNDEFINED")
    if isinstance(expr, (sp.Symbol, sp.Number, sp.NumberSymbol)):
        return
    if isinstance(expr, sp.Function):
        func_name = getattr(expr.func, "__name__", str(expr.func))
        if func_name not in ALLOWED_SYMPY_NAMES:
            logger.warning(
                "Blocked forbidden function", extra={"forbidden_function": func_name}
            )
            raise ValidationError(
                f"Function '{func_name}' not allowed", "FORBIDDEN_FUNCTION"
            )
    elif not isinstance(expr, (sp.Add, sp.Mul, sp.Pow)):
        raise ValidationError(
            f"Expression type '{type(expr).__name__}' not allowed", "FORBIDDEN_TYPE"
        )
    for arg in expr.args:
        _validate_expression_tree(arg, depth + 1, node_count)


@lru_cache(maxsize=CACHE_SIZE_PARSE)
def parse_expression(text: str, variables: tuple[str, ...] = ("x",)) -> sp.Expr:
    """Parse and validate an expression in the given variables.

    Args:
        text: Expression text (e.g. "x^3 - x - 2", "sin(x)", "(v-55)^2 + m")
        variables: Names of the free variables the expression may use

    Returns:
        Validated SymPy expression

    Raises:
        ValidationError: If the text fails sanitization or tree validation
        ParseError: If the text is not a valid expression or uses unknown names
    """
    processed = preprocess(text)
    local_dict: dict[str, Any] = dict(ALLOWED_SYMPY_NAMES)
    for name in variables:
        local_dict[name] = sp.Symbol(name, real=True)
    try:
        expr = parse_expr(
            processed,
            local_dict=local_dict,
            transformations=TRANSFORMATIONS,
            evaluate=True,
        )
    except (SyntaxError, TokenError, TypeError, ValueError, AttributeError) as e:
        raise ParseError(f"Could not parse expression '{text}': {e}") from e

    _validate_expression_tree(expr)
    unknown = sorted(str(s) for s in expr.free_symbols if str(s) not in variables)
    if unknown:
        raise ParseError(
            f"Unknown variable(s) {', '.join(unknown)}; expected {', '.join(variables)}"
        )
    return expr


class CompiledFunction:
    """Plain-float callable built from a validated SymPy expression.

    Evaluation errors outside the function's domain (log of a negative
    number, division by zero, overflow) yield NaN instead of raising, so the
    kernel sees them as non-finite values.
    """

    def __init__(self, expr: sp.Expr, variables: tuple[str, ...] = ("x",)):
        self.expr = expr
        self.variables = tuple(variables)
        symbols = [sp.Symbol(name, real=True) for name in self.variables]
        self._func = sp.lambdify(symbols, expr, modules="math")

    def __call__(self, *args: float) -> float:
        try:
            value = self._func(*(float(a) for a in args))
            return float(value)
        except EVALUATION_ERRORS:
            return math.nan

    def derivative(self, variable: str | None = None) -> CompiledFunction:
        """Return the first derivative with respect to one of the variables."""
        name = variable or self.variables[0]
        if name not in self.variables:
            raise ParseError(f"Variable '{name}' not found in expression")
        return CompiledFunction(
            sp.diff(self.expr, sp.Symbol(name, real=True)), self.variables
        )

    def __repr__(self) -> str:
        return f"CompiledFunction({self.expr}, variables={self.variables})"


def compile_scalar(text: str, variable: str = "x") -> CompiledFunction:
    """Parse text into a ScalarFunction of one variable."""
    return CompiledFunction(parse_expression(text, (variable,)), (variable,))


def compile_bivariate(text: str, variables: tuple[str, str] = ("x", "y")) -> CompiledFunction:
    """Parse text into a BivariateFunction of two variables."""
    if len(variables) != 2:
        raise ParseError("A bivariate function needs exactly two variable names")
    return CompiledFunction(parse_expression(text, tuple(variables)), tuple(variables))


def parse_number(text: Any) -> float:
    """Parse a real scalar such as "0.001", "1e-6" or "pi/2".

    Raises:
        ParseError: If the text is not a finite constant
    """
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        value = float(text)
    else:
        raw = str(text).strip()
        try:
            value = float(raw)
        except ValueError:
            try:
                value = float(parse_expression(raw, ()).evalf())
            except ValidationError as e:
                raise ParseError(f"Invalid number '{raw}': {e}") from e
            except (TypeError, ValueError) as e:
                raise ParseError(f"Invalid number '{raw}'") from e
    if not math.isfinite(value):
        raise ParseError(f"Number must be finite, got {text!r}")
    return value


def parse_vector(text: str) -> list[float]:
    """Parse one vector: entries separated by whitespace or commas."""
    entries = [item for item in ENTRY_SPLIT_RE.split(text.strip()) if item]
    if not entries:
        raise ParseError("Vector is empty")
    return [parse_number(item) for item in entries]


def parse_vectors(text: str, separator: str = GROUP_SEPARATOR) -> list[list[float]]:
    """Parse several right-hand-side vectors separated by ``separator``."""
    groups = [group for group in text.split(separator) if group.strip()]
    if not groups:
        raise ParseError("No vectors given")
    return [parse_vector(group) for group in groups]


def parse_matrix(text: str, separator: str = ROW_SEPARATOR) -> list[list[float]]:
    """Parse a matrix: rows separated by ``separator`` or newlines.

    Row lengths are not checked here; the solvers report non-square input as
    a dimension mismatch.
    """
    rows = [row for row in re.split(f"[{re.escape(separator)}\n]", text) if row.strip()]
    if not rows:
        raise ParseError("Matrix is empty")
    return [parse_vector(row) for row in rows]
