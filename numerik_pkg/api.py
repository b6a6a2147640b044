"""Public API for numerik - text in, typed results out, no side effects.

Each function takes expressions, matrices and numbers as text (or already
parsed values), compiles them with the parser and runs one kernel
operation. Bad text never raises: it comes back as a failed result with
``error_code == "PARSE_ERROR"``.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from . import differentiation, linear, ode, optimize, quadrature, roots
from .config import (
    DEFAULT_MAX_ITER,
    DEFAULT_STEP_SIZES,
    DEFAULT_TOLERANCE,
    GAUSS_SEIDEL_MAX_ITER,
    GOLDEN_SECTION_MAX_ITER,
    GRADIENT_MAX_ITER,
)
from .logging_config import get_logger
from .parser import (
    compile_bivariate,
    compile_scalar,
    parse_matrix,
    parse_number,
    parse_vector,
    parse_vectors,
)
from .types import (
    INTERNAL_ERROR,
    PARSE_ERROR,
    ComparisonResult,
    DifferenceResult,
    IntegrationResult,
    KernelResult,
    LinearSolveResult,
    ODEResult,
    OptimizationResult,
    ParseError,
    RootResult,
    ValidationError,
)

logger = get_logger("api")

Number = float | int | str


def _returns_failure(failure: Callable[[str, str], KernelResult]):
    """Turn parser exceptions (and anything unexpected) into a failed result."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (ParseError, ValidationError) as e:
                logger.info("Rejected input for %s: %s", func.__name__, e)
                return failure(str(e), PARSE_ERROR)
            except Exception as e:
                logger.error("Unexpected error in %s", func.__name__, exc_info=True)
                return failure(f"Unexpected error: {e}", INTERNAL_ERROR)

        return wrapper

    return decorator


def _root_failure(method: str):
    return lambda message, code: RootResult(
        ok=False, method=method, error=message, error_code=code
    )


def _optimization_failure(method: str):
    return lambda message, code: OptimizationResult(
        ok=False, method=method, error=message, error_code=code
    )


def _comparison_failure(kind: str):
    return lambda message, code: ComparisonResult(
        ok=False, kind=kind, error=message, error_code=code
    )


def _matrix(value: str | Sequence[Sequence[float]]):
    return parse_matrix(value) if isinstance(value, str) else value


def _vector(value: str | Sequence[float]):
    return parse_vector(value) if isinstance(value, str) else value


def _vectors(value: str | Sequence[Sequence[float]]):
    return parse_vectors(value) if isinstance(value, str) else value


@_returns_failure(_root_failure("bisection"))
def bisection(
    expression: str,
    a: Number,
    b: Number,
    tol: Number = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITER,
    variable: str = "x",
) -> RootResult:
    """Find a root of an expression inside [a, b] by bisection.

    Example:
        >>> from numerik_pkg.api import bisection
        >>> result = bisection("x^3 - x - 2", 1, 2)
        >>> round(result.root, 4)
        1.5214
    """
    f = compile_scalar(expression, variable)
    return roots.bisect(f, parse_number(a), parse_number(b), parse_number(tol), max_iter)


@_returns_failure(_root_failure("newton"))
def newton(
    expression: str,
    x0: Number,
    tol: Number = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITER,
    derivative: str | None = None,
    variable: str = "x",
) -> RootResult:
    """Newton-Raphson from x0.

    The derivative is taken symbolically with SymPy unless ``derivative``
    gives it explicitly.
    """
    f = compile_scalar(expression, variable)
    df = compile_scalar(derivative, variable) if derivative else f.derivative(variable)
    return roots.newton_raphson(f, df, parse_number(x0), parse_number(tol), max_iter)


@_returns_failure(_comparison_failure("roots"))
def root_comparison(
    expression: str,
    a: Number,
    b: Number,
    tol: Number = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITER,
    variable: str = "x",
) -> ComparisonResult:
    """Run bisection and Newton-Raphson side by side on the same bracket."""
    f = compile_scalar(expression, variable)
    return roots.compare_root_finders(
        f,
        parse_number(a),
        parse_number(b),
        parse_number(tol),
        df=f.derivative(variable),
        max_iter=max_iter,
    )


@_returns_failure(
    lambda message, code: LinearSolveResult(
        ok=False, method="gauss_seidel", error=message, error_code=code
    )
)
def gauss_seidel(
    matrix: str | Sequence[Sequence[float]],
    rhs: str | Sequence[float],
    tol: Number = DEFAULT_TOLERANCE,
    max_iter: int = GAUSS_SEIDEL_MAX_ITER,
    x0: str | Sequence[float] | None = None,
    strict: bool = False,
) -> LinearSolveResult:
    """Solve Ax = b with Gauss-Seidel sweeps.

    Args:
        matrix: Rows separated by ";" or newlines (e.g. "4 1; 2 3")
        rhs: Right-hand side entries (e.g. "1 2")
        tol: Stop once the largest change in a sweep is below tol
        max_iter: Sweep cap
        x0: Starting vector, zeros when omitted
        strict: Reject matrices that are not diagonally dominant
    """
    start = _vector(x0) if x0 is not None else None
    return linear.gauss_seidel(
        _matrix(matrix), _vector(rhs), parse_number(tol), max_iter, start, strict
    )


@_returns_failure(_comparison_failure("lu"))
def lu_decomposition(
    matrix: str | Sequence[Sequence[float]],
    rhs: str | Sequence[Sequence[float]],
) -> ComparisonResult:
    """Factor PA = LU once and solve every right-hand side with the factors.

    Args:
        matrix: Square matrix text or nested sequence
        rhs: One or more right-hand sides; in text form separated by "|"

    Returns:
        ComparisonResult of kind "lu": one row per right-hand side with its
        solution and residual; ``results["factorization"]`` holds P, L and U.
    """
    A = _matrix(matrix)
    vectors = _vectors(rhs)
    factorization, solutions = linear.solve_many(A, vectors)
    results = {"factorization": factorization, "solutions": solutions}
    if not factorization.ok:
        return ComparisonResult(
            ok=False,
            kind="lu",
            error=factorization.error,
            error_code=factorization.error_code,
            results=results,
        )
    for index, result in enumerate(solutions, start=1):
        if not result.ok:
            return ComparisonResult(
                ok=False,
                kind="lu",
                error=f"Right-hand side {index}: {result.error}",
                error_code=result.error_code,
                results=results,
            )
    rows = [
        {"rhs": index, "solution": result.solution, "residual": result.residual_norm}
        for index, result in enumerate(solutions, start=1)
    ]
    return ComparisonResult(ok=True, kind="lu", rows=tuple(rows), results=results)


@_returns_failure(_comparison_failure("linear"))
def linear_systems(
    matrix: str | Sequence[Sequence[float]],
    rhs: str | Sequence[Sequence[float]],
    tol: Number = DEFAULT_TOLERANCE,
    max_iter: int = GAUSS_SEIDEL_MAX_ITER,
) -> ComparisonResult:
    """Direct LU against Gauss-Seidel on the same matrix and right-hand sides."""
    return linear.compare_solvers(_matrix(matrix), _vectors(rhs), parse_number(tol), max_iter)


@_returns_failure(
    lambda message, code: IntegrationResult(ok=False, error=message, error_code=code)
)
def simpsons_rule(
    expression: str, a: Number, b: Number, n: int | str, variable: str = "x"
) -> IntegrationResult:
    """Composite Simpson rule over [a, b] with n (even) sub-intervals.

    Example:
        >>> from numerik_pkg.api import simpsons_rule
        >>> round(simpsons_rule("sin(x)", 0, "pi", 10).value, 3)
        2.0
    """
    f = compile_scalar(expression, variable)
    if isinstance(n, str):
        n = parse_number(n)
    return quadrature.simpson(f, parse_number(a), parse_number(b), n)


@_returns_failure(
    lambda message, code: DifferenceResult(ok=False, error=message, error_code=code)
)
def numerical_differentiation(
    expression: str,
    x0: Number,
    step_sizes: str | Sequence[float] = DEFAULT_STEP_SIZES,
    derivative: str | None = None,
    variable: str = "x",
) -> DifferenceResult:
    """Forward, backward and central differences over a sweep of step sizes.

    Errors are measured against the SymPy derivative of the expression
    unless ``derivative`` gives the exact derivative explicitly.
    """
    f = compile_scalar(expression, variable)
    exact = compile_scalar(derivative, variable) if derivative else f.derivative(variable)
    return differentiation.estimate(f, exact, parse_number(x0), _vector(step_sizes))


@_returns_failure(_optimization_failure("golden_section"))
def golden_section(
    expression: str,
    a: Number,
    b: Number,
    tol: Number = DEFAULT_TOLERANCE,
    max_iter: int = GOLDEN_SECTION_MAX_ITER,
    variable: str = "x",
) -> OptimizationResult:
    """Minimize a unimodal expression on [a, b]."""
    f = compile_scalar(expression, variable)
    return optimize.golden_section(
        f, parse_number(a), parse_number(b), parse_number(tol), max_iter
    )


@_returns_failure(_optimization_failure("gradient_descent"))
def gradient_descent(
    expression: str,
    x0: Number,
    y0: Number,
    alpha: Number,
    tol: Number = DEFAULT_TOLERANCE,
    max_iter: int = GRADIENT_MAX_ITER,
    variables: tuple[str, str] = ("x", "y"),
    numeric_gradient: bool = False,
) -> OptimizationResult:
    """Fixed-step gradient descent on an expression of two variables.

    Example:
        >>> from numerik_pkg.api import gradient_descent
        >>> result = gradient_descent("(v-55)^2 + (m-8)^2 + 300", 40, 5, 0.1,
        ...                           variables=("v", "m"))
        >>> [round(c, 2) for c in result.point]
        [55.0, 8.0]
    """
    f = compile_bivariate(expression, tuple(variables))
    if numeric_gradient:
        grad_x = grad_y = None
    else:
        grad_x, grad_y = f.derivative(variables[0]), f.derivative(variables[1])
    return optimize.gradient_descent(
        f,
        grad_x,
        grad_y,
        parse_number(x0),
        parse_number(y0),
        parse_number(alpha),
        parse_number(tol),
        max_iter,
    )


@_returns_failure(
    lambda message, code: ODEResult(ok=False, method="ode", error=message, error_code=code)
)
def ode_solve(
    expression: str,
    t0: Number,
    y0: Number,
    t1: Number,
    h: Number,
    method: str = "rk45",
) -> ODEResult:
    """Integrate y' = expression(t, y) from t0 to t1 with a fixed step h."""
    f = compile_bivariate(expression, ("t", "y"))
    return ode.integrate(
        method, f, parse_number(t0), parse_number(y0), parse_number(t1), parse_number(h)
    )


@_returns_failure(_comparison_failure("ode"))
def ode_comparison(
    expression: str,
    t0: Number,
    y0: Number,
    t1: Number,
    exact: str | None = None,
    steps: Mapping[str, Any] | None = None,
) -> ComparisonResult:
    """Run rk23, rk45 and dop853 on the same problem.

    Args:
        expression: Right-hand side in t and y (e.g. "y - t^2 + 1")
        t0: Initial time
        y0: Initial value
        t1: Final time
        exact: Closed-form solution in t, used to report errors at t1
        steps: Step size per method name; defaults per method otherwise
    """
    f = compile_bivariate(expression, ("t", "y"))
    y_exact = compile_scalar(exact, "t") if exact else None
    step_sizes = None
    if steps is not None:
        step_sizes = {method: parse_number(h) for method, h in steps.items()}
    return ode.compare_methods(
        f, parse_number(t0), parse_number(y0), parse_number(t1), y_exact, step_sizes
    )
