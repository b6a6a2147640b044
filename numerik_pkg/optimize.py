"""Unconstrained minimization: golden-section search and fixed-step gradient descent."""

from __future__ import annotations

import math
from collections.abc import Callable

from .config import (
    DEFAULT_TOLERANCE,
    GOLDEN_SECTION_MAX_ITER,
    GRADIENT_MAX_ITER,
    NUMERIC_DIFF_STEP,
)
from .logging_config import get_logger
from .types import (
    INVALID_INPUT,
    NON_FINITE_EVALUATION,
    IterationRecord,
    NumericalError,
    OptimizationResult,
)
from .validation import check_finite, check_iteration_parameters

logger = get_logger("optimize")

PHI = (math.sqrt(5) - 1) / 2

ScalarFunction = Callable[[float], float]
BivariateFunction = Callable[[float, float], float]


def golden_section(
    f: ScalarFunction,
    a: float,
    b: float,
    tol: float = DEFAULT_TOLERANCE,
    max_iter: int = GOLDEN_SECTION_MAX_ITER,
) -> OptimizationResult:
    """Minimize a unimodal f on [a, b].

    The interior points c = b - phi(b - a) and d = a + phi(b - a) split the
    bracket in the golden ratio; the point that survives a shrink becomes the
    other interior point of the next bracket, so each iteration costs one new
    evaluation. For maximization pass -f.

    Args:
        f: Function to minimize
        a: Left end of the bracket
        b: Right end of the bracket, greater than a
        tol: Stop once |b - a| < tol
        max_iter: Iteration cap

    Returns:
        OptimizationResult with the bracket midpoint; the trace holds the
        bracket after every shrink.
    """
    method = "golden_section"
    try:
        check_iteration_parameters(tol, max_iter)
        a, b = float(a), float(b)
        check_finite(a=a, b=b)
        if a >= b:
            raise NumericalError("a and b must satisfy a < b", INVALID_INPUT)
    except NumericalError as e:
        return OptimizationResult(ok=False, method=method, error=str(e), error_code=e.code)

    c = b - PHI * (b - a)
    d = a + PHI * (b - a)
    fc, fd = f(c), f(d)
    evaluations = 2
    trace = []
    if not (math.isfinite(fc) and math.isfinite(fd)):
        return OptimizationResult(
            ok=False,
            method=method,
            error="f is not finite at the initial interior points",
            error_code=NON_FINITE_EVALUATION,
            evaluations=evaluations,
        )

    converged = abs(b - a) < tol
    while not converged and len(trace) < max_iter:
        if fc < fd:
            b, d, fd = d, c, fc
            c = b - PHI * (b - a)
            fc = f(c)
        else:
            a, c, fc = c, d, fd
            d = a + PHI * (b - a)
            fd = f(d)
        evaluations += 1
        values = {"a": a, "b": b, "length": b - a, "c": c, "d": d, "fc": fc, "fd": fd}
        if not (math.isfinite(fc) and math.isfinite(fd)):
            trace.append(IterationRecord(len(trace) + 1, values, "f is not finite"))
            return OptimizationResult(
                ok=False,
                method=method,
                error="f returned a non-finite value inside the bracket",
                error_code=NON_FINITE_EVALUATION,
                iterations=len(trace),
                evaluations=evaluations,
                trace=tuple(trace),
            )
        trace.append(IterationRecord(len(trace) + 1, values))
        converged = abs(b - a) < tol

    warnings = ()
    if not converged:
        logger.warning("Golden-section search stopped at the iteration cap (%d)", max_iter)
        warnings = (f"Iteration cap {max_iter} reached with bracket length {b - a:g}",)
    point = (a + b) / 2
    return OptimizationResult(
        ok=True,
        method=method,
        point=(point,),
        value=f(point),
        iterations=len(trace),
        converged=converged,
        evaluations=evaluations + 1,
        trace=tuple(trace),
        warnings=warnings,
    )


def numeric_gradient(
    f: BivariateFunction, x: float, y: float, h: float = NUMERIC_DIFF_STEP
) -> tuple[float, float]:
    """Central-difference estimate of the gradient of f at (x, y)."""
    return (
        (f(x + h, y) - f(x - h, y)) / (2 * h),
        (f(x, y + h) - f(x, y - h)) / (2 * h),
    )


def gradient_descent(
    f: BivariateFunction,
    grad_x: BivariateFunction | None,
    grad_y: BivariateFunction | None,
    x0: float,
    y0: float,
    alpha: float,
    tol: float = DEFAULT_TOLERANCE,
    max_iter: int = GRADIENT_MAX_ITER,
) -> OptimizationResult:
    """Minimize f(x, y) with fixed-step gradient descent.

    Each step moves to (x, y) - alpha * grad f(x, y). The partial derivatives
    are estimated with central differences unless both are supplied. There is
    no line search: a step size that is too large makes the iteration grow,
    which shows up in the trace as increasing ``step_norm`` and in the result
    as ``diverged=True``.

    Args:
        f: Function of two variables to minimize
        grad_x: Partial derivative in x, or None
        grad_y: Partial derivative in y, or None
        x0: Starting x
        y0: Starting y
        alpha: Fixed step size
        tol: Stop once the Euclidean norm of a step is below tol
        max_iter: Iteration cap
    """
    method = "gradient_descent"
    try:
        check_iteration_parameters(tol, max_iter)
        x, y, alpha = float(x0), float(y0), float(alpha)
        check_finite(x0=x, y0=y, alpha=alpha)
        if alpha <= 0:
            raise NumericalError(f"alpha must be positive, got {alpha}", INVALID_INPUT)
    except NumericalError as e:
        return OptimizationResult(ok=False, method=method, error=str(e), error_code=e.code)

    if grad_x is None or grad_y is None:
        def gradient(px: float, py: float) -> tuple[float, float]:
            return numeric_gradient(f, px, py)

        evaluations_per_step = 5
    else:
        def gradient(px: float, py: float) -> tuple[float, float]:
            return grad_x(px, py), grad_y(px, py)

        evaluations_per_step = 1

    trace = []
    evaluations = 0
    first_step = None
    step = 0.0
    converged = False
    for k in range(1, int(max_iter) + 1):
        gx, gy = gradient(x, y)
        x_next = x - alpha * gx
        y_next = y - alpha * gy
        f_next = f(x_next, y_next)
        evaluations += evaluations_per_step
        step = math.hypot(x_next - x, y_next - y)
        values = {
            "x": x_next,
            "y": y_next,
            "f": f_next,
            "grad_norm": math.hypot(gx, gy),
            "step_norm": step,
        }
        if not all(math.isfinite(v) for v in (gx, gy, x_next, y_next, f_next)):
            trace.append(IterationRecord(k, values, "iterate is not finite"))
            logger.warning("Gradient descent diverged at iteration %d (alpha=%g)", k, alpha)
            return OptimizationResult(
                ok=False,
                method=method,
                error="Gradient descent produced a non-finite iterate; alpha may be too large",
                error_code=NON_FINITE_EVALUATION,
                iterations=k,
                diverged=True,
                evaluations=evaluations,
                trace=tuple(trace),
            )
        trace.append(IterationRecord(k, values))
        if first_step is None:
            first_step = step
        x, y = x_next, y_next
        if step < tol:
            converged = True
            break

    warnings = []
    diverged = False
    if not converged:
        warnings.append(f"Gradient descent did not converge within {max_iter} iterations")
        if first_step is not None and step > first_step:
            diverged = True
            warnings.append(
                f"Step norm grew from {first_step:g} to {step:g}; alpha={alpha:g} is too large"
            )
        for message in warnings:
            logger.warning(message)
    return OptimizationResult(
        ok=True,
        method=method,
        point=(x, y),
        value=f(x, y),
        iterations=len(trace),
        converged=converged,
        diverged=diverged,
        evaluations=evaluations + 1,
        trace=tuple(trace),
        warnings=tuple(warnings),
    )
