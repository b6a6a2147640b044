"""Scalar root finding: bisection and Newton-Raphson."""

from __future__ import annotations

import math
import time
from collections.abc import Callable

from .config import (
    DEFAULT_MAX_ITER,
    DEFAULT_TOLERANCE,
    DERIVATIVE_EPSILON,
    DERIVATIVE_NUDGE,
    MAX_DERIVATIVE_RECOVERIES,
    NUMERIC_DIFF_STEP,
)
from .differentiation import central_difference
from .logging_config import get_logger
from .types import (
    DERIVATIVE_NEAR_ZERO,
    INVALID_INPUT,
    NO_CONVERGENCE,
    NON_FINITE_EVALUATION,
    SIGN_ERROR,
    ComparisonResult,
    IterationRecord,
    NumericalError,
    RootResult,
)
from .validation import check_finite, check_iteration_parameters

logger = get_logger("roots")

ScalarFunction = Callable[[float], float]


def bisect(
    f: ScalarFunction,
    a: float,
    b: float,
    tol: float = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITER,
) -> RootResult:
    """Find a root of f inside [a, b] by repeated halving.

    Args:
        f: Continuous function with f(a) and f(b) of opposite sign
        a: Left end of the bracket
        b: Right end of the bracket
        tol: Stop once the half-width of the bracket is below tol
        max_iter: Iteration cap

    Returns:
        RootResult whose trace holds (a, b, c, fc) for every halving. Reaching
        the cap is reported with ``converged=False`` and a warning.
    """
    method = "bisection"
    try:
        check_iteration_parameters(tol, max_iter)
        a, b = float(a), float(b)
        if not (math.isfinite(a) and math.isfinite(b)) or a == b:
            raise NumericalError("a and b must be distinct finite numbers", INVALID_INPUT)
        if a > b:
            a, b = b, a
        fa, fb = f(a), f(b)
        if not (math.isfinite(fa) and math.isfinite(fb)):
            raise NumericalError(
                "f(a) or f(b) is not a finite number", NON_FINITE_EVALUATION
            )
        if fa == 0 or fb == 0:
            return RootResult(
                ok=True,
                method=method,
                root=a if fa == 0 else b,
                converged=True,
                evaluations=2,
            )
        # compare signs, the product can underflow to zero
        if (fa > 0) == (fb > 0):
            raise NumericalError("f(a) and f(b) must have opposite signs", SIGN_ERROR)
    except NumericalError as e:
        return RootResult(ok=False, method=method, error=str(e), error_code=e.code)

    trace = []
    evaluations = 2
    converged = False
    c = a
    for i in range(1, int(max_iter) + 1):
        c = (a + b) / 2
        fc = f(c)
        evaluations += 1
        values = {"a": a, "b": b, "c": c, "fc": fc}
        if not math.isfinite(fc):
            trace.append(IterationRecord(i, values, "f(c) is not finite"))
            return RootResult(
                ok=False,
                method=method,
                error=f"f({c}) is not a finite number",
                error_code=NON_FINITE_EVALUATION,
                trace=tuple(trace),
                iterations=i,
                evaluations=evaluations,
            )
        trace.append(IterationRecord(i, values))
        if fc == 0 or (b - a) / 2 < tol:
            converged = True
            break
        if (fa < 0) != (fc < 0):
            b = c
        else:
            a, fa = c, fc

    warnings = ()
    if not converged:
        logger.warning("Bisection stopped at the iteration cap (%d)", max_iter)
        warnings = (f"Iteration cap {max_iter} reached before the bracket shrank below {tol:g}",)
    logger.debug("Bisection finished after %d iterations, root=%s", len(trace), c)
    return RootResult(
        ok=True,
        method=method,
        root=c,
        iterations=len(trace),
        converged=converged,
        evaluations=evaluations,
        trace=tuple(trace),
        warnings=warnings,
    )


def newton_raphson(
    f: ScalarFunction,
    df: ScalarFunction | None,
    x0: float,
    tol: float = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITER,
) -> RootResult:
    """Find a root of f with Newton's tangent iteration.

    Converges when |f(x)| < tol or when a step moves x by less than tol.
    When |f'(x)| falls below DERIVATIVE_EPSILON the iterate is nudged by
    DERIVATIVE_NUDGE instead of dividing; the nudge uses up the iteration and
    is counted in ``recoveries``. More than MAX_DERIVATIVE_RECOVERIES nudges
    end the run with DERIVATIVE_NEAR_ZERO.

    Args:
        f: Function whose root is sought
        df: Derivative of f, or None to use a central difference
        x0: Initial guess
        tol: Tolerance for both convergence criteria
        max_iter: Iteration cap; exhausting it fails with NO_CONVERGENCE
    """
    method = "newton"
    try:
        check_iteration_parameters(tol, max_iter)
        x = float(x0)
        check_finite(x0=x)
    except NumericalError as e:
        return RootResult(ok=False, method=method, error=str(e), error_code=e.code)

    if df is None:
        def derivative(point: float) -> float:
            return central_difference(f, point, NUMERIC_DIFF_STEP)

        evaluations_per_step = 3
    else:
        derivative = df
        evaluations_per_step = 1

    trace = []
    recoveries = 0
    evaluations = 0

    def failure(code: str, message: str, iterations: int) -> RootResult:
        return RootResult(
            ok=False,
            method=method,
            error=message,
            error_code=code,
            trace=tuple(trace),
            iterations=iterations,
            recoveries=recoveries,
            evaluations=evaluations,
        )

    for i in range(1, int(max_iter) + 1):
        fx = f(x)
        dfx = derivative(x)
        evaluations += evaluations_per_step
        values = {"x": x, "fx": fx, "dfx": dfx}

        if not (math.isfinite(fx) and math.isfinite(dfx)):
            trace.append(IterationRecord(i, values, "f(x) or f'(x) is not finite"))
            return failure(
                NON_FINITE_EVALUATION, f"f or f' is not finite at x={x}", i
            )

        if abs(fx) < tol:
            trace.append(IterationRecord(i, values, "converged: |f(x)| < tol"))
            return RootResult(
                ok=True,
                method=method,
                root=x,
                iterations=i,
                converged=True,
                recoveries=recoveries,
                evaluations=evaluations,
                trace=tuple(trace),
            )

        if abs(dfx) < DERIVATIVE_EPSILON:
            recoveries += 1
            if recoveries > MAX_DERIVATIVE_RECOVERIES:
                trace.append(IterationRecord(i, values, "derivative near zero"))
                return failure(
                    DERIVATIVE_NEAR_ZERO,
                    f"Derivative stayed near zero after {MAX_DERIVATIVE_RECOVERIES} nudges",
                    i,
                )
            logger.warning("f'(%s) is near zero; nudging x by %g", x, DERIVATIVE_NUDGE)
            trace.append(
                IterationRecord(i, values, f"derivative near zero, x nudged by {DERIVATIVE_NUDGE:g}")
            )
            x += DERIVATIVE_NUDGE
            continue

        x_next = x - fx / dfx
        step = abs(x_next - x)
        values.update(x_next=x_next, step=step)
        if not math.isfinite(x_next):
            trace.append(IterationRecord(i, values, "step is not finite"))
            return failure(NON_FINITE_EVALUATION, "Newton step produced a non-finite x", i)
        if step < tol:
            trace.append(IterationRecord(i, values, "converged: |x_next - x| < tol"))
            return RootResult(
                ok=True,
                method=method,
                root=x_next,
                iterations=i,
                converged=True,
                recoveries=recoveries,
                evaluations=evaluations,
                trace=tuple(trace),
            )
        trace.append(IterationRecord(i, values))
        x = x_next

    logger.warning("Newton-Raphson did not converge within %d iterations", max_iter)
    return failure(
        NO_CONVERGENCE,
        f"Newton-Raphson failed to converge within {max_iter} iterations",
        int(max_iter),
    )


def compare_root_finders(
    f: ScalarFunction,
    a: float,
    b: float,
    tol: float = DEFAULT_TOLERANCE,
    df: ScalarFunction | None = None,
    max_iter: int = DEFAULT_MAX_ITER,
) -> ComparisonResult:
    """Run bisection and Newton-Raphson on the same problem.

    Newton starts from the midpoint of [a, b]; if that run fails it is
    restarted from the bisection root. Each row reports iterations, the final
    residual |f(root)| and the elapsed wall-clock time.
    """
    start = time.perf_counter()
    bisection = bisect(f, a, b, tol, max_iter)
    bisection_seconds = time.perf_counter() - start
    if not bisection.ok:
        return ComparisonResult(
            ok=False,
            kind="roots",
            error=bisection.error,
            error_code=bisection.error_code,
            results={"bisection": bisection},
        )

    warnings = []
    start = time.perf_counter()
    newton = newton_raphson(f, df, (float(a) + float(b)) / 2, tol, max_iter)
    if not newton.ok:
        warnings.append(
            f"Newton-Raphson from the midpoint failed ({newton.error_code}); "
            "restarted from the bisection root"
        )
        newton = newton_raphson(f, df, bisection.root, tol, max_iter)
    newton_seconds = time.perf_counter() - start
    if not newton.ok:
        warnings.append(f"Newton-Raphson failed: {newton.error}")

    rows = []
    for result, seconds in ((bisection, bisection_seconds), (newton, newton_seconds)):
        rows.append(
            {
                "method": result.method,
                "ok": result.ok,
                "root": result.root,
                "iterations": result.iterations,
                "residual": abs(f(result.root)) if result.root is not None else None,
                "seconds": seconds,
            }
        )
    return ComparisonResult(
        ok=True,
        kind="roots",
        rows=tuple(rows),
        results={"bisection": bisection, "newton": newton},
        warnings=tuple(warnings),
    )
