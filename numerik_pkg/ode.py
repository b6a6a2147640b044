"""Fixed-step explicit Runge-Kutta solvers for scalar initial-value problems.

All solvers integrate y' = f(t, y), y(t0) = y0 from t0 to t1 with one step
size h for the whole interval; the last step is shortened so t lands exactly
on t1. There is no error estimate and no step rejection.

============  ======  ================================================
method        stages  scheme
============  ======  ================================================
``rk23``      3       Bogacki-Shampine weights 2/9, 1/3, 4/9
``rk45``      6       Dormand-Prince 5th-order weights
``dop853``    8       two classic RK4 half steps per step
============  ======  ================================================
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Mapping

from .config import DEFAULT_ODE_STEPS, MAX_ODE_STEPS
from .logging_config import get_logger
from .types import (
    INVALID_INPUT,
    NON_FINITE_EVALUATION,
    ComparisonResult,
    IterationRecord,
    NumericalError,
    ODEResult,
)
from .validation import check_finite

logger = get_logger("ode")

ODEFunction = Callable[[float, float], float]


def rk23_step(f: ODEFunction, t: float, y: float, h: float) -> float:
    k1 = f(t, y)
    k2 = f(t + 0.5 * h, y + 0.5 * h * k1)
    k3 = f(t + 0.75 * h, y + 0.75 * h * k2)
    return y + h * (2 / 9 * k1 + 1 / 3 * k2 + 4 / 9 * k3)


def rk45_step(f: ODEFunction, t: float, y: float, h: float) -> float:
    k1 = f(t, y)
    k2 = f(t + h / 5, y + h * (k1 / 5))
    k3 = f(t + 3 * h / 10, y + h * (3 / 40 * k1 + 9 / 40 * k2))
    k4 = f(t + 4 * h / 5, y + h * (44 / 45 * k1 - 56 / 15 * k2 + 32 / 9 * k3))
    k5 = f(
        t + 8 * h / 9,
        y + h * (19372 / 6561 * k1 - 25360 / 2187 * k2 + 64448 / 6561 * k3 - 212 / 729 * k4),
    )
    k6 = f(
        t + h,
        y
        + h
        * (9017 / 3168 * k1 - 355 / 33 * k2 + 46732 / 5247 * k3 + 49 / 176 * k4 - 5103 / 18656 * k5),
    )
    # k2 carries no weight in the 5th-order update
    return y + h * (35 / 384 * k1 + 500 / 1113 * k3 + 125 / 192 * k4 - 2187 / 6784 * k5 + 11 / 84 * k6)


def rk4_step(f: ODEFunction, t: float, y: float, h: float) -> float:
    k1 = f(t, y)
    k2 = f(t + h / 2, y + h / 2 * k1)
    k3 = f(t + h / 2, y + h / 2 * k2)
    k4 = f(t + h, y + h * k3)
    return y + h / 6 * (k1 + 2 * k2 + 2 * k3 + k4)


def composite_step(f: ODEFunction, t: float, y: float, h: float) -> float:
    """Two RK4 half steps standing in for a high-order step."""
    half = h / 2
    return rk4_step(f, t + half, rk4_step(f, t, y, half), half)


STEPPERS: dict[str, tuple[Callable[[ODEFunction, float, float, float], float], int]] = {
    "rk23": (rk23_step, 3),
    "rk45": (rk45_step, 6),
    "dop853": (composite_step, 8),
}


def integrate(
    method: str, f: ODEFunction, t0: float, y0: float, t1: float, h: float
) -> ODEResult:
    """Integrate y' = f(t, y) from t0 to t1 with a fixed step h.

    Args:
        method: "rk23", "rk45" or "dop853"
        f: Right-hand side f(t, y)
        t0: Initial time
        y0: Initial value y(t0)
        t1: Final time, greater than t0
        h: Step size

    Returns:
        ODEResult with y(t1), the number of steps and right-hand-side
        evaluations; the trace has (t, y, h) after every step.
    """
    try:
        if method not in STEPPERS:
            raise NumericalError(
                f"Unknown method '{method}'; expected one of {', '.join(STEPPERS)}",
                INVALID_INPUT,
            )
        t0, y0, t1, h = float(t0), float(y0), float(t1), float(h)
        check_finite(t0=t0, y0=y0, t1=t1, h=h)
        if h <= 0:
            raise NumericalError(f"Step size h must be positive, got {h}", INVALID_INPUT)
        if t1 <= t0:
            raise NumericalError("t1 must be greater than t0", INVALID_INPUT)
        steps = max(1, math.ceil((t1 - t0) / h - 1e-9))
        if steps > MAX_ODE_STEPS:
            raise NumericalError(
                f"Step size {h:g} needs {steps} steps (limit {MAX_ODE_STEPS})", INVALID_INPUT
            )
    except NumericalError as e:
        return ODEResult(ok=False, method=method, error=str(e), error_code=e.code)

    stepper, stages = STEPPERS[method]
    y = y0
    trace = []
    for i in range(steps):
        t = t0 + i * h
        step = min(h, t1 - t)
        y = stepper(f, t, y, step)
        t_next = t1 if i == steps - 1 else t + step
        values = {"t": t_next, "y": y, "h": step}
        if not math.isfinite(y):
            trace.append(IterationRecord(i + 1, values, "y is not finite"))
            return ODEResult(
                ok=False,
                method=method,
                error=f"Solution became non-finite at t={t_next}",
                error_code=NON_FINITE_EVALUATION,
                t=t_next,
                step_size=h,
                steps=i + 1,
                evaluations=(i + 1) * stages,
                trace=tuple(trace),
            )
        trace.append(IterationRecord(i + 1, values))

    logger.debug("%s: %d steps of h=%g, y(%g)=%s", method, steps, h, t1, y)
    return ODEResult(
        ok=True,
        method=method,
        t=t1,
        y=y,
        step_size=h,
        steps=steps,
        evaluations=steps * stages,
        trace=tuple(trace),
    )


def rk23(f: ODEFunction, t0: float, y0: float, t1: float, h: float) -> ODEResult:
    return integrate("rk23", f, t0, y0, t1, h)


def rk45(f: ODEFunction, t0: float, y0: float, t1: float, h: float) -> ODEResult:
    return integrate("rk45", f, t0, y0, t1, h)


def rk_composite(f: ODEFunction, t0: float, y0: float, t1: float, h: float) -> ODEResult:
    return integrate("dop853", f, t0, y0, t1, h)


def compare_methods(
    f: ODEFunction,
    t0: float,
    y0: float,
    t1: float,
    exact: Callable[[float], float] | None = None,
    steps: Mapping[str, float] | None = None,
) -> ComparisonResult:
    """Run every solver on the same problem and tabulate cost against accuracy.

    Args:
        f: Right-hand side f(t, y)
        t0: Initial time
        y0: Initial value
        t1: Final time
        exact: Closed-form solution used to measure the error at t1
        steps: Step size per method (defaults to DEFAULT_ODE_STEPS)

    Returns:
        ComparisonResult with one row per method: h, y(t1), absolute error,
        right-hand-side evaluations and elapsed milliseconds.
    """
    steps = dict(DEFAULT_ODE_STEPS if steps is None else steps)
    y_true = exact(float(t1)) if exact is not None else None
    rows = []
    results = {}
    for method, h in steps.items():
        start = time.perf_counter()
        result = integrate(method, f, t0, y0, t1, h)
        elapsed_ms = (time.perf_counter() - start) * 1000
        if not result.ok:
            return ComparisonResult(
                ok=False,
                kind="ode",
                error=f"{method}: {result.error}",
                error_code=result.error_code,
                results={**results, method: result},
            )
        results[method] = result
        rows.append(
            {
                "method": method,
                "h": h,
                "y": result.y,
                "error": abs(result.y - y_true) if y_true is not None else None,
                "evaluations": result.evaluations,
                "milliseconds": elapsed_ms,
            }
        )
    return ComparisonResult(ok=True, kind="ode", rows=tuple(rows), results=results)
