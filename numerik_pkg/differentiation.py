"""Finite-difference derivative estimates."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable

from .config import DEFAULT_STEP_SIZES, NUMERIC_DIFF_STEP
from .logging_config import get_logger
from .types import (
    INVALID_INPUT,
    NON_FINITE_EVALUATION,
    DifferenceResult,
    IterationRecord,
    NumericalError,
)

logger = get_logger("differentiation")

ScalarFunction = Callable[[float], float]


def forward_difference(f: ScalarFunction, x: float, h: float) -> float:
    return (f(x + h) - f(x)) / h


def backward_difference(f: ScalarFunction, x: float, h: float) -> float:
    return (f(x) - f(x - h)) / h


def central_difference(f: ScalarFunction, x: float, h: float = NUMERIC_DIFF_STEP) -> float:
    """Second-order accurate estimate of f'(x)."""
    return (f(x + h) - f(x - h)) / (2 * h)


def _validate_steps(step_sizes: Iterable[float]) -> tuple[float, ...]:
    steps = tuple(float(h) for h in step_sizes)
    if not steps:
        raise NumericalError("At least one step size is required", INVALID_INPUT)
    for h in steps:
        if not math.isfinite(h) or h <= 0:
            raise NumericalError(
                f"Step sizes must be positive and finite, got {h}", INVALID_INPUT
            )
    return steps


def estimate(
    f: ScalarFunction,
    df_exact: ScalarFunction,
    x0: float,
    step_sizes: Iterable[float] = DEFAULT_STEP_SIZES,
) -> DifferenceResult:
    """Compare forward, backward and central differences over a sweep of h.

    There is no convergence loop: each step size produces one record with the
    three estimates and their absolute errors against ``df_exact(x0)``.
    Plotted on log-log axes the errors first fall (truncation) and then rise
    again (round-off) as h shrinks.

    Args:
        f: Function to differentiate
        df_exact: Exact derivative used as reference
        x0: Point of evaluation
        step_sizes: Step sizes to try, usually log-spaced

    Returns:
        DifferenceResult with one trace record per step size. A row whose
        samples are not finite is kept with NaN values and a note.
    """
    try:
        steps = _validate_steps(step_sizes)
        x0 = float(x0)
        if not math.isfinite(x0):
            raise NumericalError("x0 must be finite", INVALID_INPUT)
    except NumericalError as e:
        return DifferenceResult(ok=False, error=str(e), error_code=e.code)

    exact = df_exact(x0)
    if not math.isfinite(exact):
        return DifferenceResult(
            ok=False,
            x0=x0,
            error=f"Exact derivative is not finite at x0={x0}",
            error_code=NON_FINITE_EVALUATION,
        )

    fx0 = f(x0)
    trace = []
    warnings = []
    for index, h in enumerate(steps, start=1):
        f_plus = f(x0 + h)
        f_minus = f(x0 - h)
        forward = (f_plus - fx0) / h
        backward = (fx0 - f_minus) / h
        central = (f_plus - f_minus) / (2 * h)
        note = None
        if not all(math.isfinite(v) for v in (fx0, f_plus, f_minus)):
            note = "non-finite sample"
            warnings.append(f"f is not finite near x0 for h={h:g}")
        trace.append(
            IterationRecord(
                index,
                {
                    "h": h,
                    "forward": forward,
                    "backward": backward,
                    "central": central,
                    "forward_error": abs(forward - exact),
                    "backward_error": abs(backward - exact),
                    "central_error": abs(central - exact),
                },
                note,
            )
        )

    logger.debug("Finite-difference sweep at x0=%s over %d step sizes", x0, len(steps))
    return DifferenceResult(
        ok=True, x0=x0, exact=exact, trace=tuple(trace), warnings=tuple(warnings)
    )
