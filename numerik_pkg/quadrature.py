"""Definite integrals by the composite Simpson rule."""

from __future__ import annotations

import math
from collections.abc import Callable

from .logging_config import get_logger
from .types import (
    INVALID_INPUT,
    INVALID_PARTITION,
    NON_FINITE_EVALUATION,
    IntegrationResult,
    IterationRecord,
    NumericalError,
)
from .validation import check_finite, is_whole_number

logger = get_logger("quadrature")


def simpson_weight(i: int, n: int) -> int:
    """Weight of node i: 1 at the ends, 4 on odd nodes, 2 on even interior nodes."""
    if i == 0 or i == n:
        return 1
    return 4 if i % 2 else 2


def simpson(f: Callable[[float], float], a: float, b: float, n: int) -> IntegrationResult:
    """Approximate the integral of f over [a, b] with n sub-intervals.

    h = (b - a) / n and the result is (h / 3) * sum(w_i * f(a + i*h)). The
    error falls as O(h^4) for smooth f, so doubling n cuts it by about 16.

    Args:
        f: Integrand
        a: Lower limit
        b: Upper limit, greater than a
        n: Positive even number of sub-intervals

    Returns:
        IntegrationResult whose trace lists every sample node with its weight
    """
    try:
        if not is_whole_number(n) or n <= 0 or int(n) % 2:
            raise NumericalError(
                f"n must be a positive even integer, got {n}", INVALID_PARTITION
            )
        n = int(n)
        a, b = float(a), float(b)
        check_finite(a=a, b=b)
        if a >= b:
            raise NumericalError("a and b must satisfy a < b", INVALID_INPUT)
    except NumericalError as e:
        return IntegrationResult(ok=False, error=str(e), error_code=e.code)

    h = (b - a) / n
    total = 0.0
    trace = []
    for i in range(n + 1):
        x = b if i == n else a + i * h
        fx = f(x)
        weight = simpson_weight(i, n)
        values = {"node": i, "x": x, "fx": fx, "weight": weight}
        if not math.isfinite(fx):
            trace.append(IterationRecord(i + 1, values, "f(x) is not finite"))
            return IntegrationResult(
                ok=False,
                error=f"f({x}) is not a finite number",
                error_code=NON_FINITE_EVALUATION,
                step=h,
                evaluations=i + 1,
                trace=tuple(trace),
            )
        trace.append(IterationRecord(i + 1, values))
        total += weight * fx

    value = (h / 3) * total
    logger.debug("Simpson rule on [%s, %s] with n=%d gives %s", a, b, n, value)
    return IntegrationResult(
        ok=True, value=value, step=h, evaluations=n + 1, trace=tuple(trace)
    )
