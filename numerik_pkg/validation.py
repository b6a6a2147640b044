"""Argument checks shared by the kernel operations."""

from __future__ import annotations

import math
import numbers

from .types import INVALID_INPUT, NumericalError


def is_whole_number(value) -> bool:
    """True for finite real numbers with no fractional part, bool excluded."""
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
        and float(value).is_integer()
    )


def check_iteration_parameters(tol: float, max_iter: int) -> None:
    """Reject tolerances and iteration caps no algorithm can work with."""
    if not math.isfinite(tol) or tol <= 0:
        raise NumericalError(f"Tolerance must be positive, got {tol}", INVALID_INPUT)
    if not is_whole_number(max_iter) or max_iter < 1:
        raise NumericalError(
            f"Iteration cap must be a positive integer, got {max_iter}", INVALID_INPUT
        )


def check_finite(**values: float) -> None:
    """Require every named scalar to be a finite number."""
    for name, value in values.items():
        if not math.isfinite(value):
            raise NumericalError(f"{name} must be a finite number, got {value}", INVALID_INPUT)
