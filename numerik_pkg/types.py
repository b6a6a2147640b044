"""Type definitions, error codes and result dataclasses for consistent kernel responses.

Every kernel operation returns one of the frozen result dataclasses below
instead of raising. Callers check ``ok`` (and ``error_code``) before reading
the computed values. Traces are tuples of read-only ``IterationRecord``
objects, so a returned result cannot be modified after the fact.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from types import MappingProxyType
from typing import Any

import numpy as np

# Error codes carried in ``error_code``
PARSE_ERROR = "PARSE_ERROR"
DIMENSION_MISMATCH = "DIMENSION_MISMATCH"
SIGN_ERROR = "SIGN_ERROR"
SINGULAR = "SINGULAR"
NOT_DIAGONALLY_DOMINANT = "NOT_DIAGONALLY_DOMINANT"
DERIVATIVE_NEAR_ZERO = "DERIVATIVE_NEAR_ZERO"
NO_CONVERGENCE = "NO_CONVERGENCE"
INVALID_PARTITION = "INVALID_PARTITION"
NON_FINITE_EVALUATION = "NON_FINITE_EVALUATION"
INVALID_INPUT = "INVALID_INPUT"
INTERNAL_ERROR = "INTERNAL_ERROR"  # unexpected failure caught by the text facade


def _plain(value: Any) -> Any:
    """Convert result values into JSON-friendly builtins."""
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, (IterationRecord, KernelResult)):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (tuple, list)):
        return [_plain(item) for item in value]
    return value


@dataclass(frozen=True)
class IterationRecord:
    """One step of an algorithm's trace.

    ``index`` starts at 1. ``values`` holds the diagnostics computed during
    the step (bracket ends, iterate, function value, residual, ...); the keys
    depend on the algorithm that produced the record.
    """

    index: int
    values: Mapping[str, Any]
    note: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        record = {"index": self.index}
        record.update(_plain(dict(self.values)))
        if self.note is not None:
            record["note"] = self.note
        return record


@dataclass(frozen=True, kw_only=True)
class KernelResult:
    """Fields shared by every kernel result."""

    ok: bool
    error: str | None = None
    error_code: str | None = None
    trace: tuple[IterationRecord, ...] = ()
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization, skipping empty fields."""
        result_dict: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is None:
                continue
            if isinstance(value, tuple) and not value:
                continue
            result_dict[item.name] = _plain(value)
        return result_dict

    def __repr__(self) -> str:
        name = type(self).__name__
        if not self.ok:
            return f"{name}(ok=False, error_code={self.error_code!r}, error={self.error!r})"
        parts = [
            f"{item.name}={getattr(self, item.name)!r}"
            for item in fields(self)
            if item.name not in ("trace", "error", "error_code")
            and getattr(self, item.name) is not None
        ]
        parts.append(f"steps={len(self.trace)}")
        return f"{name}({', '.join(parts)})"


@dataclass(frozen=True, kw_only=True, repr=False)
class RootResult(KernelResult):
    """Result of a scalar root search."""

    method: str
    root: float | None = None
    iterations: int = 0
    converged: bool = False
    recoveries: int = 0  # derivative-near-zero nudges used by Newton
    evaluations: int = 0


@dataclass(frozen=True, kw_only=True, repr=False)
class LinearSolveResult(KernelResult):
    """Result of solving Ax = b."""

    method: str
    solution: tuple[float, ...] | None = None
    iterations: int = 0
    converged: bool = False
    residual_norm: float | None = None


@dataclass(frozen=True, kw_only=True, repr=False, eq=False)
class LUFactorization(KernelResult):
    """PA = LU with P stored as a row permutation vector.

    ``permutation[i]`` is the row of A that ends up in row i of PA.
    """

    permutation: tuple[int, ...] | None = None
    lower: np.ndarray | None = None
    upper: np.ndarray | None = None

    @property
    def size(self) -> int:
        return 0 if self.permutation is None else len(self.permutation)

    @property
    def permutation_matrix(self) -> np.ndarray:
        n = self.size
        matrix = np.zeros((n, n))
        for row, source in enumerate(self.permutation or ()):
            matrix[row, source] = 1.0
        return matrix

    def solve(self, rhs) -> LinearSolveResult:
        """Solve for one right-hand side reusing this factorization."""
        from .linear import lu_solve

        if not self.ok:
            return LinearSolveResult(
                ok=False,
                method="lu",
                error=self.error or "Factorization failed",
                error_code=self.error_code,
            )
        return lu_solve(self.lower, self.upper, self.permutation, rhs)


@dataclass(frozen=True, kw_only=True, repr=False)
class IntegrationResult(KernelResult):
    """Result of a composite quadrature rule."""

    method: str = "simpson"
    value: float | None = None
    step: float | None = None
    evaluations: int = 0


@dataclass(frozen=True, kw_only=True, repr=False)
class DifferenceResult(KernelResult):
    """Finite-difference sweep; one trace record per step size."""

    x0: float | None = None
    exact: float | None = None

    def best_step(self, scheme: str = "central") -> float | None:
        """Return the step size with the smallest finite error for a scheme.

        Args:
            scheme: "forward", "backward" or "central"

        Returns:
            The winning h, or None when no row has a finite error
        """
        key = f"{scheme}_error"
        candidates = [
            (record[key], record["h"])
            for record in self.trace
            if record.get(key) is not None and np.isfinite(record[key])
        ]
        if not candidates:
            return None
        return min(candidates)[1]


@dataclass(frozen=True, kw_only=True, repr=False)
class OptimizationResult(KernelResult):
    """Result of an unconstrained minimization."""

    method: str
    point: tuple[float, ...] | None = None
    value: float | None = None
    iterations: int = 0
    converged: bool = False
    diverged: bool = False
    evaluations: int = 0


@dataclass(frozen=True, kw_only=True, repr=False)
class ODEResult(KernelResult):
    """Final state of a fixed-step initial-value integration."""

    method: str
    t: float | None = None
    y: float | None = None
    step_size: float | None = None
    steps: int = 0
    evaluations: int = 0


@dataclass(frozen=True, kw_only=True, repr=False)
class ComparisonResult(KernelResult):
    """Side-by-side run of several methods on the same input.

    ``rows`` holds one summary mapping per method (or per right-hand side);
    ``results`` keeps the full result of each run keyed by method name.
    """

    kind: str
    rows: tuple[Mapping[str, Any], ...] = ()
    results: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "rows", tuple(MappingProxyType(dict(row)) for row in self.rows)
        )
        if self.results is not None:
            object.__setattr__(self, "results", MappingProxyType(dict(self.results)))


@dataclass(frozen=True, kw_only=True, repr=False)
class PlotResult(KernelResult):
    """Location of a rendered figure."""

    path: str | None = None


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ParseError(Exception):
    """Raised when parsing fails."""

    def __init__(self, message: str, code: str = PARSE_ERROR):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class NumericalError(Exception):
    """Raised inside the kernel when an algorithm cannot run on its input.

    Operations catch it at their boundary and turn it into a failed result.
    """

    def __init__(self, message: str, code: str = INVALID_INPUT):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message
