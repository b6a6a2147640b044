"""Dense square linear systems: Gauss-Seidel iteration and LU with partial pivoting."""

from __future__ import annotations

import dataclasses
import time
from collections.abc import Sequence

import numpy as np

from .config import DEFAULT_TOLERANCE, GAUSS_SEIDEL_MAX_ITER, PIVOT_TOLERANCE
from .logging_config import get_logger
from .types import (
    DIMENSION_MISMATCH,
    INVALID_INPUT,
    NON_FINITE_EVALUATION,
    NOT_DIAGONALLY_DOMINANT,
    SINGULAR,
    ComparisonResult,
    IterationRecord,
    LinearSolveResult,
    LUFactorization,
    NumericalError,
)
from .validation import check_iteration_parameters

logger = get_logger("linear")


def as_square_matrix(A) -> np.ndarray:
    """Copy A into a float array, checking that it is square and finite."""
    try:
        matrix = np.array(A, dtype=float)
    except (TypeError, ValueError) as e:
        raise NumericalError(
            f"Matrix rows must all have the same length ({e})", DIMENSION_MISMATCH
        ) from e
    if matrix.ndim != 2 or matrix.shape[0] == 0 or matrix.shape[0] != matrix.shape[1]:
        raise NumericalError(
            f"Matrix A must be square, got shape {matrix.shape}", DIMENSION_MISMATCH
        )
    if not np.all(np.isfinite(matrix)):
        raise NumericalError("Matrix entries must be finite", INVALID_INPUT)
    return matrix


def as_vector(b, n: int, name: str = "b") -> np.ndarray:
    """Copy b into a float vector of length n."""
    try:
        vector = np.array(b, dtype=float)
    except (TypeError, ValueError) as e:
        raise NumericalError(f"Vector {name} is malformed ({e})", DIMENSION_MISMATCH) from e
    if vector.ndim != 1 or vector.shape[0] != n:
        raise NumericalError(
            f"Vector {name} length must equal A dimensions ({n})", DIMENSION_MISMATCH
        )
    if not np.all(np.isfinite(vector)):
        raise NumericalError(f"Vector {name} entries must be finite", INVALID_INPUT)
    return vector


def residual_norm(A, x, b) -> float:
    """Euclidean norm of Ax - b."""
    return float(np.linalg.norm(np.asarray(A, float) @ np.asarray(x, float) - np.asarray(b, float)))


def diagonal_dominance_violations(A: np.ndarray) -> list[int]:
    """Rows i with |A[i][i]| <= sum of |A[i][j]| over j != i."""
    diagonal = np.abs(np.diag(A))
    off_diagonal = np.sum(np.abs(A), axis=1) - diagonal
    return [int(i) for i in np.nonzero(diagonal <= off_diagonal)[0]]


def gauss_seidel(
    A,
    b,
    tol: float = DEFAULT_TOLERANCE,
    max_iter: int = GAUSS_SEIDEL_MAX_ITER,
    x0=None,
    strict: bool = False,
) -> LinearSolveResult:
    """Solve Ax = b with in-place Gauss-Seidel sweeps.

    Each sweep updates x[i] using the values already updated in the same
    sweep for indices below i and last sweep's values above it. Convergence
    is declared when the max-norm change of a sweep or the residual
    ||Ax - b||_2 falls below tol.

    Diagonal dominance is only a sufficient condition for convergence, so a
    matrix that fails it produces a NOT_DIAGONALLY_DOMINANT warning and the
    iteration still runs. Pass ``strict=True`` to reject such matrices.

    Args:
        A: Square matrix with non-zero diagonal
        b: Right-hand side
        tol: Convergence tolerance
        max_iter: Sweep cap; reaching it is reported, not fatal
        x0: Initial guess (zeros by default)
        strict: Refuse matrices that are not diagonally dominant

    Returns:
        LinearSolveResult with one trace record (x, change, residual) per sweep
    """
    method = "gauss_seidel"
    try:
        check_iteration_parameters(tol, max_iter)
        matrix = as_square_matrix(A)
        n = matrix.shape[0]
        rhs = as_vector(b, n)
        x = np.zeros(n) if x0 is None else as_vector(x0, n, "x0")
        if np.any(np.diag(matrix) == 0):
            raise NumericalError("Diagonal entries of A must be non-zero", INVALID_INPUT)
        violations = diagonal_dominance_violations(matrix)
        if violations and strict:
            raise NumericalError(
                "Matrix A is not diagonally dominant; Gauss-Seidel may diverge",
                NOT_DIAGONALLY_DOMINANT,
            )
    except NumericalError as e:
        return LinearSolveResult(ok=False, method=method, error=str(e), error_code=e.code)

    warnings = []
    if violations:
        message = (
            f"{NOT_DIAGONALLY_DOMINANT}: rows {violations} are not diagonally "
            "dominant; convergence is not guaranteed"
        )
        logger.warning(message)
        warnings.append(message)

    trace = []
    converged = False
    residual = residual_norm(matrix, x, rhs)
    with np.errstate(over="ignore", invalid="ignore"):
        for k in range(1, int(max_iter) + 1):
            previous = x.copy()
            for i in range(n):
                sigma = matrix[i, :i] @ x[:i] + matrix[i, i + 1:] @ x[i + 1:]
                x[i] = (rhs[i] - sigma) / matrix[i, i]
            change = float(np.max(np.abs(x - previous)))
            residual = residual_norm(matrix, x, rhs)
            values = {"x": tuple(float(v) for v in x), "change": change, "residual": residual}
            if not np.all(np.isfinite(x)):
                trace.append(IterationRecord(k, values, "iterate is not finite"))
                return LinearSolveResult(
                    ok=False,
                    method=method,
                    error="Gauss-Seidel iterates diverged to non-finite values",
                    error_code=NON_FINITE_EVALUATION,
                    iterations=k,
                    trace=tuple(trace),
                    warnings=tuple(warnings),
                )
            trace.append(IterationRecord(k, values))
            if change < tol or residual < tol:
                converged = True
                break

    if not converged:
        message = f"Gauss-Seidel did not converge within {max_iter} sweeps"
        logger.warning(message)
        warnings.append(message)
    logger.debug("Gauss-Seidel finished after %d sweeps, residual=%g", len(trace), residual)
    return LinearSolveResult(
        ok=True,
        method=method,
        solution=tuple(float(v) for v in x),
        iterations=len(trace),
        converged=converged,
        residual_norm=residual,
        trace=tuple(trace),
        warnings=tuple(warnings),
    )


def lu_factor(A) -> LUFactorization:
    """Factor PA = LU using partial pivoting.

    In column k the row with the largest |U[i][k]| (i >= k) becomes the
    pivot row. A pivot no larger than PIVOT_TOLERANCE times the largest entry
    of A means the matrix is numerically singular.

    Returns:
        LUFactorization with unit lower-triangular L, upper-triangular U and
        the row permutation; its trace has one record per column.
    """
    try:
        matrix = as_square_matrix(A)
    except NumericalError as e:
        return LUFactorization(ok=False, error=str(e), error_code=e.code)

    n = matrix.shape[0]
    upper = matrix.copy()
    lower = np.eye(n)
    permutation = list(range(n))
    threshold = PIVOT_TOLERANCE * float(np.max(np.abs(matrix)))
    trace = []

    for k in range(n):
        p = k + int(np.argmax(np.abs(upper[k:, k])))
        pivot = float(upper[p, k])
        values = {"column": k, "pivot_row": p, "pivot": pivot}
        if abs(pivot) <= threshold or pivot == 0:
            trace.append(IterationRecord(k + 1, values, "zero pivot"))
            return LUFactorization(
                ok=False,
                error=f"Matrix is singular (zero pivot in column {k})",
                error_code=SINGULAR,
                trace=tuple(trace),
            )
        if p != k:
            upper[[k, p], :] = upper[[p, k], :]
            lower[[k, p], :k] = lower[[p, k], :k]
            permutation[k], permutation[p] = permutation[p], permutation[k]
        factors = upper[k + 1:, k] / upper[k, k]
        lower[k + 1:, k] = factors
        upper[k + 1:, k:] -= np.outer(factors, upper[k, k:])
        upper[k + 1:, k] = 0.0
        trace.append(IterationRecord(k + 1, values, "rows swapped" if p != k else None))

    lower.setflags(write=False)
    upper.setflags(write=False)
    logger.debug("LU factorization of a %dx%d matrix, permutation=%s", n, n, permutation)
    return LUFactorization(
        ok=True,
        permutation=tuple(permutation),
        lower=lower,
        upper=upper,
        trace=tuple(trace),
    )


def lu_solve(lower, upper, permutation: Sequence[int], b) -> LinearSolveResult:
    """Solve LUx = Pb by forward then back substitution, O(n^2) per call.

    Args:
        lower: Unit lower-triangular factor L
        upper: Upper-triangular factor U
        permutation: Row permutation P as produced by ``lu_factor``
        b: Right-hand side

    Returns:
        LinearSolveResult; the trace lists y from forward substitution
        followed by x from back substitution.
    """
    method = "lu"
    try:
        L = as_square_matrix(lower)
        U = as_square_matrix(upper)
        n = L.shape[0]
        if U.shape[0] != n:
            raise NumericalError("L and U must have the same size", DIMENSION_MISMATCH)
        if sorted(permutation) != list(range(n)):
            raise NumericalError(
                f"Permutation must reorder the {n} rows of A", DIMENSION_MISMATCH
            )
        rhs = as_vector(b, n)
        if np.any(np.diag(U) == 0):
            raise NumericalError("U has a zero on its diagonal", SINGULAR)
    except NumericalError as e:
        return LinearSolveResult(ok=False, method=method, error=str(e), error_code=e.code)

    permuted = rhs[list(permutation)]
    trace = []
    y = np.zeros(n)
    for i in range(n):
        y[i] = (permuted[i] - L[i, :i] @ y[:i]) / L[i, i]
        trace.append(IterationRecord(i + 1, {"phase": "forward", "row": i, "value": float(y[i])}))
    x = np.zeros(n)
    for i in range(n - 1, -1, -1):
        x[i] = (y[i] - U[i, i + 1:] @ x[i + 1:]) / U[i, i]
        trace.append(
            IterationRecord(len(trace) + 1, {"phase": "backward", "row": i, "value": float(x[i])})
        )

    return LinearSolveResult(
        ok=True,
        method=method,
        solution=tuple(float(v) for v in x),
        iterations=1,
        converged=True,
        trace=tuple(trace),
    )


def solve_direct(A, b) -> LinearSolveResult:
    """Factor A from scratch and solve a single system, reporting the residual."""
    factorization = lu_factor(A)
    result = factorization.solve(b)
    if not result.ok:
        return result
    return dataclasses.replace(
        result, residual_norm=residual_norm(A, result.solution, b)
    )


def solve_many(A, rhs: Sequence) -> tuple[LUFactorization, tuple[LinearSolveResult, ...]]:
    """Factor A once and reuse the factors for every right-hand side."""
    factorization = lu_factor(A)
    if not factorization.ok:
        return factorization, ()
    results = []
    for b in rhs:
        result = factorization.solve(b)
        if result.ok:
            result = dataclasses.replace(
                result, residual_norm=residual_norm(A, result.solution, b)
            )
        results.append(result)
    return factorization, tuple(results)


def compare_solvers(
    A,
    rhs: Sequence,
    tol: float = DEFAULT_TOLERANCE,
    max_iter: int = GAUSS_SEIDEL_MAX_ITER,
) -> ComparisonResult:
    """Direct LU vs Gauss-Seidel on the same matrix and several right-hand sides.

    The direct solver factors A again for every right-hand side. Rows report
    per-system wall-clock time, Gauss-Seidel sweep counts and residuals;
    ``results["summary"]`` holds totals and averages.
    """
    try:
        matrix = as_square_matrix(A)
        vectors = [as_vector(b, matrix.shape[0]) for b in rhs]
        if not vectors:
            raise NumericalError("At least one right-hand side is required", INVALID_INPUT)
    except NumericalError as e:
        return ComparisonResult(ok=False, kind="linear", error=str(e), error_code=e.code)

    rows = []
    direct_results = []
    iterative_results = []
    warnings: list[str] = []
    for index, b in enumerate(vectors, start=1):
        start = time.perf_counter()
        direct = solve_direct(matrix, b)
        direct_seconds = time.perf_counter() - start
        if not direct.ok:
            return ComparisonResult(
                ok=False,
                kind="linear",
                error=direct.error,
                error_code=direct.error_code,
                results={"direct": tuple(direct_results + [direct])},
            )

        start = time.perf_counter()
        iterative = gauss_seidel(matrix, b, tol, max_iter)
        iterative_seconds = time.perf_counter() - start
        for message in iterative.warnings:
            if message not in warnings:
                warnings.append(message)

        direct_results.append(direct)
        iterative_results.append(iterative)
        rows.append(
            {
                "rhs": index,
                "direct_seconds": direct_seconds,
                "direct_residual": direct.residual_norm,
                "gauss_seidel_seconds": iterative_seconds,
                "gauss_seidel_iterations": iterative.iterations,
                "gauss_seidel_residual": iterative.residual_norm,
                "gauss_seidel_converged": iterative.converged,
            }
        )

    count = len(rows)
    summary = {
        "total_direct_seconds": sum(r["direct_seconds"] for r in rows),
        "average_direct_residual": sum(r["direct_residual"] for r in rows) / count,
        "total_gauss_seidel_seconds": sum(r["gauss_seidel_seconds"] for r in rows),
        "average_gauss_seidel_iterations": sum(r["gauss_seidel_iterations"] for r in rows) / count,
    }
    finite_residuals = [
        r["gauss_seidel_residual"] for r in rows if r["gauss_seidel_residual"] is not None
    ]
    if finite_residuals:
        summary["average_gauss_seidel_residual"] = sum(finite_residuals) / len(finite_residuals)
    return ComparisonResult(
        ok=True,
        kind="linear",
        rows=tuple(rows),
        results={
            "direct": tuple(direct_results),
            "gauss_seidel": tuple(iterative_results),
            "summary": summary,
        },
        warnings=tuple(warnings),
    )
