"""Command-line front end: one subcommand per numerical method."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import fields
from typing import Any

import numpy as np

from . import api
from . import config as _config
from .config import DEFAULT_TOLERANCE, VERSION
from .logging_config import get_logger, setup_logging
from .parser import compile_scalar, format_number
from .plotting import render_plot, render_series
from .types import ComparisonResult, KernelResult, ParseError, ValidationError

logger = get_logger("cli")

# Shown in the human output header instead of as ``name: value`` lines
_HIDDEN_FIELDS = {"ok", "error", "error_code", "trace", "warnings", "rows", "results"}


def _format_value(value: Any, precision: int) -> str:
    if value is None or isinstance(value, (bool, int, str)):
        return str(value)
    if isinstance(value, float):
        return format_number(value, precision)
    if isinstance(value, np.ndarray):
        value = value.tolist()
    if isinstance(value, (tuple, list)):
        return "[" + ", ".join(_format_value(item, precision) for item in value) + "]"
    return str(value)


def _print_table(rows: Sequence[Mapping[str, Any]], precision: int) -> None:
    if not rows:
        return
    headers = list(rows[0].keys())
    cells = [[_format_value(row.get(h), precision) for h in headers] for row in rows]
    widths = [max(len(h), *(len(line[i]) for line in cells)) for i, h in enumerate(headers)]
    print("  ".join(h.rjust(w) for h, w in zip(headers, widths)))
    print("  ".join("-" * w for w in widths))
    for line in cells:
        print("  ".join(cell.rjust(w) for cell, w in zip(line, widths)))


def _print_matrix(name: str, matrix: np.ndarray, precision: int) -> None:
    print(f"{name} =")
    for row in np.atleast_2d(matrix):
        print("  " + "  ".join(format_number(v, precision).rjust(12) for v in row))


def _print_human(result: KernelResult, precision: int, show_trace: bool) -> None:
    if result.ok:
        for item in fields(result):
            value = getattr(result, item.name)
            if item.name in _HIDDEN_FIELDS or value is None:
                continue
            print(f"{item.name}: {_format_value(value, precision)}")
    else:
        print(f"Error [{result.error_code}]: {result.error}")

    if isinstance(result, ComparisonResult):
        _print_table(result.rows, precision)
        results = result.results or {}
        factorization = results.get("factorization")
        if factorization is not None and factorization.ok:
            print(f"permutation: {list(factorization.permutation)}")
            _print_matrix("L", factorization.lower, precision)
            _print_matrix("U", factorization.upper, precision)
        if "summary" in results:
            for key, value in results["summary"].items():
                print(f"{key}: {_format_value(value, precision)}")

    for message in result.warnings:
        print(f"Warning: {message}")

    if show_trace and result.trace:
        print()
        rows = []
        for record in result.trace:
            row = {"i": record.index, **record.values}
            if record.note:
                row["note"] = record.note
            rows.append(row)
        # Records with notes may carry extra columns; align on the union
        headers: dict[str, None] = {}
        for row in rows:
            headers.update(dict.fromkeys(row))
        _print_table([{h: row.get(h) for h in headers} for row in rows], precision)


def _emit(result: KernelResult, args: argparse.Namespace) -> int:
    if args.format == "json":
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        _print_human(result, _config.OUTPUT_PRECISION, args.trace)
    return 0 if result.ok else 1


def _report_plot(outcome: KernelResult, args: argparse.Namespace) -> None:
    if outcome.ok:
        if args.format != "json":
            print(f"Plot saved to {outcome.path}")
    else:
        print(f"Plot failed: {outcome.error}", file=sys.stderr)


def _plot_function(expression: str, a: float, b: float, markers, args, title: str) -> None:
    try:
        f = compile_scalar(expression)
    except (ParseError, ValidationError) as e:
        print(f"Plot failed: {e}", file=sys.stderr)
        return
    _report_plot(render_plot(f, a, b, args.plot, markers=markers, title=title), args)


def _markers_range(markers: Sequence[float]) -> tuple[float, float]:
    low, high = min(markers), max(markers)
    pad = max(1.0, (high - low) * 0.25)
    return low - pad, high + pad


def _cmd_bisect(args: argparse.Namespace) -> int:
    if args.compare:
        result = api.root_comparison(args.expression, args.a, args.b, args.tol, args.max_iter)
        return _emit(result, args)
    result = api.bisection(args.expression, args.a, args.b, args.tol, args.max_iter)
    code = _emit(result, args)
    if args.plot and result.trace:
        markers = [record["c"] for record in result.trace]
        first = result.trace[0]
        _plot_function(args.expression, first["a"], first["b"], markers, args, "Bisection")
    return code


def _cmd_newton(args: argparse.Namespace) -> int:
    result = api.newton(
        args.expression, args.x0, args.tol, args.max_iter, derivative=args.derivative
    )
    code = _emit(result, args)
    if args.plot and result.trace:
        markers = [record["x"] for record in result.trace]
        a, b = _markers_range(markers)
        _plot_function(args.expression, a, b, markers, args, "Newton-Raphson")
    return code


def _cmd_gauss_seidel(args: argparse.Namespace) -> int:
    if args.compare:
        result = api.linear_systems(args.matrix, args.rhs, args.tol, args.max_iter)
        return _emit(result, args)
    result = api.gauss_seidel(
        args.matrix, args.rhs, args.tol, args.max_iter, x0=args.x0, strict=args.strict
    )
    code = _emit(result, args)
    if args.plot and result.trace:
        series = {
            "residual": (
                [record.index for record in result.trace],
                [record["residual"] for record in result.trace],
            )
        }
        _report_plot(
            render_series(series, args.plot, ylabel="||Ax - b||", title="Gauss-Seidel", log_y=True),
            args,
        )
    return code


def _cmd_lu(args: argparse.Namespace) -> int:
    return _emit(api.lu_decomposition(args.matrix, args.rhs), args)


def _cmd_simpson(args: argparse.Namespace) -> int:
    result = api.simpsons_rule(args.expression, args.a, args.b, args.n)
    code = _emit(result, args)
    if args.plot and result.ok:
        nodes = [record["x"] for record in result.trace]
        _plot_function(args.expression, nodes[0], nodes[-1], nodes, args, "Simpson's rule")
    return code


def _cmd_numdiff(args: argparse.Namespace) -> int:
    steps = args.steps if args.steps else _config.DEFAULT_STEP_SIZES
    result = api.numerical_differentiation(
        args.expression, args.x0, steps, derivative=args.derivative
    )
    code = _emit(result, args)
    if args.plot and result.ok:
        hs = [record["h"] for record in result.trace]
        series = {
            scheme: (hs, [record[f"{scheme}_error"] for record in result.trace])
            for scheme in ("forward", "backward", "central")
        }
        _report_plot(
            render_series(
                series,
                args.plot,
                xlabel="h",
                ylabel="absolute error",
                title="Finite-difference error",
                log_x=True,
                log_y=True,
            ),
            args,
        )
    return code


def _cmd_golden(args: argparse.Namespace) -> int:
    result = api.golden_section(args.expression, args.a, args.b, args.tol, args.max_iter)
    code = _emit(result, args)
    if args.plot and result.ok and result.trace:
        markers = [(record["a"] + record["b"]) / 2 for record in result.trace]
        a, b = _markers_range(markers)
        _plot_function(args.expression, a, b, markers, args, "Golden-section search")
    return code


def _cmd_gradient(args: argparse.Namespace) -> int:
    names = tuple(name.strip() for name in args.variables.split(","))
    if len(names) != 2 or not all(names):
        print("Error: --variables needs two comma-separated names", file=sys.stderr)
        return 1
    result = api.gradient_descent(
        args.expression,
        args.x0,
        args.y0,
        args.alpha,
        args.tol,
        args.max_iter,
        variables=names,
        numeric_gradient=args.numeric_gradient,
    )
    return _emit(result, args)


def _cmd_ode(args: argparse.Namespace) -> int:
    if args.compare:
        result = api.ode_comparison(args.expression, args.t0, args.y0, args.t1, exact=args.exact)
        return _emit(result, args)
    step = args.step if args.step is not None else _config.DEFAULT_ODE_STEPS[args.method]
    result = api.ode_solve(args.expression, args.t0, args.y0, args.t1, step, args.method)
    return _emit(result, args)


def _add_iteration_options(parser: argparse.ArgumentParser, max_iter: int) -> None:
    parser.add_argument("--tol", type=str, default=str(DEFAULT_TOLERANCE), help="Tolerance")
    parser.add_argument(
        "--max-iter", type=int, default=max_iter, help=f"Iteration cap (default: {max_iter})"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="numerik", description="Numerical methods with step-by-step traces"
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "-p", "--precision", type=int, help="Set output precision (significant digits)"
    )
    parser.add_argument(
        "--trace", action="store_true", help="Print the per-iteration trace table"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")

    commands = parser.add_subparsers(dest="command", metavar="command")

    p = commands.add_parser("bisect", help="Root of f(x) in [a, b] by bisection")
    p.add_argument("expression", help='Function of x, e.g. "x^3 - x - 2"')
    p.add_argument("a")
    p.add_argument("b")
    _add_iteration_options(p, _config.DEFAULT_MAX_ITER)
    p.add_argument("--compare", action="store_true", help="Also run Newton-Raphson")
    p.add_argument("--plot", metavar="PATH", help="Save f and the midpoints to an image")
    p.set_defaults(handler=_cmd_bisect)

    p = commands.add_parser("newton", help="Root of f(x) by Newton-Raphson")
    p.add_argument("expression")
    p.add_argument("x0")
    p.add_argument("--derivative", help="Explicit f'(x); SymPy derives it otherwise")
    _add_iteration_options(p, _config.DEFAULT_MAX_ITER)
    p.add_argument("--plot", metavar="PATH", help="Save f and the iterates to an image")
    p.set_defaults(handler=_cmd_newton)

    p = commands.add_parser("gauss-seidel", help="Solve Ax = b iteratively")
    p.add_argument("matrix", help='Rows separated by ";", e.g. "4 1; 2 3"')
    p.add_argument("rhs", help='Right-hand side, e.g. "1 2" (several with "|" for --compare)')
    p.add_argument("--x0", help="Starting vector")
    p.add_argument("--strict", action="store_true", help="Reject non-dominant matrices")
    p.add_argument("--compare", action="store_true", help="Compare against direct LU")
    _add_iteration_options(p, _config.GAUSS_SEIDEL_MAX_ITER)
    p.add_argument("--plot", metavar="PATH", help="Save the residual history to an image")
    p.set_defaults(handler=_cmd_gauss_seidel)

    p = commands.add_parser("lu", help="PA = LU and solutions for every right-hand side")
    p.add_argument("matrix")
    p.add_argument("rhs", help='Right-hand sides separated by "|"')
    p.set_defaults(handler=_cmd_lu)

    p = commands.add_parser("simpson", help="Composite Simpson rule")
    p.add_argument("expression")
    p.add_argument("a")
    p.add_argument("b")
    p.add_argument("n", help="Even number of sub-intervals")
    p.add_argument("--plot", metavar="PATH", help="Save f and the nodes to an image")
    p.set_defaults(handler=_cmd_simpson)

    p = commands.add_parser("numdiff", help="Finite-difference error sweep")
    p.add_argument("expression")
    p.add_argument("x0")
    p.add_argument("--steps", help='Step sizes, e.g. "1e-1 1e-2 1e-3"')
    p.add_argument("--derivative", help="Exact f'(x); SymPy derives it otherwise")
    p.add_argument("--plot", metavar="PATH", help="Save the log-log error plot to an image")
    p.set_defaults(handler=_cmd_numdiff)

    p = commands.add_parser("golden", help="Minimum of f(x) on [a, b]")
    p.add_argument("expression")
    p.add_argument("a")
    p.add_argument("b")
    _add_iteration_options(p, _config.GOLDEN_SECTION_MAX_ITER)
    p.add_argument("--plot", metavar="PATH", help="Save f and the bracket midpoints")
    p.set_defaults(handler=_cmd_golden)

    p = commands.add_parser("gradient", help="Minimum of f(x, y) by gradient descent")
    p.add_argument("expression")
    p.add_argument("x0")
    p.add_argument("y0")
    p.add_argument("alpha", help="Fixed step size")
    p.add_argument("--variables", default="x,y", help="Variable names (default: x,y)")
    p.add_argument(
        "--numeric-gradient", action="store_true", help="Use central differences for the gradient"
    )
    _add_iteration_options(p, _config.GRADIENT_MAX_ITER)
    p.set_defaults(handler=_cmd_gradient)

    p = commands.add_parser("ode", help="Integrate y' = f(t, y) with a fixed step")
    p.add_argument("expression", help='Right-hand side in t and y, e.g. "y - t^2 + 1"')
    p.add_argument("t0")
    p.add_argument("y0")
    p.add_argument("t1")
    p.add_argument("--method", choices=sorted(_config.DEFAULT_ODE_STEPS), default="rk45")
    p.add_argument("--step", help="Step size h (default depends on the method)")
    p.add_argument("--compare", action="store_true", help="Run every method")
    p.add_argument("--exact", help="Exact solution in t, for error reporting")
    p.set_defaults(handler=_cmd_ode)

    return parser


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for the numerik CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 when the computation succeeded, non-zero otherwise)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file)
    # Apply CLI configuration overrides
    if args.precision and args.precision > 0:
        _config.OUTPUT_PRECISION = int(args.precision)
    if args.version:
        print(VERSION)
        return 0
    if not args.command:
        parser.print_help()
        return 1

    logger.debug("Running command %s", args.command)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main_entry())
