"""Sample arrays and figures for functions, iterates and convergence curves."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping, Sequence

import matplotlib

matplotlib.use("Agg")  # Use non-GUI backend (no Tkinter required)
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from .config import PLOT_SAMPLES  # noqa: E402
from .logging_config import get_logger  # noqa: E402
from .types import INVALID_INPUT, PlotResult  # noqa: E402

logger = get_logger("plotting")


def trace_points(f: Callable[[float], float], xs: Iterable[float]) -> np.ndarray:
    """Evaluate f at each x, keeping NaN where f is not finite."""
    values = []
    for x in xs:
        y = f(float(x))
        values.append(y if math.isfinite(y) else np.nan)
    return np.array(values, dtype=float)


def sample_function(
    f: Callable[[float], float], a: float, b: float, points: int = PLOT_SAMPLES
) -> tuple[np.ndarray, np.ndarray]:
    """Return evenly spaced x samples on [a, b] and f at each of them.

    Args:
        f: Function to sample
        a: Left end of the range
        b: Right end of the range
        points: Number of samples, at least 2

    Returns:
        Tuple (xs, ys); ys holds NaN where f is undefined
    """
    if points < 2:
        raise ValueError("At least two sample points are needed")
    xs = np.linspace(float(a), float(b), int(points))
    return xs, trace_points(f, xs)


def render_plot(
    f: Callable[[float], float],
    a: float,
    b: float,
    path: str,
    markers: Sequence[float] | None = None,
    title: str | None = None,
    label: str = "f(x)",
    points: int = PLOT_SAMPLES,
) -> PlotResult:
    """Draw f on [a, b] with optional iterate markers and save it as an image.

    Args:
        f: Function to draw
        a: Left end of the range
        b: Right end of the range
        path: Output file; the format follows the extension (png, svg, pdf)
        markers: x positions of iterates to mark on the curve
        title: Figure title
        label: Legend label of the curve
        points: Number of curve samples

    Returns:
        PlotResult with the written path
    """
    if not (math.isfinite(a) and math.isfinite(b)) or a >= b:
        return PlotResult(ok=False, error="Plot range must satisfy a < b", error_code=INVALID_INPUT)

    xs, ys = sample_function(f, a, b, points)
    fig, ax = plt.subplots(figsize=(10, 6))
    try:
        ax.plot(xs, ys, linewidth=2, color="#2E86AB", label=label)
        if markers:
            marker_xs = np.array([float(x) for x in markers])
            ax.plot(
                marker_xs,
                trace_points(f, marker_xs),
                "o-",
                color="#E4572E",
                markersize=4,
                label="iterates",
            )
        ax.set_xlabel("x", fontsize=12, fontweight="bold")
        ax.set_ylabel(label, fontsize=12, fontweight="bold")
        if title:
            ax.set_title(title, fontsize=14, fontweight="bold")
        ax.grid(True, alpha=0.3, linestyle="--")
        ax.axhline(y=0, color="k", linewidth=0.8, linestyle="-", alpha=0.3)
        ax.legend(loc="best", fontsize=10)
        fig.tight_layout()
        fig.savefig(path, dpi=150, bbox_inches="tight")
    except OSError as e:
        logger.error("Could not save plot to %s: %s", path, e)
        return PlotResult(ok=False, error=f"Could not save plot: {e}")
    finally:
        plt.close(fig)
    return PlotResult(ok=True, path=str(path))


def render_series(
    series: Mapping[str, tuple[Sequence[float], Sequence[float]]],
    path: str,
    xlabel: str = "iteration",
    ylabel: str = "value",
    title: str | None = None,
    log_x: bool = False,
    log_y: bool = False,
) -> PlotResult:
    """Draw one or more (x, y) series, e.g. residual norms or error curves.

    Use ``log_x=True, log_y=True`` for the error-versus-step-size plot of a
    finite-difference sweep.
    """
    if not series:
        return PlotResult(ok=False, error="Nothing to plot", error_code=INVALID_INPUT)

    fig, ax = plt.subplots(figsize=(10, 6))
    try:
        for name, (xs, ys) in series.items():
            ax.plot(list(xs), list(ys), "o-", linewidth=1.5, markersize=4, label=name)
        if log_x:
            ax.set_xscale("log")
        if log_y:
            ax.set_yscale("log")
        ax.set_xlabel(xlabel, fontsize=12, fontweight="bold")
        ax.set_ylabel(ylabel, fontsize=12, fontweight="bold")
        if title:
            ax.set_title(title, fontsize=14, fontweight="bold")
        ax.grid(True, alpha=0.3, linestyle="--")
        ax.legend(loc="best", fontsize=10)
        fig.tight_layout()
        fig.savefig(path, dpi=150, bbox_inches="tight")
    except OSError as e:
        logger.error("Could not save plot to %s: %s", path, e)
        return PlotResult(ok=False, error=f"Could not save plot: {e}")
    finally:
        plt.close(fig)
    return PlotResult(ok=True, path=str(path))
