"""Tests for sampling and figure rendering."""

import math

import numpy as np

from numerik_pkg.parser import compile_scalar
from numerik_pkg.plotting import render_plot, render_series, sample_function, trace_points
from numerik_pkg.roots import bisect


def test_sample_function_marks_undefined_points():
    xs, ys = sample_function(compile_scalar("sqrt(x)"), -1, 1, points=5)
    assert xs.tolist() == [-1.0, -0.5, 0.0, 0.5, 1.0]
    assert np.isnan(ys[0]) and np.isnan(ys[1])
    assert ys[4] == 1.0


def test_trace_points():
    ys = trace_points(math.exp, [0.0, 1.0])
    assert ys.tolist() == [1.0, math.e]


def test_render_plot_with_iterates(tmp_path):
    f = compile_scalar("x^3 - x - 2")
    result = bisect(f, 1, 2)
    markers = [record["c"] for record in result.trace]
    target = tmp_path / "bisection.png"
    plot = render_plot(f, 1, 2, str(target), markers=markers, title="Bisection")
    assert plot.ok
    assert plot.path == str(target)
    assert target.stat().st_size > 0


def test_render_plot_rejects_empty_range(tmp_path):
    plot = render_plot(math.sin, 1, 1, str(tmp_path / "x.png"))
    assert not plot.ok
    assert plot.error_code == "INVALID_INPUT"


def test_render_plot_unwritable_path(tmp_path):
    plot = render_plot(math.sin, 0, 1, str(tmp_path / "missing" / "x.png"))
    assert not plot.ok
    assert "Could not save plot" in plot.error


def test_render_series_log_axes(tmp_path):
    hs = [1e-1, 1e-2, 1e-3]
    target = tmp_path / "errors.svg"
    plot = render_series(
        {"central": (hs, [1e-3, 1e-5, 1e-7])},
        str(target),
        xlabel="h",
        log_x=True,
        log_y=True,
    )
    assert plot.ok
    assert target.exists()


def test_render_series_needs_data(tmp_path):
    assert not render_series({}, str(tmp_path / "empty.png")).ok
