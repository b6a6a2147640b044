"""Tests for the fixed-step Runge-Kutta solvers."""

import math

import pytest

from numerik_pkg.ode import compare_methods, integrate, rk23, rk45, rk_composite
from numerik_pkg.types import ODEResult


def rhs(t, y):
    return y - t * t + 1


def exact(t):
    return (t + 1) ** 2 - 0.5 * math.exp(t)


Y_AT_2 = exact(2.0)  # about 5.30547


class TestIntegrate:
    @pytest.mark.parametrize(
        "solver,h,evaluations,tolerance",
        [
            (rk23, 0.005, 1200, 1e-5),
            (rk45, 0.02, 600, 1e-6),
            (rk_composite, 0.05, 320, 1e-5),
        ],
    )
    def test_accuracy_and_cost(self, solver, h, evaluations, tolerance):
        result = solver(rhs, 0, 0.5, 2, h)
        assert isinstance(result, ODEResult)
        assert result.ok
        assert result.y == pytest.approx(Y_AT_2, abs=tolerance)
        assert result.evaluations == evaluations
        assert len(result.trace) == result.steps

    def test_lands_on_final_time(self):
        result = integrate("rk45", rhs, 0, 0.5, 1, 0.3)
        assert result.steps == 4
        assert result.t == 1.0
        assert result.trace[-1]["t"] == 1.0
        assert result.trace[-1]["h"] == pytest.approx(0.1)

    def test_single_step_when_h_exceeds_interval(self):
        result = integrate("rk23", rhs, 0, 0.5, 0.1, 1.0)
        assert result.steps == 1
        assert result.trace[0]["h"] == pytest.approx(0.1)

    @pytest.mark.parametrize(
        "method,t1,h",
        [("euler", 2, 0.1), ("rk45", 2, 0), ("rk45", 2, -0.1), ("rk45", 0, 0.1)],
    )
    def test_invalid_input(self, method, t1, h):
        result = integrate(method, rhs, 0, 0.5, t1, h)
        assert not result.ok
        assert result.error_code == "INVALID_INPUT"

    def test_blow_up_keeps_partial_trace(self):
        result = integrate("rk45", lambda t, y: y * y, 0, 1, 5, 0.1)
        assert not result.ok
        assert result.error_code == "NON_FINITE_EVALUATION"
        assert 0 < len(result.trace) < 50
        assert result.trace[-1].note == "y is not finite"


class TestCompareMethods:
    def test_rows(self):
        result = compare_methods(rhs, 0, 0.5, 2, exact=exact)
        assert result.ok
        rows = {row["method"]: row for row in result.rows}
        assert set(rows) == {"rk23", "rk45", "dop853"}
        assert rows["rk23"]["evaluations"] == 1200
        assert rows["rk45"]["evaluations"] == 600
        assert rows["dop853"]["evaluations"] == 320
        assert rows["rk45"]["error"] < rows["rk23"]["error"]

    def test_without_exact_solution(self):
        result = compare_methods(rhs, 0, 0.5, 2, steps={"rk45": 0.1})
        assert len(result.rows) == 1
        assert result.rows[0]["error"] is None

    def test_failure_propagates(self):
        result = compare_methods(rhs, 0, 0.5, 2, steps={"rk45": -1})
        assert not result.ok
        assert result.error_code == "INVALID_INPUT"


def test_repeat_runs_give_identical_traces():
    assert rk45(rhs, 0, 0.5, 2, 0.1).trace == rk45(rhs, 0, 0.5, 2, 0.1).trace
