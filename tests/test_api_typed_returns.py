"""Test that API functions return typed dataclasses, for good and bad text."""

import math

from numerik_pkg.api import (
    bisection,
    gauss_seidel,
    golden_section,
    gradient_descent,
    linear_systems,
    lu_decomposition,
    newton,
    numerical_differentiation,
    ode_comparison,
    ode_solve,
    root_comparison,
    simpsons_rule,
)
from numerik_pkg.types import (
    ComparisonResult,
    DifferenceResult,
    IntegrationResult,
    LinearSolveResult,
    ODEResult,
    OptimizationResult,
    RootResult,
)


class TestAPITypedReturns:
    """Test that all API functions return typed dataclasses."""

    def test_bisection_returns_root_result(self):
        result = bisection("x^3 - x - 2", 1, 2)
        assert isinstance(result, RootResult)
        assert result.ok is True
        assert abs(result.root - 1.52138) < 1e-4

    def test_bisection_accepts_text_numbers(self):
        result = bisection("sin(x)", "3", "pi + 0.5", tol="1e-8")
        assert result.ok
        assert abs(result.root - math.pi) < 1e-7

    def test_bisection_error_returns_root_result(self):
        result = bisection("__import__('os')", 1, 2)
        assert isinstance(result, RootResult)
        assert result.ok is False
        assert result.error_code == "PARSE_ERROR"

    def test_newton_uses_symbolic_derivative(self):
        result = newton("x^2 - 2", 1)
        assert isinstance(result, RootResult)
        assert abs(result.root - math.sqrt(2)) < 1e-9
        assert result.evaluations == result.iterations

    def test_newton_explicit_derivative(self):
        result = newton("x^2 - 2", 1, derivative="2x")
        assert result.ok

    def test_newton_bad_number(self):
        result = newton("x^2 - 2", "one")
        assert result.error_code == "PARSE_ERROR"

    def test_root_comparison(self):
        result = root_comparison("x^3 - x - 2", 1, 2)
        assert isinstance(result, ComparisonResult)
        assert result.ok and len(result.rows) == 2

    def test_gauss_seidel_text_matrix(self):
        result = gauss_seidel("4 1; 2 3", "1 2")
        assert isinstance(result, LinearSolveResult)
        assert result.ok
        assert abs(result.solution[0] - 0.1) < 1e-5
        assert abs(result.solution[1] - 0.6) < 1e-5

    def test_gauss_seidel_ragged_matrix(self):
        result = gauss_seidel("4 1; 2", "1 2")
        assert result.error_code == "DIMENSION_MISMATCH"

    def test_lu_decomposition(self):
        result = lu_decomposition("2 1 1; 4 -6 0; -2 7 2", "5 -2 9 | 1 0 0")
        assert isinstance(result, ComparisonResult)
        assert result.ok and result.kind == "lu"
        assert len(result.rows) == 2
        assert result.results["factorization"].permutation[0] == 1
        assert all(row["residual"] < 1e-10 for row in result.rows)

    def test_lu_decomposition_singular(self):
        result = lu_decomposition("1 2; 2 4", "1 2")
        assert not result.ok
        assert result.error_code == "SINGULAR"

    def test_lu_decomposition_bad_rhs(self):
        result = lu_decomposition("4 1; 2 3", "1 2 | 1 2 3")
        assert result.error_code == "DIMENSION_MISMATCH"

    def test_linear_systems(self):
        result = linear_systems([[4, 1], [2, 3]], [[1, 2], [0, 1]])
        assert isinstance(result, ComparisonResult)
        assert result.ok and result.kind == "linear"

    def test_simpsons_rule(self):
        result = simpsons_rule("sin(x)", 0, "pi", 10)
        assert isinstance(result, IntegrationResult)
        assert abs(result.value - 2) < 1e-3

    def test_simpsons_rule_odd_partition(self):
        result = simpsons_rule("sin(x)", 0, "pi", "7")
        assert result.error_code == "INVALID_PARTITION"

    def test_numerical_differentiation(self):
        result = numerical_differentiation("sin(x)", 1, "1e-1 1e-2 1e-3")
        assert isinstance(result, DifferenceResult)
        assert abs(result.exact - math.cos(1)) < 1e-12
        assert len(result.trace) == 3

    def test_golden_section(self):
        result = golden_section("0.05x^2 - 3x + 200", 0, 60)
        assert isinstance(result, OptimizationResult)
        assert abs(result.point[0] - 30) < 1e-4

    def test_gradient_descent_custom_variables(self):
        result = gradient_descent(
            "(v-55)^2 + (m-8)^2 + 300", 40, 5, 0.1, variables=("v", "m")
        )
        assert isinstance(result, OptimizationResult)
        assert result.converged
        assert abs(result.point[0] - 55) < 1e-4
        assert abs(result.point[1] - 8) < 1e-4

    def test_gradient_descent_unknown_variable(self):
        result = gradient_descent("x + z", 0, 0, 0.1)
        assert result.error_code == "PARSE_ERROR"

    def test_ode_solve(self):
        result = ode_solve("y - t^2 + 1", 0, 0.5, 2, 0.02)
        assert isinstance(result, ODEResult)
        assert abs(result.y - 5.30547) < 1e-4

    def test_ode_comparison(self):
        result = ode_comparison("y - t^2 + 1", 0, 0.5, 2, exact="(t+1)^2 - 0.5*exp(t)")
        assert isinstance(result, ComparisonResult)
        assert result.ok
        assert all(row["error"] < 1e-4 for row in result.rows)

    def test_ode_comparison_bad_exact(self):
        result = ode_comparison("y - t^2 + 1", 0, 0.5, 2, exact="y + 1")
        assert result.error_code == "PARSE_ERROR"

    def test_to_dict_is_json_ready(self):
        import json

        payload = json.loads(json.dumps(lu_decomposition("4 1; 2 3", "1 2").to_dict()))
        assert payload["ok"] is True
        assert payload["results"]["factorization"]["lower"][0] == [1.0, 0.0]
