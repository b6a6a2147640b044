"""Test error codes returned by the kernel and raised by the parser."""

import unittest

from numerik_pkg import types
from numerik_pkg.linear import gauss_seidel, lu_factor
from numerik_pkg.ode import integrate
from numerik_pkg.parser import compile_scalar, preprocess
from numerik_pkg.quadrature import simpson
from numerik_pkg.roots import bisect, newton_raphson
from numerik_pkg.types import ValidationError


class TestParserErrorCodes(unittest.TestCase):
    """Test that parser failures carry a code."""

    def test_forbidden_token_error_code(self):
        """Test that forbidden tokens return FORBIDDEN_TOKEN error code."""
        try:
            preprocess("import os")
            self.fail("Should have raised ValidationError")
        except ValidationError as e:
            self.assertEqual(
                e.code, "FORBIDDEN_TOKEN", f"Expected FORBIDDEN_TOKEN, got {e.code}"
            )
            self.assertIn("forbidden", str(e).lower())

    def test_too_long_error_code(self):
        """Test that overly long input returns TOO_LONG error code."""
        with self.assertRaises(ValidationError) as ctx:
            preprocess("x" * 10001)
        self.assertEqual(ctx.exception.code, "TOO_LONG")

    def test_empty_input_error_code(self):
        with self.assertRaises(ValidationError) as ctx:
            preprocess("   ")
        self.assertEqual(ctx.exception.code, "EMPTY_INPUT")

    def test_unbalanced_error_code(self):
        with self.assertRaises(ValidationError) as ctx:
            preprocess("sin(x")
        self.assertEqual(ctx.exception.code, "UNBALANCED_PARENS")

    def test_parse_error_code(self):
        with self.assertRaises(types.ParseError) as ctx:
            compile_scalar("x + q")
        self.assertEqual(ctx.exception.code, types.PARSE_ERROR)


class TestKernelErrorCodes(unittest.TestCase):
    """Test that every failure mode maps onto its documented code."""

    def test_each_code_is_reachable(self):
        cases = {
            types.SIGN_ERROR: bisect(lambda x: x * x + 1, -1, 1),
            types.DIMENSION_MISMATCH: gauss_seidel([[2, 1], [1, 2]], [1]),
            types.SINGULAR: lu_factor([[0, 0], [0, 0]]),
            types.NOT_DIAGONALLY_DOMINANT: gauss_seidel([[1, 5], [5, 1]], [1, 1], strict=True),
            types.DERIVATIVE_NEAR_ZERO: newton_raphson(lambda x: 3.0, lambda x: 0.0, 1.0),
            types.NO_CONVERGENCE: newton_raphson(
                lambda x: x * x + 4, lambda x: 2 * x, 1.0, max_iter=5
            ),
            types.INVALID_PARTITION: simpson(lambda x: x, 0, 1, 3),
            types.NON_FINITE_EVALUATION: bisect(compile_scalar("log(x)"), -1, 2),
            types.INVALID_INPUT: integrate("rk45", lambda t, y: y, 0, 1, 0, 0.1),
        }
        for code, result in cases.items():
            with self.subTest(code=code):
                self.assertFalse(result.ok)
                self.assertEqual(result.error_code, code)
                self.assertTrue(result.error)

    def test_structural_errors_have_no_trace(self):
        self.assertEqual(bisect(lambda x: x * x + 1, -1, 1).trace, ())
        self.assertEqual(simpson(lambda x: x, 0, 1, 3).trace, ())

    def test_numerical_error_message(self):
        error = types.NumericalError("bad input")
        self.assertEqual(str(error), "bad input")
        self.assertEqual(error.code, types.INVALID_INPUT)


if __name__ == "__main__":
    unittest.main()
