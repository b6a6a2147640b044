"""Unit tests for parser module."""

import math
import unittest

from numerik_pkg.parser import (
    compile_bivariate,
    compile_scalar,
    format_number,
    is_balanced,
    parse_expression,
    parse_matrix,
    parse_number,
    parse_vector,
    parse_vectors,
    preprocess,
)
from numerik_pkg.types import ParseError, ValidationError


class TestPreprocess(unittest.TestCase):
    """Test preprocessing functions."""

    def test_basic_arithmetic(self):
        self.assertEqual(preprocess("2+2"), "2+2")
        self.assertEqual(preprocess("  x^2 - 1  "), "x^2 - 1")

    def test_unicode_operators(self):
        self.assertEqual(preprocess("2×x"), "2*x")
        self.assertIn("sqrt", preprocess("√(x)"))
        self.assertIn("pi", preprocess("π/2"))

    def test_forbidden_tokens(self):
        with self.assertRaises(ValidationError):
            preprocess("__import__('os')")
        with self.assertRaises(ValidationError):
            preprocess("import sys")

    def test_input_length_limit(self):
        from numerik_pkg.config import MAX_INPUT_LENGTH

        long_input = "x" * (MAX_INPUT_LENGTH + 1)
        with self.assertRaises(ValidationError):
            preprocess(long_input)

    def test_parentheses_balancing(self):
        balanced, _ = is_balanced("(1+2)")
        self.assertTrue(balanced)
        balanced, position = is_balanced("(1+2")
        self.assertFalse(balanced)
        self.assertEqual(position, 0)
        balanced, _ = is_balanced("1+2)")
        self.assertFalse(balanced)


class TestCompile(unittest.TestCase):
    """Test compilation of expressions into float callables."""

    def test_power_with_caret(self):
        f = compile_scalar("x^2")
        self.assertEqual(f(3), 9.0)

    def test_implicit_multiplication(self):
        f = compile_scalar("2x + 1")
        self.assertAlmostEqual(f(3), 7.0)

    def test_custom_variable(self):
        f = compile_scalar("t^2", "t")
        self.assertAlmostEqual(f(1.5), 2.25)

    def test_bivariate(self):
        f = compile_bivariate("(v-55)^2 + (m-8)^2 + 300", ("v", "m"))
        self.assertAlmostEqual(f(55, 8), 300.0)
        self.assertAlmostEqual(f(56, 8), 301.0)

    def test_domain_error_gives_nan(self):
        self.assertTrue(math.isnan(compile_scalar("log(x)")(-1)))
        self.assertTrue(math.isnan(compile_scalar("sqrt(x)")(-4)))
        self.assertTrue(math.isnan(compile_scalar("1/x")(0)))

    def test_symbolic_derivative(self):
        f = compile_scalar("x^3 - x - 2")
        self.assertAlmostEqual(f.derivative()(2), 11.0)
        g = compile_bivariate("x^2 * y")
        self.assertAlmostEqual(g.derivative("y")(3, 5), 9.0)

    def test_unknown_variable_rejected(self):
        with self.assertRaises(ParseError):
            compile_scalar("x + y")

    def test_forbidden_function_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_expression("factorial(x)")
        self.assertEqual(ctx.exception.code, "FORBIDDEN_FUNCTION")

    def test_syntax_error(self):
        with self.assertRaises(ParseError):
            compile_scalar("x +* 2")


class TestNumbersAndMatrices(unittest.TestCase):
    """Test number, vector and matrix text parsing."""

    def test_parse_number(self):
        self.assertEqual(parse_number("0.001"), 0.001)
        self.assertEqual(parse_number(3), 3.0)
        self.assertAlmostEqual(parse_number("pi/2"), math.pi / 2)

    def test_parse_number_rejects_non_finite(self):
        with self.assertRaises(ParseError):
            parse_number("inf")
        with self.assertRaises(ParseError):
            parse_number("abc")

    def test_parse_vector(self):
        self.assertEqual(parse_vector("1, 2 3"), [1.0, 2.0, 3.0])
        with self.assertRaises(ParseError):
            parse_vector("   ")

    def test_parse_matrix(self):
        self.assertEqual(parse_matrix("4 1; 2 3"), [[4.0, 1.0], [2.0, 3.0]])
        self.assertEqual(parse_matrix("4 1\n2 3"), [[4.0, 1.0], [2.0, 3.0]])

    def test_parse_vectors(self):
        self.assertEqual(parse_vectors("1 2 | 3 4"), [[1.0, 2.0], [3.0, 4.0]])

    def test_format_number(self):
        self.assertEqual(format_number(1 / 3, 4), "0.3333")
        self.assertEqual(format_number("n/a"), "n/a")


if __name__ == "__main__":
    unittest.main()
