"""Unit tests for the composite Simpson rule."""

import math
import unittest

import numpy as np

from numerik_pkg.parser import compile_scalar
from numerik_pkg.quadrature import simpson, simpson_weight
from numerik_pkg.types import IntegrationResult


class TestSimpson(unittest.TestCase):
    """Test accuracy and partition checks."""

    def test_sine_over_half_period(self):
        result = simpson(math.sin, 0, math.pi, 10)
        self.assertIsInstance(result, IntegrationResult)
        self.assertTrue(result.ok)
        # n=10 gives 2.000110, so only three decimals are exact
        self.assertAlmostEqual(result.value, 2.0, places=3)
        self.assertEqual(result.evaluations, 11)
        self.assertAlmostEqual(result.step, math.pi / 10)

    def test_fourth_order_convergence(self):
        coarse = abs(simpson(math.sin, 0, math.pi, 10).value - 2)
        fine = abs(simpson(math.sin, 0, math.pi, 20).value - 2)
        self.assertTrue(14 < coarse / fine < 18, coarse / fine)

    def test_exact_for_cubics(self):
        result = simpson(lambda x: x**3, 0, 2, 2)
        self.assertAlmostEqual(result.value, 4.0, places=12)

    def test_trace_weights(self):
        result = simpson(math.exp, 0, 1, 6)
        weights = [record["weight"] for record in result.trace]
        self.assertEqual(weights, [1, 4, 2, 4, 2, 4, 1])
        self.assertEqual(result.trace[-1]["x"], 1.0)

    def test_weight_helper(self):
        self.assertEqual(simpson_weight(0, 4), 1)
        self.assertEqual(simpson_weight(3, 4), 4)
        self.assertEqual(simpson_weight(2, 4), 2)
        self.assertEqual(simpson_weight(4, 4), 1)

    def test_invalid_partition(self):
        for n in (7, 0, -2, 4.5, True, "10"):
            with self.subTest(n=n):
                result = simpson(math.sin, 0, 1, n)
                self.assertFalse(result.ok)
                self.assertEqual(result.error_code, "INVALID_PARTITION")

    def test_integer_valued_float_accepted(self):
        self.assertTrue(simpson(math.sin, 0, 1, 10.0).ok)

    def test_numpy_integer_accepted(self):
        result = simpson(math.sin, 0, math.pi, np.int64(10))
        self.assertTrue(result.ok)
        self.assertEqual(result.evaluations, 11)

    def test_non_finite_partition(self):
        for n in (float("inf"), float("nan")):
            with self.subTest(n=n):
                self.assertEqual(simpson(math.sin, 0, 1, n).error_code, "INVALID_PARTITION")

    def test_reversed_limits(self):
        result = simpson(math.sin, 1, 0, 10)
        self.assertEqual(result.error_code, "INVALID_INPUT")

    def test_singular_integrand(self):
        result = simpson(compile_scalar("1/x"), 0, 1, 4)
        self.assertFalse(result.ok)
        self.assertEqual(result.error_code, "NON_FINITE_EVALUATION")
        self.assertEqual(len(result.trace), 1)


if __name__ == "__main__":
    unittest.main()
