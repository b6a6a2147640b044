"""Centralized configuration for Numerik.

This module defines:
- Default tolerances and iteration caps for every kernel algorithm
- Guard thresholds (near-zero derivative, zero pivot, ODE step cap)
- Input validation limits (length, depth, node count)
- Allowed SymPy functions and parser transformations
- Separators used by the matrix/vector text format

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with NUMERIK_)
"""

import os

import sympy as sp
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    standard_transformations,
)

# Version is defined in pyproject.toml [project] section
try:
    import importlib.metadata

    VERSION = importlib.metadata.version("numerik")
except importlib.metadata.PackageNotFoundError:
    # Running from a source checkout
    VERSION = "0.1.0"

# Root finding
DEFAULT_TOLERANCE = float(os.getenv("NUMERIK_DEFAULT_TOLERANCE", "1e-6"))
DEFAULT_MAX_ITER = int(os.getenv("NUMERIK_DEFAULT_MAX_ITER", "100"))
DERIVATIVE_EPSILON = float(
    os.getenv("NUMERIK_DERIVATIVE_EPSILON", "1e-12")
)  # |f'(x)| below this is treated as zero
DERIVATIVE_NUDGE = float(
    os.getenv("NUMERIK_DERIVATIVE_NUDGE", "1e-3")
)  # fixed shift applied to x when f'(x) vanishes
MAX_DERIVATIVE_RECOVERIES = int(
    os.getenv("NUMERIK_MAX_DERIVATIVE_RECOVERIES", "10")
)

# Finite differences
NUMERIC_DIFF_STEP = float(
    os.getenv("NUMERIK_NUMERIC_DIFF_STEP", "1e-6")
)  # h for numeric derivatives and gradients
DEFAULT_STEP_SIZES = (1e-1, 1e-2, 1e-3, 1e-4, 1e-5, 1e-6)

# Linear systems
GAUSS_SEIDEL_MAX_ITER = int(os.getenv("NUMERIK_GAUSS_SEIDEL_MAX_ITER", "100"))
PIVOT_TOLERANCE = float(
    os.getenv("NUMERIK_PIVOT_TOLERANCE", "1e-12")
)  # relative to the largest entry of A

# Optimization
GOLDEN_SECTION_MAX_ITER = int(os.getenv("NUMERIK_GOLDEN_SECTION_MAX_ITER", "120"))
GRADIENT_MAX_ITER = int(os.getenv("NUMERIK_GRADIENT_MAX_ITER", "80"))

# ODE integration
MAX_ODE_STEPS = int(os.getenv("NUMERIK_MAX_ODE_STEPS", "1000000"))
DEFAULT_ODE_STEPS = {"rk23": 0.005, "rk45": 0.02, "dop853": 0.05}

# Output and plotting
OUTPUT_PRECISION = int(os.getenv("NUMERIK_OUTPUT_PRECISION", "6"))
PLOT_SAMPLES = int(os.getenv("NUMERIK_PLOT_SAMPLES", "400"))

# Parse cache
CACHE_SIZE_PARSE = int(os.getenv("NUMERIK_CACHE_SIZE_PARSE", "256"))

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("NUMERIK_MAX_INPUT_LENGTH", "2000"))  # characters
MAX_EXPRESSION_DEPTH = int(
    os.getenv("NUMERIK_MAX_EXPRESSION_DEPTH", "100")
)  # tree depth
MAX_EXPRESSION_NODES = int(
    os.getenv("NUMERIK_MAX_EXPRESSION_NODES", "5000")
)  # total nodes

# Matrix / vector text format
ROW_SEPARATOR = ";"
GROUP_SEPARATOR = "|"

ALLOWED_SYMPY_NAMES = {
    "pi": sp.pi,
    "E": sp.E,
    "e": sp.E,
    "sqrt": sp.sqrt,
    "sin": sp.sin,
    "cos": sp.cos,
    "tan": sp.tan,
    "asin": sp.asin,
    "acos": sp.acos,
    "atan": sp.atan,
    "sinh": sp.sinh,
    "cosh": sp.cosh,
    "tanh": sp.tanh,
    "log": sp.log,
    "ln": sp.log,
    "exp": sp.exp,
    "Abs": sp.Abs,
    "abs": sp.Abs,  # lowercase alias for convenience
}

TRANSFORMATIONS = standard_transformations + (
    implicit_multiplication_application,
    convert_xor,
)
