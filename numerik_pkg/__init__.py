"""Numerik package: numerical-methods kernel with parser, text API, plotting and CLI."""

__all__ = [
    "config",
    "types",
    "validation",
    "parser",
    "roots",
    "linear",
    "quadrature",
    "differentiation",
    "optimize",
    "ode",
    "plotting",
    "api",
    "cli",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "bisection",
    "newton",
    "root_comparison",
    "gauss_seidel",
    "lu_decomposition",
    "linear_systems",
    "simpsons_rule",
    "numerical_differentiation",
    "golden_section",
    "gradient_descent",
    "ode_solve",
    "ode_comparison",
]
