"""Main entry point for running numerik_pkg as a module.

This allows running numerik with:
    python -m numerik_pkg --version
    python -m numerik_pkg bisect "x^3 - x - 2" 1 2
    python -m numerik_pkg --format json ode "y - t^2 + 1" 0 0.5 2 --compare

This is equivalent to running:
    python -m numerik_pkg.cli
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
