"""Main entry point for running aljabar_pkg as a module.

This allows running Aljabar with:
    python -m aljabar_pkg solve "x^2 - 5x + 6 = 0"
    python -m aljabar_pkg classify "y' = y"
    python -m aljabar_pkg eval gamma 5

This is equivalent to running the ``aljabar`` console script.
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
