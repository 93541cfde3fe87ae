"""Main entry point for running notecalc_pkg as a module.

This allows running Notecalc with:
    python -m notecalc_pkg
    python -m notecalc_pkg -e "20% of 100"
    python -m notecalc_pkg -f budget.txt --format json

This is equivalent to running the ``notecalc`` console script.
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
