"""
Executable module for forgedeps.

Running:
    python -m forgedeps

is equivalent to:
    forgedeps
"""

from __future__ import annotations

import sys

from forgedeps.cli import main

if __name__ == "__main__":
    sys.exit(main())
