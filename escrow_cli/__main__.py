"""
Module execution entry point.

Allows running with: python -m escrow_cli
"""

import sys
from escrow_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
