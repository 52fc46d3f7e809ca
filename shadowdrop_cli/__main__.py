"""
Module execution entry point.

Allows running with: python -m shadowdrop_cli
"""

import sys
from shadowdrop_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
