"""
Run the Stationfall CLI.

Usage:
    python -m stationfall simulate --seed 7
"""

import sys

from .interface.cli import main

if __name__ == "__main__":
    sys.exit(main())
