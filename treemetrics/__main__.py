"""
Entry point for running treemetrics as a module.

Usage:
    python -m treemetrics scan ./src
    python -m treemetrics cpd ./src --output tokens.json
"""

import sys
from treemetrics.cli import main

if __name__ == "__main__":
    sys.exit(main())
