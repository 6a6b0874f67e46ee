"""
Entry point for running suitebuild as a module: python -m suitebuild
"""

import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
