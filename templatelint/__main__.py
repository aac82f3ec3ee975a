"""
Entry point for running the template linter as a module.

Usage:
    python -m templatelint app/templates
    python -m templatelint --help
"""

import sys
from templatelint.cli import main

if __name__ == "__main__":
    sys.exit(main())
