"""
Entry point for running AppList as a module.

Usage:
    python -m applist list --query foo
    python -m applist export --format csv
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
