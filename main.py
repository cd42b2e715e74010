#!/usr/bin/env python3
"""
Tabular Diff - Main Entry Point
Compare two CSV or Excel files by mapped key columns.
"""

import sys

from tabdiff.cli import main


if __name__ == "__main__":
    sys.exit(main())
