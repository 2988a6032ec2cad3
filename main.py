#!/usr/bin/env python3
"""
Main script to generate an AI short from a brief.
Same flags as `python -m shorts_maker`; install the package first (pip install -e .).
"""

import sys

from shorts_maker.cli import main

if __name__ == "__main__":
    sys.exit(main())
