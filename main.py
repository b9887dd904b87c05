#!/usr/bin/env python3
"""
steadybench - Main entry point for benchmarking a command.

Usage:
    python main.py [options] -- command [args...]

See ``python main.py --help`` for the available options.
"""

import sys

from steadybench.cli import main


if __name__ == "__main__":
    sys.exit(main())
