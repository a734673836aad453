#!/usr/bin/env python3
"""

Usage:
    python Main.py CONFIG [--api-url URL] [--timeout SECONDS] [-v]

Or
    python -m pinned_clock CONFIG [--api-url URL] [--timeout SECONDS] [-v]
"""

from pinned_clock.__main__ import main

if __name__ == "__main__":
    main()
