#!/usr/bin/env python3
"""Control a serial bench power supply from the command line."""

from __future__ import annotations

import sys

from bench_psu.cli import main


if __name__ == "__main__":
    sys.exit(main())
