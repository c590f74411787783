#!/usr/bin/env python3
"""
AssetGC Sweep

Scans the blob store for assets no document references and records them
in the orphan registry for review.

Usage:
  python sweep.py            # persist new orphan candidates
  python sweep.py --dry-run  # report only
"""

import sys

from assetgc.sweep.cli import main

if __name__ == "__main__":
    sys.exit(main())
