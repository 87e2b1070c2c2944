#!/usr/bin/env python3
"""Normalize archive/zeitungen_by_ags_original.json into public/zeitungen_by_ags.json."""

import os
import sys

from papertrail.transform import main

if __name__ == "__main__":
    sys.exit(main(os.path.dirname(os.path.abspath(__file__))))
