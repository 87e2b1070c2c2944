#!/usr/bin/env python3
"""Render public/index.html from public/geodata.js and public/zeitungen_by_ags.json."""

import os
import sys

from papertrail.map_create import main

if __name__ == "__main__":
    sys.exit(main(os.path.dirname(os.path.abspath(__file__))))
