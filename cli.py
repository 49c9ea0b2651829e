#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoAGen (Mixture-of-Agents Generation) - Command Line Interface

Thin launcher for running from a source checkout:
    python cli.py "What is 2+2?" --config examples/moa.yaml
"""

import sys
from pathlib import Path

# Add moagen package to path
sys.path.insert(0, str(Path(__file__).parent))

from moagen.cli import main

if __name__ == "__main__":
    sys.exit(main())
