#!/usr/bin/env python3
"""
Stubdeck - runtime-defined HTTP mock server

This is a convenience wrapper that calls the packaged implementation.
The actual implementation is in src/stubdeck/cli.py

Usage:
    python stubdeck-cli.py serve project.json --port 3000
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from stubdeck.cli import main

if __name__ == '__main__':
    sys.exit(main())
