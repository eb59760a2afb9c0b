#!/usr/bin/env python3
"""
Start chirpbot from a source checkout.

    python run.py

An installed package provides the ``chirpbot`` command instead.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from chirpbot import main  # noqa: E402

if __name__ == "__main__":
    main()
