# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
Main entry point for running snaphash as a module.

Allows running:
    python -m snaphash capture photo.jpg
"""

import sys

from .main import main

if __name__ == "__main__":
    sys.exit(main())
