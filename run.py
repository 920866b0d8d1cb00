#!/usr/bin/env python3
"""
Convenience script to run the VisuaLearn chat client from a source checkout.
"""

import sys

from visualearn.visualearn import main

if __name__ == "__main__":
    sys.exit(main())
