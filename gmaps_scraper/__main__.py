"""
Package entry point.

Allows running: python -m gmaps_scraper location "coffee" "Austin, TX"
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
