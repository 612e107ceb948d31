"""
Entry point for running Render Canvas as a module.

Usage:
    python -m render_canvas
"""

import sys

from render_canvas.main import main

if __name__ == "__main__":
    sys.exit(main())
