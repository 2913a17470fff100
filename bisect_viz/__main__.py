"""
Entry point for running bisect_viz as CLI.

Usage:
    python -m bisect_viz --demo
    python -m bisect_viz --input graph.json --render playback.gif
    python -m bisect_viz --help
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
