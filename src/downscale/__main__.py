"""
Entry point for running downscale as a module: python -m downscale

This allows the package to be executed directly:
    python -m downscale /videos/clip.mov
    python -m downscale --help
"""

import sys

from downscale.cli import main

if __name__ == "__main__":
    sys.exit(main())
