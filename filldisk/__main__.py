"""
Entry point for the filldisk package.

This module serves as the main entry point when running `python -m filldisk`.
The detached holder process re-enters the program through here as well.
"""

import os
import sys

# Check for Unix-like system
if os.name != "posix":
    print(
        "Error: filldisk only supports Unix-like systems (Linux, macOS, BSD)",
        file=sys.stderr,
    )
    sys.exit(1)

from .cli import cli


def main():
    """Main entry point for the filldisk command."""
    cli()


if __name__ == "__main__":
    main()
