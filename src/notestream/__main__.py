"""Entry point for running with python -m notestream."""

import sys

from notestream.cli import main

if __name__ == "__main__":
    sys.exit(main())
