"""CLI entrypoint for temporal RGB composition."""

import sys

from temporal_rgb.cli import main


if __name__ == "__main__":
    sys.exit(main())
