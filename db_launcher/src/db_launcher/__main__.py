"""Entry point for `python -m db_launcher` and the `db-launcher` script."""

import sys

from db_launcher.adapters.inbound.cli import launch_main


if __name__ == "__main__":
    sys.exit(launch_main())
