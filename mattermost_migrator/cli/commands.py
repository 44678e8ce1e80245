#!/usr/bin/env python3
"""
Main execution module for the Mattermost to Google Chat migration tool.

Importing the command modules registers their subcommands on the shared
click group; ``main`` is the console script entry point.
"""

from mattermost_migrator.cli import checkpoint_cmd, migrate_cmd  # noqa: F401
from mattermost_migrator.cli.common import cli


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
