"""Command-line interface: the click group and its subcommands."""

__all__ = [
    "checkpoint_cmd",
    "commands",
    "common",
    "migrate_cmd",
]
