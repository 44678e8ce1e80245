"""CLI command handlers for inspecting and resetting import checkpoints."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from mattermost_migrator.cli.common import cli, config_option, handle_exception
from mattermost_migrator.core.checkpoint import CheckpointStore
from mattermost_migrator.core.config import create_default_config, load_config
from mattermost_migrator.exceptions import MigratorError
from mattermost_migrator.utils.logging import setup_logger


def _store(config: str) -> CheckpointStore:
    cfg = load_config(Path(config))
    return CheckpointStore(Path(cfg.checkpoint_file))


# ---------------------------------------------------------------------------
# status subcommand
# ---------------------------------------------------------------------------


@cli.command()
@config_option
@click.option("--space", default=None, help="Only show imports into this space.")
def status(config: str, space: str | None) -> None:
    """List channels that have been imported and how far each import got."""
    setup_logger()
    try:
        records = _store(config).list_all(space=space)
    except MigratorError as e:
        handle_exception(e)
        sys.exit(1)

    if not records:
        click.echo("No previous imports found.")
        return

    for record in records:
        click.echo(
            f"{record.space}  {record.team_name}/{record.channel_name} "
            f"({record.channel_id}): {record.total_imported} messages, "
            f"last post {record.last_imported_post_id or '-'} "
            f"at {record.last_imported_timestamp}, "
            f"last run {record.last_import_date or '-'}"
        )


# ---------------------------------------------------------------------------
# reset subcommand
# ---------------------------------------------------------------------------


@cli.command()
@config_option
@click.argument("channel_id")
@click.option("--space", required=True, help="Space the channel was imported into.")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
def reset(config: str, channel_id: str, space: str, yes: bool) -> None:
    """Forget the checkpoint for CHANNEL_ID so the next run imports everything."""
    setup_logger()
    if not yes:
        if not click.confirm(
            f"The next import of {channel_id} into {space} will start from the "
            "beginning and may duplicate messages. Continue?"
        ):
            click.echo("Reset cancelled.")
            sys.exit(0)

    try:
        removed = _store(config).delete(space, channel_id)
    except MigratorError as e:
        handle_exception(e)
        sys.exit(1)

    if removed:
        click.echo(f"Checkpoint for {channel_id} in {space} removed.")
    else:
        click.echo(f"No checkpoint found for {channel_id} in {space}.")


# ---------------------------------------------------------------------------
# init-config subcommand
# ---------------------------------------------------------------------------


@cli.command("init-config")
@click.option(
    "--output",
    default="config.yaml",
    show_default=True,
    help="Where to write the config file",
)
def init_config(output: str) -> None:
    """Write a config file with the default settings."""
    setup_logger()
    if not create_default_config(Path(output)):
        sys.exit(1)
    click.echo(f"Default config written to {output}")
