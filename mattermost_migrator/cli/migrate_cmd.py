"""CLI command handler for the migrate workflow."""

from __future__ import annotations

import datetime
import logging
import os
import sys
from pathlib import Path

import click

from mattermost_migrator.cli.common import cli, common_options, handle_exception
from mattermost_migrator.core.config import load_config
from mattermost_migrator.core.context import (
    MigrationContext,
    parse_channel_url,
    select_auth,
)
from mattermost_migrator.core.migrator import MattermostToChatMigrator
from mattermost_migrator.exceptions import ConfigError, MigratorError
from mattermost_migrator.utils.logging import log_with_context, setup_logger

# Create logger instance
logger = logging.getLogger("mattermost_migrator")


# ---------------------------------------------------------------------------
# migrate subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.argument("channel_url")
@click.option(
    "--space",
    required=True,
    help="Google Chat space to import into (e.g. spaces/AAAA)",
)
@click.option(
    "--username",
    default=None,
    help="Mattermost username (auth_mode: user_credentials)",
)
@click.option(
    "--password",
    default=None,
    help="Mattermost password; prompted for when omitted",
)
def migrate(
    channel_url: str,
    space: str,
    creds_path: str,
    workspace_admin: str,
    config: str,
    verbose: bool,
    debug_api: bool,
    username: str | None,
    password: str | None,
) -> None:
    """Import a Mattermost channel into a Google Chat space.

    CHANNEL_URL has the form https://mattermost.example.com/team/channels/channel.
    Running the command again later imports only messages posted since the
    previous run.

    Args:
        channel_url: Mattermost channel URL.
        space: Google Chat space resource name.
        creds_path: Path to service account credentials JSON.
        workspace_admin: Email of workspace admin to impersonate.
        config: Path to config YAML.
        verbose: Enable verbose console logging.
        debug_api: Enable detailed API request/response logging.
        username: Mattermost username for credential login.
        password: Mattermost password for credential login.
    """
    try:
        channel = parse_channel_url(channel_url)
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="CHANNEL_URL") from e
    if not space.startswith("spaces/"):
        space = f"spaces/{space}"

    # Create output directory early so all operations are logged to file
    output_dir = create_migration_output_directory()
    setup_logger(verbose, debug_api, output_dir)
    log_startup_info(channel_url, space, workspace_admin, config, verbose, debug_api)
    log_with_context(logging.INFO, f"Output directory: {output_dir}")

    if not Path(creds_path).exists():
        log_with_context(logging.ERROR, f"Credentials file not found: {creds_path}")
        log_with_context(
            logging.INFO,
            "Make sure your service account JSON key file exists and has the correct path.",
        )
        sys.exit(1)

    try:
        cfg = load_config(Path(config))
        if cfg.auth_mode == "user_credentials":
            if not username:
                username = click.prompt("Mattermost username")
            if password is None:
                password = click.prompt("Mattermost password", hide_input=True)
        ctx = MigrationContext(
            channel=channel,
            auth=select_auth(cfg, username, password),
            space=space,
            creds_path=creds_path,
            workspace_admin=workspace_admin,
            config=cfg,
            verbose=verbose,
            debug_api=debug_api,
        )
        migrator = MattermostToChatMigrator(ctx)
    except Exception as e:
        handle_exception(e)
        sys.exit(1)

    try:
        migrator.run()
    except MigratorError:
        # Already reported by the migrator
        sys.exit(1)
    except (Exception, KeyboardInterrupt) as e:
        handle_exception(e)
        sys.exit(1)
    finally:
        log_with_context(logging.INFO, f"Logs written to {output_dir}")


def log_startup_info(
    channel_url: str,
    space: str,
    workspace_admin: str,
    config: str,
    verbose: bool,
    debug_api: bool,
) -> None:
    """Log startup information."""
    config_path = Path(config)
    if not config_path.is_absolute():
        config_path = Path.cwd() / config

    log_with_context(logging.INFO, "Starting import with the following parameters:")
    log_with_context(logging.INFO, f"- Channel: {channel_url}")
    log_with_context(logging.INFO, f"- Space: {space}")
    log_with_context(logging.INFO, f"- Workspace admin: {workspace_admin}")
    log_with_context(logging.INFO, f"- Config: {config_path}")
    log_with_context(logging.INFO, f"- Verbose logging: {verbose}")
    log_with_context(logging.INFO, f"- Debug API calls: {debug_api}")


def create_migration_output_directory() -> str:
    """Create output directory for the run with timestamp.

    Returns:
        The path to the newly created output directory.
    """
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = f"migration_logs/run_{timestamp}"
    os.makedirs(output_dir, exist_ok=True)
    return output_dir
