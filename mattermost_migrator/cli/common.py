"""Shared CLI infrastructure: option decorators, error handlers, and the CLI group."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

import click

if TYPE_CHECKING:
    from googleapiclient.errors import HttpError

import mattermost_migrator
from mattermost_migrator.constants import (
    HTTP_FORBIDDEN,
    HTTP_RATE_LIMIT,
    HTTP_SERVER_ERROR_MIN,
    PERMISSION_DENIED_ERROR,
)
from mattermost_migrator.exceptions import MigratorError
from mattermost_migrator.utils.logging import log_with_context

# Create logger instance
logger = logging.getLogger("mattermost_migrator")


# ---------------------------------------------------------------------------
# Shared option decorators
# ---------------------------------------------------------------------------


def config_option(f: Callable[..., None]) -> Callable[..., None]:
    return click.option(
        "--config",
        default="config.yaml",
        show_default=True,
        help="Path to config YAML",
    )(f)


def common_options(f: Callable[..., None]) -> Callable[..., None]:
    """Decorator that adds options shared by commands that talk to Google.

    Args:
        f: The Click command function to decorate.

    Returns:
        The decorated function with common options attached.
    """
    f = click.option(
        "--creds_path",
        required=True,
        help="Path to service account credentials JSON",
    )(f)
    f = click.option(
        "--workspace_admin",
        required=True,
        help="Email of workspace admin to impersonate",
    )(f)
    f = config_option(f)
    f = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose console logging (shows DEBUG level messages)",
    )(f)
    f = click.option(
        "--debug_api",
        is_flag=True,
        default=False,
        help="Enable detailed API request/response logging (creates very large log files)",
    )(f)
    return f


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(
    version=mattermost_migrator.__version__, prog_name="mattermost-migrator"
)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Mattermost to Google Chat channel importer.

    Args:
        ctx: The Click context (injected by ``@click.pass_context``).
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


def handle_http_error(e: HttpError) -> None:
    """Handle HTTP errors with specific messages.

    Args:
        e: The Google API HTTP error to handle.
    """

    if e.resp.status == HTTP_FORBIDDEN and PERMISSION_DENIED_ERROR in str(e):
        log_with_context(logging.ERROR, f"Permission denied error: {e}")
        log_with_context(
            logging.INFO,
            "\nThe service account doesn't have sufficient permissions. Please ensure:",
        )
        log_with_context(
            logging.INFO,
            "1. Domain-wide delegation is configured properly in your Google Workspace admin console",
        )
        log_with_context(
            logging.INFO, "2. The following scopes are granted to the service account:"
        )
        log_with_context(
            logging.INFO, "   - https://www.googleapis.com/auth/chat.messages"
        )
        log_with_context(
            logging.INFO,
            "   - https://www.googleapis.com/auth/admin.directory.user.readonly",
        )
        log_with_context(
            logging.INFO, "3. The workspace admin is a member of the target space"
        )
    elif e.resp.status == HTTP_RATE_LIMIT:
        log_with_context(logging.ERROR, f"Rate limit exceeded: {e}")
        log_with_context(
            logging.INFO,
            "The import hit API rate limits. Run the same command again to resume "
            "from the last checkpoint, or raise message_delay in the config.",
        )
    elif e.resp.status >= HTTP_SERVER_ERROR_MIN:
        log_with_context(logging.ERROR, f"Server error from Google API: {e}")
        log_with_context(
            logging.INFO, "This is likely a temporary issue. Please try again later."
        )
    else:
        log_with_context(logging.ERROR, f"API error during import: {e}")


def handle_exception(e: BaseException) -> None:
    """Handle different types of exceptions.

    Args:
        e: The exception to handle.
    """
    from googleapiclient.errors import HttpError

    if isinstance(e, MigratorError):
        log_with_context(logging.ERROR, str(e))
    elif isinstance(e, HttpError):
        handle_http_error(e)
    elif isinstance(e, FileNotFoundError):
        log_with_context(logging.ERROR, f"File not found: {e}")
        log_with_context(
            logging.INFO,
            "Please check that all required files exist and paths are correct.",
        )
    elif isinstance(e, KeyboardInterrupt):
        log_with_context(logging.WARNING, "Import interrupted by user.")
        log_with_context(
            logging.INFO,
            "Messages imported before the interruption were not checkpointed "
            "and will be imported again on the next run.",
        )
    else:
        log_with_context(logging.ERROR, f"Import failed: {e}", exc_info=True)
