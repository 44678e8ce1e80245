"""Immutable migration context.

MigrationContext is a frozen dataclass that holds everything a run needs to
know up front: where the Mattermost channel lives, which Google Chat space
receives it, how to authenticate, and the loaded configuration. It is created
once by the CLI and shared (read-only) with the services.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from mattermost_migrator.constants import CHANNEL_URL_PATTERN
from mattermost_migrator.core.config import MigrationConfig
from mattermost_migrator.exceptions import ConfigError

# ---------------------------------------------------------------------------
# Authentication variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AdminTokenAuth:
    """Pre-shared Mattermost personal access token; no login call is made."""

    token: str

    def __repr__(self) -> str:
        return "AdminTokenAuth(token='***')"


@dataclass(frozen=True)
class CredentialsAuth:
    """Interactive Mattermost login with a username and password."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"CredentialsAuth(username={self.username!r}, password='***')"


SourceAuth = Union[AdminTokenAuth, CredentialsAuth]


def select_auth(
    config: MigrationConfig,
    username: str | None = None,
    password: str | None = None,
) -> SourceAuth:
    """Pick the authentication variant for this run from the configured mode."""
    if config.auth_mode == "admin_token":
        return AdminTokenAuth(token=config.admin_token)
    if not username or password is None:
        raise ConfigError(
            "auth_mode is user_credentials: a Mattermost username and password are required"
        )
    return CredentialsAuth(username=username, password=password)


# ---------------------------------------------------------------------------
# Channel URL
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChannelLocator:
    """The pieces of ``https://host/team/channels/channel``."""

    base_url: str
    team_name: str
    channel_name: str

    @property
    def label(self) -> str:
        return f"{self.team_name}/{self.channel_name}"


def parse_channel_url(url: str) -> ChannelLocator:
    """Split a Mattermost channel URL into base URL, team and channel.

    Raises:
        ConfigError: If the URL does not have the expected shape.
    """
    match = re.match(CHANNEL_URL_PATTERN, url.strip())
    if not match:
        raise ConfigError(
            "Invalid Mattermost URL format. "
            "Expected: https://mattermost.example.com/team/channels/channel"
        )
    return ChannelLocator(
        base_url=match.group(1),
        team_name=match.group(2),
        channel_name=match.group(3),
    )


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MigrationContext:
    """Immutable context for a migration run. Created once, shared everywhere."""

    # Source
    channel: ChannelLocator
    auth: SourceAuth

    # Target
    space: str
    creds_path: str
    workspace_admin: str

    # Loaded configuration
    config: MigrationConfig

    # Mode flags
    verbose: bool = False
    debug_api: bool = False
    show_progress: bool = True

    @property
    def source_url(self) -> str:
        """Base URL for API calls; the configured override wins over the channel URL."""
        return self.config.source_url or self.channel.base_url

    @property
    def workspace_domain(self) -> str:
        """Google Workspace domain, defaulting to the admin's email domain."""
        if self.config.workspace_domain:
            return self.config.workspace_domain
        return self.workspace_admin.split("@")[-1] if "@" in self.workspace_admin else ""

    @property
    def checkpoint_path(self) -> Path:
        return Path(self.config.checkpoint_file)
