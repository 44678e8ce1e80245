"""Custom exception hierarchy for the Mattermost to Google Chat migration tool."""

from __future__ import annotations


class MigratorError(Exception):
    """Base exception for all migration-related errors."""


class ConfigError(MigratorError):
    """Raised when configuration is invalid or missing."""


class AuthFailedError(MigratorError):
    """Raised when Mattermost rejects the credentials or no admin token is set."""


class NotFoundError(MigratorError):
    """Raised when a Mattermost team, channel, user or file cannot be resolved."""


class SourceTransportError(MigratorError):
    """Raised when a Mattermost request fails at the network or HTTP level."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CheckpointError(MigratorError):
    """Raised when the checkpoint file exists but cannot be read or trusted."""
