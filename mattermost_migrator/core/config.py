"""
Configuration module for the Mattermost to Google Chat migration tool.

This module provides functions for loading configuration settings from YAML
files into a typed dataclass and for creating a default configuration file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from mattermost_migrator.constants import (
    DEFAULT_CHECKPOINT_FILE,
    DEFAULT_MESSAGE_DELAY,
    DEFAULT_PAGE_SIZE,
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
)
from mattermost_migrator.exceptions import ConfigError
from mattermost_migrator.utils.logging import log_with_context

AUTH_MODES = ("user_credentials", "admin_token")
IDENTITY_MATCH_MODES = ("username", "email")
CACHE_SCOPES = ("run", "process")


def parse_user_mapping(raw: Any) -> dict[str, str]:
    """Normalize the ``user_mapping`` setting into a plain dict.

    Accepts a mapping or a JSON object string. An unparsable value is logged
    and treated as empty so the automatic match can still run.
    """
    if not raw:
        return {}
    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items() if v}
    if isinstance(raw, str):
        try:
            loaded = json.loads(raw)
        except json.JSONDecodeError as e:
            log_with_context(
                logging.ERROR, f"Failed to parse user_mapping JSON: {e}"
            )
            return {}
        if isinstance(loaded, dict):
            return {str(k): str(v) for k, v in loaded.items() if v}
    log_with_context(
        logging.ERROR,
        f"Ignoring user_mapping of unsupported type {type(raw).__name__}",
    )
    return {}


@dataclass
class MigrationConfig:
    """Typed configuration for the migration tool.

    All fields have defaults so an empty or missing config file still runs.
    """

    # Mattermost authentication
    auth_mode: str = "user_credentials"
    admin_token: str = ""
    source_url: str = ""

    # Identity resolution
    identity_match: str = "username"
    user_mapping: dict[str, str] = field(default_factory=dict)
    auto_match: bool = True
    email_domain_override: str = ""
    workspace_domain: str = ""
    cache_scope: str = "run"

    # Fetching
    page_size: int = DEFAULT_PAGE_SIZE
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    strict_pagination: bool = False

    # Throughput
    message_delay: float = DEFAULT_MESSAGE_DELAY
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL

    # Persistence
    checkpoint_file: str = DEFAULT_CHECKPOINT_FILE

    def __post_init__(self) -> None:
        if self.auth_mode not in AUTH_MODES:
            raise ConfigError(
                f"auth_mode must be one of {', '.join(AUTH_MODES)}, got {self.auth_mode!r}"
            )
        if self.identity_match not in IDENTITY_MATCH_MODES:
            raise ConfigError(
                f"identity_match must be one of {', '.join(IDENTITY_MATCH_MODES)}, "
                f"got {self.identity_match!r}"
            )
        if self.cache_scope not in CACHE_SCOPES:
            raise ConfigError(
                f"cache_scope must be one of {', '.join(CACHE_SCOPES)}, got {self.cache_scope!r}"
            )
        if self.page_size <= 0:
            raise ConfigError(f"page_size must be positive, got {self.page_size}")
        if self.progress_interval <= 0:
            raise ConfigError(
                f"progress_interval must be positive, got {self.progress_interval}"
            )
        if self.message_delay < 0:
            raise ConfigError(
                f"message_delay must be non-negative, got {self.message_delay}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationConfig:
        """Create a MigrationConfig from a raw config dictionary."""
        return cls(
            auth_mode=data.get("auth_mode") or "user_credentials",
            admin_token=data.get("admin_token") or "",
            source_url=(data.get("source_url") or "").rstrip("/"),
            identity_match=data.get("identity_match") or "username",
            user_mapping=parse_user_mapping(data.get("user_mapping")),
            auto_match=data.get("auto_match", True),
            email_domain_override=data.get("email_domain_override") or "",
            workspace_domain=data.get("workspace_domain") or "",
            cache_scope=data.get("cache_scope") or "run",
            page_size=data.get("page_size", DEFAULT_PAGE_SIZE),
            request_timeout=data.get("request_timeout", DEFAULT_REQUEST_TIMEOUT),
            strict_pagination=data.get("strict_pagination", False),
            message_delay=data.get("message_delay", DEFAULT_MESSAGE_DELAY),
            progress_interval=data.get("progress_interval", DEFAULT_PROGRESS_INTERVAL),
            checkpoint_file=data.get("checkpoint_file") or DEFAULT_CHECKPOINT_FILE,
        )


def load_config(config_path: Path) -> MigrationConfig:
    """
    Load configuration from YAML file and apply default values.

    If the file doesn't exist or can't be parsed, a warning is logged and
    default settings are used. Values that parse but are invalid raise
    ConfigError.

    Args:
        config_path: Path to the config YAML file

    Returns:
        MigrationConfig with all necessary defaults applied
    """
    raw: dict[str, Any] = {}

    if config_path.exists():
        try:
            with open(config_path) as f:
                loaded_config = yaml.safe_load(f)
                # Handle None result from empty file
                if loaded_config is not None:
                    raw = loaded_config
            log_with_context(logging.INFO, f"Loaded configuration from {config_path}")
        except (yaml.YAMLError, OSError) as e:
            log_with_context(
                logging.WARNING, f"Failed to load config file {config_path}: {e}"
            )
    else:
        log_with_context(
            logging.WARNING,
            f"Config file {config_path} not found, using default settings",
        )

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {config_path} must contain a YAML mapping")

    return MigrationConfig.from_dict(raw)


def create_default_config(output_path: Path) -> bool:
    """
    Create a default configuration file with recommended settings.

    The function will not overwrite an existing configuration file.

    Args:
        output_path: Path where the default config should be saved

    Returns:
        True if the config file was created successfully, False otherwise
    """
    if output_path.exists():
        log_with_context(
            logging.WARNING,
            f"Config file {output_path} already exists, not overwriting",
        )
        return False

    default_config = {
        "auth_mode": "user_credentials",
        "admin_token": "",
        "source_url": "",
        "identity_match": "username",
        "user_mapping": {
            "mm_alice": "alice@example.com",
            "mm_bob": "robert",  # Bare usernames get the workspace domain appended
        },
        "auto_match": True,
        "email_domain_override": "",
        "workspace_domain": "",
        "cache_scope": "run",
        "page_size": DEFAULT_PAGE_SIZE,
        "request_timeout": DEFAULT_REQUEST_TIMEOUT,
        "strict_pagination": False,
        "message_delay": DEFAULT_MESSAGE_DELAY,
        "progress_interval": DEFAULT_PROGRESS_INTERVAL,
        "checkpoint_file": DEFAULT_CHECKPOINT_FILE,
    }

    try:
        with open(output_path, "w") as f:
            yaml.safe_dump(default_config, f, default_flow_style=False, sort_keys=False)
        log_with_context(logging.INFO, f"Created default config file at {output_path}")
        return True
    except OSError as e:
        log_with_context(logging.ERROR, f"Failed to create default config file: {e}")
        return False
