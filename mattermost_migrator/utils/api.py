"""
Google API and timestamp utilities for the Mattermost to Google Chat migration tool
"""

import datetime
import logging
from typing import Any, Dict

from google.oauth2 import service_account
from googleapiclient.discovery import build

from mattermost_migrator.constants import TIMESTAMP_FORMAT
from mattermost_migrator.utils.logging import log_with_context

REQUIRED_SCOPES = [
    "https://www.googleapis.com/auth/chat.messages",
    "https://www.googleapis.com/auth/chat.messages.create",
    "https://www.googleapis.com/auth/chat.spaces.readonly",
    "https://www.googleapis.com/auth/admin.directory.user.readonly",  # Account lookup by email
]

# Cache for service instances
_service_cache: Dict[str, Any] = {}


def get_gcp_service(
    creds_path: str,
    user_email: str,
    api: str,
    version: str,
) -> Any:
    """Get a Google API client service using service account impersonation.

    Services are cached per (credentials, user, api, version). Requests made
    through them run exactly once: nothing is retried.
    """
    cache_key = f"{creds_path}:{user_email}:{api}:{version}"
    if cache_key in _service_cache:
        log_with_context(
            logging.DEBUG,
            f"Using cached service for {api} as {user_email}",
        )
        return _service_cache[cache_key]

    try:
        log_with_context(
            logging.DEBUG,
            f"Creating new service for {api} as {user_email} with required scopes.",
        )

        # The scopes must match the ones authorized for domain-wide delegation
        creds = service_account.Credentials.from_service_account_file(
            creds_path, scopes=REQUIRED_SCOPES
        )
        delegated = creds.with_subject(user_email)
        service = build(api, version, credentials=delegated, cache_discovery=False)

        _service_cache[cache_key] = service
        return service
    except Exception as e:
        log_with_context(
            logging.ERROR,
            f"Failed to create {api} service: {e}",
            user_email=user_email,
            api=api,
            version=version,
        )
        raise


def epoch_ms_to_datetime(epoch_ms: int) -> datetime.datetime:
    """Convert a Mattermost millisecond timestamp to an aware UTC datetime."""
    return datetime.datetime.fromtimestamp(epoch_ms / 1000, tz=datetime.timezone.utc)


def format_epoch_ms(epoch_ms: int) -> str:
    """Render a Mattermost timestamp as ``YYYY-MM-DD HH:MM`` in UTC."""
    return epoch_ms_to_datetime(epoch_ms).strftime(TIMESTAMP_FORMAT)
