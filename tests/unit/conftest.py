"""Unit test configuration and shared fixtures."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from mattermost_migrator.core.config import MigrationConfig
from mattermost_migrator.core.context import (
    AdminTokenAuth,
    ChannelLocator,
    CredentialsAuth,
    MigrationContext,
)

# ---------------------------------------------------------------------------
# Context factory
# ---------------------------------------------------------------------------


def _make_ctx(
    tmp_path: Any = None,
    auth: Any = None,
    space: str = "spaces/S1",
    workspace_admin: str = "admin@example.com",
    **config_overrides: Any,
) -> MigrationContext:
    """Build a MigrationContext for tests.

    Keyword arguments other than the named ones become MigrationConfig
    fields. Progress bars are off and the inter-message delay is zero unless
    overridden. With *tmp_path* the checkpoint file lives there.
    """
    config_values: dict[str, Any] = {"message_delay": 0}
    if tmp_path is not None:
        config_values["checkpoint_file"] = str(tmp_path / "checkpoints.json")
    config_values.update(config_overrides)
    return MigrationContext(
        channel=ChannelLocator(
            base_url="https://mm.example.org",
            team_name="eng",
            channel_name="town-square",
        ),
        auth=auth or CredentialsAuth(username="importer", password="secret"),
        space=space,
        creds_path="/tmp/creds.json",
        workspace_admin=workspace_admin,
        config=MigrationConfig(**config_values),
        show_progress=False,
    )


@pytest.fixture()
def make_ctx():
    """Factory fixture: ``make_ctx(tmp_path, auth_mode=..., ...)``."""
    return _make_ctx


@pytest.fixture()
def token_auth():
    return AdminTokenAuth(token="tok-123")


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------


def make_post(
    post_id: str,
    create_at: int,
    user_id: str = "u1",
    root_id: str = "",
    message: str | None = None,
    type_: str = "",
    file_ids: list[str] | None = None,
) -> dict[str, Any]:
    """Build a dict resembling a Mattermost post."""
    return {
        "id": post_id,
        "create_at": create_at,
        "user_id": user_id,
        "channel_id": "ch1",
        "root_id": root_id,
        "message": message if message is not None else f"message {post_id}",
        "type": type_,
        "file_ids": file_ids or [],
    }


def make_post_list(posts: list[dict[str, Any]]) -> dict[str, Any]:
    """Wrap posts in the ``order``/``posts`` envelope, newest first like the API."""
    ordered = sorted(posts, key=lambda p: p["create_at"], reverse=True)
    return {
        "order": [p["id"] for p in ordered],
        "posts": {p["id"]: p for p in ordered},
    }


def make_response(
    status_code: int = 200,
    json_data: Any = None,
    content: bytes | str = b"",
    headers: dict[str, str] | None = None,
) -> MagicMock:
    """Build a MagicMock resembling a ``requests.Response``."""
    response = MagicMock(name=f"response_{status_code}")
    response.status_code = status_code
    response.headers = headers or {}
    response.content = content
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


def make_http_error(status: int = 403, content: bytes = b"error") -> Any:
    """Build a googleapiclient HttpError with the given status."""
    from googleapiclient.errors import HttpError

    return HttpError(resp=MagicMock(status=status), content=content)
