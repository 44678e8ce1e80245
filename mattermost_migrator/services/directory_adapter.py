"""Typed adapter for the Admin SDK Directory API (account lookup only)."""

from __future__ import annotations

from typing import Any

from googleapiclient.errors import HttpError

from mattermost_migrator.constants import HTTP_NOT_FOUND


class DirectoryAdapter:
    """Thin typed wrapper around the Directory API service."""

    def __init__(self, service: Any) -> None:
        self._svc = service

    def get_user(self, email: str) -> dict[str, Any] | None:
        """Look up a Workspace account by primary email or alias.

        Args:
            email: Address to look up.

        Returns:
            User resource dict, or None when no such account exists. Other
            API errors propagate.
        """
        try:
            result: dict[str, Any] = (
                self._svc.users().get(userKey=email, projection="basic").execute()
            )
        except HttpError as e:
            if e.resp.status == HTTP_NOT_FOUND:
                return None
            raise
        return result
