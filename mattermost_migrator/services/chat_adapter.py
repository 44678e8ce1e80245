"""Typed adapter for the Google Chat API.

Replaces raw ``chat.spaces().messages().create(...).execute()`` chains
with explicit method calls that are easier to mock, test, and type-check.

The adapter delegates to a pre-built Chat service object and does **not**
add any retry logic: every call is executed once.
"""

from __future__ import annotations

import io
from typing import Any

from googleapiclient.http import MediaIoBaseUpload


class ChatAdapter:
    """Thin typed wrapper around the Google Chat API service."""

    def __init__(self, service: Any) -> None:
        self._svc = service

    # -- Messages -------------------------------------------------------------

    def create_message(
        self,
        parent: str,
        body: dict[str, Any],
        message_reply_option: str | None = None,
    ) -> dict[str, Any]:
        """Create a message in a space.

        Args:
            parent: Space resource name (e.g. ``spaces/AAAA``).
            body: Message resource body.
            message_reply_option: Optional reply threading option.

        Returns:
            Created message resource dict.
        """
        kwargs: dict[str, Any] = {"parent": parent, "body": body}
        if message_reply_option is not None:
            kwargs["messageReplyOption"] = message_reply_option
        result: dict[str, Any] = (
            self._svc.spaces().messages().create(**kwargs).execute()
        )
        return result

    # -- Media ----------------------------------------------------------------

    def upload_attachment(
        self,
        parent: str,
        filename: str,
        content: bytes,
        mime_type: str,
    ) -> dict[str, Any]:
        """Upload bytes to a space so they can be attached to a message.

        Args:
            parent: Space resource name.
            filename: Name shown for the attachment.
            content: Raw file content.
            mime_type: MIME type of the content.

        Returns:
            Upload response dict with an ``attachmentDataRef`` key.
        """
        media = MediaIoBaseUpload(io.BytesIO(content), mimetype=mime_type, resumable=False)
        result: dict[str, Any] = (
            self._svc.media()
            .upload(parent=parent, body={"filename": filename}, media_body=media)
            .execute()
        )
        return result
