"""Message text composition for Mattermost-to-Chat message transformation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mattermost_migrator.constants import IMPORT_ANNOTATION, UNKNOWN_USERNAME
from mattermost_migrator.utils.api import format_epoch_ms

if TYPE_CHECKING:
    from mattermost_migrator.types import (
        AttachmentOutcome,
        SourceMessage,
        SourceUser,
        TargetIdentity,
    )


def provenance_header(user: SourceUser | None, timestamp: str) -> str:
    """Bold header naming the original author, for posts sent as the admin."""
    if user is None:
        return f"**{UNKNOWN_USERNAME} ({UNKNOWN_USERNAME}) — {timestamp}**"
    username = user.username or UNKNOWN_USERNAME
    display = user.display_name or username
    return f"**{display} ({username}) — {timestamp}**"


def compose_text(
    post: SourceMessage,
    user: SourceUser | None,
    identity: TargetIdentity | None,
    attachments: AttachmentOutcome | None = None,
) -> str:
    """Build the Google Chat text for a Mattermost post.

    Posts whose author resolved to a Workspace account only carry an
    italic import note; everything else gets a provenance header so the
    original author stays visible. The body is passed through unchanged.

    Args:
        post: The source post.
        user: Its author's Mattermost profile, or None if unavailable.
        identity: The resolved Workspace identity, or None when unresolved.
        attachments: Result of the attachment transfer, if any.

    Returns:
        The message text.
    """
    timestamp = format_epoch_ms(post.create_at)
    if identity is None:
        header = provenance_header(user, timestamp)
    else:
        header = f"_{timestamp} ({IMPORT_ANNOTATION})_"

    text = f"{header}\n\n{post.message}"

    if attachments is not None:
        for link in attachments.fallback_links:
            text += f"\n\n{link}"
        if attachments.uploaded:
            text += f"\n\n_Uploaded: {', '.join(attachments.uploaded)}_"

    return text
