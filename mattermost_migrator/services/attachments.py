"""Attachment transfer from Mattermost to Google Chat.

Each file on a post is downloaded from Mattermost and re-uploaded into the
target space. When the binary transfer fails after the metadata lookup
succeeded, the message gets a link back to the Mattermost file instead.
"""

from __future__ import annotations

import logging
import mimetypes
from typing import TYPE_CHECKING, Any

from google.auth.exceptions import TransportError
from googleapiclient.errors import HttpError

from mattermost_migrator.constants import DEFAULT_MIME_TYPE, REPLY_FALLBACK_TO_NEW_THREAD
from mattermost_migrator.exceptions import MigratorError
from mattermost_migrator.types import AttachmentOutcome, AttachmentRef
from mattermost_migrator.utils.logging import log_with_context

if TYPE_CHECKING:
    from mattermost_migrator.services.chat_adapter import ChatAdapter
    from mattermost_migrator.services.mattermost_client import MattermostClient


def fallback_link(name: str, url: str) -> str:
    """Markdown line pointing back at the file on the Mattermost server."""
    return f"**Attachment (link):** [{name}]({url})"


def guess_mime_type(ref: AttachmentRef) -> str:
    if ref.mime_type:
        return ref.mime_type
    guessed, _ = mimetypes.guess_type(ref.name)
    return guessed or DEFAULT_MIME_TYPE


class AttachmentTransfer:
    """Moves the files of one post into a Google Chat space, as the admin."""

    def __init__(self, client: MattermostClient, chat: ChatAdapter, space: str) -> None:
        self.client = client
        self.chat = chat
        self.space = space

    def _upload(self, ref: AttachmentRef, content: bytes, thread_name: str | None) -> None:
        """Upload bytes and post a message carrying the attachment reference."""
        upload = self.chat.upload_attachment(
            self.space, ref.name, content, guess_mime_type(ref)
        )
        attachment_ref = upload.get("attachmentDataRef")
        if not attachment_ref:
            raise MigratorError(f"Upload of {ref.name} returned no attachment reference")
        body: dict[str, Any] = {
            "text": ref.name,
            "attachment": [{"attachmentDataRef": attachment_ref}],
        }
        reply_option = None
        if thread_name:
            body["thread"] = {"name": thread_name}
            reply_option = REPLY_FALLBACK_TO_NEW_THREAD
        self.chat.create_message(self.space, body, message_reply_option=reply_option)

    def transfer(
        self,
        file_ids: tuple[str, ...] | list[str],
        post_id: str = "",
        thread_name: str | None = None,
    ) -> AttachmentOutcome:
        """Transfer every file of a post, in order.

        Args:
            file_ids: Mattermost file ids attached to the post.
            post_id: Source post id, for logging only.
            thread_name: Chat thread of the root post when the post is a reply.

        Returns:
            The names of the uploaded files and the fallback link lines.
        """
        outcome = AttachmentOutcome()
        for file_id in file_ids:
            try:
                ref = self.client.get_file_info(file_id)
            except MigratorError as e:
                log_with_context(
                    logging.WARNING,
                    f"Skipping attachment {file_id}, metadata unavailable: {e}",
                    post_id=post_id,
                    file_id=file_id,
                )
                outcome.skipped.append(file_id)
                continue

            try:
                content = self.client.get_file_content(file_id)
                self._upload(ref, content, thread_name)
            except (MigratorError, HttpError, TransportError) as e:
                log_with_context(
                    logging.WARNING,
                    f"Failed to transfer attachment {ref.name}, linking instead: {e}",
                    post_id=post_id,
                    file_id=file_id,
                )
                outcome.fallback_links.append(
                    fallback_link(ref.name, self.client.file_url(file_id))
                )
                continue

            log_with_context(
                logging.DEBUG,
                f"Uploaded attachment {ref.name} ({ref.size} bytes)",
                post_id=post_id,
                file_id=file_id,
            )
            outcome.uploaded.append(ref.name)
        return outcome
