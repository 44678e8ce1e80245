"""Message sending for Mattermost-to-Chat migration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mattermost_migrator.constants import REPLY_FALLBACK_TO_NEW_THREAD
from mattermost_migrator.services.chat_adapter import ChatAdapter
from mattermost_migrator.types import SendResult
from mattermost_migrator.utils.logging import log_with_context

if TYPE_CHECKING:
    from mattermost_migrator.services.user_resolver import UserResolver
    from mattermost_migrator.types import TargetIdentity


def _resolve_chat_service(
    user_resolver: UserResolver,
    identity: TargetIdentity | None,
) -> Any:
    """Pick the impersonated service for a resolved author, else the admin one."""
    if identity is None:
        return user_resolver.chat
    return user_resolver.get_delegate(identity.email)


def send_message(
    user_resolver: UserResolver,
    space: str,
    text: str,
    identity: TargetIdentity | None = None,
    thread_name: str | None = None,
    post_id: str = "",
) -> SendResult:
    """Create one message in a Google Chat space.

    Args:
        user_resolver: Resolver holding the admin and delegated services.
        space: Target space resource name.
        text: Composed message text.
        identity: Workspace identity to post as, or None for the admin.
        thread_name: Thread of the root post when this is a reply.
        post_id: Source post id, for logging only.

    Returns:
        A :class:`SendResult` for the created message. ``message_name`` is
        None when the API does not report one. API errors propagate to the caller.
    """
    body: dict[str, Any] = {"text": text}
    reply_option = None
    if thread_name:
        body["thread"] = {"name": thread_name}
        reply_option = REPLY_FALLBACK_TO_NEW_THREAD

    chat = ChatAdapter(_resolve_chat_service(user_resolver, identity))
    log_with_context(
        logging.DEBUG,
        f"Sending post {post_id}{' (thread reply)' if thread_name else ''}",
        post_id=post_id,
        sender=identity.email if identity else "admin",
    )
    result = chat.create_message(space, body, message_reply_option=reply_option)

    message_name: str | None = result.get("name") or None
    created_thread = (result.get("thread") or {}).get("name") or thread_name
    if not message_name:
        log_with_context(
            logging.WARNING,
            f"Message for post {post_id} was created but no id was returned",
            post_id=post_id,
        )
    return SendResult(message_name=message_name, thread_name=created_thread)
