"""Service integrations for the Mattermost API and Google API communication."""

__all__ = [
    "attachments",
    "chat_adapter",
    "directory_adapter",
    "mattermost_client",
    "message_builder",
    "message_sender",
    "notifier",
    "user_resolver",
]
