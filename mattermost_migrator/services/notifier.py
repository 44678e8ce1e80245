"""Operator notifications for a migration run.

Notifications are the short status lines the person running the import
sees ("Authenticated with Mattermost.", the final summary, errors). They go
through the package logger, so they reach the console and ``migration.log``
alike, and are kept in order for the caller to inspect.
"""

from __future__ import annotations

import logging

from mattermost_migrator.utils.logging import log_with_context


class ConsoleNotifier:
    """Sends notifications to the operator's console via the logger."""

    def __init__(self) -> None:
        self.sent: list[str] = []

    def notify(self, text: str) -> None:
        self.sent.append(text)
        log_with_context(logging.INFO, text, notification=True)

    def warn(self, text: str) -> None:
        self.sent.append(text)
        log_with_context(logging.WARNING, text, notification=True)

    def error(self, text: str) -> None:
        self.sent.append(text)
        log_with_context(logging.ERROR, text, notification=True)
