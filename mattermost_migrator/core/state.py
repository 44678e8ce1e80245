"""
Migration state container for the Mattermost to Google Chat migration.

Mutable tracking state for a migration run, separated from immutable
configuration (MigrationContext) for clear ownership boundaries.

State is organized into typed sub-state dataclasses by concern area.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mattermost_migrator.types import RunSummary, SourceUser, TargetIdentity

# ---------------------------------------------------------------------------
# Sub-state dataclasses
# ---------------------------------------------------------------------------


@dataclass
class MessageState:
    """Thread reconstruction state for the current run.

    ``thread_map`` maps a Mattermost post id to the Google Chat thread it
    started. It is filled in emission order and never persisted.
    """

    thread_map: dict[str, str] = field(default_factory=dict)


@dataclass
class IdentityCache:
    """Source profiles and resolved identities.

    ``identities`` stores ``None`` for authors that could not be resolved,
    so a miss is cached as well as a hit.
    """

    users: dict[str, SourceUser] = field(default_factory=dict)
    identities: dict[str, TargetIdentity | None] = field(default_factory=dict)
    chat_delegates: dict[str, Any] = field(default_factory=dict)
    valid_users: dict[str, bool] = field(default_factory=dict)

    def clear(self) -> None:
        self.users.clear()
        self.identities.clear()
        self.chat_delegates.clear()
        self.valid_users.clear()


@dataclass
class ProgressState:
    """Counters and the last-imported pointer."""

    summary: RunSummary = field(default_factory=RunSummary)
    last_imported_timestamp: int | None = None
    last_imported_post_id: str | None = None


# ---------------------------------------------------------------------------
# Composed MigrationState
# ---------------------------------------------------------------------------


@dataclass
class MigrationState:
    """Holds all mutable tracking state for a migration run.

    Composed of typed sub-state dataclasses:
    - ``messages``: the ThreadMap
    - ``identities``: source profile and identity caches
    - ``progress``: counters and the last-imported pointer
    """

    messages: MessageState = field(default_factory=MessageState)
    identities: IdentityCache = field(default_factory=IdentityCache)
    progress: ProgressState = field(default_factory=ProgressState)

    def reset_for_run(self, keep_identity_cache: bool = False) -> None:
        """Reset per-run state at the start of a new migration run."""
        self.messages = MessageState()
        self.progress = ProgressState()
        if not keep_identity_cache:
            self.identities.clear()

    def record_emitted(
        self,
        post_id: str,
        create_at: int,
        thread_name: str | None,
    ) -> None:
        """Record a successfully emitted post and advance the last-imported pointer.

        A post without *thread_name* cannot be replied to.
        """
        if thread_name:
            self.messages.thread_map[post_id] = thread_name
        self.progress.last_imported_timestamp = create_at
        self.progress.last_imported_post_id = post_id
        self.progress.summary.imported += 1

    def thread_for(self, root_id: str) -> str | None:
        """Return the Chat thread a reply should join, or None for top level."""
        if not root_id:
            return None
        return self.messages.thread_map.get(root_id)
