"""Shared type definitions for the Mattermost to Google Chat migration tool.

Provides TypedDicts for the raw Mattermost API payloads, frozen dataclasses
for the parsed values that flow through the migration pipeline, and the
structured results returned at service boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypedDict

# ---------------------------------------------------------------------------
# Mattermost API payloads
# ---------------------------------------------------------------------------


class MattermostPostData(TypedDict, total=False):
    """A post record from ``GET /channels/{id}/posts``."""

    id: str
    create_at: int
    update_at: int
    user_id: str
    channel_id: str
    root_id: str
    message: str
    type: str
    file_ids: list[str]


class MattermostPostList(TypedDict, total=False):
    """The post list envelope: ids in ``order``, records in ``posts``."""

    order: list[str]
    posts: dict[str, MattermostPostData]


class MattermostUserData(TypedDict, total=False):
    """A user record from ``GET /users/{id}``."""

    id: str
    username: str
    first_name: str
    last_name: str
    nickname: str
    email: str


class MattermostFileData(TypedDict, total=False):
    """A file record from ``GET /files/{id}/info``."""

    id: str
    name: str
    extension: str
    size: int
    mime_type: str


# ---------------------------------------------------------------------------
# Parsed source values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceMessage:
    """A Mattermost post, immutable once fetched."""

    id: str
    create_at: int
    user_id: str = ""
    channel_id: str = ""
    root_id: str = ""
    message: str = ""
    type: str = ""
    file_ids: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, data: MattermostPostData) -> SourceMessage:
        return cls(
            id=data.get("id", ""),
            create_at=int(data.get("create_at", 0) or 0),
            user_id=data.get("user_id", "") or "",
            channel_id=data.get("channel_id", "") or "",
            root_id=data.get("root_id", "") or "",
            message=data.get("message", "") or "",
            type=data.get("type", "") or "",
            file_ids=tuple(data.get("file_ids") or ()),
        )

    @property
    def is_system(self) -> bool:
        """True for system-generated events (joins, header changes, ...)."""
        return bool(self.type)

    @property
    def is_reply(self) -> bool:
        return bool(self.root_id)


@dataclass(frozen=True)
class SourceUser:
    """A Mattermost user profile."""

    id: str
    username: str
    first_name: str = ""
    last_name: str = ""
    nickname: str = ""
    email: str | None = None

    @classmethod
    def from_api(cls, data: MattermostUserData) -> SourceUser:
        return cls(
            id=data.get("id", ""),
            username=data.get("username", "") or "",
            first_name=data.get("first_name", "") or "",
            last_name=data.get("last_name", "") or "",
            nickname=data.get("nickname", "") or "",
            email=data.get("email") or None,
        )

    @property
    def display_name(self) -> str:
        """Full name, then nickname, then username."""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.nickname or self.username


@dataclass(frozen=True)
class AttachmentRef:
    """Metadata for a file attached to a Mattermost post."""

    id: str
    name: str
    extension: str = ""
    size: int = 0
    mime_type: str = ""

    @classmethod
    def from_api(cls, data: MattermostFileData) -> AttachmentRef:
        file_id = data.get("id", "")
        return cls(
            id=file_id,
            name=data.get("name") or f"file_{file_id}",
            extension=data.get("extension", "") or "",
            size=int(data.get("size", 0) or 0),
            mime_type=data.get("mime_type", "") or "",
        )


@dataclass
class FetchResult:
    """Posts returned by a fetch, plus whether paging stopped early."""

    posts: list[SourceMessage] = field(default_factory=list)
    partial: bool = False


# ---------------------------------------------------------------------------
# Identity resolution
# ---------------------------------------------------------------------------


class IdentitySource(str, Enum):
    """Which resolution strategy produced a target identity."""

    MANUAL = "manual"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class TargetIdentity:
    """A Google Workspace account that a Mattermost author maps to."""

    email: str
    source: IdentitySource


# ---------------------------------------------------------------------------
# Service result types (structured returns at API boundaries)
# ---------------------------------------------------------------------------


@dataclass
class SendResult:
    """Structured result from :func:`send_message`.

    A created message may still have no ``message_name`` when the API does
    not report one. Such a message cannot be replied to.
    """

    message_name: str | None = None
    thread_name: str | None = None


@dataclass
class AttachmentOutcome:
    """What happened to the files of one message."""

    uploaded: list[str] = field(default_factory=list)
    fallback_links: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


@dataclass
class RunSummary:
    """Counters reported to the operator at the end of a run."""

    imported: int = 0
    threaded: int = 0
    errors: int = 0
    skipped: int = 0
    fetched: int = 0
    total_imported: int = 0
    incremental: bool = False
    partial_fetch: bool = False
    attachments_uploaded: int = 0
    attachments_linked: int = 0
    last_imported_timestamp: int | None = None
    last_imported_post_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "imported": self.imported,
            "threaded": self.threaded,
            "errors": self.errors,
            "skipped": self.skipped,
            "fetched": self.fetched,
            "total_imported": self.total_imported,
            "incremental": self.incremental,
            "partial_fetch": self.partial_fetch,
            "attachments_uploaded": self.attachments_uploaded,
            "attachments_linked": self.attachments_linked,
        }
