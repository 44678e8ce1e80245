"""Checkpoint persistence for incremental imports.

One record is kept per (Google Chat space, Mattermost channel) pair. Records
live together in a single JSON file that is rewritten atomically; saving a
record replaces the previous one for the same pair.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from mattermost_migrator.exceptions import CheckpointError
from mattermost_migrator.utils.logging import log_with_context

CHECKPOINT_SCHEMA_VERSION = 1


@dataclass
class ImportCheckpoint:
    """How far the import of one channel into one space has progressed."""

    space: str
    channel_id: str
    source_url: str = ""
    team_name: str = ""
    channel_name: str = ""
    last_imported_timestamp: int = 0
    last_imported_post_id: str = ""
    total_imported: int = 0
    last_import_date: str | None = None

    @property
    def key(self) -> str:
        return checkpoint_key(self.space, self.channel_id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImportCheckpoint:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def checkpoint_key(space: str, channel_id: str) -> str:
    return f"{space}|{channel_id}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CheckpointStore:
    """Reads and writes import checkpoints in a JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict[str, dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            raise CheckpointError(f"Failed to read checkpoint file {self.path}: {e}") from e
        if not isinstance(raw, dict):
            raise CheckpointError(f"Checkpoint file {self.path} has invalid format")
        version = raw.get("schema_version", 0)
        if version != CHECKPOINT_SCHEMA_VERSION:
            raise CheckpointError(
                f"Checkpoint schema version {version} != {CHECKPOINT_SCHEMA_VERSION} in {self.path}"
            )
        imports = raw.get("imports", {})
        if not isinstance(imports, dict):
            raise CheckpointError(f"Checkpoint file {self.path} has invalid format")
        return imports

    def _write_all(self, imports: dict[str, dict[str, Any]]) -> None:
        """Atomically save all records to disk (write .tmp + rename)."""
        payload = {"schema_version": CHECKPOINT_SCHEMA_VERSION, "imports": imports}
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n")
            tmp.replace(self.path)
        except OSError as e:
            raise CheckpointError(f"Failed to write checkpoint file {self.path}: {e}") from e

    def load(self, space: str, channel_id: str) -> ImportCheckpoint | None:
        """Return the checkpoint for a pair, or None if it was never imported."""
        key = checkpoint_key(space, channel_id)
        log_with_context(
            logging.DEBUG,
            f"Looking for import record: space={space}, channel={channel_id}",
        )
        record = self._read_all().get(key)
        if record is None:
            return None
        checkpoint = ImportCheckpoint.from_dict(record)
        log_with_context(
            logging.DEBUG,
            f"Found import record: {checkpoint.total_imported} imported, "
            f"last timestamp {checkpoint.last_imported_timestamp}",
        )
        return checkpoint

    def save(self, checkpoint: ImportCheckpoint) -> ImportCheckpoint:
        """Overwrite the record for the checkpoint's pair."""
        if checkpoint.last_import_date is None:
            checkpoint.last_import_date = _now_iso()
        imports = self._read_all()
        imports[checkpoint.key] = asdict(checkpoint)
        self._write_all(imports)
        log_with_context(
            logging.INFO,
            f"Saved import record for space {checkpoint.space}, channel {checkpoint.channel_id}",
            total_imported=checkpoint.total_imported,
            last_imported_timestamp=checkpoint.last_imported_timestamp,
        )
        return checkpoint

    def delete(self, space: str, channel_id: str) -> bool:
        """Forget the record for a pair. Returns False if there was none."""
        imports = self._read_all()
        if imports.pop(checkpoint_key(space, channel_id), None) is None:
            return False
        self._write_all(imports)
        log_with_context(
            logging.INFO,
            f"Removed import record for space {space}, channel {channel_id}",
        )
        return True

    def list_all(self, space: str | None = None) -> list[ImportCheckpoint]:
        """Return all records, optionally only those for one space."""
        records = [ImportCheckpoint.from_dict(r) for r in self._read_all().values()]
        if space:
            records = [r for r in records if r.space == space]
        return sorted(records, key=lambda r: (r.space, r.team_name, r.channel_name))
