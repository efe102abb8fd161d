"""Bounded history of past auto-update runs.

The history file keeps the five most recent runs as
``{"entries": [...]}``.  Appending beyond capacity evicts the oldest
entry; the remaining entries stay in chronological order.

Example
-------
>>> log = CircularLog(Path("/tmp/auto-update-history.json"))
>>> log.append(HistoryEntry.create(["my-plugin"], [], 1200, True))
>>> len(log.read())
1
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

MAX_ENTRIES: int = 5
MAX_ERRORS: int = 10


@dataclass(frozen=True)
class HistoryEntry:
    """A single recorded update run.

    Attributes
    ----------
    timestamp:
        UTC ISO-8601 time the entry was created.
    plugins_updated:
        Names of plugins whose config entry changed.
    errors:
        Per-plugin failure messages, at most ten.
    duration:
        Run duration in milliseconds.
    success:
        Whether the run finished without a run-level failure.
    """

    timestamp: str
    plugins_updated: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    duration: int = 0
    success: bool = True

    @classmethod
    def create(
        cls,
        plugins: list[str],
        errors: list[str],
        duration_ms: int,
        success: bool,
    ) -> HistoryEntry:
        """Stamp a new entry with the current time, truncating *errors*."""
        return cls(
            timestamp=datetime.now(tz=timezone.utc).isoformat(),
            plugins_updated=list(plugins),
            errors=list(errors[:MAX_ERRORS]),
            duration=duration_ms,
            success=success,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp,
            "pluginsUpdated": list(self.plugins_updated),
            "errors": list(self.errors),
            "duration": self.duration,
            "success": self.success,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> HistoryEntry:
        return cls(
            timestamp=str(data.get("timestamp", "")),
            plugins_updated=[str(p) for p in data.get("pluginsUpdated", []) or []],  # type: ignore[union-attr]
            errors=[str(e) for e in data.get("errors", []) or []],  # type: ignore[union-attr]
            duration=int(data.get("duration", 0) or 0),  # type: ignore[arg-type]
            success=bool(data.get("success", False)),
        )


class CircularLog:
    """Fixed-capacity JSON history file.

    Parameters
    ----------
    path:
        Location of the history file.  Parent directories are created on
        first write.
    capacity:
        Maximum number of entries retained.
    """

    def __init__(self, path: Path, capacity: int = MAX_ENTRIES) -> None:
        self._path = path
        self._capacity = capacity

    def read(self) -> list[HistoryEntry]:
        """Return stored entries, oldest first.  Missing or corrupt files yield ``[]``."""
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            entries = raw["entries"]
            return [HistoryEntry.from_dict(e) for e in entries if isinstance(e, dict)]
        except (OSError, ValueError, KeyError, TypeError):
            return []

    def append(self, entry: HistoryEntry) -> None:
        """Append *entry* and drop the oldest entries beyond capacity.

        Raises
        ------
        OSError:
            When the history file cannot be written.
        """
        entries = self.read()
        entries.append(entry)
        if len(entries) > self._capacity:
            entries = entries[-self._capacity:]

        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"entries": [e.to_dict() for e in entries]}
        self._path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        logger.debug("History now holds %d entries", len(entries))

    @property
    def path(self) -> Path:
        return self._path
