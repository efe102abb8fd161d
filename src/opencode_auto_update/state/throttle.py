"""Persisted throttle state and the policy gating update frequency.

The state lives in ``.auto-update.json`` beside ``opencode.json`` and
records the epoch-millisecond time of the last started run and the last
successful run.

Example
-------
>>> store = ThrottleStore(Path("~/.config/opencode").expanduser())
>>> policy = ThrottlePolicy(interval_hours=24)
>>> policy.should_run(store.read(), now_ms=1_700_000_000_000)
True
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path

logger = logging.getLogger(__name__)

THROTTLE_FILENAME: str = ".auto-update.json"
_HOUR_MS: int = 60 * 60 * 1000


@dataclass(frozen=True)
class ThrottleState:
    """Timestamps of the previous runs, in epoch milliseconds."""

    last_run: int | None = None
    last_success: int | None = None

    def with_last_run(self, now_ms: int) -> ThrottleState:
        return replace(self, last_run=now_ms)

    def with_last_success(self, now_ms: int) -> ThrottleState:
        return replace(self, last_success=now_ms)

    def to_dict(self) -> dict[str, int]:
        data: dict[str, int] = {}
        if self.last_run is not None:
            data["lastRun"] = self.last_run
        if self.last_success is not None:
            data["lastSuccess"] = self.last_success
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> ThrottleState:
        return cls(
            last_run=_as_int(data.get("lastRun")),
            last_success=_as_int(data.get("lastSuccess")),
        )


def _as_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


class ThrottleStore:
    """Reads and writes the throttle state file.

    Parameters
    ----------
    config_dir:
        The opencode configuration directory.
    """

    def __init__(self, config_dir: Path) -> None:
        self._config_dir = config_dir
        self._path = config_dir / THROTTLE_FILENAME

    def read(self) -> ThrottleState:
        """Return the persisted state; a missing or corrupt file yields an empty state."""
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return ThrottleState()
        if not isinstance(raw, dict):
            return ThrottleState()
        return ThrottleState.from_dict(raw)

    def write(self, state: ThrottleState) -> None:
        """Overwrite the state file.

        Raises
        ------
        OSError:
            When the directory or file cannot be written.
        """
        self._config_dir.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(state.to_dict(), indent=2), encoding="utf-8")
        logger.debug("Throttle state written: %s", state.to_dict())

    @property
    def path(self) -> Path:
        return self._path


class ThrottlePolicy:
    """Decides whether enough time has passed since the last run.

    Parameters
    ----------
    interval_hours:
        Minimum hours between runs.
    min_interval_hours:
        Lower clamp applied to *interval_hours*.  With the default of one
        hour a zero interval still throttles for an hour; pass ``0`` to make
        a zero interval disable throttling entirely.
    """

    def __init__(self, interval_hours: float, min_interval_hours: float = 1.0) -> None:
        self._interval_hours = max(interval_hours, min_interval_hours)

    @property
    def interval_ms(self) -> int:
        return int(self._interval_hours * _HOUR_MS)

    def should_run(
        self,
        state: ThrottleState,
        now_ms: int,
        ignore_throttle: bool = False,
    ) -> bool:
        """Return ``True`` when an update run may proceed."""
        if ignore_throttle or state.last_run is None:
            return True
        return now_ms - state.last_run >= self.interval_ms
