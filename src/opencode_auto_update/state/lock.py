"""File-based mutual exclusion for auto-update runs.

A single JSON lock file (``.auto-update.lock``) inside the opencode
configuration directory marks the process currently updating plugins.
Locks older than two hours are considered stale and may be reclaimed
with ``force=True``.

The lock is best-effort: an unreadable lock file counts as absent, so a
process that reads another's half-written lock may take it over.

Example
-------
>>> from pathlib import Path
>>> manager = LockManager(Path("~/.config/opencode").expanduser())
>>> if manager.acquire():
...     try:
...         pass  # update plugins
...     finally:
...         manager.release()
"""
from __future__ import annotations

import json
import logging
import os
import socket
import time
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

LOCK_FILENAME: str = ".auto-update.lock"
STALE_LOCK_MS: int = 2 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


def _hostname() -> str:
    try:
        return socket.gethostname() or "unknown"
    except OSError:
        return "unknown"


@dataclass(frozen=True)
class LockData:
    """Ownership record stored in the lock file.

    Attributes
    ----------
    pid:
        Process identifier of the owner.
    timestamp:
        Acquisition time in epoch milliseconds.
    hostname:
        Host the owning process runs on.
    """

    pid: int
    timestamp: int
    hostname: str

    def to_dict(self) -> dict[str, object]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> LockData:
        """Build a record from parsed JSON.

        Raises
        ------
        KeyError, TypeError, ValueError:
            When the payload does not describe a lock.
        """
        return cls(
            pid=int(data["pid"]),  # type: ignore[arg-type]
            timestamp=int(data["timestamp"]),  # type: ignore[arg-type]
            hostname=str(data.get("hostname", "unknown")),
        )


class LockManager:
    """Acquires and releases the auto-update lock file.

    Parameters
    ----------
    config_dir:
        The opencode configuration directory holding the lock file.
    stale_after_ms:
        Age after which an existing lock is considered abandoned.
    """

    def __init__(self, config_dir: Path, stale_after_ms: int = STALE_LOCK_MS) -> None:
        self._config_dir = config_dir
        self._lock_path = config_dir / LOCK_FILENAME
        self._stale_after_ms = stale_after_ms

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def acquire(self, force: bool = False, now_ms: int | None = None) -> bool:
        """Try to take the lock for the current process.

        Parameters
        ----------
        force:
            Reclaim a stale lock instead of backing off.
        now_ms:
            Override the current epoch-millisecond time (for testing).

        Returns
        -------
        bool
            ``True`` when this process now owns the lock.  I/O failures
            are logged and reported as ``False``.
        """
        effective_now = _now_ms() if now_ms is None else now_ms
        record = LockData(pid=os.getpid(), timestamp=effective_now, hostname=_hostname())
        try:
            return self._acquire(record, force)
        except OSError as exc:
            logger.warning("Failed to acquire lock %s: %s", self._lock_path, exc)
            return False

    def _acquire(self, record: LockData, force: bool) -> bool:
        self._config_dir.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(record.to_dict(), indent=2)

        try:
            with self._lock_path.open("x", encoding="utf-8") as fh:
                fh.write(payload)
        except FileExistsError:
            pass
        else:
            logger.debug("Lock acquired by pid %d", record.pid)
            return True

        effective_now = record.timestamp
        existing = self.read()
        if existing is not None:
            if not self.is_stale(existing, now_ms=effective_now):
                logger.debug("Lock already held by pid %d", existing.pid)
                return False
            if not force:
                logger.debug("Stale lock from pid %d exists but force is off", existing.pid)
                return False
            logger.info("Stale lock detected (pid: %d), forcing acquisition", existing.pid)

        self._lock_path.write_text(payload, encoding="utf-8")
        logger.debug("Lock acquired by pid %d", record.pid)
        return True

    def release(self) -> None:
        """Delete the lock file.  A missing file is not an error."""
        try:
            self._lock_path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.warning("Failed to release lock %s: %s", self._lock_path, exc)
            return
        logger.debug("Lock released by pid %d", os.getpid())

    def read(self) -> LockData | None:
        """Return the current lock record, or ``None`` when absent or unreadable."""
        try:
            raw = json.loads(self._lock_path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                return None
            return LockData.from_dict(raw)
        except (OSError, ValueError, KeyError, TypeError):
            return None

    def is_stale(self, lock: LockData, now_ms: int | None = None) -> bool:
        """Return ``True`` when *lock* is older than the staleness threshold."""
        effective_now = _now_ms() if now_ms is None else now_ms
        return effective_now - lock.timestamp > self._stale_after_ms

    @property
    def lock_path(self) -> Path:
        """Filesystem path of the lock file."""
        return self._lock_path
