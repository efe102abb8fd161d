"""Persisted state for opencode-auto-update.

Provides the cross-process lock, the throttle store and policy, and the
bounded run history.
"""
from __future__ import annotations

from opencode_auto_update.state.history import CircularLog, HistoryEntry
from opencode_auto_update.state.lock import LockData, LockManager
from opencode_auto_update.state.throttle import ThrottlePolicy, ThrottleState, ThrottleStore

__all__ = [
    "CircularLog",
    "HistoryEntry",
    "LockData",
    "LockManager",
    "ThrottlePolicy",
    "ThrottleState",
    "ThrottleStore",
]
