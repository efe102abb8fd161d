"""Run log capture and user-facing message formatting.

A :class:`RunLogCollector` is attached to the package logger for the
duration of a run.  INFO records become log lines and WARNING-or-worse
records become error lines; :func:`format_update_message` turns both into
the verbose console message and :func:`summarize_message` condenses that
into a single toast line.
"""
from __future__ import annotations

import logging

PACKAGE_LOGGER: str = "opencode_auto_update"
MAX_LOG_LINES: int = 40
MAX_ERROR_LINES: int = 10
MAX_SUMMARY_LINES: int = 4
MAX_SUMMARY_CHARS: int = 240


class RunLogCollector(logging.Handler):
    """Collects log records emitted under the package logger during a run.

    While attached, records stop propagating to the host's handlers unless
    *propagate* is set, so a run stays quiet outside debug mode.

    Example
    -------
    >>> with RunLogCollector() as collector:
    ...     logging.getLogger("opencode_auto_update.update").info("Updating x")
    >>> collector.logs
    ['Updating x']
    """

    def __init__(self, logger_name: str = PACKAGE_LOGGER, propagate: bool = False) -> None:
        super().__init__(level=logging.INFO)
        self._logger_name = logger_name
        self._propagate = propagate
        self._previous_level: int | None = None
        self._previous_propagate = True
        self.logs: list[str] = []
        self.errors: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        message = record.getMessage()
        if record.levelno >= logging.WARNING:
            self.errors.append(message)
        else:
            self.logs.append(message)

    def __enter__(self) -> RunLogCollector:
        target = logging.getLogger(self._logger_name)
        target.addHandler(self)
        self._previous_propagate = target.propagate
        target.propagate = self._propagate
        if target.getEffectiveLevel() > logging.INFO:
            self._previous_level = target.level
            target.setLevel(logging.INFO)
        return self

    def __exit__(self, *exc_info: object) -> None:
        target = logging.getLogger(self._logger_name)
        target.removeHandler(self)
        target.propagate = self._previous_propagate
        if self._previous_level is not None:
            target.setLevel(self._previous_level)
            self._previous_level = None


def limit_lines(lines: list[str], max_lines: int) -> list[str]:
    """Keep the first *max_lines* lines, replacing the rest with a count."""
    if len(lines) <= max_lines:
        return list(lines)
    return [*lines[:max_lines], f"... ({len(lines) - max_lines} more lines)"]


def format_update_message(logs: list[str], errors: list[str]) -> str:
    """Build the multi-line ``Auto-update logs`` message."""
    lines = ["Auto-update logs", ""]
    lines.extend(limit_lines(logs or ["No update output recorded."], MAX_LOG_LINES))
    if errors:
        lines.extend(["", "Errors:", *limit_lines(errors, MAX_ERROR_LINES)])
    return "\n".join(lines)


def summarize_message(message: str) -> str:
    """Condense *message* into one line suitable for a toast."""
    lines = [line for line in message.split("\n") if line.strip()]
    summary = " | ".join(lines[:MAX_SUMMARY_LINES])
    if len(summary) > MAX_SUMMARY_CHARS:
        return summary[: MAX_SUMMARY_CHARS - 3] + "..."
    return summary
