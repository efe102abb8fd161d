"""Delivery of update summaries to the host UI.

The host may or may not offer a toast API.  That capability is declared
once, when the :class:`ToastNotifier` is built: pass a
:class:`NotificationSink` when the host has one, or ``None`` to fall back
to logging only.

Example
-------
>>> notifier = ToastNotifier(sink=None)
>>> await notifier.notify("Auto-update logs\\n\\nUpdate complete.")
True
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Protocol

from opencode_auto_update.update.report import summarize_message

logger = logging.getLogger(__name__)

ToastVariant = Literal["info", "success", "warning", "error"]


@dataclass(frozen=True)
class Toast:
    """A single host notification."""

    title: str
    message: str
    variant: ToastVariant = "info"


class NotificationSink(Protocol):
    """Host capability for showing a toast."""

    async def show_toast(self, toast: Toast) -> None:
        ...


class ToastNotifier:
    """Summarizes run messages and forwards them to the host.

    Consecutive identical summaries are shown only once.

    Parameters
    ----------
    sink:
        The host toast capability, or ``None`` when the host has none.
    title:
        Toast title.
    """

    def __init__(self, sink: NotificationSink | None = None, title: str = "Auto-update") -> None:
        self._sink = sink
        self._title = title
        self._last_summary: str | None = None

    @property
    def has_sink(self) -> bool:
        return self._sink is not None

    async def notify(self, message: str, variant: ToastVariant = "info") -> bool:
        """Show the one-line summary of *message* and log the full text.

        Returns
        -------
        bool
            ``False`` when the summary duplicated the previous one and was
            suppressed.
        """
        summary = summarize_message(message)
        if summary == self._last_summary:
            return False
        self._last_summary = summary

        if self._sink is not None:
            await self._sink.show_toast(Toast(title=self._title, message=summary, variant=variant))
            logger.debug("Toast shown: %s", summary)

        logger.info("%s", message)
        return True
