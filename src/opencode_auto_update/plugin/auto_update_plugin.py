"""AutoUpdatePlugin: entry point for opencode integration.

The host loads the plugin once per process.  The plugin schedules a single
update pass shortly after startup; if the host fires its config hook
first, the timer is cancelled and the pass starts immediately.  A second
trigger while a pass is running or finished is ignored.

When the pass completes, its captured log is summarized into a toast and
the full text is logged.

Example
-------
>>> descriptor = await create_plugin(sink=host_toasts)
>>> descriptor.name
'opencode-plugin-auto-update'
>>> await descriptor.config({"logLevel": "INFO"})
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

from opencode_auto_update.plugin.config_loader import (
    SETTINGS_FILENAME,
    AutoUpdateSettings,
    SettingsLoader,
)
from opencode_auto_update.plugin.notifier import NotificationSink, ToastNotifier
from opencode_auto_update.update.orchestrator import (
    AutoUpdater,
    RunContext,
    RunOutcome,
    RunReport,
)
from opencode_auto_update.update.report import RunLogCollector, format_update_message

logger = logging.getLogger(__name__)

PLUGIN_NAME: str = "opencode-plugin-auto-update"

ConfigHook = Callable[[dict[str, object] | None], Awaitable[None]]
UpdaterFactory = Callable[[AutoUpdateSettings], AutoUpdater]


def _default_updater(settings: AutoUpdateSettings) -> AutoUpdater:
    return AutoUpdater(RunContext.from_settings(settings))


@dataclass(frozen=True)
class PluginDescriptor:
    """What the host receives when it loads the plugin."""

    name: str
    config: ConfigHook


class AutoUpdatePlugin:
    """Triggers at most one auto-update pass per host process.

    Parameters
    ----------
    settings:
        Resolved settings for this process.
    notifier:
        Where run summaries go.  Defaults to a log-only notifier.
    updater_factory:
        Builds the :class:`AutoUpdater` for the pass (override for testing).
    """

    def __init__(
        self,
        settings: AutoUpdateSettings,
        notifier: ToastNotifier | None = None,
        updater_factory: UpdaterFactory | None = None,
    ) -> None:
        self._settings = settings
        self._notifier = notifier or ToastNotifier()
        self._updater_factory = updater_factory or _default_updater
        self._timer: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[RunReport] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Schedule the pass after ``startup_delay_seconds``.

        Must be called from within the host's running event loop.
        """
        if self._task is not None or self._timer is not None:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._settings.startup_delay_seconds, self._on_timer)

    async def config_hook(self, config: dict[str, object] | None = None) -> None:
        """Host config event: start the pass now instead of waiting."""
        log_level = (config or {}).get("logLevel", "unset")
        logger.debug("Config hook invoked (logLevel=%s)", log_level)
        self._cancel_timer()
        self.trigger()

    def trigger(self) -> asyncio.Task[RunReport] | None:
        """Start the pass unless one was already started.

        Returns
        -------
        asyncio.Task | None
            The running pass, or ``None`` when this call was ignored.
        """
        if self._task is not None:
            return None
        self._task = asyncio.get_running_loop().create_task(self._run_and_notify())
        return self._task

    def descriptor(self) -> PluginDescriptor:
        return PluginDescriptor(name=PLUGIN_NAME, config=self.config_hook)

    @property
    def task(self) -> asyncio.Task[RunReport] | None:
        return self._task

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _on_timer(self) -> None:
        self._timer = None
        logger.debug("Startup timer fired")
        self.trigger()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _run_and_notify(self) -> RunReport:
        updater = self._updater_factory(self._settings)
        with RunLogCollector(propagate=self._settings.debug) as collector:
            report = await updater.run()

        if report.outcome in (RunOutcome.COMPLETED, RunOutcome.FAILED):
            message = format_update_message(collector.logs, collector.errors)
            variant = "info" if report.success else "error"
            try:
                await self._notifier.notify(message, variant=variant)
            except Exception as exc:
                logger.error("Failed to notify user: %s", exc)
        return report


def _resolve_or_fallback(
    loader: SettingsLoader,
    settings_path: Path | None,
    overrides: dict[str, object],
) -> AutoUpdateSettings:
    try:
        return loader.resolve(settings_path, **overrides)
    except ValueError as exc:
        logger.warning("Ignoring invalid auto-update settings: %s", exc)
        return loader.resolve()


async def create_plugin(
    sink: NotificationSink | None = None,
    loader: SettingsLoader | None = None,
    **overrides: object,
) -> PluginDescriptor:
    """Build, start and describe the plugin for the host.

    Settings come from ``opencode-plugin-auto-update.json`` in the
    resolved configuration directory, the environment, and *overrides*.
    Invalid settings never reach the host: they are logged and replaced by
    the environment-only settings.
    """
    settings_loader = loader or SettingsLoader()
    base = _resolve_or_fallback(settings_loader, None, overrides)
    settings = _resolve_or_fallback(settings_loader, base.config_dir / SETTINGS_FILENAME, overrides)

    plugin = AutoUpdatePlugin(settings, notifier=ToastNotifier(sink))
    plugin.start()
    return plugin.descriptor()
