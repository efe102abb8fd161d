"""Auto-update orchestration.

:class:`AutoUpdater` runs one update pass as a strictly sequential
coroutine pipeline:

1. bail out when disabled
2. take the cross-process lock
3. check the throttle and record ``lastRun``
4. load and normalize ``opencode.json``
5. upgrade each registry plugin through the package manager
6. write back changed entries, run the extension updater
7. record ``lastSuccess`` and a history entry
8. release the lock, whatever happened

Skips (disabled, locked, throttled, no config, no plugins) are reported
as outcomes, not errors.  Per-plugin failures leave that entry untouched.
Any other exception is logged and turns the run into ``failed``; nothing
propagates to the host.

Example
-------
>>> settings = SettingsLoader().resolve()
>>> report = asyncio.run(AutoUpdater(RunContext.from_settings(settings)).run())
>>> report.outcome
<RunOutcome.COMPLETED: 'completed'>
"""
from __future__ import annotations

import contextlib
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterator

from opencode_auto_update.execution.package_manager import (
    ExtensionUpdater,
    InstallError,
    PackageManager,
)
from opencode_auto_update.execution.runner import CommandRunner
from opencode_auto_update.specs.parser import is_registry_spec, parse
from opencode_auto_update.state.history import CircularLog, HistoryEntry
from opencode_auto_update.state.lock import LockManager
from opencode_auto_update.state.throttle import ThrottlePolicy, ThrottleStore
from opencode_auto_update.update.host_config import (
    PLUGIN_KEY,
    normalize_plugin_keys,
    plugin_entries,
    read_host_config,
    write_host_config,
)
from opencode_auto_update.update.report import PACKAGE_LOGGER

if TYPE_CHECKING:
    from opencode_auto_update.plugin.config_loader import AutoUpdateSettings

logger = logging.getLogger(__name__)


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class RunOutcome(str, Enum):
    """How an update pass ended."""

    DISABLED = "disabled"
    LOCKED = "locked"
    THROTTLED = "throttled"
    NO_CONFIG = "no_config"
    NO_PLUGINS = "no_plugins"
    COMPLETED = "completed"
    FAILED = "failed"


class RunState(str, Enum):
    """Pipeline stage reached by the current pass."""

    IDLE = "idle"
    LOCK_ACQUIRED = "lock_acquired"
    THROTTLE_CHECKED = "throttle_checked"
    CONFIG_LOADED = "config_loaded"
    UPDATING = "updating"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class UpdateResult:
    """Outcome of upgrading the plugin list.

    Attributes
    ----------
    plugins:
        Resulting entries, in the original order.
    changed:
        ``True`` when any entry differs from its original string.
    updated:
        Package names whose entry changed.
    errors:
        Messages for plugins that could not be upgraded.
    """

    plugins: list[object] = field(default_factory=list)
    changed: bool = False
    updated: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class RunReport:
    """Summary of one :meth:`AutoUpdater.run` call."""

    outcome: RunOutcome
    state: RunState
    result: UpdateResult | None = None
    duration_ms: int = 0
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome is not RunOutcome.FAILED


@dataclass(frozen=True)
class RunContext:
    """Everything one update pass needs, built once per invocation.

    Attributes
    ----------
    settings:
        Resolved settings for this invocation.
    lock:
        Cross-process lock for the config directory.
    throttle_store:
        Persisted throttle timestamps.
    throttle_policy:
        Interval check applied to *throttle_store*.
    history:
        Bounded run history.
    runner:
        Subprocess runner shared by all external commands.
    clock:
        Returns the current time in epoch milliseconds.
    """

    settings: AutoUpdateSettings
    lock: LockManager
    throttle_store: ThrottleStore
    throttle_policy: ThrottlePolicy
    history: CircularLog
    runner: CommandRunner
    clock: Callable[[], int] = _epoch_ms

    @classmethod
    def from_settings(
        cls,
        settings: AutoUpdateSettings,
        runner: CommandRunner | None = None,
        clock: Callable[[], int] | None = None,
    ) -> RunContext:
        return cls(
            settings=settings,
            lock=LockManager(settings.config_dir),
            throttle_store=ThrottleStore(settings.config_dir),
            throttle_policy=ThrottlePolicy(settings.interval_hours, settings.min_interval_hours),
            history=CircularLog(settings.effective_history_path),
            runner=runner or CommandRunner(),
            clock=clock or _epoch_ms,
        )


@contextlib.contextmanager
def _debug_logging(enabled: bool) -> Iterator[None]:
    if not enabled:
        yield
        return
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    previous = package_logger.level
    package_logger.setLevel(logging.DEBUG)
    try:
        yield
    finally:
        package_logger.setLevel(previous)


class AutoUpdater:
    """Runs one auto-update pass for a :class:`RunContext`.

    Parameters
    ----------
    context:
        The per-invocation run context.
    """

    def __init__(self, context: RunContext) -> None:
        self._ctx = context
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self) -> RunReport:
        """Execute the pipeline.  Never raises."""
        settings = self._ctx.settings
        if settings.disabled:
            logger.debug("Auto-update disabled, skipping.")
            return RunReport(outcome=RunOutcome.DISABLED, state=self._state)

        with _debug_logging(settings.debug):
            return await self._run_locked()

    async def update_plugins(
        self,
        entries: list[object],
        manager: PackageManager,
    ) -> UpdateResult:
        """Upgrade *entries* one at a time, preserving their order."""
        preserve_pinned = self._ctx.settings.preserve_pinned
        result = UpdateResult()

        for entry in entries:
            if not isinstance(entry, str) or not is_registry_spec(entry):
                logger.info("Skipping non-registry plugin: %s", entry)
                result.plugins.append(entry)
                continue

            spec = parse(entry)
            if preserve_pinned and spec.pinned:
                logger.info("Preserving pinned plugin: %s", entry)
                result.plugins.append(entry)
                continue

            logger.info("Updating plugin: %s", spec.name)
            try:
                version = await manager.install_latest(spec.name)
            except InstallError as exc:
                logger.warning("%s", exc)
                result.errors.append(str(exc))
                result.plugins.append(entry)
                continue

            next_entry = spec.with_version(version)
            logger.info("Installed: %s", next_entry)
            result.plugins.append(next_entry)
            if next_entry != entry:
                result.changed = True
                result.updated.append(spec.name)

        return result

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run_locked(self) -> RunReport:
        ctx = self._ctx
        started = time.monotonic()

        if not ctx.lock.acquire(force=ctx.settings.force_stale_lock, now_ms=ctx.clock()):
            logger.debug("Lock already held, skipping.")
            return RunReport(outcome=RunOutcome.LOCKED, state=self._state)

        self._state = RunState.LOCK_ACQUIRED
        report: RunReport
        try:
            try:
                report = await self._run_pipeline()
            except Exception as exc:
                logger.exception("Failed to update plugins: %s", exc)
                report = RunReport(outcome=RunOutcome.FAILED, state=self._state, error=str(exc))
                self._state = RunState.FAILED

            # The history file is only written while the lock is held.
            report.duration_ms = int((time.monotonic() - started) * 1000)
            if report.outcome in (RunOutcome.COMPLETED, RunOutcome.FAILED):
                self._record_history(report)
        finally:
            ctx.lock.release()
        return report

    async def _run_pipeline(self) -> RunReport:
        ctx = self._ctx
        settings = ctx.settings

        state = ctx.throttle_store.read()
        now = ctx.clock()
        if not ctx.throttle_policy.should_run(state, now, settings.ignore_throttle):
            logger.debug("Throttled, skipping update.")
            return RunReport(outcome=RunOutcome.THROTTLED, state=self._state)

        state = state.with_last_run(now)
        ctx.throttle_store.write(state)
        self._state = RunState.THROTTLE_CHECKED

        config = read_host_config(settings.config_path)
        if config is None:
            logger.info("No readable config at %s, nothing to update.", settings.config_path)
            return RunReport(outcome=RunOutcome.NO_CONFIG, state=self._state)

        if normalize_plugin_keys(config):
            write_host_config(settings.config_path, config)
        self._state = RunState.CONFIG_LOADED

        entries = plugin_entries(config)
        if not entries:
            logger.info("No plugins found to update.")
            return RunReport(outcome=RunOutcome.NO_PLUGINS, state=self._state)

        self._state = RunState.UPDATING
        manager = await PackageManager.detect(
            ctx.runner,
            settings.config_dir,
            primary=settings.primary_package_manager,
            fallback=settings.fallback_package_manager,
        )
        logger.info(
            "Starting update of %d plugin(s) with %s (preserve pinned: %s, ignore throttle: %s).",
            len(entries),
            manager.executable,
            settings.preserve_pinned,
            settings.ignore_throttle,
        )
        result = await self.update_plugins(entries, manager)

        self._state = RunState.PERSISTING
        if result.changed:
            config[PLUGIN_KEY] = result.plugins
            write_host_config(settings.config_path, config)

        if settings.extension_updater:
            updater = ExtensionUpdater(ctx.runner, settings.extension_updater, cwd=settings.config_dir)
            await updater.update()

        ctx.throttle_store.write(state.with_last_success(ctx.clock()))
        self._state = RunState.DONE
        logger.info("Update complete.")
        return RunReport(outcome=RunOutcome.COMPLETED, state=self._state, result=result)

    def _record_history(self, report: RunReport) -> None:
        result = report.result or UpdateResult()
        errors = list(result.errors)
        if report.error:
            errors.append(report.error)
        entry = HistoryEntry.create(result.updated, errors, report.duration_ms, report.success)
        try:
            self._ctx.history.append(entry)
        except OSError as exc:
            logger.warning("Failed to write update history: %s", exc)
