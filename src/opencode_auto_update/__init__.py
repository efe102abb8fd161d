"""opencode-auto-update: background auto-updater for opencode plugins.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import asyncio
>>> import opencode_auto_update as oau
>>> settings = oau.SettingsLoader().resolve(ignore_throttle=True)
>>> report = asyncio.run(oau.AutoUpdater(oau.RunContext.from_settings(settings)).run())
>>> report.outcome.value
'completed'
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------
from opencode_auto_update.state.history import CircularLog, HistoryEntry
from opencode_auto_update.state.lock import LockData, LockManager
from opencode_auto_update.state.throttle import ThrottlePolicy, ThrottleState, ThrottleStore

# ---------------------------------------------------------------------------
# Specs
# ---------------------------------------------------------------------------
from opencode_auto_update.specs.parser import PluginSpec, SpecKind, classify, is_registry_spec, parse

# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------
from opencode_auto_update.execution.package_manager import (
    ExtensionUpdater,
    InstallError,
    PackageManager,
    PackageManagerKind,
)
from opencode_auto_update.execution.runner import CommandResult, CommandRunner

# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------
from opencode_auto_update.update.host_config import (
    normalize_plugin_keys,
    plugin_entries,
    read_host_config,
    write_host_config,
)
from opencode_auto_update.update.orchestrator import (
    AutoUpdater,
    RunContext,
    RunOutcome,
    RunReport,
    RunState,
    UpdateResult,
)

# ---------------------------------------------------------------------------
# Plugin
# ---------------------------------------------------------------------------
from opencode_auto_update.plugin.auto_update_plugin import (
    AutoUpdatePlugin,
    PluginDescriptor,
    create_plugin,
)
from opencode_auto_update.plugin.config_loader import AutoUpdateSettings, SettingsLoader
from opencode_auto_update.plugin.notifier import NotificationSink, Toast, ToastNotifier

__all__ = [
    "__version__",
    # State
    "CircularLog",
    "HistoryEntry",
    "LockData",
    "LockManager",
    "ThrottlePolicy",
    "ThrottleState",
    "ThrottleStore",
    # Specs
    "PluginSpec",
    "SpecKind",
    "classify",
    "is_registry_spec",
    "parse",
    # Execution
    "CommandResult",
    "CommandRunner",
    "ExtensionUpdater",
    "InstallError",
    "PackageManager",
    "PackageManagerKind",
    # Update
    "AutoUpdater",
    "RunContext",
    "RunOutcome",
    "RunReport",
    "RunState",
    "UpdateResult",
    "normalize_plugin_keys",
    "plugin_entries",
    "read_host_config",
    "write_host_config",
    # Plugin
    "AutoUpdatePlugin",
    "AutoUpdateSettings",
    "NotificationSink",
    "PluginDescriptor",
    "SettingsLoader",
    "Toast",
    "ToastNotifier",
    "create_plugin",
]
