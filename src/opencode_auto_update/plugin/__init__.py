"""Host integration package for opencode-auto-update.

Exports the plugin entry point, the notification capability, and the
settings loader.
"""
from __future__ import annotations

from opencode_auto_update.plugin.auto_update_plugin import (
    AutoUpdatePlugin,
    PluginDescriptor,
    create_plugin,
)
from opencode_auto_update.plugin.config_loader import AutoUpdateSettings, SettingsLoader
from opencode_auto_update.plugin.notifier import NotificationSink, Toast, ToastNotifier

__all__ = [
    "AutoUpdatePlugin",
    "AutoUpdateSettings",
    "NotificationSink",
    "PluginDescriptor",
    "SettingsLoader",
    "Toast",
    "ToastNotifier",
    "create_plugin",
]
