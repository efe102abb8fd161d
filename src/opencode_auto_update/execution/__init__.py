"""External process execution for opencode-auto-update."""
from __future__ import annotations

from opencode_auto_update.execution.package_manager import (
    ExtensionUpdater,
    InstallError,
    PackageManager,
    PackageManagerKind,
)
from opencode_auto_update.execution.runner import CommandResult, CommandRunner

__all__ = [
    "CommandResult",
    "CommandRunner",
    "ExtensionUpdater",
    "InstallError",
    "PackageManager",
    "PackageManagerKind",
]
