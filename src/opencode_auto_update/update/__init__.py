"""Update orchestration for opencode-auto-update."""
from __future__ import annotations

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
from opencode_auto_update.update.report import (
    RunLogCollector,
    format_update_message,
    limit_lines,
    summarize_message,
)

__all__ = [
    "AutoUpdater",
    "RunContext",
    "RunLogCollector",
    "RunOutcome",
    "RunReport",
    "RunState",
    "UpdateResult",
    "format_update_message",
    "limit_lines",
    "normalize_plugin_keys",
    "plugin_entries",
    "read_host_config",
    "summarize_message",
    "write_host_config",
]
