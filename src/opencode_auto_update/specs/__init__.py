"""Plugin spec parsing for opencode-auto-update."""
from __future__ import annotations

from opencode_auto_update.specs.parser import (
    PluginSpec,
    SpecKind,
    classify,
    is_registry_spec,
    parse,
)

__all__ = [
    "PluginSpec",
    "SpecKind",
    "classify",
    "is_registry_spec",
    "parse",
]
