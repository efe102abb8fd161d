"""Reading, normalizing and writing the host's ``opencode.json``.

Only the ``plugin`` array is interpreted; every other key is carried
through unchanged and in its original order.  Older configs used a
``plugins`` key, which is merged into ``plugin`` and removed.

Example
-------
>>> config = {"plugin": ["a"], "plugins": ["a", "b"]}
>>> normalize_plugin_keys(config)
True
>>> config
{'plugin': ['a', 'b']}
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

PLUGIN_KEY: str = "plugin"
LEGACY_PLUGIN_KEY: str = "plugins"


def read_host_config(path: Path) -> dict[str, object] | None:
    """Return the parsed config, or ``None`` when missing or not a JSON object."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    return raw if isinstance(raw, dict) else None


def write_host_config(path: Path, config: dict[str, object]) -> None:
    """Write *config* as indented JSON with a trailing newline.

    Raises
    ------
    OSError:
        When the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def normalize_plugin_keys(config: dict[str, object]) -> bool:
    """Merge a legacy ``plugins`` array into ``plugin`` in place.

    Entries from ``plugin`` come first, then ``plugins``; duplicates are
    dropped keeping the first occurrence.

    Returns
    -------
    bool
        ``True`` when *config* was modified.
    """
    if LEGACY_PLUGIN_KEY not in config:
        return False
    legacy = config[LEGACY_PLUGIN_KEY]
    if not isinstance(legacy, list):
        return False

    current = config.get(PLUGIN_KEY)
    combined = (current if isinstance(current, list) else []) + legacy

    merged: list[object] = []
    seen: set[str] = set()
    for entry in combined:
        key = json.dumps(entry, sort_keys=True)
        if key in seen:
            continue
        seen.add(key)
        merged.append(entry)

    config[PLUGIN_KEY] = merged
    del config[LEGACY_PLUGIN_KEY]
    logger.info("Migrated legacy '%s' key into '%s' (%d entries).", LEGACY_PLUGIN_KEY, PLUGIN_KEY, len(merged))
    return True


def plugin_entries(config: dict[str, object]) -> list[object]:
    """Return the ``plugin`` array, or ``[]`` when absent or not a list."""
    entries = config.get(PLUGIN_KEY)
    return list(entries) if isinstance(entries, list) else []
