#!/usr/bin/env python3
"""Example: Quickstart for opencode-auto-update

Classify the plugin entries of an opencode config and run one update pass
against it.

Usage:
    python examples/01_quickstart.py [CONFIG_DIR]

Requirements:
    pip install opencode-auto-update
    bun or npm on PATH
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import opencode_auto_update as oau


def main() -> None:
    print(f"opencode-auto-update version: {oau.__version__}")

    # Step 1: Resolve settings for the chosen config directory
    overrides: dict[str, object] = {"ignore_throttle": True}
    if len(sys.argv) > 1:
        overrides["config_dir"] = Path(sys.argv[1])
    settings = oau.SettingsLoader().resolve(**overrides)
    print(f"Config directory: {settings.config_dir}")

    # Step 2: Show how each plugin entry will be treated
    config = oau.read_host_config(settings.config_path) or {}
    print("\nPlugin entries:")
    for entry in oau.plugin_entries(config):
        if not isinstance(entry, str):
            print(f"  [SKIP] {entry!r}")
            continue
        spec = oau.parse(entry)
        kind = oau.classify(entry).value
        print(f"  [{kind}] {spec.name} version={spec.version or '-'}")

    # Step 3: Run one pass
    report = asyncio.run(oau.AutoUpdater(oau.RunContext.from_settings(settings)).run())
    print(f"\nOutcome: {report.outcome.value} ({report.duration_ms} ms)")
    if report.result is not None:
        for entry in report.result.plugins:
            print(f"  {entry}")
        for message in report.result.errors:
            print(f"  error: {message}")

    # Step 4: Recent history
    entries = oau.CircularLog(settings.effective_history_path).read()
    print(f"\nHistory: {len(entries)} entries")
    for item in entries:
        print(f"  [{'ok' if item.success else 'failed'}] {item.timestamp} updated={item.plugins_updated}")


if __name__ == "__main__":
    main()
