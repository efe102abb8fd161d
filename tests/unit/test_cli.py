"""Tests for the opencode-auto-update CLI."""
from __future__ import annotations

import json
import time
from pathlib import Path

import pytest
from click.testing import CliRunner

from opencode_auto_update.cli.main import cli
from opencode_auto_update.state.history import CircularLog, HistoryEntry
from opencode_auto_update.state.lock import LOCK_FILENAME, STALE_LOCK_MS, LockData


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "OPENCODE_CONFIG_DIR",
        "OPENCODE_AUTO_UPDATE_DISABLED",
        "OPENCODE_AUTO_UPDATE_DEBUG",
        "OPENCODE_AUTO_UPDATE_BYPASS_THROTTLE",
        "OPENCODE_AUTO_UPDATE_INTERVAL_HOURS",
        "OPENCODE_AUTO_UPDATE_PINNED",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("opencode_auto_update.cli.main._configure_logging", lambda debug: None)


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _write_lock(config_dir: Path, age_ms: int) -> None:
    lock = LockData(pid=4242, timestamp=int(time.time() * 1000) - age_ms, hostname="builder")
    (config_dir / LOCK_FILENAME).write_text(json.dumps(lock.to_dict()), encoding="utf-8")


class TestVersion:
    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "opencode-auto-update" in result.output


class TestParse:
    def test_classifies_specs(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["parse", "@scope/pkg@1.2.3", "./local"])
        assert result.exit_code == 0
        assert "registry" in result.output
        assert "non_registry" in result.output
        assert "1.2.3" in result.output

    def test_requires_a_spec(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["parse"])
        assert result.exit_code != 0


class TestRun:
    def test_missing_config_reports_no_config(self, runner: CliRunner, config_dir: Path) -> None:
        result = runner.invoke(cli, ["run", "--config-dir", str(config_dir)])
        assert result.exit_code == 0
        assert "NO_CONFIG" in result.output

    def test_disabled_by_settings_file(self, runner: CliRunner, config_dir: Path, tmp_path: Path) -> None:
        settings = tmp_path / "settings.yaml"
        settings.write_text("disabled: true\n", encoding="utf-8")
        result = runner.invoke(cli, ["run", "-d", str(config_dir), "--settings", str(settings)])
        assert result.exit_code == 0
        assert "DISABLED" in result.output

    def test_invalid_interval_exits_with_usage_error(self, runner: CliRunner, config_dir: Path) -> None:
        result = runner.invoke(cli, ["run", "-d", str(config_dir), "--interval-hours", "-3"])
        assert result.exit_code == 2

    def test_throttled_second_run(self, runner: CliRunner, config_dir: Path) -> None:
        (config_dir / ".auto-update.json").write_text(
            json.dumps({"lastRun": int(time.time() * 1000)}), encoding="utf-8"
        )
        result = runner.invoke(cli, ["run", "-d", str(config_dir)])
        assert result.exit_code == 0
        assert "THROTTLED" in result.output


class TestStatus:
    def test_fresh_directory(self, runner: CliRunner, config_dir: Path) -> None:
        result = runner.invoke(cli, ["status", "-d", str(config_dir)])
        assert result.exit_code == 0
        assert "free" in result.output
        assert "never" in result.output

    def test_held_lock(self, runner: CliRunner, config_dir: Path) -> None:
        _write_lock(config_dir, age_ms=1000)
        result = runner.invoke(cli, ["status", "-d", str(config_dir)])
        assert result.exit_code == 0
        assert "held" in result.output
        assert "4242" in result.output


class TestHistory:
    def test_empty(self, runner: CliRunner, config_dir: Path) -> None:
        result = runner.invoke(cli, ["history", "-d", str(config_dir)])
        assert result.exit_code == 0
        assert "No update history found." in result.output

    def test_lists_entries(self, runner: CliRunner, config_dir: Path) -> None:
        log = CircularLog(config_dir / ".auto-update-history.json")
        log.append(HistoryEntry.create(["my-plugin"], [], 120, True))
        log.append(HistoryEntry.create([], ["oops"], 30, False))
        result = runner.invoke(cli, ["history", "-d", str(config_dir)])
        assert result.exit_code == 0
        assert "my-plugin" in result.output
        assert "failed" in result.output


class TestUnlock:
    def test_no_lock(self, runner: CliRunner, config_dir: Path) -> None:
        result = runner.invoke(cli, ["unlock", "-d", str(config_dir)])
        assert result.exit_code == 0
        assert "No lock present." in result.output

    def test_live_lock_requires_force(self, runner: CliRunner, config_dir: Path) -> None:
        _write_lock(config_dir, age_ms=1000)
        result = runner.invoke(cli, ["unlock", "-d", str(config_dir)])
        assert result.exit_code == 1
        assert (config_dir / LOCK_FILENAME).exists()

        result = runner.invoke(cli, ["unlock", "-d", str(config_dir), "--force"])
        assert result.exit_code == 0
        assert not (config_dir / LOCK_FILENAME).exists()

    def test_stale_lock_is_removed(self, runner: CliRunner, config_dir: Path) -> None:
        _write_lock(config_dir, age_ms=STALE_LOCK_MS + 60_000)
        result = runner.invoke(cli, ["unlock", "-d", str(config_dir)])
        assert result.exit_code == 0
        assert not (config_dir / LOCK_FILENAME).exists()

    def test_corrupt_lock_is_removed(self, runner: CliRunner, config_dir: Path) -> None:
        (config_dir / LOCK_FILENAME).write_text("garbage", encoding="utf-8")
        result = runner.invoke(cli, ["unlock", "-d", str(config_dir)])
        assert result.exit_code == 0
        assert not (config_dir / LOCK_FILENAME).exists()
