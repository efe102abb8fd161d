"""Shared fixtures: a fake package manager standing in for bun/npm."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

import pytest

from opencode_auto_update.execution.runner import CommandResult, CommandRunner


class FakeRunner(CommandRunner):
    """Records commands and simulates bun/npm installs on disk."""

    def __init__(
        self,
        config_dir: Path,
        latest: dict[str, str] | None = None,
        available: set[str] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.config_dir = config_dir
        self.latest = latest or {}
        self.available = {"bun", "npm"} if available is None else available
        self.failing = failing or set()
        self.calls: list[tuple[str, list[str]]] = []

    async def run(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Path | None = None,
    ) -> CommandResult:
        self.calls.append((command, list(args)))
        if command not in self.available:
            return CommandResult(exit_code=1, stdout="", stderr=f"spawn {command} ENOENT")
        if list(args) == ["--version"]:
            return CommandResult(exit_code=0, stdout="1.0.0\n", stderr="")
        if args and args[0] in ("add", "install"):
            name = args[1].removesuffix("@latest")
            if name in self.failing or name not in self.latest:
                return CommandResult(exit_code=1, stdout="", stderr=f"404 Not Found - {name}")
            package_dir = self.config_dir / "node_modules" / Path(*name.split("/"))
            package_dir.mkdir(parents=True, exist_ok=True)
            (package_dir / "package.json").write_text(
                json.dumps({"name": name, "version": self.latest[name]}),
                encoding="utf-8",
            )
            return CommandResult(exit_code=0, stdout=f"installed {name}", stderr="")
        if args and args[0] == "update":
            ok = command not in self.failing
            return CommandResult(exit_code=0 if ok else 1, stdout="", stderr="" if ok else "boom")
        return CommandResult(exit_code=1, stdout="", stderr="unexpected command")

    def installs(self) -> list[tuple[str, list[str]]]:
        return [call for call in self.calls if call[1] and call[1][0] in ("add", "install")]


@pytest.fixture()
def config_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "opencode"
    directory.mkdir()
    return directory


@pytest.fixture()
def make_runner(config_dir: Path):
    def _make(**kwargs: object) -> FakeRunner:
        return FakeRunner(config_dir, **kwargs)  # type: ignore[arg-type]

    return _make
