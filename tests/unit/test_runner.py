"""Tests for CommandRunner using the running interpreter as a subprocess."""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from opencode_auto_update.execution.runner import CommandResult, CommandRunner


class TestCommandRunner:
    def test_captures_stdout(self) -> None:
        result = asyncio.run(CommandRunner().run(sys.executable, ["-c", "print('hello')"]))
        assert result.exit_code == 0
        assert result.stdout.strip() == "hello"
        assert result.ok is True

    def test_captures_stderr_and_exit_code(self) -> None:
        script = "import sys; sys.stderr.write('bad'); sys.exit(3)"
        result = asyncio.run(CommandRunner().run(sys.executable, ["-c", script]))
        assert result.exit_code == 3
        assert result.stderr == "bad"
        assert result.ok is False

    def test_stdin_is_closed(self) -> None:
        script = "import sys; print(repr(sys.stdin.read()))"
        result = asyncio.run(CommandRunner().run(sys.executable, ["-c", script]))
        assert result.stdout.strip() == "''"

    def test_runs_in_cwd(self, tmp_path: Path) -> None:
        script = "import os; print(os.getcwd())"
        result = asyncio.run(CommandRunner().run(sys.executable, ["-c", script], cwd=tmp_path))
        assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()

    def test_missing_executable_reports_exit_code_one(self) -> None:
        result = asyncio.run(CommandRunner().run("definitely-not-a-real-command-xyz"))
        assert result.exit_code == 1
        assert result.stderr

    def test_exists(self) -> None:
        runner = CommandRunner()
        assert asyncio.run(runner.exists(sys.executable)) is True
        assert asyncio.run(runner.exists("definitely-not-a-real-command-xyz")) is False


class TestCommandResult:
    def test_output_prefers_stderr(self) -> None:
        assert CommandResult(1, "out", "err").output == "err"

    def test_output_falls_back_to_stdout(self) -> None:
        assert CommandResult(1, "out", "").output == "out"
