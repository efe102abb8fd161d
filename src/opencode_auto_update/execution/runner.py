"""Asynchronous external command runner.

Spawns a subprocess with stdin closed and both output streams captured as
text.  A launch failure (for example a missing executable) does not
raise; it is reported as exit code 1 with the error folded into stderr.

No timeout is applied: a hung subprocess blocks the awaiting coroutine
until it exits.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)

LAUNCH_FAILURE_EXIT_CODE: int = 1


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a finished subprocess."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """stderr when present, otherwise stdout."""
        return self.stderr or self.stdout


class CommandRunner:
    """Runs external executables through :mod:`asyncio` subprocesses."""

    async def run(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Path | None = None,
    ) -> CommandResult:
        """Run *command* with *args* and wait for it to exit.

        Parameters
        ----------
        command:
            Executable name or path, resolved through ``PATH``.
        args:
            Command-line arguments.
        cwd:
            Optional working directory.

        Returns
        -------
        CommandResult
            Exit code and decoded output.
        """
        logger.debug("Running %s %s", command, " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                command,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd is not None else None,
            )
        except OSError as exc:
            return CommandResult(
                exit_code=LAUNCH_FAILURE_EXIT_CODE,
                stdout="",
                stderr=str(exc),
            )

        stdout, stderr = await proc.communicate()
        return CommandResult(
            exit_code=proc.returncode or 0,
            stdout=stdout.decode(errors="replace") if stdout else "",
            stderr=stderr.decode(errors="replace") if stderr else "",
        )

    async def exists(self, command: str) -> bool:
        """Return ``True`` when ``command --version`` exits successfully."""
        result = await self.run(command, ["--version"])
        return result.ok
