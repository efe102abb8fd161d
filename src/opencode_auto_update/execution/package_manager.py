"""Package manager and extension updater adapters.

opencode installs plugins as npm packages under its configuration
directory.  Upgrades are delegated to ``bun`` when it is available and to
``npm`` otherwise; the installed version is read back from
``node_modules/<name>/package.json``.

Example
-------
>>> runner = CommandRunner()
>>> manager = await PackageManager.detect(runner, config_dir)
>>> version = await manager.install_latest("opencode-foo")
"""
from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path

from opencode_auto_update.execution.runner import CommandRunner

logger = logging.getLogger(__name__)


class InstallError(Exception):
    """Raised when a plugin could not be upgraded.

    Attributes
    ----------
    package:
        Name of the package being installed.
    detail:
        Output of the failed command, or a description of the failure.
    """

    def __init__(self, package: str, detail: str) -> None:
        self.package = package
        self.detail = detail.strip()
        super().__init__(f"Failed to update {package}: {self.detail}")


class PackageManagerKind(str, Enum):
    """Command-line dialect of the installer."""

    BUN = "bun"
    NPM = "npm"


class PackageManager:
    """Installs the latest release of a package into the config directory.

    Parameters
    ----------
    runner:
        Command runner used to spawn the installer.
    config_dir:
        opencode configuration directory (install prefix).
    kind:
        Which command-line dialect *executable* speaks.
    executable:
        Installer executable; defaults to the dialect name.
    """

    def __init__(
        self,
        runner: CommandRunner,
        config_dir: Path,
        kind: PackageManagerKind,
        executable: str | None = None,
    ) -> None:
        self._runner = runner
        self._config_dir = config_dir
        self._kind = kind
        self._executable = executable or kind.value

    @classmethod
    async def detect(
        cls,
        runner: CommandRunner,
        config_dir: Path,
        primary: str = "bun",
        fallback: str = "npm",
    ) -> PackageManager:
        """Return a bun-backed manager when *primary* answers ``--version``, else npm."""
        if await runner.exists(primary):
            return cls(runner, config_dir, PackageManagerKind.BUN, primary)
        return cls(runner, config_dir, PackageManagerKind.NPM, fallback)

    @property
    def kind(self) -> PackageManagerKind:
        return self._kind

    @property
    def executable(self) -> str:
        return self._executable

    def install_args(self, name: str) -> list[str]:
        target = f"{name}@latest"
        if self._kind is PackageManagerKind.BUN:
            return ["add", target, "--cwd", str(self._config_dir)]
        return ["install", target, "--prefix", str(self._config_dir), "--no-save"]

    async def install_latest(self, name: str) -> str:
        """Install the latest *name* and return the installed version.

        Raises
        ------
        InstallError:
            When the installer exits non-zero or the installed version
            cannot be read back.
        """
        self._config_dir.mkdir(parents=True, exist_ok=True)
        args = self.install_args(name)
        result = await self._runner.run(self._executable, args)
        if not result.ok:
            raise InstallError(name, f"{self._executable} {args[0]} failed: {result.output}")

        version = self.installed_version(name)
        if version is None:
            raise InstallError(name, "unable to read installed version")
        return version

    def installed_version(self, name: str) -> str | None:
        """Read ``version`` from the installed package metadata."""
        package_json = self._config_dir / "node_modules"
        for part in name.split("/"):
            package_json = package_json / part
        package_json = package_json / "package.json"
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        version = data.get("version") if isinstance(data, dict) else None
        return str(version) if version else None


class ExtensionUpdater:
    """Runs a companion updater executable's ``update`` subcommand.

    Failures are logged and reported through the return value; they never
    raise.
    """

    def __init__(self, runner: CommandRunner, executable: str, cwd: Path | None = None) -> None:
        self._runner = runner
        self._executable = executable
        self._cwd = cwd

    async def update(self) -> bool:
        if not await self._runner.exists(self._executable):
            logger.info("Extension updater %s not found, skipping.", self._executable)
            return False
        result = await self._runner.run(self._executable, ["update"], cwd=self._cwd)
        if not result.ok:
            logger.warning("%s update failed: %s", self._executable, result.output.strip())
            return False
        logger.info("%s update complete.", self._executable)
        return True
