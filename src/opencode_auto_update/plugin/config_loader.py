"""Auto-update settings with Pydantic v2 validation.

Settings are layered: model defaults, then an optional settings file
(YAML or JSON), then ``OPENCODE_AUTO_UPDATE_*`` environment variables,
then explicit keyword overrides.  Unknown keys are allowed so that older
plugin versions tolerate newer settings files.

Example
-------
>>> loader = SettingsLoader()
>>> settings = loader.resolve(Path("~/.config/opencode/opencode-plugin-auto-update.json"))
>>> settings.interval_hours
24.0
"""
from __future__ import annotations

import json
import logging
import math
import os
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX: str = "OPENCODE_AUTO_UPDATE_"
ENV_CONFIG_DIR: str = "OPENCODE_CONFIG_DIR"
DEFAULT_INTERVAL_HOURS: float = 24.0
SETTINGS_FILENAME: str = "opencode-plugin-auto-update.json"
HISTORY_FILENAME: str = ".auto-update-history.json"

# Boolean environment flags and the settings field each one drives.
_ENV_FLAGS: dict[str, str] = {
    "DISABLED": "disabled",
    "DEBUG": "debug",
    "BYPASS_THROTTLE": "ignore_throttle",
    "PINNED": "preserve_pinned",
}

# camelCase spellings accepted in settings files.
_FILE_KEY_ALIASES: dict[str, str] = {
    "ignoreThrottle": "ignore_throttle",
    "preservePinned": "preserve_pinned",
    "intervalHours": "interval_hours",
    "configDir": "config_dir",
}


def default_config_dir() -> Path:
    return Path.home() / ".config" / "opencode"


def env_flag(environ: Mapping[str, str], name: str) -> bool:
    """Return ``True`` when *name* is set to ``"true"`` (any case)."""
    return environ.get(name, "").lower() == "true"


def env_number(environ: Mapping[str, str], name: str, fallback: float) -> float:
    """Parse a finite float from *name*, falling back when missing or invalid."""
    raw = environ.get(name)
    if not raw:
        return fallback
    try:
        parsed = float(raw)
    except ValueError:
        return fallback
    return parsed if math.isfinite(parsed) else fallback


class AutoUpdateSettings(BaseModel):
    """Settings for one auto-update invocation."""

    model_config = {"extra": "allow"}

    config_dir: Path = Field(default_factory=default_config_dir)
    disabled: bool = Field(default=False)
    debug: bool = Field(default=False)
    ignore_throttle: bool = Field(default=False)
    interval_hours: float = Field(default=DEFAULT_INTERVAL_HOURS, ge=0)
    min_interval_hours: float = Field(default=1.0, ge=0)
    preserve_pinned: bool = Field(default=False)
    force_stale_lock: bool = Field(default=False)
    history_path: Path | None = Field(default=None)
    primary_package_manager: str = Field(default="bun")
    fallback_package_manager: str = Field(default="npm")
    extension_updater: str | None = Field(default=None)
    startup_delay_seconds: float = Field(default=1.5, ge=0)

    @field_validator("config_dir", "history_path")
    @classmethod
    def expand_user(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None

    @property
    def config_path(self) -> Path:
        """Path of the host's ``opencode.json``."""
        return self.config_dir / "opencode.json"

    @property
    def effective_history_path(self) -> Path:
        return self.history_path or self.config_dir / HISTORY_FILENAME


class SettingsLoader:
    """Builds :class:`AutoUpdateSettings` from files and the environment.

    Parameters
    ----------
    environ:
        Environment mapping; defaults to :data:`os.environ`.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def load(self, path: Path) -> dict[str, object]:
        """Read raw settings from *path*.

        ``.yaml``/``.yml`` files are parsed with PyYAML, anything else as
        JSON.  A missing or unparseable file yields ``{}``.
        """
        try:
            text = path.read_text(encoding="utf-8")
        except OSError:
            return {}
        try:
            if path.suffix.lower() in {".yaml", ".yml"}:
                raw = yaml.safe_load(text)
            else:
                raw = json.loads(text)
        except (yaml.YAMLError, ValueError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
            return {}
        if not isinstance(raw, dict):
            return {}
        return {_FILE_KEY_ALIASES.get(str(k), str(k)): v for k, v in raw.items()}

    def env_overrides(self) -> dict[str, object]:
        """Collect settings values present in the environment.

        Boolean flags can only switch a setting on; an unset or non-``true``
        variable leaves the file value in place.  A negative, non-finite or
        unparseable interval falls back to the 24 hour default.
        """
        overrides: dict[str, object] = {}
        for suffix, field_name in _ENV_FLAGS.items():
            if env_flag(self._environ, ENV_PREFIX + suffix):
                overrides[field_name] = True
        if ENV_PREFIX + "INTERVAL_HOURS" in self._environ:
            interval = env_number(self._environ, ENV_PREFIX + "INTERVAL_HOURS", DEFAULT_INTERVAL_HOURS)
            overrides["interval_hours"] = interval if interval >= 0 else DEFAULT_INTERVAL_HOURS
        if self._environ.get(ENV_CONFIG_DIR):
            overrides["config_dir"] = Path(self._environ[ENV_CONFIG_DIR])
        return overrides

    def resolve(
        self,
        settings_path: Path | None = None,
        **overrides: object,
    ) -> AutoUpdateSettings:
        """Merge defaults, settings file, environment and *overrides*.

        ``None`` values in *overrides* are ignored so callers can forward
        optional CLI flags unchanged.

        Raises
        ------
        ValueError:
            When the merged values fail validation.
        """
        merged: dict[str, object] = {}
        if settings_path is not None:
            merged.update(self.load(settings_path))
        merged.update(self.env_overrides())
        merged.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return AutoUpdateSettings.model_validate(merged)
        except ValidationError as exc:
            raise ValueError(f"Invalid auto-update settings: {exc}") from exc

    def defaults(self) -> AutoUpdateSettings:
        """Return settings with all defaults applied."""
        return AutoUpdateSettings()
