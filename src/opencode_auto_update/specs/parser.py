"""Plugin reference parsing and classification.

opencode plugin entries are package specs such as ``my-plugin``,
``my-plugin@1.2.0``, ``@scope/plugin@2.0.0`` or non-registry references
(local paths, git URLs, workspace links).  Only registry specs are
eligible for auto-update.

Example
-------
>>> parse("@scope/pkg@1.2.3")
PluginSpec(raw='@scope/pkg@1.2.3', name='@scope/pkg', version='1.2.3')
>>> is_registry_spec("./plugins/local")
False
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

_NON_REGISTRY_PREFIXES: tuple[str, ...] = (
    "file:",
    "git+",
    "git:",
    "ssh://",
    "http://",
    "https://",
    "github:",
    "workspace:",
)

_PATH_PREFIXES: tuple[str, ...] = ("./", "../", "/", "~")


class SpecKind(str, Enum):
    """Whether a spec is resolvable through the package registry."""

    REGISTRY = "registry"
    NON_REGISTRY = "non_registry"


@dataclass(frozen=True)
class PluginSpec:
    """A parsed plugin reference.

    Attributes
    ----------
    raw:
        The entry exactly as it appears in ``opencode.json``.
    name:
        Package name, including the ``@scope/`` prefix when present.
    version:
        Version or tag after the name, or ``None`` when unpinned.
    """

    raw: str
    name: str
    version: str | None = None

    @property
    def pinned(self) -> bool:
        return self.version is not None

    def with_version(self, version: str) -> str:
        """Return the entry string for *version* of this package."""
        return f"{self.name}@{version}"


def classify(spec: str) -> SpecKind:
    """Classify *spec* as a registry or non-registry reference."""
    trimmed = spec.strip()
    if not trimmed:
        return SpecKind.NON_REGISTRY
    if trimmed.lower().startswith(_NON_REGISTRY_PREFIXES):
        return SpecKind.NON_REGISTRY
    if trimmed.startswith(_PATH_PREFIXES):
        return SpecKind.NON_REGISTRY
    return SpecKind.REGISTRY


def is_registry_spec(spec: str) -> bool:
    return classify(spec) is SpecKind.REGISTRY


def parse(spec: str) -> PluginSpec:
    """Split *spec* into package name and optional version.

    Scoped names split at the second ``@`` (the first belongs to the
    scope).  Unscoped names split at the last ``@`` when it is not the
    first character.  An empty version suffix counts as no version.
    """
    if spec.startswith("@"):
        second_at = spec.find("@", 1)
        if second_at == -1:
            return PluginSpec(raw=spec, name=spec)
        return PluginSpec(
            raw=spec,
            name=spec[:second_at],
            version=spec[second_at + 1:] or None,
        )

    at = spec.rfind("@")
    if at <= 0:
        return PluginSpec(raw=spec, name=spec)
    return PluginSpec(raw=spec, name=spec[:at], version=spec[at + 1:] or None)
