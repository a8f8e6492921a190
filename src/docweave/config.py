"""Editor options and YAML configuration loading.

A configuration file names extensions by their registry name, optionally
with per-extension config, plus initial content and the key platform::

    platform: pc
    extensions:
      - basic-editor
      - name: history
        config: {depth: 20}
    content:
      type: doc
      content:
        - type: paragraph
          content: [{type: text, text: Hello}]

Extensions listed later override commands and key bindings of earlier ones.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from docweave.core.errors import ConfigFileError
from docweave.extensions.base import Extension
from docweave.extensions.registry import ExtensionNotFoundError, extension_registry

PLATFORMS = ("mac", "pc")


@dataclass(frozen=True)
class ExtensionEntry:
    """One configured extension: registry name plus its config mapping."""

    name: str
    config: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class EditorOptions:
    """Everything needed to construct a ``CoreEditor``.

    Attributes
    ----------
    extensions:
        Configured extension entries, in priority order.
    content:
        Initial document as a JSON-like mapping, or ``None``.
    platform:
        ``"mac"``, ``"pc"`` or ``None`` for the running platform.
    debug:
        Enables DEBUG logging in the CLI.
    """

    extensions: tuple[ExtensionEntry, ...] = (ExtensionEntry("basic-editor"),)
    content: Mapping[str, Any] | None = None
    platform: str | None = None
    debug: bool = False
    source: str | None = field(default=None, compare=False)

    def build_extensions(self) -> list[Extension]:
        """Instantiate every entry through ``extension_registry``.

        Raises
        ------
        ConfigFileError
            If an entry names an unregistered extension.
        """
        import docweave.extensions.builtin  # noqa: F401  (registers built-ins)

        built: list[Extension] = []
        for entry in self.extensions:
            try:
                built.append(extension_registry.create(entry.name, entry.config))
            except ExtensionNotFoundError as exc:
                raise ConfigFileError(str(exc), path=self.source) from None
        return built


def _parse_entry(raw: Any, path: str) -> ExtensionEntry:
    if isinstance(raw, str):
        return ExtensionEntry(raw)
    if isinstance(raw, dict) and isinstance(raw.get("name"), str):
        config = raw.get("config")
        if config is not None and not isinstance(config, dict):
            raise ConfigFileError(f"config of extension {raw['name']!r} must be a mapping", path=path)
        return ExtensionEntry(raw["name"], config)
    raise ConfigFileError(f"Invalid extension entry: {raw!r}", path=path)


def options_from_dict(data: Mapping[str, Any], path: str = "<dict>") -> EditorOptions:
    """Validate a parsed configuration mapping and build ``EditorOptions``."""
    unknown = set(data) - {"extensions", "content", "platform", "debug"}
    if unknown:
        raise ConfigFileError(f"Unknown option(s): {', '.join(sorted(unknown))}", path=path)

    raw_extensions = data.get("extensions", ["basic-editor"])
    if not isinstance(raw_extensions, list):
        raise ConfigFileError("'extensions' must be a list", path=path)
    entries = tuple(_parse_entry(raw, path) for raw in raw_extensions)

    platform = data.get("platform")
    if platform is not None and platform not in PLATFORMS:
        raise ConfigFileError(
            f"'platform' must be one of {', '.join(PLATFORMS)}, got {platform!r}", path=path
        )

    content = data.get("content")
    if content is not None and not isinstance(content, dict):
        raise ConfigFileError("'content' must be a mapping", path=path)

    return EditorOptions(
        extensions=entries,
        content=content,
        platform=platform,
        debug=bool(data.get("debug", False)),
        source=path,
    )


def load_options(path: str | Path) -> EditorOptions:
    """Read editor options from a YAML file.

    Parameters
    ----------
    path:
        Path to the YAML configuration file.

    Returns
    -------
    EditorOptions
        Parsed options.  Extension names are checked when the editor is
        built, not here.

    Raises
    ------
    ConfigFileError
        If the file cannot be read, is not valid YAML, or has the wrong shape.
    """
    path = str(path)
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigFileError(f"Cannot read configuration: {exc}", path=path) from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigFileError(f"Invalid YAML: {exc}", path=path) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigFileError("Configuration must be a mapping", path=path)
    return options_from_dict(data, path)
