"""Keymap builder.

Extensions bind key chords to command names.  Chords are normalized so
that spelling differences collide: ``Shift-Ctrl-0`` and ``Ctrl-Shift-0``
are the same chord, and ``Mod`` becomes ``Meta`` on mac and ``Ctrl``
elsewhere.  When two extensions bind the same chord the one later in
resolution order wins.
"""
from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Iterator

from docweave.core.errors import ConfigurationError
from docweave.extensions.base import ProvidesKeyBindings

if TYPE_CHECKING:
    from docweave.core.editor import CoreEditor
    from docweave.core.registry import CommandRegistry
    from docweave.core.resolver import ResolvedExtensionSet

logger = logging.getLogger(__name__)

MODIFIER_ORDER: tuple[str, ...] = ("Alt", "Ctrl", "Meta", "Shift")

_ALIASES: dict[str, str] = {
    "alt": "Alt",
    "a": "Alt",
    "option": "Alt",
    "ctrl": "Ctrl",
    "control": "Ctrl",
    "c": "Ctrl",
    "meta": "Meta",
    "cmd": "Meta",
    "command": "Meta",
    "m": "Meta",
    "shift": "Shift",
    "s": "Shift",
}


def default_platform() -> str:
    return "mac" if sys.platform == "darwin" else "pc"


def normalize_chord(chord: str, platform: str = "pc") -> str:
    """Return the canonical spelling of ``chord``.

    Raises
    ------
    ValueError
        If the chord is empty or names an unknown modifier.
    """
    if not chord:
        raise ValueError("Empty key chord")
    parts = chord.split("-")
    key = parts[-1]
    modifiers = parts[:-1]
    if key == "" and modifiers:
        # "Ctrl--" binds the minus key
        key = "-"
        modifiers = modifiers[:-1]
    found: set[str] = set()
    for modifier in modifiers:
        lowered = modifier.lower()
        if lowered == "mod":
            found.add("Meta" if platform == "mac" else "Ctrl")
        elif lowered in _ALIASES:
            found.add(_ALIASES[lowered])
        else:
            raise ValueError(f"Unknown modifier {modifier!r} in key chord {chord!r}")
    if len(key) == 1 and key.isalpha():
        key = key.lower()
    return "-".join([*(m for m in MODIFIER_ORDER if m in found), key])


class Keymap:
    """Normalized chord to command name table.

    Parameters
    ----------
    platform:
        ``"mac"`` or ``"pc"``; decides what ``Mod`` means.
    """

    def __init__(self, platform: str = "pc") -> None:
        self.platform = platform
        self._bindings: dict[str, str] = {}
        self._owners: dict[str, str] = {}

    @classmethod
    def from_extensions(
        cls,
        resolved: "ResolvedExtensionSet",
        editor: "CoreEditor",
        registry: "CommandRegistry",
        platform: str = "pc",
    ) -> "Keymap":
        """Merge every extension's key bindings in resolution order.

        Bindings to a command name the registry does not know are dropped
        with a warning.

        Raises
        ------
        ConfigurationError
            If an extension binds a chord that cannot be normalized.
        """
        keymap = cls(platform)
        for ext in resolved:
            if not isinstance(ext, ProvidesKeyBindings):
                continue
            for chord, command_name in ext.provide_key_bindings(editor).items():
                if command_name not in registry:
                    logger.warning(
                        "Extension %r binds %r to unknown command %r; binding dropped",
                        ext.name,
                        chord,
                        command_name,
                    )
                    continue
                try:
                    keymap.bind(chord, command_name, ext.name)
                except ValueError as exc:
                    raise ConfigurationError(
                        f"Extension {ext.name!r} binds an invalid key chord: {exc}"
                    ) from exc
        return keymap

    def bind(self, chord: str, command_name: str, owner: str = "") -> None:
        normalized = normalize_chord(chord, self.platform)
        previous = self._owners.get(normalized)
        if previous is not None:
            logger.debug(
                "Key %r: %r from %r overrides %r from %r",
                normalized,
                command_name,
                owner,
                self._bindings[normalized],
                previous,
            )
        self._bindings[normalized] = command_name
        self._owners[normalized] = owner

    def lookup(self, chord: str) -> str | None:
        """Return the command name bound to ``chord``, if any."""
        return self._bindings.get(normalize_chord(chord, self.platform))

    def owner(self, chord: str) -> str | None:
        return self._owners.get(normalize_chord(chord, self.platform))

    def items(self) -> list[tuple[str, str]]:
        return list(self._bindings.items())

    def __contains__(self, chord: object) -> bool:
        if not isinstance(chord, str):
            return False
        try:
            return self.lookup(chord) is not None
        except ValueError:
            return False

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"Keymap(platform={self.platform!r}, bindings={len(self)})"
