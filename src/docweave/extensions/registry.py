"""Extension class registry for docweave.

Configuration files refer to extensions by name (``basic-editor``,
``history``).  This registry maps those names to ``Extension``
subclasses.  Built-in extensions register themselves with the
``@extension_registry.register`` decorator at import time; third-party
packages declare entry-points under the ``docweave.extensions`` group.

Example
-------
Register an extension class::

    from docweave.extensions.base import Extension
    from docweave.extensions.registry import extension_registry

    @extension_registry.register()
    class Mention(Extension):
        name = "mention"

Load installed extensions via entry-points::

    extension_registry.load_entrypoints("docweave.extensions")

Instantiate an extension by name::

    ext = extension_registry.create("history", {"depth": 20})
"""
from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Callable
from typing import Any, Mapping

from docweave.extensions.base import Extension

logger = logging.getLogger(__name__)

ENTRYPOINT_GROUP = "docweave.extensions"


class ExtensionNotFoundError(KeyError):
    """Raised when a requested extension name is not in the registry."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.extension_name = name
        self.available = available
        super().__init__(
            f"Extension {name!r} is not registered. "
            f"Available extensions: {', '.join(available) or '<none>'}. "
            "Check that the package is installed and its entry-points are declared."
        )

    def __str__(self) -> str:
        return str(self.args[0])


class ExtensionAlreadyRegisteredError(ValueError):
    """Raised when attempting to register a name that already exists."""

    def __init__(self, name: str) -> None:
        self.extension_name = name
        super().__init__(
            f"Extension {name!r} is already registered. "
            "Use a unique name or explicitly deregister the existing entry first."
        )


class ExtensionRegistry:
    """Name-to-class registry for ``Extension`` subclasses.

    Classes are registered either via the ``@register`` decorator at
    import time, or lazily via ``load_entrypoints`` for installed packages.
    """

    def __init__(self) -> None:
        self._classes: dict[str, type[Extension]] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str | None = None) -> Callable[[type[Extension]], type[Extension]]:
        """Return a class decorator that registers the decorated class.

        Parameters
        ----------
        name:
            Registry key.  Defaults to the class-level ``name`` of the
            decorated extension.

        Raises
        ------
        ExtensionAlreadyRegisteredError
            If the key is already in use.
        TypeError
            If the decorated class does not subclass ``Extension``.
        """

        def decorator(cls: type[Extension]) -> type[Extension]:
            self.register_class(name or getattr(cls, "name", ""), cls)
            return cls

        return decorator

    def register_class(self, name: str, cls: type[Extension]) -> None:
        """Register ``cls`` under ``name`` without the decorator syntax."""
        if not (isinstance(cls, type) and issubclass(cls, Extension)):
            raise TypeError(f"Cannot register {cls!r} under {name!r}: it must subclass Extension.")
        if not name:
            raise TypeError(f"Cannot register {cls.__qualname__}: it declares no extension name.")
        if name in self._classes:
            raise ExtensionAlreadyRegisteredError(name)
        self._classes[name] = cls
        logger.debug("Registered extension %r -> %s", name, cls.__qualname__)

    def deregister(self, name: str) -> None:
        """Remove an extension class from the registry.

        Raises
        ------
        ExtensionNotFoundError
            If ``name`` is not currently registered.
        """
        if name not in self._classes:
            raise ExtensionNotFoundError(name, self.list_extensions())
        del self._classes[name]
        logger.debug("Deregistered extension %r", name)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> type[Extension]:
        """Return the class registered under ``name``.

        Raises
        ------
        ExtensionNotFoundError
            If no class is registered under ``name``.
        """
        try:
            return self._classes[name]
        except KeyError:
            raise ExtensionNotFoundError(name, self.list_extensions()) from None

    def create(self, name: str, config: Mapping[str, Any] | None = None) -> Extension:
        """Instantiate the extension registered under ``name`` with ``config``."""
        return self.get(name)(config)

    def list_extensions(self) -> list[str]:
        """Return all registered extension names in alphabetical order."""
        return sorted(self._classes)

    def __contains__(self, name: object) -> bool:
        return name in self._classes

    def __len__(self) -> int:
        return len(self._classes)

    def __repr__(self) -> str:
        return f"ExtensionRegistry(extensions={self.list_extensions()})"

    # ------------------------------------------------------------------
    # Entry-point loading
    # ------------------------------------------------------------------

    def load_entrypoints(self, group: str = ENTRYPOINT_GROUP) -> None:
        """Discover and register extension classes declared as entry-points.

        Names that are already registered are skipped with a debug-level
        log entry, so repeated calls are idempotent.  An entry-point that
        fails to import is logged and skipped.

        Example
        -------
        In a downstream package's ``pyproject.toml``::

            [project.entry-points."docweave.extensions"]
            mention = "my_package.mention:Mention"
        """
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self._classes:
                logger.debug("Entry-point %r already registered; skipping.", ep.name)
                continue
            try:
                cls = ep.load()
            except Exception:
                logger.exception("Failed to load entry-point %r from group %r; skipping.", ep.name, group)
                continue
            try:
                self.register_class(ep.name, cls)
            except (ExtensionAlreadyRegisteredError, TypeError):
                logger.warning("Entry-point %r loaded but could not be registered; skipping.", ep.name)


extension_registry = ExtensionRegistry()
