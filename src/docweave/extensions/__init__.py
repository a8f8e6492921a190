"""Extension descriptors, capabilities and the extension class registry."""
from __future__ import annotations

from docweave.extensions.base import Category, Converter, Extension
from docweave.extensions.registry import (
    ExtensionAlreadyRegisteredError,
    ExtensionNotFoundError,
    ExtensionRegistry,
    extension_registry,
)

__all__ = [
    "Category",
    "Converter",
    "Extension",
    "ExtensionAlreadyRegisteredError",
    "ExtensionNotFoundError",
    "ExtensionRegistry",
    "extension_registry",
]
