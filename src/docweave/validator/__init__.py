"""docweave validator module.

Exports the ``SchemaValidator`` class, the ``validate_document``
function, ``Diagnostic`` types, and all built-in schema rules.
"""
from __future__ import annotations

from docweave.validator.diagnostics import Diagnostic, DiagnosticSeverity
from docweave.validator.rules import DEFAULT_RULES, SchemaRule
from docweave.validator.validator import SchemaValidator, validate_document

__all__ = [
    "SchemaValidator",
    "validate_document",
    "Diagnostic",
    "DiagnosticSeverity",
    "SchemaRule",
    "DEFAULT_RULES",
]
