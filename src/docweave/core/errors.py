"""Exception types for docweave.

Two families of failure exist.  Configuration errors are raised once,
while a ``CoreEditor`` is being assembled, and mean the extension list
must be fixed.  Programming errors (``StepError``, ``CommandContractError``)
signal a bug in a command or extension.  An ordinary "this command does
not apply here" outcome is never an exception: commands return ``False``.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from docweave.validator.diagnostics import Diagnostic


class DocweaveError(Exception):
    """Base class for every error raised by docweave."""


# ---------------------------------------------------------------------------
# Configuration-time errors
# ---------------------------------------------------------------------------


class ConfigurationError(DocweaveError):
    """Raised while assembling an editor from its extension list."""


class ResolutionError(ConfigurationError):
    """The extension list could not be turned into a dependency order."""


class MissingDependencyError(ResolutionError):
    """An extension requires a name that no extension in the walk provides.

    Parameters
    ----------
    requirer:
        Name of the extension declaring the requirement.
    required:
        The name that could not be found.
    """

    def __init__(self, requirer: str, required: str) -> None:
        self.requirer = requirer
        self.required = required
        super().__init__(
            f"Missing dependency: extension {requirer!r} requires {required!r}, "
            "which is not provided by any extension in the list."
        )


class CircularDependencyError(ResolutionError):
    """The ``requires`` graph contains a cycle.

    Parameters
    ----------
    cycle:
        Extension names along the cycle; the first name is repeated at
        the end, e.g. ``["a", "b", "a"]``.
    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(f"Circular dependency: {' -> '.join(self.cycle)}")


class ExtensionConflictError(ConfigurationError):
    """Two resolved extensions declared themselves mutually exclusive."""

    def __init__(self, extension: str, conflicting: str) -> None:
        self.extension = extension
        self.conflicting = conflicting
        super().__init__(f"Extension conflict: {extension!r} vs {conflicting!r}")


class SchemaError(ConfigurationError):
    """Schema assembly failed one or more validation rules.

    Parameters
    ----------
    diagnostics:
        All ERROR-level findings, in rule order.
    """

    def __init__(self, diagnostics: Sequence["Diagnostic"]) -> None:
        self.diagnostics = list(diagnostics)
        lines = [f"Schema assembly failed ({len(self.diagnostics)} error(s)):"]
        lines.extend(f"  {d}" for d in self.diagnostics)
        super().__init__("\n".join(lines))


class ConfigFileError(ConfigurationError):
    """An options file could not be read or has an invalid shape."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


# ---------------------------------------------------------------------------
# Runtime programming errors
# ---------------------------------------------------------------------------


class ContentError(DocweaveError):
    """A node or document does not conform to the schema."""


class ContentExpressionError(ConfigurationError):
    """A node content expression is malformed.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    expression:
        The full expression text.
    offset:
        0-based character offset where the problem was detected.
    """

    def __init__(self, message: str, expression: str, offset: int) -> None:
        self.expression_message = message
        self.expression = expression
        self.offset = offset
        super().__init__(f"Invalid content expression {expression!r} at {offset}: {message}")


class StepError(DocweaveError):
    """A transaction step cannot be applied to the given document."""


class StaleTransactionError(DocweaveError):
    """A transaction was applied to a state it was not built from."""


class CommandContractError(DocweaveError):
    """A command broke the dispatch contract.

    Commands may call ``dispatch`` at most once, and only when they
    return ``True``.
    """


class UnknownCommandError(KeyError, AttributeError):
    """No command factory is registered under the requested name.

    Also an ``AttributeError``, so ``hasattr(editor.chain(), name)`` is
    False for unregistered names.
    """

    def __init__(self, name: str) -> None:
        self.command_name = name
        super().__init__(f"Command {name!r} is not registered")

    def __str__(self) -> str:
        return str(self.args[0])


class ConversionError(DocweaveError):
    """A format converter could not read or write a document."""
