"""CLI entry point for docweave.

Invoked as::

    docweave [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m docweave.cli.main

Commands
--------
version     Show version information
extensions  Show the resolved extension order
schema      Show the assembled node and mark types
keymap      Show the merged key bindings
validate    Validate a JSON or YAML document against the schema
convert     Convert a document between registered formats
tree        Print a document's node tree with positions
plugins     List registered extension classes

Every editor-building command accepts ``--config FILE`` (YAML options,
see ``docweave.config``); without it the ``basic-editor`` kit is used.
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

if TYPE_CHECKING:
    from docweave.core.editor import CoreEditor

console = Console()
err_console = Console(stderr=True)

MIME_BY_SUFFIX = {
    ".json": "application/json",
    ".yaml": "application/x-yaml",
    ".yml": "application/x-yaml",
    ".txt": "text/plain",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _read_bytes(path: str) -> bytes:
    """Read a document file, exiting on error."""
    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        err_console.print(f"[red]Error:[/red] File not found: {path}")
        sys.exit(1)
    except OSError as exc:
        err_console.print(f"[red]Error:[/red] Cannot read {path}: {exc}")
        sys.exit(1)


def _guess_mime(path: str) -> str | None:
    return MIME_BY_SUFFIX.get(Path(path).suffix.lower())


def _build_editor(config: str | None) -> "CoreEditor":
    """Build an editor from ``config`` (or the default kit), exiting on error."""
    from docweave.config import EditorOptions, load_options
    from docweave.core.editor import CoreEditor
    from docweave.core.errors import ConfigurationError, ContentError, SchemaError

    try:
        options = load_options(config) if config else EditorOptions()
        if options.debug:
            _configure_logging(True)
        return CoreEditor.from_options(options)
    except SchemaError as exc:
        err_console.print("[red]Schema errors:[/red]")
        for diagnostic in exc.diagnostics:
            err_console.print(f"  {diagnostic}")
        sys.exit(1)
    except (ConfigurationError, ContentError) as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)


def _severity_color(severity_name: str) -> str:
    """Map a DiagnosticSeverity name to a Rich color string."""
    colors = {
        "ERROR": "red",
        "WARNING": "yellow",
        "INFORMATION": "blue",
        "HINT": "dim",
    }
    return colors.get(severity_name, "white")


def config_option(func: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--config",
        "-c",
        "config",
        default=None,
        type=click.Path(exists=False, dir_okay=False),
        help="YAML editor options file (defaults to the basic-editor kit)",
    )(func)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="docweave")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log DEBUG output to stderr")
def cli(verbose: bool) -> None:
    """Extensible rich-document editor core: resolve, assemble, edit, convert."""
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from docweave import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]docweave[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# plugins command
# ---------------------------------------------------------------------------


@cli.command(name="plugins")
def plugins_command() -> None:
    """List extension classes registered by name, including entry-points."""
    import docweave.extensions.builtin  # noqa: F401
    from docweave.extensions.registry import extension_registry

    extension_registry.load_entrypoints()

    table = Table(title="Registered extensions")
    table.add_column("Name", style="bold")
    table.add_column("Category")
    table.add_column("Class")
    for name in extension_registry.list_extensions():
        cls = extension_registry.get(name)
        table.add_row(name, cls.category.value, f"{cls.__module__}.{cls.__qualname__}")
    console.print(table)


# ---------------------------------------------------------------------------
# extensions command
# ---------------------------------------------------------------------------


@cli.command(name="extensions")
@config_option
def extensions_command(config: str | None) -> None:
    """Show the resolved extension order (dependencies first)."""
    editor = _build_editor(config)

    table = Table(title="Resolved extensions")
    table.add_column("#", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Category")
    table.add_column("Requires")
    for index, ext in enumerate(editor.extensions, start=1):
        table.add_row(str(index), ext.name, ext.category.value, ", ".join(ext.required_names()) or "-")
    console.print(table)


# ---------------------------------------------------------------------------
# schema command
# ---------------------------------------------------------------------------


@cli.command(name="schema")
@config_option
def schema_command(config: str | None) -> None:
    """Show the assembled node and mark types."""
    editor = _build_editor(config)
    schema = editor.schema

    nodes = Table(title=f"Node types (root: {schema.top_node_type.name})")
    nodes.add_column("Name", style="bold")
    nodes.add_column("Group")
    nodes.add_column("Content")
    nodes.add_column("Attributes")
    for node_type in schema.nodes.values():
        spec = node_type.spec
        nodes.add_row(spec.name, spec.group or "-", spec.content or "(leaf)", ", ".join(spec.attrs) or "-")
    console.print(nodes)

    marks = Table(title="Mark types")
    marks.add_column("Rank", justify="right")
    marks.add_column("Name", style="bold")
    marks.add_column("Excludes")
    marks.add_column("Inclusive")
    for mark_type in schema.marks.values():
        spec = mark_type.spec
        excludes = spec.name if spec.excludes is None else (spec.excludes or "-")
        marks.add_row(str(mark_type.rank), spec.name, excludes, "yes" if spec.inclusive else "no")
    console.print(marks)


# ---------------------------------------------------------------------------
# keymap command
# ---------------------------------------------------------------------------


@cli.command(name="keymap")
@config_option
@click.option(
    "--platform",
    type=click.Choice(["mac", "pc"], case_sensitive=False),
    default=None,
    help="Resolve Mod- for this platform instead of the configured one",
)
def keymap_command(config: str | None, platform: str | None) -> None:
    """Show the merged key bindings and the extension that owns each one."""
    from docweave.core.keymap import Keymap

    editor = _build_editor(config)
    keymap = editor.keymap
    if platform and platform != editor.platform:
        keymap = Keymap.from_extensions(editor.extensions, editor, editor.commands, platform)

    table = Table(title=f"Keymap ({keymap.platform})")
    table.add_column("Chord", style="bold")
    table.add_column("Command")
    table.add_column("Owner", style="dim")
    for chord, name in keymap.items():
        table.add_row(chord, name, keymap.owner(chord) or "-")
    console.print(table)


# ---------------------------------------------------------------------------
# validate command
# ---------------------------------------------------------------------------


@cli.command(name="validate")
@click.argument("file", type=click.Path(exists=False))
@config_option
def validate_command(file: str, config: str | None) -> None:
    """Validate a JSON or YAML document against the assembled schema.

    FILE is the path to the .json, .yaml or .yml document.
    """
    from docweave.validator import validate_document

    raw = _read_bytes(file)
    try:
        if _guess_mime(file) == "application/x-yaml":
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw)
    except (ValueError, yaml.YAMLError) as exc:
        err_console.print(f"[red]Parse error[/red] in {file}: {exc}")
        sys.exit(1)

    editor = _build_editor(config)
    diagnostics = validate_document(data, editor.schema)

    if not diagnostics:
        console.print(f"[green]OK[/green] {file}: document fits the schema")
        sys.exit(0)

    table = Table(title=f"Validation: {file}", show_lines=True)
    table.add_column("Severity", style="bold", min_width=10)
    table.add_column("Code", min_width=6)
    table.add_column("Location", min_width=10)
    table.add_column("Message")

    for d in diagnostics:
        color = _severity_color(d.severity.name)
        table.add_row(
            f"[{color}]{d.severity.name}[/{color}]",
            d.code,
            d.source,
            d.message + (f"\n[dim]hint: {d.suggestion}[/dim]" if d.suggestion else ""),
        )

    console.print(table)
    errors = [d for d in diagnostics if d.is_error]
    console.print(f"\n[bold]Summary:[/bold] {len(errors)} error(s), {len(diagnostics) - len(errors)} warning(s)")

    if errors:
        sys.exit(1)


# ---------------------------------------------------------------------------
# convert command
# ---------------------------------------------------------------------------


@cli.command(name="convert")
@click.argument("file", type=click.Path(exists=False))
@click.option("--from", "from_mime", default=None, help="Input MIME type (guessed from the suffix by default)")
@click.option("--to", "to_mime", default="application/json", show_default=True, help="Output MIME type")
@click.option("--output", "-o", default=None, help="Output file path (defaults to stdout)")
@config_option
def convert_command(file: str, from_mime: str | None, to_mime: str, output: str | None, config: str | None) -> None:
    """Convert a document between formats registered by extensions.

    FILE is the path to the input document.

    Examples:

    \b
        docweave convert notes.txt --to application/json
        docweave convert doc.json --to application/x-yaml -o doc.yaml
    """
    from docweave.core.errors import ConversionError

    from_mime = from_mime or _guess_mime(file)
    if from_mime is None:
        err_console.print(f"[red]Error:[/red] Cannot guess the format of {file}; pass --from")
        sys.exit(1)

    raw = _read_bytes(file)
    editor = _build_editor(config)

    result = editor.load_document(from_mime, raw)
    if not result.ok:
        err_console.print(f"[red]Cannot load[/red] {file} as {from_mime}: {result.error}")
        sys.exit(1)

    try:
        data = editor.save_document(to_mime)
    except ConversionError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    if output:
        Path(output).write_bytes(data)
        console.print(f"[green]Written[/green] {output} ({to_mime})")
    else:
        click.echo(data.decode("utf-8"), nl=False)


# ---------------------------------------------------------------------------
# tree command
# ---------------------------------------------------------------------------


@cli.command(name="tree")
@click.argument("file", type=click.Path(exists=False))
@click.option("--from", "from_mime", default=None, help="Input MIME type (guessed from the suffix by default)")
@config_option
def tree_command(file: str, from_mime: str | None, config: str | None) -> None:
    """Print the node tree of a document with token positions.

    FILE is the path to the input document.
    """
    from_mime = from_mime or _guess_mime(file) or "application/json"
    raw = _read_bytes(file)
    editor = _build_editor(config)

    result = editor.load_document(from_mime, raw)
    if not result.ok:
        err_console.print(f"[red]Cannot load[/red] {file} as {from_mime}: {result.error}")
        sys.exit(1)
    console.print(Syntax(editor.get_document_as_tree(), "yaml", line_numbers=False))


if __name__ == "__main__":
    cli()
