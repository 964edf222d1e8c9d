"""Command-line interface for yaml-mapper."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from yaml_mapper import __version__
from yaml_mapper.cli.exception_handler import handle_exceptions
from yaml_mapper.cli.targets import import_target
from yaml_mapper.errors import MappingError, describe_type
from yaml_mapper.mapper import YamlMapper
from yaml_mapper.schema.descriptors import FieldKind, ObjectSchema
from yaml_mapper.transform.flatten import flatten
from yaml_mapper.transform.paths import resolve_path

# Create Typer app
app = typer.Typer(
    name="yaml-mapper",
    help="Load, inspect and create YAML documents for mapped Python classes.",
    add_completion=True,
    no_args_is_help=True,
)

# Rich consoles for output
console = Console()
error_console = Console(stderr=True, style="bold red")

mapper = YamlMapper()

TargetArgument = Annotated[
    str,
    typer.Argument(help="Mapped class as 'package.module:ClassName'."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"yaml-mapper version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send yaml-mapper debug logging to stderr when ``verbose`` is set."""
    if not verbose:
        return
    package_logger = logging.getLogger("yaml_mapper")
    package_logger.setLevel(logging.DEBUG)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
        )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-V",
            help="Show debug logging and full tracebacks.",
        ),
    ] = False,
) -> None:
    """Load, inspect and create YAML documents for mapped Python classes.

    Targets are dataclasses or pydantic models declared with the
    yaml-mapper markers, addressed as 'package.module:ClassName'.
    """
    configure_logging(verbose)


def _format_value(value: Any) -> Text:
    if value is None:
        return Text("null", style="dim")
    return Text(str(value))


@app.command()
@handle_exceptions()
def show(
    target: TargetArgument,
    input_file: Annotated[
        Path,
        typer.Argument(
            help="YAML file to load.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
) -> None:
    """Load a YAML file into the target class and print its values.

    Absent keys are filled from the class defaults before printing.

    Examples
    --------
        yaml-mapper show myapp.config:ServerConfig server.yml

    """
    cls = import_target(target)
    result = mapper.load(cls, input_file)

    table = Table(title=f"{cls.__qualname__} ({input_file.name})", show_header=True)
    table.add_column("Key path", style="cyan")
    table.add_column("Value", style="white")
    for path, value in flatten(mapper.to_tree(result.value)).items():
        table.add_row(Text(path), _format_value(value))
    console.print(table)

    if result.version is not None:
        console.print(f"Document version: {result.version}")


@app.command()
@handle_exceptions()
def init(
    target: TargetArgument,
    output: Annotated[
        Path,
        typer.Argument(
            help="YAML file to create.",
            dir_okay=False,
            writable=True,
            resolve_path=True,
        ),
    ],
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite output file if it exists.",
        ),
    ] = False,
) -> None:
    """Write a YAML file holding the defaults of the target class.

    Examples
    --------
        yaml-mapper init myapp.config:ServerConfig server.yml
        yaml-mapper init myapp.config:ServerConfig server.yml --force

    """
    cls = import_target(target)

    if output.exists() and not force:
        error_console.print(
            f"\n[bold red]✗ Output file already exists: {output}[/bold red]\n"
            "Use --force to overwrite."
        )
        raise typer.Exit(code=1)

    mapper.save(mapper.create_defaults(cls), output)
    console.print(
        f"\n[bold green]✓ Wrote defaults of {cls.__qualname__} to {output.name}[/bold green]\n"
    )


@app.command()
def check(
    target: TargetArgument,
    input_file: Annotated[
        Path,
        typer.Argument(
            help="YAML file to check.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only output errors, no success messages.",
        ),
    ] = False,
) -> None:
    """Check that a YAML file loads into the target class.

    Examples
    --------
        yaml-mapper check myapp.config:ServerConfig server.yml
        yaml-mapper check myapp.config:ServerConfig server.yml --quiet

    """
    try:
        cls = import_target(target)
        result = mapper.load(cls, input_file)
    except MappingError as e:
        error_console.print(f"\n[bold red]✗ Failed to load {input_file.name}[/bold red]")
        error_console.print(Text(str(e)))
        raise typer.Exit(code=1) from None

    if quiet:
        return

    object_schema = mapper.schema_for(cls)
    fields = object_schema.mapped_fields
    unset = [f.name for f in fields if getattr(result.value, f.name) is None]
    if unset:
        console.print(
            f"\n[bold yellow]⚠ {input_file.name} loads as {cls.__qualname__} "
            f"with unset fields: {', '.join(unset)}[/bold yellow]\n"
        )
    else:
        console.print(
            f"\n[bold green]✓ {input_file.name} loads as {cls.__qualname__}[/bold green]\n"
        )


def _settings_summary(schema: ObjectSchema) -> str:
    settings = schema.settings
    naming = settings.naming.value if settings.naming else "inherited"
    lines = [f"Naming: {naming}"]
    if settings.version_field:
        lines.append(f"Version: {settings.version_field} = {settings.version_number}")
    if settings.header:
        lines.append(f"Header: {settings.header}")
    if schema.rooted_map_field is not None:
        lines.append("Rooted map")
    return "\n".join(lines)


@app.command()
@handle_exceptions()
def schema(target: TargetArgument) -> None:
    """Print the fields of the target class and their key paths.

    Examples
    --------
        yaml-mapper schema myapp.config:ServerConfig

    """
    cls = import_target(target)
    object_schema = mapper.schema_for(cls)
    naming = mapper.objects.naming_for(object_schema, None)

    console.print(Panel(Text(_settings_summary(object_schema)), title=cls.__qualname__))

    table = Table(show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Key path", style="green")
    table.add_column("Kind")
    table.add_column("Type", style="dim")
    table.add_column("Comment")
    for field in object_schema.fields:
        if field.ignored:
            path, kind = "-", "ignored"
        elif field.kind is FieldKind.ROOTED_MAP:
            path, kind = "<root>", field.kind.value
        else:
            path, kind = resolve_path(field, naming), field.kind.value
        table.add_row(
            field.name,
            Text(path),
            kind,
            Text(describe_type(field.annotation)),
            Text(field.comment or ""),
        )
    console.print(table)


if __name__ == "__main__":
    app()
