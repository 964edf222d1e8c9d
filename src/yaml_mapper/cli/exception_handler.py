"""CLI exception handling."""

from __future__ import annotations

import logging
import traceback
from collections.abc import Callable
from functools import wraps
from typing import TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from yaml_mapper.errors import (
    CoercionFailure,
    ConfigurationError,
    DocumentUnreadable,
    FieldAccessError,
    MappingError,
)

T = TypeVar("T")

console = Console(stderr=True)

ERROR_TITLES: dict[type[MappingError], str] = {
    ConfigurationError: "Invalid Class Declaration",
    DocumentUnreadable: "Unreadable Document",
    FieldAccessError: "Field Access Failed",
    CoercionFailure: "Type Conversion Failed",
}

ERROR_HINTS: dict[type[MappingError], str] = {
    ConfigurationError: "Check the markers and decorators on the target class.",
    DocumentUnreadable: "Check that the file exists and holds a YAML mapping.",
    CoercionFailure: "Check the value at the reported key path.",
}


def _show_traceback(verbose: bool) -> bool:
    return verbose or logging.getLogger("yaml_mapper").isEnabledFor(logging.DEBUG)


def handle_exceptions(
    verbose: bool = False,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Handle exceptions in CLI commands with formatted output.

    Tracebacks are shown when ``verbose`` is set or the CLI runs with
    ``--verbose``.

    Args:
    ----
        verbose: Whether to show full tracebacks.

    Returns:
    -------
        Decorator function.

    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: object, **kwargs: object) -> T:
            try:
                return func(*args, **kwargs)
            except typer.Exit:
                raise
            except MappingError as e:
                _handle_mapping_error(e, _show_traceback(verbose))
                raise typer.Exit(1) from None
            except Exception as e:
                _handle_generic_error(e, _show_traceback(verbose))
                raise typer.Exit(1) from None

        return wrapper

    return decorator


def error_title(error: MappingError) -> str:
    """Return the panel title for a mapping error."""
    for error_type in type(error).__mro__:
        if error_type in ERROR_TITLES:
            return ERROR_TITLES[error_type]
    return "Mapping Error"


def _handle_mapping_error(error: MappingError, verbose: bool) -> None:
    """Handle errors raised while mapping a document."""
    body = f"[red]{escape(str(error))}[/red]"
    hint = next((h for t, h in ERROR_HINTS.items() if isinstance(error, t)), None)
    if hint:
        body += f"\n\n{hint}"
    console.print(Panel(body, title=error_title(error), border_style="red"))

    if verbose and error.__cause__ is not None:
        console.print(f"[dim]Caused by: {escape(repr(error.__cause__))}[/dim]")


def _handle_generic_error(error: Exception, verbose: bool) -> None:
    """Handle unexpected errors."""
    console.print(
        Panel(
            f"[red]An unexpected error occurred:[/red]\n{escape(str(error))}",
            title="Error",
            border_style="red",
        )
    )

    if verbose:
        console.print("\n[dim]Traceback:[/dim]")
        console.print(traceback.format_exc())
    else:
        console.print("\n[dim]Use --verbose for full traceback[/dim]")
