"""CLI module for yaml-mapper."""

from yaml_mapper.cli.exception_handler import error_title, handle_exceptions
from yaml_mapper.cli.targets import import_target

__all__ = [
    "error_title",
    "handle_exceptions",
    "import_target",
]
