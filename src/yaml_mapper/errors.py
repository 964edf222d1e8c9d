"""Exception types raised while mapping objects to and from YAML."""

from __future__ import annotations

from typing import Any


def describe_type(target: Any) -> str:
    """Return a readable name for a type or type annotation."""
    if isinstance(target, type):
        return target.__qualname__
    return str(target).replace("typing.", "")


class MappingError(Exception):
    """Base class for every error raised by yaml-mapper.

    A mapping error aborts the whole load or save call; no partially
    built object is returned and no partially serialized file is written.
    """

    def __init__(self, message: str, path: str | None = None, target: Any = None) -> None:
        """Initialize MappingError.

        Args:
        ----
            message: Error message describing what went wrong.
            path: Optional key path (or file path) the error relates to.
            target: Optional type the operation was attempting to produce.

        """
        self.message = message
        self.path = path
        self.target = target

        text = message
        if target is not None:
            text = f"{text} (target type: {describe_type(target)})"
        super().__init__(f"{path}: {text}" if path else text)


class ConfigurationError(MappingError):
    """The declared schema of a mapped class is invalid."""


class DocumentUnreadable(MappingError):
    """The YAML source is missing, corrupt, empty or not a mapping."""


class FieldAccessError(MappingError):
    """A value could not be stored into, or read from, a mapped object."""


class CoercionFailure(MappingError):
    """A value present in the document cannot be converted to the field type."""


class EnumMismatch(CoercionFailure):
    """A value does not name any member of the target enumeration."""
