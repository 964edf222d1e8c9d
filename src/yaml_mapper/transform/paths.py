"""Key path resolution for mapped fields."""

from __future__ import annotations

import logging
import re
from collections.abc import Collection, Iterable

from yaml_mapper.errors import ConfigurationError
from yaml_mapper.markers import NamingConvention
from yaml_mapper.schema.descriptors import FieldDescriptor

logger = logging.getLogger(__name__)

SEPARATOR = "."

_CAMEL_BOUNDARY = re.compile(r"(.)([A-Z][a-z]+)")
_LOWER_UPPER_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def to_snake_case(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case.

    Examples
    --------
        >>> to_snake_case("snakeCaseConversionTest1")
        'snake_case_conversion_test1'
        >>> to_snake_case("already_snake")
        'already_snake'

    """
    s1 = _CAMEL_BOUNDARY.sub(r"\1_\2", name)
    return _LOWER_UPPER_BOUNDARY.sub(r"\1_\2", s1).lower()


def convert_name(name: str, convention: NamingConvention | None) -> str:
    """Apply a naming convention to a field name."""
    if convention is None or convention is NamingConvention.NONE:
        return name
    snake = to_snake_case(name)
    if convention is NamingConvention.KEBAB_CASE:
        return snake.replace("_", "-")
    return snake


def resolve_path(
    field: FieldDescriptor,
    convention: NamingConvention | None,
    sibling_keys: Collection[str] | None = None,
) -> str:
    """Compute the key path of a field relative to its object.

    An explicit KeyPath override is used verbatim. Otherwise the field name
    is used, converted by the naming convention only when the plain name is
    not already a key of the document being read. ``sibling_keys`` is None
    on the write path, where the convention always applies.

    Args:
    ----
        field: The field to resolve.
        convention: Naming convention of the enclosing object.
        sibling_keys: Top-level keys of the document being read, or None.

    Returns:
    -------
        Dot-separated key path.

    Raises:
    ------
        ConfigurationError: If the override is empty on a non-rooted field.

    """
    if field.key_path is not None:
        if not field.key_path.strip():
            raise ConfigurationError("Key path override must not be empty", path=field.name)
        return field.key_path

    if sibling_keys is not None and field.name in sibling_keys:
        return field.name

    converted = convert_name(field.name, convention)
    if converted != field.name and sibling_keys is not None:
        logger.debug("Key %r not in document, trying %r", field.name, converted)
    return converted


def join_path(prefix: str, path: str) -> str:
    """Join a parent prefix and a relative path."""
    if not prefix:
        return path
    if not path:
        return prefix
    return f"{prefix}{SEPARATOR}{path}"


def split_path(path: str) -> list[str]:
    """Split a key path into its segments."""
    return path.split(SEPARATOR)


def top_level_keys(paths: Iterable[str]) -> set[str]:
    """Return the first segment of every flat key path."""
    return {path.split(SEPARATOR, 1)[0] for path in paths}
