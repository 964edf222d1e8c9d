"""Resolve ``package.module:ClassName`` references to mapped classes."""

from __future__ import annotations

import importlib

from yaml_mapper.errors import ConfigurationError
from yaml_mapper.schema.type_info import is_mapped_class


def import_target(reference: str) -> type:
    """Import the class named by ``reference``.

    Args:
    ----
        reference: ``module:Class`` or ``module:Outer.Inner``.

    Returns:
    -------
        The referenced dataclass or pydantic model class.

    Raises:
    ------
        ConfigurationError: If the reference is malformed, cannot be
            imported, or does not name a mapped class.

    """
    module_name, sep, qualname = reference.partition(":")
    if not sep or not module_name or not qualname:
        raise ConfigurationError(
            f"Invalid target {reference!r}, expected 'package.module:ClassName'"
        )

    try:
        target: object = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import module {module_name!r}: {e}") from e

    for name in qualname.split("."):
        try:
            target = getattr(target, name)
        except AttributeError as e:
            raise ConfigurationError(f"{module_name!r} has no attribute {qualname!r}") from e

    if not isinstance(target, type) or not is_mapped_class(target):
        raise ConfigurationError(f"{reference!r} is not a dataclass or pydantic model")
    return target
