"""Fill absent fields of a loaded object from a defaults object."""

from __future__ import annotations

import dataclasses
from typing import Any, TypeVar

from pydantic import BaseModel

from yaml_mapper.errors import FieldAccessError
from yaml_mapper.schema.descriptors import ObjectSchema
from yaml_mapper.schema.extractor import extract_schema
from yaml_mapper.transform.embedded import read_attribute

T = TypeVar("T")


def missing_defaults(schema: ObjectSchema, defaults: Any, loaded: Any) -> dict[str, Any]:
    """Return the default value of every top-level field absent in ``loaded``."""
    updates: dict[str, Any] = {}
    for field in schema.mapped_fields:
        if read_attribute(loaded, field) is not None:
            continue
        default = read_attribute(defaults, field)
        if default is not None:
            updates[field.name] = default
    return updates


def merge_defaults(defaults: T, loaded: T, schema: ObjectSchema | None = None) -> T:
    """Copy default field values into the fields ``loaded`` lacks.

    Only top-level fields are considered; embedded objects are taken from
    either side as a whole. Neither argument is modified. Merging is
    idempotent, and a no-op when every field of ``loaded`` is set.

    Args:
    ----
        defaults: Object holding the default values.
        loaded: Object read from a document, with absent fields set to None.
        schema: Schema of the objects' class, extracted if not given.

    Returns:
    -------
        ``loaded`` itself if nothing was missing, otherwise a copy of it
        with the defaults filled in.

    """
    if type(defaults) is not type(loaded):
        raise FieldAccessError(
            f"Cannot merge defaults of type {type(defaults).__qualname__} "
            f"into {type(loaded).__qualname__}",
            target=type(loaded),
        )
    if schema is None:
        schema = extract_schema(type(loaded))

    updates = missing_defaults(schema, defaults, loaded)
    if not updates:
        return loaded
    if isinstance(loaded, BaseModel):
        return loaded.model_copy(update=updates)
    return dataclasses.replace(loaded, **updates)  # type: ignore[type-var]
