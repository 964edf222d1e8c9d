"""Recursive field mapping for objects and their embedded objects.

Every object, whether it is a document root, a single embedded value, or
an element of an embedded list or map, is read from the nested mapping
below its own key path, and written to a nested map with the same relative
layout.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from yaml_mapper.errors import (
    CoercionFailure,
    ConfigurationError,
    EnumMismatch,
    FieldAccessError,
)
from yaml_mapper.markers import NamingConvention
from yaml_mapper.schema.descriptors import FieldDescriptor, FieldKind, ObjectSchema
from yaml_mapper.schema.extractor import SchemaCache
from yaml_mapper.schema.type_info import is_mapped_class, mapping_types
from yaml_mapper.transform.coercion import build_sequence, coerce, to_document_value
from yaml_mapper.transform.flatten import MISSING, find, unflatten
from yaml_mapper.transform.paths import join_path, resolve_path, top_level_keys

logger = logging.getLogger(__name__)


def construct(cls: type, values: dict[str, Any], path: str = "") -> Any:
    """Create an instance of ``cls`` from a complete field-value map.

    pydantic models are built with ``model_construct`` since every value
    has already been coerced, and absent values are None.

    Raises
    ------
        FieldAccessError: If the constructor rejects the values.

    """
    try:
        if issubclass(cls, BaseModel):
            return cls.model_construct(**values)
        return cls(**values)
    except (TypeError, ValueError) as e:
        raise FieldAccessError(
            f"Unable to construct {cls.__qualname__}: {e}", path=path or None, target=cls
        ) from e


def read_attribute(obj: Any, field: FieldDescriptor) -> Any:
    """Read a field value from an object."""
    try:
        return getattr(obj, field.name)
    except AttributeError as e:
        raise FieldAccessError(
            f"Unable to read field {field.name} of {type(obj).__qualname__}",
            path=field.name,
            target=field.annotation,
        ) from e


def _element_type(field: FieldDescriptor, path: str) -> type:
    if field.element_type is None:
        raise ConfigurationError(
            f"Embedded field {field.name} has no embedded class", path=path, target=field.annotation
        )
    return field.element_type


def _invalid_collection(field: FieldDescriptor, path: str) -> ConfigurationError:
    return ConfigurationError(
        f"Embedded collection field {field.name} must be declared as a sequence or a mapping",
        path=path,
        target=field.container,
    )


class ObjectMapper:
    """Reads and writes the fields of mapped objects.

    Usage:
        mapper = ObjectMapper()
        server = mapper.read_object(Server, {"host": "a", "port": 80})
        tree = mapper.write_object(server)
    """

    def __init__(self, schemas: SchemaCache | None = None) -> None:
        """Initialize the mapper.

        Args:
        ----
            schemas: Schema cache shared with the caller, or None for a new one.

        """
        self.schemas = schemas if schemas is not None else SchemaCache()

    @staticmethod
    def naming_for(schema: ObjectSchema, inherited: NamingConvention | None) -> NamingConvention:
        """Resolve the naming convention in effect for an object."""
        return schema.naming or inherited or NamingConvention.NONE

    # -- read -------------------------------------------------------------

    def read_object(
        self,
        cls: type,
        tree: Mapping[Any, Any],
        naming: NamingConvention | None = None,
        prefix: str = "",
    ) -> Any:
        """Build an instance of ``cls`` from its part of the document.

        Args:
        ----
            cls: Mapped class to instantiate.
            tree: Nested mapping with keys relative to the object.
            naming: Naming convention inherited from the parent.
            prefix: Absolute path of the object, for error messages.

        Returns:
        -------
            New instance; fields absent from ``tree`` are None.

        """
        schema = self.schemas.get(cls)
        values = self.read_fields(schema, tree, naming, prefix)
        return construct(cls, values, prefix)

    def read_fields(
        self,
        schema: ObjectSchema,
        tree: Mapping[Any, Any],
        naming: NamingConvention | None = None,
        prefix: str = "",
    ) -> dict[str, Any]:
        """Resolve the value of every mapped field of one object.

        Each field's value is taken from the tree at the field's key path
        and is not flattened any further.
        """
        naming = self.naming_for(schema, naming)
        rooted = schema.rooted_map_field
        if rooted is not None:
            return {rooted.name: self.read_rooted(rooted, tree, prefix)}

        siblings = top_level_keys(str(key) for key in tree)
        values: dict[str, Any] = {}
        for field in schema.mapped_fields:
            path = resolve_path(field, naming, siblings)
            values[field.name] = self.read_field(field, find(tree, path), naming, path, prefix)
        return values

    def read_rooted(self, field: FieldDescriptor, tree: Mapping[Any, Any], prefix: str = "") -> Any:
        """Coerce a whole mapping into a rooted map field."""
        return coerce(field.annotation, dict(tree), prefix)

    def read_field(
        self,
        field: FieldDescriptor,
        raw: Any,
        naming: NamingConvention,
        path: str,
        prefix: str = "",
    ) -> Any:
        """Convert the document value found at a field's key path.

        ``raw`` is ``MISSING`` or None when the document has no value, which
        leaves the field unset. An enum value naming no member also leaves
        the field unset and logs a warning. Every other failure raises.
        """
        if raw is MISSING or raw is None:
            return None
        full_path = join_path(prefix, path)
        kind = field.kind

        if kind is FieldKind.EMBEDDED:
            return self._read_embedded(field, raw, naming, full_path)
        if kind is FieldKind.EMBEDDED_LIST:
            return self._read_embedded_list(field, raw, naming, full_path)
        if kind is FieldKind.EMBEDDED_MAP:
            return self._read_embedded_map(field, raw, naming, full_path)
        if kind is FieldKind.EMBEDDED_COLLECTION:
            raise _invalid_collection(field, full_path)

        try:
            return coerce(field.annotation, raw, full_path)
        except EnumMismatch as e:
            if kind is not FieldKind.ENUM:
                raise
            logger.warning("Leaving %s unset: %s", full_path, e.message)
            return None

    def _read_embedded(
        self,
        field: FieldDescriptor,
        raw: Any,
        naming: NamingConvention,
        full_path: str,
    ) -> Any:
        element_type = _element_type(field, full_path)
        if not isinstance(raw, Mapping):
            raise CoercionFailure(
                f"Expected a mapping, got {type(raw).__name__}",
                path=full_path,
                target=element_type,
            )
        return self.read_object(element_type, raw, naming, full_path)

    def _read_embedded_list(
        self,
        field: FieldDescriptor,
        raw: Any,
        naming: NamingConvention,
        full_path: str,
    ) -> Any:
        element_type = _element_type(field, full_path)
        if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Sequence):
            raise CoercionFailure(
                f"Expected a sequence of mappings, got {type(raw).__name__}",
                path=full_path,
                target=field.annotation,
            )

        items: list[Any] = []
        for index, element in enumerate(raw):
            element_path = f"{full_path}[{index}]"
            if element is None:
                items.append(None)
                continue
            if not isinstance(element, Mapping):
                raise CoercionFailure(
                    f"Expected a mapping, got {type(element).__name__}",
                    path=element_path,
                    target=element_type,
                )
            items.append(self.read_object(element_type, element, naming, element_path))
        return build_sequence(field.container, items)

    def _read_embedded_map(
        self,
        field: FieldDescriptor,
        raw: Any,
        naming: NamingConvention,
        full_path: str,
    ) -> Any:
        element_type = _element_type(field, full_path)
        if not isinstance(raw, Mapping):
            raise CoercionFailure(
                f"Expected a mapping of objects, got {type(raw).__name__}",
                path=full_path,
                target=field.annotation,
            )

        key_type, _ = mapping_types(field.annotation)
        result: dict[Any, Any] = {}
        for entry, item in raw.items():
            entry_path = join_path(full_path, str(entry))
            key = coerce(key_type, entry, entry_path)
            if item is None:
                result[key] = None
            elif isinstance(item, Mapping):
                result[key] = self.read_object(element_type, item, naming, entry_path)
            else:
                raise CoercionFailure(
                    f"Expected a mapping, got {type(item).__name__}",
                    path=entry_path,
                    target=element_type,
                )
        return result

    # -- write ------------------------------------------------------------

    def write_object(self, obj: Any, naming: NamingConvention | None = None) -> dict[str, Any]:
        """Serialize an object into a nested map of plain YAML data."""
        schema = self.schema_of(obj)
        rooted = schema.rooted_map_field
        if rooted is not None:
            return self.write_rooted(rooted, obj)
        return unflatten(self.write_fields(schema, obj, naming))

    def write_rooted(self, field: FieldDescriptor, obj: Any) -> dict[str, Any]:
        """Serialize a rooted map field as a whole document root."""
        value = read_attribute(obj, field)
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise FieldAccessError(
                f"Rooted map value is a {type(value).__name__}",
                path=field.name,
                target=field.annotation,
            )
        return {str(k): v for k, v in to_document_value(value).items()}

    def write_fields(
        self,
        schema: ObjectSchema,
        obj: Any,
        naming: NamingConvention | None = None,
    ) -> dict[str, Any]:
        """Map every mapped field of ``obj`` to its relative key path.

        Returns
        -------
            Flat map of key path to YAML-ready value, in field order.

        Raises
        ------
            ConfigurationError: If two fields resolve to the same key path.

        """
        naming = self.naming_for(schema, naming)
        flat: dict[str, Any] = {}
        for field in schema.mapped_fields:
            path = resolve_path(field, naming)
            if path in flat:
                raise ConfigurationError(
                    f"Field {field.name} resolves to a key path already in use",
                    path=path,
                    target=schema.object_type,
                )
            flat[path] = self.write_value(field, read_attribute(obj, field), naming, path)
        return flat

    def write_value(
        self,
        field: FieldDescriptor,
        value: Any,
        naming: NamingConvention,
        path: str = "",
    ) -> Any:
        """Convert one field value into YAML data."""
        if value is None:
            return None
        kind = field.kind

        if kind is FieldKind.EMBEDDED:
            return self.write_object(value, naming)
        if kind is FieldKind.EMBEDDED_LIST:
            if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
                raise FieldAccessError(
                    f"Expected a sequence, got {type(value).__name__}",
                    path=path,
                    target=field.annotation,
                )
            return [None if item is None else self.write_object(item, naming) for item in value]
        if kind is FieldKind.EMBEDDED_MAP:
            if not isinstance(value, Mapping):
                raise FieldAccessError(
                    f"Expected a mapping, got {type(value).__name__}",
                    path=path,
                    target=field.annotation,
                )
            return {
                to_document_value(key): None if item is None else self.write_object(item, naming)
                for key, item in value.items()
            }
        if kind is FieldKind.EMBEDDED_COLLECTION:
            raise _invalid_collection(field, path)
        return to_document_value(value)

    def comments(
        self,
        obj: Any,
        naming: NamingConvention | None = None,
        prefix: str = "",
    ) -> dict[str, str]:
        """Collect the comment of every field, keyed by absolute key path.

        Comments of embedded objects are included below single embedded
        fields and embedded map entries. Elements of embedded lists have no
        key path and carry no comments.
        """
        schema = self.schema_of(obj)
        if schema.rooted_map_field is not None:
            return {}
        naming = self.naming_for(schema, naming)

        result: dict[str, str] = {}
        for field in schema.mapped_fields:
            path = join_path(prefix, resolve_path(field, naming))
            if field.comment:
                result[path] = field.comment
            value = read_attribute(obj, field)
            if value is None:
                continue
            if field.kind is FieldKind.EMBEDDED:
                result.update(self.comments(value, naming, path))
            elif field.kind is FieldKind.EMBEDDED_MAP and isinstance(value, Mapping):
                for key, item in value.items():
                    if item is not None:
                        entry_path = join_path(path, str(to_document_value(key)))
                        result.update(self.comments(item, naming, entry_path))
        return result

    def schema_of(self, obj: Any) -> ObjectSchema:
        if not is_mapped_class(type(obj)):
            raise FieldAccessError(
                f"Expected a mapped object, got {type(obj).__name__}", target=type(obj)
            )
        return self.schemas.get(type(obj))
