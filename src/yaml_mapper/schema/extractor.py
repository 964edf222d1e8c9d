"""Build ObjectSchema descriptors from dataclasses and pydantic models."""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Iterator
from typing import Any, get_type_hints

from pydantic import BaseModel

from yaml_mapper.errors import ConfigurationError
from yaml_mapper.markers import (
    DEFAULT_SETTINGS,
    Comment,
    Embedded,
    EmbeddedCollection,
    Ignored,
    KeyPath,
    RootedMap,
    YamlFileSettings,
    get_settings,
    is_embedded_class,
)
from yaml_mapper.schema.descriptors import FieldDescriptor, FieldKind, ObjectSchema
from yaml_mapper.schema.type_info import (
    container_of,
    is_enum_type,
    is_mapped_class,
    is_mapping_type,
    is_sequence_type,
    mapping_types,
    sequence_element,
    split_annotated,
    unwrap_optional,
)

logger = logging.getLogger(__name__)


def _split(annotation: Any) -> tuple[Any, tuple[Any, ...], bool]:
    """Strip ``Annotated`` and ``Optional`` layers, collecting markers."""
    base, markers = split_annotated(annotation)
    inner, optional = unwrap_optional(base)
    inner, more = split_annotated(inner)
    return inner, markers + more, optional


def _iter_fields(cls: type) -> Iterator[tuple[str, Any, tuple[Any, ...], bool]]:
    """Yield ``(name, annotation, markers, optional)`` in declaration order."""
    if dataclasses.is_dataclass(cls):
        try:
            hints = get_type_hints(cls, include_extras=True)
        except NameError as e:
            raise ConfigurationError(
                f"Unable to resolve field annotations: {e}", target=cls
            ) from e
        for f in dataclasses.fields(cls):
            annotation, markers, optional = _split(hints.get(f.name, f.type))
            if not f.init:
                # Cannot be passed to the constructor, so never mapped
                markers = (*markers, Ignored())
            yield f.name, annotation, markers, optional
        return

    if not issubclass(cls, BaseModel):
        raise ConfigurationError("Mapped class must be a dataclass or a pydantic model", target=cls)
    for name, info in cls.model_fields.items():
        annotation, markers, optional = _split(info.annotation)
        yield name, annotation, tuple(info.metadata) + markers, optional


def _describe_field(
    cls: type,
    name: str,
    annotation: Any,
    markers: tuple[Any, ...],
    optional: bool,
    settings: YamlFileSettings,
) -> FieldDescriptor:
    key_path: str | None = None
    comment: str | None = None
    ignored = False
    embedded = False
    rooted = settings.rooted_map
    collection: EmbeddedCollection | None = None

    for marker in markers:
        if isinstance(marker, KeyPath):
            key_path = marker.path
        elif isinstance(marker, Comment):
            comment = marker.text if comment is None else f"{comment}\n{marker.text}"
        elif isinstance(marker, Ignored):
            ignored = True
        elif isinstance(marker, Embedded):
            embedded = True
        elif isinstance(marker, EmbeddedCollection):
            collection = marker
        elif isinstance(marker, RootedMap):
            rooted = True

    common = {
        "name": name,
        "annotation": annotation,
        "key_path": key_path,
        "ignored": ignored,
        "comment": comment,
        "optional": optional,
    }
    if ignored:
        return FieldDescriptor(kind=FieldKind.SCALAR, **common)

    if key_path is not None and not key_path.strip() and not rooted:
        raise ConfigurationError("Key path override must not be empty", path=name, target=cls)

    if rooted:
        if not is_mapping_type(annotation):
            raise ConfigurationError(
                "Rooted map field must be declared as a mapping", path=name, target=annotation
            )
        return FieldDescriptor(kind=FieldKind.ROOTED_MAP, **common)

    if collection is not None:
        if is_sequence_type(annotation):
            kind = FieldKind.EMBEDDED_LIST
        elif is_mapping_type(annotation):
            kind = FieldKind.EMBEDDED_MAP
        else:
            # Rejected when the field is read or written
            kind = FieldKind.EMBEDDED_COLLECTION
        return FieldDescriptor(
            kind=kind,
            element_type=collection.element_type,
            container=container_of(annotation),
            **common,
        )

    if embedded or is_embedded_class(annotation):
        if not is_mapped_class(annotation):
            raise ConfigurationError(
                "Embedded field must be declared as a dataclass or pydantic model",
                path=name,
                target=annotation,
            )
        return FieldDescriptor(kind=FieldKind.EMBEDDED, element_type=annotation, **common)

    if is_sequence_type(annotation) and is_embedded_class(sequence_element(annotation)):
        return FieldDescriptor(
            kind=FieldKind.EMBEDDED_LIST,
            element_type=sequence_element(annotation),
            container=container_of(annotation),
            **common,
        )

    if is_mapping_type(annotation) and is_embedded_class(mapping_types(annotation)[1]):
        return FieldDescriptor(
            kind=FieldKind.EMBEDDED_MAP,
            element_type=mapping_types(annotation)[1],
            container=container_of(annotation),
            **common,
        )

    if is_enum_type(annotation):
        return FieldDescriptor(kind=FieldKind.ENUM, **common)
    if is_sequence_type(annotation):
        return FieldDescriptor(kind=FieldKind.ARRAY, **common)
    if is_mapping_type(annotation):
        return FieldDescriptor(kind=FieldKind.MAP, **common)
    return FieldDescriptor(kind=FieldKind.SCALAR, **common)


def extract_schema(cls: type) -> ObjectSchema:
    """Extract the schema of a mapped class.

    Args:
    ----
        cls: A dataclass or pydantic model class, optionally decorated with
            ``yaml_file`` or ``embedded_yaml``.

    Returns:
    -------
        ObjectSchema with fields in declaration order.

    Raises:
    ------
        ConfigurationError: If the class or one of its fields is declared
            incorrectly.

    """
    if not is_mapped_class(cls):
        raise ConfigurationError("Mapped class must be a dataclass or a pydantic model", target=cls)

    settings = get_settings(cls) or DEFAULT_SETTINGS
    fields = tuple(
        _describe_field(cls, name, annotation, markers, optional, settings)
        for name, annotation, markers, optional in _iter_fields(cls)
    )
    schema = ObjectSchema(object_type=cls, fields=fields, settings=settings)

    rooted = [f for f in schema.mapped_fields if f.kind is FieldKind.ROOTED_MAP]
    if len(rooted) > 1:
        raise ConfigurationError(
            "At most one rooted map field may be declared "
            f"(found {', '.join(f.name for f in rooted)})",
            target=cls,
        )
    if rooted and len(schema.mapped_fields) > 1:
        raise ConfigurationError(
            f"Rooted map field {rooted[0].name} must be the only mapped field", target=cls
        )

    logger.debug(
        "Extracted schema for %s: %s",
        cls.__qualname__,
        ", ".join(f"{f.name}={f.kind.value}" for f in schema.mapped_fields),
    )
    return schema


class SchemaCache:
    """Thread-safe per-type schema cache.

    Schemas are built once on the first miss, under a lock, and read
    without locking afterwards.
    """

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._schemas: dict[type, ObjectSchema] = {}
        self._lock = threading.Lock()

    def get(self, cls: type) -> ObjectSchema:
        """Get the schema of ``cls``, extracting it on first use."""
        schema = self._schemas.get(cls)
        if schema is not None:
            return schema
        with self._lock:
            schema = self._schemas.get(cls)
            if schema is None:
                schema = extract_schema(cls)
                self._schemas[cls] = schema
        return schema

    def clear(self) -> None:
        """Drop every cached schema."""
        with self._lock:
            self._schemas.clear()

    def __contains__(self, cls: object) -> bool:
        return cls in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)
