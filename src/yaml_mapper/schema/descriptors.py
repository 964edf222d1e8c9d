"""Schema descriptors derived from a mapped class.

A schema is extracted once per class and shared read-only across every
load and save of that class.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from yaml_mapper.markers import NamingConvention, YamlFileSettings


class FieldKind(Enum):
    """How a field's value is laid out in the document."""

    SCALAR = "scalar"
    ENUM = "enum"
    ARRAY = "array"
    MAP = "map"
    EMBEDDED = "embedded"
    EMBEDDED_LIST = "embedded_list"
    EMBEDDED_MAP = "embedded_map"
    # Declared as an embedded collection but typed as neither sequence nor mapping
    EMBEDDED_COLLECTION = "embedded_collection"
    ROOTED_MAP = "rooted_map"

    @property
    def is_embedded(self) -> bool:
        """Check if values of this kind are schema-described objects."""
        return self in (
            FieldKind.EMBEDDED,
            FieldKind.EMBEDDED_LIST,
            FieldKind.EMBEDDED_MAP,
            FieldKind.EMBEDDED_COLLECTION,
        )


@dataclass(frozen=True)
class FieldDescriptor:
    """A single mapped field.

    Attributes
    ----------
        name: Attribute name on the mapped class.
        annotation: Declared type with ``Optional`` and ``Annotated`` stripped.
        kind: Layout of the value in the document.
        key_path: Explicit key path override, or None to derive it from the name.
        ignored: If True, the field is skipped on read and write.
        comment: Block comment emitted above the key.
        element_type: Embedded class (single) or element class (collections).
        container: Declared container type for embedded collections.
        optional: True if the declared type admits None.

    """

    name: str
    annotation: Any
    kind: FieldKind
    key_path: str | None = None
    ignored: bool = False
    comment: str | None = None
    element_type: type | None = None
    container: Any = None
    optional: bool = False


@dataclass(frozen=True)
class ObjectSchema:
    """Ordered field descriptors plus the file-level settings of a class."""

    object_type: type
    fields: tuple[FieldDescriptor, ...]
    settings: YamlFileSettings

    @property
    def mapped_fields(self) -> tuple[FieldDescriptor, ...]:
        """Fields that take part in reading and writing."""
        return tuple(f for f in self.fields if not f.ignored)

    @property
    def rooted_map_field(self) -> FieldDescriptor | None:
        """The field holding the document root, if this is a rooted map."""
        for f in self.mapped_fields:
            if f.kind is FieldKind.ROOTED_MAP:
                return f
        return None

    @property
    def naming(self) -> NamingConvention | None:
        """Naming convention declared by the class, None to inherit."""
        return self.settings.naming

    def field(self, name: str) -> FieldDescriptor:
        """Get a field descriptor by attribute name."""
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)
