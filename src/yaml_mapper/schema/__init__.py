"""Schema extraction for mapped classes.

Primary Entry Points:
    extract_schema(cls): Build the ObjectSchema of a class
    SchemaCache: Thread-safe per-type schema cache
"""

from yaml_mapper.schema.descriptors import FieldDescriptor, FieldKind, ObjectSchema
from yaml_mapper.schema.extractor import SchemaCache, extract_schema

__all__ = [
    "FieldDescriptor",
    "FieldKind",
    "ObjectSchema",
    "SchemaCache",
    "extract_schema",
]
