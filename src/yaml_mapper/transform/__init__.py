"""Transformations between documents and mapped objects.

Modules:
    paths: Key path resolution and naming conventions
    flatten: Nested tree <-> flat key-path map, key path lookup in trees
    coercion: Conversion of YAML values to declared field types
    embedded: Recursive reading and writing of (embedded) objects
    defaults: Filling absent fields from a defaults object
"""

from yaml_mapper.transform.coercion import coerce, is_assignable, match_enum, to_document_value
from yaml_mapper.transform.defaults import merge_defaults
from yaml_mapper.transform.embedded import ObjectMapper
from yaml_mapper.transform.flatten import (
    MISSING,
    find,
    flatten,
    lookup,
    subtree,
    unflatten,
)
from yaml_mapper.transform.paths import convert_name, join_path, resolve_path

__all__ = [
    "MISSING",
    "ObjectMapper",
    "coerce",
    "convert_name",
    "find",
    "flatten",
    "is_assignable",
    "join_path",
    "lookup",
    "match_enum",
    "merge_defaults",
    "resolve_path",
    "subtree",
    "to_document_value",
    "unflatten",
]
