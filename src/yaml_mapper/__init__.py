"""yaml-mapper: Map typed Python objects to and from commented YAML documents.

This package provides tools for:
- Declaring how dataclasses and pydantic models are laid out in YAML
- Loading documents into typed objects, with defaults for absent keys
- Saving objects back to YAML with comments, a header and a version number

Quick Start:
    >>> from dataclasses import dataclass
    >>> from typing import Annotated
    >>> from yaml_mapper import Comment, KeyPath, YamlMapper, yaml_file
    >>>
    >>> @yaml_file(header="Server settings", version_field="version")
    ... @dataclass
    ... class ServerConfig:
    ...     host: str = "localhost"
    ...     port: Annotated[int, KeyPath("network.port"), Comment("Listen port")] = 8080
    >>>
    >>> mapper = YamlMapper()
    >>> config = mapper.load(ServerConfig, "network:\\n  port: '9090'\\n").value
    >>> config.port
    9090

Modules:
    markers: Class decorators and field markers
    schema: Schema extraction from mapped classes
    transform: Path resolution, flattening, coercion, embedded objects, defaults
    document: YAML parsing and comment-aware emission
    mapper: Load/save orchestration
    cli: Command-line interface
"""

import logging

from yaml_mapper.errors import (
    CoercionFailure,
    ConfigurationError,
    DocumentUnreadable,
    EnumMismatch,
    FieldAccessError,
    MappingError,
)
from yaml_mapper.mapper import ReadResult, YamlMapper, dump, load, load_or_create, save
from yaml_mapper.markers import (
    Comment,
    Embedded,
    EmbeddedCollection,
    Ignored,
    KeyPath,
    NamingConvention,
    RootedMap,
    YamlFileSettings,
    embedded_yaml,
    yaml_file,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CoercionFailure",
    "Comment",
    "ConfigurationError",
    "DocumentUnreadable",
    "Embedded",
    "EmbeddedCollection",
    "EnumMismatch",
    "FieldAccessError",
    "Ignored",
    "KeyPath",
    "MappingError",
    "NamingConvention",
    "ReadResult",
    "RootedMap",
    "YamlFileSettings",
    "YamlMapper",
    "__version__",
    "dump",
    "embedded_yaml",
    "load",
    "load_or_create",
    "save",
    "yaml_file",
]
