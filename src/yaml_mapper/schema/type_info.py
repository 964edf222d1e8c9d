"""Helpers for inspecting type annotations."""

from __future__ import annotations

import dataclasses
import types
from collections.abc import Mapping, MutableMapping, MutableSequence, MutableSet, Sequence
from collections.abc import Set as AbstractSet
from enum import Enum
from typing import Annotated, Any, Union, get_args, get_origin

from pydantic import BaseModel

NONE_TYPE = type(None)

SEQUENCE_CONTAINERS: tuple[Any, ...] = (
    list,
    tuple,
    set,
    frozenset,
    Sequence,
    MutableSequence,
    AbstractSet,
    MutableSet,
)
MAPPING_CONTAINERS: tuple[Any, ...] = (dict, Mapping, MutableMapping)


def split_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    """Split ``Annotated[T, *meta]`` into ``(T, meta)``."""
    if get_origin(annotation) is Annotated:
        base, *metadata = get_args(annotation)
        return base, tuple(metadata)
    return annotation, ()


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Strip ``None`` from a union.

    Returns
    -------
        Tuple of the remaining annotation and whether None was admitted.

    """
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = get_args(annotation)
        remaining = tuple(a for a in args if a is not NONE_TYPE)
        optional = len(remaining) != len(args)
        if len(remaining) == 1:
            return remaining[0], optional
        return Union[remaining], optional  # noqa: UP007
    return annotation, annotation is NONE_TYPE


def container_of(annotation: Any) -> Any:
    """Return the unparametrized container class of an annotation."""
    origin = get_origin(annotation)
    return origin if origin is not None else annotation


def is_sequence_type(annotation: Any) -> bool:
    """Check if an annotation declares a list, tuple or set."""
    container = container_of(annotation)
    return container in SEQUENCE_CONTAINERS


def is_mapping_type(annotation: Any) -> bool:
    """Check if an annotation declares a dict or mapping."""
    container = container_of(annotation)
    return container in MAPPING_CONTAINERS


def is_enum_type(annotation: Any) -> bool:
    """Check if an annotation is an Enum subclass."""
    if get_origin(annotation) is not None or not isinstance(annotation, type):
        return False
    return issubclass(annotation, Enum)


def is_mapped_class(annotation: Any) -> bool:
    """Check if an annotation is a dataclass or pydantic model class."""
    if get_origin(annotation) is not None or not isinstance(annotation, type):
        return False
    return dataclasses.is_dataclass(annotation) or issubclass(annotation, BaseModel)


def sequence_element(annotation: Any) -> Any:
    """Return the element type of ``list[T]``, ``tuple[T, ...]`` etc., or Any."""
    args = get_args(annotation)
    if not args:
        return Any
    return args[0]


def mapping_types(annotation: Any) -> tuple[Any, Any]:
    """Return the key and value types of ``dict[K, V]``, or ``(Any, Any)``."""
    args = get_args(annotation)
    if len(args) != 2:
        return Any, Any
    return args[0], args[1]
