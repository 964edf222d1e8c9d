"""Coerce loosely typed YAML values into declared field types.

Rules are tried in a fixed order and the first match wins:

1. The value already satisfies the declared type: returned unchanged.
2. Enum: matched on member name, then case-insensitively, then on value.
3. List, tuple or set: converted element by element, retrying numeric
   elements once through ``float``.
4. Mapping: keys and values coerced recursively.
5. bool, int, float, str or Path: parsed from the value's string form.

Anything else is a CoercionFailure naming the target type. Checking
assignability first keeps correctly typed nested structures away from the
primitive parsers.
"""

from __future__ import annotations

import types
from collections.abc import Callable, Mapping, Sequence
from collections.abc import Set as AbstractSet
from enum import Enum
from pathlib import Path, PurePath
from typing import Any, Literal, Union, get_args, get_origin

from yaml_mapper.errors import CoercionFailure, EnumMismatch
from yaml_mapper.schema.type_info import (
    container_of,
    is_enum_type,
    is_mapping_type,
    is_sequence_type,
    mapping_types,
    split_annotated,
    unwrap_optional,
)

TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
FALSE_STRINGS = frozenset({"false", "no", "off", "0"})


def _normalize(target: Any) -> Any:
    target, _ = split_annotated(target)
    target, _ = unwrap_optional(target)
    target, _ = split_annotated(target)
    return target


def _is_union(target: Any) -> bool:
    origin = get_origin(target)
    return origin is Union or origin is types.UnionType


def _is_variadic_tuple(args: tuple[Any, ...]) -> bool:
    return len(args) == 2 and args[1] is Ellipsis


def _is_literal(target: Any) -> bool:
    return get_origin(target) is Literal


def _same_literal(option: Any, value: Any) -> bool:
    return type(option) is type(value) and option == value


def is_assignable(target: Any, value: Any) -> bool:
    """Check if ``value`` already satisfies ``target`` without conversion.

    Parametrized containers are checked element by element. ``bool`` is
    never accepted where a number is declared.
    """
    target = _normalize(target)
    if target is Any or target is object:
        return True
    if value is None:
        return False
    if _is_union(target):
        return any(is_assignable(arm, value) for arm in get_args(target))
    if _is_literal(target):
        return any(_same_literal(option, value) for option in get_args(target))
    if target is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if target is float:
        return isinstance(value, float)

    if is_sequence_type(target):
        container = container_of(target)
        if isinstance(value, (str, bytes)) or not isinstance(value, container):
            return False
        args = get_args(target)
        if not args:
            return True
        if container is tuple and not _is_variadic_tuple(args):
            return len(args) == len(value) and all(
                is_assignable(t, v) for t, v in zip(args, value, strict=True)
            )
        return all(is_assignable(args[0], v) for v in value)

    if is_mapping_type(target):
        if not isinstance(value, container_of(target)):
            return False
        key_type, value_type = mapping_types(target)
        return all(
            is_assignable(key_type, k) and is_assignable(value_type, v) for k, v in value.items()
        )

    if isinstance(target, type):
        return isinstance(value, target)
    return False


def match_enum(enum_type: type[Enum], value: Any, path: str = "") -> Enum:
    """Find the member of ``enum_type`` named by ``value``.

    Matching tries the exact member name, then the name case-insensitively,
    then the string form of each member's value.

    Raises
    ------
        EnumMismatch: If no member matches.

    """
    if isinstance(value, enum_type):
        return value
    text = value.name if isinstance(value, Enum) else str(value).strip()

    member = enum_type.__members__.get(text)
    if member is not None:
        return member

    folded = text.casefold()
    for name, candidate in enum_type.__members__.items():
        if name.casefold() == folded:
            return candidate
    for candidate in enum_type:
        if str(candidate.value).casefold() == folded:
            return candidate

    raise EnumMismatch(
        f"{text!r} does not name a member (expected one of {', '.join(enum_type.__members__)})",
        path=path,
        target=enum_type,
    )


def parse_bool(value: Any) -> bool:
    """Parse a boolean from its string form."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise ValueError(f"Invalid boolean: {value!r}")


def parse_int(value: Any) -> int:
    """Parse an integer from its string form.

    Accepts decimal strings, ``0x``, ``0o`` and ``0b`` prefixed strings, and
    floats without a fractional part.
    """
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not an integer: {value!r}")
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"Not an integral number: {value!r}")
    text = str(value).strip()
    # Base 0 reads prefixed literals but rejects leading zeros such as "010"
    for base in (10, 0):
        try:
            return int(text, base)
        except ValueError:
            continue
    number = float(text)
    if number.is_integer():
        return int(number)
    raise ValueError(f"Not an integral number: {value!r}")


def parse_float(value: Any) -> float:
    """Parse a float from its string form."""
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not a number: {value!r}")
    return float(str(value).strip())


def parse_str(value: Any) -> str:
    """Convert a scalar to its string form."""
    if isinstance(value, (Mapping, Sequence, AbstractSet)) and not isinstance(value, str):
        raise ValueError(f"Not a scalar: {type(value).__name__}")
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return value.name
    return str(value)


def parse_path(value: Any) -> Path:
    """Convert a scalar to a filesystem path."""
    return Path(parse_str(value))


PRIMITIVE_PARSERS: dict[type, Callable[[Any], Any]] = {
    bool: parse_bool,
    int: parse_int,
    float: parse_float,
    str: parse_str,
    Path: parse_path,
}


def coerce(target: Any, value: Any, path: str = "") -> Any:
    """Convert ``value`` to the declared type ``target``.

    Args:
    ----
        target: Declared field type (``Optional`` and ``Annotated`` allowed).
        value: Value as decoded from YAML.
        path: Key path of the value, used in error messages.

    Returns:
    -------
        The converted value, or None if ``value`` is None (absent).

    Raises:
    ------
        EnumMismatch: If an enum value does not name a member.
        CoercionFailure: If the value cannot be converted.

    """
    if value is None:
        return None
    target = _normalize(target)

    if is_assignable(target, value):
        return value
    if _is_union(target):
        return _coerce_union(target, value, path)
    if _is_literal(target):
        return _coerce_literal(target, value, path)
    if is_enum_type(target):
        return match_enum(target, value, path)
    if is_sequence_type(target):
        return _coerce_array(target, value, path)
    if is_mapping_type(target):
        return _coerce_mapping(target, value, path)

    parser = PRIMITIVE_PARSERS.get(target) if isinstance(target, type) else None
    if parser is not None:
        try:
            return parser(value)
        except ValueError as e:
            raise CoercionFailure(f"Cannot convert {value!r}: {e}", path=path, target=target) from e

    raise CoercionFailure(
        f"No conversion from {type(value).__name__} value {value!r}", path=path, target=target
    )


def _coerce_union(target: Any, value: Any, path: str) -> Any:
    for arm in get_args(target):
        try:
            return coerce(arm, value, path)
        except CoercionFailure:
            continue
    raise CoercionFailure(f"Cannot convert {value!r} to any union member", path=path, target=target)


def _coerce_literal(target: Any, value: Any, path: str) -> Any:
    options = get_args(target)
    for option in options:
        try:
            converted = coerce(type(option), value, path)
        except CoercionFailure:
            continue
        if _same_literal(option, converted):
            return option
    raise CoercionFailure(
        f"{value!r} is not one of {', '.join(repr(o) for o in options)}",
        path=path,
        target=target,
    )


def _element_path(path: str, index: int) -> str:
    return f"{path}[{index}]"


def coerce_element(element_type: Any, value: Any, path: str = "") -> Any:
    """Convert one array element.

    The element is assigned directly when it already has the right type.
    Otherwise numeric element types are retried once by parsing the
    element's string form as a float.
    """
    element_type = _normalize(element_type)
    if value is None or is_assignable(element_type, value):
        return value
    if element_type in (int, float) and not isinstance(value, bool):
        try:
            number = float(str(value).strip())
        except ValueError as e:
            raise CoercionFailure(
                f"Cannot convert element {value!r}", path=path, target=element_type
            ) from e
        if element_type is float:
            return number
        if number.is_integer():
            return int(number)
        raise CoercionFailure(
            f"Element {value!r} is not an integral number", path=path, target=element_type
        )
    return coerce(element_type, value, path)


def _coerce_array(target: Any, value: Any, path: str) -> Any:
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, (Sequence, AbstractSet)):
        raise CoercionFailure(
            f"Expected a sequence, got {type(value).__name__}", path=path, target=target
        )

    items = list(value)
    args = get_args(target)
    container = container_of(target)
    if container is tuple and args and not _is_variadic_tuple(args):
        if len(args) != len(items):
            raise CoercionFailure(
                f"Expected {len(args)} elements, got {len(items)}", path=path, target=target
            )
        element_types: Sequence[Any] = args
    else:
        element_types = [args[0] if args else Any] * len(items)

    converted = [
        coerce_element(t, item, _element_path(path, i))
        for i, (t, item) in enumerate(zip(element_types, items, strict=True))
    ]
    return build_sequence(container, converted)


def build_sequence(container: Any, items: list[Any]) -> Any:
    """Wrap converted items in the declared sequence container."""
    if container is tuple:
        return tuple(items)
    if container is frozenset:
        return frozenset(items)
    if container in (set, AbstractSet) or (
        isinstance(container, type) and issubclass(container, AbstractSet)
    ):
        return set(items)
    return items


def _coerce_mapping(target: Any, value: Any, path: str) -> dict[Any, Any]:
    if not isinstance(value, Mapping):
        raise CoercionFailure(
            f"Expected a mapping, got {type(value).__name__}", path=path, target=target
        )
    key_type, value_type = mapping_types(target)
    result: dict[Any, Any] = {}
    for key, item in value.items():
        item_path = f"{path}.{key}" if path else str(key)
        result[coerce(key_type, key, item_path)] = coerce(value_type, item, item_path)
    return result


def to_document_value(value: Any) -> Any:
    """Convert a field value into plain YAML data.

    Enum members become their names, tuples and sets become lists, paths
    become strings. Mappings and sequences are converted recursively.
    """
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, Mapping):
        return {to_document_value(k): to_document_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_document_value(v) for v in value]
    if isinstance(value, AbstractSet):
        items = [to_document_value(v) for v in value]
        try:
            return sorted(items)
        except TypeError:
            return items
    return value
