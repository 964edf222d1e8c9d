"""Conversion between nested document trees and flat key-path maps.

A flat map holds one entry per leaf, keyed by the dot-joined path from the
document root. Flattening descends only into non-empty mappings, so
sequences, scalars and empty mappings are leaves.

In a flat map, keys containing a literal ``.`` cannot be told apart from
nesting: they are treated as nested paths.

Reading a document does not flatten it. :func:`find` walks the nested
tree down to a field's key path and returns whatever is stored there, so
the keys of a mapping value below that path are kept as they are.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

from yaml_mapper.errors import ConfigurationError, DocumentUnreadable
from yaml_mapper.transform.paths import SEPARATOR, join_path, split_path


class _Missing:
    """Sentinel type for a path with no value in a flat map."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


def flatten(tree: Mapping[Any, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten a nested mapping into a dot-path keyed map.

    Args:
    ----
        tree: Nested mapping, as loaded from YAML.
        prefix: Path prepended to every key.

    Returns:
    -------
        Flat map in document order.

    Raises:
    ------
        DocumentUnreadable: If two keys flatten to the same path.

    Examples:
    --------
        >>> flatten({"a": {"b": 1, "c": [1, 2]}, "d": {}})
        {'a.b': 1, 'a.c': [1, 2], 'd': {}}

    """
    flat: dict[str, Any] = {}
    _flatten_into(flat, tree, prefix)
    return flat


def _flatten_into(flat: dict[str, Any], tree: Mapping[Any, Any], prefix: str) -> None:
    for key, value in tree.items():
        path = join_path(prefix, str(key))
        if isinstance(value, Mapping) and value:
            _flatten_into(flat, value, path)
            continue
        if path in flat or any(_overlaps(path, k) for k in flat):
            raise DocumentUnreadable("Duplicate key after flattening nested keys", path=path)
        flat[path] = value


def _overlaps(path: str, other: str) -> bool:
    return other.startswith(path + SEPARATOR) or path.startswith(other + SEPARATOR)


def unflatten(flat: Mapping[str, Any]) -> dict[str, Any]:
    """Rebuild a nested mapping from a dot-path keyed map.

    Intermediate mappings are created on demand, in the order their first
    path appears.

    Raises
    ------
        ConfigurationError: If one path is a prefix of another path whose
            value is not a mapping.

    """
    tree: dict[str, Any] = {}
    for path, value in flat.items():
        insert(tree, path, value)
    return tree


def insert(tree: dict[str, Any], path: str, value: Any) -> None:
    """Set ``value`` at ``path`` in a nested mapping, creating parents."""
    *parents, leaf = split_path(path)
    node = tree
    walked = ""
    for segment in parents:
        walked = join_path(walked, segment)
        child = node.get(segment, MISSING)
        if child is MISSING:
            child = {}
            node[segment] = child
        elif not isinstance(child, dict):
            raise ConfigurationError(
                f"Key path overlaps the non-mapping value at {walked!r}", path=path
            )
        node = child
    if leaf in node:
        raise ConfigurationError("Key path is produced twice", path=path)
    node[leaf] = value


def subtree(flat: Mapping[str, Any], prefix: str) -> dict[str, Any]:
    """Return the entries under ``prefix`` with the prefix stripped."""
    start = prefix + SEPARATOR
    return {path[len(start) :]: value for path, value in flat.items() if path.startswith(start)}


def lookup(flat: Mapping[str, Any], path: str) -> Any:
    """Look up the value at ``path``.

    Returns the leaf stored at exactly ``path``, otherwise the nested
    mapping rebuilt from the entries below it, otherwise ``MISSING``.
    """
    if path in flat:
        return flat[path]
    below = subtree(flat, path)
    if below:
        return unflatten(below)
    return MISSING


def find(tree: Mapping[Any, Any], path: str) -> Any:
    """Find the value at ``path`` in a nested mapping.

    A path segment may be stored as nested keys or as part of a literal
    dotted key, so ``{"a": {"b": 1}}`` and ``{"a.b": 1}`` both hold ``1`` at
    ``a.b``. Dotted keys extending below ``path`` are collected into a
    mapping. The value found is returned without flattening it.

    Returns:
    -------
        The stored value, or ``MISSING``.

    Raises:
    ------
        DocumentUnreadable: If the path is stored in more than one form and
            the forms cannot be merged into one mapping.

    """
    return _find(tree, split_path(path), path)


def _find(node: Mapping[Any, Any], segments: list[str], path: str) -> Any:
    matches: list[Any] = []
    for end in range(1, len(segments) + 1):
        key = SEPARATOR.join(segments[:end])
        if key not in node:
            continue
        value = node[key]
        rest = segments[end:]
        if rest:
            if not isinstance(value, Mapping):
                continue
            value = _find(value, rest, path)
            if value is MISSING:
                continue
        matches.append(value)

    start = SEPARATOR.join(segments) + SEPARATOR
    below = {
        key[len(start) :]: value
        for key, value in node.items()
        if isinstance(key, str) and key.startswith(start)
    }
    if below:
        matches.append(below)

    if not matches:
        return MISSING
    if len(matches) == 1:
        return matches[0]
    if not all(isinstance(m, Mapping) for m in matches):
        raise DocumentUnreadable("Key path is stored both as dotted and nested keys", path=path)

    merged: dict[Any, Any] = {}
    for mapping in matches:
        for key, value in mapping.items():
            if key in merged:
                raise DocumentUnreadable(
                    "Duplicate key after merging dotted and nested keys",
                    path=join_path(path, str(key)),
                )
            merged[key] = value
    return merged
