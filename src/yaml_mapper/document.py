"""YAML document loading and dumping.

Documents are parsed with PyYAML's safe loader into plain nested dicts and
lists. They are emitted with ruamel.yaml's round-trip dumper, which can
attach block comments above keys.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import IO, Any

import yaml
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.representer import RoundTripRepresenter

from yaml_mapper.errors import DocumentUnreadable, FieldAccessError
from yaml_mapper.transform.paths import SEPARATOR, split_path

logger = logging.getLogger(__name__)

MAPPING_INDENT = 2
SEQUENCE_INDENT = 4
SEQUENCE_DASH_OFFSET = 2

STR_TAG = "tag:yaml.org,2002:str"

DocumentSource = str | bytes | Path | IO[str] | IO[bytes]

# Resolves plain scalars the way the loader will read them back
_LOADER_RESOLVER = yaml.resolver.Resolver()


def _represent_str(representer: RoundTripRepresenter, data: str) -> Any:
    """Quote strings the loader would otherwise read as another type."""
    if _LOADER_RESOLVER.resolve(yaml.ScalarNode, data, (True, False)) != STR_TAG:
        return representer.represent_scalar(STR_TAG, data, style="'")
    return representer.represent_str(data)


class DocumentRepresenter(RoundTripRepresenter):
    """Round-trip representer emitting strings that load back as strings."""


DocumentRepresenter.add_representer(str, _represent_str)


def _create_dumper() -> YAML:
    dumper = YAML(typ="rt")
    dumper.Representer = DocumentRepresenter
    dumper.default_flow_style = False
    dumper.width = 4096
    dumper.indent(mapping=MAPPING_INDENT, sequence=SEQUENCE_INDENT, offset=SEQUENCE_DASH_OFFSET)
    return dumper


def read_file(path: Path) -> str:
    """Read a document file as UTF-8 text.

    Raises
    ------
        DocumentUnreadable: If the file is missing or cannot be read.

    """
    if not path.exists():
        raise DocumentUnreadable(f"File not found: {path}", path=str(path))
    if not path.is_file():
        raise DocumentUnreadable(f"Not a file: {path}", path=str(path))
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentUnreadable(f"File read error: {e}", path=str(path)) from e


def write_file(path: Path, text: str) -> None:
    """Write document text, creating parent directories as needed.

    Raises
    ------
        FieldAccessError: If the file cannot be written.

    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise FieldAccessError(f"File write error: {e}", path=str(path)) from e
    logger.debug("Wrote %d characters to %s", len(text), path)


def load_document(source: DocumentSource, *, allow_empty: bool = False) -> dict[str, Any]:
    """Parse a YAML document into a nested dict.

    Args:
    ----
        source: YAML text or bytes, an open stream, or a file path.
        allow_empty: If True, an empty document loads as an empty dict.

    Returns:
    -------
        Parsed root mapping.

    Raises:
    ------
        DocumentUnreadable: If the source cannot be read or parsed, is empty
            (unless ``allow_empty``), or its root is not a mapping.

    """
    location: str | None = None
    if isinstance(source, Path):
        location = str(source)
        source = read_file(source)

    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as e:
        raise DocumentUnreadable(f"YAML parsing error: {e}", path=location) from e

    if data is None:
        if allow_empty:
            return {}
        raise DocumentUnreadable("Document is empty", path=location)

    if not isinstance(data, dict):
        raise DocumentUnreadable(
            f"Expected mapping at root level, got {type(data).__name__}", path=location
        )
    return data


def _commented(value: Any) -> Any:
    if isinstance(value, Mapping):
        node = CommentedMap()
        for key, item in value.items():
            node[key] = _commented(item)
        return node
    if isinstance(value, (list, tuple)):
        return CommentedSeq(_commented(item) for item in value)
    return value


def comment_lines(text: str) -> str:
    """Split comment text into trimmed lines joined by newlines."""
    return "\n".join(line.strip() for line in text.splitlines())


def _match_key(node: CommentedMap, segments: list[str]) -> tuple[Any, int] | None:
    """Find the key of ``node`` spelled by the longest run of leading segments.

    Keys are compared by their string form, so non-string keys and keys
    containing dots are found too.
    """
    for end in range(len(segments), 0, -1):
        spelled = SEPARATOR.join(segments[:end])
        for key in node:
            if str(key) == spelled:
                return key, end
    return None


def _attach_comment(root: CommentedMap, path: str, text: str) -> bool:
    segments = split_path(path)
    node: Any = root
    depth = 0
    while isinstance(node, CommentedMap):
        match = _match_key(node, segments)
        if match is None:
            return False
        key, used = match
        segments = segments[used:]
        if not segments:
            node.yaml_set_comment_before_after_key(
                key, before=comment_lines(text), indent=depth * MAPPING_INDENT
            )
            return True
        node = node[key]
        depth += 1
    return False


def dump_document(
    tree: Mapping[str, Any],
    comments: Mapping[str, str] | None = None,
    header: str | None = None,
) -> str:
    """Serialize a nested mapping to YAML text.

    Args:
    ----
        tree: Nested mapping of plain YAML data.
        comments: Block comment per key path, emitted above the key.
        header: Comment emitted above the first key of the document.

    Returns:
    -------
        YAML text.

    """
    root = _commented(tree)
    comments = dict(comments or {})

    # The first key's comment joins the header block at the document start
    start = [comment_lines(header)] if header else []
    first_key = next(iter(root), None)
    if first_key is not None and str(first_key) in comments:
        start.append(comment_lines(comments.pop(str(first_key))))
    if start:
        root.yaml_set_start_comment("\n".join(start))

    for path, text in comments.items():
        if not _attach_comment(root, path, text):
            logger.debug("No mapping key at %s to attach a comment to", path)

    stream = io.StringIO()
    _create_dumper().dump(root, stream)
    return stream.getvalue()
