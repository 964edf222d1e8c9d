"""Load and save mapped objects as YAML documents.

The :class:`YamlMapper` ties the pieces together: it extracts (and caches)
class schemas, reads parsed documents field by field, fills absent fields
from defaults, and writes objects back with their comments, header and
version number.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, TypeVar

from yaml_mapper.document import DocumentSource, dump_document, load_document, write_file
from yaml_mapper.errors import ConfigurationError
from yaml_mapper.schema.descriptors import ObjectSchema
from yaml_mapper.schema.extractor import SchemaCache
from yaml_mapper.transform.coercion import coerce
from yaml_mapper.transform.defaults import merge_defaults
from yaml_mapper.transform.embedded import ObjectMapper, construct
from yaml_mapper.transform.flatten import MISSING, find, unflatten
from yaml_mapper.transform.paths import SEPARATOR

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ReadResult(Generic[T]):
    """An object read from a document, with the document's version number.

    Attributes
    ----------
        value: The mapped object.
        version: Version number found in the document, or None if the class
            declares no version field or the document has none.

    """

    value: T
    version: int | None = None


def _version_conflicts(version_field: str, paths: Mapping[str, Any]) -> bool:
    for path in paths:
        if path == version_field:
            return True
        if path.startswith(version_field + SEPARATOR) or version_field.startswith(path + SEPARATOR):
            return True
    return False


class YamlMapper:
    """Maps classes declared with yaml-mapper markers to YAML documents.

    Usage:
        mapper = YamlMapper()
        config = mapper.load(ServerConfig, Path("server.yml")).value
        mapper.save(config, Path("server.yml"))
    """

    def __init__(self, schemas: SchemaCache | None = None) -> None:
        """Initialize the mapper.

        Args:
        ----
            schemas: Schema cache to use, or None for a new one.

        """
        self.schemas = schemas if schemas is not None else SchemaCache()
        self.objects = ObjectMapper(self.schemas)

    def schema_for(self, cls: type) -> ObjectSchema:
        """Return the cached schema of a mapped class."""
        return self.schemas.get(cls)

    def create_defaults(self, cls: type[T]) -> T:
        """Instantiate ``cls`` with no arguments to obtain its defaults.

        Raises
        ------
            ConfigurationError: If ``cls`` cannot be built without arguments.

        """
        self.schema_for(cls)
        try:
            return cls()
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Mapped class must be constructible with no arguments: {e}", target=cls
            ) from e

    # -- read -------------------------------------------------------------

    def read(self, cls: type[T], tree: Mapping[str, Any]) -> ReadResult[T]:
        """Read an object from a parsed document without applying defaults.

        Args:
        ----
            cls: Mapped class to build.
            tree: Parsed document root.

        Returns:
        -------
            The object, with absent fields set to None, and the version
            number found in the document.

        """
        schema = self.schema_for(cls)
        version_field = schema.settings.version_field

        rooted = schema.rooted_map_field
        if rooted is not None:
            root = dict(tree)
            raw_version = root.pop(version_field, None) if version_field else None
            value = self.objects.read_rooted(rooted, root)
            version = self._version(raw_version, version_field)
            return ReadResult(construct(cls, {rooted.name: value}), version)

        raw_version = None
        if version_field is not None:
            found = find(tree, version_field)
            raw_version = None if found is MISSING else found
        values = self.objects.read_fields(schema, tree)
        return ReadResult(construct(cls, values), self._version(raw_version, version_field))

    @staticmethod
    def _version(raw: Any, version_field: str | None) -> int | None:
        if raw is None or version_field is None:
            return None
        return coerce(int, raw, version_field)

    def load(
        self,
        cls: type[T],
        source: DocumentSource,
        defaults: T | None = None,
    ) -> ReadResult[T]:
        """Load an object from YAML, filling absent fields from defaults.

        Args:
        ----
            cls: Mapped class to build.
            source: YAML text or bytes, an open stream, or a file path.
            defaults: Object supplying values for absent fields; a fresh
                ``cls()`` if None.

        Returns:
        -------
            The loaded object and the document's version number.

        Raises:
        ------
            MappingError: If the document or the class cannot be mapped.

        """
        tree = load_document(source)
        result = self.read(cls, tree)
        if defaults is None:
            defaults = self.create_defaults(cls)
        value = merge_defaults(defaults, result.value, self.schema_for(cls))
        logger.debug("Loaded %s (document version %s)", cls.__qualname__, result.version)
        return ReadResult(value, result.version)

    def load_or_create(
        self,
        cls: type[T],
        path: Path | str,
        defaults: T | None = None,
    ) -> ReadResult[T]:
        """Load ``path``, or write the defaults to it if it does not exist."""
        path = Path(path)
        if path.exists():
            return self.load(cls, path, defaults)

        value = defaults if defaults is not None else self.create_defaults(cls)
        self.save(value, path)
        settings = self.schema_for(cls).settings
        version = settings.version_number if settings.version_field else None
        logger.debug("Created %s with defaults of %s", path, cls.__qualname__)
        return ReadResult(value, version)

    # -- write ------------------------------------------------------------

    def to_tree(self, obj: Any) -> dict[str, Any]:
        """Convert an object into a nested map of plain YAML data.

        Raises
        ------
            ConfigurationError: If the version field collides with a field.

        """
        schema = self.objects.schema_of(obj)
        version_field = schema.settings.version_field

        rooted = schema.rooted_map_field
        if rooted is not None:
            root = self.objects.write_rooted(rooted, obj)
            if version_field is None:
                return root
            if version_field in root:
                raise ConfigurationError(
                    "Version field collides with a key of the rooted map",
                    path=version_field,
                    target=schema.object_type,
                )
            return {version_field: schema.settings.version_number, **root}

        flat = self.objects.write_fields(schema, obj)
        if version_field is not None:
            if _version_conflicts(version_field, flat):
                raise ConfigurationError(
                    "Version field collides with the key path of a field",
                    path=version_field,
                    target=schema.object_type,
                )
            flat = {version_field: schema.settings.version_number, **flat}
        return unflatten(flat)

    def dump(self, obj: Any) -> str:
        """Serialize an object to YAML text with its comments and header."""
        schema = self.objects.schema_of(obj)
        tree = self.to_tree(obj)
        comments = self.objects.comments(obj)
        return dump_document(tree, comments, schema.settings.header or None)

    def save(self, obj: Any, path: Path | str) -> None:
        """Write an object to a YAML file, creating parent directories.

        The text is fully produced before the file is opened, so a failed
        serialization leaves any existing file untouched.
        """
        path = Path(path)
        text = self.dump(obj)
        write_file(path, text)
        logger.debug("Saved %s to %s", type(obj).__qualname__, path)


_default_mapper = YamlMapper()


def load(cls: type[T], source: DocumentSource, defaults: T | None = None) -> T:
    """Load an object with the shared mapper; see :meth:`YamlMapper.load`."""
    return _default_mapper.load(cls, source, defaults).value


def load_or_create(cls: type[T], path: Path | str, defaults: T | None = None) -> T:
    """Load or create a file with the shared mapper."""
    return _default_mapper.load_or_create(cls, path, defaults).value


def dump(obj: Any) -> str:
    """Serialize an object with the shared mapper."""
    return _default_mapper.dump(obj)


def save(obj: Any, path: Path | str) -> None:
    """Save an object with the shared mapper."""
    _default_mapper.save(obj, path)


__all__ = [
    "ReadResult",
    "YamlMapper",
    "dump",
    "load",
    "load_or_create",
    "save",
]
