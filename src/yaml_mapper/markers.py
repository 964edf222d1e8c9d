"""Declarative metadata attached to mapped classes and their fields.

File-level settings are declared with the :func:`yaml_file` and
:func:`embedded_yaml` class decorators. Per-field settings are declared as
``typing.Annotated`` metadata:

Example:
-------
    ```python
    @yaml_file(header="Server configuration", naming=NamingConvention.KEBAB_CASE)
    @dataclass
    class ServerConfig:
        host: str = "localhost"
        port: Annotated[int, KeyPath("network.port"), Comment("Listen port")] = 8080
        secret: Annotated[str, Ignored()] = ""
    ```

"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from yaml_mapper.errors import ConfigurationError

T = TypeVar("T")

SETTINGS_ATTRIBUTE = "__yaml_settings__"


class NamingConvention(str, Enum):
    """Key naming rules applied to field names without a KeyPath override."""

    NONE = "none"
    SNAKE_CASE = "snake_case"
    KEBAB_CASE = "kebab-case"


class YamlFileSettings(BaseModel):
    """File-level settings of a mapped class."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    header: Annotated[
        str,
        Field(default="", description="Comment emitted above the first key"),
    ]
    naming: Annotated[
        NamingConvention | None,
        Field(default=None, description="Naming convention, None inherits the parent's"),
    ]
    version_field: Annotated[
        str | None,
        Field(default=None, min_length=1, description="Key path of the version number"),
    ]
    version_number: Annotated[
        int,
        Field(default=1, ge=0, description="Version number written under version_field"),
    ]
    rooted_map: Annotated[
        bool,
        Field(default=False, description="Map the document root onto the single field"),
    ]
    embedded: Annotated[
        bool,
        Field(default=False, description="Class may be embedded within another document"),
    ]


DEFAULT_SETTINGS = YamlFileSettings()


@dataclass(frozen=True)
class KeyPath:
    """Override the key path of a field; ``.`` separates nested keys."""

    path: str


@dataclass(frozen=True)
class Comment:
    """Block comment emitted above the field's key."""

    text: str


@dataclass(frozen=True)
class Ignored:
    """Field is neither read from nor written to the document."""


@dataclass(frozen=True)
class Embedded:
    """Field holds an embedded object even if its class is not decorated."""


@dataclass(frozen=True)
class EmbeddedCollection:
    """Field holds a list or map of embedded objects of ``element_type``."""

    element_type: type


@dataclass(frozen=True)
class RootedMap:
    """Field's mapping is the whole document root."""


def _build_settings(**kwargs: Any) -> YamlFileSettings:
    try:
        return YamlFileSettings(**kwargs)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid YAML file settings: {details}") from e


def yaml_file(
    *,
    header: str = "",
    naming: NamingConvention | str = NamingConvention.NONE,
    version_field: str | None = None,
    version_number: int = 1,
    rooted_map: bool = False,
) -> Callable[[type[T]], type[T]]:
    """Register a class as a top-level YAML document.

    Args:
    ----
        header: Comment placed above the first key of the document.
        naming: Naming convention applied to field names.
        version_field: Key path the version number is written to, if any.
        version_number: Current version number of the document layout.
        rooted_map: If True, the class's single field is the document root.

    Returns:
    -------
        Class decorator storing the settings on the class.

    Raises:
    ------
        ConfigurationError: If a setting is invalid.

    """
    settings = _build_settings(
        header=header,
        naming=naming,
        version_field=version_field,
        version_number=version_number,
        rooted_map=rooted_map,
    )

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, SETTINGS_ATTRIBUTE, settings)
        return cls

    return decorator


def embedded_yaml(
    cls: type[T] | None = None,
    *,
    naming: NamingConvention | str | None = None,
) -> Any:
    """Register a class as embeddable inside another document.

    Usable bare (``@embedded_yaml``) or with arguments
    (``@embedded_yaml(naming=...)``).
    """
    settings = _build_settings(naming=naming, embedded=True)

    def decorator(target: type[T]) -> type[T]:
        setattr(target, SETTINGS_ATTRIBUTE, settings)
        return target

    if cls is not None:
        return decorator(cls)
    return decorator


def get_settings(cls: type) -> YamlFileSettings | None:
    """Return the settings declared on ``cls`` itself, or None."""
    settings = cls.__dict__.get(SETTINGS_ATTRIBUTE)
    return settings if isinstance(settings, YamlFileSettings) else None


def is_embedded_class(cls: Any) -> bool:
    """Check if ``cls`` was registered with :func:`embedded_yaml`."""
    if not isinstance(cls, type):
        return False
    settings = get_settings(cls)
    return settings is not None and settings.embedded
