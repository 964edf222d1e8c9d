"""Round-trip tests: objects survive save and load unchanged."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from tests.fixtures.sample_models import (
    ClusterConfig,
    CounterConfig,
    Credentials,
    Endpoint,
    KeyedMapConfig,
    Level,
    NumbersConfig,
    PydanticConfig,
    RootedConfig,
    RoutingConfig,
    SampleConfig,
    SampleYaml,
    Server,
    ServiceConfig,
)
from yaml_mapper import YamlMapper

ROUND_TRIP_OBJECTS: list[Any] = [
    SampleConfig(),
    SampleConfig(string_field="yes", int_field=-3, level=Level.TEST_THREE, tags=[]),
    SampleYaml(),
    CounterConfig(count=0),
    ClusterConfig(
        primary=Server("db", 5432),
        replicas=[Server("r1", 1), Server("r2", 2)],
        servers={"east": Server("e", 80), "west": Server("w", 81)},
    ),
    RootedConfig(),
    RootedConfig(root_map={"on": "off", "1": "2", "a.b": "dotted values are fine"}),
    KeyedMapConfig(),
    RoutingConfig(),
    RoutingConfig(
        ports={8080: "alt", "22": "ssh", True: "flag"},
        hosts={"a.b.c": 3},
        backends={"api.v1": Server("a", 1), "plain": None},
        by_id={},
    ),
    NumbersConfig(ratios=[1.0, 2.5], counts=(1, 2, 3), point=(4, 5)),
    ServiceConfig(
        serviceName="api",
        logDirectory=Path("/srv/logs"),
        credentials=Credentials(user="root", secret="null"),
        workers=[Server("w1", 9000)],
    ),
    PydanticConfig(),
    PydanticConfig(
        title="t",
        retries=5,
        level=Level.TEST_THREE,
        endpoint=Endpoint(url="x", timeout=0.0),
    ),
]


class TestRoundTrip:
    """Saving then loading reproduces the object."""

    @pytest.mark.parametrize("obj", ROUND_TRIP_OBJECTS, ids=lambda o: type(o).__name__)
    def test_save_then_load(self, obj: Any, mapper: YamlMapper, tmp_path: Path) -> None:
        """Every field value survives a save/load cycle."""
        path = tmp_path / "doc.yml"

        mapper.save(obj, path)
        loaded = mapper.load(type(obj), path).value

        assert loaded == obj

    @pytest.mark.parametrize("obj", ROUND_TRIP_OBJECTS, ids=lambda o: type(o).__name__)
    def test_dump_is_stable(self, obj: Any, mapper: YamlMapper) -> None:
        """Dumping a loaded object reproduces the same text."""
        text = mapper.dump(obj)

        assert mapper.dump(mapper.load(type(obj), text).value) == text


class TestDocumentLayout:
    """The written document matches the declared layout."""

    def test_sample_yaml_layout(self, mapper: YamlMapper) -> None:
        """Overrides nest keys and other names are converted to snake_case."""
        data = yaml.safe_load(mapper.dump(SampleYaml()))

        assert data == {
            "test1": 1,
            "integers": {"test_cinco": 5, "test_six": "TEST_TWO"},
            "test_with_weird_characters": "Hello: This is a test with weird # characters!",
            "snake_case_conversion_test1": "Snake case conversion test!",
            "keyPath": {"snakeCaseConversion": {"testString": "Snake case conversion test 2!"}},
        }

    def test_plain_names_are_still_read(self, mapper: YamlMapper) -> None:
        """Documents using the unconverted field names load too."""
        config = mapper.load(SampleYaml, "snakeCaseConversionTest1: plain\n").value

        assert config.snakeCaseConversionTest1 == "plain"

    def test_cluster_comments(self, mapper: YamlMapper) -> None:
        """Comments of embedded objects are written above their keys."""
        text = mapper.dump(ClusterConfig(primary=Server(), servers={"a": Server()}))

        assert text.startswith("# Cluster settings\n")
        assert text.index("# Primary server") < text.index("primary:")
        assert text.count("# Host name") == 2

    def test_map_keys_are_written_verbatim(self, mapper: YamlMapper) -> None:
        """Integer and dotted map keys load back unchanged, with comments."""
        text = mapper.dump(RoutingConfig())

        assert yaml.safe_load(text)["ports"] == {80: "http", 443: "https"}
        assert "  example.com: 1\n" in text
        assert "  db.internal:\n    # Host name\n    host: db\n" in text
        assert "  1:\n    # Host name\n    host: one\n" in text

        loaded = mapper.load(RoutingConfig, text, defaults=RoutingConfig()).value

        assert loaded.ports == {80: "http", 443: "https"}
        assert loaded.backends == {"db.internal": Server("db", 5432)}

    def test_partial_document_keeps_other_defaults(self, mapper: YamlMapper) -> None:
        """Loading a partial document then saving fills in every key."""
        config = mapper.load(ServiceConfig, "service-name: api\n").value

        data = yaml.safe_load(mapper.dump(config))

        assert data["service-name"] == "api"
        assert data["log-directory"] == "/var/log/svc"
        assert data["credentials"] == {"user": "admin", "secret": ""}
        assert data["meta"] == {"version": 3}
