"""Tests for the CLI module."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from yaml_mapper import YamlMapper, __version__
from yaml_mapper.cli import error_title, import_target
from yaml_mapper.cli_main import app
from yaml_mapper.errors import CoercionFailure, ConfigurationError, EnumMismatch

runner = CliRunner()

SAMPLE = "tests.fixtures.sample_models:SampleConfig"
COUNTER = "tests.fixtures.sample_models:CounterConfig"


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Restore the package logger after a --verbose run."""
    package_logger = logging.getLogger("yaml_mapper")
    level = package_logger.level
    handlers = list(package_logger.handlers)
    yield
    package_logger.setLevel(level)
    package_logger.handlers[:] = handlers


class TestVersion:
    """Tests for version option."""

    def test_version_long(self) -> None:
        """Test --version flag."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_version_short(self) -> None:
        """Test -v flag."""
        result = runner.invoke(app, ["-v"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestNoArgs:
    """Tests for no arguments behavior."""

    def test_no_args_shows_help(self) -> None:
        """Test that no arguments shows help."""
        result = runner.invoke(app)
        assert "yaml-mapper" in result.output
        for command in ("show", "init", "check", "schema"):
            assert command in result.output


class TestImportTarget:
    """Tests for resolving target references."""

    def test_resolves_class(self) -> None:
        """A module:Class reference returns the class."""
        from tests.fixtures.sample_models import SampleConfig

        assert import_target(SAMPLE) is SampleConfig

    @pytest.mark.parametrize(
        "reference",
        [
            "no_colon",
            "tests.fixtures.sample_models:",
            "does_not_exist_module:Thing",
            "tests.fixtures.sample_models:Missing",
            "tests.fixtures.sample_models:Level",
        ],
    )
    def test_invalid_reference(self, reference: str) -> None:
        """Malformed or unmapped references are configuration errors."""
        with pytest.raises(ConfigurationError):
            import_target(reference)


class TestShowCommand:
    """Tests for the show command."""

    def test_show_values(self, write_yaml: Callable[..., Path]) -> None:
        """Loaded values are listed by key path."""
        path = write_yaml("integers:\n  count: '7'\n")

        result = runner.invoke(app, ["show", COUNTER, str(path)])

        assert result.exit_code == 0
        assert "integers.count" in result.stdout
        assert "7" in result.stdout

    def test_show_version(self, write_yaml: Callable[..., Path]) -> None:
        """The document version is printed."""
        path = write_yaml("version: 2\nint_field: 3\n")

        result = runner.invoke(app, ["show", SAMPLE, str(path)])

        assert result.exit_code == 0
        assert "Document version: 2" in result.stdout

    def test_show_coercion_error(self, write_yaml: Callable[..., Path]) -> None:
        """Mapping errors are reported in a panel with exit code 1."""
        path = write_yaml("int_field: many\n")

        result = runner.invoke(app, ["show", SAMPLE, str(path)])

        assert result.exit_code == 1
        assert "Type Conversion Failed" in result.output

    def test_show_nonexistent_file(self) -> None:
        """A missing input file is rejected by the argument parser."""
        result = runner.invoke(app, ["show", SAMPLE, "nonexistent.yaml"])
        assert result.exit_code != 0


class TestInitCommand:
    """Tests for the init command."""

    def test_init_writes_defaults(self, tmp_path: Path) -> None:
        """The defaults document is written and loads back."""
        output = tmp_path / "out" / "config.yml"

        result = runner.invoke(app, ["init", SAMPLE, str(output)])

        assert result.exit_code == 0
        assert output.exists()
        assert output.read_text().startswith("# Example YAML for testing a config file")
        assert YamlMapper().load(import_target(SAMPLE), output).version == 1

    def test_init_refuses_to_overwrite(self, tmp_path: Path) -> None:
        """An existing file needs --force."""
        output = tmp_path / "config.yml"
        output.write_text("keep: me\n")

        result = runner.invoke(app, ["init", SAMPLE, str(output)])

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert output.read_text() == "keep: me\n"

    def test_init_force(self, tmp_path: Path) -> None:
        """--force overwrites an existing file."""
        output = tmp_path / "config.yml"
        output.write_text("keep: me\n")

        result = runner.invoke(app, ["init", COUNTER, str(output), "--force"])

        assert result.exit_code == 0
        assert output.read_text() == "integers:\n  count: 5\n"

    def test_init_bad_target(self, tmp_path: Path) -> None:
        """An unknown target is reported as a declaration error."""
        target = "tests.fixtures.sample_models:Nope"
        result = runner.invoke(app, ["init", target, str(tmp_path / "x.yml")])

        assert result.exit_code == 1
        assert "Invalid Class Declaration" in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_check_valid(self, write_yaml: Callable[..., Path]) -> None:
        """A loadable file is reported as such."""
        path = write_yaml("int_field: 3\nlevel: TEST_ONE\n")

        result = runner.invoke(app, ["check", SAMPLE, str(path)])

        assert result.exit_code == 0
        assert "loads as SampleConfig" in result.stdout

    def test_check_quiet(self, write_yaml: Callable[..., Path]) -> None:
        """--quiet prints nothing on success."""
        path = write_yaml("int_field: 3\n")

        result = runner.invoke(app, ["check", SAMPLE, str(path), "--quiet"])

        assert result.exit_code == 0
        assert result.stdout.strip() == ""

    def test_check_invalid(self, write_yaml: Callable[..., Path]) -> None:
        """A file that does not load fails with exit code 1."""
        path = write_yaml("tags: 5\n")

        result = runner.invoke(app, ["check", SAMPLE, str(path)])

        assert result.exit_code == 1
        assert "Failed to load" in result.output

    def test_check_invalid_yaml(self, write_yaml: Callable[..., Path]) -> None:
        """YAML syntax errors fail the check."""
        path = write_yaml("not: valid: yaml: [")

        result = runner.invoke(app, ["check", SAMPLE, str(path)])

        assert result.exit_code == 1


class TestSchemaCommand:
    """Tests for the schema command."""

    def test_schema_lists_fields(self) -> None:
        """Fields, key paths and settings are printed."""
        result = runner.invoke(app, ["schema", SAMPLE])

        assert result.exit_code == 0
        assert "string_field" in result.stdout
        assert "ignored" in result.stdout
        assert "enum" in result.stdout
        assert "Version: version = 1" in result.stdout

    def test_schema_verbose(self, restore_logging: None) -> None:
        """--verbose enables debug logging of the package."""
        result = runner.invoke(app, ["--verbose", "schema", COUNTER])

        assert result.exit_code == 0
        assert logging.getLogger("yaml_mapper").isEnabledFor(logging.DEBUG)


class TestErrorTitles:
    """Tests for error panel titles."""

    def test_subclass_uses_parent_title(self) -> None:
        """Enum mismatches share the coercion failure title."""
        assert error_title(EnumMismatch("x")) == error_title(CoercionFailure("x"))
        assert error_title(ConfigurationError("x")) == "Invalid Class Declaration"
