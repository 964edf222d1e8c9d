"""Tests for type coercion."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Literal, Optional

import pytest

from tests.fixtures.sample_models import Level
from yaml_mapper import CoercionFailure, EnumMismatch
from yaml_mapper.transform.coercion import (
    coerce,
    is_assignable,
    match_enum,
    to_document_value,
)


class Mode(Enum):
    """Enum with integer values."""

    FAST = 1
    SLOW = 2


class TestIsAssignable:
    """Tests for is_assignable."""

    def test_bool_is_not_a_number(self) -> None:
        """bool values never satisfy int or float."""
        assert not is_assignable(int, True)
        assert not is_assignable(float, False)

    def test_int_is_not_a_float(self) -> None:
        """int values are converted rather than assigned to float."""
        assert not is_assignable(float, 1)
        assert is_assignable(float, 1.0)

    def test_parametrized_containers(self) -> None:
        """Container elements are checked recursively."""
        assert is_assignable(list[int], [1, 2])
        assert not is_assignable(list[int], [1, "2"])
        assert is_assignable(dict[str, list[int]], {"a": [1]})
        assert not is_assignable(dict[str, int], {"a": "1"})
        assert is_assignable(tuple[int, str], (1, "a"))
        assert not is_assignable(tuple[int, str], (1, 2))

    def test_any(self) -> None:
        """Any accepts every value."""
        assert is_assignable(Any, object())


class TestScalarCoercion:
    """Tests for primitive targets."""

    @pytest.mark.parametrize(
        ("target", "raw", "expected"),
        [
            (int, "7", 7),
            (int, " 42 ", 42),
            (int, "0x1F", 31),
            (int, "0o17", 15),
            (int, "0b101", 5),
            (int, "-0x10", -16),
            (int, "010", 10),
            (int, 3.0, 3),
            (int, "3.0", 3),
            (float, "2.5", 2.5),
            (float, 1, 1.0),
            (str, 7, "7"),
            (str, True, "true"),
            (str, 1.5, "1.5"),
            (bool, "yes", True),
            (bool, "Off", False),
            (bool, 1, True),
            (bool, "0", False),
            (Path, "/tmp/x", Path("/tmp/x")),
        ],
    )
    def test_parse(self, target: type, raw: Any, expected: Any) -> None:
        """Scalar literals are parsed into the declared type."""
        result = coerce(target, raw)

        assert result == expected
        assert type(result) is type(expected)

    def test_assignable_value_is_returned_unchanged(self) -> None:
        """A correctly typed value is not converted."""
        value = [1, 2]

        assert coerce(list[int], value) is value

    def test_none_is_absent(self) -> None:
        """None always coerces to None."""
        assert coerce(int, None) is None
        assert coerce(list[int], None) is None

    def test_optional_target(self) -> None:
        """Optional targets coerce to the wrapped type."""
        assert coerce(Optional[int], "5") == 5  # noqa: UP007
        assert coerce(int | None, "5") == 5

    def test_union_tries_each_member(self) -> None:
        """The first union member that converts wins."""
        assert coerce(int | Level, "TEST_ONE") is Level.TEST_ONE

    @pytest.mark.parametrize(
        ("target", "raw"),
        [
            (int, "abc"),
            (int, "2.5"),
            (int, True),
            (float, "x"),
            (bool, "maybe"),
            (str, [1]),
            (str, {"a": 1}),
        ],
    )
    def test_failure(self, target: type, raw: Any) -> None:
        """Unparseable values raise CoercionFailure."""
        with pytest.raises(CoercionFailure):
            coerce(target, raw, "some.path")

    def test_failure_names_path_and_type(self) -> None:
        """Failure messages name the key path and the target type."""
        with pytest.raises(CoercionFailure) as exc_info:
            coerce(int, "abc", "integers.count")

        assert exc_info.value.path == "integers.count"
        assert "integers.count" in str(exc_info.value)
        assert "int" in str(exc_info.value)

    def test_unsupported_target(self) -> None:
        """Targets without a conversion raise CoercionFailure."""

        class Opaque:
            pass

        with pytest.raises(CoercionFailure, match="No conversion"):
            coerce(Opaque, "x")


class TestEnumCoercion:
    """Tests for enum matching."""

    def test_exact_name(self) -> None:
        """Members are matched by exact name."""
        assert coerce(Level, "TEST_THREE") is Level.TEST_THREE

    def test_case_insensitive_name(self) -> None:
        """Names match regardless of case."""
        assert match_enum(Level, "test_one") is Level.TEST_ONE

    def test_value_fallback(self) -> None:
        """Member values match when no name does."""
        assert match_enum(Level, "two") is Level.TEST_TWO
        assert match_enum(Mode, 2) is Mode.SLOW

    def test_mismatch(self) -> None:
        """Unknown names raise EnumMismatch, a CoercionFailure."""
        with pytest.raises(EnumMismatch, match="TEST_ONE, TEST_TWO, TEST_THREE"):
            match_enum(Level, "TEST_FOUR", "level")

        assert issubclass(EnumMismatch, CoercionFailure)


class TestLiteralCoercion:
    """Tests for Literal targets."""

    def test_matching_value(self) -> None:
        """A value among the allowed literals is returned as is."""
        assert coerce(Literal["a", "b"], "b", "mode") == "b"
        assert is_assignable(Literal["a", "b"], "a")

    def test_value_is_parsed_to_the_literal_type(self) -> None:
        """Literal values are compared after parsing to their type."""
        assert coerce(Literal[1, 2], "2") == 2
        assert coerce(Literal[True], "yes") is True

    def test_bool_does_not_match_int_literal(self) -> None:
        """True is not accepted for the integer literal 1."""
        assert not is_assignable(Literal[1], True)
        with pytest.raises(CoercionFailure):
            coerce(Literal[1], True)

    def test_value_not_allowed(self) -> None:
        """Values outside the literal set fail and list the allowed values."""
        with pytest.raises(CoercionFailure, match="not one of 'a', 'b'") as exc_info:
            coerce(Literal["a", "b"], "c", "mode")

        assert exc_info.value.path == "mode"

    def test_literal_elements(self) -> None:
        """Arrays of literals are converted element by element."""
        assert coerce(list[Literal["x", "y"]], ["y", "x"]) == ["y", "x"]


class TestArrayCoercion:
    """Tests for list, tuple and set targets."""

    def test_numeric_string_retry(self) -> None:
        """Numeric strings in a float array are parsed."""
        assert coerce(list[float], ["1", "2.5"]) == [1.0, 2.5]

    def test_int_elements_from_floats(self) -> None:
        """Integral float elements convert to int."""
        assert coerce(list[int], ["1", 2.0, 3]) == [1, 2, 3]

    def test_non_integral_int_element(self) -> None:
        """A fractional element fails an int array."""
        with pytest.raises(CoercionFailure) as exc_info:
            coerce(list[int], [1, "2.5"], "counts")

        assert exc_info.value.path == "counts[1]"

    def test_one_bad_element_fails_the_array(self) -> None:
        """Any element failure fails the whole array."""
        with pytest.raises(CoercionFailure):
            coerce(list[float], ["1", "x"])

    def test_enum_elements_are_strict(self) -> None:
        """Unknown enum elements are a hard failure."""
        assert coerce(list[Level], ["TEST_ONE", "test_two"]) == [Level.TEST_ONE, Level.TEST_TWO]
        with pytest.raises(EnumMismatch):
            coerce(list[Level], ["TEST_ONE", "NOPE"])

    def test_string_elements(self) -> None:
        """Scalar elements convert to strings."""
        assert coerce(list[str], [1, "a", True]) == ["1", "a", "true"]

    def test_tuple_and_set_containers(self) -> None:
        """The declared container type is produced."""
        assert coerce(tuple[int, ...], ["1", "2"]) == (1, 2)
        assert coerce(set[int], ["1", "1", "2"]) == {1, 2}
        assert coerce(frozenset[str], [1]) == frozenset({"1"})

    def test_fixed_tuple(self) -> None:
        """Fixed tuples convert per position and require the same length."""
        assert coerce(tuple[int, str], ["1", 2]) == (1, "2")
        with pytest.raises(CoercionFailure, match="Expected 2 elements"):
            coerce(tuple[int, str], [1])

    def test_scalar_for_array(self) -> None:
        """A scalar or string is not a sequence."""
        with pytest.raises(CoercionFailure, match="Expected a sequence"):
            coerce(list[str], "abc")


class TestMappingCoercion:
    """Tests for dict targets."""

    def test_keys_and_values_are_coerced(self) -> None:
        """Both keys and values convert to the declared types."""
        assert coerce(dict[int, float], {"1": "2.5", 3: 4}) == {1: 2.5, 3: 4.0}

    def test_enum_keys(self) -> None:
        """Enum keys are matched by name."""
        assert coerce(dict[Level, int], {"TEST_ONE": "1"}) == {Level.TEST_ONE: 1}

    def test_not_a_mapping(self) -> None:
        """A sequence cannot become a mapping."""
        with pytest.raises(CoercionFailure, match="Expected a mapping"):
            coerce(dict[str, int], [1, 2])


class TestToDocumentValue:
    """Tests for conversion back to YAML data."""

    def test_enum_by_name(self) -> None:
        """Enum members are written by name."""
        assert to_document_value(Level.TEST_TWO) == "TEST_TWO"

    def test_containers(self) -> None:
        """Tuples and sets become lists, paths become strings."""
        value = {"t": (1, 2), "s": {3, 1}, "p": Path("/a"), Level.TEST_ONE: [Level.TEST_TWO]}

        assert to_document_value(value) == {
            "t": [1, 2],
            "s": [1, 3],
            "p": "/a",
            "TEST_ONE": ["TEST_TWO"],
        }
