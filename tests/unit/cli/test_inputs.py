"""Unit tests for input filters and --filter parsing."""

import pytest

from hostctl.cli.inputs import (
    INT_MAX,
    FilterKind,
    InputValidator,
    filter_bool,
    filter_int,
    parse_filters,
)
from hostctl.core.exceptions import InvalidInputError


class TestFilterInt:
    """Tests for the INT filter."""

    @pytest.mark.parametrize("raw, expected", [("42", 42), (" 7 ", 7), ("-3", -3), ("+5", 5), (12, 12)])
    def test_accepts_integers(self, raw, expected) -> None:
        assert filter_int("id", raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "1.5", "1_000", "", "0x10", True])
    def test_rejects_non_integers(self, raw) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            filter_int("id", raw)
        assert exc_info.value.code == "VAL_INVALID_INPUT"
        assert exc_info.value.name == "id"

    def test_rejects_out_of_range(self) -> None:
        with pytest.raises(InvalidInputError, match="out of range"):
            filter_int("id", str(INT_MAX + 1))


class TestFilterBool:
    """Tests for the BOOL filter."""

    @pytest.mark.parametrize("raw", ["true", "YES", "1", "on", True])
    def test_true_words(self, raw) -> None:
        assert filter_bool("flag", raw) is True

    @pytest.mark.parametrize("raw", ["false", "No", "0", "off", False])
    def test_false_words(self, raw) -> None:
        assert filter_bool("flag", raw) is False

    def test_rejects_other_words(self) -> None:
        with pytest.raises(InvalidInputError):
            filter_bool("flag", "maybe")


class TestInputValidator:
    """Tests for per-input validation."""

    def test_none_passes_through(self) -> None:
        validator = InputValidator({"id": FilterKind.INT})
        assert validator.validate("id", None) is None

    def test_undeclared_inputs_are_raw(self) -> None:
        validator = InputValidator({"id": FilterKind.INT})
        assert validator.kind("domain") is FilterKind.RAW
        assert validator.validate("domain", "example.com") == "example.com"

    def test_validate_all(self) -> None:
        validator = InputValidator({"id": FilterKind.INT, "install_app": FilterKind.BOOL})
        assert validator.validate_all({"id": "5", "install_app": "yes", "domain": None}) == {
            "id": 5,
            "install_app": True,
            "domain": None,
        }

    def test_first_bad_value_fails(self) -> None:
        validator = InputValidator({"id": FilterKind.INT})
        with pytest.raises(InvalidInputError):
            validator.validate_all({"id": "five"})


class TestParseFilters:
    """Tests for key:value list filters."""

    def test_parses_pairs(self) -> None:
        assert parse_filters(["state:enabled", "domain:example.com"]) == {
            "state": "enabled",
            "domain": "example.com",
        }

    def test_empty(self) -> None:
        assert parse_filters([]) == {}

    @pytest.mark.parametrize("token", ["state", "a:b:c"])
    def test_rejects_malformed_tokens(self, token) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            parse_filters([token])
        assert token in exc_info.value.message
        assert exc_info.value.name == "filter"
