"""
Input Validation.

Raw argument and option values arrive as strings (or bools for flags).
Each command declares a filter per input name; validate() applies it the
same way whichever side of the command line the value came from.
"""

import re
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from hostctl.core.exceptions import InvalidInputError

_INT_PATTERN = re.compile(r"[+-]?\d+")

INT_MIN = -(2**63)
INT_MAX = 2**63 - 1

TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
FALSE_WORDS = frozenset({"false", "0", "no", "off"})


class FilterKind(str, Enum):
    INT = "int"
    BOOL = "bool"
    RAW = "raw"


def filter_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid integer for '{name}': {value!r}", name=name, value=value)
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        if not _INT_PATTERN.fullmatch(text):
            raise InvalidInputError(
                f"Invalid integer for '{name}': {value!r}", name=name, value=value,
            )
        number = int(text)
    if not INT_MIN <= number <= INT_MAX:
        raise InvalidInputError(
            f"Integer for '{name}' is out of range: {value!r}", name=name, value=value,
        )
    return number


def filter_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    word = str(value).strip().lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    raise InvalidInputError(f"Invalid boolean for '{name}': {value!r}", name=name, value=value)


_FILTERS = {
    FilterKind.INT: filter_int,
    FilterKind.BOOL: filter_bool,
}


class InputValidator:
    """
    Applies declared filters to raw input values.

    Usage:
        validator = InputValidator({"id": FilterKind.INT})
        validator.validate("id", "42")      # 42
        validator.validate("domain", "x")   # "x" (undeclared → RAW)
    """

    def __init__(self, filters: Mapping[str, FilterKind | None]) -> None:
        self._filters = dict(filters)

    def kind(self, name: str) -> FilterKind:
        return self._filters.get(name) or FilterKind.RAW

    def validate(self, name: str, raw_value: Any) -> Any:
        """
        Validate one input.

        None (absent) passes through every filter unchanged.

        Raises:
            InvalidInputError: If the value does not satisfy the filter
        """
        if raw_value is None:
            return None
        apply = _FILTERS.get(self.kind(name))
        if apply is None:
            return raw_value
        return apply(name, raw_value)

    def validate_all(self, raw_values: Mapping[str, Any]) -> dict[str, Any]:
        return {name: self.validate(name, value) for name, value in raw_values.items()}


def parse_filters(tokens: Iterable[str]) -> dict[str, str]:
    """
    Parse repeated --filter key:value tokens.

    Raises:
        InvalidInputError: If a token does not contain exactly one ':'
    """
    filters: dict[str, str] = {}
    for token in tokens:
        if token.count(":") != 1:
            raise InvalidInputError(
                f"Invalid list filter '{token}': expected key:value", name="filter", value=token,
            )
        key, value = token.split(":")
        filters[key] = value
    return filters
