"""
Summary Formatting.

Turns command results into output:

- JSON: the structure as-is, for machines.
- Key/value text: one "key: value" line per entry, nested structures
  indented two more spaces per level.
- Tables: one row per list item, for list commands.
"""

import json
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from rich.markup import escape
from rich.table import Table


def to_plain(value: Any) -> Any:
    """Recursively flatten resources (anything with to_dict()) into plain data."""
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    elif hasattr(value, "to_list"):
        value = value.to_list()
    if isinstance(value, Mapping):
        return {key: to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    return value


def _json_default(value: Any) -> Any:
    plain = to_plain(value)
    if plain is value:
        return str(value)
    return plain


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def _scalar_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    # bools and None read as JSON literals (true / null)
    return json.dumps(value)


class SummaryFormatter:
    """
    Renders result details as key/value text, a Rich table, or JSON.

    Args:
        label: Maps a summary key to its display label (translation hook)
        no_data: Placeholder text for empty tables
        markup: Emit Rich markup around keys
    """

    def __init__(
        self,
        label: Callable[[str], str] | None = None,
        no_data: str = "No data",
        markup: bool = True,
    ) -> None:
        self._label = label or (lambda key: key)
        self.no_data = no_data
        self.markup = markup

    def format(self, details: Any, as_json: bool = False, summary_keys: Sequence[str] = ()) -> str | Table:
        """Render details: JSON text, a table for lists, key/value text otherwise."""
        if as_json:
            return self.to_json(details)
        details = to_plain(details)
        if isinstance(details, list):
            return self.format_table(details, summary_keys)
        if isinstance(details, Mapping):
            return self.format_details(details)
        return self._value(details)

    def to_json(self, details: Any) -> str:
        return json.dumps(details, indent=2, default=_json_default)

    def _key(self, key: Any) -> str:
        text = self._label(key) if isinstance(key, str) else str(key)
        if not self.markup:
            return text
        return f"[green]{escape(text)}[/green]"

    def _value(self, value: Any) -> str:
        text = _scalar_text(value) if _is_scalar(value) else json.dumps(value, indent=2, default=str)
        return escape(text) if self.markup else text

    def format_details(self, summary: Mapping[Any, Any], depth: int = 0) -> str:
        """
        Format key/value pairs, nested structures one level deeper each time.

        Args:
            summary: Details
            depth: Starting indent depth
        """
        depth += 1
        indent = "  " * depth
        lines = []
        for key, value in summary.items():
            value = to_plain(value)
            if isinstance(value, (list, tuple)):
                value = dict(enumerate(value))
            if isinstance(value, Mapping):
                lines.append(f"{indent}{self._key(key)}:")
                nested = self.format_details(value, depth)
                if nested:
                    lines.append(nested)
            else:
                lines.append(f"{indent}{self._key(key)}: {self._value(value)}")
        return "\n".join(lines)

    def format_table(self, rows: Sequence[Mapping[str, Any]], summary_keys: Sequence[str] = ()) -> Table:
        """
        Format list items as a table.

        The header is the first row's keys, or summary_keys when there are
        no rows. An empty list renders a single placeholder row.
        """
        table = Table(show_header=True, header_style="bold yellow")

        if not rows:
            headers = list(summary_keys) or [self.no_data]
            for header in headers:
                table.add_column(self._label(header))
            table.add_row(self.no_data, *[""] * (len(headers) - 1))
            return table

        headers = list(rows[0].keys()) or list(summary_keys)
        for header in headers:
            table.add_column(self._label(header))
        for row in rows:
            table.add_row(*[self._cell(row.get(header)) for header in headers])
        return table

    def _cell(self, value: Any) -> str:
        text = _scalar_text(value) if _is_scalar(value) else json.dumps(value, default=str)
        return escape(text)
