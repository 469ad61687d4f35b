"""Stable JSON-records to CSV conversion."""

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from app.exceptions import EmptyInputError

QUOTE_TRIGGERS = (",", '"', "\n", "\r")


@dataclass
class CsvDocument:
    """Sorted column names plus rows aligned to them."""

    columns: list[str]
    rows: list[list[str]]

    def to_text(self) -> str:
        lines = [_join(self.columns)]
        lines.extend(_join(row) for row in self.rows)
        return "\n".join(lines) + "\n"


def format_value(value: Any) -> str:
    """Render one record value as CSV cell text (before quoting)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int | float):
        return json.dumps(value)
    if isinstance(value, Mapping | list | tuple):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def escape_cell(text: str) -> str:
    """Quote a cell only when it holds a comma, quote or line break."""
    if any(trigger in text for trigger in QUOTE_TRIGGERS):
        return '"' + text.replace('"', '""') + '"'
    return text


def _join(cells: Sequence[str]) -> str:
    return ",".join(escape_cell(cell) for cell in cells)


def build_document(records: Sequence[Mapping[str, Any]]) -> CsvDocument:
    """
    Build a CsvDocument whose columns are the sorted union of record keys.

    Column order depends only on the key set, never on record order or
    per-record insertion order.
    """
    if not records:
        raise EmptyInputError("No records to serialize")

    columns = sorted({key for record in records for key in record})
    rows = [
        [format_value(record[col]) if col in record else "" for col in columns]
        for record in records
    ]
    return CsvDocument(columns=columns, rows=rows)


def serialize_records(records: Sequence[Mapping[str, Any]]) -> str:
    """Serialize records to CSV text with a trailing newline."""
    return build_document(records).to_text()
