"""Row shaping for the table widget."""

from collections.abc import Mapping
from typing import Any


def to_rows(table: Mapping[str, Any], row_as_object: bool = False) -> list[Any]:
    """Return the rows of an exported table, positional or keyed by column name."""
    data = table.get("data") or []
    if not data:
        return []
    if not row_as_object:
        return list(data)
    columns = list(table.get("columns") or [])
    return [dict(zip(columns, row)) for row in data]
