"""Value serialization for widget payloads."""

import array
import dataclasses
import datetime
import decimal
import enum
import itertools
import json
import logging
import math
import reprlib
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np
import pandas as pd

from .config import DEFAULT_LIMIT, MAX_DEPTH
from .tables import LogicalType, TabularData, as_tabular, is_tabular

logger = logging.getLogger(__name__)

# Python refuses to convert ints longer than this to text, so json.dumps would fail.
MAX_INT_DIGITS = 4300
MAX_INT_BITS = int((MAX_INT_DIGITS - 1) * math.log2(10))


class ValueKind(enum.Enum):
    """Shape of a runtime value, in dispatch order."""

    TABULAR = "tabular"
    FLOAT = "float"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    DECIMAL = "decimal"
    SEQUENCE = "sequence"
    RECORD = "record"
    MAPPING = "mapping"
    JSON = "json"
    OTHER = "other"


CONTAINER_KINDS: frozenset[ValueKind] = frozenset(
    {ValueKind.TABULAR, ValueKind.SEQUENCE, ValueKind.RECORD, ValueKind.MAPPING}
)


def value_kind(value: Any) -> ValueKind:
    """Classify a value; the first matching kind wins.

    Tables are checked before sequences because some table types are also
    iterable, and ``bool`` is kept out of INTEGER because it subclasses ``int``.
    """
    result = ValueKind.OTHER

    if is_tabular(value):
        result = ValueKind.TABULAR

    elif isinstance(value, (float, np.floating)):
        result = ValueKind.FLOAT

    elif (isinstance(value, int) and not isinstance(value, bool)) or isinstance(value, np.integer):
        result = ValueKind.INTEGER

    elif isinstance(value, (bool, np.bool_)):
        result = ValueKind.BOOLEAN

    elif isinstance(value, decimal.Decimal):
        result = ValueKind.DECIMAL

    elif isinstance(value, (array.array, np.ndarray, pd.Series, pd.Index)) or (
        isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray, memoryview, tuple))
    ):
        result = ValueKind.SEQUENCE

    elif isinstance(value, tuple) or (dataclasses.is_dataclass(value) and not isinstance(value, type)):
        result = ValueKind.RECORD

    elif isinstance(value, Mapping):
        result = ValueKind.MAPPING

    elif value is None or isinstance(value, str):
        result = ValueKind.JSON

    return result


def string_form(value: Any) -> str:
    """Return the string used for map keys and unrecognized values."""
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    try:
        return str(value)
    except Exception:
        logger.debug("str() failed for %s, using object repr", type(value).__name__, exc_info=True)
        return object.__repr__(value)


def serialize_value(value: Any, limit: int = DEFAULT_LIMIT) -> Any:
    """Convert a runtime value into JSON-friendly primitives.

    ``limit`` bounds the number of rows exported for tables, at any nesting
    level. The conversion never raises: values without a JSON shape become
    their string form.
    """
    return _serialize(value, limit, 0)


def _normalize_scalar(value: Any) -> Any:
    """Turn pandas/numpy missing markers into None and numpy datetimes into Timestamps."""
    if isinstance(value, np.ndarray) and value.ndim == 0:
        value = value[()]
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    if isinstance(value, np.datetime64):
        return pd.Timestamp(value)
    return value


def _serialize(value: Any, limit: int, depth: int) -> Any:
    value = _normalize_scalar(value)
    kind = value_kind(value)
    if kind is ValueKind.TABULAR:
        # repr() of an engine table may run its query.
        logger.debug("Serializing %s", type(value).__name__)
    else:
        logger.debug("Serializing %r", value)

    if kind in CONTAINER_KINDS and depth >= MAX_DEPTH:
        logger.warning("Nesting deeper than %d levels, truncating %s to its repr", MAX_DEPTH, type(value).__name__)
        if kind is ValueKind.TABULAR:
            return f"<{type(value).__name__}>"
        return reprlib.repr(value)

    result: Any

    if kind is ValueKind.TABULAR:
        result = _export_table(as_tabular(value), limit, depth)

    elif kind is ValueKind.FLOAT:
        result = _float_number(value)

    elif kind is ValueKind.INTEGER:
        result = _integer_number(int(value))

    elif kind is ValueKind.BOOLEAN:
        result = bool(value)

    elif kind is ValueKind.DECIMAL:
        result = _decimal_number(value)

    elif kind is ValueKind.SEQUENCE:
        result = [_serialize(item, limit, depth + 1) for item in value]

    elif kind is ValueKind.RECORD:
        result = [_serialize(item, limit, depth + 1) for item in _record_fields(value)]

    elif kind is ValueKind.MAPPING:
        result = {string_form(key): _serialize(val, limit, depth + 1) for key, val in value.items()}

    elif kind is ValueKind.JSON:
        result = value

    else:
        result = string_form(value)

    return result


def _float_number(value: Any) -> float | None:
    """Widen to a Python float; NaN and infinities have no JSON form."""
    result = float(value)
    return result if math.isfinite(result) else None


def _integer_number(value: int) -> int | None:
    """Keep ints exact unless they are too long to encode as JSON text."""
    if value.bit_length() > MAX_INT_BITS:
        return None
    return value


def _decimal_number(value: decimal.Decimal) -> int | float | None:
    """Exact int for integral decimals of encodable size, float otherwise."""
    if not value.is_finite():
        return None
    if value.adjusted() < MAX_INT_DIGITS - 1 and value == value.to_integral_value():
        return int(value)
    return _float_number(value)


def _record_fields(value: Any) -> list[Any]:
    """Positional field values of a tuple or dataclass instance."""
    if isinstance(value, tuple):
        return list(value)
    return [getattr(value, field.name) for field in dataclasses.fields(value)]


def export_table(table: TabularData | Any, limit: int = DEFAULT_LIMIT) -> dict[str, Any]:
    """Export a table as ``{columns, columnTypes, index, data}``.

    At most ``limit`` rows are pulled from the source, in its native order.
    Each row is laid out in column order and every cell goes through
    :func:`serialize_value`; cells a row cannot supply become ``None``.
    Engine tables (DuckDB relations, polars/pandas frames) are accepted too.
    """
    source = as_tabular(table)
    if source is None:
        raise TypeError(f"not a table: {type(table).__name__}")
    return _export_table(source, limit, 0)


def _export_table(table: TabularData, limit: int | None, depth: int) -> dict[str, Any]:
    row_limit = DEFAULT_LIMIT if limit is None else max(0, int(limit))
    columns = list(table.columns)

    declared = list(table.column_types)
    column_types = [
        LogicalType.coerce(declared[position] if position < len(declared) else None).value
        for position in range(len(columns))
    ]

    data: list[list[Any]] = []
    for row in itertools.islice(table.iter_rows(row_limit), row_limit):
        data.append(
            [_serialize(_cell(row, name, position), row_limit, depth + 1) for position, name in enumerate(columns)]
        )

    index = [str(position) for position in range(len(data))]
    logger.debug("Exported %d rows x %d columns (limit %d)", len(data), len(columns), row_limit)

    return {
        "columns": columns,
        "columnTypes": column_types,
        "index": index,
        "data": data,
    }


def _cell(row: Any, name: str, position: int) -> Any:
    """Read a cell by name from keyed rows or by position from positional rows."""
    if isinstance(row, Mapping):
        return row.get(name)
    if isinstance(row, Sequence) and not isinstance(row, (str, bytes, bytearray)):
        return row[position] if position < len(row) else None
    return None


def to_json(value: Any, limit: int = DEFAULT_LIMIT) -> str:
    """Serialize a value and encode it as JSON text."""
    return json.dumps(serialize_value(value, limit), allow_nan=False, ensure_ascii=False)
