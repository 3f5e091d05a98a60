"""Tabular sources and their logical column types.

A table handed to the serializer only has to expose ordered column names, a
logical type per column, a row count and row-major access in native order.
Engine tables (DuckDB relations, polars and pandas frames) are wrapped by the
adapters below; anything else can subclass :class:`TabularData` directly.
"""

import abc
import datetime
import decimal
import enum
import itertools
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

import duckdb
import pandas as pd
import polars as pl
from pandas.api import types as pd_types


class LogicalType(enum.Enum):
    """Closed set of column type labels understood by the table widget."""

    DATE = "Date"
    NUMBER = "Number"
    STRING = "String"
    BOOLEAN = "Boolean"
    UNKNOWN = "Unknown"

    @classmethod
    def coerce(cls, value: Any) -> "LogicalType":
        """Return a LogicalType for an enum member or label; anything else is UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class TableValidationError(ValueError):
    """Raised by :func:`validate_table` for tables the widget cannot key by column."""


DUCKDB_DATE_TYPES: set[str] = {
    "DATE",
    "TIMESTAMP",
    "TIMESTAMP_S",
    "TIMESTAMP_MS",
    "TIMESTAMP_NS",
    "TIMESTAMP WITH TIME ZONE",
    "TIMESTAMPTZ",
    "DATETIME",
}
DUCKDB_NUMBER_TYPES: set[str] = {
    "TINYINT",
    "SMALLINT",
    "INTEGER",
    "BIGINT",
    "HUGEINT",
    "UTINYINT",
    "USMALLINT",
    "UINTEGER",
    "UBIGINT",
    "UHUGEINT",
    "INT",
    "FLOAT",
    "REAL",
    "DOUBLE",
    "DECIMAL",
    "NUMERIC",
}
DUCKDB_STRING_TYPES: set[str] = {"VARCHAR", "CHAR", "BPCHAR", "TEXT", "STRING"}
DUCKDB_BOOLEAN_TYPES: set[str] = {"BOOLEAN", "BOOL"}


def logical_type_for_duckdb(type_name: str) -> LogicalType:
    """Map a DuckDB type string (e.g. ``DECIMAL(18,3)``) to a LogicalType."""
    upper = (type_name or "").strip().upper()
    # Nested types keep their element type in the name ("INTEGER[]").
    if upper.endswith("]"):
        return LogicalType.UNKNOWN
    base = upper.split("(", 1)[0].strip()

    result = LogicalType.UNKNOWN
    if base in DUCKDB_DATE_TYPES:
        result = LogicalType.DATE
    elif base in DUCKDB_NUMBER_TYPES:
        result = LogicalType.NUMBER
    elif base in DUCKDB_STRING_TYPES:
        result = LogicalType.STRING
    elif base in DUCKDB_BOOLEAN_TYPES:
        result = LogicalType.BOOLEAN

    return result


def logical_type_for_polars(dtype: Any) -> LogicalType:
    """Map a polars dtype to a LogicalType."""
    if dtype == pl.Boolean:
        return LogicalType.BOOLEAN
    if dtype == pl.Date or dtype == pl.Datetime:
        return LogicalType.DATE
    if dtype.is_numeric():
        return LogicalType.NUMBER
    if dtype == pl.Utf8 or dtype == pl.Categorical or dtype == pl.Enum:
        return LogicalType.STRING
    return LogicalType.UNKNOWN


def logical_type_for_pandas(dtype: Any) -> LogicalType:
    """Map a pandas/numpy dtype to a LogicalType."""
    # bool dtypes also report as numeric, so they are checked first.
    if pd_types.is_bool_dtype(dtype):
        return LogicalType.BOOLEAN
    if pd_types.is_datetime64_any_dtype(dtype):
        return LogicalType.DATE
    if pd_types.is_numeric_dtype(dtype):
        return LogicalType.NUMBER
    if pd_types.is_string_dtype(dtype):
        return LogicalType.STRING
    return LogicalType.UNKNOWN


def logical_type_for_value(value: Any) -> LogicalType:
    """Infer a LogicalType from a single Python cell value."""
    if isinstance(value, bool):
        return LogicalType.BOOLEAN
    if isinstance(value, (int, float, decimal.Decimal)):
        return LogicalType.NUMBER
    if isinstance(value, str):
        return LogicalType.STRING
    if isinstance(value, (datetime.date, datetime.datetime)):
        return LogicalType.DATE
    return LogicalType.UNKNOWN


class TabularData(abc.ABC):
    """Read-only columnar table with named, typed columns and row-major access."""

    @property
    @abc.abstractmethod
    def columns(self) -> list[str]:
        """Column names in table order."""

    @property
    @abc.abstractmethod
    def column_types(self) -> list[LogicalType]:
        """One LogicalType per column, aligned with :attr:`columns`."""

    @property
    @abc.abstractmethod
    def row_count(self) -> int:
        """Total number of rows; may be costly for engine-backed tables."""

    @abc.abstractmethod
    def iter_rows(self, limit: int | None = None) -> Iterator[Mapping[str, Any] | Sequence[Any]]:
        """Yield rows in native order, either keyed by column name or positional.

        ``limit`` is a hint that lets engines avoid materializing extra rows;
        callers still stop pulling once they have what they need.
        """


class RecordTable(TabularData):
    """In-memory table over a sequence of row mappings."""

    def __init__(
        self,
        rows: Sequence[Mapping[str, Any]],
        columns: Sequence[str] | None = None,
        column_types: Sequence[LogicalType | str] | None = None,
    ) -> None:
        self._rows = rows
        self._columns = list(columns) if columns is not None else None
        self._column_types = [LogicalType.coerce(item) for item in column_types] if column_types is not None else None

    @property
    def columns(self) -> list[str]:
        if self._columns is None:
            seen: dict[str, None] = {}
            for row in self._rows:
                for key in row:
                    seen.setdefault(key, None)
            self._columns = list(seen)
        return list(self._columns)

    @property
    def column_types(self) -> list[LogicalType]:
        if self._column_types is None:
            self._column_types = [self._infer_type(name) for name in self.columns]
        return list(self._column_types)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    def iter_rows(self, limit: int | None = None) -> Iterator[Mapping[str, Any]]:
        rows = iter(self._rows) if limit is None else itertools.islice(self._rows, limit)
        yield from rows

    def _infer_type(self, name: str) -> LogicalType:
        for row in self._rows:
            value = row.get(name)
            if value is not None:
                return logical_type_for_value(value)
        return LogicalType.UNKNOWN


class DuckDBTable(TabularData):
    """Adapter for a lazy DuckDB relation; rows are pulled through ``LIMIT``."""

    def __init__(self, relation: duckdb.DuckDBPyRelation) -> None:
        self._relation = relation

    @property
    def columns(self) -> list[str]:
        return list(self._relation.columns)

    @property
    def column_types(self) -> list[LogicalType]:
        return [logical_type_for_duckdb(str(item)) for item in self._relation.types]

    @property
    def row_count(self) -> int:
        row = self._relation.aggregate("count(*)").fetchone()
        if row is None:
            return 0
        return int(row[0])

    def iter_rows(self, limit: int | None = None) -> Iterator[tuple[Any, ...]]:
        relation = self._relation if limit is None else self._relation.limit(limit)
        yield from relation.fetchall()


class PolarsTable(TabularData):
    """Adapter for an eager polars DataFrame."""

    def __init__(self, frame: pl.DataFrame) -> None:
        self._frame = frame

    @property
    def columns(self) -> list[str]:
        return list(self._frame.columns)

    @property
    def column_types(self) -> list[LogicalType]:
        return [logical_type_for_polars(dtype) for dtype in self._frame.dtypes]

    @property
    def row_count(self) -> int:
        return self._frame.height

    def iter_rows(self, limit: int | None = None) -> Iterator[dict[str, Any]]:
        frame = self._frame if limit is None else self._frame.head(limit)
        yield from frame.iter_rows(named=True)


class PandasTable(TabularData):
    """Adapter for a pandas DataFrame; the frame's own index is ignored."""

    def __init__(self, frame: pd.DataFrame) -> None:
        self._frame = frame

    @property
    def columns(self) -> list[str]:
        return [str(name) for name in self._frame.columns]

    @property
    def column_types(self) -> list[LogicalType]:
        return [logical_type_for_pandas(dtype) for dtype in self._frame.dtypes]

    @property
    def row_count(self) -> int:
        return len(self._frame)

    def iter_rows(self, limit: int | None = None) -> Iterator[tuple[Any, ...]]:
        frame = self._frame if limit is None else self._frame.head(limit)
        # Positional rows: column labels may repeat or be non-strings.
        yield from frame.itertuples(index=False, name=None)


TABULAR_TYPES: tuple[type, ...] = (TabularData, duckdb.DuckDBPyRelation, pl.DataFrame, pd.DataFrame)


def is_tabular(value: Any) -> bool:
    """Return True when a value is a table the serializer exports as JSON."""
    return isinstance(value, TABULAR_TYPES)


def as_tabular(value: Any) -> TabularData | None:
    """Wrap a supported engine table in its adapter; None for non-tables."""
    result: TabularData | None = None

    if isinstance(value, TabularData):
        result = value

    elif isinstance(value, duckdb.DuckDBPyRelation):
        result = DuckDBTable(value)

    elif isinstance(value, pl.DataFrame):
        result = PolarsTable(value)

    elif isinstance(value, pd.DataFrame):
        result = PandasTable(value)

    return result


def validate_table(table: TabularData) -> TabularData:
    """Reject tables whose columns cannot key a row record unambiguously."""
    seen: set[str] = set()
    for name in table.columns:
        if not isinstance(name, str):
            raise TableValidationError(f"column name must be a string: {name!r}")
        if name in seen:
            raise TableValidationError(f"duplicate column name: {name!r}")
        seen.add(name)
    return table
