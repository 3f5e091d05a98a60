"""JSON serialization of kernel values and tables for declarative widgets."""

from .rows import to_rows
from .serialization import export_table, serialize_value, to_json
from .tables import LogicalType, RecordTable, TabularData, TableValidationError, as_tabular, validate_table

__all__ = [
    "LogicalType",
    "RecordTable",
    "TableValidationError",
    "TabularData",
    "as_tabular",
    "export_table",
    "serialize_value",
    "to_json",
    "to_rows",
    "validate_table",
]
