"""DuckDB helpers for reading datasets as lazy relations."""

from pathlib import Path

import duckdb
from fastapi import HTTPException

from .config import DEFAULT_LIMIT, MAX_LIMIT


def quote_literal(value: str) -> str:
    """Escape a literal string for safe interpolation into SQL."""
    return "'" + value.replace("'", "''") + "'"


def relation_sql_literal(path: Path) -> str:
    """Return a literal DuckDB relation string for a dataset file."""
    ext = path.suffix.lower()
    path_literal = quote_literal(str(path))
    if ext == ".parquet":
        return f"read_parquet({path_literal})"
    if ext in {".csv", ".tsv"}:
        if ext == ".tsv":
            return f"read_csv_auto({path_literal}, delim='\\t')"
        return f"read_csv_auto({path_literal})"
    if ext in {".json", ".jsonl"}:
        return f"read_json_auto({path_literal})"
    raise HTTPException(status_code=400, detail="unsupported file extension")


def open_connection() -> duckdb.DuckDBPyConnection:
    """Open an in-memory DuckDB connection."""
    return duckdb.connect(database=":memory:")


def load_relation(con: duckdb.DuckDBPyConnection, path: Path) -> duckdb.DuckDBPyRelation:
    """Return a lazy relation over a dataset file; nothing is read until fetched."""
    return con.sql(f"SELECT * FROM {relation_sql_literal(path)}")


def clean_select_sql(sql: str) -> str:
    """Strip a trailing semicolon and accept only a single SELECT/CTE statement."""
    text = (sql or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="sql must not be empty")
    if ";" in text:
        text = text.rstrip(";").strip()
        if ";" in text:
            raise HTTPException(status_code=400, detail="multi-statement sql is not allowed")
    lowered = text.lower()
    if not (lowered.startswith("select") or lowered.startswith("with")):
        raise HTTPException(status_code=400, detail="only SELECT queries are allowed")
    return text


def query_relation(con: duckdb.DuckDBPyConnection, path: Path, sql: str) -> duckdb.DuckDBPyRelation:
    """Expose a dataset as the temp view ``data`` and wrap a user query over it."""
    query = clean_select_sql(sql)
    con.execute(f"CREATE OR REPLACE TEMP VIEW data AS SELECT * FROM {relation_sql_literal(path)}")
    try:
        return con.sql(f"SELECT * FROM ({query}) AS q")
    except duckdb.Error as exc:
        raise HTTPException(status_code=400, detail=f"query failed: {exc}") from exc


def clamp_limit(limit: int | None) -> int:
    """Clamp a requested row limit to configured bounds."""
    if limit is None:
        return DEFAULT_LIMIT
    return max(0, min(MAX_LIMIT, limit))
