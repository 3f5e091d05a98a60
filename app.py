from typing import Any

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from widget_json.config import DEFAULT_LIMIT, LOG_LEVEL, MAX_LIMIT
from widget_json.db import clamp_limit, load_relation, open_connection, query_relation
from widget_json.files import list_data_files, resolve_data_file
from widget_json.logging_utils import setup_logging
from widget_json.rows import to_rows
from widget_json.serialization import export_table, serialize_value
from widget_json.tables import DuckDBTable, TabularData, TableValidationError, validate_table

setup_logging(LOG_LEVEL)

app = FastAPI(title="Widget JSON")


class QueryRequest(BaseModel):
    file: str
    sql: str
    limit: int | None = None
    row_as_object: bool | None = None


class SerializeRequest(BaseModel):
    value: Any = None
    limit: int | None = None


def export_checked(table: TabularData, limit: int) -> dict[str, Any]:
    """Export a table after rejecting duplicate column names."""
    try:
        validate_table(table)
    except TableValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return export_table(table, limit)


@app.get("/api/config")
async def get_config() -> dict[str, Any]:
    return {"row_limit": DEFAULT_LIMIT, "max_row_limit": MAX_LIMIT}


@app.get("/api/files")
async def list_files() -> dict[str, Any]:
    return {"files": list_data_files()}


@app.get("/api/table")
async def table(
    file: str = Query(...),
    limit: int | None = Query(DEFAULT_LIMIT),
) -> dict[str, Any]:
    path = resolve_data_file(file)
    limit_value = clamp_limit(limit)
    with open_connection() as con:
        exported = export_checked(DuckDBTable(load_relation(con, path)), limit_value)
    return exported


@app.get("/api/rows")
async def rows(
    file: str = Query(...),
    limit: int | None = Query(DEFAULT_LIMIT),
    row_as_object: bool = Query(False),
) -> dict[str, Any]:
    path = resolve_data_file(file)
    limit_value = clamp_limit(limit)
    with open_connection() as con:
        exported = export_checked(DuckDBTable(load_relation(con, path)), limit_value)
    return {
        "file": file,
        "columns": exported["columns"],
        "rows": to_rows(exported, row_as_object),
    }


@app.post("/api/query")
async def run_query(payload: QueryRequest) -> dict[str, Any]:
    path = resolve_data_file(payload.file)
    limit_value = clamp_limit(payload.limit)
    with open_connection() as con:
        relation = query_relation(con, path, payload.sql)
        exported = export_checked(DuckDBTable(relation), limit_value)
    if payload.row_as_object is not None:
        return {**exported, "rows": to_rows(exported, payload.row_as_object)}
    return exported


@app.post("/api/serialize")
async def serialize(payload: SerializeRequest) -> dict[str, Any]:
    limit_value = clamp_limit(payload.limit)
    return {"value": serialize_value(payload.value, limit_value)}
