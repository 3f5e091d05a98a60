"""Helpers for resolving and listing dataset files."""

import datetime
from pathlib import Path
from typing import Any

from fastapi import HTTPException

from .config import ALLOWED_EXTENSIONS, DATA_ROOT, SINGLE_FILE


def resolve_data_file(file_name: str | None) -> Path:
    """Resolve a dataset path within the configured data root."""
    if SINGLE_FILE:
        candidate = SINGLE_FILE if not file_name else (DATA_ROOT / file_name).resolve()
        if candidate != SINGLE_FILE:
            raise HTTPException(status_code=400, detail="file does not match DATA_FILE target")
    else:
        if not file_name:
            raise HTTPException(status_code=400, detail="file is required")
        candidate = (DATA_ROOT / file_name).resolve()
        if DATA_ROOT != candidate and DATA_ROOT not in candidate.parents:
            raise HTTPException(status_code=400, detail="file path is outside data directory")

    if candidate.suffix.lower() not in ALLOWED_EXTENSIONS:
        raise HTTPException(status_code=400, detail="unsupported file extension")
    if not candidate.exists() or not candidate.is_file():
        raise HTTPException(status_code=404, detail="file not found")
    return candidate


def list_data_files() -> list[dict[str, Any]]:
    """List readable datasets with their size and modification time."""
    if not DATA_ROOT.exists():
        return []

    files: list[dict[str, Any]] = []
    paths = [SINGLE_FILE] if SINGLE_FILE else sorted(DATA_ROOT.rglob("*"))
    for path in paths:
        if path is None or not path.is_file():
            continue
        if path.suffix.lower() not in ALLOWED_EXTENSIONS:
            continue
        stat = path.stat()
        files.append(
            {
                "name": str(path.relative_to(DATA_ROOT)),
                "size": stat.st_size,
                "modified": datetime.datetime.fromtimestamp(stat.st_mtime).isoformat(),
            }
        )
    return files
