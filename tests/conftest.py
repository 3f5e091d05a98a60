import os
import tempfile
from pathlib import Path

import pytest

# Settings are read at import time, so the data root must exist before any
# widget_json module is imported by a test module.
_DATA_DIR = Path(tempfile.mkdtemp(prefix="widget-json-data-"))
os.environ["DATA_DIR"] = str(_DATA_DIR)
os.environ.pop("DATA_FILE", None)


@pytest.fixture
def data_dir() -> Path:
    return _DATA_DIR


@pytest.fixture
def numbers_csv(data_dir: Path) -> str:
    path = data_dir / "numbers.csv"
    path.write_text("a,b,c\n1,2,3\n4,5,6\n7,8,9\n", encoding="utf-8")
    return path.name
