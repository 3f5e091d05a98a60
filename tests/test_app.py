import pytest
from fastapi.testclient import TestClient

from app import app


@pytest.fixture
def client():
    return TestClient(app)


def test_config(client):
    response = client.get("/api/config")
    assert response.status_code == 200
    assert response.json() == {"row_limit": 100, "max_row_limit": 1000}


def test_files_lists_datasets(client, data_dir, numbers_csv):
    (data_dir / "notes.txt").write_text("skip me", encoding="utf-8")
    names = [item["name"] for item in client.get("/api/files").json()["files"]]
    assert numbers_csv in names
    assert "notes.txt" not in names


def test_table_exports_csv(client, numbers_csv):
    response = client.get("/api/table", params={"file": numbers_csv, "limit": 10})
    assert response.status_code == 200
    assert response.json() == {
        "columns": ["a", "b", "c"],
        "columnTypes": ["Number", "Number", "Number"],
        "index": ["0", "1", "2"],
        "data": [[1, 2, 3], [4, 5, 6], [7, 8, 9]],
    }


def test_table_honours_limit(client, numbers_csv):
    body = client.get("/api/table", params={"file": numbers_csv, "limit": 2}).json()
    assert body["index"] == ["0", "1"]
    assert body["data"] == [[1, 2, 3], [4, 5, 6]]


def test_rows_keyed_and_positional(client, numbers_csv):
    keyed = client.get("/api/rows", params={"file": numbers_csv, "row_as_object": True}).json()
    assert keyed["rows"][0] == {"a": 1, "b": 2, "c": 3}
    positional = client.get("/api/rows", params={"file": numbers_csv}).json()
    assert positional["rows"][-1] == [7, 8, 9]


def test_query(client, numbers_csv):
    response = client.post(
        "/api/query",
        json={"file": numbers_csv, "sql": "SELECT a, a > 3 AS big FROM data;", "row_as_object": True},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["columns"] == ["a", "big"]
    assert body["columnTypes"] == ["Number", "Boolean"]
    assert body["rows"] == [{"a": 1, "big": False}, {"a": 4, "big": True}, {"a": 7, "big": True}]


@pytest.mark.parametrize(
    "sql",
    ["", "DELETE FROM data", "SELECT 1; SELECT 2", "SELECT missing FROM data"],
)
def test_query_rejects_bad_sql(client, numbers_csv, sql):
    response = client.post("/api/query", json={"file": numbers_csv, "sql": sql})
    assert response.status_code == 400


def test_missing_and_unsupported_files(client, data_dir):
    assert client.get("/api/table", params={"file": "absent.csv"}).status_code == 404
    assert client.get("/api/table", params={"file": "notes.txt"}).status_code == 400
    assert client.get("/api/table", params={"file": "../outside.csv"}).status_code == 400


def test_serialize_is_identity_on_json(client):
    value = {"a": [1, 2.5, None, True, "s", {"b": []}]}
    response = client.post("/api/serialize", json={"value": value})
    assert response.json() == {"value": value}
