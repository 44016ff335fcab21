import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlcliq_engine import SqlCliq, execute
from sqlcliq_engine.errors import StorageError
from sqlcliq_engine.storage import Catalog, deserialize_store, serialize_store


def _build_store():
    result = execute(
        "CREATE DATABASE shop; USE shop; "
        "CREATE TABLE items (id INT, name VARCHAR(20), price FLOAT, UNIQUE(name)); "
        "INSERT INTO items VALUES (1, 'Pen', 1.5); "
        "INSERT INTO items (id, name) VALUES (2, 'Cap'); "
        "ALTER TABLE items ADD COLUMN stock INT; "
        "UPDATE items SET stock = 3 WHERE id = 1; "
        "CREATE TABLE empty (); "
        "CREATE DATABASE vault WITH PASSWORD 'abcd'",
        None,
        {},
    )
    assert result.errors == []
    return result.store


def _describe_all(store):
    output = []
    for db_name, database in store.items():
        for table_name in database.tables:
            output.extend(execute(f"DESCRIBE {table_name}", db_name, store).output)
    return output


def test_store_round_trips_through_catalog(tmp_path):
    store = _build_store()
    catalog = Catalog(str(tmp_path / "data" / "databases.json"))
    catalog.save(store)

    reloaded = catalog.load()
    assert reloaded == store
    assert _describe_all(reloaded) == _describe_all(store)
    assert list(reloaded["shop"].tables["items"].rows[0]) == ["id", "name", "price", "stock"]


def test_serialized_store_is_plain_json():
    store = _build_store()
    payload = json.loads(json.dumps(serialize_store(store)))
    assert payload["shop"]["password_hash"] is None
    assert payload["vault"]["password_hash"].startswith("pbkdf2_sha256$")
    assert payload["shop"]["tables"]["items"]["rows"][1] == {"id": 2, "name": "Cap", "price": None, "stock": None}
    assert deserialize_store(payload) == store


def test_catalog_missing_or_blank_file_is_empty(tmp_path):
    path = tmp_path / "databases.json"
    assert Catalog(str(path)).load() == {}
    path.write_text("  \n", encoding="utf-8")
    assert Catalog(str(path)).load() == {}


def test_catalog_rejects_corrupt_files(tmp_path):
    path = tmp_path / "databases.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError, match="corrupted"):
        Catalog(str(path)).load()

    path.write_text('{"shop": {"tables": {"t": {"rows": []}}}}', encoding="utf-8")
    with pytest.raises(StorageError, match="Malformed"):
        Catalog(str(path)).load()


def test_session_persists_after_each_change(tmp_path):
    path = str(tmp_path / "databases.json")
    db = SqlCliq(path)
    db.execute("CREATE DATABASE shop; USE shop; CREATE TABLE t (id INT)")
    db.execute("INSERT INTO t VALUES (7)")

    reopened = SqlCliq(path, current_database="shop")
    assert reopened.current_database == "shop"
    assert reopened.execute("SELECT * FROM t").rows == [{"id": 7}]
    assert SqlCliq(path, current_database="gone").current_database is None
