from __future__ import annotations

from typing import Any, Dict, Mapping

from sqlcliq_engine.errors import StorageError
from sqlcliq_engine.schema import ColumnDefinition, Database, Store, Table

_SCALAR_TYPES = (int, float, str, type(None))


def serialize_store(store: Mapping[str, Database]) -> Dict[str, Any]:
    return {
        db_name: {
            "password_hash": database.password_hash,
            "tables": {
                table_name: {
                    "columns_definition": table.columns_definition,
                    "columns": [{"name": col.name, "data_type": col.data_type} for col in table.columns],
                    "rows": [_serialize_row(row) for row in table.rows],
                }
                for table_name, table in database.tables.items()
            },
        }
        for db_name, database in store.items()
    }


def deserialize_store(payload: Mapping[str, Any]) -> Store:
    output: Store = {}
    try:
        for db_name, database in payload.items():
            tables = {
                table_name: Table(
                    columns_definition=str(table["columns_definition"]),
                    columns=tuple(ColumnDefinition(**col) for col in table["columns"]),
                    rows=tuple(dict(row) for row in table.get("rows", [])),
                )
                for table_name, table in database.get("tables", {}).items()
            }
            output[db_name] = Database(tables=tables, password_hash=database.get("password_hash"))
    except (AttributeError, KeyError, TypeError) as exc:
        raise StorageError(f"Malformed store document: {exc}") from exc
    return output


def _serialize_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    for name, value in row.items():
        if isinstance(value, bool) or not isinstance(value, _SCALAR_TYPES):
            raise StorageError(f"Value of type {type(value).__name__} in column '{name}' cannot be stored")
    return dict(row)
