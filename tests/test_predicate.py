import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlcliq_engine.ast_nodes import WhereClause
from sqlcliq_engine.errors import CoercionError, UnknownObjectError
from sqlcliq_engine.predicate import compile_where
from sqlcliq_engine.schema import Table, parse_column_definitions


def _table():
    parsed = parse_column_definitions("id INT, name VARCHAR(20), price FLOAT")
    return Table(
        columns_definition="id INT, name VARCHAR(20), price FLOAT",
        columns=parsed.columns,
        rows=(
            {"id": 1, "name": "Ann", "price": 2.0},
            {"id": 2, "name": "bob", "price": None},
            {"id": None, "name": None, "price": 3.25},
        ),
    )


def _matching(where):
    table = _table()
    predicate = compile_where(where, table)
    return [row for row in table.rows if predicate(row)]


def test_missing_where_matches_everything():
    assert len(_matching(None)) == 3


def test_numeric_columns_compare_numerically():
    assert _matching(WhereClause("id", "'1'")) == [{"id": 1, "name": "Ann", "price": 2.0}]
    assert _matching(WhereClause("price", "2")) == [{"id": 1, "name": "Ann", "price": 2.0}]


def test_text_columns_compare_case_insensitively():
    assert [row["id"] for row in _matching(WhereClause("name", "'BOB'"))] == [2]
    assert [row["id"] for row in _matching(WhereClause("name", "ann"))] == [1]


def test_column_lookup_is_case_insensitive():
    assert [row["id"] for row in _matching(WhereClause("NAME", "'ann'"))] == [1]


def test_null_literal_matches_null_values():
    assert [row["price"] for row in _matching(WhereClause("id", "NULL"))] == [3.25]


def test_unknown_column_is_an_error():
    with pytest.raises(UnknownObjectError, match=r"Unknown column 'colour' in WHERE clause\."):
        compile_where(WhereClause("colour", "'red'"), _table())


def test_literal_must_fit_column_type():
    with pytest.raises(CoercionError):
        compile_where(WhereClause("id", "'abc'"), _table())
