from __future__ import annotations

from typing import Any, Callable, Optional

from .ast_nodes import WhereClause
from .errors import UnknownObjectError
from .schema import ColumnKind, Row, Table, coerce_literal

Predicate = Callable[[Row], bool]


def match_all(row: Row) -> bool:
    return True


def compile_where(where: Optional[WhereClause], table: Table) -> Predicate:
    """Build a row predicate for a single `column = literal` clause.

    The literal is coerced against the column's declared type once; the
    returned callable can be applied to every row of `table`.
    """
    if where is None:
        return match_all

    column = table.find_column(where.column)
    if column is None:
        raise UnknownObjectError(f"Unknown column '{where.column}' in WHERE clause.")

    target = coerce_literal(where.literal, column)
    name = column.name

    if target is not None and column.kind.is_numeric:
        def numeric_equals(row: Row) -> bool:
            value = row.get(name)
            return _is_number(value) and value == target

        return numeric_equals

    if target is not None and column.kind is ColumnKind.TEXT:
        folded = str(target).lower()

        def text_equals(row: Row) -> bool:
            value = row.get(name)
            return isinstance(value, str) and value.lower() == folded

        return text_equals

    def is_null(row: Row) -> bool:
        return row.get(name) is None

    return is_null


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
