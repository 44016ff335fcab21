from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .ast_nodes import (
    AlterTableAddColumnStmt,
    ClearStmt,
    CreateDatabaseStmt,
    CreateTableStmt,
    DeleteStmt,
    DescribeTableStmt,
    DropDatabaseStmt,
    DropTableStmt,
    HelpStmt,
    InsertStmt,
    RenameTableStmt,
    SelectStmt,
    ShowDatabasesStmt,
    ShowTablesStmt,
    Statement,
    UpdateStmt,
    UseDatabaseStmt,
)
from .errors import AccessDeniedError, CoercionError, ConflictError, ParseError, UnknownObjectError
from .formatting import EMPTY_SET, format_table
from .predicate import compile_where
from .schema import (
    ColumnDefinition,
    ColumnKind,
    Database,
    Row,
    Store,
    Table,
    coerce_literal,
    is_valid_identifier,
    parse_column_definitions,
    with_database,
    without_database,
)
from .security import check_new_password, hash_password, verify_password

logger = logging.getLogger(__name__)

NO_DATABASE_SELECTED = "No database selected. Use 'USE <database_name>;'."
TERMINAL_CLEARED = "Terminal cleared."

HELP_LINES = [
    "Available Commands:",
    "  CREATE DATABASE <db_name> [WITH PASSWORD '<password>'];",
    "  SHOW DATABASES;",
    "  USE <db_name>;",
    "  DROP DATABASE <db_name>;",
    "  CREATE TABLE <table_name> (col1_def, col2_def, ...);",
    "    Example: CREATE TABLE users (id INT, name VARCHAR(100));",
    "  SHOW TABLES;",
    "  DESCRIBE <table_name>; (or DESC <table_name>;)",
    "  ALTER TABLE <table_name> ADD COLUMN <column_name> <type>;",
    "  RENAME TABLE <old_name> TO <new_name>;",
    "  DROP TABLE <table_name>;",
    "  INSERT INTO <table_name> [(col1, ...)] VALUES (val1, ...);",
    "  SELECT <columns|*> FROM <table_name> [WHERE col = value] [ORDER BY col [ASC|DESC]] [LIMIT n];",
    "  UPDATE <table_name> SET col = value [, ...] [WHERE col = value];",
    "  DELETE FROM <table_name> [WHERE col = value];",
    "  CLEAR; -- Clear the terminal",
    "  HELP; -- Show this help message",
    "  -- <your_comment> -- Add a comment (ignored by SQL engine)",
    "Note: Multiple commands can be entered on one line, separated by semicolons.",
]

_LIMIT_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class PendingAuth:
    kind: str
    database: str


@dataclass(frozen=True)
class Outcome:
    store: Store
    current_database: Optional[str]
    output: List[str]
    pending_auth: Optional[PendingAuth] = None
    rows: Optional[List[Row]] = None
    clear_screen: bool = False


def execute_statement(statement: Statement, current_database: Optional[str], store: Store) -> Outcome:
    if isinstance(statement, CreateDatabaseStmt):
        return _create_database(statement, current_database, store)
    if isinstance(statement, ShowDatabasesStmt):
        return _show_databases(current_database, store)
    if isinstance(statement, UseDatabaseStmt):
        return _use_database(statement, current_database, store)
    if isinstance(statement, DropDatabaseStmt):
        return _drop_database(statement, current_database, store)
    if isinstance(statement, HelpStmt):
        return Outcome(store, current_database, list(HELP_LINES))
    if isinstance(statement, ClearStmt):
        return Outcome(store, current_database, [TERMINAL_CLEARED], clear_screen=True)

    # Every remaining statement works inside the selected database.
    database = _current(current_database, store)
    if isinstance(statement, CreateTableStmt):
        return _create_table(statement, current_database, database, store)
    if isinstance(statement, ShowTablesStmt):
        return _show_tables(current_database, database, store)
    if isinstance(statement, DescribeTableStmt):
        return _describe_table(statement, current_database, database, store)
    if isinstance(statement, AlterTableAddColumnStmt):
        return _alter_table_add_column(statement, current_database, database, store)
    if isinstance(statement, RenameTableStmt):
        return _rename_table(statement, current_database, database, store)
    if isinstance(statement, DropTableStmt):
        return _drop_table(statement, current_database, database, store)
    if isinstance(statement, InsertStmt):
        return _insert(statement, current_database, database, store)
    if isinstance(statement, SelectStmt):
        return _select(statement, current_database, database, store)
    if isinstance(statement, UpdateStmt):
        return _update(statement, current_database, database, store)
    if isinstance(statement, DeleteStmt):
        return _delete(statement, current_database, database, store)
    raise ParseError("Unsupported statement")


def resolve_password(
    pending: PendingAuth, password: str, current_database: Optional[str], store: Store
) -> Outcome:
    database = store.get(pending.database)
    if database is None:
        raise UnknownObjectError(f"Unknown database '{pending.database}'.")
    if not database.protected:
        raise AccessDeniedError(f"Database '{pending.database}' is not password protected.")

    if not verify_password(password, database.password_hash):
        logger.info("Rejected password for %s on database %s", pending.kind.upper(), pending.database)
        if pending.kind == "drop":
            raise AccessDeniedError(f"Access denied. Database '{pending.database}' was not dropped.")
        raise AccessDeniedError(f"Access denied for database '{pending.database}'.")

    if pending.kind == "drop":
        return _remove_database(pending.database, current_database, store)
    return Outcome(store, pending.database, [f"Database changed to '{pending.database}'."])


def _create_database(stmt: CreateDatabaseStmt, current_database: Optional[str], store: Store) -> Outcome:
    name = stmt.database_name
    if not is_valid_identifier(name):
        raise ParseError(
            f"Invalid database name '{name}'. Names must start with a letter or underscore, "
            "followed by letters, numbers, or underscores."
        )
    if name in store:
        raise ConflictError(f"Database '{name}' already exists.")

    if stmt.password is None:
        database = Database(tables={})
        message = f"Database '{name}' created successfully."
    else:
        check_new_password(stmt.password)
        database = Database(tables={}, password_hash=hash_password(stmt.password))
        message = f"Database '{name}' created successfully (password protected)."
    return Outcome(with_database(store, name, database), current_database, [message])


def _show_databases(current_database: Optional[str], store: Store) -> Outcome:
    if not store:
        return Outcome(store, current_database, ["Empty set (0 databases)"])
    return Outcome(store, current_database, format_table(["Database"], [[name] for name in store]))


def _use_database(stmt: UseDatabaseStmt, current_database: Optional[str], store: Store) -> Outcome:
    name = stmt.database_name
    database = store.get(name)
    if database is None:
        raise UnknownObjectError(f"Unknown database '{name}'.")
    if database.protected and name != current_database:
        return Outcome(
            store,
            current_database,
            [f"Database '{name}' is password protected.", "Enter password:"],
            pending_auth=PendingAuth(kind="use", database=name),
        )
    return Outcome(store, name, [f"Database changed to '{name}'."])


def _drop_database(stmt: DropDatabaseStmt, current_database: Optional[str], store: Store) -> Outcome:
    name = stmt.database_name
    database = store.get(name)
    if database is None:
        raise UnknownObjectError(f"Unknown database '{name}'.")
    if database.protected and name != current_database:
        return Outcome(
            store,
            current_database,
            [f"Database '{name}' is password protected.", "Enter password to confirm DROP DATABASE:"],
            pending_auth=PendingAuth(kind="drop", database=name),
        )
    return _remove_database(name, current_database, store)


def _remove_database(name: str, current_database: Optional[str], store: Store) -> Outcome:
    next_current = None if current_database == name else current_database
    return Outcome(without_database(store, name), next_current, [f"Database '{name}' dropped."])


def _current(current_database: Optional[str], store: Store) -> Database:
    if not current_database:
        raise UnknownObjectError(NO_DATABASE_SELECTED)
    database = store.get(current_database)
    if database is None:
        raise UnknownObjectError(f"Current database '{current_database}' not found.")
    return database


def _table(database: Database, db_name: str, table_name: str) -> Table:
    table = database.tables.get(table_name)
    if table is None:
        raise UnknownObjectError(f"Unknown table '{table_name}' in database '{db_name}'.")
    return table


def _column(table: Table, table_name: str, column_name: str) -> ColumnDefinition:
    column = table.find_column(column_name)
    if column is None:
        raise UnknownObjectError(f"Unknown column '{column_name}' in table '{table_name}'.")
    return column


def _replace_table(store: Store, db_name: str, database: Database, table_name: str, table: Table) -> Store:
    return with_database(store, db_name, database.with_table(table_name, table))


def _create_table(stmt: CreateTableStmt, db_name: str, database: Database, store: Store) -> Outcome:
    name = stmt.table_name
    if not is_valid_identifier(name):
        raise ParseError(f"Invalid table name '{name}'.")
    if name in database.tables:
        raise ConflictError(f"Table '{name}' already exists in database '{db_name}'.")

    parsed = parse_column_definitions(stmt.columns_definition)
    if not parsed.columns and stmt.columns_definition.strip():
        raise ParseError(f"Could not parse column definitions for table '{name}'.")

    seen: set[str] = set()
    for column in parsed.columns:
        if column.name.lower() in seen:
            raise ConflictError(f"Duplicate column name '{column.name}' in table '{name}'.")
        seen.add(column.name.lower())

    output = []
    for fragment in parsed.skipped:
        logger.warning("Ignored column definition %r for table %s", fragment, name)
        output.append(f"Warning: Ignored unrecognized column definition '{fragment}'.")

    table = Table(columns_definition=stmt.columns_definition, columns=parsed.columns, rows=())
    output.insert(0, f"Table '{name}' created successfully in database '{db_name}'.")
    return Outcome(_replace_table(store, db_name, database, name, table), db_name, output)


def _show_tables(db_name: str, database: Database, store: Store) -> Outcome:
    if not database.tables:
        return Outcome(store, db_name, [f"Empty set (0 tables in {db_name})"])
    return Outcome(store, db_name, format_table([f"Tables_in_{db_name}"], [[name] for name in database.tables]))


def _describe_table(stmt: DescribeTableStmt, db_name: str, database: Database, store: Store) -> Outcome:
    table = _table(database, db_name, stmt.table_name)
    if not table.columns:
        return Outcome(store, db_name, [EMPTY_SET])
    rows = [[column.name, column.data_type] for column in table.columns]
    return Outcome(store, db_name, format_table(["Field", "Type"], rows))


def _alter_table_add_column(
    stmt: AlterTableAddColumnStmt, db_name: str, database: Database, store: Store
) -> Outcome:
    table = _table(database, db_name, stmt.table_name)
    if not is_valid_identifier(stmt.column_name):
        raise ParseError(f"Invalid column name '{stmt.column_name}'.")
    if table.find_column(stmt.column_name) is not None:
        raise ConflictError(f"Duplicate column name '{stmt.column_name}' in table '{stmt.table_name}'.")

    column = ColumnDefinition(name=stmt.column_name, data_type=stmt.column_type)
    new_store = _replace_table(store, db_name, database, stmt.table_name, table.with_column(column))
    return Outcome(new_store, db_name, [f"Table '{stmt.table_name}' altered: column '{column.name}' added."])


def _rename_table(stmt: RenameTableStmt, db_name: str, database: Database, store: Store) -> Outcome:
    table = _table(database, db_name, stmt.table_name)
    if not is_valid_identifier(stmt.new_table_name):
        raise ParseError(f"Invalid table name '{stmt.new_table_name}'.")
    if stmt.new_table_name in database.tables:
        raise ConflictError(f"Table '{stmt.new_table_name}' already exists in database '{db_name}'.")

    renamed = database.without_table(stmt.table_name).with_table(stmt.new_table_name, table)
    return Outcome(
        with_database(store, db_name, renamed),
        db_name,
        [f"Table '{stmt.table_name}' renamed to '{stmt.new_table_name}'."],
    )


def _drop_table(stmt: DropTableStmt, db_name: str, database: Database, store: Store) -> Outcome:
    _table(database, db_name, stmt.table_name)
    new_store = with_database(store, db_name, database.without_table(stmt.table_name))
    return Outcome(new_store, db_name, [f"Table '{stmt.table_name}' dropped."])


def _insert(stmt: InsertStmt, db_name: str, database: Database, store: Store) -> Outcome:
    table = _table(database, db_name, stmt.table_name)
    if stmt.columns is None:
        targets = list(table.columns)
    else:
        targets = [_column(table, stmt.table_name, name) for name in stmt.columns]

    if len(stmt.values) != len(targets):
        raise CoercionError(
            f"Column count doesn't match value count (expected {len(targets)}, got {len(stmt.values)})."
        )

    row: Row = {column.name: None for column in table.columns}
    for column, token in zip(targets, stmt.values):
        row[column.name] = coerce_literal(token, column)

    new_table = table.with_rows(table.rows + (row,))
    new_store = _replace_table(store, db_name, database, stmt.table_name, new_table)
    return Outcome(new_store, db_name, [f"1 row inserted into '{stmt.table_name}'."])


def _select(stmt: SelectStmt, db_name: str, database: Database, store: Store) -> Outcome:
    table = _table(database, db_name, stmt.table_name)
    columns = _projection(table, stmt.table_name, stmt.columns)
    predicate = compile_where(stmt.where, table)

    rows = [row for row in table.rows if predicate(row)]

    if stmt.order_by:
        col_name, direction = stmt.order_by
        column = table.find_column(col_name)
        if column is None:
            raise UnknownObjectError(f"Unknown column '{col_name}' in ORDER BY clause.")
        rows = _sort_rows(rows, column, descending=direction.upper() == "DESC")

    limit = _parse_limit(stmt.limit)
    if limit is not None:
        rows = rows[:limit]

    result = [{name: row.get(name) for name in columns} for row in rows]
    if not result or not columns:
        return Outcome(store, db_name, [EMPTY_SET], rows=result)
    grid = format_table(columns, [[row[name] for name in columns] for row in result])
    return Outcome(store, db_name, grid, rows=result)


def _projection(table: Table, table_name: str, requested: Sequence[str]) -> List[str]:
    if list(requested) == ["*"]:
        return table.column_names

    columns = []
    for name in requested:
        column = table.find_column(name)
        if column is not None:
            columns.append(column.name)
    if not columns:
        missing = ", ".join(requested)
        raise UnknownObjectError(f"Unknown column(s) {missing} in table '{table_name}'.")
    return columns


def _sort_rows(rows: List[Row], column: ColumnDefinition, descending: bool) -> List[Row]:
    name = column.name

    def sort_key(row: Row) -> Tuple[int, Any]:
        value = row.get(name)
        if value is None:
            return (0, 0)
        if column.kind is ColumnKind.TEXT:
            return (1, str(value).lower())
        return (1, value)

    # sorted() stays stable with reverse=True, so equal keys keep insertion order.
    return sorted(rows, key=sort_key, reverse=descending)


def _parse_limit(raw: Optional[str]) -> Optional[int]:
    if raw is None or _LIMIT_RE.fullmatch(raw.strip()) is None:
        return None
    return int(raw)


def _update(stmt: UpdateStmt, db_name: str, database: Database, store: Store) -> Outcome:
    table = _table(database, db_name, stmt.table_name)

    assignments: Dict[str, Any] = {}
    for name, token in stmt.assignments:
        column = _column(table, stmt.table_name, name)
        assignments[column.name] = coerce_literal(token, column)

    predicate = compile_where(stmt.where, table)
    updated = 0
    rows: List[Row] = []
    for row in table.rows:
        if predicate(row):
            rows.append({**row, **assignments})
            updated += 1
        else:
            rows.append(row)

    new_store = _replace_table(store, db_name, database, stmt.table_name, table.with_rows(tuple(rows)))
    return Outcome(new_store, db_name, [f"{updated} row(s) updated"])


def _delete(stmt: DeleteStmt, db_name: str, database: Database, store: Store) -> Outcome:
    table = _table(database, db_name, stmt.table_name)
    predicate = compile_where(stmt.where, table)

    kept = tuple(row for row in table.rows if not predicate(row))
    deleted = len(table.rows) - len(kept)
    new_store = _replace_table(store, db_name, database, stmt.table_name, table.with_rows(kept))
    return Outcome(new_store, db_name, [f"{deleted} row(s) deleted"])
