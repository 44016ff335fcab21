from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class WhereClause:
    # Single `column = literal` equality. The literal keeps its quotes so
    # coercion can tell quoted text from bare tokens.
    column: str
    literal: str


@dataclass(frozen=True)
class CreateDatabaseStmt:
    database_name: str
    password: Optional[str] = None


@dataclass(frozen=True)
class ShowDatabasesStmt:
    pass


@dataclass(frozen=True)
class UseDatabaseStmt:
    database_name: str


@dataclass(frozen=True)
class DropDatabaseStmt:
    database_name: str


@dataclass(frozen=True)
class CreateTableStmt:
    table_name: str
    columns_definition: str


@dataclass(frozen=True)
class ShowTablesStmt:
    pass


@dataclass(frozen=True)
class DescribeTableStmt:
    table_name: str


@dataclass(frozen=True)
class AlterTableAddColumnStmt:
    table_name: str
    column_name: str
    column_type: str


@dataclass(frozen=True)
class RenameTableStmt:
    table_name: str
    new_table_name: str


@dataclass(frozen=True)
class DropTableStmt:
    table_name: str


@dataclass(frozen=True)
class InsertStmt:
    table_name: str
    columns: Optional[Sequence[str]]
    values: Sequence[str]


@dataclass(frozen=True)
class SelectStmt:
    table_name: str
    columns: Sequence[str]
    where: Optional[WhereClause] = None
    order_by: Optional[Tuple[str, str]] = None
    limit: Optional[str] = None


@dataclass(frozen=True)
class UpdateStmt:
    table_name: str
    assignments: Sequence[Tuple[str, str]]
    where: Optional[WhereClause] = None


@dataclass(frozen=True)
class DeleteStmt:
    table_name: str
    where: Optional[WhereClause] = None


@dataclass(frozen=True)
class HelpStmt:
    pass


@dataclass(frozen=True)
class ClearStmt:
    pass


Statement = (
    CreateDatabaseStmt
    | ShowDatabasesStmt
    | UseDatabaseStmt
    | DropDatabaseStmt
    | CreateTableStmt
    | ShowTablesStmt
    | DescribeTableStmt
    | AlterTableAddColumnStmt
    | RenameTableStmt
    | DropTableStmt
    | InsertStmt
    | SelectStmt
    | UpdateStmt
    | DeleteStmt
    | HelpStmt
    | ClearStmt
)
