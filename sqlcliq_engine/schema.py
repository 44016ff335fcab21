from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import CoercionError

INTEGER_TYPE_PREFIXES = ("INT", "INTEGER", "NUMBER", "BIGINT", "SMALLINT", "TINYINT", "MEDIUMINT")
FLOAT_TYPE_PREFIXES = ("FLOAT", "DOUBLE", "REAL", "DECIMAL", "NUMERIC")

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_COLUMN_FRAGMENT_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)\s+(.+)", re.DOTALL)
_TABLE_CONSTRAINT_RE = re.compile(r"(PRIMARY\s+KEY|FOREIGN\s+KEY|UNIQUE|CHECK|CONSTRAINT)\b", re.IGNORECASE)
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_QUOTE_PAIRS = {"'": "'", '"': '"', "‘": "’", "“": "”"}

Row = Dict[str, Any]


class ColumnKind(Enum):
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"

    @property
    def is_numeric(self) -> bool:
        return self is not ColumnKind.TEXT


def classify_type(data_type: str) -> ColumnKind:
    normalized = data_type.strip().upper()
    if normalized.startswith(INTEGER_TYPE_PREFIXES):
        return ColumnKind.INTEGER
    if normalized.startswith(FLOAT_TYPE_PREFIXES):
        return ColumnKind.FLOAT
    return ColumnKind.TEXT


@dataclass(frozen=True)
class ColumnDefinition:
    name: str
    data_type: str
    kind: ColumnKind = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", classify_type(self.data_type))


@dataclass(frozen=True)
class Table:
    columns_definition: str
    columns: Tuple[ColumnDefinition, ...] = ()
    rows: Tuple[Row, ...] = ()

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def find_column(self, name: str) -> Optional[ColumnDefinition]:
        for column in self.columns:
            if column.name.lower() == name.lower():
                return column
        return None

    def with_rows(self, rows: Tuple[Row, ...]) -> "Table":
        return replace(self, rows=tuple(rows))

    def with_column(self, column: ColumnDefinition) -> "Table":
        definition = f"{column.name} {column.data_type}"
        if self.columns_definition:
            definition = f"{self.columns_definition}, {definition}"
        return Table(
            columns_definition=definition,
            columns=self.columns + (column,),
            rows=tuple({**row, column.name: None} for row in self.rows),
        )


@dataclass(frozen=True)
class Database:
    tables: Mapping[str, Table] = field(default_factory=dict)
    password_hash: Optional[str] = None

    @property
    def protected(self) -> bool:
        return self.password_hash is not None

    def with_table(self, name: str, table: Table) -> "Database":
        return replace(self, tables={**self.tables, name: table})

    def without_table(self, name: str) -> "Database":
        return replace(self, tables={key: value for key, value in self.tables.items() if key != name})


Store = Dict[str, Database]


def with_database(store: Mapping[str, Database], name: str, database: Database) -> Store:
    return {**store, name: database}


def without_database(store: Mapping[str, Database], name: str) -> Store:
    return {key: value for key, value in store.items() if key != name}


def is_valid_identifier(name: str) -> bool:
    return bool(name) and _IDENTIFIER_RE.fullmatch(name) is not None


@dataclass(frozen=True)
class ColumnParseResult:
    columns: Tuple[ColumnDefinition, ...]
    skipped: Tuple[str, ...]


def parse_column_definitions(definition: str) -> ColumnParseResult:
    columns: List[ColumnDefinition] = []
    skipped: List[str] = []
    for fragment in _split_top_level(definition):
        fragment = fragment.strip()
        if not fragment or _TABLE_CONSTRAINT_RE.match(fragment):
            continue
        match = _COLUMN_FRAGMENT_RE.fullmatch(fragment)
        if match is None:
            skipped.append(fragment)
            continue
        columns.append(ColumnDefinition(name=match.group(1), data_type=match.group(2).strip().upper()))
    return ColumnParseResult(columns=tuple(columns), skipped=tuple(skipped))


def _split_top_level(text: str) -> List[str]:
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    closing_quote: Optional[str] = None
    for ch in text:
        if closing_quote is not None:
            if ch == closing_quote:
                closing_quote = None
        elif ch in _QUOTE_PAIRS:
            closing_quote = _QUOTE_PAIRS[ch]
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
        elif ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def unquote(token: str) -> str:
    if len(token) >= 2 and _QUOTE_PAIRS.get(token[0]) == token[-1]:
        quote = token[0]
        inner = token[1:-1]
        if quote in {"'", '"'}:
            inner = inner.replace(quote * 2, quote)
        return inner
    return token


def coerce_literal(token: str, column: ColumnDefinition) -> Any:
    raw = token.strip()
    if raw.upper() == "NULL":
        return None

    text = unquote(raw)
    if column.kind is ColumnKind.INTEGER:
        if _INTEGER_RE.fullmatch(text.strip()) is None:
            raise _invalid_value(text, column)
        return int(text)
    if column.kind is ColumnKind.FLOAT:
        if _FLOAT_RE.fullmatch(text.strip()) is None:
            raise _invalid_value(text, column)
        value = float(text)
        if not math.isfinite(value):
            raise _invalid_value(text, column)
        return value
    return text


def _invalid_value(text: str, column: ColumnDefinition) -> CoercionError:
    return CoercionError(f"Invalid value '{text}' for column '{column.name}' of type {column.data_type}.")
