from __future__ import annotations

import re
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Tuple

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
    WhereClause,
)
from .errors import ParseError
from .schema import unquote

CREATE_DATABASE_USAGE = (
    "Invalid CREATE DATABASE syntax. Expected: CREATE DATABASE db_name [WITH PASSWORD 'password'];"
)
CREATE_TABLE_USAGE = (
    "Invalid CREATE TABLE syntax. Expected: CREATE TABLE table_name (column1_def, column2_def, ...);"
)
UNKNOWN_CREATE = (
    "Unknown CREATE command in '{statement}'. Try CREATE DATABASE <name>; or CREATE TABLE <name> (...);"
)
UNKNOWN_SHOW = "Unknown SHOW command in '{statement}'. Try SHOW DATABASES; or SHOW TABLES;"
USE_USAGE = "Invalid USE syntax. Expected: USE db_name;"
USE_MISSING_NAME = "Missing database name for USE command in '{statement}'."
DESCRIBE_USAGE = "Invalid DESCRIBE syntax. Expected: DESCRIBE table_name;"
DESCRIBE_MISSING_NAME = "Missing table name for DESCRIBE command in '{statement}'."
ALTER_USAGE = "Invalid ALTER TABLE syntax. Expected: ALTER TABLE table_name ADD COLUMN column_name column_type;"
RENAME_USAGE = "Invalid RENAME TABLE syntax. Expected: RENAME TABLE old_name TO new_name;"
DROP_USAGE = "Invalid DROP syntax. Expected: DROP TABLE table_name; or DROP DATABASE db_name;"
INSERT_USAGE = "Invalid INSERT syntax. Expected: INSERT INTO table_name [(col1, col2, ...)] VALUES (val1, val2, ...);"
SELECT_USAGE = (
    "Invalid SELECT syntax. Expected: SELECT columns FROM table_name "
    "[WHERE column = value] [ORDER BY column [ASC|DESC]] [LIMIT n];"
)
UPDATE_USAGE = "Invalid UPDATE syntax. Expected: UPDATE table_name SET column = value [, ...] [WHERE column = value];"
DELETE_USAGE = "Invalid DELETE syntax. Expected: DELETE FROM table_name [WHERE column = value];"
HELP_USAGE = "Invalid HELP syntax. Expected: HELP;"
CLEAR_USAGE = "Invalid CLEAR syntax. Expected: CLEAR;"
UNKNOWN_COMMAND = "Unknown command '{verb}' in '{statement}'. Type HELP; for a list of commands."

_TOKEN_RE = re.compile(
    r"""
    (?P<string>'(?:''|[^'])*'|"(?:""|[^"])*"|‘[^’]*’|“[^”]*”)
    |(?P<punct>[(),=*])
    |(?P<word>[^\s(),=*'"‘’“”]+)
    """,
    re.VERBOSE,
)

_CLOSING_QUOTES = {"'": "'", '"': '"', "‘": "’", "“": "”"}


class Token(NamedTuple):
    kind: str
    text: str
    start: int
    end: int


class _ShapeError(ParseError):
    pass


class TokenStream:
    def __init__(self, tokens: Sequence[Token]):
        self.tokens = list(tokens)
        self.pos = 0

    def peek(self) -> Token | None:
        if self.pos >= len(self.tokens):
            return None
        return self.tokens[self.pos]

    def pop(self) -> Token:
        token = self.peek()
        if token is None:
            raise _ShapeError("Unexpected end of statement")
        self.pos += 1
        return token

    def expect(self, expected: str) -> Token:
        token = self.pop()
        if token.kind == "string" or token.text.upper() != expected.upper():
            raise _ShapeError(f"Expected '{expected}', got '{token.text}'")
        return token

    def consume(self, expected: str) -> bool:
        if self.at_keyword(expected):
            self.pos += 1
            return True
        return False

    def at_keyword(self, *keywords: str) -> bool:
        token = self.peek()
        if token is None or token.kind == "string":
            return False
        return token.text.upper() in {keyword.upper() for keyword in keywords}

    def pop_word(self) -> str:
        token = self.pop()
        if token.kind != "word":
            raise _ShapeError(f"Expected a name, got '{token.text}'")
        return token.text

    def pop_value(self) -> str:
        token = self.pop()
        if token.kind == "punct":
            raise _ShapeError(f"Expected a value, got '{token.text}'")
        return token.text


def split_command(command: str) -> Tuple[str, List[str]]:
    parts = command.strip().split()
    if not parts:
        return "", []
    return parts[0].upper(), parts[1:]


def split_statements(line: str) -> List[str]:
    statements: List[str] = []
    current: List[str] = []
    closing_quote: Optional[str] = None
    for ch in line:
        if closing_quote is not None:
            if ch == closing_quote:
                closing_quote = None
        elif ch in _CLOSING_QUOTES:
            closing_quote = _CLOSING_QUOTES[ch]
        elif ch == ";":
            statements.append("".join(current))
            current = []
            continue
        current.append(ch)
    statements.append("".join(current))
    return [stmt.strip() for stmt in statements if stmt.strip()]


def tokenize(sql: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    while pos < len(sql):
        if sql[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_RE.match(sql, pos)
        if match is None:
            snippet = sql[pos : pos + 24]
            raise ParseError(f"Unterminated quoted string near: {snippet!r}")
        tokens.append(Token(match.lastgroup or "word", match.group(0), match.start(), match.end()))
        pos = match.end()
    return tokens


def parse(sql: str) -> Statement:
    cleaned = sql.strip().rstrip(";").strip()
    if not cleaned:
        raise ParseError("Empty SQL statement")

    verb, args = split_command(cleaned)
    # ALTER and RENAME are matched on whitespace-split arguments so column types
    # such as VARCHAR(100) survive verbatim.
    if verb == "ALTER":
        return _parse_alter(args)
    if verb == "RENAME":
        return _parse_rename(args)

    stream = TokenStream(tokenize(cleaned))
    if verb == "CREATE":
        return _parse_create(stream, cleaned)
    if verb == "SHOW":
        return _parse_show(stream, cleaned)
    if verb == "USE":
        return _with_usage(USE_USAGE, _parse_use, stream, cleaned)
    if verb in {"DESCRIBE", "DESC"}:
        return _with_usage(DESCRIBE_USAGE, _parse_describe, stream, cleaned)
    if verb == "DROP":
        return _with_usage(DROP_USAGE, _parse_drop, stream)
    if verb == "INSERT":
        return _with_usage(INSERT_USAGE, _parse_insert, stream)
    if verb == "SELECT":
        return _with_usage(SELECT_USAGE, _parse_select, stream)
    if verb == "UPDATE":
        return _with_usage(UPDATE_USAGE, _parse_update, stream)
    if verb == "DELETE":
        return _with_usage(DELETE_USAGE, _parse_delete, stream)
    if verb == "HELP":
        return _with_usage(HELP_USAGE, _parse_help, stream)
    if verb == "CLEAR":
        return _with_usage(CLEAR_USAGE, _parse_clear, stream)
    raise ParseError(UNKNOWN_COMMAND.format(verb=verb, statement=cleaned))


def _with_usage(usage: str, parse_fn: Callable[..., Statement], *args: Any) -> Statement:
    try:
        return parse_fn(*args)
    except _ShapeError:
        raise ParseError(usage) from None


def _parse_create(stream: TokenStream, sql: str) -> Statement:
    stream.pop()
    if stream.consume("DATABASE"):
        return _with_usage(CREATE_DATABASE_USAGE, _parse_create_database, stream)
    if stream.consume("TABLE"):
        return _with_usage(CREATE_TABLE_USAGE, _parse_create_table, stream, sql)
    raise ParseError(UNKNOWN_CREATE.format(statement=sql))


def _parse_create_database(stream: TokenStream) -> CreateDatabaseStmt:
    name = stream.pop_word()
    password = None
    if stream.consume("WITH"):
        stream.expect("PASSWORD")
        password = unquote(stream.pop_value())
    _assert_consumed(stream)
    return CreateDatabaseStmt(database_name=name, password=password)


def _parse_create_table(stream: TokenStream, sql: str) -> CreateTableStmt:
    name = stream.pop_word()
    open_paren = stream.expect("(")
    close_paren = stream.tokens[-1]
    if close_paren is open_paren or close_paren.kind != "punct" or close_paren.text != ")":
        raise _ShapeError("Column definitions must be enclosed in parentheses")

    depth = 0
    for token in stream.tokens[stream.pos : -1]:
        if token.kind != "punct":
            continue
        if token.text == "(":
            depth += 1
        elif token.text == ")":
            depth -= 1
            if depth < 0:
                raise _ShapeError("Unbalanced parentheses")
    if depth != 0:
        raise _ShapeError("Unbalanced parentheses")

    return CreateTableStmt(table_name=name, columns_definition=sql[open_paren.end : close_paren.start].strip())


def _parse_show(stream: TokenStream, sql: str) -> Statement:
    stream.pop()
    if stream.consume("DATABASES") and stream.peek() is None:
        return ShowDatabasesStmt()
    if stream.consume("TABLES") and stream.peek() is None:
        return ShowTablesStmt()
    raise ParseError(UNKNOWN_SHOW.format(statement=sql))


def _parse_use(stream: TokenStream, sql: str) -> UseDatabaseStmt:
    stream.pop()
    if stream.peek() is None:
        raise ParseError(USE_MISSING_NAME.format(statement=sql))
    name = stream.pop_word()
    _assert_consumed(stream)
    return UseDatabaseStmt(database_name=name)


def _parse_describe(stream: TokenStream, sql: str) -> DescribeTableStmt:
    stream.pop()
    if stream.peek() is None:
        raise ParseError(DESCRIBE_MISSING_NAME.format(statement=sql))
    name = stream.pop_word()
    _assert_consumed(stream)
    return DescribeTableStmt(table_name=name)


def _parse_drop(stream: TokenStream) -> DropTableStmt | DropDatabaseStmt:
    stream.expect("DROP")
    if stream.consume("TABLE"):
        table_name = stream.pop_word()
        _assert_consumed(stream)
        return DropTableStmt(table_name=table_name)
    stream.expect("DATABASE")
    database_name = stream.pop_word()
    _assert_consumed(stream)
    return DropDatabaseStmt(database_name=database_name)


def _parse_alter(args: Sequence[str]) -> AlterTableAddColumnStmt:
    if len(args) < 4 or args[0].upper() != "TABLE" or args[2].upper() != "ADD":
        raise ParseError(ALTER_USAGE)
    rest = list(args[3:])
    if rest[0].upper() == "COLUMN":
        rest = rest[1:]
    if len(rest) < 2:
        raise ParseError(ALTER_USAGE)
    return AlterTableAddColumnStmt(
        table_name=args[1],
        column_name=rest[0],
        column_type=" ".join(rest[1:]).upper(),
    )


def _parse_rename(args: Sequence[str]) -> RenameTableStmt:
    if len(args) != 4 or args[0].upper() != "TABLE" or args[2].upper() != "TO":
        raise ParseError(RENAME_USAGE)
    return RenameTableStmt(table_name=args[1], new_table_name=args[3])


def _parse_insert(stream: TokenStream) -> InsertStmt:
    stream.expect("INSERT")
    stream.expect("INTO")
    table_name = stream.pop_word()

    columns = None
    if stream.consume("("):
        columns = []
        if not stream.consume(")"):
            while True:
                columns.append(stream.pop_word())
                if stream.consume(","):
                    continue
                stream.expect(")")
                break

    stream.expect("VALUES")
    stream.expect("(")
    values: List[str] = []
    if not stream.consume(")"):
        while True:
            values.append(stream.pop_value())
            if stream.consume(","):
                continue
            stream.expect(")")
            break

    _assert_consumed(stream)
    return InsertStmt(table_name=table_name, columns=columns, values=values)


def _parse_select(stream: TokenStream) -> SelectStmt:
    stream.expect("SELECT")
    columns: List[str] = []
    if stream.consume("*"):
        columns = ["*"]
    else:
        while True:
            columns.append(stream.pop_word())
            if stream.consume(","):
                continue
            break

    stream.expect("FROM")
    table_name = stream.pop_word()
    where = _parse_where(stream, "ORDER", "LIMIT")

    order_by = None
    if stream.consume("ORDER"):
        stream.expect("BY")
        col = stream.pop_word()
        direction = "ASC"
        if stream.at_keyword("ASC", "DESC"):
            direction = stream.pop().text.upper()
        order_by = (col, direction)

    limit = None
    if stream.consume("LIMIT"):
        limit = stream.pop_value()

    _assert_consumed(stream)
    return SelectStmt(
        table_name=table_name,
        columns=columns,
        where=where,
        order_by=order_by,
        limit=limit,
    )


def _parse_update(stream: TokenStream) -> UpdateStmt:
    stream.expect("UPDATE")
    table_name = stream.pop_word()
    stream.expect("SET")

    assignments: List[Tuple[str, str]] = []
    while True:
        name = stream.pop_word()
        stream.expect("=")
        assignments.append((name, stream.pop_value()))
        if stream.consume(","):
            continue
        break

    where = _parse_where(stream)
    _assert_consumed(stream)
    return UpdateStmt(table_name=table_name, assignments=assignments, where=where)


def _parse_delete(stream: TokenStream) -> DeleteStmt:
    stream.expect("DELETE")
    stream.expect("FROM")
    table_name = stream.pop_word()
    where = _parse_where(stream)
    _assert_consumed(stream)
    return DeleteStmt(table_name=table_name, where=where)


def _parse_help(stream: TokenStream) -> HelpStmt:
    stream.expect("HELP")
    _assert_consumed(stream)
    return HelpStmt()


def _parse_clear(stream: TokenStream) -> ClearStmt:
    stream.expect("CLEAR")
    _assert_consumed(stream)
    return ClearStmt()


def _parse_where(stream: TokenStream, *stop_keywords: str) -> WhereClause | None:
    if not stream.consume("WHERE"):
        return None

    column = stream.pop_word()
    stream.expect("=")
    literal = stream.pop_value()
    # Only the first equality is evaluated; anything after it up to the next
    # clause keyword is ignored.
    while stream.peek() is not None and not stream.at_keyword(*stop_keywords):
        stream.pop()
    return WhereClause(column=column, literal=literal)


def _assert_consumed(stream: TokenStream) -> None:
    if stream.peek() is not None:
        raise _ShapeError(f"Unexpected token: {stream.peek().text}")
