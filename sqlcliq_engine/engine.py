from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .errors import EngineError
from .executor import Outcome, PendingAuth, execute_statement, resolve_password
from .parser import parse, split_statements
from .schema import Row, Store, unquote

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error: "


@dataclass(frozen=True)
class ExecutionResult:
    store: Store
    current_database: Optional[str]
    output: List[str]
    pending_auth: Optional[PendingAuth] = None
    rows: Optional[List[Row]] = None
    clear_screen: bool = False

    @property
    def errors(self) -> List[str]:
        return [line for line in self.output if line.startswith(ERROR_PREFIX)]


def execute(
    statement_text: str,
    current_database: Optional[str],
    store: Store,
    pending_auth: Optional[PendingAuth] = None,
) -> ExecutionResult:
    """Run one input line against a store snapshot.

    The input is split on semicolons and each statement runs against the
    snapshot produced by the previous one. When `pending_auth` is given the
    whole input is treated as the password for that pending request instead.
    The caller keeps the returned store, current database and pending token
    and passes them back on the next call.
    """
    snapshot = store

    if pending_auth is not None:
        outcome = _guarded(
            lambda: resolve_password(pending_auth, _password_text(statement_text), current_database, snapshot),
            current_database,
            snapshot,
        )
        return ExecutionResult(outcome.store, outcome.current_database, outcome.output)

    text = statement_text.strip()
    if not text or text.startswith("--"):
        return ExecutionResult(snapshot, current_database, [])

    output: List[str] = []
    rows: Optional[List[Row]] = None
    clear_screen = False
    for statement in split_statements(text):
        outcome = _guarded(
            lambda: execute_statement(parse(statement), current_database, snapshot),
            current_database,
            snapshot,
        )
        snapshot = outcome.store
        current_database = outcome.current_database
        if outcome.clear_screen:
            # Output of earlier statements on this line is cleared along with the screen.
            output = []
            clear_screen = True
        output.extend(outcome.output)
        if outcome.rows is not None:
            rows = outcome.rows
        if outcome.pending_auth is not None:
            # The next input line is the password; the rest of this line is dropped.
            return ExecutionResult(snapshot, current_database, output, outcome.pending_auth, rows, clear_screen)

    return ExecutionResult(snapshot, current_database, output, None, rows, clear_screen)


def _guarded(run: Callable[[], Outcome], current_database: Optional[str], store: Store) -> Outcome:
    try:
        outcome = run()
    except EngineError as exc:
        logger.info("Statement rejected: %s", exc)
        return Outcome(store, current_database, [f"{ERROR_PREFIX}{exc}"])
    logger.debug("Statement ok, current database %s", outcome.current_database)
    return outcome


def _password_text(raw: str) -> str:
    text = raw.strip()
    if text.endswith(";"):
        text = text[:-1].rstrip()
    return unquote(text)
