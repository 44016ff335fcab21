from __future__ import annotations

from typing import Optional

from sqlcliq_engine.engine import ExecutionResult, execute
from sqlcliq_engine.executor import PendingAuth
from sqlcliq_engine.schema import Store
from sqlcliq_engine.storage.catalog import Catalog

DEFAULT_PROMPT = "sql-cliq>"
PASSWORD_PROMPT = "password>"


class SqlCliq:
    def __init__(self, path: Optional[str] = None, current_database: Optional[str] = None):
        self.path = path
        self.catalog = Catalog(path) if path else None
        self.store: Store = self.catalog.load() if self.catalog is not None else {}
        self.current_database = current_database if current_database in self.store else None
        self.pending_auth: Optional[PendingAuth] = None

    @property
    def awaiting_password(self) -> bool:
        return self.pending_auth is not None

    @property
    def prompt(self) -> str:
        if self.pending_auth is not None:
            return PASSWORD_PROMPT
        if self.current_database:
            return f"{self.current_database}>"
        return DEFAULT_PROMPT

    def execute(self, line: str) -> ExecutionResult:
        result = execute(line, self.current_database, self.store, self.pending_auth)
        changed = result.store is not self.store
        self.store = result.store
        self.current_database = result.current_database
        self.pending_auth = result.pending_auth
        if changed and self.catalog is not None:
            self.catalog.save(self.store)
        return result

    def cancel_password(self) -> None:
        self.pending_auth = None

    def close(self) -> None:
        if self.catalog is not None:
            self.catalog.save(self.store)
