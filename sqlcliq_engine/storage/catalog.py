from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Mapping

from sqlcliq_engine.errors import StorageError
from sqlcliq_engine.schema import Database, Store
from sqlcliq_engine.storage.codec import deserialize_store, serialize_store

logger = logging.getLogger(__name__)


class Catalog:
    """Whole-store JSON document on disk.

    The engine never performs I/O; hosts load a snapshot here, run statements,
    and save the snapshot back after any call that changed it.
    """

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Store:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as exc:
            raise StorageError(f"Could not read database data from {self.path}") from exc
        if not content.strip():
            return {}
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Could not load database data. File might be corrupted: {self.path}") from exc
        if not isinstance(payload, dict):
            raise StorageError(f"Could not load database data. File might be corrupted: {self.path}")
        store = deserialize_store(payload)
        logger.info("Loaded %d database(s) from %s", len(store), self.path)
        return store

    def save(self, store: Mapping[str, Database]) -> None:
        data = json.dumps(serialize_store(store), indent=2, ensure_ascii=False)
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".sqlcliq-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as exc:
            raise StorageError(f"Could not save database data to {self.path}") from exc
        logger.debug("Saved %d database(s) to %s", len(store), self.path)
