from __future__ import annotations


class EngineError(ValueError):
    """Base class for failures local to one statement."""


class ParseError(EngineError):
    pass


class UnknownObjectError(EngineError):
    pass


class ConflictError(EngineError):
    pass


class CoercionError(EngineError):
    pass


class AccessDeniedError(EngineError):
    pass


class StorageError(RuntimeError):
    pass
