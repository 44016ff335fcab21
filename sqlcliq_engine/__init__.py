from .api import SqlCliq
from .engine import ExecutionResult, execute
from .executor import PendingAuth
from .security import hash_password, verify_password

__all__ = ["ExecutionResult", "PendingAuth", "SqlCliq", "execute", "hash_password", "verify_password"]
