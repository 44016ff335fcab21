from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from typing import Optional, Tuple

from .errors import AccessDeniedError

HASH_SCHEME = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 200_000
MIN_ITERATIONS = 50_000
SALT_SIZE_BYTES = 16
MIN_PASSWORD_LENGTH = 4


def check_new_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AccessDeniedError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")


def hash_password(password: str, iterations: int = DEFAULT_ITERATIONS) -> str:
    check_new_password(password)
    if iterations < MIN_ITERATIONS:
        raise ValueError(f"Iterations must be >= {MIN_ITERATIONS}")

    salt = secrets.token_bytes(SALT_SIZE_BYTES)
    digest = _derive(password, salt, iterations)
    return "$".join([HASH_SCHEME, str(iterations), _b64(salt), _b64(digest)])


def verify_password(password: str, stored_hash: Optional[str]) -> bool:
    if not password or not stored_hash:
        return False

    parsed = _parse_hash(stored_hash)
    if parsed is None:
        return False
    iterations, salt, expected = parsed
    return hmac.compare_digest(_derive(password, salt, iterations), expected)


def _parse_hash(stored_hash: str) -> Optional[Tuple[int, bytes, bytes]]:
    parts = stored_hash.split("$")
    if len(parts) != 4 or parts[0] != HASH_SCHEME:
        return None
    try:
        iterations = int(parts[1])
        salt = base64.urlsafe_b64decode(parts[2].encode("ascii"))
        expected = base64.urlsafe_b64decode(parts[3].encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        return None
    if iterations <= 0:
        return None
    return iterations, salt, expected


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def _b64(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii")
