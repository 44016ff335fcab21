import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlcliq_engine import hash_password, verify_password
from sqlcliq_engine.errors import AccessDeniedError
from sqlcliq_engine.security import check_new_password


def test_hash_and_verify_password_round_trip():
    hashed = hash_password("S3curePass!23")
    assert hashed.startswith("pbkdf2_sha256$")
    assert "S3curePass!23" not in hashed
    assert verify_password("S3curePass!23", hashed)
    assert not verify_password("wrong-password", hashed)


def test_hash_password_is_salted():
    assert hash_password("same-password") != hash_password("same-password")


def test_short_passwords_are_rejected():
    with pytest.raises(AccessDeniedError, match="at least 4 characters"):
        check_new_password("abc")
    with pytest.raises(AccessDeniedError):
        hash_password("abc")
    check_new_password("abcd")


def test_verify_password_rejects_invalid_hash_data():
    assert not verify_password("abc123", "")
    assert not verify_password("abc123", None)
    assert not verify_password("abc123", "pbkdf2_sha256$notanint$abc$def")
    assert not verify_password("abc123", "unknown$200000$abc$def")
    assert not verify_password("abc123", "pbkdf2_sha256$200000$only-three")
