"""
Tests for password hashing and session token handling
"""

from datetime import timedelta

import pytest

from tripplanner.core.errors import AuthError
from tripplanner.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    issue_session_token,
    verify_password,
)
from tripplanner.core.settings import Settings


@pytest.fixture
def settings():
    return Settings(JWT_SECRET="unit-test-secret")


def test_password_hash_round_trip():
    hashed = get_password_hash("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_verify_password_with_garbage_hash():
    assert verify_password("anything", "not-a-bcrypt-hash") is False


def test_session_token_decodes_to_user(settings):
    token = issue_session_token(42, "ana@example.com", settings)
    identity = decode_access_token(token, settings)
    assert identity.user_id == 42
    assert identity.email == "ana@example.com"


def test_expired_token_is_rejected(settings):
    token = create_access_token({"sub": "42"}, settings, expires_delta=timedelta(seconds=-5))
    with pytest.raises(AuthError):
        decode_access_token(token, settings)


def test_token_signed_with_other_secret_is_rejected(settings):
    token = issue_session_token(42, "ana@example.com", Settings(JWT_SECRET="someone-else"))
    with pytest.raises(AuthError):
        decode_access_token(token, settings)


def test_token_without_subject_is_rejected(settings):
    token = create_access_token({"email": "ana@example.com"}, settings)
    with pytest.raises(AuthError):
        decode_access_token(token, settings)
