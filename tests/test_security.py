"""JWT access token tests.

Covers token creation and verification: round trip, expiry, wrong token
type, missing subject, and a token signed with a different key.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi import HTTPException
from jose import jwt

from src.crm.config import get_settings
from src.crm.core.security import create_access_token, verify_token


# ── Creation ─────────────────────────────────────────────────────────────────


def test_create_access_token_claims():
    """Token carries sub, type=access, exp and iat."""
    token = create_access_token({"sub": "user-1"})
    settings = get_settings()

    payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])

    assert payload["sub"] == "user-1"
    assert payload["type"] == "access"
    assert payload["exp"] > payload["iat"]


def test_create_access_token_does_not_mutate_input():
    data = {"sub": "user-1"}
    create_access_token(data)
    assert data == {"sub": "user-1"}


# ── Verification ─────────────────────────────────────────────────────────────


def test_verify_token_round_trip():
    token = create_access_token({"sub": "user-1"})
    assert verify_token(token)["sub"] == "user-1"


def test_verify_token_expired():
    token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-1))

    with pytest.raises(HTTPException) as exc_info:
        verify_token(token)
    assert exc_info.value.status_code == 401


def test_verify_token_wrong_type():
    token = create_access_token({"sub": "user-1"})

    with pytest.raises(HTTPException) as exc_info:
        verify_token(token, token_type="refresh")
    assert exc_info.value.status_code == 401


def test_verify_token_missing_subject():
    token = create_access_token({"role": "admin"})

    with pytest.raises(HTTPException):
        verify_token(token)


def test_verify_token_foreign_signature():
    settings = get_settings()
    token = jwt.encode(
        {"sub": "user-1", "type": "access"},
        "some-other-secret",
        algorithm=settings.JWT_ALGORITHM,
    )

    with pytest.raises(HTTPException) as exc_info:
        verify_token(token)
    assert exc_info.value.detail == "Could not validate credentials"
