"""
Test bearer token handling
"""
from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from groupledger.core.auth import create_access_token, decode_access_token, get_current_user_id
from groupledger.core.config import settings


def bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.mark.asyncio
async def test_token_round_trip():
    """A freshly issued token resolves to its subject"""
    token = create_access_token("alice")

    assert await get_current_user_id(bearer(token)) == "alice"


@pytest.mark.asyncio
async def test_expired_token_rejected():
    token = create_access_token("alice", expires_delta=timedelta(minutes=-5))

    with pytest.raises(HTTPException) as exc_info:
        await get_current_user_id(bearer(token))

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_wrong_secret_rejected():
    token = jwt.encode({"sub": "alice"}, "not-the-secret", algorithm=settings.JWT_ALGORITHM)

    with pytest.raises(HTTPException) as exc_info:
        await get_current_user_id(bearer(token))

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_token_without_subject_rejected():
    token = jwt.encode({"role": "admin"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    with pytest.raises(HTTPException) as exc_info:
        await get_current_user_id(bearer(token))

    assert exc_info.value.detail == "Invalid token"


def test_decode_returns_subject():
    assert decode_access_token(create_access_token("bob")) == "bob"
