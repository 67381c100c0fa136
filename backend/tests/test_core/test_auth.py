"""
Unit tests for JWT session decoding and role checks
"""
import asyncio
import time

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt
from unittest.mock import patch

from storefront.core.auth import (
    JWT_ALGORITHM,
    TokenUser,
    decode_session_token,
    get_current_user,
    get_current_user_optional,
    require_role,
)
from storefront.core.config import settings

SECRET = "test-secret"


@pytest.fixture(autouse=True)
def auth_secret():
    with patch.object(settings, 'AUTH_SECRET', SECRET):
        yield


def make_token(secret=SECRET, **claims):
    payload = {"sub": "user-1", "email": "buyer@example.com", "role": "customer", "exp": int(time.time()) + 3600}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestDecode:

    def test_valid_token(self):
        payload = decode_session_token(make_token(name="Kim"))

        assert payload["sub"] == "user-1"
        assert payload["name"] == "Kim"

    def test_expired_token(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_session_token(make_token(exp=int(time.time()) - 10))

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token has expired"

    def test_wrong_secret(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_session_token(make_token(secret="other"))

        assert exc_info.value.status_code == 401


class TestDependencies:

    def test_current_user_from_sub(self):
        user = asyncio.run(get_current_user(bearer(make_token(role="distributor"))))

        assert user == TokenUser(id="user-1", email="buyer@example.com", role="distributor")

    def test_missing_credentials(self):
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(get_current_user(None))

        assert exc_info.value.status_code == 401

    def test_payload_without_email_rejected(self):
        with pytest.raises(HTTPException):
            asyncio.run(get_current_user(bearer(make_token(email=None))))

    def test_optional_user_swallows_bad_token(self):
        assert asyncio.run(get_current_user_optional(bearer("not-a-jwt"))) is None

    def test_role_hierarchy(self):
        checker = require_role("distributor")
        admin = TokenUser(id="a", email="a@example.com", role="admin")
        customer = TokenUser(id="c", email="c@example.com", role="customer")

        assert asyncio.run(checker(admin)) is admin
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(checker(customer))
        assert exc_info.value.status_code == 403
