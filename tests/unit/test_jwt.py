# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for JWT token utilities.

Tests the JWTManager class and token operations.
"""

import time
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from jose import jwt
from pydantic import SecretStr

from src.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)


class TestJWTManager:
    """Tests for JWTManager class."""

    def test_expires_in_is_in_seconds(self, jwt_manager: JWTManager) -> None:
        """Test that expires_in converts minutes to seconds."""
        assert jwt_manager.expires_in == 30 * 60

    def test_decode_access_token_returns_payload(self, jwt_manager: JWTManager) -> None:
        """Test that decode_token returns the claims that were encoded."""
        user_id = str(uuid4())
        tenant_id = str(uuid4())

        token = jwt_manager.create_access_token(
            user_id=user_id,
            role="TEACHER",
            tenant_id=tenant_id,
            preferred_language="ar",
        )
        payload = jwt_manager.decode_token(token)

        assert isinstance(payload, TokenPayload)
        assert payload.sub == user_id
        assert payload.type == "access"
        assert payload.role == "TEACHER"
        assert payload.tenant_id == tenant_id
        assert payload.preferred_language == "ar"
        assert payload.exp - payload.iat == 30 * 60

    def test_tokens_have_unique_jti(self, jwt_manager: JWTManager) -> None:
        """Test that each token carries its own jti."""
        first = jwt_manager.decode_token(
            jwt_manager.create_access_token("u", "ADMIN", "u")
        )
        second = jwt_manager.decode_token(
            jwt_manager.create_access_token("u", "ADMIN", "u")
        )

        assert first.jti != second.jti

    def test_expired_token_raises(self, jwt_settings: MagicMock) -> None:
        """Test that an expired token raises TokenExpiredError."""
        now = int(time.time())
        token = jwt.encode(
            {
                "sub": "u",
                "type": "access",
                "role": "ADMIN",
                "tenant_id": "u",
                "exp": now - 60,
                "iat": now - 120,
                "jti": "x",
            },
            jwt_settings.secret_key.get_secret_value(),
            algorithm="HS256",
        )

        with pytest.raises(TokenExpiredError):
            JWTManager(jwt_settings).decode_token(token)

    def test_token_signed_with_other_secret_is_invalid(
        self, jwt_manager: JWTManager, jwt_settings: MagicMock
    ) -> None:
        """Test that a token signed with a different secret is rejected."""
        other = MagicMock()
        other.secret_key = SecretStr("another-secret")
        other.algorithm = "HS256"
        other.access_token_expire_minutes = 30
        token = JWTManager(other).create_access_token("u", "ADMIN", "u")

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token)

    def test_missing_claims_are_invalid(self, jwt_settings: MagicMock) -> None:
        """Test that a token without role or tenant is rejected."""
        now = int(time.time())
        token = jwt.encode(
            {"sub": "u", "type": "access", "exp": now + 60, "iat": now, "jti": "x"},
            jwt_settings.secret_key.get_secret_value(),
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError):
            JWTManager(jwt_settings).decode_token(token)

    def test_garbage_token_is_invalid(self, jwt_manager: JWTManager) -> None:
        """Test that a malformed token raises InvalidTokenError."""
        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token("not.a.token")

    def test_verify_token(self, jwt_manager: JWTManager) -> None:
        """Test verify_token for valid and invalid tokens."""
        token = jwt_manager.create_access_token("u", "STUDENT", "t")

        assert jwt_manager.verify_token(token) is True
        assert jwt_manager.verify_token("garbage") is False
