# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the authentication service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domains.auth import AuthService, JWTManager
from src.domains.identity import DuplicateIdentityError, InvalidCredentialsError
from src.infrastructure.database.models import User
from src.models.auth import LoginRequest, RegisterAdminRequest


@pytest.fixture
def identity() -> MagicMock:
    """Create a mock identity service."""
    service = MagicMock()
    service.authenticate = AsyncMock()
    service.register_admin = AsyncMock()
    return service


@pytest.fixture
def auth_service(identity: MagicMock, jwt_manager: JWTManager) -> AuthService:
    return AuthService(identity, jwt_manager)


@pytest.fixture
def student(tenant_id: str) -> User:
    return User(
        id="s1",
        role="STUDENT",
        full_name="Amina K",
        username="1001",
        first_login=True,
        preferred_language="en",
        owner_tenant_id=tenant_id,
    )


class TestLogin:
    """Tests for login."""

    @pytest.mark.asyncio
    async def test_login_issues_tenant_scoped_token(
        self, auth_service, identity, jwt_manager, student, tenant_id
    ) -> None:
        identity.authenticate.return_value = student

        response = await auth_service.login(LoginRequest(username="1001", password="1001"))

        assert response.id == "s1"
        assert response.first_login is True
        assert response.expires_in == 30 * 60
        claims = jwt_manager.decode_token(response.token)
        assert claims.sub == "s1"
        assert claims.role == "STUDENT"
        assert claims.tenant_id == tenant_id
        assert claims.preferred_language == "en"

    @pytest.mark.asyncio
    async def test_login_failure_propagates(self, auth_service, identity) -> None:
        identity.authenticate.side_effect = InvalidCredentialsError("Invalid credentials")

        with pytest.raises(InvalidCredentialsError):
            await auth_service.login(LoginRequest(username="x", password="y"))


class TestRegisterAdmin:
    """Tests for tenant admin registration."""

    @pytest.mark.asyncio
    async def test_root_admin_token_names_itself_as_tenant(
        self, auth_service, identity, jwt_manager
    ) -> None:
        admin = User(
            id="a1",
            role="ADMIN",
            full_name="Root",
            username="root",
            first_login=False,
            preferred_language="fr",
            owner_tenant_id="a1",
        )
        identity.register_admin.return_value = admin

        response = await auth_service.register_admin(
            RegisterAdminRequest(full_name="Root", username="root", password="secret1")
        )

        assert jwt_manager.decode_token(response.token).tenant_id == "a1"
        assert response.first_login is False

    @pytest.mark.asyncio
    async def test_duplicate_propagates(self, auth_service, identity) -> None:
        identity.register_admin.side_effect = DuplicateIdentityError("taken")

        with pytest.raises(DuplicateIdentityError):
            await auth_service.register_admin(
                RegisterAdminRequest(full_name="Root", username="root", password="secret1")
            )
