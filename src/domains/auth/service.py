# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication service issuing bearer tokens.

This module provides the AuthService that orchestrates:
- Login by username or matricule
- Tenant admin registration
- Token issuance for an authenticated account

Credential checks live in the identity domain; this service only turns
a verified account into a signed access token.

Example:
    >>> auth_service = AuthService(IdentityService(db), jwt_manager)
    >>> response = await auth_service.login(LoginRequest(username="12345", password="12345"))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.domains.auth.jwt import JWTManager
from src.models.auth import LoginRequest, RegisterAdminRequest, TokenResponse

if TYPE_CHECKING:
    from src.domains.identity.service import IdentityService
    from src.infrastructure.database.models import User

logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service for login and registration.

    Attributes:
        _identity: Identity service used to verify and create accounts.
        _jwt_manager: JWT token manager.
    """

    def __init__(self, identity: IdentityService, jwt_manager: JWTManager) -> None:
        """Initialize the authentication service.

        Args:
            identity: Identity service.
            jwt_manager: JWT token manager.
        """
        self._identity = identity
        self._jwt_manager = jwt_manager

    async def login(self, request: LoginRequest) -> TokenResponse:
        """Authenticate and issue a token.

        Raises:
            InvalidCredentialsError: If no account matches.
        """
        user = await self._identity.authenticate(request.username, request.password)
        return self.issue_token(user)

    async def register_admin(self, request: RegisterAdminRequest) -> TokenResponse:
        """Register a tenant root admin and log it in.

        Raises:
            DuplicateIdentityError: If the username is already registered.
        """
        user = await self._identity.register_admin(request)
        return self.issue_token(user)

    def issue_token(self, user: User) -> TokenResponse:
        """Build the login response for an authenticated account."""
        token = self._jwt_manager.create_access_token(
            user_id=user.id,
            role=user.role,
            tenant_id=user.owner_tenant_id,
            preferred_language=user.preferred_language,
        )

        return TokenResponse(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            role=user.role,
            first_login=user.first_login,
            preferred_language=user.preferred_language,
            token=token,
            expires_in=self._jwt_manager.expires_in,
        )
