# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get authenticated users and enforce role gates
- Get shared service collaborators (JWT manager, password hasher, storage)

Example:
    @router.get("/levels")
    async def list_levels(
        db: AsyncSession = Depends(get_db),
        current_user: CurrentUser = Depends(require_admin),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser, get_current_user
from src.core.config import get_settings
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.infrastructure.database.connection import get_session
from src.infrastructure.storage import LocalFileStorage

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session.

    The session commits when the request succeeds and rolls back on error.

    Yields:
        AsyncSession.
    """
    async with get_session() as session:
        yield session


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Args:
        request: HTTP request.

    Returns:
        CurrentUser.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(request: Request) -> CurrentUser:
    """Require admin user.

    Raises:
        HTTPException: If not authenticated or not admin.
    """
    user = require_auth(request)
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def require_teacher(request: Request) -> CurrentUser:
    """Require teacher user.

    Raises:
        HTTPException: If not a teacher.
    """
    user = require_auth(request)
    if not user.is_teacher:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher access required",
        )
    return user


def require_student(request: Request) -> CurrentUser:
    """Require student user.

    Raises:
        HTTPException: If not a student.
    """
    user = require_auth(request)
    if not user.is_student:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student access required",
        )
    return user


# =========================================================================
# Service Dependencies
# =========================================================================


def get_jwt_manager() -> JWTManager:
    """Get JWT manager instance."""
    return JWTManager(get_settings().jwt)


def get_password_hasher() -> PasswordHasher:
    """Get password hasher configured with the deployment cost factor."""
    return PasswordHasher(rounds=get_settings().security.bcrypt_rounds)


def get_file_storage() -> LocalFileStorage:
    """Get upload storage."""
    return LocalFileStorage(get_settings().storage)

