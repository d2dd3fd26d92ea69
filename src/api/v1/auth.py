# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API endpoints.

This module provides endpoints for user authentication:
- POST /login - Log in with a username or matricule
- POST /register-admin - Register a new institution admin
- POST /change-password - Change the caller's password
- GET /me - Get the caller's profile
- PUT /me/language - Update the caller's preferred language

Teachers and students log in with their matricule; their initial
password is the matricule itself and must be changed on first login.

Example:
    POST /api/v1/auth/login
    Body:
        {"username": "20241000", "password": "20241000"}
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    get_db,
    get_jwt_manager,
    get_password_hasher,
    require_auth,
)
from src.api.middleware.auth import CurrentUser
from src.api.middleware.rate_limit import auth_limit, limiter
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.auth.service import AuthService
from src.domains.identity.service import (
    DuplicateIdentityError,
    IdentityService,
    InvalidCredentialsError,
    InvalidOldPasswordError,
    InvalidPasswordError,
    UserNotFoundError,
)
from src.models.auth import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileResponse,
    RegisterAdminRequest,
    TokenResponse,
    UpdateLanguageRequest,
)
from src.models.common import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(
    db: AsyncSession,
    hasher: PasswordHasher,
    jwt_manager: JWTManager,
) -> AuthService:
    """Get auth service instance.

    Args:
        db: Database session.
        hasher: Password hasher.
        jwt_manager: JWT manager.

    Returns:
        Configured AuthService instance.
    """
    return AuthService(IdentityService(db, hasher), jwt_manager)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
    description="Authenticate with a username (admins) or matricule (teachers, students).",
)
@limiter.limit(auth_limit)
async def login(
    request: Request,
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> TokenResponse:
    """Authenticate and return a bearer token.

    Raises:
        HTTPException: 401 if the credentials do not match any account.
    """
    service = _get_service(db, hasher, jwt_manager)

    try:
        return await service.login(data)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )


@router.post(
    "/register-admin",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register institution admin",
    description="Create a new institution (tenant) owned by the registering admin.",
)
@limiter.limit(auth_limit)
async def register_admin(
    request: Request,
    data: RegisterAdminRequest,
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> TokenResponse:
    """Register a tenant root admin and return its token.

    Raises:
        HTTPException: 409 if the username is already registered, 400 if
            the password is too long.
    """
    service = _get_service(db, hasher, jwt_manager)

    try:
        return await service.register_admin(data)
    except DuplicateIdentityError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
    except InvalidPasswordError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.post(
    "/change-password",
    response_model=MessageResponse,
    summary="Change password",
    description="Change the caller's password. The old password is not required on first login.",
)
async def change_password(
    data: ChangePasswordRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> MessageResponse:
    """Change the caller's password.

    Raises:
        HTTPException: 400 if the old password is wrong or the new one is
            too long, 404 if the account is gone.
    """
    service = IdentityService(db, hasher)

    try:
        await service.change_password(
            user_id=current_user.id,
            new_password=data.new_password,
            old_password=data.old_password,
        )
    except (InvalidOldPasswordError, InvalidPasswordError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    return MessageResponse(message="Password updated successfully")


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get current user",
)
async def get_me(
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Return the caller's profile."""
    service = IdentityService(db)

    try:
        user = await service.get_profile(current_user.id)
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    return ProfileResponse.model_validate(user)


@router.put(
    "/me/language",
    response_model=ProfileResponse,
    summary="Update preferred language",
)
async def update_language(
    data: UpdateLanguageRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Update the caller's preferred interface language."""
    service = IdentityService(db)

    try:
        user = await service.update_language(current_user.id, data.preferred_language)
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    return ProfileResponse.model_validate(user)
