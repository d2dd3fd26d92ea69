# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain package.

This package provides:
- Password hashing with bcrypt
- JWT access token creation and validation
- Login and tenant registration
"""

from src.domains.auth.jwt import (
    InvalidTokenError,
    JWTError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)
from src.domains.auth.password import PasswordHasher
from src.domains.auth.service import AuthService

__all__ = [
    "AuthService",
    "InvalidTokenError",
    "JWTError",
    "JWTManager",
    "PasswordHasher",
    "TokenExpiredError",
    "TokenPayload",
]
