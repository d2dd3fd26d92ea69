# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identity domain package.

This package provides account management functionality including:
- Tenant registration and user creation
- Login and password changes
- Tenant user administration
"""

from src.domains.identity.service import (
    DuplicateIdentityError,
    IdentityService,
    IdentityServiceError,
    InvalidCredentialsError,
    InvalidMatriculeError,
    InvalidOldPasswordError,
    InvalidPasswordError,
    ProtectedUserError,
    UserNotFoundError,
    is_valid_matricule,
)

__all__ = [
    "DuplicateIdentityError",
    "IdentityService",
    "IdentityServiceError",
    "InvalidCredentialsError",
    "InvalidMatriculeError",
    "InvalidOldPasswordError",
    "InvalidPasswordError",
    "ProtectedUserError",
    "UserNotFoundError",
    "is_valid_matricule",
]
