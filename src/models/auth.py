# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication request and response models."""

from pydantic import BaseModel, Field, field_validator

from src.models.common import LanguageEnum, UserRole, check_password_length


class LoginRequest(BaseModel):
    """Login with a username (admins) or matricule (teachers, students)."""

    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)


class RegisterAdminRequest(BaseModel):
    """Self-registration of a new tenant root admin."""

    full_name: str = Field(min_length=1, max_length=200)
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=6)
    preferred_language: LanguageEnum = LanguageEnum.FR

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_length(v)


class ChangePasswordRequest(BaseModel):
    """Password change.

    old_password may be omitted on first login.
    """

    old_password: str | None = None
    new_password: str = Field(min_length=6)

    @field_validator("new_password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_length(v)


class UpdateLanguageRequest(BaseModel):
    """Preferred interface language update."""

    preferred_language: LanguageEnum


class TokenResponse(BaseModel):
    """Profile returned on login or registration, with a bearer token."""

    id: str
    username: str | None
    full_name: str
    role: UserRole
    first_login: bool
    preferred_language: LanguageEnum
    token: str
    token_type: str = "Bearer"
    expires_in: int


class ProfileResponse(BaseModel):
    """Caller profile."""

    model_config = {"from_attributes": True}

    id: str
    username: str | None = None
    full_name: str
    role: UserRole
    matricule: str | None = None
    class_id: str | None = None
    preferred_language: LanguageEnum = LanguageEnum.FR
    first_login: bool
