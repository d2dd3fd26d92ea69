# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User administration models.

User creation is a tagged union keyed on role: admins supply a username
and password, teachers and students supply a matricule that doubles as
their username and initial password.
"""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator

from src.models.common import LanguageEnum, UserRole, check_password_length


class AdminCreationRequest(BaseModel):
    """Creation payload for an admin account."""

    role: Literal["ADMIN"]
    full_name: str = Field(min_length=1, max_length=200)
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=6)
    preferred_language: LanguageEnum = LanguageEnum.FR

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_length(v)


class StaffCreationRequest(BaseModel):
    """Creation payload for a teacher or student account."""

    role: Literal["TEACHER", "STUDENT"]
    full_name: str = Field(min_length=1, max_length=200)
    matricule: str = Field(min_length=1, max_length=50)
    class_id: str | None = None
    preferred_language: LanguageEnum = LanguageEnum.FR


UserCreationRequest = Annotated[
    Union[AdminCreationRequest, StaffCreationRequest],
    Field(discriminator="role"),
]


class UserResponse(BaseModel):
    """User details without credentials."""

    model_config = {"from_attributes": True}

    id: str
    role: UserRole
    full_name: str
    username: str | None = None
    matricule: str | None = None
    class_id: str | None = None
    preferred_language: LanguageEnum = LanguageEnum.FR
    first_login: bool
    created_at: datetime | None = None


class UserListResponse(BaseModel):
    """Tenant user listing."""

    items: list[UserResponse]
    total: int


class UpdateStudentClassRequest(BaseModel):
    """Set or clear (null) a student's class."""

    class_id: str | None = None


class AssignStudentsRequest(BaseModel):
    """Students to move into a class."""

    student_ids: list[str] = Field(min_length=1)


class AssignStudentsResponse(BaseModel):
    """Result of a bulk class assignment."""

    message: str
    modified_count: int


class StatsResponse(BaseModel):
    """Tenant dashboard counters."""

    students: int
    teachers: int
    classes: int
    modules: int
    total_users: int


class ImportResponse(BaseModel):
    """Outcome of a CSV user import."""

    message: str
    created: int
    skipped: int
    total: int
