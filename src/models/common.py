# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enumerations and response models."""

from enum import Enum

from pydantic import BaseModel

# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def fits_bcrypt(password: str) -> bool:
    """Check that a password is within bcrypt's input limit once UTF-8 encoded."""
    return len(password.encode("utf-8")) <= MAX_PASSWORD_BYTES


def check_password_length(password: str) -> str:
    """Validator body shared by request models that carry a new password.

    Raises:
        ValueError: If the password is longer than MAX_PASSWORD_BYTES.
    """
    if not fits_bcrypt(password):
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return password


class UserRole(str, Enum):
    """Account roles."""

    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class LevelType(str, Enum):
    """Kind of institution an academic level belongs to."""

    UNIVERSITY = "UNIVERSITY"
    ECOLE_SUPERIEURE = "ECOLE_SUPERIEURE"


class ContentType(str, Enum):
    """Course material categories."""

    COURSE = "COURSE"
    TD = "TD"
    TP = "TP"
    OTHER = "OTHER"


class SubmissionStatus(str, Enum):
    """Submission timeliness."""

    SUBMITTED = "SUBMITTED"
    LATE = "LATE"


class LanguageEnum(str, Enum):
    """Supported interface languages."""

    AR = "ar"
    EN = "en"
    FR = "fr"


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
