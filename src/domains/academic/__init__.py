# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic structure domain package.

This package provides level and class management including:
- Level creation with generated classes
- Cascading level deletion
- Student to class assignment
"""

from src.domains.academic.service import (
    AcademicService,
    AcademicServiceError,
    ClassNotFoundError,
    DuplicateClassError,
    DuplicateLevelError,
    LevelNotFoundError,
    NotAStudentError,
    StudentNotFoundError,
    ValidationFailedError,
    build_class_name,
    plan_classes,
)

__all__ = [
    "AcademicService",
    "AcademicServiceError",
    "ClassNotFoundError",
    "DuplicateClassError",
    "DuplicateLevelError",
    "LevelNotFoundError",
    "NotAStudentError",
    "StudentNotFoundError",
    "ValidationFailedError",
    "build_class_name",
    "plan_classes",
]
