# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Every model below the tenant root carries owner_tenant_id, the id of the
admin account that owns it. Admin roots own themselves.
"""

from src.infrastructure.database.models.academic import AcademicLevel, SchoolClass
from src.infrastructure.database.models.base import Base, TenantOwnedMixin, TimestampMixin
from src.infrastructure.database.models.content import Assignment, ModuleContent, Submission
from src.infrastructure.database.models.module import Module, ModuleAllocation
from src.infrastructure.database.models.user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "TenantOwnedMixin",
    "User",
    "AcademicLevel",
    "SchoolClass",
    "Module",
    "ModuleAllocation",
    "ModuleContent",
    "Assignment",
    "Submission",
]
