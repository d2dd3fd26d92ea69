# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course content, assignments and student submissions."""

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    TenantOwnedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from src.infrastructure.database.models.user import User
from src.utils.datetime import utc_now


class ModuleContent(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantOwnedMixin):
    """Course material attached to an allocation."""

    __tablename__ = "module_contents"
    __table_args__ = (
        CheckConstraint("type IN ('COURSE', 'TD', 'TP', 'OTHER')", name="ck_module_contents_type"),
    )

    allocation_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("module_allocations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    link: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )


class Assignment(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantOwnedMixin):
    """Assignment with a submission deadline."""

    __tablename__ = "assignments"

    allocation_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("module_allocations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )


class Submission(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantOwnedMixin):
    """A student's (single, overwritable) answer to an assignment."""

    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint(
            "assignment_id",
            "student_id",
            "owner_tenant_id",
            name="uq_submissions_assignment_student_tenant",
        ),
        CheckConstraint("status IN ('SUBMITTED', 'LATE')", name="ck_submissions_status"),
    )

    assignment_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_url: Mapped[str] = mapped_column(String(500), nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    status: Mapped[str] = mapped_column(String(10), nullable=False)

    student: Mapped[User] = relationship(foreign_keys=[student_id])
