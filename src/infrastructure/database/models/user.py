# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User model for admins, teachers and students."""

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    TenantOwnedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantOwnedMixin):
    """Platform account.

    Teachers and students log in with their matricule as username. Usernames
    and matricules are unique per tenant only, so the same value may exist
    under several admins.
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("username", "owner_tenant_id", name="uq_users_username_tenant"),
        UniqueConstraint("matricule", "owner_tenant_id", name="uq_users_matricule_tenant"),
        CheckConstraint("role IN ('ADMIN', 'TEACHER', 'STUDENT')", name="ck_users_role"),
        CheckConstraint("preferred_language IN ('ar', 'en', 'fr')", name="ck_users_language"),
    )

    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    matricule: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_login: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )
    class_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("classes.id", ondelete="SET NULL", use_alter=True, name="fk_users_class_id"),
        nullable=True,
        index=True,
    )
    preferred_language: Mapped[str] = mapped_column(
        String(2),
        nullable=False,
        default="fr",
        server_default=text("'fr'"),
    )

    @property
    def is_admin(self) -> bool:
        """Check if user is an admin."""
        return self.role == "ADMIN"

    @property
    def is_teacher(self) -> bool:
        """Check if user is a teacher."""
        return self.role == "TEACHER"

    @property
    def is_student(self) -> bool:
        """Check if user is a student."""
        return self.role == "STUDENT"

    @property
    def is_tenant_root(self) -> bool:
        """Check if this account is the root of its own tenant."""
        return self.id is not None and self.id == self.owner_tenant_id

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role})>"
