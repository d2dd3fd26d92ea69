# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic structure models: levels and their classes."""

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    TenantOwnedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class AcademicLevel(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantOwnedMixin):
    """Academic level such as CP1 or M2."""

    __tablename__ = "academic_levels"
    __table_args__ = (
        UniqueConstraint("name", "owner_tenant_id", name="uq_academic_levels_name_tenant"),
        CheckConstraint(
            "type IN ('UNIVERSITY', 'ECOLE_SUPERIEURE')",
            name="ck_academic_levels_type",
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    has_speciality: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    classes: Mapped[list["SchoolClass"]] = relationship(
        back_populates="level",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<AcademicLevel {self.name}>"


class SchoolClass(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantOwnedMixin):
    """Class group inside a level, named {level}[-{speciality}]-{number}."""

    __tablename__ = "classes"
    __table_args__ = (
        UniqueConstraint("name", "owner_tenant_id", name="uq_classes_name_tenant"),
        CheckConstraint("class_number >= 1", name="ck_classes_class_number"),
    )

    level_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("academic_levels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    speciality: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    class_number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    level: Mapped[AcademicLevel] = relationship(back_populates="classes")

    def __repr__(self) -> str:
        return f"<SchoolClass {self.name}>"
