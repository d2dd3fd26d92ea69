# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Module catalog and module-to-level allocations."""

from typing import Optional

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    TenantOwnedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class Module(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantOwnedMixin):
    """Catalog definition of a teachable module."""

    __tablename__ = "modules"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Module {self.name}>"


class ModuleAllocation(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantOwnedMixin):
    """Binding of a module to a level and the teachers responsible for it.

    level_id has no foreign key: deleting a level leaves its allocations
    in place with a dangling level reference.
    """

    __tablename__ = "module_allocations"
    __table_args__ = (
        UniqueConstraint(
            "module_id",
            "level_id",
            "owner_tenant_id",
            name="uq_module_allocations_module_level_tenant",
        ),
        Index("ix_module_allocations_teacher_ids", "teacher_ids", postgresql_using="gin"),
    )

    module_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("modules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    level_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    teacher_ids: Mapped[list[str]] = mapped_column(
        ARRAY(UUID(as_uuid=False)),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
    )

    module: Mapped[Module] = relationship()

    def __repr__(self) -> str:
        return f"<ModuleAllocation module={self.module_id} level={self.level_id}>"
