# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial EduScope schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-01-15
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def _owner_column() -> sa.Column:
    return sa.Column(
        "owner_tenant_id",
        postgresql.UUID(as_uuid=False),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Create EduScope tables."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # =========================================================================
    # IDENTITY
    # =========================================================================

    op.create_table(
        "users",
        _id_column(),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("username", sa.String(100), nullable=True),
        sa.Column("matricule", sa.String(50), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_login", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("class_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column(
            "preferred_language",
            sa.String(2),
            nullable=False,
            server_default=sa.text("'fr'"),
        ),
        *_timestamp_columns(),
        _owner_column(),
        sa.UniqueConstraint("username", "owner_tenant_id", name="uq_users_username_tenant"),
        sa.UniqueConstraint("matricule", "owner_tenant_id", name="uq_users_matricule_tenant"),
        sa.CheckConstraint("role IN ('ADMIN', 'TEACHER', 'STUDENT')", name="ck_users_role"),
        sa.CheckConstraint(
            "preferred_language IN ('ar', 'en', 'fr')",
            name="ck_users_language",
        ),
    )
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_username", "users", ["username"])
    op.create_index("ix_users_class_id", "users", ["class_id"])
    op.create_index("ix_users_owner_tenant_id", "users", ["owner_tenant_id"])

    # =========================================================================
    # ACADEMIC STRUCTURE
    # =========================================================================

    op.create_table(
        "academic_levels",
        _id_column(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column(
            "has_speciality",
            sa.Boolean,
            nullable=False,
            server_default=sa.text("false"),
        ),
        *_timestamp_columns(),
        _owner_column(),
        sa.UniqueConstraint("name", "owner_tenant_id", name="uq_academic_levels_name_tenant"),
        sa.CheckConstraint(
            "type IN ('UNIVERSITY', 'ECOLE_SUPERIEURE')",
            name="ck_academic_levels_type",
        ),
    )
    op.create_index("ix_academic_levels_owner_tenant_id", "academic_levels", ["owner_tenant_id"])

    op.create_table(
        "classes",
        _id_column(),
        sa.Column(
            "level_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("academic_levels.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("speciality", sa.String(100), nullable=True),
        sa.Column("class_number", sa.Integer, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamp_columns(),
        _owner_column(),
        sa.UniqueConstraint("name", "owner_tenant_id", name="uq_classes_name_tenant"),
        sa.CheckConstraint("class_number >= 1", name="ck_classes_class_number"),
    )
    op.create_index("ix_classes_level_id", "classes", ["level_id"])
    op.create_index("ix_classes_owner_tenant_id", "classes", ["owner_tenant_id"])

    # users and classes reference each other
    op.create_foreign_key(
        "fk_users_class_id",
        "users",
        "classes",
        ["class_id"],
        ["id"],
        ondelete="SET NULL",
    )

    # =========================================================================
    # MODULES
    # =========================================================================

    op.create_table(
        "modules",
        _id_column(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        *_timestamp_columns(),
        _owner_column(),
    )
    op.create_index("ix_modules_owner_tenant_id", "modules", ["owner_tenant_id"])

    # level_id has no foreign key; allocations outlive their level
    op.create_table(
        "module_allocations",
        _id_column(),
        sa.Column(
            "module_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("modules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("level_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column(
            "teacher_ids",
            postgresql.ARRAY(postgresql.UUID(as_uuid=False)),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        *_timestamp_columns(),
        _owner_column(),
        sa.UniqueConstraint(
            "module_id",
            "level_id",
            "owner_tenant_id",
            name="uq_module_allocations_module_level_tenant",
        ),
    )
    op.create_index("ix_module_allocations_module_id", "module_allocations", ["module_id"])
    op.create_index("ix_module_allocations_level_id", "module_allocations", ["level_id"])
    op.create_index(
        "ix_module_allocations_owner_tenant_id",
        "module_allocations",
        ["owner_tenant_id"],
    )
    op.create_index(
        "ix_module_allocations_teacher_ids",
        "module_allocations",
        ["teacher_ids"],
        postgresql_using="gin",
    )

    # =========================================================================
    # CONTENT
    # =========================================================================

    op.create_table(
        "module_contents",
        _id_column(),
        sa.Column(
            "allocation_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("module_allocations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(10), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("file_url", sa.String(500), nullable=True),
        sa.Column("link", sa.String(500), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "created_by",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamp_columns(),
        _owner_column(),
        sa.CheckConstraint(
            "type IN ('COURSE', 'TD', 'TP', 'OTHER')",
            name="ck_module_contents_type",
        ),
    )
    op.create_index("ix_module_contents_allocation_id", "module_contents", ["allocation_id"])
    op.create_index("ix_module_contents_owner_tenant_id", "module_contents", ["owner_tenant_id"])

    op.create_table(
        "assignments",
        _id_column(),
        sa.Column(
            "allocation_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("module_allocations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_by",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamp_columns(),
        _owner_column(),
    )
    op.create_index("ix_assignments_allocation_id", "assignments", ["allocation_id"])
    op.create_index("ix_assignments_owner_tenant_id", "assignments", ["owner_tenant_id"])

    op.create_table(
        "submissions",
        _id_column(),
        sa.Column(
            "assignment_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("assignments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "student_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("file_url", sa.String(500), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(10), nullable=False),
        *_timestamp_columns(),
        _owner_column(),
        sa.UniqueConstraint(
            "assignment_id",
            "student_id",
            "owner_tenant_id",
            name="uq_submissions_assignment_student_tenant",
        ),
        sa.CheckConstraint("status IN ('SUBMITTED', 'LATE')", name="ck_submissions_status"),
    )
    op.create_index("ix_submissions_assignment_id", "submissions", ["assignment_id"])
    op.create_index("ix_submissions_student_id", "submissions", ["student_id"])
    op.create_index("ix_submissions_owner_tenant_id", "submissions", ["owner_tenant_id"])


def downgrade() -> None:
    """Drop EduScope tables."""
    op.drop_table("submissions")
    op.drop_table("assignments")
    op.drop_table("module_contents")
    op.drop_table("module_allocations")
    op.drop_table("modules")
    op.drop_constraint("fk_users_class_id", "users", type_="foreignkey")
    op.drop_table("classes")
    op.drop_table("academic_levels")
    op.drop_table("users")
