# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for database migrations.

Tests migration execution against a real database.
Requires PostgreSQL to be running.
"""

import os

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from src.infrastructure.database.migrations.runner import (
    MIGRATIONS,
    get_migration_status,
    run_migrations,
)

# Skip all tests if database is not available
pytestmark = [
    pytest.mark.database,
    pytest.mark.skipif(
        not os.environ.get("TEST_DATABASE_URL"),
        reason="TEST_DATABASE_URL not set",
    ),
]


def table_names(sync_conn) -> set[str]:
    return set(inspect(sync_conn).get_table_names())


def unique_constraints(sync_conn, table: str) -> set[str]:
    return {uc["name"] for uc in inspect(sync_conn).get_unique_constraints(table)}


class TestRunner:
    """Tests for the programmatic runner."""

    @pytest.mark.asyncio
    async def test_fresh_database(self, empty_db: str) -> None:
        """Test that every revision is applied to an empty schema."""
        applied = await run_migrations(empty_db)

        assert applied == MIGRATIONS

        status = await get_migration_status(empty_db)
        assert status["current_version"] == MIGRATIONS[-1]
        assert status["is_up_to_date"] is True

    @pytest.mark.asyncio
    async def test_second_run_is_noop(self, empty_db: str) -> None:
        await run_migrations(empty_db)

        assert await run_migrations(empty_db) == []


class TestSchema:
    """Tests for the migrated schema."""

    @pytest.mark.asyncio
    async def test_tables_exist(self, db_engine) -> None:
        async with db_engine.connect() as conn:
            tables = await conn.run_sync(table_names)

        expected_tables = {
            "users",
            "academic_levels",
            "classes",
            "modules",
            "module_allocations",
            "module_contents",
            "assignments",
            "submissions",
        }

        assert expected_tables <= tables

    @pytest.mark.asyncio
    async def test_tenant_scoped_uniqueness(self, db_engine) -> None:
        """Test that identity and name uniqueness is per tenant."""
        async with db_engine.connect() as conn:
            user_constraints = await conn.run_sync(unique_constraints, "users")
            allocation_constraints = await conn.run_sync(unique_constraints, "module_allocations")
            submission_constraints = await conn.run_sync(unique_constraints, "submissions")

        assert {"uq_users_username_tenant", "uq_users_matricule_tenant"} <= user_constraints
        assert "uq_module_allocations_module_level_tenant" in allocation_constraints
        assert "uq_submissions_assignment_student_tenant" in submission_constraints

    @pytest.mark.asyncio
    async def test_role_check_constraint(self, db_engine) -> None:
        async with db_engine.connect() as conn:
            with pytest.raises(IntegrityError):
                await conn.execute(
                    text(
                        "INSERT INTO users (id, owner_tenant_id, role, full_name, password_hash) "
                        "VALUES (:id, :id, 'PARENT', 'X', 'h')"
                    ),
                    {"id": "00000000-0000-0000-0000-000000000001"},
                )
