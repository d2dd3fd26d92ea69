# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Service tests against a real PostgreSQL schema.

Covers behavior that depends on the database: tenant-scoped unique
constraints, array containment queries and concurrent upserts.
"""

import asyncio
import os

import pytest
from sqlalchemy import func, select

from src.domains.academic import AcademicService, ClassNotFoundError
from src.domains.auth.password import PasswordHasher
from src.domains.authorization import Caller
from src.domains.bulk_import import BulkImportService
from src.domains.identity import IdentityService
from src.domains.module import ModuleService
from src.infrastructure.database.models import ModuleAllocation, User
from src.models.academic import LevelCreateRequest, LevelUpdateRequest
from src.models.auth import RegisterAdminRequest
from src.models.common import LevelType
from src.models.module import ModuleCreateRequest

pytestmark = [
    pytest.mark.database,
    pytest.mark.skipif(
        not os.environ.get("TEST_DATABASE_URL"),
        reason="TEST_DATABASE_URL not set",
    ),
]

HASHER = PasswordHasher(rounds=4)


async def register(session, username: str) -> str:
    admin = await IdentityService(session, HASHER).register_admin(
        RegisterAdminRequest(full_name=f"Admin {username}", username=username, password="secret1")
    )
    return admin.id


class TestIdentityIsolation:
    """Tests for identities across tenants."""

    @pytest.mark.asyncio
    async def test_same_matricule_in_two_tenants(self, db_session) -> None:
        """Test that matricules are unique per tenant only."""
        first = await register(db_session, "school-a")
        second = await register(db_session, "school-b")
        importer = BulkImportService(db_session, HASHER)
        rows = [{"fullName": "Amina", "role": "STUDENT", "matricule": "1001"}]

        assert (await importer.import_rows(rows, first)).created == 1
        assert (await importer.import_rows(rows, second)).created == 1
        assert (await importer.import_rows(rows, first)).skipped == 1

    @pytest.mark.asyncio
    async def test_login_with_matricule(self, db_session) -> None:
        tenant = await register(db_session, "school-a")
        await BulkImportService(db_session, HASHER).import_rows(
            [{"fullName": "Prof X", "role": "TEACHER", "matricule": "0042"}], tenant
        )

        user = await IdentityService(db_session, HASHER).authenticate("0042", "0042")

        assert user.role == "TEACHER"
        assert user.first_login is True
        assert user.owner_tenant_id == tenant


class TestAllocations:
    """Tests for allocation storage."""

    @pytest.mark.asyncio
    async def test_concurrent_allocate_keeps_one_row(self, db_session, session_factory) -> None:
        """Test that racing upserts of the same pair converge on one allocation."""
        tenant = await register(db_session, "school-a")
        level, _ = await AcademicService(db_session).create_level(
            LevelCreateRequest(name="L1", type=LevelType.UNIVERSITY, class_count=1), tenant
        )
        module = await ModuleService(db_session).create_module(ModuleCreateRequest(name="Algebra"), tenant)

        async def allocate() -> bool:
            async with session_factory() as session:
                outcome = await ModuleService(session).allocate(module.id, level.id, [], tenant)
                return outcome.created

        results = await asyncio.gather(allocate(), allocate())

        assert sorted(results) == [False, True]
        count = await db_session.scalar(select(func.count()).select_from(ModuleAllocation))
        assert count == 1

    @pytest.mark.asyncio
    async def test_teacher_sees_only_own_allocations(self, db_session) -> None:
        tenant = await register(db_session, "school-a")
        await BulkImportService(db_session, HASHER).import_rows(
            [
                {"fullName": "Prof A", "role": "TEACHER", "matricule": "1"},
                {"fullName": "Prof B", "role": "TEACHER", "matricule": "2"},
            ],
            tenant,
        )
        teachers = await IdentityService(db_session).list_users(tenant)
        by_matricule = {t.matricule: t.id for t in teachers if t.matricule}
        level, _ = await AcademicService(db_session).create_level(
            LevelCreateRequest(name="L1", type=LevelType.UNIVERSITY, class_count=1), tenant
        )
        service = ModuleService(db_session)
        algebra = await service.create_module(ModuleCreateRequest(name="Algebra"), tenant)
        physics = await service.create_module(ModuleCreateRequest(name="Physics"), tenant)
        await service.allocate(algebra.id, level.id, [by_matricule["1"]], tenant)
        await service.allocate(physics.id, level.id, [by_matricule["2"]], tenant)

        listed = await service.list_for_caller(Caller(id=by_matricule["1"], role="TEACHER", tenant_id=tenant))

        assert [a.module_id for a in listed] == [algebra.id]
        assert listed[0].level_name == "L1"


class TestAcademicStructure:
    """Tests for levels and classes."""

    @pytest.mark.asyncio
    async def test_generated_classes_stay_in_their_tenant(self, db_session) -> None:
        """Test that a level's classes are invisible to other tenants."""
        first = await register(db_session, "school-a")
        second = await register(db_session, "school-b")
        service = AcademicService(db_session)

        _, created = await service.create_level(
            LevelCreateRequest(name="CP1", type=LevelType.ECOLE_SUPERIEURE, class_count=3), first
        )

        assert created == 3
        assert [c.name for c in await service.list_classes(first)] == ["CP1-1", "CP1-2", "CP1-3"]
        assert await service.list_classes(second) == []

    @pytest.mark.asyncio
    async def test_delete_level_removes_classes_and_detaches_students(self, db_session) -> None:
        tenant = await register(db_session, "school-a")
        service = AcademicService(db_session)
        level, _ = await service.create_level(
            LevelCreateRequest(name="L1", type=LevelType.UNIVERSITY, class_count=2), tenant
        )
        await BulkImportService(db_session, HASHER).import_rows(
            [
                {"fullName": "Amina", "role": "STUDENT", "matricule": "1001", "className": "L1-1"},
                {"fullName": "Yanis", "role": "STUDENT", "matricule": "1002", "className": "L1-2"},
            ],
            tenant,
        )
        class_ids = [c.id for c in await service.list_classes(tenant)]

        assert await service.delete_level(level.id, tenant) == 2

        for class_id in class_ids:
            with pytest.raises(ClassNotFoundError):
                await service.get_class(class_id, tenant)
        class_of_students = await db_session.scalars(
            select(User.class_id).where(User.owner_tenant_id == tenant, User.role == "STUDENT")
        )
        assert class_of_students.all() == [None, None]

    @pytest.mark.asyncio
    async def test_renamed_level_frees_its_old_class_names(self, db_session) -> None:
        tenant = await register(db_session, "school-a")
        service = AcademicService(db_session)
        level, _ = await service.create_level(
            LevelCreateRequest(name="L1", type=LevelType.UNIVERSITY, class_count=1), tenant
        )

        await service.update_level(level.id, LevelUpdateRequest(name="L2"), tenant)
        await service.create_level(
            LevelCreateRequest(name="L1", type=LevelType.UNIVERSITY, class_count=1), tenant
        )

        assert [c.name for c in await service.list_classes(tenant)] == ["L1-1", "L2-1"]
