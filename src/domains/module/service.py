# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Module service for the module catalog and its allocations.

This module provides the ModuleService class for:
- Catalog module creation and listing
- Allocation of a module to a level with a teacher set (upsert)
- Bulk allocation across levels with per-level outcomes
- Role-aware allocation listing and gated allocation lookup

An allocation is unique per (module, level, tenant). Allocating the same
pair again replaces its teacher set. Concurrent upserts that race on
insert are resolved by the unique constraint and retried as updates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.authorization import (
    Action,
    Caller,
    ResourceKind,
    ResourceRelation,
    enforce,
)
from src.infrastructure.database.models import (
    AcademicLevel,
    Module,
    ModuleAllocation,
    SchoolClass,
    User,
)
from src.models.module import (
    AllocationResponse,
    ModuleCreateRequest,
    ModuleResponse,
    TeacherSummary,
)

logger = logging.getLogger(__name__)


class ModuleServiceError(Exception):
    """Base exception for module service errors."""

    pass


class ModuleNotFoundError(ModuleServiceError):
    """Raised when a module is missing or owned by another tenant."""

    pass


class AllocationNotFoundError(ModuleServiceError):
    """Raised when an allocation does not exist."""

    pass


class LevelNotFoundError(ModuleServiceError):
    """Raised when the target level is missing or owned by another tenant."""

    pass


class InvalidTeacherError(ModuleServiceError):
    """Raised when an allocation names an account that is not a tenant teacher."""

    pass


class NoClassAssignedError(ModuleServiceError):
    """Raised when a student without a class lists its modules."""

    pass


@dataclass
class AllocationOutcome:
    """Result of a single upsert."""

    allocation: ModuleAllocation
    created: bool


class ModuleService:
    """Service for managing modules and allocations.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize module service.

        Args:
            db: Async database session.
        """
        self._db = db

    # =========================================================================
    # Catalog
    # =========================================================================

    async def create_module(
        self,
        request: ModuleCreateRequest,
        tenant_id: str,
        created_by: str | None = None,
    ) -> Module:
        """Add a module to the tenant catalog."""
        module = Module(
            name=request.name.strip(),
            description=request.description,
            owner_tenant_id=tenant_id,
        )

        self._db.add(module)
        await self._db.commit()
        await self._db.refresh(module)

        logger.info("Created module: %s (%s) by %s", module.name, module.id, created_by)

        return module

    async def list_modules(self, tenant_id: str) -> list[Module]:
        """List the tenant catalog ordered by name."""
        result = await self._db.execute(
            select(Module).where(Module.owner_tenant_id == tenant_id).order_by(Module.name)
        )
        return list(result.scalars().all())

    # =========================================================================
    # Allocation
    # =========================================================================

    async def allocate(
        self,
        module_id: str,
        level_id: str,
        teacher_ids: list[str],
        tenant_id: str,
    ) -> AllocationOutcome:
        """Allocate a module to a level, replacing any previous teacher set.

        Args:
            module_id: Catalog module.
            level_id: Target level.
            teacher_ids: Teachers responsible for the allocation.
            tenant_id: Owning tenant.

        Returns:
            The allocation and whether it was newly created.

        Raises:
            ModuleNotFoundError: If the module is missing or foreign.
            LevelNotFoundError: If the level is missing or foreign.
            InvalidTeacherError: If an id is not a teacher of the tenant.
        """
        await self._get_module(module_id, tenant_id)
        if not await self._existing_level_ids([level_id], tenant_id):
            raise LevelNotFoundError(f"Level {level_id} not found")
        teachers = await self._validate_teachers(teacher_ids, tenant_id)

        outcome = await self._upsert(module_id, level_id, teachers, tenant_id)
        await self._db.commit()
        await self._db.refresh(outcome.allocation)

        logger.info(
            "%s allocation %s: module=%s, level=%s, teachers=%d",
            "Created" if outcome.created else "Replaced",
            outcome.allocation.id,
            module_id,
            level_id,
            len(teachers),
        )

        return outcome

    async def allocate_bulk(
        self,
        module_id: str,
        level_ids: list[str],
        teacher_ids: list[str],
        tenant_id: str,
    ) -> tuple[list[ModuleAllocation], list[dict[str, str]]]:
        """Allocate a module to several levels with the same teachers.

        Each level is upserted independently inside its own savepoint; a
        failing level is reported and does not affect the others.

        Returns:
            Tuple of (allocations written, failures as level_id/reason dicts).

        Raises:
            ModuleNotFoundError: If the module is missing or foreign.
            InvalidTeacherError: If an id is not a teacher of the tenant.
        """
        await self._get_module(module_id, tenant_id)
        teachers = await self._validate_teachers(teacher_ids, tenant_id)

        level_ids = list(dict.fromkeys(level_ids))
        known_levels = await self._existing_level_ids(level_ids, tenant_id)

        allocations: list[ModuleAllocation] = []
        failed: list[dict[str, str]] = []

        for level_id in level_ids:
            if level_id not in known_levels:
                failed.append({"level_id": level_id, "reason": "Level not found"})
                continue
            try:
                outcome = await self._upsert(module_id, level_id, teachers, tenant_id)
                allocations.append(outcome.allocation)
            except SQLAlchemyError as e:
                logger.warning("Allocation of module %s to level %s failed: %s", module_id, level_id, e)
                failed.append({"level_id": level_id, "reason": str(e)})

        await self._db.commit()

        logger.info(
            "Bulk allocation: module=%s, allocated=%d, failed=%d",
            module_id,
            len(allocations),
            len(failed),
        )

        return allocations, failed

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_for_caller(self, caller: Caller) -> list[AllocationResponse]:
        """List the allocations visible to a teacher or student.

        Teachers see allocations listing them. Students see allocations of
        their class's level. Admins see every allocation of the tenant.

        Raises:
            NoClassAssignedError: If a student has no class.
        """
        query = (
            select(ModuleAllocation)
            .options(selectinload(ModuleAllocation.module))
            .where(ModuleAllocation.owner_tenant_id == caller.tenant_id)
        )

        if caller.is_teacher:
            query = query.where(ModuleAllocation.teacher_ids.contains([caller.id]))
        elif caller.is_student:
            level_id = await self._student_level_id(caller)
            if not level_id:
                raise NoClassAssignedError("You are not assigned to a class yet")
            query = query.where(ModuleAllocation.level_id == level_id)

        result = await self._db.execute(query.order_by(ModuleAllocation.created_at))
        return await self.describe(list(result.scalars().all()), caller.tenant_id)

    async def get_allocation(self, allocation_id: str, caller: Caller) -> AllocationResponse:
        """Get allocation details through the access gate.

        Raises:
            AllocationNotFoundError: If the allocation does not exist.
            ResourceNotFoundError: If it belongs to another tenant.
            ForbiddenError: If the caller's role rules deny access.
        """
        allocation = await self.authorize_allocation(allocation_id, caller)
        described = await self.describe([allocation], caller.tenant_id)
        return described[0]

    async def authorize_allocation(
        self,
        allocation_id: str,
        caller: Caller,
        action: Action = Action.READ,
        kind: ResourceKind = ResourceKind.ALLOCATION,
    ) -> ModuleAllocation:
        """Load an allocation and check the caller may act on it.

        Args:
            allocation_id: Allocation to load.
            caller: Authenticated identity.
            action: Requested action.
            kind: Kind of resource hanging off the allocation.

        Returns:
            The allocation.

        Raises:
            AllocationNotFoundError: If the allocation does not exist.
            ResourceNotFoundError: If it belongs to another tenant.
            ForbiddenError: If the caller's role rules deny access.
        """
        result = await self._db.execute(
            select(ModuleAllocation)
            .options(selectinload(ModuleAllocation.module))
            .where(ModuleAllocation.id == allocation_id)
        )
        allocation = result.scalar_one_or_none()
        if not allocation:
            raise AllocationNotFoundError(f"Allocation {allocation_id} not found")

        student_level_id = None
        if caller.is_student and allocation.owner_tenant_id == caller.tenant_id:
            student_level_id = await self._student_level_id(caller)

        enforce(
            caller,
            allocation.owner_tenant_id,
            ResourceRelation(
                kind=kind,
                teacher_ids=frozenset(allocation.teacher_ids or ()),
                level_id=allocation.level_id,
                student_level_id=student_level_id,
            ),
            action,
            resource_name=kind.value.capitalize(),
        )

        return allocation

    async def describe(
        self,
        allocations: list[ModuleAllocation],
        tenant_id: str,
    ) -> list[AllocationResponse]:
        """Resolve level names and teacher names for allocations."""
        if not allocations:
            return []

        level_ids = {a.level_id for a in allocations}
        teacher_ids = {t for a in allocations for t in (a.teacher_ids or ())}

        levels = await self._db.execute(
            select(AcademicLevel.id, AcademicLevel.name).where(
                AcademicLevel.owner_tenant_id == tenant_id,
                AcademicLevel.id.in_(level_ids),
            )
        )
        level_names = {level_id: name for level_id, name in levels.all()}

        teacher_names: dict[str, str] = {}
        if teacher_ids:
            teachers = await self._db.execute(
                select(User.id, User.full_name).where(
                    User.owner_tenant_id == tenant_id,
                    User.id.in_(teacher_ids),
                )
            )
            teacher_names = {user_id: name for user_id, name in teachers.all()}

        return [
            AllocationResponse(
                id=allocation.id,
                module_id=allocation.module_id,
                level_id=allocation.level_id,
                teacher_ids=list(allocation.teacher_ids or ()),
                module=(
                    ModuleResponse.model_validate(allocation.module)
                    if allocation.module is not None
                    else None
                ),
                level_name=level_names.get(allocation.level_id),
                teachers=[
                    TeacherSummary(id=teacher_id, full_name=teacher_names[teacher_id])
                    for teacher_id in allocation.teacher_ids or ()
                    if teacher_id in teacher_names
                ],
            )
            for allocation in allocations
        ]

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _upsert(
        self,
        module_id: str,
        level_id: str,
        teacher_ids: list[str],
        tenant_id: str,
    ) -> AllocationOutcome:
        # Every write runs in its own savepoint; a failure rolls back only this level.
        existing = await self._find_allocation(module_id, level_id, tenant_id)
        if existing:
            return await self._replace_teachers(existing, teacher_ids)

        allocation = ModuleAllocation(
            module_id=module_id,
            level_id=level_id,
            teacher_ids=list(teacher_ids),
            owner_tenant_id=tenant_id,
        )
        try:
            async with self._db.begin_nested():
                self._db.add(allocation)
            return AllocationOutcome(allocation, created=True)
        except IntegrityError:
            # Lost an insert race on the (module, level, tenant) key.
            existing = await self._find_allocation(module_id, level_id, tenant_id)
            if not existing:
                raise
            return await self._replace_teachers(existing, teacher_ids)

    async def _replace_teachers(
        self,
        allocation: ModuleAllocation,
        teacher_ids: list[str],
    ) -> AllocationOutcome:
        async with self._db.begin_nested():
            allocation.teacher_ids = list(teacher_ids)
        return AllocationOutcome(allocation, created=False)

    async def _find_allocation(
        self,
        module_id: str,
        level_id: str,
        tenant_id: str,
    ) -> ModuleAllocation | None:
        result = await self._db.execute(
            select(ModuleAllocation).where(
                ModuleAllocation.module_id == module_id,
                ModuleAllocation.level_id == level_id,
                ModuleAllocation.owner_tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def _get_module(self, module_id: str, tenant_id: str) -> Module:
        result = await self._db.execute(
            select(Module).where(Module.id == module_id, Module.owner_tenant_id == tenant_id)
        )
        module = result.scalar_one_or_none()
        if not module:
            raise ModuleNotFoundError(f"Module {module_id} not found")
        return module

    async def _existing_level_ids(self, level_ids: list[str], tenant_id: str) -> set[str]:
        result = await self._db.execute(
            select(AcademicLevel.id).where(
                AcademicLevel.owner_tenant_id == tenant_id,
                AcademicLevel.id.in_(level_ids),
            )
        )
        return set(result.scalars().all())

    async def _validate_teachers(self, teacher_ids: list[str], tenant_id: str) -> list[str]:
        teacher_ids = list(dict.fromkeys(teacher_ids))
        if not teacher_ids:
            return []

        result = await self._db.execute(
            select(User.id).where(
                User.id.in_(teacher_ids),
                User.role == "TEACHER",
                User.owner_tenant_id == tenant_id,
            )
        )
        found = set(result.scalars().all())

        missing = [teacher_id for teacher_id in teacher_ids if teacher_id not in found]
        if missing:
            raise InvalidTeacherError(f"Not a teacher of this institution: {', '.join(missing)}")

        return teacher_ids

    async def _student_level_id(self, caller: Caller) -> str | None:
        result = await self._db.execute(
            select(SchoolClass.level_id)
            .join(User, User.class_id == SchoolClass.id)
            .where(User.id == caller.id, SchoolClass.owner_tenant_id == caller.tenant_id)
        )
        return result.scalar_one_or_none()
