# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic structure service for levels and classes.

This module provides the AcademicService class for:
- Level creation with generated classes (all-or-nothing)
- Level update and cascading deletion
- Single class creation and listing with head counts
- Student to class assignment

Every query is scoped to the caller's tenant. Class names are derived
from the level name, the optional speciality and the class number, e.g.
``L1-1`` or ``M1-Informatique-2``.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import AcademicLevel, SchoolClass, User
from src.infrastructure.database.models.base import new_id
from src.models.academic import (
    ClassCreateRequest,
    ClassResponse,
    LevelCreateRequest,
    LevelUpdateRequest,
    SpecialitySpec,
)

logger = logging.getLogger(__name__)


class AcademicServiceError(Exception):
    """Base exception for academic structure errors."""

    pass


class LevelNotFoundError(AcademicServiceError):
    """Raised when a level is missing or owned by another tenant."""

    pass


class ClassNotFoundError(AcademicServiceError):
    """Raised when a class is missing or owned by another tenant."""

    pass


class StudentNotFoundError(AcademicServiceError):
    """Raised when a student is missing from the tenant or the class."""

    pass


class DuplicateLevelError(AcademicServiceError):
    """Raised when a level name already exists in the tenant."""

    pass


class DuplicateClassError(AcademicServiceError):
    """Raised when a class name already exists in the tenant."""

    pass


class NotAStudentError(AcademicServiceError):
    """Raised when a class is assigned to a non-student account."""

    pass


class ValidationFailedError(AcademicServiceError):
    """Raised when the class layout of a level is inconsistent."""

    pass


def build_class_name(level_name: str, class_number: int, speciality: str | None = None) -> str:
    """Derive a class name from its level, speciality and number."""
    if speciality:
        return f"{level_name}-{speciality}-{class_number}"
    return f"{level_name}-{class_number}"


def plan_classes(
    level_name: str,
    has_speciality: bool,
    class_count: int | None = None,
    specialities: list[SpecialitySpec] | None = None,
) -> list[tuple[str | None, int, str]]:
    """Expand a level's class layout into (speciality, number, name) tuples.

    Args:
        level_name: Name of the level being created.
        has_speciality: Whether classes are split by speciality.
        class_count: Number of classes for levels without specialities.
        specialities: Speciality names and class counts.

    Returns:
        Classes to create, in generation order.

    Raises:
        ValidationFailedError: If the layout does not match has_speciality.
    """
    if has_speciality:
        if not specialities:
            raise ValidationFailedError("Specialities are required for a level with specialities")

        names = [item.name.strip() for item in specialities]
        if any(not name for name in names):
            raise ValidationFailedError("Speciality names cannot be blank")
        if len(set(names)) != len(names):
            raise ValidationFailedError("Speciality names must be unique within a level")

        return [
            (name, number, build_class_name(level_name, number, name))
            for name, item in zip(names, specialities)
            for number in range(1, item.count + 1)
        ]

    if specialities:
        raise ValidationFailedError("Specialities are only allowed on a level with specialities")

    return [
        (None, number, build_class_name(level_name, number))
        for number in range(1, (class_count or 0) + 1)
    ]


class AcademicService:
    """Service for managing levels and classes.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize academic service.

        Args:
            db: Async database session.
        """
        self._db = db

    # =========================================================================
    # Levels
    # =========================================================================

    async def create_level(
        self,
        request: LevelCreateRequest,
        tenant_id: str,
    ) -> tuple[AcademicLevel, int]:
        """Create a level together with its generated classes.

        The level and its classes are committed in one transaction; if any
        class cannot be created nothing is written.

        Args:
            request: Level name, type and class layout.
            tenant_id: Owning tenant.

        Returns:
            Tuple of (created level, number of classes created).

        Raises:
            DuplicateLevelError: If the level name exists in the tenant.
            DuplicateClassError: If a generated class name already exists.
            ValidationFailedError: If the class layout is inconsistent.
        """
        name = request.name.strip()

        if await self._get_level_by_name(name, tenant_id):
            raise DuplicateLevelError(f"Level '{name}' already exists")

        planned = plan_classes(
            name,
            request.has_speciality,
            request.class_count,
            request.specialities,
        )

        class_names = [class_name for _, _, class_name in planned]
        if class_names:
            result = await self._db.execute(
                select(SchoolClass.name).where(
                    SchoolClass.owner_tenant_id == tenant_id,
                    SchoolClass.name.in_(class_names),
                )
            )
            clashing = result.scalars().all()
            if clashing:
                raise DuplicateClassError(f"Class '{clashing[0]}' already exists")

        level = AcademicLevel(
            id=new_id(),
            name=name,
            type=request.type.value,
            has_speciality=request.has_speciality,
            owner_tenant_id=tenant_id,
        )
        self._db.add(level)

        try:
            await self._db.flush()
            self._db.add_all([
                SchoolClass(
                    level_id=level.id,
                    speciality=speciality,
                    class_number=number,
                    name=class_name,
                    owner_tenant_id=tenant_id,
                )
                for speciality, number, class_name in planned
            ])
            await self._db.commit()
        except IntegrityError as e:
            await self._db.rollback()
            raise DuplicateLevelError(f"Level '{name}' could not be created: {e.orig}") from e

        await self._db.refresh(level)

        logger.info(
            "Created level: %s (%s) with %d classes in tenant %s",
            level.name,
            level.id,
            len(planned),
            tenant_id,
        )

        return level, len(planned)

    async def list_levels(self, tenant_id: str) -> list[AcademicLevel]:
        """List the tenant's levels ordered by name."""
        result = await self._db.execute(
            select(AcademicLevel)
            .where(AcademicLevel.owner_tenant_id == tenant_id)
            .order_by(AcademicLevel.name)
        )
        return list(result.scalars().all())

    async def get_level(self, level_id: str, tenant_id: str) -> AcademicLevel:
        """Get a level of the tenant.

        Raises:
            LevelNotFoundError: If missing or owned by another tenant.
        """
        return await self._get_level(level_id, tenant_id)

    async def update_level(
        self,
        level_id: str,
        request: LevelUpdateRequest,
        tenant_id: str,
    ) -> AcademicLevel:
        """Apply a partial update to a level.

        Renaming a level renames its classes in the same transaction so
        their names keep following the level name. The speciality flag can
        only change while the level has no classes.

        Raises:
            LevelNotFoundError: If missing or owned by another tenant.
            DuplicateLevelError: If the new name is taken in the tenant.
            DuplicateClassError: If a renamed class clashes with another level's class.
            ValidationFailedError: If has_speciality changes on a level with classes.
        """
        level = await self._get_level(level_id, tenant_id)

        result = await self._db.execute(
            select(SchoolClass).where(
                SchoolClass.level_id == level.id,
                SchoolClass.owner_tenant_id == tenant_id,
            )
        )
        classes = list(result.scalars().all())

        if request.has_speciality is not None and request.has_speciality != level.has_speciality:
            if classes:
                raise ValidationFailedError(
                    f"Level '{level.name}' has classes; its speciality setting cannot change"
                )
            level.has_speciality = request.has_speciality

        if request.name is not None:
            name = request.name.strip()
            if name != level.name:
                existing = await self._get_level_by_name(name, tenant_id)
                if existing and existing.id != level.id:
                    raise DuplicateLevelError(f"Level '{name}' already exists")
                await self._rename_classes(classes, name, level.id, tenant_id)
                level.name = name

        if request.type is not None:
            level.type = request.type.value

        try:
            await self._db.commit()
        except IntegrityError as e:
            await self._db.rollback()
            raise DuplicateLevelError(f"Level '{level.name}' could not be updated: {e.orig}") from e

        await self._db.refresh(level)

        logger.info("Updated level: %s (%s)", level.name, level.id)

        return level

    async def delete_level(self, level_id: str, tenant_id: str) -> int:
        """Delete a level and every class generated under it.

        Students of the removed classes are left without a class. Module
        allocations pointing at the level are not touched and keep a
        dangling level reference.

        Args:
            level_id: Level to delete.
            tenant_id: Owning tenant.

        Returns:
            Number of classes deleted.

        Raises:
            LevelNotFoundError: If missing or owned by another tenant.
        """
        level = await self._get_level(level_id, tenant_id)

        class_ids = select(SchoolClass.id).where(
            SchoolClass.level_id == level.id,
            SchoolClass.owner_tenant_id == tenant_id,
        )

        await self._db.execute(
            update(User)
            .where(User.owner_tenant_id == tenant_id, User.class_id.in_(class_ids))
            .values(class_id=None)
        )
        result = await self._db.execute(
            delete(SchoolClass).where(
                SchoolClass.level_id == level.id,
                SchoolClass.owner_tenant_id == tenant_id,
            )
        )
        classes_deleted = result.rowcount or 0

        await self._db.delete(level)
        await self._db.commit()

        logger.info(
            "Deleted level: %s (%s) and %d classes",
            level.name,
            level.id,
            classes_deleted,
        )

        return classes_deleted

    # =========================================================================
    # Classes
    # =========================================================================

    async def create_class(self, request: ClassCreateRequest, tenant_id: str) -> SchoolClass:
        """Create a single class in an existing level.

        Raises:
            LevelNotFoundError: If the level is missing or foreign.
            ValidationFailedError: If the speciality does not match the level.
            DuplicateClassError: If the derived name exists in the tenant.
        """
        level = await self._get_level(request.level_id, tenant_id)

        speciality = request.speciality.strip() if request.speciality else None
        if level.has_speciality and not speciality:
            raise ValidationFailedError(f"Level '{level.name}' requires a speciality")
        if not level.has_speciality and speciality:
            raise ValidationFailedError(f"Level '{level.name}' has no specialities")

        name = build_class_name(level.name, request.class_number, speciality)

        existing = await self._db.execute(
            select(SchoolClass.id).where(
                SchoolClass.owner_tenant_id == tenant_id,
                SchoolClass.name == name,
            )
        )
        if existing.scalar_one_or_none():
            raise DuplicateClassError(f"Class '{name}' already exists")

        class_ = SchoolClass(
            level_id=level.id,
            speciality=speciality,
            class_number=request.class_number,
            name=name,
            owner_tenant_id=tenant_id,
        )
        self._db.add(class_)

        try:
            await self._db.commit()
        except IntegrityError as e:
            await self._db.rollback()
            raise DuplicateClassError(f"Class '{name}' already exists") from e

        await self._db.refresh(class_)

        logger.info("Created class: %s (%s) in level %s", class_.name, class_.id, level.id)

        return class_

    async def list_classes(
        self,
        tenant_id: str,
        level_id: str | None = None,
    ) -> list[ClassResponse]:
        """List the tenant's classes with level details and student counts."""
        student_count = (
            select(func.count(User.id))
            .where(User.class_id == SchoolClass.id, User.role == "STUDENT")
            .correlate(SchoolClass)
            .scalar_subquery()
        )

        query = (
            select(SchoolClass, AcademicLevel.name, AcademicLevel.type, student_count)
            .join(AcademicLevel, AcademicLevel.id == SchoolClass.level_id)
            .where(SchoolClass.owner_tenant_id == tenant_id)
            .order_by(SchoolClass.name)
        )
        if level_id:
            query = query.where(SchoolClass.level_id == level_id)

        result = await self._db.execute(query)

        return [
            ClassResponse(
                id=class_.id,
                name=class_.name,
                level_id=class_.level_id,
                level_name=level_name,
                level_type=level_type,
                speciality=class_.speciality,
                class_number=class_.class_number,
                student_count=count or 0,
            )
            for class_, level_name, level_type, count in result.all()
        ]

    async def get_class(self, class_id: str, tenant_id: str) -> SchoolClass:
        """Get a class of the tenant.

        Raises:
            ClassNotFoundError: If missing or owned by another tenant.
        """
        return await self._get_class(class_id, tenant_id)

    # =========================================================================
    # Class membership
    # =========================================================================

    async def get_students_by_class(self, class_id: str, tenant_id: str) -> list[User]:
        """List the students of a class ordered by name."""
        await self._get_class(class_id, tenant_id)

        result = await self._db.execute(
            select(User)
            .where(
                User.class_id == class_id,
                User.role == "STUDENT",
                User.owner_tenant_id == tenant_id,
            )
            .order_by(User.full_name)
        )
        return list(result.scalars().all())

    async def assign_students(
        self,
        class_id: str,
        student_ids: list[str],
        tenant_id: str,
    ) -> int:
        """Move students into a class.

        Ids that are not students of the tenant are ignored.

        Returns:
            Number of students updated.

        Raises:
            ClassNotFoundError: If the class is missing or foreign.
        """
        await self._get_class(class_id, tenant_id)

        result = await self._db.execute(
            update(User)
            .where(
                User.id.in_(list(dict.fromkeys(student_ids))),
                User.role == "STUDENT",
                User.owner_tenant_id == tenant_id,
            )
            .values(class_id=class_id)
        )
        await self._db.commit()

        modified = result.rowcount or 0
        logger.info("Assigned %d students to class %s", modified, class_id)

        return modified

    async def remove_student_from_class(
        self,
        class_id: str,
        student_id: str,
        tenant_id: str,
    ) -> None:
        """Take a student out of a class.

        Raises:
            ClassNotFoundError: If the class is missing or foreign.
            StudentNotFoundError: If the student is not in the class.
        """
        await self._get_class(class_id, tenant_id)

        result = await self._db.execute(
            select(User).where(
                User.id == student_id,
                User.class_id == class_id,
                User.role == "STUDENT",
                User.owner_tenant_id == tenant_id,
            )
        )
        student = result.scalar_one_or_none()
        if not student:
            raise StudentNotFoundError(f"Student {student_id} is not in class {class_id}")

        student.class_id = None
        await self._db.commit()

        logger.info("Removed student %s from class %s", student_id, class_id)

    async def update_student_class(
        self,
        user_id: str,
        class_id: str | None,
        tenant_id: str,
    ) -> User:
        """Set or clear the class of a single student.

        Raises:
            StudentNotFoundError: If the user is missing or foreign.
            NotAStudentError: If the user is not a student.
            ClassNotFoundError: If the class is missing or foreign.
        """
        result = await self._db.execute(
            select(User).where(User.id == user_id, User.owner_tenant_id == tenant_id)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise StudentNotFoundError(f"User {user_id} not found")
        if not user.is_student:
            raise NotAStudentError("Only students can be assigned to a class")

        if class_id:
            await self._get_class(class_id, tenant_id)

        user.class_id = class_id or None
        await self._db.commit()
        await self._db.refresh(user)

        logger.info("Set class of student %s to %s", user.id, user.class_id)

        return user

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_level(self, level_id: str, tenant_id: str) -> AcademicLevel:
        result = await self._db.execute(
            select(AcademicLevel).where(
                AcademicLevel.id == level_id,
                AcademicLevel.owner_tenant_id == tenant_id,
            )
        )
        level = result.scalar_one_or_none()
        if not level:
            raise LevelNotFoundError(f"Level {level_id} not found")
        return level

    async def _rename_classes(
        self,
        classes: list[SchoolClass],
        level_name: str,
        level_id: str,
        tenant_id: str,
    ) -> None:
        renamed = {
            class_.id: build_class_name(level_name, class_.class_number, class_.speciality)
            for class_ in classes
        }
        if not renamed:
            return

        result = await self._db.execute(
            select(SchoolClass.name).where(
                SchoolClass.owner_tenant_id == tenant_id,
                SchoolClass.level_id != level_id,
                SchoolClass.name.in_(renamed.values()),
            )
        )
        clashing = result.scalars().all()
        if clashing:
            raise DuplicateClassError(f"Class '{clashing[0]}' already exists")

        for class_ in classes:
            class_.name = renamed[class_.id]

    async def _get_level_by_name(self, name: str, tenant_id: str) -> AcademicLevel | None:
        result = await self._db.execute(
            select(AcademicLevel).where(
                AcademicLevel.name == name,
                AcademicLevel.owner_tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def _get_class(self, class_id: str, tenant_id: str) -> SchoolClass:
        result = await self._db.execute(
            select(SchoolClass).where(
                SchoolClass.id == class_id,
                SchoolClass.owner_tenant_id == tenant_id,
            )
        )
        class_ = result.scalar_one_or_none()
        if not class_:
            raise ClassNotFoundError(f"Class {class_id} not found")
        return class_
