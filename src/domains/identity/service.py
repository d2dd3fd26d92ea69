# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identity service for admin, teacher and student accounts.

This module provides the IdentityService class for:
- Tenant root registration and co-admin/staff creation
- Credential verification and password changes
- Tenant user listing, deletion and statistics

Usernames and matricules are unique per tenant. Teachers and students
log in with their matricule, which is also their initial password, and
must change it on first login.
"""

from __future__ import annotations

import asyncio
import logging
import re

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.academic.service import ClassNotFoundError
from src.domains.auth.password import PasswordHasher
from src.infrastructure.database.models import Module, ModuleAllocation, SchoolClass, User
from src.infrastructure.database.models.base import new_id
from src.models.auth import RegisterAdminRequest
from src.models.common import MAX_PASSWORD_BYTES, LanguageEnum, UserRole, fits_bcrypt
from src.models.user import AdminCreationRequest, StaffCreationRequest, StatsResponse

logger = logging.getLogger(__name__)

MATRICULE_PATTERN = re.compile(r"^[0-9]+$")

# users.matricule and users.full_name column sizes
MAX_MATRICULE_LENGTH = 50
MAX_FULL_NAME_LENGTH = 200


class IdentityServiceError(Exception):
    """Base exception for identity errors."""

    pass


class DuplicateIdentityError(IdentityServiceError):
    """Raised when a username or matricule is already used in the tenant."""

    pass


class InvalidMatriculeError(IdentityServiceError):
    """Raised when a matricule is not made of digits only."""

    pass


class InvalidCredentialsError(IdentityServiceError):
    """Raised when no account matches the username and password."""

    pass


class InvalidOldPasswordError(IdentityServiceError):
    """Raised when the current password does not verify."""

    pass


class InvalidPasswordError(IdentityServiceError):
    """Raised when a new password exceeds the bcrypt input limit."""

    pass


class UserNotFoundError(IdentityServiceError):
    """Raised when a user is missing or owned by another tenant."""

    pass


class ProtectedUserError(IdentityServiceError):
    """Raised when deleting the caller's own account or the tenant root."""

    pass


def is_valid_matricule(matricule: str) -> bool:
    """Check that a matricule is a non-empty string of at most 50 ASCII digits."""
    return len(matricule) <= MAX_MATRICULE_LENGTH and bool(MATRICULE_PATTERN.match(matricule))


class IdentityService:
    """Service for managing user accounts.

    Attributes:
        _db: Async database session.
        _hasher: Password hasher used for every stored credential.
    """

    def __init__(self, db: AsyncSession, hasher: PasswordHasher | None = None) -> None:
        """Initialize identity service.

        Args:
            db: Async database session.
            hasher: Password hasher. Defaults to bcrypt with 10 rounds.
        """
        self._db = db
        self._hasher = hasher or PasswordHasher()

    # =========================================================================
    # Account creation
    # =========================================================================

    async def register_admin(self, request: RegisterAdminRequest) -> User:
        """Register a new tenant root admin.

        The admin owns itself and does not go through the first-login
        password change since it chose its own password.

        Raises:
            DuplicateIdentityError: If another tenant root uses the username.
        """
        username = request.username.strip()

        result = await self._db.execute(
            select(User.id).where(
                User.username == username,
                User.role == UserRole.ADMIN.value,
                User.id == User.owner_tenant_id,
            )
        )
        if result.scalar_one_or_none():
            raise DuplicateIdentityError(f"Username '{username}' is already registered")

        user_id = new_id()
        user = User(
            id=user_id,
            owner_tenant_id=user_id,
            role=UserRole.ADMIN.value,
            full_name=request.full_name.strip(),
            username=username,
            password_hash=await self._hash(request.password),
            first_login=False,
            preferred_language=request.preferred_language.value,
        )

        await self._save(user, f"Username '{username}' is already registered")

        logger.info("Registered tenant admin: %s (%s)", user.username, user.id)

        return user

    async def create_user(
        self,
        request: AdminCreationRequest | StaffCreationRequest,
        tenant_id: str,
        created_by: str | None = None,
    ) -> User:
        """Create an account inside a tenant.

        Admins get the password they were given. Teachers and students use
        their matricule as username and initial password and must change it
        on first login.

        Args:
            request: Tagged creation payload selected by role.
            tenant_id: Owning tenant.
            created_by: ID of the admin creating the account.

        Returns:
            Created user.

        Raises:
            InvalidMatriculeError: If a staff matricule is not all digits.
            DuplicateIdentityError: If the username or matricule is taken.
            ClassNotFoundError: If a student's class is missing or foreign.
            IdentityServiceError: If a class is given for a non-student.
        """
        if isinstance(request, AdminCreationRequest):
            username = request.username.strip()
            matricule = None
            password = request.password
            class_id = None
            first_login = False
        else:
            matricule = request.matricule.strip()
            if not is_valid_matricule(matricule):
                raise InvalidMatriculeError("Matricule must contain digits only")
            username = matricule
            password = matricule
            class_id = request.class_id or None
            first_login = True

            if class_id:
                if request.role != UserRole.STUDENT.value:
                    raise IdentityServiceError("Only students can be assigned to a class")
                await self._ensure_class(class_id, tenant_id)

        await self._ensure_unique(tenant_id, username, matricule)

        user = User(
            role=request.role,
            full_name=request.full_name.strip(),
            username=username,
            matricule=matricule,
            password_hash=await self._hash(password),
            first_login=first_login,
            class_id=class_id,
            preferred_language=request.preferred_language.value,
            owner_tenant_id=tenant_id,
        )

        await self._save(user, f"User '{username}' already exists")

        logger.info(
            "Created %s: %s (%s) by %s",
            user.role.lower(),
            user.username,
            user.id,
            created_by,
        )

        return user

    # =========================================================================
    # Credentials
    # =========================================================================

    async def authenticate(self, username: str, password: str) -> User:
        """Verify a username (or matricule) and password.

        The same username may exist in several tenants, so every account
        carrying it is tried in creation order and the first one whose
        hash matches wins.

        Raises:
            InvalidCredentialsError: If no account matches.
        """
        username = username.strip()
        if not username or not password:
            raise InvalidCredentialsError("Invalid credentials")

        result = await self._db.execute(
            select(User).where(User.username == username).order_by(User.created_at)
        )
        candidates = result.scalars().all()

        for user in candidates:
            if await asyncio.to_thread(self._hasher.verify, password, user.password_hash):
                logger.info("User authenticated: %s (%s)", user.username, user.id)
                return user

        logger.warning(
            "Failed login for username %s (%d candidate accounts)",
            username,
            len(candidates),
        )
        raise InvalidCredentialsError("Invalid credentials")

    async def change_password(
        self,
        user_id: str,
        new_password: str,
        old_password: str | None = None,
    ) -> User:
        """Change a user's password.

        On first login the old password is not checked. Afterwards it must
        verify. The first-login flag is cleared either way.

        Raises:
            UserNotFoundError: If the user does not exist.
            InvalidOldPasswordError: If the old password does not verify.
            InvalidPasswordError: If the new password is too long.
        """
        user = await self.get_profile(user_id)

        if not user.first_login:
            verified = bool(old_password) and await asyncio.to_thread(
                self._hasher.verify, old_password, user.password_hash
            )
            if not verified:
                raise InvalidOldPasswordError("Current password is incorrect")

        user.password_hash = await self._hash(new_password)
        user.first_login = False
        await self._db.commit()

        logger.info("Password changed for user %s", user.id)

        return user

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_profile(self, user_id: str) -> User:
        """Get the caller's own account.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        result = await self._db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def get_user(self, user_id: str, tenant_id: str) -> User:
        """Get a user of the tenant.

        Raises:
            UserNotFoundError: If missing or owned by another tenant.
        """
        result = await self._db.execute(
            select(User).where(User.id == user_id, User.owner_tenant_id == tenant_id)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def list_users(self, tenant_id: str, role: UserRole | None = None) -> list[User]:
        """List tenant users, optionally filtered by role, newest first."""
        query = select(User).where(User.owner_tenant_id == tenant_id)
        if role:
            query = query.where(User.role == role.value)

        result = await self._db.execute(query.order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def get_stats(self, tenant_id: str) -> StatsResponse:
        """Count the tenant's users by role, classes and modules."""
        result = await self._db.execute(
            select(User.role, func.count(User.id))
            .where(User.owner_tenant_id == tenant_id)
            .group_by(User.role)
        )
        by_role = {role: count for role, count in result.all()}

        classes = await self._db.execute(
            select(func.count(SchoolClass.id)).where(SchoolClass.owner_tenant_id == tenant_id)
        )
        modules = await self._db.execute(
            select(func.count(Module.id)).where(Module.owner_tenant_id == tenant_id)
        )

        students = by_role.get(UserRole.STUDENT.value, 0)
        teachers = by_role.get(UserRole.TEACHER.value, 0)
        admins = by_role.get(UserRole.ADMIN.value, 0)

        return StatsResponse(
            students=students,
            teachers=teachers,
            classes=classes.scalar() or 0,
            modules=modules.scalar() or 0,
            total_users=students + teachers + admins,
        )

    # =========================================================================
    # Mutations
    # =========================================================================

    async def delete_user(self, user_id: str, tenant_id: str, deleted_by: str) -> None:
        """Delete a tenant user.

        A deleted teacher is removed from every allocation's teacher set.
        Their submissions, if a student, are deleted with them.

        Raises:
            UserNotFoundError: If missing or owned by another tenant.
            ProtectedUserError: If deleting oneself or the tenant root.
        """
        if user_id == deleted_by:
            raise ProtectedUserError("You cannot delete your own account")

        user = await self.get_user(user_id, tenant_id)
        if user.is_tenant_root:
            raise ProtectedUserError("The tenant owner account cannot be deleted")

        if user.is_teacher:
            await self._db.execute(
                update(ModuleAllocation)
                .where(
                    ModuleAllocation.owner_tenant_id == tenant_id,
                    ModuleAllocation.teacher_ids.contains([user.id]),
                )
                .values(teacher_ids=func.array_remove(ModuleAllocation.teacher_ids, user.id))
            )

        await self._db.delete(user)
        await self._db.commit()

        logger.info("Deleted %s: %s (%s) by %s", user.role.lower(), user.username, user.id, deleted_by)

    async def update_language(self, user_id: str, language: LanguageEnum) -> User:
        """Update a user's preferred interface language."""
        user = await self.get_profile(user_id)
        user.preferred_language = language.value
        await self._db.commit()
        return user

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _hash(self, password: str) -> str:
        if not fits_bcrypt(password):
            raise InvalidPasswordError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
        return await asyncio.to_thread(self._hasher.hash, password)

    async def _save(self, user: User, duplicate_message: str) -> None:
        self._db.add(user)
        try:
            await self._db.commit()
        except IntegrityError as e:
            await self._db.rollback()
            raise DuplicateIdentityError(duplicate_message) from e
        await self._db.refresh(user)

    async def _ensure_unique(self, tenant_id: str, username: str, matricule: str | None) -> None:
        clashes = [User.username == username]
        if matricule:
            clashes.append(User.matricule == matricule)

        result = await self._db.execute(
            select(User.id).where(User.owner_tenant_id == tenant_id, or_(*clashes)).limit(1)
        )
        if result.scalar_one_or_none():
            raise DuplicateIdentityError(f"Username or matricule '{username}' already exists")

    async def _ensure_class(self, class_id: str, tenant_id: str) -> None:
        result = await self._db.execute(
            select(SchoolClass.id).where(
                SchoolClass.id == class_id,
                SchoolClass.owner_tenant_id == tenant_id,
            )
        )
        if not result.scalar_one_or_none():
            raise ClassNotFoundError(f"Class {class_id} not found")
