# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bulk user import from tabular rows.

The import runs in stages: the tenant's classes and identities are loaded
once, every row is validated in input order against them and against the
rows accepted before it, accepted rows are hashed in one concurrent batch
and finally inserted one savepoint per row. A row that loses an insert
race against a concurrent import is counted as skipped without aborting
its siblings, so ``created + skipped == total`` always holds.

Expected columns are ``fullName``, ``role``, ``matricule`` and optionally
``className``; snake_case spellings are accepted too.

Example:
    >>> service = BulkImportService(db)
    >>> result = await service.import_rows(
    ...     [{"fullName": "Amina K", "role": "student", "matricule": "20241000"}],
    ...     tenant_id=admin.id,
    ... )
    >>> result.created, result.skipped, result.total
    (1, 0, 1)
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.auth.password import PasswordHasher
from src.domains.identity.service import MAX_FULL_NAME_LENGTH, is_valid_matricule
from src.infrastructure.database.models import SchoolClass, User

logger = logging.getLogger(__name__)

IMPORTABLE_ROLES = frozenset({"TEACHER", "STUDENT"})

_KEY_SEPARATORS = re.compile(r"[\s_\-]+")

_FIELD_NAMES = {
    "fullname": "full_name",
    "role": "role",
    "matricule": "matricule",
    "classname": "class_name",
}


@dataclass
class ImportResult:
    """Aggregate outcome of an import.

    Attributes:
        created: Rows inserted.
        skipped: Rows rejected by validation or by the store.
        total: Input row count.
        reasons: Skip count per reason, for logging.
    """

    created: int = 0
    skipped: int = 0
    total: int = 0
    reasons: Counter = field(default_factory=Counter)

    def skip(self, reason: str) -> None:
        self.skipped += 1
        self.reasons[reason] += 1


@dataclass
class StagedUser:
    """Validated row waiting to be hashed and inserted."""

    full_name: str
    role: str
    matricule: str
    class_id: str | None


def normalize_key(key: Any) -> str | None:
    """Map a raw header to a known field name.

    Byte-order marks, surrounding whitespace, case and separators are
    ignored, so ``"\\ufeff fullName "`` and ``"full_name"`` both map to
    ``full_name``.
    """
    if not isinstance(key, str):
        return None
    cleaned = key.replace("\ufeff", "").strip()
    return _FIELD_NAMES.get(_KEY_SEPARATORS.sub("", cleaned).lower())


def normalize_row(row: Mapping[Any, Any]) -> dict[str, str]:
    """Normalize headers and values of a raw row.

    Unknown columns are dropped, values are stripped and empty values are
    treated as missing.
    """
    normalized: dict[str, str] = {}
    for key, value in row.items():
        name = normalize_key(key)
        if name is None or value is None:
            continue
        text = str(value).strip()
        if text:
            normalized[name] = text
    return normalized


class BulkImportService:
    """Imports teachers and students into a tenant.

    Attributes:
        _db: Async database session.
        _hasher: Password hasher for default credentials.
    """

    def __init__(self, db: AsyncSession, hasher: PasswordHasher | None = None) -> None:
        """Initialize bulk import service.

        Args:
            db: Async database session.
            hasher: Password hasher. Defaults to bcrypt with 10 rounds.
        """
        self._db = db
        self._hasher = hasher or PasswordHasher()

    async def import_rows(
        self,
        rows: Sequence[Mapping[Any, Any]],
        tenant_id: str,
    ) -> ImportResult:
        """Import raw rows into a tenant.

        Args:
            rows: Header-name to value mappings, in file order.
            tenant_id: Owning tenant.

        Returns:
            Created, skipped and total counts.
        """
        result = ImportResult(total=len(rows))
        if not rows:
            return result

        class_ids = await self._load_class_map(tenant_id)
        taken = await self._load_identities(tenant_id)

        staged = [
            user
            for user in (self._stage(row, class_ids, taken, result) for row in rows)
            if user is not None
        ]

        if staged:
            hashes = await self._hasher.hash_many(user.matricule for user in staged)
            for user, password_hash in zip(staged, hashes):
                reason = await self._insert(user, password_hash, tenant_id)
                if reason is None:
                    result.created += 1
                else:
                    result.skip(reason)
            await self._db.commit()

        logger.info(
            "User import for tenant %s: %d created, %d skipped of %d (%s)",
            tenant_id,
            result.created,
            result.skipped,
            result.total,
            dict(result.reasons),
        )

        return result

    def _stage(
        self,
        row: Mapping[Any, Any],
        class_ids: dict[str, str],
        taken: set[str],
        result: ImportResult,
    ) -> StagedUser | None:
        fields = normalize_row(row)

        full_name = fields.get("full_name")
        role = fields.get("role")
        matricule = fields.get("matricule")
        if not full_name or not role or not matricule:
            result.skip("missing_field")
            return None

        if matricule in taken:
            result.skip("duplicate")
            return None

        role = role.upper()
        if role not in IMPORTABLE_ROLES:
            result.skip("invalid_role")
            return None

        if not is_valid_matricule(matricule):
            result.skip("invalid_matricule")
            return None

        if len(full_name) > MAX_FULL_NAME_LENGTH:
            result.skip("invalid_field")
            return None

        class_id = None
        class_name = fields.get("class_name")
        if class_name:
            class_id = class_ids.get(class_name)
            if class_id is None:
                logger.warning("Class not found for name: %s", class_name)

        taken.add(matricule)
        return StagedUser(full_name=full_name, role=role, matricule=matricule, class_id=class_id)

    async def _insert(self, staged: StagedUser, password_hash: str, tenant_id: str) -> str | None:
        """Insert one staged user inside its own savepoint.

        Returns:
            None when the row was inserted, otherwise the skip reason.
        """
        user = User(
            role=staged.role,
            full_name=staged.full_name,
            username=staged.matricule,
            matricule=staged.matricule,
            password_hash=password_hash,
            first_login=True,
            class_id=staged.class_id,
            owner_tenant_id=tenant_id,
        )
        try:
            async with self._db.begin_nested():
                self._db.add(user)
        except IntegrityError:
            logger.warning("Skipped matricule %s: inserted concurrently", staged.matricule)
            return "conflict"
        except DBAPIError as e:
            logger.warning("Skipped matricule %s: rejected by the database: %s", staged.matricule, e.orig)
            return "rejected"
        return None

    async def _load_class_map(self, tenant_id: str) -> dict[str, str]:
        result = await self._db.execute(
            select(SchoolClass.name, SchoolClass.id).where(SchoolClass.owner_tenant_id == tenant_id)
        )
        return {name: class_id for name, class_id in result.all()}

    async def _load_identities(self, tenant_id: str) -> set[str]:
        result = await self._db.execute(
            select(User.username, User.matricule).where(User.owner_tenant_id == tenant_id)
        )
        taken: set[str] = set()
        for username, matricule in result.all():
            if username:
                taken.add(username)
            if matricule:
                taken.add(matricule)
        return taken
