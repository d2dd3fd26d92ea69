# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant and role based access decisions.

The gate is a pure function of the caller and the resource. It never
touches the database: services load whatever relation data a rule needs
(teacher set of an allocation, the student's level, the owner of a
submission) and pass it in a ResourceRelation.

Rules, in priority order:

1. A resource owned by another tenant is reported as not found, whatever
   the caller's role, so tenant existence never leaks.
2. Admins may act on anything owned by their tenant.
3. Teachers may read and write content and assignments, and read
   submissions, only on allocations listing them as a teacher.
4. Students may read allocations, content and assignments, and submit
   to assignments, only for allocations of their own class's level.
   Submissions are visible and writable only by the student who owns them.
5. Anything else is forbidden.

Example:
    >>> decision = check_access(
    ...     caller=Caller(id="t1", role="TEACHER", tenant_id="a1"),
    ...     resource_owner_tenant_id="a1",
    ...     relation=ResourceRelation(kind=ResourceKind.CONTENT, teacher_ids=frozenset({"t1"})),
    ...     action=Action.WRITE,
    ... )
    >>> decision is AccessDecision.ALLOW
    True
"""

from dataclasses import dataclass
from enum import Enum


class ResourceKind(str, Enum):
    """Kinds of tenant-owned resources checked by the gate."""

    USER = "user"
    LEVEL = "level"
    CLASS = "class"
    MODULE = "module"
    ALLOCATION = "allocation"
    CONTENT = "content"
    ASSIGNMENT = "assignment"
    SUBMISSION = "submission"


class Action(str, Enum):
    """What the caller wants to do with the resource."""

    READ = "read"
    WRITE = "write"
    SUBMIT = "submit"


class AccessDecision(str, Enum):
    """Outcome of an access check."""

    ALLOW = "allow"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Caller:
    """Authenticated identity on whose behalf an operation runs."""

    id: str
    role: str
    tenant_id: str

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    @property
    def is_teacher(self) -> bool:
        return self.role == "TEACHER"

    @property
    def is_student(self) -> bool:
        return self.role == "STUDENT"


@dataclass(frozen=True)
class ResourceRelation:
    """Relationship data between the caller and the target resource.

    Attributes:
        kind: Resource kind.
        teacher_ids: Teachers of the allocation the resource hangs off.
        level_id: Level of that allocation.
        student_level_id: Level of the calling student's class, if any.
        owner_user_id: Account a per-user record belongs to (submissions).
    """

    kind: ResourceKind
    teacher_ids: frozenset[str] = frozenset()
    level_id: str | None = None
    student_level_id: str | None = None
    owner_user_id: str | None = None


_ALLOCATION_SCOPED = frozenset({
    ResourceKind.ALLOCATION,
    ResourceKind.CONTENT,
    ResourceKind.ASSIGNMENT,
})


def _teacher_decision(caller: Caller, relation: ResourceRelation, action: Action) -> AccessDecision:
    if caller.id not in relation.teacher_ids:
        return AccessDecision.FORBIDDEN

    if relation.kind in _ALLOCATION_SCOPED and action in (Action.READ, Action.WRITE):
        return AccessDecision.ALLOW
    if relation.kind == ResourceKind.SUBMISSION and action == Action.READ:
        return AccessDecision.ALLOW
    return AccessDecision.FORBIDDEN


def _student_decision(caller: Caller, relation: ResourceRelation, action: Action) -> AccessDecision:
    if relation.kind == ResourceKind.SUBMISSION:
        if relation.owner_user_id == caller.id and action in (Action.READ, Action.WRITE):
            return AccessDecision.ALLOW
        return AccessDecision.FORBIDDEN

    visible = (
        relation.student_level_id is not None
        and relation.level_id is not None
        and relation.student_level_id == relation.level_id
    )
    if not visible:
        return AccessDecision.FORBIDDEN

    if relation.kind in _ALLOCATION_SCOPED and action == Action.READ:
        return AccessDecision.ALLOW
    if relation.kind == ResourceKind.ASSIGNMENT and action == Action.SUBMIT:
        return AccessDecision.ALLOW
    return AccessDecision.FORBIDDEN


def check_access(
    caller: Caller,
    resource_owner_tenant_id: str | None,
    relation: ResourceRelation,
    action: Action = Action.READ,
) -> AccessDecision:
    """Decide whether caller may perform action on a resource.

    Args:
        caller: Authenticated identity.
        resource_owner_tenant_id: Tenant owning the resource.
        relation: Relationship data required by the role rules.
        action: Requested action.

    Returns:
        ALLOW, NOT_FOUND for cross-tenant resources, or FORBIDDEN for
        same-tenant role violations.
    """
    if resource_owner_tenant_id is None or resource_owner_tenant_id != caller.tenant_id:
        return AccessDecision.NOT_FOUND

    if caller.is_admin:
        return AccessDecision.ALLOW
    if caller.is_teacher:
        return _teacher_decision(caller, relation, action)
    if caller.is_student:
        return _student_decision(caller, relation, action)
    return AccessDecision.FORBIDDEN


def is_allowed(
    caller: Caller,
    resource_owner_tenant_id: str | None,
    relation: ResourceRelation,
    action: Action = Action.READ,
) -> bool:
    """Boolean form of check_access."""
    return check_access(caller, resource_owner_tenant_id, relation, action) is AccessDecision.ALLOW


class AccessDeniedError(Exception):
    """Base exception for denied access."""

    pass


class ResourceNotFoundError(AccessDeniedError):
    """Resource is missing or belongs to another tenant."""

    pass


class ForbiddenError(AccessDeniedError):
    """Resource exists in the caller's tenant but the role rules deny the action."""

    pass


def enforce(
    caller: Caller,
    resource_owner_tenant_id: str | None,
    relation: ResourceRelation,
    action: Action = Action.READ,
    resource_name: str = "Resource",
) -> None:
    """Raise unless the caller may perform the action.

    Raises:
        ResourceNotFoundError: Cross-tenant or missing resource.
        ForbiddenError: Same-tenant role violation.
    """
    decision = check_access(caller, resource_owner_tenant_id, relation, action)
    if decision is AccessDecision.NOT_FOUND:
        raise ResourceNotFoundError(f"{resource_name} not found")
    if decision is AccessDecision.FORBIDDEN:
        raise ForbiddenError(f"Not authorized to {action.value} this {resource_name.lower()}")
