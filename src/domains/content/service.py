# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content service for course material, assignments and submissions.

This module provides the ContentService class for:
- Publishing course material and assignments on an allocation
- Publishing the same item to several allocations at once
- Student submissions (one per student and assignment, resubmission updates)
- Submission review by the allocation's teachers

Every operation goes through the access gate on the owning allocation.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.authorization import Action, Caller, ResourceKind
from src.domains.module.service import ModuleService
from src.infrastructure.database.models import Assignment, ModuleContent, Submission, User
from src.models.common import SubmissionStatus
from src.models.content import (
    AssignmentCreateRequest,
    AssignmentResponse,
    BulkAssignmentCreateRequest,
    BulkContentCreateRequest,
    ContentCreateRequest,
    SubmissionResponse,
)
from src.utils.datetime import is_past, utc_now

logger = logging.getLogger(__name__)


class ContentServiceError(Exception):
    """Base exception for content service errors."""

    pass


class AssignmentNotFoundError(ContentServiceError):
    """Raised when an assignment does not exist."""

    pass


def submission_status(deadline: datetime, submitted_at: datetime | None = None) -> SubmissionStatus:
    """LATE when submitted after the deadline, SUBMITTED otherwise."""
    return SubmissionStatus.LATE if is_past(deadline, submitted_at) else SubmissionStatus.SUBMITTED


class ContentService:
    """Service for allocation content and student work.

    Attributes:
        _db: Async database session.
        _modules: Module service used to load and gate allocations.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize content service.

        Args:
            db: Async database session.
        """
        self._db = db
        self._modules = ModuleService(db)

    # =========================================================================
    # Course material
    # =========================================================================

    async def add_content(
        self,
        allocation_id: str,
        request: ContentCreateRequest,
        caller: Caller,
    ) -> ModuleContent:
        """Publish course material on an allocation.

        Raises:
            AllocationNotFoundError: If the allocation does not exist.
            ResourceNotFoundError: If it belongs to another tenant.
            ForbiddenError: If the caller does not teach it.
        """
        allocation = await self._modules.authorize_allocation(
            allocation_id, caller, Action.WRITE, ResourceKind.CONTENT
        )

        content = self._new_content(allocation.id, request, caller)
        self._db.add(content)
        await self._db.commit()
        await self._db.refresh(content)

        logger.info("Added %s content: %s (%s) by %s", content.type, content.title, content.id, caller.id)

        return content

    async def list_content(self, allocation_id: str, caller: Caller) -> list[ModuleContent]:
        """List an allocation's course material, newest first."""
        allocation = await self._modules.authorize_allocation(
            allocation_id, caller, Action.READ, ResourceKind.CONTENT
        )

        result = await self._db.execute(
            select(ModuleContent)
            .where(
                ModuleContent.allocation_id == allocation.id,
                ModuleContent.owner_tenant_id == caller.tenant_id,
            )
            .order_by(ModuleContent.created_at.desc())
        )
        return list(result.scalars().all())

    async def bulk_add_content(
        self,
        request: BulkContentCreateRequest,
        caller: Caller,
    ) -> list[ModuleContent]:
        """Publish the same course material to several allocations.

        Every allocation is checked first; if any is denied nothing is
        created.
        """
        allocation_ids = list(dict.fromkeys(request.allocation_ids))
        for allocation_id in allocation_ids:
            await self._modules.authorize_allocation(
                allocation_id, caller, Action.WRITE, ResourceKind.CONTENT
            )

        contents = [self._new_content(allocation_id, request, caller) for allocation_id in allocation_ids]
        self._db.add_all(contents)
        await self._db.commit()

        logger.info("Added content '%s' to %d allocations by %s", request.title, len(contents), caller.id)

        return contents

    # =========================================================================
    # Assignments
    # =========================================================================

    async def create_assignment(
        self,
        allocation_id: str,
        request: AssignmentCreateRequest,
        caller: Caller,
    ) -> Assignment:
        """Create an assignment on an allocation."""
        allocation = await self._modules.authorize_allocation(
            allocation_id, caller, Action.WRITE, ResourceKind.ASSIGNMENT
        )

        assignment = self._new_assignment(allocation.id, request, caller)
        self._db.add(assignment)
        await self._db.commit()
        await self._db.refresh(assignment)

        logger.info("Created assignment: %s (%s) by %s", assignment.title, assignment.id, caller.id)

        return assignment

    async def bulk_create_assignment(
        self,
        request: BulkAssignmentCreateRequest,
        caller: Caller,
    ) -> list[Assignment]:
        """Create the same assignment on several allocations, all or nothing."""
        allocation_ids = list(dict.fromkeys(request.allocation_ids))
        for allocation_id in allocation_ids:
            await self._modules.authorize_allocation(
                allocation_id, caller, Action.WRITE, ResourceKind.ASSIGNMENT
            )

        assignments = [
            self._new_assignment(allocation_id, request, caller) for allocation_id in allocation_ids
        ]
        self._db.add_all(assignments)
        await self._db.commit()

        logger.info(
            "Created assignment '%s' on %d allocations by %s",
            request.title,
            len(assignments),
            caller.id,
        )

        return assignments

    async def list_assignments(self, allocation_id: str, caller: Caller) -> list[AssignmentResponse]:
        """List an allocation's assignments by deadline.

        Students also get their own submission attached to each assignment.
        """
        allocation = await self._modules.authorize_allocation(
            allocation_id, caller, Action.READ, ResourceKind.ASSIGNMENT
        )

        result = await self._db.execute(
            select(Assignment)
            .where(
                Assignment.allocation_id == allocation.id,
                Assignment.owner_tenant_id == caller.tenant_id,
            )
            .order_by(Assignment.deadline)
        )
        assignments = list(result.scalars().all())

        mine: dict[str, Submission] = {}
        if caller.is_student and assignments:
            submissions = await self._db.execute(
                select(Submission).where(
                    Submission.student_id == caller.id,
                    Submission.assignment_id.in_([a.id for a in assignments]),
                )
            )
            mine = {s.assignment_id: s for s in submissions.scalars().all()}

        return [
            AssignmentResponse(
                id=assignment.id,
                allocation_id=assignment.allocation_id,
                title=assignment.title,
                description=assignment.description,
                deadline=assignment.deadline,
                created_by=assignment.created_by,
                created_at=assignment.created_at,
                my_submission=(
                    self._to_submission_response(mine[assignment.id])
                    if assignment.id in mine
                    else None
                ),
            )
            for assignment in assignments
        ]

    # =========================================================================
    # Submissions
    # =========================================================================

    async def submit_assignment(
        self,
        assignment_id: str,
        file_url: str,
        caller: Caller,
    ) -> tuple[Submission, bool]:
        """Submit or resubmit work for an assignment.

        A student has at most one submission per assignment; resubmitting
        replaces the file and recomputes the status against the deadline.

        Returns:
            Tuple of (submission, whether it was newly created).

        Raises:
            AssignmentNotFoundError: If the assignment does not exist.
            ResourceNotFoundError: If it belongs to another tenant.
            ForbiddenError: If the caller may not submit to it.
        """
        assignment = await self._get_assignment(assignment_id)
        await self._modules.authorize_allocation(
            assignment.allocation_id, caller, Action.SUBMIT, ResourceKind.ASSIGNMENT
        )

        now = utc_now()
        status = submission_status(assignment.deadline, now).value

        existing = await self._find_submission(assignment.id, caller)
        if existing:
            self._resubmit(existing, file_url, now, status)
            await self._db.commit()
            logger.info("Resubmitted assignment %s by %s (%s)", assignment.id, caller.id, status)
            return existing, False

        submission = Submission(
            assignment_id=assignment.id,
            student_id=caller.id,
            file_url=file_url,
            submitted_at=now,
            status=status,
            owner_tenant_id=caller.tenant_id,
        )
        created = True
        try:
            async with self._db.begin_nested():
                self._db.add(submission)
        except IntegrityError:
            # A concurrent submission by the same student won the insert.
            submission = await self._find_submission(assignment.id, caller)
            if not submission:
                raise
            self._resubmit(submission, file_url, now, status)
            created = False

        await self._db.commit()
        await self._db.refresh(submission)

        logger.info("Submitted assignment %s by %s (%s)", assignment.id, caller.id, status)

        return submission, created

    async def list_submissions(self, assignment_id: str, caller: Caller) -> list[SubmissionResponse]:
        """List submissions of an assignment, newest first, with student names.

        Only admins and the allocation's teachers may review submissions.
        """
        assignment = await self._get_assignment(assignment_id)
        await self._modules.authorize_allocation(
            assignment.allocation_id, caller, Action.READ, ResourceKind.SUBMISSION
        )

        result = await self._db.execute(
            select(Submission, User.full_name, User.matricule)
            .join(User, User.id == Submission.student_id)
            .where(
                Submission.assignment_id == assignment.id,
                Submission.owner_tenant_id == caller.tenant_id,
            )
            .order_by(Submission.submitted_at.desc())
        )

        return [
            self._to_submission_response(submission, full_name, matricule)
            for submission, full_name, matricule in result.all()
        ]

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_assignment(self, assignment_id: str) -> Assignment:
        result = await self._db.execute(select(Assignment).where(Assignment.id == assignment_id))
        assignment = result.scalar_one_or_none()
        if not assignment:
            raise AssignmentNotFoundError(f"Assignment {assignment_id} not found")
        return assignment

    async def _find_submission(self, assignment_id: str, caller: Caller) -> Submission | None:
        result = await self._db.execute(
            select(Submission).where(
                Submission.assignment_id == assignment_id,
                Submission.student_id == caller.id,
                Submission.owner_tenant_id == caller.tenant_id,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _resubmit(submission: Submission, file_url: str, submitted_at: datetime, status: str) -> None:
        submission.file_url = file_url
        submission.submitted_at = submitted_at
        submission.status = status

    @staticmethod
    def _new_content(allocation_id: str, request: ContentCreateRequest, caller: Caller) -> ModuleContent:
        return ModuleContent(
            allocation_id=allocation_id,
            type=request.type.value,
            title=request.title.strip(),
            file_url=request.file_url,
            link=request.link,
            description=request.description,
            created_by=caller.id,
            owner_tenant_id=caller.tenant_id,
        )

    @staticmethod
    def _new_assignment(
        allocation_id: str,
        request: AssignmentCreateRequest,
        caller: Caller,
    ) -> Assignment:
        return Assignment(
            allocation_id=allocation_id,
            title=request.title.strip(),
            description=request.description,
            deadline=request.deadline,
            created_by=caller.id,
            owner_tenant_id=caller.tenant_id,
        )

    @staticmethod
    def _to_submission_response(
        submission: Submission,
        student_name: str | None = None,
        student_matricule: str | None = None,
    ) -> SubmissionResponse:
        return SubmissionResponse(
            id=submission.id,
            assignment_id=submission.assignment_id,
            student_id=submission.student_id,
            file_url=submission.file_url,
            submitted_at=submission.submitted_at,
            status=submission.status,
            student_name=student_name,
            student_matricule=student_matricule,
        )
