# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course content and assignment API endpoints.

This module provides endpoints on module allocations:
- POST /modules/bulk/content - Publish material to several allocations (teacher)
- POST /modules/bulk/assignments - Publish an assignment to several allocations (teacher)
- POST /modules/{allocation_id}/content - Publish course material
- GET /modules/{allocation_id}/content - List course material
- POST /modules/{allocation_id}/assignments - Create an assignment
- GET /modules/{allocation_id}/assignments - List assignments
- POST /assignments/{assignment_id}/submit - Submit work (student)
- GET /assignments/{assignment_id}/submissions - Review submissions

Bulk routes are declared first so "bulk" is never taken for an allocation id.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_auth, require_student, require_teacher
from src.api.errors import access_denied
from src.api.middleware.auth import CurrentUser
from src.domains.authorization import AccessDeniedError
from src.domains.content.service import AssignmentNotFoundError, ContentService
from src.domains.module.service import AllocationNotFoundError
from src.infrastructure.database.models import Assignment
from src.models.content import (
    AssignmentCreateRequest,
    AssignmentResponse,
    BulkAssignmentCreateRequest,
    BulkContentCreateRequest,
    ContentCreateRequest,
    ContentResponse,
    SubmissionResponse,
    SubmitAssignmentRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> ContentService:
    """Get content service instance.

    Args:
        db: Database session.

    Returns:
        Configured ContentService instance.
    """
    return ContentService(db=db)


def _assignment_response(assignment: Assignment) -> AssignmentResponse:
    return AssignmentResponse(
        id=assignment.id,
        allocation_id=assignment.allocation_id,
        title=assignment.title,
        description=assignment.description,
        deadline=assignment.deadline,
        created_by=assignment.created_by,
        created_at=assignment.created_at,
    )


# =========================================================================
# Bulk publishing
# =========================================================================


@router.post(
    "/modules/bulk/content",
    response_model=list[ContentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Publish content to several allocations",
    description="All allocations must be taught by the caller, otherwise nothing is created.",
)
async def bulk_add_content(
    data: BulkContentCreateRequest,
    current_user: CurrentUser = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
) -> list[ContentResponse]:
    """Publish the same material to several allocations."""
    service = _get_service(db)

    try:
        contents = await service.bulk_add_content(data, current_user.caller)
    except AllocationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AccessDeniedError as e:
        raise access_denied(e)

    return [ContentResponse.model_validate(content) for content in contents]


@router.post(
    "/modules/bulk/assignments",
    response_model=list[AssignmentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Publish an assignment to several allocations",
)
async def bulk_create_assignment(
    data: BulkAssignmentCreateRequest,
    current_user: CurrentUser = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
) -> list[AssignmentResponse]:
    """Create the same assignment on several allocations."""
    service = _get_service(db)

    try:
        assignments = await service.bulk_create_assignment(data, current_user.caller)
    except AllocationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AccessDeniedError as e:
        raise access_denied(e)

    return [_assignment_response(assignment) for assignment in assignments]


# =========================================================================
# Allocation content
# =========================================================================


@router.post(
    "/modules/{allocation_id}/content",
    response_model=ContentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add course material",
)
async def add_content(
    allocation_id: str,
    data: ContentCreateRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> ContentResponse:
    """Publish course material on an allocation the caller teaches."""
    service = _get_service(db)

    try:
        content = await service.add_content(allocation_id, data, current_user.caller)
    except AllocationNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Allocation not found")
    except AccessDeniedError as e:
        raise access_denied(e)

    return ContentResponse.model_validate(content)


@router.get(
    "/modules/{allocation_id}/content",
    response_model=list[ContentResponse],
    summary="List course material",
)
async def list_content(
    allocation_id: str,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> list[ContentResponse]:
    """List an allocation's course material, newest first."""
    service = _get_service(db)

    try:
        contents = await service.list_content(allocation_id, current_user.caller)
    except AllocationNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Allocation not found")
    except AccessDeniedError as e:
        raise access_denied(e)

    return [ContentResponse.model_validate(content) for content in contents]


@router.post(
    "/modules/{allocation_id}/assignments",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create assignment",
)
async def create_assignment(
    allocation_id: str,
    data: AssignmentCreateRequest,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> AssignmentResponse:
    """Create an assignment on an allocation the caller teaches."""
    service = _get_service(db)

    try:
        assignment = await service.create_assignment(allocation_id, data, current_user.caller)
    except AllocationNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Allocation not found")
    except AccessDeniedError as e:
        raise access_denied(e)

    return _assignment_response(assignment)


@router.get(
    "/modules/{allocation_id}/assignments",
    response_model=list[AssignmentResponse],
    summary="List assignments",
    description="Ordered by deadline. Students also get their own submission.",
)
async def list_assignments(
    allocation_id: str,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> list[AssignmentResponse]:
    """List an allocation's assignments."""
    service = _get_service(db)

    try:
        return await service.list_assignments(allocation_id, current_user.caller)
    except AllocationNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Allocation not found")
    except AccessDeniedError as e:
        raise access_denied(e)


# =========================================================================
# Submissions
# =========================================================================


@router.post(
    "/assignments/{assignment_id}/submit",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit assignment",
    description="Returns 201 on first submission and 200 when resubmitting.",
)
async def submit_assignment(
    assignment_id: str,
    data: SubmitAssignmentRequest,
    response: Response,
    current_user: CurrentUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
) -> SubmissionResponse:
    """Submit or resubmit work for an assignment."""
    service = _get_service(db)

    try:
        submission, created = await service.submit_assignment(
            assignment_id, data.file_url, current_user.caller
        )
    except (AssignmentNotFoundError, AllocationNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    except AccessDeniedError as e:
        raise access_denied(e)

    if not created:
        response.status_code = status.HTTP_200_OK

    return SubmissionResponse(
        id=submission.id,
        assignment_id=submission.assignment_id,
        student_id=submission.student_id,
        file_url=submission.file_url,
        submitted_at=submission.submitted_at,
        status=submission.status,
    )


@router.get(
    "/assignments/{assignment_id}/submissions",
    response_model=list[SubmissionResponse],
    summary="List submissions",
)
async def list_submissions(
    assignment_id: str,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> list[SubmissionResponse]:
    """List submissions of an assignment, newest first."""
    service = _get_service(db)

    try:
        return await service.list_submissions(assignment_id, current_user.caller)
    except (AssignmentNotFoundError, AllocationNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    except AccessDeniedError as e:
        raise access_denied(e)
