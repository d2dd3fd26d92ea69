# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User administration API endpoints.

This module provides admin endpoints scoped to the caller's institution:
- POST /users - Create an admin, teacher or student
- GET /users - List users, optionally by role
- DELETE /users/{user_id} - Delete a user
- POST /users/import - Import teachers and students from a CSV file
- PUT /users/{user_id}/class - Set or clear a student's class
- GET /stats - Dashboard counters

Class membership endpoints:
- GET /classes/{class_id}/students - List students of a class
- POST /classes/{class_id}/students - Assign students to a class
- DELETE /classes/{class_id}/students/{student_id} - Remove a student from a class
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_file_storage, get_password_hasher, require_admin
from src.api.middleware.auth import CurrentUser
from src.domains.academic.service import (
    AcademicService,
    ClassNotFoundError,
    NotAStudentError,
    StudentNotFoundError,
)
from src.domains.auth.password import PasswordHasher
from src.domains.bulk_import import BulkImportService, CSVSourceError, read_csv_rows
from src.domains.identity.service import (
    DuplicateIdentityError,
    IdentityService,
    IdentityServiceError,
    InvalidMatriculeError,
    ProtectedUserError,
    UserNotFoundError,
)
from src.infrastructure.storage import FileTooLargeError, LocalFileStorage
from src.models.common import MessageResponse, UserRole
from src.models.user import (
    AssignStudentsRequest,
    AssignStudentsResponse,
    ImportResponse,
    StatsResponse,
    UpdateStudentClassRequest,
    UserCreationRequest,
    UserListResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Create an admin, teacher or student in the caller's institution.",
)
async def create_user(
    data: UserCreationRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> UserResponse:
    """Create a user.

    Raises:
        HTTPException: 400 for an invalid matricule, 404 for an unknown
            class, 409 for a duplicate username or matricule.
    """
    service = IdentityService(db, hasher)

    try:
        user = await service.create_user(
            request=data,
            tenant_id=current_user.tenant_id,
            created_by=current_user.id,
        )
    except InvalidMatriculeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateIdentityError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ClassNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    except IdentityServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return UserResponse.model_validate(user)


@router.get(
    "/users",
    response_model=UserListResponse,
    summary="List users",
)
async def list_users(
    role: Annotated[UserRole | None, Query(description="Filter by role")] = None,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserListResponse:
    """List the institution's users without credentials."""
    service = IdentityService(db)
    users = await service.list_users(current_user.tenant_id, role)

    return UserListResponse(
        items=[UserResponse.model_validate(user) for user in users],
        total=len(users),
    )


@router.delete(
    "/users/{user_id}",
    response_model=MessageResponse,
    summary="Delete user",
)
async def delete_user(
    user_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a user of the institution.

    Raises:
        HTTPException: 404 if unknown, 400 when deleting oneself or the owner.
    """
    service = IdentityService(db)

    try:
        await service.delete_user(user_id, current_user.tenant_id, current_user.id)
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    except ProtectedUserError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return MessageResponse(message="User deleted")


@router.post(
    "/users/import",
    response_model=ImportResponse,
    summary="Import users from CSV",
    description="Columns: fullName, role (TEACHER or STUDENT), matricule, className (optional).",
)
async def import_users(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> ImportResponse:
    """Import teachers and students from an uploaded CSV file.

    Raises:
        HTTPException: 400 if the file is missing or not a readable CSV,
            413 if it exceeds the upload size limit.
    """
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please upload a CSV file",
        )

    try:
        rows = read_csv_rows(await storage.read_limited(file))
    except FileTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
    except CSVSourceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    service = BulkImportService(db, hasher)
    result = await service.import_rows(rows, current_user.tenant_id)

    return ImportResponse(
        message=f"Import complete: {result.created} created, {result.skipped} skipped.",
        created=result.created,
        skipped=result.skipped,
        total=result.total,
    )


@router.put(
    "/users/{user_id}/class",
    response_model=UserResponse,
    summary="Set student class",
)
async def update_student_class(
    user_id: str,
    data: UpdateStudentClassRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Set or clear (null) the class of a student."""
    service = AcademicService(db)

    try:
        user = await service.update_student_class(user_id, data.class_id, current_user.tenant_id)
    except StudentNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    except ClassNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    except NotAStudentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return UserResponse.model_validate(user)


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Institution statistics",
)
async def get_stats(
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> StatsResponse:
    """Count students, teachers, classes and modules of the institution."""
    service = IdentityService(db)
    return await service.get_stats(current_user.tenant_id)


@router.get(
    "/classes/{class_id}/students",
    response_model=list[UserResponse],
    summary="List class students",
)
async def get_students_by_class(
    class_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[UserResponse]:
    """List the students of a class."""
    service = AcademicService(db)

    try:
        students = await service.get_students_by_class(class_id, current_user.tenant_id)
    except ClassNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")

    return [UserResponse.model_validate(student) for student in students]


@router.post(
    "/classes/{class_id}/students",
    response_model=AssignStudentsResponse,
    summary="Assign students to class",
)
async def assign_students(
    class_id: str,
    data: AssignStudentsRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AssignStudentsResponse:
    """Move students of the institution into a class.

    Ids that are not students of the institution are ignored.
    """
    service = AcademicService(db)

    try:
        modified = await service.assign_students(class_id, data.student_ids, current_user.tenant_id)
    except ClassNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")

    return AssignStudentsResponse(
        message=f"Successfully assigned {modified} students to class",
        modified_count=modified,
    )


@router.delete(
    "/classes/{class_id}/students/{student_id}",
    response_model=MessageResponse,
    summary="Remove student from class",
)
async def remove_student_from_class(
    class_id: str,
    student_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Remove a student from a class."""
    service = AcademicService(db)

    try:
        await service.remove_student_from_class(class_id, student_id, current_user.tenant_id)
    except ClassNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    except StudentNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found in class")

    return MessageResponse(message="Student removed from class")
