# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic structure API endpoints.

This module provides admin endpoints for levels and classes:
- POST /levels - Create a level and generate its classes
- GET /levels - List levels
- PUT /levels/{level_id} - Update a level
- DELETE /levels/{level_id} - Delete a level and its classes
- POST /classes - Create a single class
- GET /classes - List classes with student counts

Example:
    POST /api/v1/admin/academic-structure/levels
    Body:
        {"name": "M1", "type": "UNIVERSITY", "has_speciality": true,
         "specialities": [{"name": "Informatique", "count": 2}]}
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_admin
from src.api.middleware.auth import CurrentUser
from src.domains.academic.service import (
    AcademicService,
    DuplicateClassError,
    DuplicateLevelError,
    LevelNotFoundError,
    ValidationFailedError,
)
from src.models.academic import (
    ClassCreateRequest,
    ClassResponse,
    LevelCreateRequest,
    LevelCreateResponse,
    LevelResponse,
    LevelUpdateRequest,
)
from src.models.common import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> AcademicService:
    """Get academic service instance.

    Args:
        db: Database session.

    Returns:
        Configured AcademicService instance.
    """
    return AcademicService(db=db)


@router.post(
    "/levels",
    response_model=LevelCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create level",
    description="Create a level and generate its classes in one step.",
)
async def create_level(
    data: LevelCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> LevelCreateResponse:
    """Create a level with its classes.

    Raises:
        HTTPException: 409 on a duplicate level or class name, 400 on an
            inconsistent class layout.
    """
    logger.info("Creating level: %s by %s", data.name, current_user.id)

    service = _get_service(db)

    try:
        level, classes_created = await service.create_level(data, current_user.tenant_id)
    except (DuplicateLevelError, DuplicateClassError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationFailedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValidationFailedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return LevelCreateResponse(
        level=LevelResponse.model_validate(level),
        classes_created=classes_created,
    )


@router.get(
    "/levels",
    response_model=list[LevelResponse],
    summary="List levels",
)
async def list_levels(
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[LevelResponse]:
    """List the institution's levels."""
    service = _get_service(db)
    levels = await service.list_levels(current_user.tenant_id)
    return [LevelResponse.model_validate(level) for level in levels]


@router.put(
    "/levels/{level_id}",
    response_model=LevelResponse,
    summary="Update level",
)
async def update_level(
    level_id: str,
    data: LevelUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> LevelResponse:
    """Update a level's name, type or speciality flag.

    Raises:
        HTTPException: 404 for an unknown level, 409 if the name or a
            renamed class clashes, 400 if the speciality flag cannot change.
    """
    service = _get_service(db)

    try:
        level = await service.update_level(level_id, data, current_user.tenant_id)
    except LevelNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Level not found")
    except (DuplicateLevelError, DuplicateClassError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationFailedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return LevelResponse.model_validate(level)


@router.delete(
    "/levels/{level_id}",
    response_model=MessageResponse,
    summary="Delete level",
    description="Delete a level and every class generated under it.",
)
async def delete_level(
    level_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a level and its classes."""
    service = _get_service(db)

    try:
        classes_deleted = await service.delete_level(level_id, current_user.tenant_id)
    except LevelNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Level not found")

    return MessageResponse(message=f"Level and {classes_deleted} classes deleted")


@router.post(
    "/classes",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create class",
)
async def create_class(
    data: ClassCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    """Create a single class in an existing level.

    Raises:
        HTTPException: 404 for an unknown level, 400 if the speciality does
            not match the level, 409 on a duplicate class name.
    """
    service = _get_service(db)

    try:
        class_ = await service.create_class(data, current_user.tenant_id)
        level = await service.get_level(class_.level_id, current_user.tenant_id)
    except LevelNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Level not found")
    except ValidationFailedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateClassError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return ClassResponse(
        id=class_.id,
        name=class_.name,
        level_id=class_.level_id,
        level_name=level.name,
        level_type=level.type,
        speciality=class_.speciality,
        class_number=class_.class_number,
        student_count=0,
    )


@router.get(
    "/classes",
    response_model=list[ClassResponse],
    summary="List classes",
)
async def list_classes(
    level_id: Annotated[str | None, Query(description="Filter by level")] = None,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[ClassResponse]:
    """List the institution's classes with level details and head counts."""
    service = _get_service(db)
    return await service.list_classes(current_user.tenant_id, level_id)
