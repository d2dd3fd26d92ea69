# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Module catalog and allocation API endpoints.

This module provides endpoints for modules:
- POST / - Create a catalog module (admin)
- GET / - Admins get the catalog; teachers and students get their allocations
- POST /allocate - Allocate a module to a level (admin, upsert)
- POST /allocate-bulk - Allocate a module to several levels (admin)
- GET /{allocation_id} - Allocation details
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_admin, require_auth
from src.api.errors import access_denied
from src.api.middleware.auth import CurrentUser
from src.domains.authorization import AccessDeniedError
from src.domains.module.service import (
    AllocationNotFoundError,
    InvalidTeacherError,
    LevelNotFoundError,
    ModuleNotFoundError,
    ModuleService,
    NoClassAssignedError,
)
from src.models.module import (
    AllocateModuleRequest,
    AllocationFailure,
    AllocationResponse,
    BulkAllocateModuleRequest,
    BulkAllocateResponse,
    ModuleCreateRequest,
    ModuleResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> ModuleService:
    """Get module service instance.

    Args:
        db: Database session.

    Returns:
        Configured ModuleService instance.
    """
    return ModuleService(db=db)


@router.post(
    "",
    response_model=ModuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create module",
)
async def create_module(
    data: ModuleCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ModuleResponse:
    """Add a module to the institution's catalog."""
    service = _get_service(db)
    module = await service.create_module(data, current_user.tenant_id, current_user.id)
    return ModuleResponse.model_validate(module)


@router.get(
    "",
    response_model=list[ModuleResponse] | list[AllocationResponse],
    summary="List modules",
    description=(
        "Admins get the module catalog. Teachers get the allocations they teach; "
        "students get the allocations of their class's level."
    ),
)
async def list_modules(
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> list[ModuleResponse] | list[AllocationResponse]:
    """List modules visible to the caller."""
    service = _get_service(db)

    if current_user.is_admin:
        modules = await service.list_modules(current_user.tenant_id)
        return [ModuleResponse.model_validate(module) for module in modules]

    try:
        return await service.list_for_caller(current_user.caller)
    except NoClassAssignedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "/allocate",
    response_model=AllocationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Allocate module",
    description="Allocate a module to a level. Re-allocating replaces the teacher set.",
)
async def allocate_module(
    data: AllocateModuleRequest,
    response: Response,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AllocationResponse:
    """Create or replace an allocation.

    Returns 201 when the allocation is created and 200 when its teachers
    are replaced.
    """
    service = _get_service(db)

    try:
        outcome = await service.allocate(
            module_id=data.module_id,
            level_id=data.level_id,
            teacher_ids=data.teacher_ids,
            tenant_id=current_user.tenant_id,
        )
    except ModuleNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Module not found")
    except LevelNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Level not found")
    except InvalidTeacherError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not outcome.created:
        response.status_code = status.HTTP_200_OK

    described = await service.describe([outcome.allocation], current_user.tenant_id)
    return described[0]


@router.post(
    "/allocate-bulk",
    response_model=BulkAllocateResponse,
    summary="Allocate module to several levels",
)
async def allocate_module_bulk(
    data: BulkAllocateModuleRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> BulkAllocateResponse:
    """Allocate a module to several levels; each level succeeds or fails on its own."""
    service = _get_service(db)

    try:
        allocations, failed = await service.allocate_bulk(
            module_id=data.module_id,
            level_ids=data.level_ids,
            teacher_ids=data.teacher_ids,
            tenant_id=current_user.tenant_id,
        )
    except ModuleNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Module not found")
    except InvalidTeacherError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return BulkAllocateResponse(
        message=f"Module allocated to {len(allocations)} levels, {len(failed)} failed",
        allocations=await service.describe(allocations, current_user.tenant_id),
        failed=[AllocationFailure(**failure) for failure in failed],
    )


@router.get(
    "/{allocation_id}",
    response_model=AllocationResponse,
    summary="Get allocation",
)
async def get_allocation(
    allocation_id: str,
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> AllocationResponse:
    """Get allocation details if the caller may see it."""
    service = _get_service(db)

    try:
        return await service.get_allocation(allocation_id, current_user.caller)
    except AllocationNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Allocation not found")
    except AccessDeniedError as e:
        raise access_denied(e)
