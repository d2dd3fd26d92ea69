# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Module catalog and allocation models."""

from datetime import datetime

from pydantic import BaseModel, Field


class ModuleCreateRequest(BaseModel):
    """Catalog module definition."""

    name: str = Field(min_length=1, max_length=200)
    description: str | None = None


class ModuleResponse(BaseModel):
    """Catalog module."""

    model_config = {"from_attributes": True}

    id: str
    name: str
    description: str | None = None
    created_at: datetime | None = None


class AllocateModuleRequest(BaseModel):
    """Allocate a module to one level."""

    module_id: str
    level_id: str
    teacher_ids: list[str] = Field(default_factory=list)


class BulkAllocateModuleRequest(BaseModel):
    """Allocate a module to several levels with the same teachers."""

    module_id: str
    level_ids: list[str] = Field(min_length=1)
    teacher_ids: list[str] = Field(default_factory=list)


class TeacherSummary(BaseModel):
    """Teacher shown on an allocation."""

    id: str
    full_name: str


class AllocationResponse(BaseModel):
    """Module allocation with resolved names."""

    id: str
    module_id: str
    level_id: str
    teacher_ids: list[str]
    module: ModuleResponse | None = None
    level_name: str | None = None
    teachers: list[TeacherSummary] = Field(default_factory=list)


class AllocationFailure(BaseModel):
    """A level that could not be allocated in a bulk request."""

    level_id: str
    reason: str


class BulkAllocateResponse(BaseModel):
    """Per-level outcome of a bulk allocation."""

    message: str
    allocations: list[AllocationResponse]
    failed: list[AllocationFailure] = Field(default_factory=list)
