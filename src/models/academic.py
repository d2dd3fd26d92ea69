# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic structure models (levels and classes)."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.models.common import LevelType


class SpecialitySpec(BaseModel):
    """Number of classes to generate for one speciality."""

    name: str = Field(min_length=1, max_length=100)
    count: int = Field(ge=1, le=100)


class LevelCreateRequest(BaseModel):
    """Create a level and generate its classes.

    Levels with specialities use ``specialities``; other levels use
    ``class_count``.
    """

    name: str = Field(min_length=1, max_length=100)
    type: LevelType
    has_speciality: bool = False
    class_count: int | None = Field(default=None, ge=0, le=100)
    specialities: list[SpecialitySpec] | None = None


class LevelUpdateRequest(BaseModel):
    """Partial level update."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    type: LevelType | None = None
    has_speciality: bool | None = None


class LevelResponse(BaseModel):
    """Academic level details."""

    model_config = {"from_attributes": True}

    id: str
    name: str
    type: LevelType
    has_speciality: bool
    created_at: datetime | None = None


class LevelCreateResponse(BaseModel):
    """Created level with the number of generated classes."""

    level: LevelResponse
    classes_created: int


class ClassCreateRequest(BaseModel):
    """Create a single class in an existing level."""

    level_id: str
    speciality: str | None = Field(default=None, max_length=100)
    class_number: int = Field(ge=1)


class ClassResponse(BaseModel):
    """Class details with its level and head count."""

    model_config = {"from_attributes": True}

    id: str
    name: str
    level_id: str
    level_name: str | None = None
    level_type: LevelType | None = None
    speciality: str | None = None
    class_number: int
    student_count: int = 0
