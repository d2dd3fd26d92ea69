# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course content, assignment and submission models."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.models.common import ContentType, SubmissionStatus
from src.utils.datetime import ensure_utc


class ContentCreateRequest(BaseModel):
    """New course material."""

    type: ContentType
    title: str = Field(min_length=1, max_length=255)
    file_url: str | None = None
    link: str | None = None
    description: str | None = None


class BulkContentCreateRequest(ContentCreateRequest):
    """Same course material published to several allocations."""

    allocation_ids: list[str] = Field(min_length=1)


class ContentResponse(BaseModel):
    """Course material."""

    model_config = {"from_attributes": True}

    id: str
    allocation_id: str
    type: ContentType
    title: str
    file_url: str | None = None
    link: str | None = None
    description: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None


class AssignmentCreateRequest(BaseModel):
    """New assignment. Naive deadlines are interpreted as UTC."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    deadline: datetime

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class BulkAssignmentCreateRequest(AssignmentCreateRequest):
    """Same assignment published to several allocations."""

    allocation_ids: list[str] = Field(min_length=1)


class SubmitAssignmentRequest(BaseModel):
    """Student submission pointing at an uploaded file."""

    file_url: str = Field(min_length=1, max_length=500)


class SubmissionResponse(BaseModel):
    """Submission with the submitting student's identity."""

    id: str
    assignment_id: str
    student_id: str
    file_url: str
    submitted_at: datetime
    status: SubmissionStatus
    student_name: str | None = None
    student_matricule: str | None = None


class AssignmentResponse(BaseModel):
    """Assignment, with the caller's own submission for students."""

    id: str
    allocation_id: str
    title: str
    description: str | None = None
    deadline: datetime
    created_by: str | None = None
    created_at: datetime | None = None
    my_submission: SubmissionResponse | None = None


class UploadResponse(BaseModel):
    """Public path of a stored upload."""

    file_path: str
