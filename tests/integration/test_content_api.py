# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for course content, assignment and submission endpoints."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from src.domains.authorization import ForbiddenError, ResourceNotFoundError
from src.domains.content import AssignmentNotFoundError
from src.domains.module import AllocationNotFoundError
from src.infrastructure.database.models import Assignment, ModuleContent, Submission
from src.models.content import AssignmentResponse, SubmissionResponse

NOW = datetime.now(timezone.utc)


@pytest.fixture
def content_service():
    with patch("src.api.v1.content.ContentService") as service_cls:
        yield service_cls.return_value


def make_content(allocation_id: str = "a1") -> ModuleContent:
    return ModuleContent(
        id=str(uuid4()),
        allocation_id=allocation_id,
        type="TD",
        title="Series 1",
        file_url="/uploads/series1.pdf",
        created_by="t1",
    )


def make_assignment(allocation_id: str = "a1") -> Assignment:
    return Assignment(
        id=str(uuid4()),
        allocation_id=allocation_id,
        title="Homework",
        deadline=NOW + timedelta(days=2),
        created_by="t1",
    )


class TestContent:
    """Tests for allocation course material."""

    def test_add_content(self, client, auth_headers, content_service) -> None:
        content_service.add_content = AsyncMock(return_value=make_content())

        response = client.post(
            "/api/v1/modules/a1/content",
            json={"type": "TD", "title": "Series 1", "file_url": "/uploads/series1.pdf"},
            headers=auth_headers("TEACHER", user_id="t1"),
        )

        assert response.status_code == 201
        assert response.json()["type"] == "TD"

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (ForbiddenError("Not authorized to write this content"), 403),
            (ResourceNotFoundError("Content not found"), 404),
            (AllocationNotFoundError("a1"), 404),
        ],
    )
    def test_add_content_denied(self, client, auth_headers, content_service, error, status_code) -> None:
        content_service.add_content = AsyncMock(side_effect=error)

        response = client.post(
            "/api/v1/modules/a1/content",
            json={"type": "COURSE", "title": "Intro"},
            headers=auth_headers("TEACHER"),
        )

        assert response.status_code == status_code

    def test_unknown_content_type(self, client, auth_headers) -> None:
        response = client.post(
            "/api/v1/modules/a1/content",
            json={"type": "VIDEO", "title": "Intro"},
            headers=auth_headers("TEACHER"),
        )

        assert response.status_code == 422

    def test_list_content(self, client, auth_headers, content_service) -> None:
        content_service.list_content = AsyncMock(return_value=[make_content(), make_content()])

        response = client.get("/api/v1/modules/a1/content", headers=auth_headers("STUDENT"))

        assert response.status_code == 200
        assert len(response.json()) == 2


class TestBulkPublishing:
    """Tests for bulk content and assignment publishing."""

    def test_bulk_content_route_is_not_an_allocation(self, client, auth_headers, content_service) -> None:
        """Test that /modules/bulk/content reaches the bulk endpoint."""
        content_service.bulk_add_content = AsyncMock(
            return_value=[make_content("a1"), make_content("a2")]
        )

        response = client.post(
            "/api/v1/modules/bulk/content",
            json={"type": "TP", "title": "Lab", "allocation_ids": ["a1", "a2"]},
            headers=auth_headers("TEACHER"),
        )

        assert response.status_code == 201
        assert [item["allocation_id"] for item in response.json()] == ["a1", "a2"]
        content_service.add_content.assert_not_called()

    def test_bulk_content_teacher_only(self, client, auth_headers) -> None:
        response = client.post(
            "/api/v1/modules/bulk/content",
            json={"type": "TP", "title": "Lab", "allocation_ids": ["a1"]},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 403

    def test_bulk_assignment_denied_for_one_target(self, client, auth_headers, content_service) -> None:
        content_service.bulk_create_assignment = AsyncMock(
            side_effect=ForbiddenError("Not authorized to write this assignment")
        )

        response = client.post(
            "/api/v1/modules/bulk/assignments",
            json={
                "title": "HW",
                "deadline": (NOW + timedelta(days=1)).isoformat(),
                "allocation_ids": ["a1", "a2"],
            },
            headers=auth_headers("TEACHER"),
        )

        assert response.status_code == 403


class TestAssignments:
    """Tests for assignment endpoints."""

    def test_create_assignment_naive_deadline(self, client, auth_headers, content_service) -> None:
        """Test that a deadline without offset reaches the service as UTC."""
        content_service.create_assignment = AsyncMock(return_value=make_assignment())

        response = client.post(
            "/api/v1/modules/a1/assignments",
            json={"title": "Homework", "deadline": "2030-01-01T12:00:00"},
            headers=auth_headers("TEACHER"),
        )

        assert response.status_code == 201
        request = content_service.create_assignment.await_args.args[1]
        assert request.deadline == datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_student_listing_carries_own_submission(self, client, auth_headers, content_service) -> None:
        assignment = make_assignment()
        content_service.list_assignments = AsyncMock(
            return_value=[
                AssignmentResponse(
                    id=assignment.id,
                    allocation_id="a1",
                    title="Homework",
                    deadline=assignment.deadline,
                    my_submission=SubmissionResponse(
                        id="sub1",
                        assignment_id=assignment.id,
                        student_id="s1",
                        file_url="/uploads/w.pdf",
                        submitted_at=NOW,
                        status="SUBMITTED",
                    ),
                )
            ]
        )

        response = client.get("/api/v1/modules/a1/assignments", headers=auth_headers("STUDENT", user_id="s1"))

        assert response.status_code == 200
        assert response.json()[0]["my_submission"]["status"] == "SUBMITTED"


class TestSubmissions:
    """Tests for submit and review endpoints."""

    def submission(self, status: str = "SUBMITTED") -> Submission:
        return Submission(
            id="sub1",
            assignment_id="as1",
            student_id="s1",
            file_url="/uploads/w.pdf",
            submitted_at=NOW,
            status=status,
        )

    def test_first_submission_created(self, client, auth_headers, content_service) -> None:
        content_service.submit_assignment = AsyncMock(return_value=(self.submission(), True))

        response = client.post(
            "/api/v1/assignments/as1/submit",
            json={"file_url": "/uploads/w.pdf"},
            headers=auth_headers("STUDENT", user_id="s1"),
        )

        assert response.status_code == 201
        assert response.json()["status"] == "SUBMITTED"

    def test_resubmission_ok(self, client, auth_headers, content_service) -> None:
        content_service.submit_assignment = AsyncMock(return_value=(self.submission("LATE"), False))

        response = client.post(
            "/api/v1/assignments/as1/submit",
            json={"file_url": "/uploads/w2.pdf"},
            headers=auth_headers("STUDENT", user_id="s1"),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "LATE"

    def test_teacher_cannot_submit(self, client, auth_headers) -> None:
        response = client.post(
            "/api/v1/assignments/as1/submit",
            json={"file_url": "/uploads/w.pdf"},
            headers=auth_headers("TEACHER"),
        )

        assert response.status_code == 403

    def test_submit_unknown_assignment(self, client, auth_headers, content_service) -> None:
        content_service.submit_assignment = AsyncMock(side_effect=AssignmentNotFoundError("as9"))

        response = client.post(
            "/api/v1/assignments/as9/submit",
            json={"file_url": "/uploads/w.pdf"},
            headers=auth_headers("STUDENT"),
        )

        assert response.status_code == 404

    def test_student_of_other_level_forbidden(self, client, auth_headers, content_service) -> None:
        content_service.submit_assignment = AsyncMock(
            side_effect=ForbiddenError("Not authorized to submit this assignment")
        )

        response = client.post(
            "/api/v1/assignments/as1/submit",
            json={"file_url": "/uploads/w.pdf"},
            headers=auth_headers("STUDENT"),
        )

        assert response.status_code == 403

    def test_list_submissions(self, client, auth_headers, content_service) -> None:
        content_service.list_submissions = AsyncMock(
            return_value=[
                SubmissionResponse(
                    id="sub1",
                    assignment_id="as1",
                    student_id="s1",
                    file_url="/uploads/w.pdf",
                    submitted_at=NOW,
                    status="LATE",
                    student_name="Amina B",
                    student_matricule="20240001",
                )
            ]
        )

        response = client.get("/api/v1/assignments/as1/submissions", headers=auth_headers("TEACHER"))

        assert response.status_code == 200
        assert response.json()[0]["student_matricule"] == "20240001"
