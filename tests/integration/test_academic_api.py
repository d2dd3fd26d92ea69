# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the academic structure endpoints."""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from src.domains.academic.service import (
    DuplicateClassError,
    DuplicateLevelError,
    LevelNotFoundError,
    ValidationFailedError,
)
from src.infrastructure.database.models import AcademicLevel, SchoolClass
from src.models.academic import ClassResponse, LevelCreateRequest

BASE = "/api/v1/admin/academic-structure"


@pytest.fixture
def academic_service():
    with patch("src.api.v1.academic.AcademicService") as service_cls:
        yield service_cls.return_value


@pytest.fixture
def level(tenant_id) -> AcademicLevel:
    return AcademicLevel(
        id=str(uuid4()),
        name="M1",
        type="UNIVERSITY",
        has_speciality=True,
        owner_tenant_id=tenant_id,
    )


class TestLevels:
    """Tests for level endpoints."""

    def test_create_level_with_specialities(
        self, client, auth_headers, academic_service, level, tenant_id
    ) -> None:
        academic_service.create_level = AsyncMock(return_value=(level, 3))

        response = client.post(
            f"{BASE}/levels",
            json={
                "name": "M1",
                "type": "UNIVERSITY",
                "has_speciality": True,
                "specialities": [
                    {"name": "Informatique", "count": 2},
                    {"name": "Physique", "count": 1},
                ],
            },
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["classes_created"] == 3
        assert body["level"]["name"] == "M1"
        request, called_tenant = academic_service.create_level.await_args.args
        assert isinstance(request, LevelCreateRequest)
        assert called_tenant == tenant_id

    def test_unknown_level_type(self, client, auth_headers) -> None:
        response = client.post(
            f"{BASE}/levels",
            json={"name": "L1", "type": "HIGH_SCHOOL", "class_count": 2},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 422

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (DuplicateLevelError("Level M1 already exists"), 409),
            (DuplicateClassError("Class M1-1 already exists"), 409),
            (ValidationFailedError("Specialities are required"), 400),
        ],
    )
    def test_create_level_errors(self, client, auth_headers, academic_service, error, status_code) -> None:
        academic_service.create_level = AsyncMock(side_effect=error)

        response = client.post(
            f"{BASE}/levels",
            json={"name": "M1", "type": "UNIVERSITY", "has_speciality": True},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == status_code

    def test_list_levels(self, client, auth_headers, academic_service, level) -> None:
        academic_service.list_levels = AsyncMock(return_value=[level])

        response = client.get(f"{BASE}/levels", headers=auth_headers("ADMIN"))

        assert response.status_code == 200
        assert [item["id"] for item in response.json()] == [level.id]

    def test_update_missing_level(self, client, auth_headers, academic_service) -> None:
        academic_service.update_level = AsyncMock(side_effect=LevelNotFoundError("L9"))

        response = client.put(f"{BASE}/levels/L9", json={"name": "L3"}, headers=auth_headers("ADMIN"))

        assert response.status_code == 404

    @pytest.mark.parametrize(
        "error,expected",
        [
            (ValidationFailedError("Level 'L1' has classes"), 400),
            (DuplicateClassError("Class 'L2-1' already exists"), 409),
        ],
    )
    def test_update_level_errors(self, client, auth_headers, academic_service, error, expected) -> None:
        academic_service.update_level = AsyncMock(side_effect=error)

        response = client.put(
            f"{BASE}/levels/L1", json={"has_speciality": True}, headers=auth_headers("ADMIN")
        )

        assert response.status_code == expected

    def test_delete_level(self, client, auth_headers, academic_service, tenant_id) -> None:
        academic_service.delete_level = AsyncMock(return_value=4)

        response = client.delete(f"{BASE}/levels/L1", headers=auth_headers("ADMIN"))

        assert response.status_code == 200
        assert response.json()["message"] == "Level and 4 classes deleted"
        academic_service.delete_level.assert_awaited_once_with("L1", tenant_id)

    def test_teacher_cannot_manage_levels(self, client, auth_headers) -> None:
        response = client.get(f"{BASE}/levels", headers=auth_headers("TEACHER"))

        assert response.status_code == 403


class TestClasses:
    """Tests for class endpoints."""

    def test_create_class(self, client, auth_headers, academic_service, level, tenant_id) -> None:
        school_class = SchoolClass(
            id=str(uuid4()),
            level_id=level.id,
            speciality="Informatique",
            class_number=3,
            name="M1 Informatique 3",
            owner_tenant_id=tenant_id,
        )
        academic_service.create_class = AsyncMock(return_value=school_class)
        academic_service.get_level = AsyncMock(return_value=level)

        response = client.post(
            f"{BASE}/classes",
            json={"level_id": level.id, "speciality": "Informatique", "class_number": 3},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "M1 Informatique 3"
        assert body["level_name"] == "M1"
        assert body["student_count"] == 0

    def test_create_class_in_unknown_level(self, client, auth_headers, academic_service) -> None:
        academic_service.create_class = AsyncMock(side_effect=LevelNotFoundError("L9"))

        response = client.post(
            f"{BASE}/classes",
            json={"level_id": "L9", "class_number": 1},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 404

    def test_class_number_must_be_positive(self, client, auth_headers) -> None:
        response = client.post(
            f"{BASE}/classes",
            json={"level_id": "L1", "class_number": 0},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 422

    def test_list_classes_by_level(self, client, auth_headers, academic_service, tenant_id) -> None:
        academic_service.list_classes = AsyncMock(
            return_value=[
                ClassResponse(
                    id="c1",
                    name="L1-1",
                    level_id="L1",
                    level_name="L1",
                    level_type="UNIVERSITY",
                    class_number=1,
                    student_count=25,
                )
            ]
        )

        response = client.get(f"{BASE}/classes?level_id=L1", headers=auth_headers("ADMIN"))

        assert response.status_code == 200
        assert response.json()[0]["student_count"] == 25
        academic_service.list_classes.assert_awaited_once_with(tenant_id, "L1")
