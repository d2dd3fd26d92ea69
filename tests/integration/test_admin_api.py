# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the user administration endpoints."""

from unittest.mock import AsyncMock, patch

import pytest

from src.api.dependencies import get_file_storage
from src.core.config.settings import StorageSettings
from src.domains.academic.service import ClassNotFoundError, NotAStudentError, StudentNotFoundError
from src.domains.identity.service import (
    DuplicateIdentityError,
    InvalidMatriculeError,
    ProtectedUserError,
    UserNotFoundError,
)
from src.infrastructure.storage import LocalFileStorage
from src.models.common import UserRole
from src.models.user import AdminCreationRequest, StaffCreationRequest, StatsResponse
from tests.helpers import make_result


@pytest.fixture
def identity_service():
    with patch("src.api.v1.users.IdentityService") as service_cls:
        yield service_cls.return_value


@pytest.fixture
def academic_service():
    with patch("src.api.v1.users.AcademicService") as service_cls:
        yield service_cls.return_value


class TestAdminGuard:
    """Tests that every admin route rejects other roles."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/v1/admin/users"),
            ("get", "/api/v1/admin/stats"),
            ("delete", "/api/v1/admin/users/u1"),
            ("get", "/api/v1/admin/classes/c1/students"),
        ],
    )
    def test_teacher_forbidden(self, client, auth_headers, method, path) -> None:
        response = client.request(method, path, headers=auth_headers("TEACHER"))

        assert response.status_code == 403

    def test_anonymous_unauthorized(self, client) -> None:
        response = client.get("/api/v1/admin/users")

        assert response.status_code == 401


class TestCreateUser:
    """Tests for POST /api/v1/admin/users."""

    def test_create_student(self, client, auth_headers, identity_service, make_user, tenant_id) -> None:
        student = make_user("STUDENT", matricule="20241000", username="20241000", class_id="c1")
        identity_service.create_user = AsyncMock(return_value=student)

        response = client.post(
            "/api/v1/admin/users",
            json={
                "role": "STUDENT",
                "full_name": "Amina K",
                "matricule": "20241000",
                "class_id": "c1",
            },
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 201
        assert response.json()["matricule"] == "20241000"
        kwargs = identity_service.create_user.await_args.kwargs
        assert isinstance(kwargs["request"], StaffCreationRequest)
        assert kwargs["tenant_id"] == tenant_id
        assert kwargs["created_by"] == tenant_id

    def test_create_admin_payload(self, client, auth_headers, identity_service, make_user) -> None:
        """Test that the role tag selects the admin payload."""
        identity_service.create_user = AsyncMock(return_value=make_user("ADMIN", matricule=None))

        response = client.post(
            "/api/v1/admin/users",
            json={
                "role": "ADMIN",
                "full_name": "Co Admin",
                "username": "coadmin",
                "password": "secret1",
            },
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 201
        assert isinstance(identity_service.create_user.await_args.kwargs["request"], AdminCreationRequest)

    def test_staff_without_matricule(self, client, auth_headers) -> None:
        response = client.post(
            "/api/v1/admin/users",
            json={"role": "TEACHER", "full_name": "No Matricule"},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 422

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (InvalidMatriculeError("Matricule must contain digits only"), 400),
            (DuplicateIdentityError("Matricule already exists"), 409),
            (ClassNotFoundError("c9"), 404),
        ],
    )
    def test_error_mapping(self, client, auth_headers, identity_service, error, status_code) -> None:
        identity_service.create_user = AsyncMock(side_effect=error)

        response = client.post(
            "/api/v1/admin/users",
            json={"role": "STUDENT", "full_name": "X", "matricule": "12a"},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == status_code


class TestListAndDelete:
    """Tests for listing and deleting users."""

    def test_list_by_role(self, client, auth_headers, identity_service, make_user, tenant_id) -> None:
        identity_service.list_users = AsyncMock(return_value=[make_user("TEACHER"), make_user("TEACHER")])

        response = client.get("/api/v1/admin/users?role=TEACHER", headers=auth_headers("ADMIN"))

        assert response.status_code == 200
        assert response.json()["total"] == 2
        identity_service.list_users.assert_awaited_once_with(tenant_id, UserRole.TEACHER)

    def test_delete_self_rejected(self, client, auth_headers, identity_service, tenant_id) -> None:
        identity_service.delete_user = AsyncMock(
            side_effect=ProtectedUserError("You cannot delete your own account")
        )

        response = client.delete(f"/api/v1/admin/users/{tenant_id}", headers=auth_headers("ADMIN"))

        assert response.status_code == 400

    def test_delete_foreign_user(self, client, auth_headers, identity_service) -> None:
        identity_service.delete_user = AsyncMock(side_effect=UserNotFoundError("u1"))

        response = client.delete("/api/v1/admin/users/u1", headers=auth_headers("ADMIN"))

        assert response.status_code == 404


class TestImport:
    """Tests for POST /api/v1/admin/users/import through the real import pipeline."""

    def test_import_csv(self, client, auth_headers, mock_db) -> None:
        """Test that valid rows are created and invalid ones counted as skipped."""
        mock_db.execute.side_effect = [
            make_result(rows=[("L1-1", "class-1")]),
            make_result(rows=[]),
        ]
        csv = (
            "\ufefffullName,role,matricule,className\n"
            "Amina K,STUDENT,1001,L1-1\n"
            "Prof X,teacher,2002,\n"
            "Bad,PARENT,3003,\n"
        ).encode("utf-8")

        response = client.post(
            "/api/v1/admin/users/import",
            files={"file": ("users.csv", csv, "text/csv")},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 200
        body = response.json()
        assert (body["created"], body["skipped"], body["total"]) == (2, 1, 3)
        assert body["message"] == "Import complete: 2 created, 1 skipped."
        assert mock_db.add.call_count == 2

    def test_import_empty_file(self, client, auth_headers, mock_db) -> None:
        response = client.post(
            "/api/v1/admin/users/import",
            files={"file": ("users.csv", b"", "text/csv")},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 200
        assert response.json()["total"] == 0
        mock_db.commit.assert_not_awaited()

    def test_import_invalid_encoding(self, client, auth_headers) -> None:
        response = client.post(
            "/api/v1/admin/users/import",
            files={"file": ("users.csv", b"fullName,role\n\xff\xfe\xfa,STUDENT\n", "text/csv")},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 400

    def test_import_over_upload_limit(self, app, client, auth_headers, mock_db, tmp_path) -> None:
        app.dependency_overrides[get_file_storage] = lambda: LocalFileStorage(
            StorageSettings(upload_dir=str(tmp_path), max_upload_mb=1)
        )
        header = b"fullName,role,matricule\n"
        body = header + b"Student,STUDENT,1\n" * (1024 * 1024 // 16)

        response = client.post(
            "/api/v1/admin/users/import",
            files={"file": ("users.csv", body, "text/csv")},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 413
        mock_db.execute.assert_not_awaited()


class TestStatsAndMembership:
    """Tests for dashboard counters and class membership."""

    def test_stats(self, client, auth_headers, identity_service) -> None:
        identity_service.get_stats = AsyncMock(
            return_value=StatsResponse(students=10, teachers=3, classes=2, modules=4, total_users=14)
        )

        response = client.get("/api/v1/admin/stats", headers=auth_headers("ADMIN"))

        assert response.status_code == 200
        assert response.json()["total_users"] == 14

    def test_assign_students(self, client, auth_headers, academic_service, tenant_id) -> None:
        academic_service.assign_students = AsyncMock(return_value=2)

        response = client.post(
            "/api/v1/admin/classes/c1/students",
            json={"student_ids": ["s1", "s2", "t1"]},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 200
        assert response.json()["modified_count"] == 2
        academic_service.assign_students.assert_awaited_once_with("c1", ["s1", "s2", "t1"], tenant_id)

    def test_assign_to_foreign_class(self, client, auth_headers, academic_service) -> None:
        academic_service.assign_students = AsyncMock(side_effect=ClassNotFoundError("c1"))

        response = client.post(
            "/api/v1/admin/classes/c1/students",
            json={"student_ids": ["s1"]},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 404

    def test_remove_student_not_in_class(self, client, auth_headers, academic_service) -> None:
        academic_service.remove_student_from_class = AsyncMock(side_effect=StudentNotFoundError("s1"))

        response = client.delete("/api/v1/admin/classes/c1/students/s1", headers=auth_headers("ADMIN"))

        assert response.status_code == 404
        assert response.json()["detail"] == "Student not found in class"

    def test_clear_student_class(self, client, auth_headers, academic_service, make_user, tenant_id) -> None:
        academic_service.update_student_class = AsyncMock(return_value=make_user("STUDENT"))

        response = client.put(
            "/api/v1/admin/users/s1/class",
            json={"class_id": None},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 200
        academic_service.update_student_class.assert_awaited_once_with("s1", None, tenant_id)

    def test_class_on_teacher_rejected(self, client, auth_headers, academic_service) -> None:
        academic_service.update_student_class = AsyncMock(side_effect=NotAStudentError("t1"))

        response = client.put(
            "/api/v1/admin/users/t1/class",
            json={"class_id": "c1"},
            headers=auth_headers("ADMIN"),
        )

        assert response.status_code == 400
