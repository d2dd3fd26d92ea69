# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fixtures for HTTP-level tests.

The real application is built with create_app(); the database session
dependency is replaced by the shared AsyncSession double, and services
are patched per test where the route logic is what is being checked.
"""

from collections.abc import Callable, Iterator
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.dependencies import get_db
from src.core.config import clear_settings_cache, get_settings
from src.domains.auth.jwt import JWTManager


@pytest.fixture
def app(
    mock_db: AsyncMock,
    tmp_path,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[FastAPI]:
    """Application wired to the mocked session and a temporary upload dir."""
    monkeypatch.setenv("STORAGE_UPLOAD_DIR", str(tmp_path / "uploads"))
    clear_settings_cache()

    application = create_app()

    async def override_get_db():
        yield mock_db

    application.dependency_overrides[get_db] = override_get_db

    yield application

    application.dependency_overrides.clear()
    clear_settings_cache()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Test client that does not run the lifespan (no real database)."""
    return TestClient(app)


@pytest.fixture
def auth_headers(tenant_id: str) -> Callable[..., dict[str, str]]:
    """Factory for bearer headers of a caller in the test tenant."""

    def _headers(
        role: str = "ADMIN",
        user_id: str | None = None,
        tenant: str | None = None,
    ) -> dict[str, str]:
        if user_id is None:
            user_id = tenant_id if role == "ADMIN" else str(uuid4())
        token = JWTManager(get_settings().jwt).create_access_token(
            user_id=user_id,
            role=role,
            tenant_id=tenant or tenant_id,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
