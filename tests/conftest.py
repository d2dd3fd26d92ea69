# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (services against a mocked AsyncSession)
- Integration tests (HTTP routes through the real application)
- Database tests (skipped unless TEST_DATABASE_URL is set)
"""

import os

# Must be set before any src import reads settings
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "30")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SECURITY_BCRYPT_ROUNDS", "4")

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from pydantic import SecretStr

from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from tests.helpers import FakeSavepoint


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "database: mark test as requiring a PostgreSQL database"
    )


# =============================================================================
# Session Doubles
# =============================================================================


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.delete = AsyncMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.savepoint = FakeSavepoint()
    db.begin_nested = MagicMock(return_value=db.savepoint)
    return db


# =============================================================================
# Auth Fixtures
# =============================================================================


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-testing-only")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


@pytest.fixture
def hasher() -> PasswordHasher:
    """Fast password hasher for tests."""
    return PasswordHasher(rounds=4)


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def tenant_id() -> str:
    """Provide a tenant (admin root) ID for testing."""
    return str(uuid4())


@pytest.fixture
def make_user(tenant_id: str) -> Callable[..., MagicMock]:
    """Factory for user model doubles."""

    def _make(role: str = "STUDENT", **overrides: Any) -> MagicMock:
        user = MagicMock()
        user.id = str(uuid4())
        user.role = role
        user.full_name = f"Test {role.title()}"
        user.username = "12345"
        user.matricule = "12345"
        user.class_id = None
        user.first_login = True
        user.preferred_language = "fr"
        user.owner_tenant_id = tenant_id
        user.created_at = datetime.now(timezone.utc)
        user.updated_at = datetime.now(timezone.utc)
        user.is_admin = role == "ADMIN"
        user.is_teacher = role == "TEACHER"
        user.is_student = role == "STUDENT"
        for key, value in overrides.items():
            setattr(user, key, value)
        if "is_tenant_root" not in overrides:
            user.is_tenant_root = user.id == user.owner_tenant_id
        return user

    return _make
