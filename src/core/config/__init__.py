# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for EduScope.

Settings are Pydantic models loaded from environment variables, grouped
by concern (database, JWT, security, rate limiting, CORS, storage, API).

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from src.core.config.settings import (
    APISettings,
    CORSSettings,
    DatabaseSettings,
    JWTSettings,
    RateLimitSettings,
    SecuritySettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "JWTSettings",
    "SecuritySettings",
    "RateLimitSettings",
    "CORSSettings",
    "StorageSettings",
    "APISettings",
]
