# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP layer for EduScope.

FastAPI application factory, middleware, and the versioned routers.
"""

from src.api.app import create_app

__all__ = ["create_app"]
