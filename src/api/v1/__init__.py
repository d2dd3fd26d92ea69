# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    auth: Login, admin registration, password and profile endpoints.
    users: User administration, CSV import, statistics and class membership.
    academic: Levels and classes.
    modules: Module catalog and allocations.
    content: Course material, assignments and submissions.
    uploads: File uploads.
"""

from fastapi import APIRouter

from src.api.v1 import academic, auth, content, modules, uploads, users

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(users.router, prefix="/admin", tags=["Administration"])
router.include_router(
    academic.router,
    prefix="/admin/academic-structure",
    tags=["Academic Structure"],
)
# Content routes first: /modules/bulk/... must not be captured by /modules/{allocation_id}
router.include_router(content.router, tags=["Content"])
router.include_router(modules.router, prefix="/modules", tags=["Modules"])
router.include_router(uploads.router, prefix="/upload", tags=["Uploads"])

__all__ = ["router"]
