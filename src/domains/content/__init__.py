# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content domain package.

Course material, assignments and student submissions on module allocations.
"""

from src.domains.content.service import (
    AssignmentNotFoundError,
    ContentService,
    ContentServiceError,
    submission_status,
)

__all__ = [
    "AssignmentNotFoundError",
    "ContentService",
    "ContentServiceError",
    "submission_status",
]
