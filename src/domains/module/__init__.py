# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Module domain package.

This package provides the module catalog and module allocations:
- Catalog management
- Upsert allocation to levels and teachers
- Role-aware allocation access
"""

from src.domains.module.service import (
    AllocationNotFoundError,
    AllocationOutcome,
    InvalidTeacherError,
    LevelNotFoundError,
    ModuleNotFoundError,
    ModuleService,
    ModuleServiceError,
    NoClassAssignedError,
)

__all__ = [
    "AllocationNotFoundError",
    "AllocationOutcome",
    "InvalidTeacherError",
    "LevelNotFoundError",
    "ModuleNotFoundError",
    "ModuleService",
    "ModuleServiceError",
    "NoClassAssignedError",
]
