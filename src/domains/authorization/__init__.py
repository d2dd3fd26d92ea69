# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authorization domain package.

Pure access decisions based on role, tenant and ownership relations.
"""

from src.domains.authorization.gate import (
    AccessDecision,
    AccessDeniedError,
    Action,
    Caller,
    ForbiddenError,
    ResourceKind,
    ResourceNotFoundError,
    ResourceRelation,
    check_access,
    enforce,
    is_allowed,
)

__all__ = [
    "AccessDecision",
    "AccessDeniedError",
    "Action",
    "Caller",
    "ForbiddenError",
    "ResourceKind",
    "ResourceNotFoundError",
    "ResourceRelation",
    "check_access",
    "enforce",
    "is_allowed",
]
