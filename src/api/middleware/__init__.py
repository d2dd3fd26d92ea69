# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

This package provides middleware for request processing:
- AuthMiddleware: JWT authentication.
- limiter: slowapi rate limiting per client.

Exports:
    AuthMiddleware: JWT authentication middleware.
    CurrentUser: Authenticated caller resolved from the token.
    limiter: Shared slowapi limiter.
"""

from src.api.middleware.auth import AuthMiddleware, CurrentUser
from src.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler

__all__ = [
    "AuthMiddleware",
    "CurrentUser",
    "limiter",
    "rate_limit_exceeded_handler",
]
