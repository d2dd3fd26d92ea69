# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP translation of access gate denials.

Resources owned by another institution are reported as 404 so their
existence never leaks; same-institution role violations are 403.
"""

from fastapi import HTTPException, status

from src.domains.authorization import AccessDeniedError, ForbiddenError


def access_denied(error: AccessDeniedError) -> HTTPException:
    """Map a gate denial to an HTTP error."""
    if isinstance(error, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
