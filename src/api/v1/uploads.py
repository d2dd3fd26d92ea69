# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""File upload API endpoint.

- POST / - Store a file and return its public path
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from src.api.dependencies import get_file_storage, require_auth
from src.api.middleware.auth import CurrentUser
from src.infrastructure.storage import FileTooLargeError, LocalFileStorage, UnsupportedFileTypeError
from src.models.content import UploadResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=UploadResponse,
    summary="Upload file",
    description="Accepted types: jpg, jpeg, png, pdf, doc, docx, ppt, pptx, zip, rar.",
)
async def upload_file(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(require_auth),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> UploadResponse:
    """Store an uploaded file.

    Raises:
        HTTPException: 400 for a rejected type, 413 for an oversized file.
    """
    try:
        content = await storage.read_limited(file)
        file_path = await storage.save(file.filename, content)
    except UnsupportedFileTypeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except FileTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))

    logger.info("Upload by %s stored at %s", current_user.id, file_path)

    return UploadResponse(file_path=file_path)
