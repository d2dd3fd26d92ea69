# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""File storage for uploaded course material and submissions."""

from src.infrastructure.storage.local import (
    FileTooLargeError,
    LocalFileStorage,
    StorageError,
    UnsupportedFileTypeError,
)

__all__ = [
    "FileTooLargeError",
    "LocalFileStorage",
    "StorageError",
    "UnsupportedFileTypeError",
]
