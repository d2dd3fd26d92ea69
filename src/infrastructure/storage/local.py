# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Local filesystem storage for uploaded files.

Files are written under the configured upload directory as
``file-<epoch millis><ext>`` and addressed by a public path such as
``/uploads/file-1718000000000.pdf``. The stored path is kept verbatim on
content and submission records.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

from src.core.config.settings import StorageSettings
from src.utils.datetime import epoch_millis

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage errors."""

    pass


class UnsupportedFileTypeError(StorageError):
    """Raised when the file extension is not accepted."""

    pass


class FileTooLargeError(StorageError):
    """Raised when the file exceeds the configured size limit."""

    pass


class LocalFileStorage:
    """Stores uploads in a local directory.

    Attributes:
        _settings: Storage configuration.
        _root: Upload directory.
    """

    def __init__(self, settings: StorageSettings) -> None:
        self._settings = settings
        self._root = Path(settings.upload_dir)

    @property
    def root(self) -> Path:
        return self._root

    def ensure_directory(self) -> Path:
        """Create the upload directory if missing."""
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    @property
    def max_bytes(self) -> int:
        return self._settings.max_upload_mb * 1024 * 1024

    async def read_limited(self, upload: Any, chunk_size: int = 1024 * 1024) -> bytes:
        """Read an upload in chunks, stopping as soon as it exceeds the limit.

        Args:
            upload: Object with an async ``read(size)``, such as FastAPI's UploadFile.
            chunk_size: Bytes per read.

        Returns:
            File bytes.

        Raises:
            FileTooLargeError: If the declared or actual size exceeds the limit.
        """
        declared = getattr(upload, "size", None)
        if declared is not None and declared > self.max_bytes:
            raise FileTooLargeError(f"File exceeds {self._settings.max_upload_mb} MB")

        chunks: list[bytes] = []
        total = 0
        while True:
            chunk = await upload.read(chunk_size)
            if not chunk:
                break
            total += len(chunk)
            if total > self.max_bytes:
                raise FileTooLargeError(f"File exceeds {self._settings.max_upload_mb} MB")
            chunks.append(chunk)

        return b"".join(chunks)

    def validate(self, filename: str | None, size: int) -> str:
        """Check a file against the accepted extensions and size limit.

        Returns:
            Lower-cased extension including the leading dot.

        Raises:
            UnsupportedFileTypeError: If the extension is not accepted.
            FileTooLargeError: If the file is too large.
        """
        extension = Path(filename or "").suffix.lower()
        if not extension or extension.lstrip(".") not in self._settings.extensions:
            raise UnsupportedFileTypeError(
                f"File type not allowed. Accepted: {', '.join(sorted(self._settings.extensions))}"
            )

        if size > self.max_bytes:
            raise FileTooLargeError(f"File exceeds {self._settings.max_upload_mb} MB")

        return extension

    async def save(self, filename: str | None, content: bytes) -> str:
        """Store a file and return its public path.

        Args:
            filename: Client file name, used for its extension only.
            content: File bytes.

        Returns:
            Public path under the configured URL prefix.
        """
        extension = self.validate(filename, len(content))
        stored_name = await asyncio.to_thread(self._write, extension, content)

        logger.info("Stored upload %s (%d bytes)", stored_name, len(content))

        return f"{self._settings.url_prefix.rstrip('/')}/{stored_name}"

    def _write(self, extension: str, content: bytes) -> str:
        self.ensure_directory()
        stamp = epoch_millis()
        suffix = 0
        while True:
            name = f"file-{stamp}{extension}" if suffix == 0 else f"file-{stamp}-{suffix}{extension}"
            try:
                with open(self._root / name, "xb") as buffer:
                    buffer.write(content)
                return name
            except FileExistsError:
                suffix += 1
