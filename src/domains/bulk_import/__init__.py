# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bulk import domain package.

CSV ingestion of teachers and students with tenant and in-batch
de-duplication.
"""

from src.domains.bulk_import.csv_source import CSVSourceError, read_csv_rows
from src.domains.bulk_import.service import (
    BulkImportService,
    ImportResult,
    StagedUser,
    normalize_key,
    normalize_row,
)

__all__ = [
    "BulkImportService",
    "CSVSourceError",
    "ImportResult",
    "StagedUser",
    "normalize_key",
    "normalize_row",
    "read_csv_rows",
]
