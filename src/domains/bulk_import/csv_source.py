# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""CSV reading for user imports.

Every cell is read as text so matricules keep their leading zeros, and
empty cells stay empty strings instead of NaN.
"""

import io
import logging

import pandas as pd

logger = logging.getLogger(__name__)


class CSVSourceError(Exception):
    """Raised when an uploaded file cannot be read as CSV."""

    pass


def read_csv_rows(content: bytes) -> list[dict[str, str]]:
    """Parse CSV bytes into header-name to value rows.

    Args:
        content: Raw file content, UTF-8 with or without a byte-order mark.

    Returns:
        One dict per data row, in file order.

    Raises:
        CSVSourceError: If the content is not valid UTF-8 CSV.
    """
    if not content or not content.strip():
        return []

    try:
        df = pd.read_csv(
            io.BytesIO(content),
            dtype=str,
            keep_default_na=False,
            encoding="utf-8-sig",
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        logger.warning("CSV parsing failed: %s", str(e))
        raise CSVSourceError(f"Invalid CSV file: {str(e)}") from e

    df.columns = [str(column) for column in df.columns]
    logger.debug("Read %d CSV rows with columns %s", len(df), list(df.columns))

    return df.to_dict(orient="records")
