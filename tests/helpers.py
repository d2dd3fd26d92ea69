# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Test doubles shared by unit and integration tests."""

from typing import Any
from unittest.mock import MagicMock


class FakeSavepoint:
    """Async context manager standing in for AsyncSession.begin_nested()."""

    def __init__(self) -> None:
        self.entered = 0
        self.rolled_back = 0

    async def __aenter__(self) -> "FakeSavepoint":
        self.entered += 1
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.rolled_back += 1
        return False


def make_result(
    scalar: Any = None,
    scalars: list[Any] | None = None,
    rows: list[Any] | None = None,
    rowcount: int = 0,
) -> MagicMock:
    """Build a mock SQLAlchemy Result.

    Args:
        scalar: Value for scalar_one_or_none() / scalar_one() / scalar().
        scalars: Values for scalars().all().
        rows: Values for all().
        rowcount: Affected row count for UPDATE/DELETE.
    """
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalar_one.return_value = scalar
    result.scalar.return_value = scalar
    result.scalars.return_value.all.return_value = list(scalars or [])
    result.all.return_value = list(rows or [])
    result.rowcount = rowcount
    return result
