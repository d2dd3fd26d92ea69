# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for EduScope.

All timestamps are stored in UTC (PostgreSQL TIMESTAMPTZ) and every
Python datetime handled by the services is timezone-aware.

Usage:
------
    from src.utils.datetime import utc_now

    # For SQLAlchemy model defaults
    created_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def is_past(deadline: datetime, reference: datetime | None = None) -> bool:
    """Check whether a deadline has already passed.

    Args:
        deadline: Deadline to compare (naive values are treated as UTC).
        reference: Point in time to compare against. Defaults to now.

    Returns:
        True if reference is strictly after the deadline.
    """
    reference = ensure_utc(reference) or utc_now()
    return reference > ensure_utc(deadline)


def epoch_millis(dt: datetime | None = None) -> int:
    """Milliseconds since the Unix epoch for dt (or now)."""
    return int((dt or utc_now()).timestamp() * 1000)
