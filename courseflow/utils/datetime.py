# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Aware datetime helpers.

Every timestamp the engine writes is an aware UTC datetime. Lesson times are
computed in the configured school timezone by the schedule generator and
pass through ensure_utc() before they reach a row. SQLite hands stored
values back without tzinfo; ensure_utc() reads those as UTC too.

Example:
    enrolled_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Normalize a datetime to aware UTC.

    Args:
        value: Aware datetime in any zone, naive datetime taken as UTC,
            or None.

    Returns:
        The same instant in UTC, or None.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
