"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


def seconds_ago(seconds: int, now: datetime | None = None) -> datetime:
    """UTC cutoff ``seconds`` before ``now`` (defaults to the current time)."""
    return (now or utc_now()) - timedelta(seconds=seconds)
