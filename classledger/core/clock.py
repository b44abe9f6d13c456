"""UTC time helpers shared by the host, the event log and its backends.

Every timestamp the ledger stores or compares is timezone-aware UTC, so
ISO strings sort the same way as the instants they name.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Express ``value`` in UTC; naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
