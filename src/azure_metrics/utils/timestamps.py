"""UTC timestamp helpers shared by the window resolver and query builder."""

from __future__ import annotations

from datetime import datetime, timezone

# RFC 3339 with whole seconds, the form the metrics API echoes back.
TIMESPAN_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return ensure_utc(value).strftime(TIMESPAN_FORMAT)


def from_epoch_seconds(raw: str | int | float) -> datetime:
    return datetime.fromtimestamp(int(raw), tz=timezone.utc)
