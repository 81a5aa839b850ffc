from __future__ import annotations

from datetime import datetime, timedelta, timezone

from shiptrack.core.entities.event import format_timestamp


def iso_ago(**delta: float) -> str:
    """ISO-8601 UTC timestamp `delta` before now, as clients send it."""
    return format_timestamp(datetime.now(timezone.utc) - timedelta(**delta))
