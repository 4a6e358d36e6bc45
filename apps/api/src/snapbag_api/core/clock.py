from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite round trips) as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(moment: datetime, tz_name: str | None = None) -> datetime:
    """Return the UTC instant of local midnight for the calendar day containing ``moment``.

    ``tz_name`` is an IANA zone; when omitted the server's local zone decides
    where the day boundary falls.
    """

    moment = ensure_aware(moment)
    local = moment.astimezone(ZoneInfo(tz_name)) if tz_name else moment.astimezone()
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc)
