"""Clock and timezone conversions shared by repositories and use cases.

Notification timestamps are persisted as naive ``DATETIME`` values expressed
in the application timezone. Everything above the repositories works with
aware datetimes.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from nerbabo.config import get_settings

FALLBACK_TIMEZONE = "Europe/Lisbon"


def parse_timezone(name: str) -> tzinfo | None:
    """Return the tzinfo for an IANA name or a ``UTC+01:00`` style offset."""

    name = name.strip()
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        pass

    offset = name.upper().removeprefix("UTC").removeprefix("GMT")
    if not offset or offset[0] not in "+-":
        return None
    hours, _, minutes = offset[1:].partition(":")
    if not hours.isdigit() or (minutes and not minutes.isdigit()):
        return None
    delta = timedelta(hours=int(hours), minutes=int(minutes or 0))
    if delta >= timedelta(hours=24):
        return None
    return timezone(-delta if offset[0] == "-" else delta)


@lru_cache(maxsize=1)
def app_timezone() -> tzinfo:
    """Timezone configured through ``APP_TIMEZONE``, Lisbon when unusable."""

    return parse_timezone(get_settings().app_timezone) or ZoneInfo(FALLBACK_TIMEZONE)


def app_now() -> datetime:
    return datetime.now(tz=app_timezone())


def storage_now() -> datetime:
    """Current time in the form stored by the ``DATETIME`` columns."""

    return app_now().replace(tzinfo=None)


def to_app_time(value: datetime | None) -> datetime | None:
    """Attach or convert to the app timezone; naive values are read as local."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=app_timezone())
    return value.astimezone(app_timezone())


def to_storage_time(value: datetime | None) -> datetime | None:
    local = to_app_time(value)
    return local.replace(tzinfo=None) if local is not None else None


__all__ = [
    "FALLBACK_TIMEZONE",
    "app_now",
    "app_timezone",
    "parse_timezone",
    "storage_now",
    "to_app_time",
    "to_storage_time",
]
