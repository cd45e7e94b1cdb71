from __future__ import annotations

import datetime
import re
import zoneinfo

from django.utils import timezone

from .errors import CallSite
from .errors import InvalidZoneId

_OFFSET = re.compile(
    r"""^(?:(?P<prefix>UTC|GMT|UT)(?=$|[+-]))?
    (?:(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?)?$""",
    re.VERBOSE,
)


def parse_zone(key: str, call_site: CallSite | None = None) -> datetime.tzinfo:
    """Parses a zone identifier.

    Accepts IANA zone keys ("Europe/Paris"), "Z", bare UTC/GMT/UT with an
    optional offset ("UTC+1", "GMT-05:30"), and bare offsets ("+02:00",
    "-0500", "+3"). Bare "UTC", "UT" and "GMT" resolve to the zoneinfo zones
    "UTC" and "GMT". Offsets become fixed-offset zones.

    Raises:
        InvalidZoneId: If the identifier is not recognized.
    """
    key = key.strip()
    if key == "Z":
        return datetime.UTC
    if (m := _OFFSET.match(key)) and (m["prefix"] or m["sign"]):
        if not m["sign"]:
            return zoneinfo.ZoneInfo("GMT" if m["prefix"] == "GMT" else "UTC")
        hours, minutes = int(m["hours"]), int(m["minutes"] or 0)
        if hours > 18 or minutes > 59:
            raise InvalidZoneId(f"Zone offset '{key}' is out of range.", call_site)
        offset = datetime.timedelta(hours=hours, minutes=minutes)
        if m["sign"] == "-":
            offset = -offset
        return datetime.timezone(offset)
    try:
        return zoneinfo.ZoneInfo(key)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidZoneId(f"Unknown time zone '{key}'.", call_site) from exc


def embedded_zone(value: datetime.date | datetime.time) -> datetime.tzinfo | None:
    """Returns the zone carried by the value itself, if any.

    Dates never carry a zone. Times and datetimes only count as zoned if
    their tzinfo actually yields an offset.
    """
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None and value.utcoffset() is not None:
            return value.tzinfo
        return None
    if isinstance(value, datetime.time):
        if value.tzinfo is not None and value.utcoffset() is not None:
            return value.tzinfo
    return None


def resolve_zone(
    value: datetime.date | datetime.time,
    override: str | None = None,
    call_site: CallSite | None = None,
) -> datetime.tzinfo:
    # The value's own zone always wins.
    if (zone := embedded_zone(value)) is not None:
        return zone
    if override is not None:
        return parse_zone(override, call_site)
    return timezone.get_current_timezone()


def output_zone(
    override: str | None = None, call_site: CallSite | None = None
) -> datetime.tzinfo:
    """Zone for legacy instants, which never carry one of their own."""
    if override is not None:
        return parse_zone(override, call_site)
    return timezone.get_current_timezone()
