"""Timestamps in the default layout of the Unix date command.

Example: "Mon Feb  4 10:08:05 CET 2017". The weekday must be a valid
abbreviation but is not checked against the date.
"""

import re
import time
from datetime import datetime, timedelta, timezone, tzinfo

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_UNIX_DATE = re.compile(
    r"(?P<weekday>[A-Z][a-z]{2}) (?P<month>[A-Z][a-z]{2}) {1,2}(?P<day>\d{1,2}) "
    r"(?P<hour>\d{1,2}):(?P<minute>\d{2}):(?P<second>\d{2}) "
    r"(?P<zone>[A-Z]{3,5}|[+-]\d{4}) (?P<year>\d{4})"
)
_ZONE_NAME = re.compile(r"[A-Z]{3,5}")


def _resolve_zone(name: str) -> tzinfo:
    """Map a zone abbreviation or numeric offset to a tzinfo.

    Abbreviations other than UTC/GMT only carry an offset when they name
    the local zone; anything else is kept by name with a zero offset.
    """
    if name[0] in "+-":
        offset = timedelta(hours=int(name[1:3]), minutes=int(name[3:5]))
        return timezone(-offset if name[0] == "-" else offset)

    if name in ("UTC", "GMT"):
        return timezone(timedelta(0), name)

    offset = 0
    if name == time.tzname[0]:
        offset = -time.timezone
    elif time.daylight and name == time.tzname[1]:
        offset = -time.altzone
    return timezone(timedelta(seconds=offset), name)


def parse_unix_date(text: str) -> datetime:
    """Parse a timezone-aware datetime from Unix date notation.

    Raises:
        ValueError: If a field is missing, has the wrong width or is out of range
    """
    match = _UNIX_DATE.fullmatch(text)
    if match is None:
        raise ValueError(f"failed to parse string time: {text!r}")

    if match.group("weekday") not in WEEKDAYS:
        raise ValueError(f"failed to parse string time: bad weekday in {text!r}")
    try:
        month = MONTHS.index(match.group("month")) + 1
    except ValueError:
        raise ValueError(f"failed to parse string time: bad month in {text!r}") from None

    try:
        return datetime(
            int(match.group("year")),
            month,
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
            int(match.group("second")),
            tzinfo=_resolve_zone(match.group("zone")),
        )
    except ValueError as e:
        raise ValueError(f"failed to parse string time: {e}") from e


def format_unix_date(value: datetime) -> str:
    """Format a datetime in Unix date notation (inverse of parse_unix_date)."""
    if value.tzinfo is None:
        value = value.astimezone()

    zone = value.tzname() or ""
    if not _ZONE_NAME.fullmatch(zone):
        zone = value.strftime("%z")

    return (
        f"{WEEKDAYS[value.weekday()]} {MONTHS[value.month - 1]} {value.day:>2} "
        f"{value:%H:%M:%S} {zone} {value.year:04d}"
    )
