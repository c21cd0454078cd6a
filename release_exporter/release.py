"""Selection of the latest chart release and release date formatting."""

import re
from datetime import datetime, timedelta, timezone

from .errors import ChartNotFound, DateParseError
from .models import ChartIndex, ReleaseEntry

# RFC 3339 date-time; the offset is mandatory.
_RFC3339 = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})T([0-9]{2}):([0-9]{2}):([0-9]{2})(?:\.[0-9]+)?"
    r"(?:Z|([+-])([0-9]{2}):([0-9]{2}))"
)

DISPLAY_DATE_FORMAT = "{day:02d}-{month:02d}-{year:04d}"


def select_latest(index: ChartIndex, chart_name: str) -> ReleaseEntry:
    """
    Return the entry a repository lists first for a chart.

    Helm indexes list releases newest first, so the first entry is taken as
    the latest. Versions are not compared.

    Raises:
        ChartNotFound: If the chart is absent or has no entries.
    """
    releases = index.entries.get(chart_name)
    if not releases:
        raise ChartNotFound(chart_name, index.url)
    return releases[0]


def normalize_release_date(created: str) -> str:
    """
    Render an RFC 3339 timestamp as DD-MM-YYYY.

    The date is taken in the timestamp's own offset, not converted to UTC.

    Raises:
        DateParseError: If the value is not an RFC 3339 date-time with offset.
    """
    match = _RFC3339.fullmatch(created) if isinstance(created, str) else None
    if not match:
        raise DateParseError(f"error parsing date: {created!r} is not an RFC 3339 timestamp")

    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    sign, off_hours, off_minutes = match.groups()[6:]
    try:
        offset = timedelta(0)
        if sign:
            offset = timedelta(hours=int(off_hours), minutes=int(off_minutes))
            if sign == "-":
                offset = -offset
        parsed = datetime(year, month, day, hour, minute, second, tzinfo=timezone(offset))
    except ValueError as e:
        raise DateParseError(f"error parsing date: {created!r}: {e}") from e

    return DISPLAY_DATE_FORMAT.format(day=parsed.day, month=parsed.month, year=parsed.year)
