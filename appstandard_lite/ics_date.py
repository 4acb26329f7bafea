"""ICS DATE / DATE-TIME value codec - AppStandard Lite.

Converts between timezone-aware UTC datetimes and the two ICS wire shapes
used throughout the package:

- ``YYYYMMDDTHHMMSSZ`` for instants (always UTC, second precision)
- ``YYYYMMDD`` for date-only values (midnight UTC)

Decoding never raises: malformed input yields ``None``.
"""

import logging
import re
from datetime import UTC, date, datetime
from typing import Optional, Union

logger = logging.getLogger(__name__)

_DATE_ONLY_RE = re.compile(r"^[0-9]{8}$")
_DATE_TIME_RE = re.compile(r"^[0-9]{8}T[0-9]{6}Z$")


def ensure_timezone_aware(dt: datetime) -> datetime:
    """Ensure datetime is timezone-aware.

    Args:
        dt: Datetime to make timezone-aware

    Returns:
        Timezone-aware datetime (UTC if originally naive)
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def to_utc(value: Union[date, datetime]) -> datetime:
    """Normalize a date or datetime to an aware UTC datetime.

    Naive datetimes are taken to already be UTC; plain dates map to midnight UTC.
    """
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    return ensure_timezone_aware(value).astimezone(UTC)


def format_date_to_ics(value: Union[date, datetime]) -> str:
    """Format an instant as ``YYYYMMDDTHHMMSSZ``.

    Sub-second precision is dropped.
    """
    utc = to_utc(value)
    return (
        f"{utc.year:04d}{utc.month:02d}{utc.day:02d}"
        f"T{utc.hour:02d}{utc.minute:02d}{utc.second:02d}Z"
    )


def format_date_only_to_ics(value: Union[date, datetime]) -> str:
    """Format the calendar date of ``value`` as ``YYYYMMDD``."""
    if isinstance(value, datetime):
        value = to_utc(value)
    return f"{value.year:04d}{value.month:02d}{value.day:02d}"


def parse_date_from_ics(value: Optional[str]) -> Optional[datetime]:
    """Parse an ICS DATE or UTC DATE-TIME string.

    Args:
        value: Raw value; surrounding whitespace is ignored

    Returns:
        Aware UTC datetime, or None when the value is missing or malformed
    """
    if value is None:
        return None

    text = value.strip()
    if not text:
        return None

    try:
        if _DATE_ONLY_RE.match(text):
            return datetime(int(text[0:4]), int(text[4:6]), int(text[6:8]), tzinfo=UTC)
        if _DATE_TIME_RE.match(text):
            return datetime(
                int(text[0:4]),
                int(text[4:6]),
                int(text[6:8]),
                int(text[9:11]),
                int(text[11:13]),
                int(text[13:15]),
                tzinfo=UTC,
            )
    except ValueError:
        # Right shape, impossible calendar value (e.g. month 13)
        logger.debug("Rejected out-of-range ICS date %r", text)
        return None

    return None


def is_valid_ics_date(value: Optional[str]) -> bool:
    """Return True if ``value`` decodes as an ICS DATE or UTC DATE-TIME."""
    return parse_date_from_ics(value) is not None
