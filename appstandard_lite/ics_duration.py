"""ICS DURATION value codec - AppStandard Lite.

Durations are reduced to a single dominant unit using the fixed priority
days > hours > minutes > seconds. ``P1DT2H30M`` therefore reads as one day;
the hour and minute remainder is discarded. Downstream alarm editors rely on
this single-unit view, so it is kept lossy on purpose.
"""

import logging
import math
import re
from datetime import timedelta
from typing import Optional, Union

from .lite_models import Duration, DurationUnit

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(
    r"^(?P<sign>[-+])?P?"
    r"(?:(?P<weeks>[0-9]+)W)?"
    r"(?:(?P<days>[0-9]+)D)?"
    r"(?:T(?:(?P<hours>[0-9]+)H)?(?:(?P<minutes>[0-9]+)M)?(?:(?P<seconds>[0-9]+)S)?)?$",
    re.IGNORECASE,
)

_UNIT_DESIGNATORS = {
    DurationUnit.DAYS.value: ("P", "D"),
    DurationUnit.HOURS.value: ("PT", "H"),
    DurationUnit.MINUTES.value: ("PT", "M"),
    DurationUnit.SECONDS.value: ("PT", "S"),
}

_MINUTES_PER_UNIT = {
    DurationUnit.DAYS.value: 24 * 60,
    DurationUnit.HOURS.value: 60,
    DurationUnit.MINUTES.value: 1,
}


def parse_duration(value: Optional[str]) -> Optional[Duration]:
    """Parse a duration token into its dominant unit.

    Accepts an optional sign, an optional ``P`` designator, weeks/days and a
    ``T`` time part with hours, minutes and seconds. Weeks are folded into days.

    Args:
        value: Raw token such as ``-PT15M``, ``P1D`` or ``PT1H30M``

    Returns:
        Duration with a non-negative value, or None if the token is empty,
        malformed or carries no numeric component
    """
    if value is None:
        return None

    text = value.strip()
    if not text:
        return None

    match = _DURATION_RE.match(text)
    if not match:
        logger.debug("Unparseable duration %r", text)
        return None

    weeks, days, hours, minutes, seconds = (
        match.group(name) for name in ("weeks", "days", "hours", "minutes", "seconds")
    )

    if weeks is not None or days is not None:
        total_days = int(weeks or 0) * 7 + int(days or 0)
        return Duration(value=total_days, unit=DurationUnit.DAYS)
    if hours is not None:
        return Duration(value=int(hours), unit=DurationUnit.HOURS)
    if minutes is not None:
        return Duration(value=int(minutes), unit=DurationUnit.MINUTES)
    if seconds is not None:
        return Duration(value=int(seconds), unit=DurationUnit.SECONDS)

    # Only P/T markers, no numbers
    return None


def is_valid_duration(value: Optional[str]) -> bool:
    """Return True if ``value`` parses as a duration."""
    return parse_duration(value) is not None


def is_negative_duration(value: Optional[str]) -> bool:
    """Return True if ``value`` is a valid duration with a leading ``-``."""
    return parse_duration(value) is not None and value is not None and value.strip().startswith("-")


def format_duration(value: int, unit: Union[DurationUnit, str]) -> str:
    """Format ``(value, unit)`` as ``P{v}D``, ``PT{v}H``, ``PT{v}M`` or ``PT{v}S``.

    Raises:
        ValueError: If ``unit`` is not a known duration unit
    """
    unit_key = unit.value if isinstance(unit, DurationUnit) else str(unit)
    try:
        prefix, designator = _UNIT_DESIGNATORS[unit_key]
    except KeyError:
        raise ValueError(f"Unknown duration unit: {unit!r}") from None
    return f"{prefix}{abs(int(value))}{designator}"


def format_negative_duration(value: int, unit: Union[DurationUnit, str]) -> str:
    """Format ``(value, unit)`` as a negative duration, e.g. ``-PT15M``."""
    return f"-{format_duration(value, unit)}"


def duration_to_minutes(value: Optional[str]) -> Optional[int]:
    """Convert a duration token to whole minutes.

    Seconds round up to the next minute so sub-minute alarms never fire late.

    Returns:
        Minutes, or None if the token does not parse
    """
    duration = parse_duration(value)
    if duration is None:
        return None

    if duration.unit == DurationUnit.SECONDS.value:
        return math.ceil(duration.value / 60)
    return duration.value * _MINUTES_PER_UNIT[duration.unit]


def duration_to_timedelta(value: Optional[str]) -> Optional[timedelta]:
    """Convert a duration token to an exact signed timedelta.

    Unlike ``parse_duration`` every component is kept, so ``-P1DT2H`` maps
    to minus 26 hours. Returns None if the token does not parse.
    """
    if value is None or parse_duration(value) is None:
        return None

    match = _DURATION_RE.match(value.strip())
    if match is None:
        return None

    def _part(name: str) -> int:
        return int(match.group(name) or 0)

    delta = timedelta(
        weeks=_part("weeks"),
        days=_part("days"),
        hours=_part("hours"),
        minutes=_part("minutes"),
        seconds=_part("seconds"),
    )
    return -delta if match.group("sign") == "-" else delta
