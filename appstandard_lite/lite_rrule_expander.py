"""RRULE expansion logic for AppStandard Lite ICS processing."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Optional, Union

from dateutil.rrule import rruleset, rrulestr

from .ics_date import parse_date_from_ics, to_utc
from .lite_exceptions import RRuleExpansionError, RRuleParseError
from .lite_models import CalendarEvent

logger = logging.getLogger(__name__)

_UNTIL_RE = re.compile(r"UNTIL=(?P<date>\d{8})(?P<time>T\d{6})?(?P<zulu>Z)?", re.IGNORECASE)

# EXDATE matching tolerance
_EXDATE_TOLERANCE_SECONDS = 60


@dataclass
class RRuleExpanderConfig:
    """Configuration for RRULE expansion.

    Consolidates all RRULE-related settings with explicit defaults.
    """

    max_occurrences_per_rule: int = 250
    rrule_expansion_days: int = 365
    enable_rrule_expansion: bool = True

    @classmethod
    def from_settings(cls, settings: Any) -> "RRuleExpanderConfig":
        """Extract RRULE configuration from settings object.

        Args:
            settings: Configuration object with RRULE settings

        Returns:
            RRuleExpanderConfig with values from settings or defaults
        """
        return cls(
            max_occurrences_per_rule=getattr(settings, "max_occurrences_per_rule", 250),
            rrule_expansion_days=getattr(settings, "rrule_expansion_days", 365),
            enable_rrule_expansion=getattr(settings, "enable_rrule_expansion", True),
        )


def normalize_until(rrule_string: str) -> str:
    """Rewrite UNTIL as a UTC DATE-TIME so it can be combined with an aware DTSTART.

    ``UNTIL=20240331`` becomes ``UNTIL=20240331T235959Z`` and a floating
    ``UNTIL=20240331T100000`` gains the ``Z`` suffix.
    """

    def _replace(match: "re.Match[str]") -> str:
        time_part = match.group("time") or "T235959"
        return f"UNTIL={match.group('date')}{time_part.upper()}Z"

    return _UNTIL_RE.sub(_replace, rrule_string)


class LiteRRuleExpander:
    """Synchronous RRULE expander for recurring CalendarEvent masters."""

    def __init__(self, settings: Any = None, now: Optional[Callable[[], datetime]] = None):
        """Initialize expander with settings.

        Args:
            settings: Configuration object with RRULE expansion settings
            now: Optional clock used to anchor the default expansion window
        """
        config = RRuleExpanderConfig.from_settings(settings)
        self.max_occurrences = config.max_occurrences_per_rule
        self.expansion_days = config.rrule_expansion_days
        self.enable_expansion = config.enable_rrule_expansion
        self._now = now or (lambda: datetime.now(UTC))

    def parse_rrule_string(self, rrule_string: str) -> dict[str, Any]:
        """Parse RRULE string into components.

        Args:
            rrule_string: RRULE string (e.g. "FREQ=WEEKLY;INTERVAL=1;BYDAY=MO")

        Returns:
            Dictionary with parsed RRULE components

        Raises:
            RRuleParseError: If RRULE string is invalid
        """
        if not rrule_string or not rrule_string.strip():
            raise RRuleParseError("Empty RRULE string")

        text = rrule_string.strip()
        if text.upper().startswith("RRULE:"):
            text = text[6:]

        rrule_dict: dict[str, Any] = {}
        try:
            for part in text.split(";"):
                if "=" not in part:
                    continue
                key, value = part.split("=", 1)
                key = key.strip().lower()
                value = value.strip()

                if key == "freq":
                    rrule_dict["freq"] = value.upper()
                elif key in ("interval", "count"):
                    rrule_dict[key] = int(value)
                elif key == "byday":
                    rrule_dict["byday"] = [day.strip().upper() for day in value.split(",")]
                elif key == "until":
                    until = parse_date_from_ics(value if value.upper().endswith("Z") or len(value) == 8 else f"{value}Z")
                    if until is None:
                        raise ValueError(f"Invalid UNTIL value {value!r}")
                    rrule_dict["until"] = until
                else:
                    # Store other parameters for future extension
                    rrule_dict[key] = value
        except ValueError as e:
            raise RRuleParseError(f"Invalid RRULE format: {rrule_string}") from e

        if not rrule_dict.get("freq"):
            raise RRuleParseError("RRULE missing required FREQ parameter")

        rrule_dict.setdefault("interval", 1)
        return rrule_dict

    def expand_rrule(
        self,
        dtstart: datetime,
        rrule_string: str,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
    ) -> list[datetime]:
        """Generate occurrence start times inside ``[window_start, window_end]``.

        Args:
            dtstart: First occurrence (any timezone; normalized to UTC)
            rrule_string: RRULE value without the ``RRULE:`` prefix
            window_start: Earliest occurrence to return (default: dtstart)
            window_end: Latest occurrence to return (default: now + expansion days)

        Returns:
            Occurrences in ascending order, capped at ``max_occurrences``

        Raises:
            RRuleParseError: If the rule cannot be parsed
        """
        self.parse_rrule_string(rrule_string)
        start = to_utc(dtstart)
        lower = to_utc(window_start) if window_start else start
        upper = to_utc(window_end) if window_end else max(self._now(), start) + timedelta(days=self.expansion_days)

        text = rrule_string.strip()
        if text.upper().startswith("RRULE:"):
            text = text[6:]

        try:
            rule = rrulestr(normalize_until(text), dtstart=start)
        except (ValueError, TypeError) as e:
            raise RRuleParseError(f"Invalid RRULE format: {rrule_string}") from e

        rule_set = rruleset()
        rule_set.rrule(rule)

        occurrences: list[datetime] = []
        for occurrence in rule_set:
            if occurrence > upper:
                break
            if occurrence < lower:
                continue
            occurrences.append(occurrence)
            if len(occurrences) >= self.max_occurrences:
                logger.warning(
                    "RRULE %s hit the cap of %d occurrences; truncating", rrule_string, self.max_occurrences
                )
                break
        return occurrences

    def apply_exdates(
        self, occurrences: list[datetime], exdates: Optional[Iterable[Union[datetime, str]]]
    ) -> list[datetime]:
        """Remove excluded dates from occurrence list.

        Args:
            occurrences: List of datetime occurrences
            exdates: Excluded instants as datetimes or ICS DATE/DATE-TIME strings

        Returns:
            Filtered list of occurrences with excluded dates removed
        """
        if not exdates:
            return occurrences

        excluded: list[datetime] = []
        for exdate in exdates:
            parsed = to_utc(exdate) if isinstance(exdate, datetime) else parse_date_from_ics(exdate)
            if parsed is None:
                logger.warning("Failed to parse EXDATE %r", exdate)
                continue
            excluded.append(parsed)

        # Tolerate minor time differences between EXDATE and generated occurrence
        filtered = [
            occurrence
            for occurrence in occurrences
            if not any(
                abs((to_utc(occurrence) - ex).total_seconds()) < _EXDATE_TOLERANCE_SECONDS for ex in excluded
            )
        ]
        logger.debug("Filtered %d excluded datetimes", len(occurrences) - len(filtered))
        return filtered

    def generate_event_instances(
        self, master_event: CalendarEvent, occurrences: list[datetime]
    ) -> list[CalendarEvent]:
        """Generate CalendarEvent instances for each occurrence.

        Instances keep the master's UID and carry the occurrence as their
        RECURRENCE-ID, so each instance has a distinct identity.

        Args:
            master_event: Master recurring event template
            occurrences: List of datetime occurrences

        Returns:
            List of CalendarEvent instances
        """
        duration = master_event.end_date - master_event.start_date
        master_key = master_event.uid or master_event.id or "event"

        return [
            master_event.model_copy(
                update={
                    "id": f"{master_key}_{occurrence.strftime('%Y%m%dT%H%M%S')}",
                    "start_date": occurrence,
                    "end_date": occurrence + duration,
                    "rrule": None,
                    "exdates": [],
                    "recurrence_id": occurrence,
                    "is_expanded_instance": True,
                    "rrule_master_uid": master_event.uid,
                },
                deep=True,
            )
            for occurrence in occurrences
        ]

    def expand_event(
        self,
        master_event: CalendarEvent,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
    ) -> list[CalendarEvent]:
        """Expand one recurring event into instances.

        Returns an empty list for events without an RRULE.

        Raises:
            RRuleExpansionError: If the event's RRULE cannot be expanded
        """
        if not master_event.rrule:
            return []

        try:
            occurrences = self.expand_rrule(master_event.start_date, master_event.rrule, window_start, window_end)
        except RRuleParseError:
            raise
        except (ValueError, OverflowError) as e:
            raise RRuleExpansionError(f"Failed to expand RRULE for {master_event.uid}: {e}") from e

        occurrences = self.apply_exdates(occurrences, master_event.exdates)
        return self.generate_event_instances(master_event, occurrences)

    def expand_events(
        self,
        events: list[CalendarEvent],
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
    ) -> list[CalendarEvent]:
        """Replace recurring masters with their instances.

        Modified occurrences (events carrying a RECURRENCE-ID for the same UID)
        replace the generated instance they override. Masters whose RRULE cannot
        be expanded are kept as-is and logged.

        Returns:
            Events sorted by start date
        """
        if not self.enable_expansion:
            return list(events)

        overrides: dict[str, list[datetime]] = {}
        for event in events:
            if event.recurrence_id is not None and event.uid and not event.is_expanded_instance:
                overrides.setdefault(event.uid, []).append(event.recurrence_id)

        result: list[CalendarEvent] = []
        for event in events:
            if not event.rrule or event.recurrence_id is not None:
                result.append(event)
                continue

            try:
                instances = self.expand_event(event, window_start, window_end)
            except RRuleExpansionError:
                logger.exception("expand_events: failed to expand %s", event.uid)
                result.append(event)
                continue

            overridden = overrides.get(event.uid or "", [])
            if overridden:
                instances = [
                    inst
                    for inst in instances
                    if not any(
                        abs((inst.start_date - rid).total_seconds()) < _EXDATE_TOLERANCE_SECONDS
                        for rid in overridden
                    )
                ]
            result.extend(instances)

        result.sort(key=lambda e: e.start_date)
        return result
