"""Component parsing for ICS calendar processing - AppStandard Lite.

Converts icalendar VEVENT, VTODO and VALARM components into the package's
pydantic models. All instants are normalized to UTC; DATE values become
midnight UTC with ``is_all_day`` set.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Optional

from icalendar import Component

from .ics_date import to_utc
from .lite_attendee_parser import LiteAttendeeParser
from .lite_models import AlarmAction, CalendarEvent, EventAlarm, Task, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_EVENT_TITLE = "Untitled Event"
DEFAULT_TASK_TITLE = "Untitled Task"


class MissingEventDateError(ValueError):
    """VEVENT has no usable DTSTART."""


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-integer value %r", value)
        return None


def _dt(prop: Any) -> Optional[datetime]:
    """Return a UTC datetime for a DATE/DATE-TIME property, or None."""
    if prop is None:
        return None
    value = getattr(prop, "dt", prop)
    if isinstance(value, (datetime, date)):
        return to_utc(value)
    return None


def _is_date_only(prop: Any) -> bool:
    value = getattr(prop, "dt", None)
    return isinstance(value, date) and not isinstance(value, datetime)


class LiteEventComponentParser:
    """Parser for iCalendar components into CalendarEvent / Task objects."""

    def __init__(self, attendee_parser: Optional[LiteAttendeeParser] = None, settings: Any = None):
        """Initialize component parser.

        Args:
            attendee_parser: Parser for attendee properties
            settings: Optional application settings
        """
        self.attendee_parser = attendee_parser or LiteAttendeeParser()
        self.settings = settings

    def parse_event_component(self, component: Component) -> CalendarEvent:
        """Parse a single VEVENT component into CalendarEvent.

        Args:
            component: iCalendar VEVENT component

        Returns:
            Parsed CalendarEvent

        Raises:
            MissingEventDateError: If DTSTART is missing or not a date value
        """
        title = _text(component.get("SUMMARY")) or DEFAULT_EVENT_TITLE
        start_date, end_date, is_all_day = self._parse_event_times(component, title)
        organizer_name, organizer_email = self.attendee_parser.parse_organizer(component)
        latitude, longitude = self._parse_geo(component.get("GEO"))

        return CalendarEvent(
            uid=_text(component.get("UID")),
            title=title,
            description=_text(component.get("DESCRIPTION")),
            location=_text(component.get("LOCATION")),
            start_date=start_date,
            end_date=end_date,
            is_all_day=is_all_day,
            status=self._parse_status(component.get("STATUS"), ("TENTATIVE", "CONFIRMED", "CANCELLED")),
            priority=_int(component.get("PRIORITY")),
            url=_text(component.get("URL")),
            classification=_text(component.get("CLASS")),
            transparency=_text(component.get("TRANSP")),
            sequence=_int(component.get("SEQUENCE")),
            color=_text(component.get("COLOR")),
            categories=self.parse_categories(component),
            organizer_name=organizer_name,
            organizer_email=organizer_email,
            attendees=self.attendee_parser.parse_attendees(component),
            alarms=self.parse_alarms(component),
            geo_latitude=latitude,
            geo_longitude=longitude,
            rrule=self._parse_rrule(component.get("RRULE")),
            exdates=self.parse_exdates(component),
            recurrence_id=_dt(component.get("RECURRENCE-ID")),
            related_to=_text(component.get("RELATED-TO")),
            dtstamp=_dt(component.get("DTSTAMP")),
            created=_dt(component.get("CREATED")),
            last_modified=_dt(component.get("LAST-MODIFIED")),
        )

    def parse_todo_component(self, component: Component) -> Task:
        """Parse a single VTODO component into Task."""
        status = self._parse_status(
            component.get("STATUS"), ("NEEDS-ACTION", "IN-PROCESS", "COMPLETED", "CANCELLED")
        )
        percent = _int(component.get("PERCENT-COMPLETE"))
        if percent is not None:
            percent = max(0, min(100, percent))

        return Task(
            uid=_text(component.get("UID")),
            title=_text(component.get("SUMMARY")) or DEFAULT_TASK_TITLE,
            description=_text(component.get("DESCRIPTION")),
            location=_text(component.get("LOCATION")),
            url=_text(component.get("URL")),
            status=status or TaskStatus.NEEDS_ACTION,
            priority=_int(component.get("PRIORITY")),
            percent_complete=percent,
            start_date=_dt(component.get("DTSTART")),
            due_date=_dt(component.get("DUE")),
            completed_at=_dt(component.get("COMPLETED")),
            categories=self.parse_categories(component),
            alarms=self.parse_alarms(component),
            rrule=self._parse_rrule(component.get("RRULE")),
            related_to=_text(component.get("RELATED-TO")),
        )

    def parse_alarms(self, component: Component) -> list[EventAlarm]:
        """Parse the VALARM sub-components of an event or task.

        The TRIGGER is kept in its raw wire form (``-PT15M``,
        ``20240115T093000Z``); alarms without a TRIGGER are skipped.
        """
        alarms = []
        for sub in component.subcomponents:
            if sub.name != "VALARM":
                continue
            trigger = sub.get("TRIGGER")
            if trigger is None:
                logger.debug("Skipping VALARM without TRIGGER")
                continue

            raw_trigger = trigger.to_ical().decode("utf-8") if hasattr(trigger, "to_ical") else str(trigger)
            action = str(sub.get("ACTION", AlarmAction.DISPLAY.value)).upper()
            if action not in AlarmAction.__members__:
                action = AlarmAction.DISPLAY.value

            duration = sub.get("DURATION")
            alarms.append(
                EventAlarm(
                    action=action,
                    trigger=raw_trigger,
                    description=_text(sub.get("DESCRIPTION")),
                    summary=_text(sub.get("SUMMARY")),
                    repeat=_int(sub.get("REPEAT")),
                    duration=duration.to_ical().decode("utf-8") if hasattr(duration, "to_ical") else None,
                )
            )
        return alarms

    def parse_categories(self, component: Component) -> list[str]:
        """Collect CATEGORIES values (one or several properties) in order, without duplicates."""
        categories: list[str] = []
        for prop in _as_list(component.get("CATEGORIES")):
            values = getattr(prop, "cats", None)
            if values is None:
                values = str(prop).split(",")
            for value in values:
                category = str(value).strip()
                if category and category not in categories:
                    categories.append(category)
        return categories

    def parse_exdates(self, component: Component) -> list[datetime]:
        """Collect EXDATE values as UTC datetimes."""
        exdates: list[datetime] = []
        for prop in _as_list(component.get("EXDATE")):
            for entry in getattr(prop, "dts", [prop]):
                parsed = _dt(entry)
                if parsed is not None:
                    exdates.append(parsed)
                else:
                    logger.debug("Failed to parse EXDATE entry %r", entry)
        return exdates

    def _parse_event_times(self, component: Component, title: str) -> tuple[datetime, datetime, bool]:
        """Resolve start, end and all-day flag.

        DTEND wins; otherwise DURATION; otherwise one day for all-day events
        and a zero-length event for timed ones.
        """
        dtstart = component.get("DTSTART")
        start = _dt(dtstart)
        if start is None:
            raise MissingEventDateError(f"Event '{title}' is missing start or end date")

        is_all_day = _is_date_only(dtstart)

        end = _dt(component.get("DTEND"))
        if end is None:
            duration = getattr(component.get("DURATION"), "dt", None)
            if isinstance(duration, timedelta):
                end = start + duration
            elif is_all_day:
                end = start + timedelta(days=1)
            else:
                end = start

        if end < start:
            logger.warning("Event '%s' ends before it starts; clamping end to start", title)
            end = start

        return start, end, is_all_day

    def _parse_status(self, status_prop: Any, allowed: tuple[str, ...]) -> Optional[str]:
        """Parse a STATUS property, dropping values outside ``allowed``."""
        if status_prop is None:
            return None
        status = str(status_prop).strip().upper()
        return status if status in allowed else None

    def _parse_rrule(self, rrule_prop: Any) -> Optional[str]:
        if not rrule_prop:
            return None
        if hasattr(rrule_prop, "to_ical"):
            return rrule_prop.to_ical().decode("utf-8")
        return str(rrule_prop)

    def _parse_geo(self, geo_prop: Any) -> tuple[Optional[float], Optional[float]]:
        if geo_prop is None:
            return None, None
        latitude = getattr(geo_prop, "latitude", None)
        longitude = getattr(geo_prop, "longitude", None)
        if latitude is None or longitude is None:
            return None, None
        return float(latitude), float(longitude)
