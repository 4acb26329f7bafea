"""ICS document generation for events and tasks - AppStandard Lite.

Builds VCALENDAR documents with the icalendar library. All DATE-TIME
values are written in UTC (``...Z``); all-day events use ``VALUE=DATE``.
"""

import logging
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any, Callable, Optional

from icalendar import Alarm, Calendar, Event, Todo
from icalendar.prop import vRecur

from .ics_alarm import DEFAULT_TRIGGER, default_trigger, format_trigger, parse_alarm_trigger
from .ics_date import parse_date_from_ics, to_utc
from .ics_duration import duration_to_timedelta
from .lite_models import CalendarEvent, EventAlarm, Task, TriggerWhen

logger = logging.getLogger(__name__)

DEFAULT_PRODID = "-//AppStandard Calendar//EN"
UID_DOMAIN = "appstandard"


def generate_event_uid() -> str:
    """Generate a UID for an event or task that has none."""
    return f"{uuid.uuid4()}@{UID_DOMAIN}"


class ICSGenerator:
    """Render CalendarEvent / Task models as ICS text.

    Args:
        prodid: PRODID of generated calendars
        calendar_name: Default X-WR-CALNAME
        settings: Optional settings object providing calendar_prodid, calendar_name
            and the default_alarm_* fallback trigger
        now: Optional clock used for DTSTAMP
    """

    def __init__(
        self,
        prodid: Optional[str] = None,
        calendar_name: Optional[str] = None,
        settings: Any = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.prodid = prodid or getattr(settings, "calendar_prodid", None) or DEFAULT_PRODID
        self.calendar_name = calendar_name or getattr(settings, "calendar_name", None)
        self.default_trigger = default_trigger(settings)
        self._now = now or (lambda: datetime.now(UTC))

    def new_calendar(self, calendar_name: Optional[str] = None) -> Calendar:
        """Create an empty VCALENDAR with the standard header properties."""
        calendar = Calendar()
        calendar.add("prodid", self.prodid)
        calendar.add("version", "2.0")
        calendar.add("calscale", "GREGORIAN")
        calendar.add("method", "PUBLISH")
        name = calendar_name or self.calendar_name
        if name:
            calendar.add("x-wr-calname", name)
        return calendar

    def generate_events(self, events: Iterable[CalendarEvent], calendar_name: Optional[str] = None) -> str:
        """Render events into a complete ICS document."""
        calendar = self.new_calendar(calendar_name)
        count = 0
        for event in events:
            calendar.add_component(self.build_event_component(event))
            count += 1
        logger.debug("Generated ICS with %d events", count)
        return calendar.to_ical().decode("utf-8")

    def generate_tasks(self, tasks: Iterable[Task], calendar_name: Optional[str] = None) -> str:
        """Render tasks into a complete ICS document of VTODO components."""
        calendar = self.new_calendar(calendar_name)
        count = 0
        for task in tasks:
            calendar.add_component(self.build_todo_component(task))
            count += 1
        logger.debug("Generated ICS with %d tasks", count)
        return calendar.to_ical().decode("utf-8")

    def build_event_component(self, event: CalendarEvent) -> Event:
        """Build a VEVENT from a CalendarEvent."""
        component = Event()
        component.add("uid", event.uid or generate_event_uid())
        component.add("dtstamp", to_utc(event.dtstamp or self._now()))

        if event.is_all_day:
            component.add("dtstart", to_utc(event.start_date).date())
            component.add("dtend", to_utc(event.end_date).date())
        else:
            component.add("dtstart", to_utc(event.start_date))
            component.add("dtend", to_utc(event.end_date))

        component.add("summary", event.title)
        self._add_text(component, "description", event.description)
        self._add_text(component, "location", event.location)
        self._add_text(component, "url", event.url)
        self._add_text(component, "status", event.status)
        self._add_text(component, "class", event.classification)
        self._add_text(component, "transp", event.transparency)
        self._add_text(component, "color", event.color)
        self._add_text(component, "related-to", event.related_to)
        if event.priority is not None:
            component.add("priority", event.priority)
        if event.sequence is not None:
            component.add("sequence", event.sequence)
        if event.categories:
            component.add("categories", list(event.categories))

        if event.geo_latitude is not None and event.geo_longitude is not None:
            component.add("geo", (event.geo_latitude, event.geo_longitude))

        if event.organizer_email:
            params = {"CN": event.organizer_name} if event.organizer_name else None
            component.add("organizer", f"mailto:{event.organizer_email}", parameters=params)
        for attendee in event.attendees:
            params = {"ROLE": attendee.role, "PARTSTAT": attendee.status}
            if attendee.name:
                params["CN"] = attendee.name
            if attendee.rsvp:
                params["RSVP"] = "TRUE"
            component.add("attendee", f"mailto:{attendee.email}", parameters=params)

        self._add_recurrence(component, event.rrule)
        if event.exdates:
            component.add("exdate", [to_utc(ex) for ex in event.exdates])
        if event.recurrence_id is not None:
            component.add("recurrence-id", to_utc(event.recurrence_id))

        if event.created:
            component.add("created", to_utc(event.created))
        if event.last_modified:
            component.add("last-modified", to_utc(event.last_modified))

        for alarm in event.alarms:
            component.add_component(self.build_alarm_component(alarm, event.title))
        return component

    def build_todo_component(self, task: Task) -> Todo:
        """Build a VTODO from a Task."""
        component = Todo()
        component.add("uid", task.uid or generate_event_uid())
        component.add("dtstamp", to_utc(self._now()))
        component.add("summary", task.title)
        self._add_text(component, "description", task.description)
        self._add_text(component, "location", task.location)
        self._add_text(component, "url", task.url)
        self._add_text(component, "status", task.status)
        self._add_text(component, "related-to", task.related_to)
        if task.priority is not None:
            component.add("priority", task.priority)
        if task.percent_complete is not None:
            component.add("percent-complete", task.percent_complete)
        if task.start_date:
            component.add("dtstart", to_utc(task.start_date))
        if task.due_date:
            component.add("due", to_utc(task.due_date))
        if task.completed_at:
            component.add("completed", to_utc(task.completed_at))
        if task.categories:
            component.add("categories", list(task.categories))
        self._add_recurrence(component, task.rrule)
        for alarm in task.alarms:
            component.add_component(self.build_alarm_component(alarm, task.title))
        return component

    def build_alarm_component(self, alarm: EventAlarm, fallback_description: str) -> Alarm:
        """Build a VALARM.

        Relative triggers are written as durations; absolute triggers as
        ``TRIGGER;VALUE=DATE-TIME``. An unreadable trigger is replaced by the
        configured default (15 minutes before unless settings say otherwise).
        """
        component = Alarm()
        component.add("action", alarm.action)

        trigger = parse_alarm_trigger(alarm.trigger)
        absolute = None
        if trigger is not None and trigger.when == TriggerWhen.AT.value:
            raw = alarm.trigger.strip()
            absolute = parse_date_from_ics(raw if raw.endswith("Z") else f"{raw}Z")

        if absolute is not None:
            component.add("trigger", absolute, parameters={"VALUE": "DATE-TIME"})
        else:
            offset = duration_to_timedelta(alarm.trigger) if trigger is not None else None
            if offset is None:
                logger.warning("Replacing unreadable alarm trigger %r with the default", alarm.trigger)
                offset = duration_to_timedelta(format_trigger(self.default_trigger))
            if offset is None:
                offset = duration_to_timedelta(format_trigger(DEFAULT_TRIGGER))
            component.add("trigger", offset)

        component.add("description", alarm.description or fallback_description)
        self._add_text(component, "summary", alarm.summary)
        if alarm.repeat is not None and alarm.duration:
            repeat_interval = duration_to_timedelta(alarm.duration)
            if repeat_interval is not None:
                component.add("repeat", alarm.repeat)
                component.add("duration", repeat_interval)
        return component

    def _add_text(self, component: Any, name: str, value: Optional[str]) -> None:
        if value:
            component.add(name, value)

    def _add_recurrence(self, component: Any, rrule: Optional[str]) -> None:
        if not rrule:
            return
        text = rrule.strip()
        if text.upper().startswith("RRULE:"):
            text = text[6:]
        try:
            component.add("rrule", vRecur.from_ical(text))
        except ValueError:
            logger.warning("Dropping unparseable RRULE %r", rrule)


def generate_ics(
    events: Iterable[CalendarEvent],
    calendar_name: Optional[str] = None,
    prodid: Optional[str] = None,
) -> str:
    """Render events as an ICS document with a default generator."""
    return ICSGenerator(prodid=prodid).generate_events(events, calendar_name)


def generate_todo_ics(
    tasks: Iterable[Task],
    calendar_name: Optional[str] = None,
    prodid: Optional[str] = None,
) -> str:
    """Render tasks as an ICS document with a default generator."""
    return ICSGenerator(prodid=prodid).generate_tasks(tasks, calendar_name)
