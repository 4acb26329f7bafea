"""
Unit tests for appstandard_lite.ics_generator

Covers:
- VCALENDAR header properties
- VEVENT rendering (UTC timestamps, all-day dates, escaping, people, recurrence)
- VALARM rendering for relative, absolute and unreadable triggers
- VTODO rendering
- generate-then-parse consistency
"""

from datetime import UTC, datetime, timedelta

import pytest
from icalendar import Calendar

from appstandard_lite.ics_generator import ICSGenerator, generate_event_uid, generate_ics, generate_todo_ics
from appstandard_lite.lite_models import Attendee, CalendarEvent, EventAlarm, Task
from appstandard_lite.lite_parser import parse_ics_content

pytestmark = [pytest.mark.unit, pytest.mark.fast]

FIXED_NOW = datetime(2024, 1, 1, 0, 0, tzinfo=UTC)
START = datetime(2024, 1, 15, 10, 0, tzinfo=UTC)


def sample_event(**overrides: object) -> CalendarEvent:
    data: dict[str, object] = {
        "uid": "evt-1@example.com",
        "title": "Planning, Q1; draft",
        "description": "Line one\nLine two",
        "location": "Room 4",
        "start_date": START,
        "end_date": START + timedelta(hours=1),
    }
    data.update(overrides)
    return CalendarEvent(**data)


def unfolded(ics: str) -> list[str]:
    return ics.replace("\r\n ", "").split("\r\n")


class TestCalendarHeader:
    """VCALENDAR-level properties."""

    def test_header_properties(self) -> None:
        generator = ICSGenerator(prodid="-//Test//EN", calendar_name="Work", now=lambda: FIXED_NOW)

        lines = unfolded(generator.generate_events([]))

        assert lines[0] == "BEGIN:VCALENDAR"
        assert "PRODID:-//Test//EN" in lines
        assert "VERSION:2.0" in lines
        assert "CALSCALE:GREGORIAN" in lines
        assert "METHOD:PUBLISH" in lines
        assert "X-WR-CALNAME:Work" in lines

    def test_settings_supply_defaults(self, simple_settings: object) -> None:
        lines = unfolded(ICSGenerator(settings=simple_settings).generate_events([]))

        assert "PRODID:-//AppStandard Test//EN" in lines
        assert "X-WR-CALNAME:Test Calendar" in lines

    def test_calendar_name_omitted_when_unset(self) -> None:
        lines = unfolded(generate_ics([]))

        assert not any(line.startswith("X-WR-CALNAME") for line in lines)


class TestEventRendering:
    """VEVENT output."""

    def setup_method(self) -> None:
        self.generator = ICSGenerator(now=lambda: FIXED_NOW)

    def test_timed_event(self) -> None:
        lines = unfolded(self.generator.generate_events([sample_event()]))

        assert "BEGIN:VEVENT" in lines
        assert "UID:evt-1@example.com" in lines
        assert "DTSTAMP:20240101T000000Z" in lines
        assert "DTSTART:20240115T100000Z" in lines
        assert "DTEND:20240115T110000Z" in lines

    def test_text_is_escaped(self) -> None:
        lines = unfolded(self.generator.generate_events([sample_event()]))

        assert "SUMMARY:Planning\\, Q1\\; draft" in lines
        assert "DESCRIPTION:Line one\\nLine two" in lines

    def test_all_day_event_uses_date_values(self) -> None:
        event = sample_event(
            is_all_day=True,
            start_date=datetime(2024, 1, 15, tzinfo=UTC),
            end_date=datetime(2024, 1, 16, tzinfo=UTC),
        )

        lines = unfolded(self.generator.generate_events([event]))

        assert "DTSTART;VALUE=DATE:20240115" in lines
        assert "DTEND;VALUE=DATE:20240116" in lines

    def test_missing_uid_generated(self) -> None:
        lines = unfolded(self.generator.generate_events([sample_event(uid=None)]))

        uid_lines = [line for line in lines if line.startswith("UID:")]
        assert len(uid_lines) == 1
        assert uid_lines[0].endswith("@appstandard")

    def test_people_and_recurrence(self) -> None:
        event = sample_event(
            organizer_name="Alice",
            organizer_email="alice@example.com",
            attendees=[Attendee(email="bob@example.com", name="Bob", rsvp=True)],
            rrule="FREQ=WEEKLY;COUNT=3",
            exdates=[START + timedelta(days=7)],
            categories=["work", "planning"],
        )

        ics = self.generator.generate_events([event])
        component = next(iter(Calendar.from_ical(ics).walk("VEVENT")))

        assert str(component.get("ORGANIZER")) == "mailto:alice@example.com"
        assert component.get("ORGANIZER").params["CN"] == "Alice"
        attendee = component.get("ATTENDEE")
        assert str(attendee) == "mailto:bob@example.com"
        assert attendee.params["RSVP"] == "TRUE"
        assert component.get("RRULE")["FREQ"] == ["WEEKLY"]
        assert "EXDATE:20240122T100000Z" in unfolded(ics)

    def test_unparseable_rrule_dropped(self) -> None:
        lines = unfolded(self.generator.generate_events([sample_event(rrule="FREQ=SOMETIMES;BYDAY=XX")]))

        assert not any(line.startswith("RRULE") for line in lines)


class TestAlarmRendering:
    """VALARM output."""

    def setup_method(self) -> None:
        self.generator = ICSGenerator(now=lambda: FIXED_NOW)

    def render(self, trigger: str) -> list[str]:
        event = sample_event(alarms=[EventAlarm(trigger=trigger)])
        return unfolded(self.generator.generate_events([event]))

    def test_relative_trigger(self) -> None:
        lines = self.render("-PT15M")

        assert "BEGIN:VALARM" in lines
        assert "ACTION:DISPLAY" in lines
        assert "TRIGGER:-PT15M" in lines

    def test_after_trigger(self) -> None:
        assert "TRIGGER:PT1H" in self.render("PT1H")

    def test_absolute_trigger(self) -> None:
        assert "TRIGGER;VALUE=DATE-TIME:20240115T093000Z" in self.render("20240115T093000Z")

    def test_unreadable_trigger_falls_back_to_default(self) -> None:
        assert "TRIGGER:-PT15M" in self.render("whenever")

    def test_default_action_written_as_ics_value(self) -> None:
        lines = self.render("-PT15M")

        assert "ACTION:DISPLAY" in lines
        assert not any("AlarmAction" in line for line in lines)

    def test_unreadable_trigger_uses_configured_default(self, simple_settings: object) -> None:
        simple_settings.default_alarm_when = "after"  # type: ignore[attr-defined]
        simple_settings.default_alarm_value = 2  # type: ignore[attr-defined]
        simple_settings.default_alarm_unit = "hours"  # type: ignore[attr-defined]
        generator = ICSGenerator(settings=simple_settings, now=lambda: FIXED_NOW)

        lines = unfolded(generator.generate_events([sample_event(alarms=[EventAlarm(trigger="whenever")])]))

        assert "TRIGGER:PT2H" in lines

    def test_configured_default_does_not_replace_readable_trigger(self, simple_settings: object) -> None:
        simple_settings.default_alarm_value = 45  # type: ignore[attr-defined]
        generator = ICSGenerator(settings=simple_settings, now=lambda: FIXED_NOW)

        lines = unfolded(generator.generate_events([sample_event(alarms=[EventAlarm(trigger="-PT5M")])]))

        assert "TRIGGER:-PT5M" in lines

    def test_alarm_description_defaults_to_title(self) -> None:
        lines = self.render("-PT5M")

        assert "DESCRIPTION:Planning\\, Q1\\; draft" in lines


class TestTaskRendering:
    """VTODO output."""

    def test_generate_todo(self) -> None:
        task = Task(
            uid="todo-1",
            title="Write report",
            status="IN-PROCESS",
            percent_complete=40,
            due_date=datetime(2024, 1, 20, 17, 0, tzinfo=UTC),
        )

        lines = unfolded(generate_todo_ics([task], calendar_name="Tasks"))

        assert "BEGIN:VTODO" in lines
        assert "UID:todo-1" in lines
        assert "SUMMARY:Write report" in lines
        assert "STATUS:IN-PROCESS" in lines
        assert "PERCENT-COMPLETE:40" in lines
        assert "DUE:20240120T170000Z" in lines


def test_default_task_status_and_attendee_params_are_ics_values() -> None:
    task_lines = unfolded(generate_todo_ics([Task(uid="todo-2", title="x")]))
    event_ics = ICSGenerator(now=lambda: FIXED_NOW).generate_events(
        [sample_event(attendees=[Attendee(email="bob@example.com")])]
    )
    attendee = next(iter(Calendar.from_ical(event_ics).walk("VEVENT"))).get("ATTENDEE")

    assert "STATUS:NEEDS-ACTION" in task_lines
    assert attendee.params["ROLE"] == "REQ-PARTICIPANT"
    assert attendee.params["PARTSTAT"] == "NEEDS-ACTION"


def test_generated_calendar_parses_back() -> None:
    """Events survive generation followed by parsing."""
    events = [
        sample_event(alarms=[EventAlarm(trigger="-PT30M")], categories=["a", "b"]),
        sample_event(uid="evt-2@example.com", title="Other", start_date=START + timedelta(days=1), end_date=START + timedelta(days=1, hours=2)),
    ]

    result = parse_ics_content(generate_ics(events, calendar_name="Round"))

    assert result.success is True
    assert result.calendar_name == "Round"
    assert [e.uid for e in result.events] == ["evt-1@example.com", "evt-2@example.com"]
    first = result.events[0]
    assert first.title == "Planning, Q1; draft"
    assert first.description == "Line one\nLine two"
    assert first.start_date == START
    assert first.alarms[0].trigger == "-PT30M"
    assert first.categories == ["a", "b"]


def test_generate_event_uid_unique() -> None:
    assert generate_event_uid() != generate_event_uid()
