"""iCalendar document parser - AppStandard Lite version."""

import logging
from datetime import datetime
from typing import Any, Optional

from icalendar import Calendar

from .lite_event_parser import LiteEventComponentParser, MissingEventDateError
from .lite_models import ICSParseResult
from .lite_rrule_expander import LiteRRuleExpander

logger = logging.getLogger(__name__)

NO_EVENTS_MESSAGE = "No events found in the ICS file."


class LiteICSParser:
    """ICS parser producing CalendarEvent and Task models."""

    def __init__(self, settings: Any = None):
        """Initialize parser.

        Args:
            settings: Optional settings object (RRULE expansion limits)
        """
        self.settings = settings
        self._component_parser = LiteEventComponentParser(settings=settings)
        self._rrule_expander = LiteRRuleExpander(settings)

    def parse_ics_content(
        self,
        ics_content: Optional[str],
        expand_recurring: bool = False,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
    ) -> ICSParseResult:
        """Parse ICS content into structured events and tasks.

        Malformed documents never raise: problems are reported through the
        result's ``errors`` (nothing usable) and ``warnings`` (partial data).

        Args:
            ics_content: Raw ICS file content
            expand_recurring: Replace recurring masters with their instances
            window_start: Expansion window start (when expanding)
            window_end: Expansion window end (when expanding)

        Returns:
            Parse result with events, tasks and calendar metadata
        """
        result = ICSParseResult()

        if not ics_content or not ics_content.strip():
            logger.warning("Empty ICS content provided")
            result.add_error("Empty ICS content")
            return result

        try:
            calendar = Calendar.from_ical(ics_content)
        except Exception as e:
            logger.exception("Failed to parse ICS content")
            result.add_error(f"Failed to parse ICS content: {e}")
            return result

        result.calendar_name = self._get_calendar_property(calendar, "X-WR-CALNAME")
        result.prodid = self._get_calendar_property(calendar, "PRODID")
        result.ics_version = self._get_calendar_property(calendar, "VERSION")

        for component in calendar.walk():
            result.total_components += 1

            if component.name == "VEVENT":
                try:
                    event = self._component_parser.parse_event_component(component)
                except MissingEventDateError as e:
                    logger.warning("%s, skipping", e)
                    result.add_error(str(e))
                    continue
                except Exception as e:
                    logger.exception("Failed to parse event component")
                    result.add_warning(f"Failed to parse event: {e}")
                    continue

                result.events.append(event)
                result.event_count += 1
                if event.is_recurring:
                    result.recurring_event_count += 1

            elif component.name == "VTODO":
                try:
                    result.tasks.append(self._component_parser.parse_todo_component(component))
                except Exception as e:
                    logger.exception("Failed to parse todo component")
                    result.add_warning(f"Failed to parse task: {e}")

        if not result.events and not result.tasks and not result.errors:
            result.add_error(NO_EVENTS_MESSAGE)

        if expand_recurring and result.recurring_event_count:
            result.events = self._rrule_expander.expand_events(result.events, window_start, window_end)
            logger.debug("Expanded recurring events to %d instances", len(result.events))

        result.success = bool(result.events or result.tasks)
        logger.debug(
            "Parsed %d events and %d tasks from ICS content (%d errors, %d warnings)",
            len(result.events),
            len(result.tasks),
            len(result.errors),
            len(result.warnings),
        )
        return result

    def _get_calendar_property(self, calendar: Calendar, prop_name: str) -> Optional[str]:
        """Get calendar-level property.

        Args:
            calendar: iCalendar Calendar object
            prop_name: Property name to get

        Returns:
            Property value as string or None
        """
        prop = calendar.get(prop_name)
        return str(prop) if prop else None

    def validate_ics_content(self, ics_content: Optional[str]) -> bool:
        """Validate that content is valid ICS format.

        Args:
            ics_content: ICS content to validate

        Returns:
            True if valid ICS format, False otherwise
        """
        if not ics_content or not ics_content.strip():
            logger.debug("Empty ICS content provided for validation")
            return False

        if "BEGIN:VCALENDAR" not in ics_content or "END:VCALENDAR" not in ics_content:
            logger.debug("Missing VCALENDAR markers")
            return False

        try:
            Calendar.from_ical(ics_content)
        except Exception as e:
            logger.debug(f"ICS validation failed: {e}")
            return False
        return True


def parse_ics_content(ics_content: Optional[str], settings: Any = None, **kwargs: Any) -> ICSParseResult:
    """Parse ICS text with a default parser (see LiteICSParser.parse_ics_content)."""
    return LiteICSParser(settings).parse_ics_content(ics_content, **kwargs)
