"""Attendee and organizer parsing for ICS calendar processing - AppStandard Lite.

Converts ATTENDEE / ORGANIZER properties of iCalendar components into
``Attendee`` models and (name, email) pairs.
"""

import logging
from typing import Any, Optional

from .lite_models import Attendee, AttendeeRole, AttendeeStatus

logger = logging.getLogger(__name__)

_ROLE_MAP = {role.value: role for role in AttendeeRole}
_STATUS_MAP = {status.value: status for status in AttendeeStatus}


def strip_mailto(value: Any) -> str:
    """Return the address part of a ``mailto:`` URI (case-insensitive prefix)."""
    text = str(value).strip()
    if text.lower().startswith("mailto:"):
        return text[7:]
    return text


class LiteAttendeeParser:
    """Parser for iCalendar ATTENDEE and ORGANIZER properties."""

    def parse_attendee(self, attendee_prop: Any) -> Optional[Attendee]:
        """Parse attendee from iCalendar property.

        Args:
            attendee_prop: iCalendar ATTENDEE property (vCalAddress)

        Returns:
            Parsed Attendee or None if the property carries no address
        """
        email = strip_mailto(attendee_prop)
        if not email:
            return None

        params = getattr(attendee_prop, "params", {})
        name = params.get("CN")
        role = _ROLE_MAP.get(str(params.get("ROLE", "REQ-PARTICIPANT")).upper(), AttendeeRole.REQ_PARTICIPANT)
        status = _STATUS_MAP.get(
            str(params.get("PARTSTAT", "NEEDS-ACTION")).upper(), AttendeeStatus.NEEDS_ACTION
        )
        rsvp = str(params.get("RSVP", "FALSE")).upper() == "TRUE"

        return Attendee(email=email, name=str(name) if name else None, role=role, status=status, rsvp=rsvp)

    def parse_attendees(self, component: Any) -> list[Attendee]:
        """Parse all attendees from an iCalendar component.

        Args:
            component: iCalendar component (e.g., VEVENT)

        Returns:
            List of parsed Attendee objects
        """
        attendee_props = component.get("ATTENDEE", [])

        # A single ATTENDEE comes back as a scalar, several as a list
        if not isinstance(attendee_props, list):
            attendee_props = [attendee_props] if attendee_props else []

        attendees = []
        for attendee_prop in attendee_props:
            attendee = self.parse_attendee(attendee_prop)
            if attendee:
                attendees.append(attendee)
            else:
                logger.debug("Skipping ATTENDEE without address: %r", attendee_prop)
        return attendees

    def parse_organizer(self, component: Any) -> tuple[Optional[str], Optional[str]]:
        """Return (name, email) of the ORGANIZER, or (None, None)."""
        organizer = component.get("ORGANIZER")
        if not organizer:
            return None, None
        email = strip_mailto(organizer) or None
        name = getattr(organizer, "params", {}).get("CN")
        return (str(name) if name else None), email
