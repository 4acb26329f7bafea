"""Data models for ICS/VCF processing - AppStandard Lite version."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

# Duration and trigger value objects


class DurationUnit(str, Enum):
    """Units a parsed duration can be reported in."""

    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


class Duration(BaseModel):
    """A duration reduced to its single dominant unit."""

    value: int = Field(..., ge=0, description="Non-negative magnitude")
    unit: DurationUnit = Field(..., description="Dominant unit of the source token")

    model_config = ConfigDict(use_enum_values=True, validate_default=True, frozen=True)


class TriggerWhen(str, Enum):
    """Position of an alarm relative to its event."""

    BEFORE = "before"
    AFTER = "after"
    AT = "at"


class AlarmTrigger(BaseModel):
    """Structured view of a raw TRIGGER value."""

    when: TriggerWhen = Field(..., description="before/after the event start, or at an absolute time")
    value: int = Field(..., ge=0)
    unit: DurationUnit = Field(default=DurationUnit.MINUTES)

    model_config = ConfigDict(use_enum_values=True, validate_default=True, frozen=True)


class AlarmAction(str, Enum):
    """VALARM ACTION values."""

    DISPLAY = "DISPLAY"
    AUDIO = "AUDIO"
    EMAIL = "EMAIL"


class EventAlarm(BaseModel):
    """A VALARM attached to an event or task.

    The raw trigger string is the persisted form; the structured trigger is
    derived from it on demand (see ``ics_alarm.derive_trigger``).
    """

    action: AlarmAction = Field(default=AlarmAction.DISPLAY)
    trigger: str = Field(..., description="Raw TRIGGER value, e.g. -PT15M or 20240115T093000Z")
    description: Optional[str] = None
    summary: Optional[str] = None
    repeat: Optional[int] = None
    duration: Optional[str] = Field(default=None, description="Repeat interval as a duration token")

    model_config = ConfigDict(use_enum_values=True, validate_default=True)


# Calendar models


class EventStatus(str, Enum):
    """VEVENT STATUS values."""

    TENTATIVE = "TENTATIVE"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class AttendeeRole(str, Enum):
    """ATTENDEE ROLE parameter values."""

    CHAIR = "CHAIR"
    REQ_PARTICIPANT = "REQ-PARTICIPANT"
    OPT_PARTICIPANT = "OPT-PARTICIPANT"
    NON_PARTICIPANT = "NON-PARTICIPANT"


class AttendeeStatus(str, Enum):
    """ATTENDEE PARTSTAT parameter values."""

    NEEDS_ACTION = "NEEDS-ACTION"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    TENTATIVE = "TENTATIVE"
    DELEGATED = "DELEGATED"


class Attendee(BaseModel):
    """Calendar event attendee."""

    email: str = Field(..., description="Attendee email address")
    name: Optional[str] = Field(default=None, description="Common name (CN)")
    role: AttendeeRole = Field(default=AttendeeRole.REQ_PARTICIPANT)
    status: AttendeeStatus = Field(default=AttendeeStatus.NEEDS_ACTION)
    rsvp: bool = False

    model_config = ConfigDict(use_enum_values=True, validate_default=True)


class CalendarEvent(BaseModel):
    """Calendar event model for ICS-based events."""

    # Core properties
    id: Optional[str] = Field(default=None, description="Storage identifier")
    uid: Optional[str] = Field(default=None, description="ICS UID")
    title: str = Field(..., description="Event summary/title")
    description: Optional[str] = None
    location: Optional[str] = None

    # Time information
    start_date: datetime = Field(..., description="Event start (UTC)")
    end_date: datetime = Field(..., description="Event end (UTC)")
    is_all_day: bool = Field(default=False, description="All-day event flag")

    # Status and classification
    status: Optional[EventStatus] = None
    priority: Optional[int] = None
    url: Optional[str] = None
    classification: Optional[str] = Field(default=None, description="CLASS property")
    transparency: Optional[str] = Field(default=None, description="TRANSP property")
    sequence: Optional[int] = None
    color: Optional[str] = None
    categories: list[str] = Field(default_factory=list)

    # Organizer and attendees
    organizer_name: Optional[str] = None
    organizer_email: Optional[str] = None
    attendees: list[Attendee] = Field(default_factory=list)

    # Alarms
    alarms: list[EventAlarm] = Field(default_factory=list)

    # Geography
    geo_latitude: Optional[float] = None
    geo_longitude: Optional[float] = None

    # Recurrence
    rrule: Optional[str] = Field(default=None, description="RRULE value without the property name")
    exdates: list[datetime] = Field(default_factory=list)
    recurrence_id: Optional[datetime] = Field(
        default=None, description="RECURRENCE-ID for modified occurrences"
    )
    related_to: Optional[str] = None

    # RRULE expansion tracking
    is_expanded_instance: bool = Field(
        default=False, description="True if generated from RRULE expansion"
    )
    rrule_master_uid: Optional[str] = Field(
        default=None, description="UID of master recurring event for expanded instances"
    )

    # Metadata
    dtstamp: Optional[datetime] = None
    created: Optional[datetime] = None
    last_modified: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    @property
    def is_recurring(self) -> bool:
        """Check if the event carries a recurrence rule."""
        return bool(self.rrule)

    @field_serializer("start_date", "end_date")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()


# Task models


class TaskStatus(str, Enum):
    """VTODO STATUS values."""

    NEEDS_ACTION = "NEEDS-ACTION"
    IN_PROCESS = "IN-PROCESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Task(BaseModel):
    """To-do item model (VTODO)."""

    id: Optional[str] = None
    uid: Optional[str] = None
    title: str = Field(..., description="Task summary")
    description: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None
    status: TaskStatus = Field(default=TaskStatus.NEEDS_ACTION)
    priority: Optional[int] = None
    percent_complete: Optional[int] = Field(default=None, ge=0, le=100)
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    categories: list[str] = Field(default_factory=list)
    alarms: list[EventAlarm] = Field(default_factory=list)
    rrule: Optional[str] = None
    related_to: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True, validate_default=True)


# Contact models


class ContactEmail(BaseModel):
    """EMAIL entry of a contact."""

    email: str
    type: Optional[str] = Field(default=None, description="home, work, ...")
    is_primary: bool = False


class ContactPhone(BaseModel):
    """TEL entry of a contact."""

    number: str
    type: Optional[str] = Field(default=None, description="cell, home, work, fax, ...")
    is_primary: bool = False


class ContactAddress(BaseModel):
    """ADR entry of a contact."""

    type: Optional[str] = None
    po_box: Optional[str] = None
    extended: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    is_primary: bool = False


class ContactIM(BaseModel):
    """IMPP entry of a contact."""

    service: str
    handle: str


class ContactRelation(BaseModel):
    """RELATED entry of a contact."""

    value: str
    type: Optional[str] = Field(default=None, description="spouse, child, friend, ...")


class ContactSocialProfile(BaseModel):
    """X-SOCIALPROFILE entry of a contact."""

    url: str
    type: Optional[str] = None


class Contact(BaseModel):
    """Contact record used for vCard generation and parsing."""

    id: Optional[str] = None
    address_book_id: Optional[str] = None
    uid: Optional[str] = None

    # Name
    formatted_name: str = Field(..., description="FN")
    family_name: Optional[str] = None
    given_name: Optional[str] = None
    additional_name: Optional[str] = None
    name_prefix: Optional[str] = None
    name_suffix: Optional[str] = None
    nickname: Optional[str] = None

    # Identification
    photo_url: Optional[str] = None
    birthday: Optional[date] = None
    anniversary: Optional[date] = None
    gender: Optional[str] = None
    kind: Optional[str] = None

    # Organization
    organization: Optional[str] = None
    title: Optional[str] = None
    role: Optional[str] = None
    logo_url: Optional[str] = None
    members: list[str] = Field(default_factory=list)

    # Communication
    emails: list[ContactEmail] = Field(default_factory=list)
    phones: list[ContactPhone] = Field(default_factory=list)
    addresses: list[ContactAddress] = Field(default_factory=list)
    im_handles: list[ContactIM] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)

    # Geography
    geo_latitude: Optional[float] = None
    geo_longitude: Optional[float] = None
    timezone: Optional[str] = None

    # Explanatory
    url: Optional[str] = None
    note: Optional[str] = None
    categories: list[str] = Field(default_factory=list)
    relations: list[ContactRelation] = Field(default_factory=list)
    social_profiles: list[ContactSocialProfile] = Field(default_factory=list)

    # Security / calendar
    key_url: Optional[str] = None
    sound_url: Optional[str] = None
    source_url: Optional[str] = None
    fburl: Optional[str] = None
    cal_adr_uri: Optional[str] = None
    cal_uri: Optional[str] = None

    revision: Optional[datetime] = None

    @property
    def primary_email(self) -> Optional[str]:
        """Return the primary email, falling back to the first one."""
        for entry in self.emails:
            if entry.is_primary:
                return entry.email
        return self.emails[0].email if self.emails else None


# Collections, results and collaborator payloads


class CollectionKind(str, Enum):
    """Kinds of collections the merge engine can combine."""

    CALENDAR = "calendar"
    ADDRESS_BOOK = "address_book"
    TASK_LIST = "task_list"


class Collection(BaseModel):
    """A calendar, address book or task list with its items."""

    id: str
    name: str
    kind: CollectionKind
    items: list[Any] = Field(default_factory=list, description="CalendarEvent, Contact or Task")
    owner_id: Optional[str] = None
    color: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True, validate_default=True)


class ICSParseResult(BaseModel):
    """Result of ICS parsing operation."""

    success: bool = False
    events: list[CalendarEvent] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    calendar_name: Optional[str] = None
    prodid: Optional[str] = None
    ics_version: Optional[str] = None

    # Parse statistics
    total_components: int = 0
    event_count: int = 0
    recurring_event_count: int = 0

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def add_error(self, error: str) -> None:
        """Add an error message."""
        self.errors.append(error)

    def add_warning(self, warning: str) -> None:
        """Add a warning message."""
        self.warnings.append(warning)


class VCFParseResult(BaseModel):
    """Result of VCF parsing operation."""

    contacts: list[Contact] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class QRPayloadCheck(BaseModel):
    """Outcome of checking a contact's vCard against the QR payload limit."""

    vcard: str
    size_bytes: int
    max_bytes: int
    is_too_large: bool


class MergeResult(BaseModel):
    """Outcome of merging several collections into a new one."""

    collection_id: str
    kind: CollectionKind
    source_ids: list[str] = Field(default_factory=list)
    merged_count: int = 0
    removed_duplicates: int = 0

    model_config = ConfigDict(use_enum_values=True, validate_default=True)


class ImportResult(BaseModel):
    """Outcome of importing items into an existing collection."""

    collection_id: str
    imported_count: int = 0
    skipped_duplicates: int = 0


class BundleOptions(BaseModel):
    """Options passed to the bundle store on creation."""

    name: Optional[str] = None
    remove_duplicates: bool = False


class BundleHandle(BaseModel):
    """Identifier and share token of a created bundle."""

    id: str
    token: str
