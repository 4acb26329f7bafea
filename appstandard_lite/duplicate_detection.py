"""Duplicate detection for events, contacts and tasks - AppStandard Lite.

Detection strategy, per item kind:

- When both items carry a UID, the UID decides (for events the
  RECURRENCE-ID must match too, so expanded instances stay distinct).
- Otherwise events match on normalized title plus start and end within a
  tolerance (and optionally location), contacts on name plus a shared email
  or phone, and tasks on title plus due/start date within a tolerance.

Deduplication always keeps the first occurrence in input order.
"""

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Generic, Optional, TypeVar

from .lite_models import CalendarEvent, CollectionKind, Contact, Task

logger = logging.getLogger(__name__)

T = TypeVar("T")

_WHITESPACE_RE = re.compile(r"\s+")
_NON_DIGIT_RE = re.compile(r"\D")
_ANY_KEY = "*"


@dataclass
class DuplicateCheckConfig:
    """Switches and tolerances for duplicate detection.

    Event comparisons use ``use_uid``, ``use_title`` and ``use_location``;
    contact comparisons use ``use_uid``, ``use_name``, ``use_email`` and
    ``use_phone``; task comparisons use ``use_uid`` and ``use_title``.
    """

    use_uid: bool = True
    use_title: bool = True
    use_location: bool = False
    use_name: bool = True
    use_email: bool = True
    use_phone: bool = False
    date_tolerance: timedelta = timedelta(seconds=60)

    @classmethod
    def from_settings(cls, settings: Any) -> "DuplicateCheckConfig":
        """Build a config from a settings object (``dedup_*`` attributes)."""
        return cls(
            use_location=getattr(settings, "dedup_use_location", False),
            use_phone=getattr(settings, "dedup_use_phone", False),
            date_tolerance=timedelta(seconds=getattr(settings, "dedup_date_tolerance_seconds", 60)),
        )


@dataclass
class DeduplicationResult(Generic[T]):
    """Items split into first occurrences and the duplicates that were dropped."""

    unique: list[T] = field(default_factory=list)
    duplicates: list[T] = field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return len(self.duplicates)


def normalize_text(value: Optional[str]) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value.strip().lower())


def normalize_phone(number: Optional[str]) -> str:
    """Keep digits only, so ``+1 (555) 010-0000`` equals ``15550100000``."""
    return _NON_DIGIT_RE.sub("", number or "")


def _within(first: Optional[datetime], second: Optional[datetime], tolerance: timedelta) -> bool:
    if first is None or second is None:
        return first is None and second is None
    return abs(first - second) <= tolerance


def _resolve(config: Optional[DuplicateCheckConfig]) -> DuplicateCheckConfig:
    return config if config is not None else DuplicateCheckConfig()


# Pairwise comparisons


def are_events_duplicates(
    first: CalendarEvent, second: CalendarEvent, config: Optional[DuplicateCheckConfig] = None
) -> bool:
    """Check if two events represent the same occurrence."""
    cfg = _resolve(config)

    if cfg.use_uid and first.uid and second.uid:
        return first.uid == second.uid and _within(first.recurrence_id, second.recurrence_id, cfg.date_tolerance)

    if cfg.use_title and normalize_text(first.title) != normalize_text(second.title):
        return False

    if not _within(first.start_date, second.start_date, cfg.date_tolerance):
        return False
    if not _within(first.end_date, second.end_date, cfg.date_tolerance):
        return False

    if cfg.use_location and normalize_text(first.location) != normalize_text(second.location):
        return False

    return True


def _emails(contact: Contact) -> set[str]:
    return {normalize_text(entry.email) for entry in contact.emails if entry.email.strip()}


def _phones(contact: Contact) -> set[str]:
    return {digits for digits in (normalize_phone(p.number) for p in contact.phones) if digits}


def are_contacts_duplicates(
    first: Contact, second: Contact, config: Optional[DuplicateCheckConfig] = None
) -> bool:
    """Check if two contacts describe the same person.

    Matches when the UIDs agree, or on same name and a shared email, or same
    name and a shared phone (phone matching is opt-in). With only names
    enabled the name decides; with only emails enabled a shared email decides.
    """
    cfg = _resolve(config)

    if cfg.use_uid and first.uid and second.uid:
        return first.uid == second.uid

    name_match = cfg.use_name and normalize_text(first.formatted_name) == normalize_text(second.formatted_name)
    email_match = cfg.use_email and bool(_emails(first) & _emails(second))
    phone_match = cfg.use_phone and bool(_phones(first) & _phones(second))

    if cfg.use_name and cfg.use_email and name_match and email_match:
        return True
    if cfg.use_name and cfg.use_phone and name_match and phone_match:
        return True
    if cfg.use_name and not cfg.use_email and not cfg.use_phone:
        return name_match
    if cfg.use_email and not cfg.use_name and email_match:
        return True
    return False


def _task_anchor(task: Task) -> Optional[datetime]:
    return task.due_date or task.start_date


def are_tasks_duplicates(first: Task, second: Task, config: Optional[DuplicateCheckConfig] = None) -> bool:
    """Check if two tasks are the same to-do.

    Tasks without any date on both sides match on title alone.
    """
    cfg = _resolve(config)

    if cfg.use_uid and first.uid and second.uid:
        return first.uid == second.uid

    if cfg.use_title and normalize_text(first.title) != normalize_text(second.title):
        return False

    return _within(_task_anchor(first), _task_anchor(second), cfg.date_tolerance)


# Candidate keys narrow the pairwise comparisons; two items can only be
# duplicates if they share at least one key.


def _event_keys(event: CalendarEvent, cfg: DuplicateCheckConfig) -> list[str]:
    keys = [f"uid:{event.uid}"] if cfg.use_uid and event.uid else []
    keys.append(f"title:{normalize_text(event.title)}" if cfg.use_title else _ANY_KEY)
    return keys


def _contact_keys(contact: Contact, cfg: DuplicateCheckConfig) -> list[str]:
    keys = [f"uid:{contact.uid}"] if cfg.use_uid and contact.uid else []
    if cfg.use_name:
        keys.append(f"name:{normalize_text(contact.formatted_name)}")
    if cfg.use_email:
        keys.extend(f"email:{email}" for email in sorted(_emails(contact)))
    if cfg.use_phone:
        keys.extend(f"phone:{phone}" for phone in sorted(_phones(contact)))
    return keys


def _task_keys(task: Task, cfg: DuplicateCheckConfig) -> list[str]:
    keys = [f"uid:{task.uid}"] if cfg.use_uid and task.uid else []
    keys.append(f"title:{normalize_text(task.title)}" if cfg.use_title else _ANY_KEY)
    return keys


@dataclass(frozen=True)
class _Detector:
    keys: Callable[[Any, DuplicateCheckConfig], list[str]]
    compare: Callable[[Any, Any, Optional[DuplicateCheckConfig]], bool]


_DETECTORS: dict[str, _Detector] = {
    CollectionKind.CALENDAR.value: _Detector(_event_keys, are_events_duplicates),
    CollectionKind.ADDRESS_BOOK.value: _Detector(_contact_keys, are_contacts_duplicates),
    CollectionKind.TASK_LIST.value: _Detector(_task_keys, are_tasks_duplicates),
}


def kind_of(item: Any) -> CollectionKind:
    """Return the collection kind an item belongs to."""
    if isinstance(item, CalendarEvent):
        return CollectionKind.CALENDAR
    if isinstance(item, Contact):
        return CollectionKind.ADDRESS_BOOK
    if isinstance(item, Task):
        return CollectionKind.TASK_LIST
    raise TypeError(f"Unsupported item type: {type(item).__name__}")


class _SeenIndex:
    """Kept items indexed by candidate key."""

    def __init__(self, detector: _Detector, cfg: DuplicateCheckConfig):
        self._detector = detector
        self._cfg = cfg
        self._by_key: dict[str, list[Any]] = {}

    def find(self, item: Any) -> Optional[Any]:
        checked: set[int] = set()
        for key in self._detector.keys(item, self._cfg):
            for candidate in self._by_key.get(key, []):
                if id(candidate) in checked:
                    continue
                checked.add(id(candidate))
                if self._detector.compare(item, candidate, self._cfg):
                    return candidate
        return None

    def add(self, item: Any) -> None:
        for key in self._detector.keys(item, self._cfg):
            self._by_key.setdefault(key, []).append(item)


def deduplicate(
    items: Sequence[T],
    kind: CollectionKind | str,
    config: Optional[DuplicateCheckConfig] = None,
) -> DeduplicationResult[T]:
    """Split items of one kind into first occurrences and duplicates."""
    return find_duplicates_against_existing(items, [], kind, config)


def find_duplicates_against_existing(
    new_items: Sequence[T],
    existing_items: Iterable[T],
    kind: CollectionKind | str,
    config: Optional[DuplicateCheckConfig] = None,
) -> DeduplicationResult[T]:
    """Filter ``new_items`` against items already stored (and against each other).

    Returns:
        DeduplicationResult whose ``unique`` items are safe to insert
    """
    cfg = _resolve(config)
    kind_key = kind.value if isinstance(kind, CollectionKind) else str(kind)
    index = _SeenIndex(_DETECTORS[kind_key], cfg)
    for item in existing_items:
        index.add(item)

    result: DeduplicationResult[T] = DeduplicationResult()
    for item in new_items:
        if index.find(item) is not None:
            result.duplicates.append(item)
            continue
        index.add(item)
        result.unique.append(item)

    if result.duplicates:
        logger.debug("Removed %d duplicate %s items", len(result.duplicates), kind_key)
    return result


def deduplicate_events(
    events: Sequence[CalendarEvent], config: Optional[DuplicateCheckConfig] = None
) -> DeduplicationResult[CalendarEvent]:
    """Deduplicate events keeping the first occurrence."""
    return deduplicate(events, CollectionKind.CALENDAR, config)


def deduplicate_contacts(
    contacts: Sequence[Contact], config: Optional[DuplicateCheckConfig] = None
) -> DeduplicationResult[Contact]:
    """Deduplicate contacts keeping the first occurrence."""
    return deduplicate(contacts, CollectionKind.ADDRESS_BOOK, config)


def deduplicate_tasks(tasks: Sequence[Task], config: Optional[DuplicateCheckConfig] = None) -> DeduplicationResult[Task]:
    """Deduplicate tasks keeping the first occurrence."""
    return deduplicate(tasks, CollectionKind.TASK_LIST, config)


def get_duplicate_ids(
    items: Sequence[Any], kind: CollectionKind | str, config: Optional[DuplicateCheckConfig] = None
) -> list[str]:
    """Return storage ids of the items that duplicate an earlier item."""
    return [item.id for item in deduplicate(items, kind, config).duplicates if item.id]
