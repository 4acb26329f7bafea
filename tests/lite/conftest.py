from collections.abc import Generator, Sequence
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from appstandard_lite.lite_models import (
    BundleHandle,
    BundleOptions,
    CalendarEvent,
    Collection,
    CollectionKind,
    Contact,
    ContactEmail,
    ContactPhone,
    Task,
)


@pytest.fixture
def simple_settings() -> SimpleNamespace:
    """Lightweight settings object used across lite tests.

    Mirrors the attribute names of ``config_loader.Config`` so components
    reading settings through ``getattr`` see deterministic values.
    """
    return SimpleNamespace(
        default_alarm_when="before",
        default_alarm_value=15,
        default_alarm_unit="minutes",
        qr_max_bytes=2500,
        dedup_date_tolerance_seconds=60,
        dedup_use_location=False,
        dedup_use_phone=False,
        merge_min_sources=2,
        merge_max_sources=10,
        calendar_prodid="-//AppStandard Test//EN",
        vcard_prodid="-//AppStandard Test Contacts//EN",
        calendar_name="Test Calendar",
        rrule_expansion_days=365,
        max_occurrences_per_rule=250,
    )


@pytest.fixture
def fixed_now() -> datetime:
    """Deterministic 'now' used by generators and expanders."""
    return datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Ensure logging environment variables do not leak between tests."""
    monkeypatch.delenv("APPSTANDARD_DEBUG", raising=False)
    monkeypatch.delenv("APPSTANDARD_LOG_LEVEL", raising=False)
    yield


def make_event(
    title: str = "Team Meeting",
    start: Optional[datetime] = None,
    hours: int = 1,
    **overrides: Any,
) -> CalendarEvent:
    """Build a CalendarEvent with sensible defaults."""
    start = start or datetime(2024, 1, 15, 10, 0, tzinfo=UTC)
    data: dict[str, Any] = {
        "title": title,
        "start_date": start,
        "end_date": start + timedelta(hours=hours),
    }
    data.update(overrides)
    return CalendarEvent(**data)


def make_contact(name: str = "Jane Doe", emails: Sequence[str] = (), phones: Sequence[str] = (), **overrides: Any) -> Contact:
    """Build a Contact with optional email addresses and phone numbers."""
    return Contact(
        formatted_name=name,
        emails=[ContactEmail(email=email) for email in emails],
        phones=[ContactPhone(number=number) for number in phones],
        **overrides,
    )


def make_task(title: str = "Write report", due: Optional[datetime] = None, **overrides: Any) -> Task:
    """Build a Task with an optional due date."""
    return Task(title=title, due_date=due, **overrides)


class FakeCollectionStore:
    """In-memory CollectionStore recording every call."""

    def __init__(self, collections: Sequence[Collection] = ()) -> None:
        self.collections: dict[str, Collection] = {c.id: c for c in collections}
        self.calls: list[str] = []
        self._next_id = 1

    def get_collection(self, collection_id: str) -> Optional[Collection]:
        self.calls.append(f"get:{collection_id}")
        return self.collections.get(collection_id)

    def create_collection(
        self,
        name: str,
        kind: Any,
        items: Sequence[Any],
        owner_id: Optional[str] = None,
    ) -> Collection:
        self.calls.append(f"create:{name}")
        collection = Collection(id=f"new-{self._next_id}", name=name, kind=kind, items=list(items), owner_id=owner_id)
        self._next_id += 1
        self.collections[collection.id] = collection
        return collection

    def add_items(self, collection_id: str, items: Sequence[Any]) -> int:
        self.calls.append(f"add:{collection_id}")
        self.collections[collection_id].items.extend(items)
        return len(items)

    def replace_items(self, collection_id: str, items: Sequence[Any]) -> None:
        self.calls.append(f"replace:{collection_id}")
        self.collections[collection_id].items = list(items)


class FakeBundleStore:
    """In-memory BundleStore; ``fail_on_get`` makes content retrieval raise."""

    def __init__(self, content: str = "BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n", fail_on_get: bool = False) -> None:
        self.content = content
        self.fail_on_get = fail_on_get
        self.created: list[tuple[list[str], BundleOptions]] = []
        self.deleted: list[str] = []

    def create(self, source_ids: Sequence[str], options: BundleOptions) -> BundleHandle:
        self.created.append((list(source_ids), options))
        return BundleHandle(id=f"bundle-{len(self.created)}", token=f"token-{len(self.created)}")

    def get_by_token(self, token: str) -> str:
        if self.fail_on_get:
            raise RuntimeError("bundle store unavailable")
        return self.content

    def delete(self, bundle_id: str) -> None:
        self.deleted.append(bundle_id)


@pytest.fixture
def event_factory() -> Any:
    """Factory building CalendarEvent instances (see make_event)."""
    return make_event


@pytest.fixture
def contact_factory() -> Any:
    """Factory building Contact instances (see make_contact)."""
    return make_contact


@pytest.fixture
def task_factory() -> Any:
    """Factory building Task instances (see make_task)."""
    return make_task


@pytest.fixture
def bundle_store_factory() -> Any:
    """Factory building FakeBundleStore instances."""
    return FakeBundleStore


@pytest.fixture
def calendar_collections() -> list[Collection]:
    """Two calendars sharing one event (same UID)."""
    shared = make_event("Standup", uid="shared-uid")
    first = Collection(
        id="cal-1",
        name="Work",
        kind=CollectionKind.CALENDAR,
        items=[shared, make_event("Review", uid="review-uid")],
    )
    second = Collection(
        id="cal-2",
        name="Team",
        kind=CollectionKind.CALENDAR,
        items=[shared.model_copy(), make_event("Lunch", uid="lunch-uid")],
    )
    return [first, second]


@pytest.fixture
def collection_store(calendar_collections: list[Collection]) -> FakeCollectionStore:
    """Store holding the two calendars plus an address book."""
    address_book = Collection(
        id="book-1",
        name="Friends",
        kind=CollectionKind.ADDRESS_BOOK,
        items=[make_contact("Ann", emails=["ann@example.com"])],
    )
    return FakeCollectionStore([*calendar_collections, address_book])
