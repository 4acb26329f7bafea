"""
Unit tests for appstandard_lite.share_bundle

Covers:
- bundle lifetime (deleted on success, on failure, and when delete itself fails)
- fetch_bundle_content error paths
- rendering calendars, task lists and address books as one document
"""

from typing import Any

import pytest
from icalendar import Calendar

from appstandard_lite.lite_exceptions import BundleError
from appstandard_lite.lite_models import BundleOptions, Collection, CollectionKind
from appstandard_lite.share_bundle import bundle_scope, fetch_bundle_content, render_bundle

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class TestBundleScope:
    """Lifetime of temporary bundles."""

    def test_bundle_deleted_after_block(self, bundle_store_factory: Any) -> None:
        store = bundle_store_factory()

        with bundle_scope(store, ["cal-1", "cal-2"], BundleOptions(name="Both")) as handle:
            assert handle.id == "bundle-1"
            assert store.deleted == []

        assert store.deleted == ["bundle-1"]
        assert store.created[0][0] == ["cal-1", "cal-2"]
        assert store.created[0][1].name == "Both"

    def test_bundle_deleted_when_block_raises(self, bundle_store_factory: Any) -> None:
        store = bundle_store_factory()

        with pytest.raises(ValueError):
            with bundle_scope(store, ["cal-1"]):
                raise ValueError("boom")

        assert store.deleted == ["bundle-1"]

    def test_empty_sources_rejected_before_create(self, bundle_store_factory: Any) -> None:
        store = bundle_store_factory()

        with pytest.raises(BundleError):
            with bundle_scope(store, []):
                pass

        assert store.created == []
        assert store.deleted == []

    def test_create_failure_wrapped(self) -> None:
        class BrokenStore:
            def create(self, source_ids: Any, options: Any) -> Any:
                raise ConnectionError("offline")

            def get_by_token(self, token: str) -> str:
                return ""

            def delete(self, bundle_id: str) -> None:
                raise AssertionError("nothing to delete")

        with pytest.raises(BundleError, match="offline"):
            with bundle_scope(BrokenStore(), ["cal-1"]):
                pass

    def test_delete_failure_is_logged_not_raised(self, bundle_store_factory: Any, caplog: Any) -> None:
        store = bundle_store_factory()

        def failing_delete(bundle_id: str) -> None:
            raise RuntimeError("delete failed")

        store.delete = failing_delete

        with bundle_scope(store, ["cal-1"]) as handle:
            token = handle.token

        assert token == "token-1"
        assert "Failed to delete bundle bundle-1" in caplog.text


class TestFetchBundleContent:
    """One-shot export through a bundle."""

    def test_content_returned_and_bundle_deleted(self, bundle_store_factory: Any) -> None:
        store = bundle_store_factory(content="BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n")

        content = fetch_bundle_content(store, ["cal-1", "cal-2"])

        assert content.startswith("BEGIN:VCALENDAR")
        assert store.deleted == ["bundle-1"]

    def test_retrieval_failure_still_deletes(self, bundle_store_factory: Any) -> None:
        store = bundle_store_factory(fail_on_get=True)

        with pytest.raises(RuntimeError):
            fetch_bundle_content(store, ["cal-1"])

        assert store.deleted == ["bundle-1"]

    def test_empty_content_raises(self, bundle_store_factory: Any) -> None:
        store = bundle_store_factory(content="")

        with pytest.raises(BundleError):
            fetch_bundle_content(store, ["cal-1"])

        assert store.deleted == ["bundle-1"]


class TestRenderBundle:
    """Rendering collections as one document."""

    def test_calendars(self, calendar_collections: list[Collection], simple_settings: Any) -> None:
        ics = render_bundle(calendar_collections, settings=simple_settings)

        assert ics.count("BEGIN:VEVENT") == 4
        assert str(Calendar.from_ical(ics).get("X-WR-CALNAME")) == "Work, Team"
        assert "PRODID:-//AppStandard Test//EN" in ics

    def test_calendars_with_duplicate_removal_and_name(self, calendar_collections: list[Collection]) -> None:
        ics = render_bundle(calendar_collections, remove_duplicates=True, name="Everything")

        assert ics.count("BEGIN:VEVENT") == 3
        assert "X-WR-CALNAME:Everything" in ics

    def test_task_list(self, task_factory: Any) -> None:
        tasks = Collection(id="t-1", name="Chores", kind=CollectionKind.TASK_LIST, items=[task_factory("Dishes")])

        ics = render_bundle([tasks])

        assert "BEGIN:VTODO" in ics
        assert "SUMMARY:Dishes" in ics
        assert "BEGIN:VEVENT" not in ics

    def test_address_book(self, contact_factory: Any, simple_settings: Any) -> None:
        book = Collection(
            id="b-1",
            name="Friends",
            kind=CollectionKind.ADDRESS_BOOK,
            items=[contact_factory("Ann"), contact_factory("Bob")],
        )

        vcf = render_bundle([book], settings=simple_settings)

        assert vcf.count("BEGIN:VCARD") == 2
        assert "FN:Ann" in vcf
        assert "PRODID:-//AppStandard Test Contacts//EN" in vcf

    def test_empty_and_mixed_rejected(self, calendar_collections: list[Collection]) -> None:
        book = Collection(id="b-1", name="Friends", kind=CollectionKind.ADDRESS_BOOK)

        with pytest.raises(BundleError):
            render_bundle([])
        with pytest.raises(BundleError):
            render_bundle([*calendar_collections, book])
