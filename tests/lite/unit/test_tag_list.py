"""Unit tests for appstandard_lite.tag_list."""

import pytest

from appstandard_lite.tag_list import (
    TagRecord,
    TagRecords,
    TagText,
    add_tag,
    get_last_tag,
    has_tag,
    normalize_tags,
    parse_categories,
    parse_tags,
    remove_tag,
    stringify_tags,
)

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class TestNormalizeTags:
    """Both TagSource shapes reduce to the same canonical list."""

    def test_text_source_trims_and_filters(self) -> None:
        """Whitespace is trimmed and empty entries dropped, order kept."""
        assert normalize_tags(TagText(" work , ,personal,  ")) == ["work", "personal"]

    def test_record_source_uses_category_or_resource(self) -> None:
        """Records expose their value through category or resource."""
        source = TagRecords(
            (TagRecord(category="work"), TagRecord(resource=" Room 1 "), TagRecord(category="  "), TagRecord())
        )

        assert normalize_tags(source) == ["work", "Room 1"]

    def test_records_from_mappings(self) -> None:
        """Plain mapping rows are accepted."""
        source = TagRecords.from_mappings([{"category": "a"}, {"resource": "b"}, {}])

        assert normalize_tags(source) == ["a", "b"]

    def test_duplicates_are_kept(self) -> None:
        """Parsing does not deduplicate."""
        assert parse_tags("work, work") == ["work", "work"]

    def test_none_and_empty_sources(self) -> None:
        assert normalize_tags(None) == []
        assert normalize_tags(TagText(None)) == []
        assert parse_tags("") == []

    def test_unknown_source_type_raises(self) -> None:
        """Only the declared source shapes are accepted."""
        with pytest.raises(TypeError):
            normalize_tags(["work"])  # type: ignore[arg-type]


class TestStringifyTags:
    """Tests for stringify_tags."""

    def test_join_with_comma_space(self) -> None:
        assert stringify_tags(["work", "personal"]) == "work, personal"

    @pytest.mark.parametrize("tags", [[], ["", "  "]])
    def test_empty_result_is_none(self, tags: list[str]) -> None:
        """An empty list stringifies to None, not an empty string."""
        assert stringify_tags(tags) is None


class TestAddRemoveTag:
    """Tests for add_tag and remove_tag."""

    def test_add_appends_trimmed_tag(self) -> None:
        assert add_tag("work", "  personal ") == "work, personal"

    def test_add_when_present_then_no_op(self) -> None:
        """Adding an existing tag is idempotent."""
        assert add_tag("work, personal", "work") == "work, personal"

    def test_add_is_case_sensitive(self) -> None:
        assert add_tag("work", "Work") == "work, Work"

    def test_add_when_blank_then_no_op(self) -> None:
        assert add_tag("work", "   ") == "work"
        assert add_tag(None, "") is None

    def test_add_to_empty(self) -> None:
        assert add_tag(None, "first") == "first"

    def test_remove_last_tag_yields_none(self) -> None:
        """Removing the only tag yields None rather than an empty string."""
        assert remove_tag("work", "work") is None

    def test_remove_all_occurrences(self) -> None:
        assert remove_tag("work, home, work", " work ") == "home"

    def test_remove_is_case_sensitive(self) -> None:
        assert remove_tag("work", "WORK") == "work"


def test_get_last_tag() -> None:
    """The last non-empty tag is returned, or an empty string."""
    assert get_last_tag("a, b, c, ") == "c"
    assert get_last_tag(None) == ""
    assert get_last_tag(TagRecords((TagRecord(category="x"), TagRecord(category="")))) == "x"


def test_has_tag() -> None:
    assert has_tag("work, personal", " personal") is True
    assert has_tag("work", "Work") is False


def test_category_aliases_share_semantics() -> None:
    assert parse_categories("a, b") == parse_tags("a, b")
