"""Unit tests for appstandard_lite.vcard.escape."""

from datetime import UTC, date, datetime

import pytest

from appstandard_lite.vcard.escape import (
    escape_vcard_text,
    fold_line,
    format_vcard_date,
    format_vcard_timestamp,
    generate_uid,
    parse_vcard_date,
    parse_vcard_timestamp,
    unescape_vcard_text,
    unfold_lines,
)

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class TestEscaping:
    """Text value escaping."""

    def test_escape_special_characters(self) -> None:
        """Commas, semicolons and newlines are escaped."""
        assert escape_vcard_text("a,b;c\nd") == "a\\,b\\;c\\nd"

    def test_escape_backslash_first(self) -> None:
        """Backslashes are escaped before other characters so they are not doubled."""
        assert escape_vcard_text("C:\\dir;x") == "C:\\\\dir\\;x"

    def test_escape_crlf_as_single_newline(self) -> None:
        assert escape_vcard_text("line1\r\nline2") == "line1\\nline2"

    def test_escape_empty(self) -> None:
        assert escape_vcard_text(None) == ""
        assert escape_vcard_text("") == ""

    def test_unescape_reverses_escape(self) -> None:
        original = "Acme, Inc.; R&D\nC:\\temp\\new"

        assert unescape_vcard_text(escape_vcard_text(original)) == original

    def test_unescape_uppercase_newline(self) -> None:
        assert unescape_vcard_text("a\\Nb") == "a\nb"


class TestFolding:
    """Line folding at 75 octets."""

    def test_short_line_unchanged(self) -> None:
        assert fold_line("FN:Jane Doe") == "FN:Jane Doe"

    def test_long_line_folded_within_limit(self) -> None:
        """Every physical line fits in 75 octets and continuations start with a space."""
        line = "NOTE:" + "x" * 200

        physical = fold_line(line).split("\r\n")

        assert len(physical) > 1
        assert all(len(part.encode("utf-8")) <= 75 for part in physical)
        assert all(part.startswith(" ") for part in physical[1:])

    def test_multibyte_characters_not_split(self) -> None:
        """Folding counts UTF-8 octets and keeps characters whole."""
        line = "NOTE:" + "\u00e9" * 100

        folded = fold_line(line)

        assert all(len(part.encode("utf-8")) <= 75 for part in folded.split("\r\n"))
        assert unfold_lines(folded) == line

    def test_unfold_handles_lf_and_tab(self) -> None:
        assert unfold_lines("NOTE:abc\n def\r\n\tghi") == "NOTE:abcdefghi"


class TestDates:
    """vCard date and timestamp helpers."""

    def test_format_date(self) -> None:
        assert format_vcard_date(date(1985, 4, 12)) == "19850412"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("19850412", date(1985, 4, 12)),
            ("1985-04-12", date(1985, 4, 12)),
            ("--0412", date(1900, 4, 12)),
            ("--04-12", date(1900, 4, 12)),
            ("19850412T000000Z", date(1985, 4, 12)),
        ],
    )
    def test_parse_date(self, value: str, expected: date) -> None:
        assert parse_vcard_date(value) == expected

    @pytest.mark.parametrize("value", [None, "", "1985", "19851312", "--1332", "abcdefgh"])
    def test_parse_date_invalid(self, value: object) -> None:
        assert parse_vcard_date(value) is None  # type: ignore[arg-type]

    def test_timestamp_round_trip(self) -> None:
        stamp = datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC)

        assert format_vcard_timestamp(stamp) == "2024-01-15T10:30:00Z"
        assert parse_vcard_timestamp("2024-01-15T10:30:00Z") == stamp
        assert parse_vcard_timestamp("20240115T103000Z") == stamp
        assert parse_vcard_timestamp("later") is None

    def test_timestamp_year_is_zero_padded(self) -> None:
        stamp = datetime(999, 3, 4, 5, 6, 7, tzinfo=UTC)

        assert format_vcard_timestamp(stamp) == "0999-03-04T05:06:07Z"
        assert parse_vcard_timestamp(format_vcard_timestamp(stamp)) == stamp


def test_generate_uid_is_urn_uuid() -> None:
    uid = generate_uid()

    assert uid.startswith("urn:uuid:")
    assert uid != generate_uid()
