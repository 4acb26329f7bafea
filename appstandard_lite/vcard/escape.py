"""vCard escaping, line folding and date helpers (RFC 6350 section 3)."""

import re
import uuid
from datetime import UTC, date, datetime
from typing import Optional

from ..ics_date import to_utc

MAX_LINE_OCTETS = 75

_UNESCAPE_RE = re.compile(r"\\([\\;,nN])")
_UNFOLD_RE = re.compile(r"\r?\n[ \t]")


def escape_vcard_text(text: Optional[str]) -> str:
    """Escape backslash, semicolon, comma and newline in a text value."""
    if not text:
        return ""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def unescape_vcard_text(text: Optional[str]) -> str:
    """Reverse ``escape_vcard_text`` in a single pass (``\\n`` is case-insensitive)."""
    if not text:
        return ""

    def _replace(match: "re.Match[str]") -> str:
        char = match.group(1)
        return "\n" if char in ("n", "N") else char

    return _UNESCAPE_RE.sub(_replace, text)


def fold_line(line: str, max_octets: int = MAX_LINE_OCTETS) -> str:
    """Fold a content line so no physical line exceeds ``max_octets`` UTF-8 bytes.

    Continuation lines start with a single space. Multi-byte characters are
    never split across lines.
    """
    if len(line.encode("utf-8")) <= max_octets:
        return line

    lines: list[str] = []
    current: list[str] = []
    current_size = 0
    limit = max_octets

    for char in line:
        char_size = len(char.encode("utf-8"))
        if current_size + char_size > limit:
            lines.append("".join(current))
            current = [" "]
            current_size = 1
        current.append(char)
        current_size += char_size

    lines.append("".join(current))
    return "\r\n".join(lines)


def unfold_lines(content: str) -> str:
    """Join folded continuation lines (CRLF or LF followed by space or tab)."""
    return _UNFOLD_RE.sub("", content)


def format_vcard_date(value: date) -> str:
    """Format BDAY/ANNIVERSARY values as ``YYYYMMDD``."""
    return f"{value.year:04d}{value.month:02d}{value.day:02d}"


def parse_vcard_date(value: Optional[str]) -> Optional[date]:
    """Parse ``YYYYMMDD``, ``YYYY-MM-DD`` or the year-less ``--MMDD``.

    Year-less dates are placed in 1900. A trailing time part
    (``19850412T000000Z``) is ignored.
    """
    if not value:
        return None

    text = value.strip().split("T", 1)[0]
    try:
        if text.startswith("--"):
            digits = text[2:].replace("-", "")
            if len(digits) != 4 or not digits.isdigit():
                return None
            return date(1900, int(digits[0:2]), int(digits[2:4]))

        digits = text.replace("-", "")
        if len(digits) != 8 or not digits.isdigit():
            return None
        return date(int(digits[0:4]), int(digits[4:6]), int(digits[6:8]))
    except ValueError:
        return None


def format_vcard_timestamp(value: datetime) -> str:
    """Format a REV timestamp as ``YYYY-MM-DDTHH:MM:SSZ``."""
    utc = to_utc(value)
    return f"{utc.year:04d}-{utc.month:02d}-{utc.day:02d}T{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d}Z"


def parse_vcard_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse REV values in extended (``2024-01-15T10:30:00Z``) or basic form."""
    if not value:
        return None
    text = value.strip().replace("-", "").replace(":", "")
    for fmt in ("%Y%m%dT%H%M%SZ", "%Y%m%dT%H%M%S", "%Y%m%d"):
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=UTC)
        except ValueError:
            continue
    return None


def generate_uid() -> str:
    """Generate a ``urn:uuid:`` UID for a new contact."""
    return f"urn:uuid:{uuid.uuid4()}"
