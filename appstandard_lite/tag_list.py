"""Comma-separated tag/category list codec - AppStandard Lite.

Tags arrive either as stored text (``"work, personal"``) or as normalized
records exposing a ``category`` or ``resource`` field. Both shapes are
represented explicitly by the ``TagSource`` union and reduced to the canonical
ordered list by ``normalize_tags``.

An empty list is stored as ``None`` rather than ``""`` so "no tags" stays
distinguishable from a blank field.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Union

TAG_SEPARATOR = ", "


@dataclass(frozen=True)
class TagRecord:
    """A normalized tag row (category for events/tasks, resource for rooms)."""

    category: Optional[str] = None
    resource: Optional[str] = None

    @property
    def value(self) -> str:
        return (self.category or self.resource or "").strip()


@dataclass(frozen=True)
class TagText:
    """Comma-separated tag text as stored on an entity."""

    text: Optional[str] = None


@dataclass(frozen=True)
class TagRecords:
    """A sequence of tag records."""

    records: tuple[TagRecord, ...] = field(default_factory=tuple)

    @classmethod
    def from_mappings(cls, rows: Iterable[Mapping[str, Any]]) -> "TagRecords":
        """Build from plain ``{"category": ...}`` / ``{"resource": ...}`` rows."""
        return cls(
            tuple(TagRecord(category=row.get("category"), resource=row.get("resource")) for row in rows)
        )


TagSource = Union[TagText, TagRecords]


def normalize_tags(source: Optional[TagSource]) -> list[str]:
    """Reduce a tag source to trimmed, non-empty tags in their original order.

    Duplicates are kept; use ``has_tag`` for membership checks.
    """
    if source is None:
        return []
    if isinstance(source, TagRecords):
        return [record.value for record in source.records if record.value]
    if isinstance(source, TagText):
        if not source.text:
            return []
        return [item.strip() for item in source.text.split(",") if item.strip()]
    raise TypeError(f"Unsupported tag source: {type(source).__name__}")


def _as_source(source: Union[TagSource, str, None]) -> Optional[TagSource]:
    if source is None or isinstance(source, str):
        return TagText(source)
    return source


def parse_tags(source: Union[TagSource, str, None]) -> list[str]:
    """Parse stored tag text (or an explicit TagSource) into a list of tags."""
    return normalize_tags(_as_source(source))


def stringify_tags(tags: Sequence[str]) -> Optional[str]:
    """Join tags with ``", "``; returns None when nothing non-blank remains."""
    cleaned = [tag.strip() for tag in tags if tag and tag.strip()]
    return TAG_SEPARATOR.join(cleaned) if cleaned else None


def add_tag(current: Optional[str], new_tag: str) -> Optional[str]:
    """Append ``new_tag`` unless it is blank or already present (case-sensitive)."""
    tags = parse_tags(current)
    trimmed = new_tag.strip()
    if trimmed and trimmed not in tags:
        tags.append(trimmed)
    return stringify_tags(tags)


def remove_tag(current: Optional[str], tag: str) -> Optional[str]:
    """Remove every exact occurrence of ``tag``; None when the list empties."""
    trimmed = tag.strip()
    return stringify_tags([item for item in parse_tags(current) if item != trimmed])


def get_last_tag(source: Union[TagSource, str, None]) -> str:
    """Return the last non-empty tag, or ``""`` when there is none."""
    tags = parse_tags(source)
    return tags[-1] if tags else ""


def has_tag(current: Union[TagSource, str, None], tag: str) -> bool:
    """Check whether the trimmed ``tag`` is present."""
    return tag.strip() in parse_tags(current)


# Category helpers share the same semantics
parse_categories = parse_tags
stringify_categories = stringify_tags
add_category = add_tag
remove_category = remove_tag
