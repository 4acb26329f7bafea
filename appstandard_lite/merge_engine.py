"""Collection merge engine - AppStandard Lite.

Combines several calendars, address books or task lists into a new
collection, imports items into an existing one and removes duplicates in
place. All store writes for one target collection run under that target's
lock, so concurrent merges or imports into the same target never interleave.
"""

import logging
import threading
from collections.abc import Sequence
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from .duplicate_detection import DuplicateCheckConfig, deduplicate, find_duplicates_against_existing
from .lite_exceptions import CollectionKindMismatchError, CollectionNotFoundError, MergeValidationError
from .lite_models import Collection, ImportResult, MergeResult
from .lite_protocols import CollectionStore

logger = logging.getLogger(__name__)

DEFAULT_MIN_SOURCES = 2
DEFAULT_MAX_SOURCES = 10


def validate_source_ids(
    source_ids: Sequence[str],
    min_sources: int = DEFAULT_MIN_SOURCES,
    max_sources: int = DEFAULT_MAX_SOURCES,
) -> list[str]:
    """Check a merge/export source list without touching any store.

    Args:
        source_ids: Collection ids in the order their items should appear
        min_sources: Fewest ids accepted
        max_sources: Most ids accepted

    Returns:
        The ids stripped of surrounding whitespace

    Raises:
        MergeValidationError: If the list is empty, has blank or repeated
            ids, or its size is outside ``[min_sources, max_sources]``
    """
    if not source_ids:
        raise MergeValidationError("At least one source collection is required")

    cleaned = [str(source_id).strip() for source_id in source_ids]
    if any(not source_id for source_id in cleaned):
        raise MergeValidationError("Source collection ids must not be blank")
    if len(set(cleaned)) != len(cleaned):
        raise MergeValidationError("Source collection ids must be unique")
    if len(cleaned) < min_sources:
        raise MergeValidationError(f"At least {min_sources} source collections are required to merge")
    if len(cleaned) > max_sources:
        raise MergeValidationError(f"At most {max_sources} source collections can be merged at once")
    return cleaned


class MergeEngine:
    """Merge, import and clean-up operations over a CollectionStore."""

    def __init__(self, store: CollectionStore, settings: Any = None):
        """Initialize the engine.

        Args:
            store: Collection persistence collaborator
            settings: Optional settings object (merge bounds, dedup tolerances)
        """
        self.store = store
        self.min_sources = getattr(settings, "merge_min_sources", DEFAULT_MIN_SOURCES)
        self.max_sources = getattr(settings, "merge_max_sources", DEFAULT_MAX_SOURCES)
        self.dedup_config = DuplicateCheckConfig.from_settings(settings)
        self._registry_lock = threading.Lock()
        # target key -> [lock, number of threads holding or waiting for it]
        self._target_locks: dict[str, list[Any]] = {}

    @contextmanager
    def target_lock(self, target_key: str) -> Iterator[None]:
        """Hold the lock serializing writes to one target collection.

        The lock is dropped from the registry once no thread holds or awaits it.
        """
        with self._registry_lock:
            entry = self._target_locks.get(target_key)
            if entry is None:
                entry = self._target_locks[target_key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._registry_lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._target_locks[target_key]

    def merge(
        self,
        source_ids: Sequence[str],
        name: str,
        remove_duplicates: bool = False,
        owner_id: Optional[str] = None,
    ) -> MergeResult:
        """Merge source collections into a newly created collection.

        Items keep source order: every item of the first source, then the
        second, and so on. With ``remove_duplicates`` the first occurrence of
        each equivalent group survives.

        Raises:
            MergeValidationError: Invalid request (checked before any store call)
            CollectionNotFoundError: A source id is unknown
            CollectionKindMismatchError: Sources are of different kinds
        """
        ids = validate_source_ids(source_ids, self.min_sources, self.max_sources)
        target_name = (name or "").strip()
        if not target_name:
            raise MergeValidationError("Merged collection name must not be blank")

        sources = [self._load(source_id) for source_id in ids]
        kinds = {source.kind for source in sources}
        if len(kinds) > 1:
            raise CollectionKindMismatchError(f"Cannot merge collections of different kinds: {sorted(kinds)}")
        kind = sources[0].kind

        items: list[Any] = [item for source in sources for item in source.items]
        removed = 0
        if remove_duplicates:
            dedup = deduplicate(items, kind, self.dedup_config)
            items = dedup.unique
            removed = dedup.removed_count

        with self.target_lock(f"{owner_id or ''}:{target_name}"):
            target = self.store.create_collection(target_name, kind, items, owner_id)

        logger.info(
            "Merged %d %s collections into %s (%d items, %d duplicates removed)",
            len(sources),
            kind,
            target.id,
            len(items),
            removed,
        )
        return MergeResult(
            collection_id=target.id,
            kind=kind,
            source_ids=ids,
            merged_count=len(items),
            removed_duplicates=removed,
        )

    def import_into(self, target_id: str, items: Sequence[Any], skip_duplicates: bool = True) -> ImportResult:
        """Add items to an existing collection.

        With ``skip_duplicates`` items equivalent to a stored item (or to an
        earlier item of the same import) are skipped.

        Raises:
            CollectionNotFoundError: The target id is unknown
        """
        with self.target_lock(target_id):
            target = self._load(target_id)
            if skip_duplicates:
                result = find_duplicates_against_existing(items, target.items, target.kind, self.dedup_config)
                to_add, skipped = result.unique, result.removed_count
            else:
                to_add, skipped = list(items), 0

            if to_add:
                self.store.add_items(target_id, to_add)

        logger.debug("Imported %d items into %s (%d duplicates skipped)", len(to_add), target_id, skipped)
        return ImportResult(collection_id=target_id, imported_count=len(to_add), skipped_duplicates=skipped)

    def clean_duplicates(self, collection_id: str) -> int:
        """Remove duplicates from a stored collection in place.

        Returns:
            Number of items removed

        Raises:
            CollectionNotFoundError: The collection id is unknown
        """
        with self.target_lock(collection_id):
            collection = self._load(collection_id)
            result = deduplicate(collection.items, collection.kind, self.dedup_config)
            if result.removed_count:
                self.store.replace_items(collection_id, result.unique)

        logger.info("Removed %d duplicates from %s", result.removed_count, collection_id)
        return result.removed_count

    def _load(self, collection_id: str) -> Collection:
        collection = self.store.get_collection(collection_id)
        if collection is None:
            raise CollectionNotFoundError(f"Collection not found: {collection_id}")
        return collection
