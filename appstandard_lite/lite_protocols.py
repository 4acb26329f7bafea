"""Protocol definitions for storage collaborators.

The merge engine and bundle helpers never talk to a database directly; they
are handed objects satisfying these interfaces.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional, Protocol

from .lite_models import BundleHandle, BundleOptions, Collection, CollectionKind


class CollectionStore(Protocol):
    """Protocol for the persistence layer holding calendars, address books and task lists."""

    def get_collection(self, collection_id: str) -> Optional[Collection]:
        """Load a collection with its items.

        Args:
            collection_id: Opaque collection identifier

        Returns:
            The collection, or None if the id is unknown
        """
        ...

    def create_collection(
        self,
        name: str,
        kind: CollectionKind | str,
        items: Sequence[Any],
        owner_id: Optional[str] = None,
    ) -> Collection:
        """Create a collection holding ``items`` and return it with its new id."""
        ...

    def add_items(self, collection_id: str, items: Sequence[Any]) -> int:
        """Append items to an existing collection.

        Returns:
            Number of items stored
        """
        ...

    def replace_items(self, collection_id: str, items: Sequence[Any]) -> None:
        """Replace the whole item list of an existing collection."""
        ...


class BundleStore(Protocol):
    """Protocol for the tokenized share/bundle store."""

    def create(self, source_ids: Sequence[str], options: BundleOptions) -> BundleHandle:
        """Create a bundle over ``source_ids`` and return its id and token."""
        ...

    def get_by_token(self, token: str) -> str:
        """Return the rendered bundle content for a share token."""
        ...

    def delete(self, bundle_id: str) -> None:
        """Delete a bundle by id."""
        ...
