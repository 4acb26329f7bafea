"""Share bundles - AppStandard Lite.

A bundle is a short-lived, token-addressed aggregation of several
collections. One-shot exports create a bundle, read its content by token and
delete it again; ``bundle_scope`` guarantees the delete even when the read
fails.
"""

import logging
from collections.abc import Sequence
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from .duplicate_detection import DuplicateCheckConfig, deduplicate
from .ics_generator import ICSGenerator
from .lite_exceptions import BundleError
from .lite_models import BundleHandle, BundleOptions, Collection, CollectionKind
from .lite_protocols import BundleStore
from .vcard.generator import VCardGenerator

logger = logging.getLogger(__name__)


@contextmanager
def bundle_scope(
    store: BundleStore, source_ids: Sequence[str], options: Optional[BundleOptions] = None
) -> Iterator[BundleHandle]:
    """Create a bundle for the duration of a ``with`` block.

    Args:
        store: Bundle store collaborator
        source_ids: Collections to aggregate
        options: Bundle options (name, duplicate removal)

    Yields:
        The created bundle's handle

    Raises:
        BundleError: If ``source_ids`` is empty (before any store call) or the
            store cannot create the bundle
    """
    if not source_ids:
        raise BundleError("Cannot create a bundle without source collections")

    try:
        handle = store.create(list(source_ids), options or BundleOptions())
    except BundleError:
        raise
    except Exception as e:
        raise BundleError(f"Failed to create bundle: {e}") from e

    logger.debug("Created bundle %s over %d collections", handle.id, len(source_ids))
    try:
        yield handle
    finally:
        try:
            store.delete(handle.id)
            logger.debug("Deleted bundle %s", handle.id)
        except Exception:
            logger.exception("Failed to delete bundle %s", handle.id)


def fetch_bundle_content(
    store: BundleStore, source_ids: Sequence[str], options: Optional[BundleOptions] = None
) -> str:
    """Render the combined content of several collections through a temporary bundle.

    Raises:
        BundleError: If ``source_ids`` is empty or the bundle has no content
    """
    with bundle_scope(store, source_ids, options) as handle:
        content = store.get_by_token(handle.token)
    if not content:
        raise BundleError(f"Bundle {handle.id} returned no content")
    return content


def render_bundle(
    collections: Sequence[Collection],
    remove_duplicates: bool = False,
    name: Optional[str] = None,
    settings: Any = None,
) -> str:
    """Render collections of one kind as a single ICS or VCF document.

    Calendars render to VEVENTs, task lists to VTODOs and address books to
    vCards. Items keep collection order.

    Raises:
        BundleError: If no collections are given or their kinds differ
    """
    if not collections:
        raise BundleError("Cannot render an empty bundle")

    kinds = {collection.kind for collection in collections}
    if len(kinds) > 1:
        raise BundleError(f"Bundle mixes collection kinds: {sorted(kinds)}")
    kind = collections[0].kind

    items: list[Any] = [item for collection in collections for item in collection.items]
    if remove_duplicates:
        items = deduplicate(items, kind, DuplicateCheckConfig.from_settings(settings)).unique

    if kind == CollectionKind.ADDRESS_BOOK.value:
        return VCardGenerator(prodid=getattr(settings, "vcard_prodid", None)).generate_file(items)

    calendar_name = name or ", ".join(collection.name for collection in collections)
    generator = ICSGenerator(settings=settings)
    if kind == CollectionKind.TASK_LIST.value:
        return generator.generate_tasks(items, calendar_name)
    return generator.generate_events(items, calendar_name)
