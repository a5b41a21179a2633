"""Removal of a photo's artifacts and index rows."""

from __future__ import annotations

import logging

from ..cache.index_store import PhotoIndex
from ..cache.listing_cache import ListingCache
from ..errors import StorageFault
from ..layout import StorageLayout
from ..utils.fileops import remove_quietly

LOGGER = logging.getLogger(__name__)


def delete_photo(
    photo_id: str,
    *,
    layout: StorageLayout,
    index: PhotoIndex,
    cache: ListingCache,
) -> bool:
    """Delete both renditions and both index rows of *photo_id*.

    Files that are already absent count as deleted, so the call is
    idempotent.  Returns ``True`` only when neither rendition remains on
    disk.  Index failures are logged rather than raised: once the files are
    gone, a stale row is purged by the next cold listing.
    """

    if not layout.is_valid_id(photo_id):
        LOGGER.warning("delete_photo called with an invalid photo id %r", photo_id)
        return False

    paths = layout.paths_for(photo_id)
    deleted_optimized = remove_quietly(paths.optimized)
    deleted_thumbnail = remove_quietly(paths.thumbnail)

    if deleted_optimized or deleted_thumbnail:
        try:
            index.delete_photo(photo_id)
            index.delete_metadata(photo_id)
        except StorageFault as exc:
            LOGGER.warning("Failed to delete index records for photo %s: %s", photo_id, exc)
        cache.invalidate()

    return deleted_optimized and deleted_thumbnail


__all__ = ["delete_photo"]
