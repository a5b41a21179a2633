"""Garbage collection between the photo index and the artifact directories.

The two directions run on different triggers and stay separate passes:

- :meth:`Reconciler.purge_orphan_thumbnails` removes thumbnails whose
  optimized rendition is gone.  It runs once in the background at startup.
- :meth:`Reconciler.heal_listing` drops index records whose files are gone.
  It runs as part of every cold listing.

Both are best-effort: individual failures are logged and the pass carries on.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from ..cache.index_store import PhotoIndex
from ..errors import StorageFault
from ..layout import StorageLayout
from ..models import PhotoReference
from ..utils.fileops import remove_quietly

LOGGER = logging.getLogger(__name__)


class Reconciler:
    def __init__(self, layout: StorageLayout, index: PhotoIndex) -> None:
        self._layout = layout
        self._index = index

    def purge_orphan_thumbnails(self) -> int:
        """Delete thumbnails without an optimized rendition; return how many were removed."""

        removed = 0
        for thumbnail in list(self._layout.iter_thumbnails()):
            photo_id = self._layout.photo_id_from_thumbnail(thumbnail.name)
            if photo_id is None:
                continue
            if self._layout.paths_for(photo_id).optimized.exists():
                continue
            if remove_quietly(thumbnail):
                removed += 1

        if removed:
            LOGGER.info("Cleaned %d orphaned thumbnails", removed)
        return removed

    def heal_listing(self) -> List[PhotoReference]:
        """Return references for every fully backed record, purging the rest.

        Raises :class:`StorageFault` only when the index cannot be listed;
        failures to purge individual records are logged.
        """

        references: List[PhotoReference] = []
        for record in self._index.list_photos():
            optimized = Path(record.file_path)
            thumbnail = (
                self._layout.paths_for(record.id).thumbnail
                if self._layout.is_valid_id(record.id)
                else None
            )
            if thumbnail is not None and optimized.exists() and thumbnail.exists():
                references.append(
                    PhotoReference(
                        id=record.id,
                        optimized_path=optimized,
                        thumbnail_path=thumbnail,
                        timestamp=record.created_at,
                    )
                )
                continue

            try:
                self._index.delete_photo(record.id)
                self._index.delete_metadata(record.id)
            except StorageFault as exc:
                LOGGER.warning("Failed to clean orphaned record %s: %s", record.id, exc)
            else:
                LOGGER.debug("Purged orphaned record %s", record.id)
        return references


__all__ = ["Reconciler"]
