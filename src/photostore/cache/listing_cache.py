"""Short-lived single-slot cache for the full photo listing."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from ..config import LISTING_CACHE_TTL
from ..models import PhotoReference


@dataclass(frozen=True)
class ListingSnapshot:
    photos: Tuple[PhotoReference, ...]
    captured_at: float


class ListingCache:
    """Hold the most recent cold listing for ``ttl`` seconds.

    The gallery re-queries the listing every time a screen is re-entered; the
    snapshot absorbs those bursts.  Inserts do not invalidate the slot, so a
    new photo may take up to ``ttl`` seconds to appear; deletes always clear
    it.

    The slot is only written under ``_lock``.  Loaders run outside the lock,
    so two concurrent cold reads may both hit the index, but the stored
    snapshot is always one complete listing.  ``_generation`` is bumped by
    :meth:`invalidate`; a loader that started before an invalidation does not
    publish its result.
    """

    def __init__(self, ttl: float = LISTING_CACHE_TTL, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot: Optional[ListingSnapshot] = None
        self._generation = 0

    @property
    def snapshot(self) -> Optional[ListingSnapshot]:
        with self._lock:
            return self._snapshot

    def get_window(
        self,
        limit: int,
        offset: int,
        loader: Callable[[], Sequence[PhotoReference]],
    ) -> List[PhotoReference]:
        """Return ``limit`` photos after skipping ``offset``, loading on a miss."""

        if limit < 0 or offset < 0:
            raise ValueError("limit and offset must not be negative")

        with self._lock:
            snapshot = self._snapshot
            generation = self._generation
            now = self._clock()
            if snapshot is not None and now - snapshot.captured_at < self._ttl:
                return list(snapshot.photos[offset : offset + limit])

        photos = tuple(loader())
        with self._lock:
            if self._generation == generation:
                self._snapshot = ListingSnapshot(photos=photos, captured_at=now)
        return list(photos[offset : offset + limit])

    def invalidate(self) -> None:
        with self._lock:
            self._snapshot = None
            self._generation += 1


__all__ = ["ListingCache", "ListingSnapshot"]
