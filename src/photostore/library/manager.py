"""Asynchronous facade over the photo store.

:class:`PhotoStorageManager` is the only object UI code talks to.  Its
coroutines never block the event loop: every filesystem or index operation
is dispatched to a small thread pool reserved for I/O.

Callers must serialize operations on the same photo id; operations on
different ids may interleave freely.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Deque, List, Optional, TypeVar

from PySide6.QtCore import QThreadPool

from ..cache.index_store import PhotoIndex
from ..cache.listing_cache import ListingCache
from ..config import DEFAULT_PAGE_SIZE, StoreConfig
from ..errors import IndexWriteError, StorageFault
from ..layout import StorageLayout
from ..models import PhotoMetadata, PhotoReference, PhotoWithMetadata
from ..tasks.maintenance_worker import OrphanSweepWorker
from ..utils.logging import get_logger
from .deletion import delete_photo
from .ingest import IngestPipeline, new_photo_id, now_millis
from .reconciler import Reconciler

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class PhotoStorageManager:
    """Ingest, list, annotate and delete photos stored on the local device."""

    def __init__(
        self,
        config: StoreConfig,
        *,
        index: Optional[PhotoIndex] = None,
        clock: Callable[[], int] = now_millis,
        id_factory: Callable[[], str] = new_photo_id,
        cache_clock: Callable[[], float] = time.monotonic,
    ) -> None:
        get_logger(config.log_level)
        self._config = config
        self._clock = clock
        self.layout = StorageLayout(config.durable_root, config.cache_root)
        self.layout.ensure_directories()
        self.index = index if index is not None else PhotoIndex(config.database_path)
        self.cache = ListingCache(config.listing_cache_ttl, clock=cache_clock)
        self.reconciler = Reconciler(self.layout, self.index)
        self._pipeline = IngestPipeline(
            config, self.layout, self.index, id_factory=id_factory, clock=clock
        )
        self._executor = ThreadPoolExecutor(
            max_workers=config.io_workers, thread_name_prefix="photostore-io"
        )
        self._pending_lock = threading.Lock()
        self._pending_metadata: Deque[PhotoMetadata] = deque(
            maxlen=config.pending_metadata_limit
        )

        if config.sweep_on_startup:
            self.schedule_orphan_sweep()

    # ------------------------------------------------------------------
    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args))

    def schedule_orphan_sweep(self) -> OrphanSweepWorker:
        """Start the orphaned thumbnail sweep on the global Qt thread pool."""

        worker = OrphanSweepWorker(self.reconciler)
        QThreadPool.globalInstance().start(worker)
        return worker

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    async def ingest(self, source_path: Path) -> PhotoReference:
        """Store the image at *source_path* and return its reference.

        The source file is deleted whether or not the ingest succeeds.  On
        failure an :class:`~photostore.errors.IngestError` subclass is raised
        and no artifact or index row remains for the generated id.
        """

        return await self._run(self._pipeline.ingest, Path(source_path))

    async def attach_metadata(
        self,
        photo_id: str,
        *,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        address: Optional[str] = None,
        compass_direction: str,
        device_orientation: str,
    ) -> PhotoMetadata:
        """Record location and orientation data for an already ingested photo.

        Failures raise :class:`IndexWriteError` and never affect the photo
        itself.  When the index was only busy, the request is also queued
        for :meth:`retry_pending_metadata`.
        """

        metadata = PhotoMetadata(
            photo_id=photo_id,
            latitude=latitude,
            longitude=longitude,
            address=address,
            compass_direction=compass_direction,
            device_orientation=device_orientation,
            recorded_at=self._clock(),
        )
        await self._run(self._insert_metadata, metadata)
        return metadata

    def _insert_metadata(self, metadata: PhotoMetadata) -> None:
        try:
            self.index.insert_metadata(metadata)
        except StorageFault as exc:
            if exc.transient:
                with self._pending_lock:
                    self._pending_metadata.append(metadata)
                LOGGER.warning(
                    "Queued metadata for photo %s after a transient failure: %s",
                    metadata.photo_id,
                    exc,
                )
            raise IndexWriteError(str(exc), transient=exc.transient) from exc

    @property
    def pending_metadata(self) -> List[PhotoMetadata]:
        with self._pending_lock:
            return list(self._pending_metadata)

    async def retry_pending_metadata(self) -> int:
        """Replay queued metadata inserts; return how many were written."""

        return await self._run(self._retry_pending_metadata)

    def _retry_pending_metadata(self) -> int:
        with self._pending_lock:
            pending = list(self._pending_metadata)
            self._pending_metadata.clear()

        written = 0
        for metadata in pending:
            try:
                self.index.insert_metadata(metadata)
            except StorageFault as exc:
                if exc.transient:
                    with self._pending_lock:
                        self._pending_metadata.append(metadata)
                else:
                    LOGGER.warning(
                        "Dropped queued metadata for photo %s: %s", metadata.photo_id, exc
                    )
                continue
            written += 1
        return written

    async def delete(self, photo_id: str) -> bool:
        """Delete a photo; ``True`` when neither rendition remains on disk."""

        return await self._run(
            functools.partial(
                delete_photo,
                photo_id,
                layout=self.layout,
                index=self.index,
                cache=self.cache,
            )
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def get_all(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> List[PhotoReference]:
        """Return up to *limit* photos, newest first, after skipping *offset*.

        Results may be up to ``listing_cache_ttl`` seconds old.  A cold read
        also purges index records whose files have disappeared.
        """

        return await self._run(self.cache.get_window, limit, offset, self.reconciler.heal_listing)

    async def get_metadata(self, photo_id: str) -> Optional[PhotoMetadata]:
        return await self._run(self.index.get_metadata, photo_id)

    async def get_photos_with_metadata(self) -> List[PhotoWithMetadata]:
        return await self._run(self.index.list_photos_with_metadata)

    # ------------------------------------------------------------------
    def close(self) -> None:
        """Wait for queued I/O to finish and release the index connections."""

        self._executor.shutdown(wait=True)
        self.index.close()


__all__ = ["PhotoStorageManager"]
