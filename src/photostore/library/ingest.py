"""Atomic write pipeline that turns a captured image into a committed photo.

Each step that can leave something on disk registers its compensating
removal on an :class:`contextlib.ExitStack` before it runs.  Any failure
unwinds that stack in reverse order, so an ingest either commits both
renditions and the index row or leaves nothing behind for the new id.  The
source file belongs to the pipeline once :meth:`IngestPipeline.ingest` is
called and is deleted on every path.
"""

from __future__ import annotations

import logging
import shutil
import time
import uuid
from contextlib import ExitStack
from pathlib import Path
from typing import Callable

from ..cache.index_store import PhotoIndex
from ..config import StoreConfig
from ..core.transcoder import transcode
from ..errors import (
    DecodeError,
    IndexWriteError,
    InsufficientStorageError,
    PublishError,
    StorageFault,
    StorageUnavailableError,
    ValidationError,
)
from ..layout import StorageLayout
from ..models import PhotoRecord, PhotoReference
from ..utils.fileops import is_populated, publish, remove_quietly

LOGGER = logging.getLogger(__name__)


def new_photo_id() -> str:
    return str(uuid.uuid4())


def now_millis() -> int:
    return int(time.time() * 1000)


class IngestPipeline:
    """Persist a source image as optimized and thumbnail renditions plus an index row."""

    def __init__(
        self,
        config: StoreConfig,
        layout: StorageLayout,
        index: PhotoIndex,
        *,
        id_factory: Callable[[], str] = new_photo_id,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self._config = config
        self._layout = layout
        self._index = index
        self._id_factory = id_factory
        self._clock = clock

    def ingest(self, source_path: Path) -> PhotoReference:
        source = Path(source_path)
        photo_id = self._id_factory()
        paths = self._layout.paths_for(photo_id)
        try:
            with ExitStack() as undo:
                self._check_capacity(source)

                undo.callback(remove_quietly, paths.temp_optimized)
                transcode(
                    source,
                    paths.temp_optimized,
                    quality=self._config.optimized_quality,
                    max_width=self._config.optimized_max_edge,
                    max_height=self._config.optimized_max_edge,
                )

                undo.callback(remove_quietly, paths.optimized)
                try:
                    publish(paths.temp_optimized, paths.optimized)
                except OSError as exc:
                    raise PublishError(
                        f"Failed to publish optimized photo {paths.optimized}: {exc}"
                    ) from exc
                self._validate(paths.optimized, "Optimized")

                undo.callback(remove_quietly, paths.thumbnail)
                transcode(
                    source,
                    paths.thumbnail,
                    quality=self._config.thumbnail_quality,
                    max_width=self._config.thumbnail_max_edge,
                    max_height=self._config.thumbnail_max_edge,
                )
                self._validate(paths.thumbnail, "Thumbnail")

                record = PhotoRecord(
                    id=photo_id,
                    file_path=str(paths.optimized),
                    created_at=self._clock(),
                )
                try:
                    self._index.insert_photo(record)
                except StorageFault as exc:
                    raise IndexWriteError(str(exc), transient=exc.transient) from exc

                # Committed: keep every artifact.
                undo.pop_all()
        except Exception:
            LOGGER.warning("Ingest of %s rolled back for photo %s", source, photo_id)
            raise
        finally:
            remove_quietly(source)

        LOGGER.debug("Ingested photo %s from %s", photo_id, source)
        return PhotoReference(
            id=photo_id,
            optimized_path=paths.optimized,
            thumbnail_path=paths.thumbnail,
            timestamp=record.created_at,
        )

    def _check_capacity(self, source: Path) -> None:
        try:
            source_size = source.stat().st_size
        except OSError as exc:
            raise DecodeError(f"Source image {source} is not readable: {exc}") from exc

        # The storage areas may have been removed since the manager started.
        try:
            self._layout.ensure_directories()
            available = shutil.disk_usage(self._layout.durable_root).free
        except OSError as exc:
            raise StorageUnavailableError(
                f"Durable storage {self._layout.durable_root} is unavailable: {exc}"
            ) from exc
        usable = available - self._config.storage_reserve_bytes
        if source_size > usable:
            raise InsufficientStorageError(source_size, usable)

    @staticmethod
    def _validate(path: Path, label: str) -> None:
        if not is_populated(path):
            raise ValidationError(
                f"{label} file validation failed: file does not exist or is empty. Path: {path}"
            )


__all__ = ["IngestPipeline", "new_photo_id", "now_millis"]
