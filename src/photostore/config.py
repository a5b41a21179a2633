"""Configuration constants and the runtime settings of the photo store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

PHOTOS_DIR_NAME = "photos"
INDEX_DB_NAME = "photo_index.db"

OPTIMIZED_SUFFIX = ".jpg"
THUMBNAIL_SUFFIX = "_thumb.jpg"
TEMP_SUFFIX = "_opt.tmp"

OPTIMIZED_MAX_EDGE = 2048
OPTIMIZED_QUALITY = 85
THUMBNAIL_MAX_EDGE = 200
THUMBNAIL_QUALITY = 80

# Free space that must remain on the durable volume after an ingest.
STORAGE_RESERVE_BYTES = 10 * 1024 * 1024

LISTING_CACHE_TTL = 5.0
DEFAULT_PAGE_SIZE = 100

IO_WORKERS = 4
PENDING_METADATA_LIMIT = 256

LOG_LEVEL = logging.INFO


@dataclass(frozen=True)
class StoreConfig:
    """Locations and tunables for a :class:`PhotoStorageManager` instance."""

    durable_root: Path
    cache_root: Path
    database_path: Path
    optimized_max_edge: int = OPTIMIZED_MAX_EDGE
    optimized_quality: int = OPTIMIZED_QUALITY
    thumbnail_max_edge: int = THUMBNAIL_MAX_EDGE
    thumbnail_quality: int = THUMBNAIL_QUALITY
    storage_reserve_bytes: int = STORAGE_RESERVE_BYTES
    listing_cache_ttl: float = LISTING_CACHE_TTL
    io_workers: int = IO_WORKERS
    pending_metadata_limit: int = PENDING_METADATA_LIMIT
    sweep_on_startup: bool = True
    log_level: int | str = LOG_LEVEL

    @classmethod
    def from_app_dirs(cls, files_dir: Path, cache_dir: Path, **overrides: object) -> "StoreConfig":
        """Build a configuration from an application's files and cache directories.

        Optimized renditions and the index live under *files_dir*, which is
        expected to survive cache eviction; thumbnails live under *cache_dir*
        and can be regenerated or purged by the platform at any time.
        """

        files_dir = Path(files_dir)
        cache_dir = Path(cache_dir)
        return cls(
            durable_root=files_dir / PHOTOS_DIR_NAME,
            cache_root=cache_dir / PHOTOS_DIR_NAME,
            database_path=files_dir / INDEX_DB_NAME,
            **overrides,  # type: ignore[arg-type]
        )


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "INDEX_DB_NAME",
    "IO_WORKERS",
    "LISTING_CACHE_TTL",
    "LOG_LEVEL",
    "OPTIMIZED_MAX_EDGE",
    "OPTIMIZED_QUALITY",
    "OPTIMIZED_SUFFIX",
    "PENDING_METADATA_LIMIT",
    "PHOTOS_DIR_NAME",
    "STORAGE_RESERVE_BYTES",
    "StoreConfig",
    "TEMP_SUFFIX",
    "THUMBNAIL_MAX_EDGE",
    "THUMBNAIL_QUALITY",
    "THUMBNAIL_SUFFIX",
]
