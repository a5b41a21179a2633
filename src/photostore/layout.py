"""Deterministic mapping from photo identifiers to artifact paths."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from .config import OPTIMIZED_SUFFIX, TEMP_SUFFIX, THUMBNAIL_SUFFIX


@dataclass(frozen=True)
class PhotoPaths:
    """Artifact locations for a single photo."""

    optimized: Path
    thumbnail: Path
    temp_optimized: Path


class StorageLayout:
    """Place optimized renditions in the durable area and thumbnails in the cache area.

    The layout performs no I/O except in :meth:`ensure_directories` and
    :meth:`iter_thumbnails`; :meth:`paths_for` is a pure function of the id.
    """

    def __init__(self, durable_root: Path, cache_root: Path) -> None:
        self.durable_root = Path(durable_root)
        self.cache_root = Path(cache_root)

    @staticmethod
    def is_valid_id(photo_id: str) -> bool:
        """Return ``True`` when *photo_id* names a file inside the storage areas."""

        if not photo_id or not photo_id.strip():
            return False
        separators = [sep for sep in ("/", os.sep, os.altsep) if sep]
        if any(sep in photo_id for sep in separators):
            return False
        return ".." not in photo_id and "\0" not in photo_id

    def paths_for(self, photo_id: str) -> PhotoPaths:
        if not self.is_valid_id(photo_id):
            raise ValueError(f"Invalid photo id: {photo_id!r}")
        return PhotoPaths(
            optimized=self.durable_root / f"{photo_id}{OPTIMIZED_SUFFIX}",
            thumbnail=self.cache_root / f"{photo_id}{THUMBNAIL_SUFFIX}",
            temp_optimized=self.durable_root / f"{photo_id}{TEMP_SUFFIX}",
        )

    @staticmethod
    def photo_id_from_thumbnail(name: str) -> Optional[str]:
        """Return the photo id encoded in a thumbnail file name, if any."""

        if not name.endswith(THUMBNAIL_SUFFIX):
            return None
        photo_id = name[: -len(THUMBNAIL_SUFFIX)]
        return photo_id if StorageLayout.is_valid_id(photo_id) else None

    def iter_thumbnails(self) -> Iterator[Path]:
        if not self.cache_root.is_dir():
            return
        for entry in self.cache_root.iterdir():
            if entry.name.endswith(THUMBNAIL_SUFFIX) and entry.is_file():
                yield entry

    def ensure_directories(self) -> None:
        self.durable_root.mkdir(parents=True, exist_ok=True)
        self.cache_root.mkdir(parents=True, exist_ok=True)


__all__ = ["PhotoPaths", "StorageLayout"]
