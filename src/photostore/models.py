"""Value objects exchanged between the store and its callers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class PhotoRecord:
    """Index row describing a committed photo."""

    id: str
    file_path: str
    created_at: int
    """Milliseconds since the Unix epoch."""


@dataclass(frozen=True)
class PhotoMetadata:
    """Location and orientation captured alongside a photo."""

    photo_id: str
    latitude: Optional[float]
    longitude: Optional[float]
    address: Optional[str]
    compass_direction: str
    device_orientation: str
    recorded_at: int


@dataclass(frozen=True)
class PhotoWithMetadata:
    """A photo record joined with its metadata, when any has been attached."""

    id: str
    file_path: str
    created_at: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    compass_direction: Optional[str] = None
    device_orientation: Optional[str] = None


@dataclass(frozen=True)
class PhotoReference:
    """Read-side projection of a photo with both of its rendition paths."""

    id: str
    optimized_path: Path
    thumbnail_path: Path
    timestamp: int


__all__ = ["PhotoMetadata", "PhotoRecord", "PhotoReference", "PhotoWithMetadata"]
