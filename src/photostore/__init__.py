"""Local photo object store.

Persists captured images as an optimized rendition and a thumbnail, keeps a
SQLite index of photos and their location metadata consistent with the
files on disk, and serves paginated listings through a short-lived cache.
"""

from .config import StoreConfig
from .errors import (
    DecodeError,
    EncodeError,
    IndexWriteError,
    IngestError,
    InsufficientStorageError,
    PhotoStoreError,
    PublishError,
    StorageFault,
    StorageUnavailableError,
    TranscodeError,
    ValidationError,
)
from .library.manager import PhotoStorageManager
from .models import PhotoMetadata, PhotoRecord, PhotoReference, PhotoWithMetadata

__all__ = [
    "DecodeError",
    "EncodeError",
    "IndexWriteError",
    "IngestError",
    "InsufficientStorageError",
    "PhotoMetadata",
    "PhotoRecord",
    "PhotoReference",
    "PhotoStorageManager",
    "PhotoStoreError",
    "PhotoWithMetadata",
    "PublishError",
    "StorageFault",
    "StorageUnavailableError",
    "StoreConfig",
    "TranscodeError",
    "ValidationError",
]
