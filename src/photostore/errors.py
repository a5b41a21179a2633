"""Exception hierarchy raised by the photo store."""

from __future__ import annotations


class PhotoStoreError(Exception):
    """Base class for every error raised by :mod:`photostore`."""


class IngestError(PhotoStoreError):
    """An ingest run failed and its partial artifacts were rolled back."""


class InsufficientStorageError(IngestError):
    """The durable volume cannot hold the source image plus the safety reserve."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"Not enough storage space: need {required} bytes, "
            f"{available} bytes usable after the reserve"
        )
        self.required = required
        self.available = available


class StorageUnavailableError(IngestError):
    """The durable area could not be created or its free space could not be read."""


class TranscodeError(IngestError):
    """A rendition could not be produced from the source image."""


class DecodeError(TranscodeError):
    """The source image is missing, unreadable or not a supported image."""


class EncodeError(TranscodeError):
    """The re-encoded rendition could not be written to its destination."""


class PublishError(IngestError):
    """The staged optimized rendition could not be moved to its final name."""


class ValidationError(IngestError):
    """A published artifact is missing or empty."""


class StorageFault(PhotoStoreError):
    """The relational index rejected a read or a write.

    ``transient`` is true when the failure came from a busy or locked
    database and the same statement may succeed when replayed later.
    """

    def __init__(self, message: str, *, transient: bool = False) -> None:
        super().__init__(message)
        self.transient = transient


class IndexWriteError(IngestError, StorageFault):
    """A photo or metadata record could not be written to the index."""


__all__ = [
    "DecodeError",
    "EncodeError",
    "IndexWriteError",
    "IngestError",
    "InsufficientStorageError",
    "PhotoStoreError",
    "PublishError",
    "StorageFault",
    "StorageUnavailableError",
    "TranscodeError",
    "ValidationError",
]
