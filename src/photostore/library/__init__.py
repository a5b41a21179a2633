"""Photo lifecycle: ingest, listing, reconciliation and deletion."""

from .manager import PhotoStorageManager

__all__ = ["PhotoStorageManager"]
