"""Relational index of photo records and their metadata.

The index is the single source of truth for which photos exist; the
filesystem only holds their payloads.  Every public method is one atomic
statement against SQLite, and every ``sqlite3`` failure is reported as
:class:`~photostore.errors.StorageFault`.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import List, Optional

from ...errors import StorageFault
from ...models import PhotoMetadata, PhotoRecord, PhotoWithMetadata
from .connection_pool import ConnectionPool
from .migrations import ensure_schema

logger = logging.getLogger(__name__)

_PHOTO_ORDER = "ORDER BY p.created_at DESC, p.rowid DESC"

# Primary result codes of SQLITE_BUSY and SQLITE_LOCKED.
_RETRYABLE_CODES = frozenset({5, 6})


def _is_transient(exc: sqlite3.Error) -> bool:
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    code = getattr(exc, "sqlite_errorcode", None)
    if code is not None:
        return (code & 0xFF) in _RETRYABLE_CODES
    message = str(exc).lower()
    return "locked" in message or "busy" in message


def _fault(action: str, exc: sqlite3.Error) -> StorageFault:
    return StorageFault(f"Photo index failed to {action}: {exc}", transient=_is_transient(exc))


def _photo_from_row(row: sqlite3.Row) -> PhotoRecord:
    return PhotoRecord(id=row["id"], file_path=row["file_path"], created_at=row["created_at"])


def _metadata_from_row(row: sqlite3.Row) -> PhotoMetadata:
    return PhotoMetadata(
        photo_id=row["photo_id"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        address=row["address"],
        compass_direction=row["compass_direction"],
        device_orientation=row["device_orientation"],
        recorded_at=row["recorded_at"],
    )


class PhotoIndex:
    """SQLite-backed repository for :class:`PhotoRecord` and :class:`PhotoMetadata`."""

    def __init__(self, db_path: Path, *, pool_size: int = 4) -> None:
        self.db_path = Path(db_path)
        self._pool = ConnectionPool.get_pool(self.db_path, pool_size)
        try:
            with self._pool.connection() as conn:
                ensure_schema(conn)
        except sqlite3.Error as exc:
            raise _fault("initialise its schema", exc) from exc

    # ------------------------------------------------------------------
    # Photo records
    # ------------------------------------------------------------------
    def list_photos(self) -> List[PhotoRecord]:
        """Return every photo record, newest first."""

        try:
            rows = self._pool.execute_query(
                f"SELECT p.id, p.file_path, p.created_at FROM photos p {_PHOTO_ORDER}"
            )
        except sqlite3.Error as exc:
            raise _fault("list photos", exc) from exc
        return [_photo_from_row(row) for row in rows]

    def get_photo(self, photo_id: str) -> Optional[PhotoRecord]:
        try:
            rows = self._pool.execute_query(
                "SELECT id, file_path, created_at FROM photos WHERE id = ?", (photo_id,)
            )
        except sqlite3.Error as exc:
            raise _fault(f"read photo {photo_id}", exc) from exc
        return _photo_from_row(rows[0]) if rows else None

    def insert_photo(self, record: PhotoRecord) -> None:
        try:
            self._pool.execute(
                "INSERT INTO photos (id, file_path, created_at) VALUES (?, ?, ?)",
                (record.id, record.file_path, record.created_at),
            )
        except sqlite3.Error as exc:
            raise _fault(f"insert photo {record.id}", exc) from exc

    def delete_photo(self, photo_id: str) -> int:
        """Delete the photo record for *photo_id*; returns the number of rows removed."""

        try:
            return self._pool.execute("DELETE FROM photos WHERE id = ?", (photo_id,))
        except sqlite3.Error as exc:
            raise _fault(f"delete photo {photo_id}", exc) from exc

    # ------------------------------------------------------------------
    # Metadata records
    # ------------------------------------------------------------------
    def insert_metadata(self, metadata: PhotoMetadata) -> None:
        """Insert the metadata record for a photo.

        A second record for the same photo, or a record for an unknown photo,
        is rejected with a non-transient :class:`StorageFault`.
        """

        try:
            self._pool.execute(
                """
                INSERT INTO photo_metadata (
                    photo_id, latitude, longitude, address,
                    compass_direction, device_orientation, recorded_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    metadata.photo_id,
                    metadata.latitude,
                    metadata.longitude,
                    metadata.address,
                    metadata.compass_direction,
                    metadata.device_orientation,
                    metadata.recorded_at,
                ),
            )
        except sqlite3.Error as exc:
            raise _fault(f"insert metadata for {metadata.photo_id}", exc) from exc

    def get_metadata(self, photo_id: str) -> Optional[PhotoMetadata]:
        try:
            rows = self._pool.execute_query(
                "SELECT * FROM photo_metadata WHERE photo_id = ?", (photo_id,)
            )
        except sqlite3.Error as exc:
            raise _fault(f"read metadata for {photo_id}", exc) from exc
        return _metadata_from_row(rows[0]) if rows else None

    def delete_metadata(self, photo_id: str) -> int:
        try:
            return self._pool.execute(
                "DELETE FROM photo_metadata WHERE photo_id = ?", (photo_id,)
            )
        except sqlite3.Error as exc:
            raise _fault(f"delete metadata for {photo_id}", exc) from exc

    # ------------------------------------------------------------------
    def list_photos_with_metadata(self) -> List[PhotoWithMetadata]:
        """Return every photo left-joined with its metadata, newest first."""

        try:
            rows = self._pool.execute_query(
                f"""
                SELECT p.id, p.file_path, p.created_at,
                       m.latitude, m.longitude, m.address,
                       m.compass_direction, m.device_orientation
                FROM photos p
                LEFT JOIN photo_metadata m ON p.id = m.photo_id
                {_PHOTO_ORDER}
                """
            )
        except sqlite3.Error as exc:
            raise _fault("list photos with metadata", exc) from exc
        return [
            PhotoWithMetadata(
                id=row["id"],
                file_path=row["file_path"],
                created_at=row["created_at"],
                latitude=row["latitude"],
                longitude=row["longitude"],
                address=row["address"],
                compass_direction=row["compass_direction"],
                device_orientation=row["device_orientation"],
            )
            for row in rows
        ]

    def close(self) -> None:
        """Release the connections held for this database file."""

        ConnectionPool.discard_pool(self.db_path)


__all__ = ["PhotoIndex"]
