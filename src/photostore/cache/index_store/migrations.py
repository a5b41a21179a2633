"""Schema creation and upgrades for the photo index."""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_SCHEMA_V1 = (
    """
    CREATE TABLE IF NOT EXISTS photos (
        id TEXT PRIMARY KEY NOT NULL,
        file_path TEXT NOT NULL,
        created_at INTEGER NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_photos_created_at ON photos(created_at DESC)",
    """
    CREATE TABLE IF NOT EXISTS photo_metadata (
        photo_id TEXT PRIMARY KEY NOT NULL
            REFERENCES photos(id) ON DELETE CASCADE,
        latitude REAL,
        longitude REAL,
        address TEXT,
        compass_direction TEXT NOT NULL,
        device_orientation TEXT NOT NULL,
        recorded_at INTEGER NOT NULL
    )
    """,
)


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Bring the database behind *conn* up to :data:`SCHEMA_VERSION`."""

    current = conn.execute("PRAGMA user_version").fetchone()[0]
    if current >= SCHEMA_VERSION:
        return

    try:
        for statement in _SCHEMA_V1:
            conn.execute(statement)
        conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise
    logger.info("Photo index schema upgraded from version %d to %d", current, SCHEMA_VERSION)


__all__ = ["SCHEMA_VERSION", "ensure_schema"]
