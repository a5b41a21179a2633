from __future__ import annotations

import sqlite3
from pathlib import Path
from unittest.mock import patch

import pytest

from photostore.cache.index_store import PhotoIndex
from photostore.cache.index_store.connection_pool import ConnectionPool
from photostore.errors import StorageFault
from photostore.models import PhotoMetadata, PhotoRecord


def _record(photo_id: str, created_at: int) -> PhotoRecord:
    return PhotoRecord(id=photo_id, file_path=f"/photos/{photo_id}.jpg", created_at=created_at)


def _metadata(photo_id: str, **overrides) -> PhotoMetadata:
    values = dict(
        photo_id=photo_id,
        latitude=48.8566,
        longitude=2.3522,
        address="Paris",
        compass_direction="NE",
        device_orientation="Portrait",
        recorded_at=1_700_000_000_000,
    )
    values.update(overrides)
    return PhotoMetadata(**values)


def test_list_photos_newest_first(index: PhotoIndex) -> None:
    index.insert_photo(_record("old", 1))
    index.insert_photo(_record("new", 3))
    index.insert_photo(_record("mid", 2))

    assert [r.id for r in index.list_photos()] == ["new", "mid", "old"]


def test_list_photos_ties_keep_latest_insert_first(index: PhotoIndex) -> None:
    index.insert_photo(_record("first", 5))
    index.insert_photo(_record("second", 5))

    assert [r.id for r in index.list_photos()] == ["second", "first"]


def test_get_photo(index: PhotoIndex) -> None:
    index.insert_photo(_record("a", 10))

    assert index.get_photo("a") == _record("a", 10)
    assert index.get_photo("missing") is None


def test_duplicate_photo_is_rejected(index: PhotoIndex) -> None:
    index.insert_photo(_record("a", 1))

    with pytest.raises(StorageFault) as excinfo:
        index.insert_photo(_record("a", 2))
    assert excinfo.value.transient is False
    assert index.get_photo("a").created_at == 1


def test_metadata_round_trip(index: PhotoIndex) -> None:
    index.insert_photo(_record("a", 1))
    metadata = _metadata("a")
    index.insert_metadata(metadata)

    assert index.get_metadata("a") == metadata
    assert index.get_metadata("b") is None


def test_metadata_with_missing_location(index: PhotoIndex) -> None:
    index.insert_photo(_record("a", 1))
    metadata = _metadata("a", latitude=None, longitude=None, address=None)
    index.insert_metadata(metadata)

    assert index.get_metadata("a") == metadata


def test_second_metadata_record_is_rejected(index: PhotoIndex) -> None:
    index.insert_photo(_record("a", 1))
    index.insert_metadata(_metadata("a"))

    with pytest.raises(StorageFault):
        index.insert_metadata(_metadata("a", address="Elsewhere"))
    assert index.get_metadata("a").address == "Paris"


def test_metadata_requires_existing_photo(index: PhotoIndex) -> None:
    with pytest.raises(StorageFault):
        index.insert_metadata(_metadata("ghost"))


def test_delete_records_independently(index: PhotoIndex) -> None:
    index.insert_photo(_record("a", 1))
    index.insert_metadata(_metadata("a"))

    assert index.delete_metadata("a") == 1
    assert index.get_metadata("a") is None
    assert index.get_photo("a") is not None

    assert index.delete_photo("a") == 1
    assert index.get_photo("a") is None
    assert index.delete_photo("a") == 0


def test_deleting_photo_cascades_to_metadata(index: PhotoIndex) -> None:
    index.insert_photo(_record("a", 1))
    index.insert_metadata(_metadata("a"))

    index.delete_photo("a")

    assert index.get_metadata("a") is None


def test_list_photos_with_metadata_left_join(index: PhotoIndex) -> None:
    index.insert_photo(_record("plain", 1))
    index.insert_photo(_record("tagged", 2))
    index.insert_metadata(_metadata("tagged"))

    rows = index.list_photos_with_metadata()

    assert [r.id for r in rows] == ["tagged", "plain"]
    assert rows[0].address == "Paris"
    assert rows[0].compass_direction == "NE"
    assert rows[1].latitude is None
    assert rows[1].compass_direction is None
    assert rows[1].device_orientation is None


def test_index_persists_across_instances(tmp_path: Path) -> None:
    db_path = tmp_path / "index.db"
    first = PhotoIndex(db_path)
    first.insert_photo(_record("a", 1))
    first.close()

    second = PhotoIndex(db_path)
    try:
        assert [r.id for r in second.list_photos()] == ["a"]
    finally:
        second.close()


def test_sqlite_errors_become_storage_faults(index: PhotoIndex) -> None:
    pool = ConnectionPool.get_pool(index.db_path)
    with patch.object(pool, "execute_query", side_effect=sqlite3.OperationalError("database is locked")):
        with pytest.raises(StorageFault) as excinfo:
            index.list_photos()
    assert excinfo.value.transient is True


def test_pool_is_shared_per_database(tmp_path: Path) -> None:
    db_path = tmp_path / "shared.db"
    try:
        assert ConnectionPool.get_pool(db_path) is ConnectionPool.get_pool(str(db_path))
    finally:
        ConnectionPool.discard_pool(db_path)


def test_exhausted_pool_raises_transient_fault(tmp_path: Path) -> None:
    pool = ConnectionPool(str(tmp_path / "tiny.db"), pool_size=1)
    conn = pool.acquire()
    try:
        with pytest.raises(StorageFault) as excinfo:
            pool.acquire(timeout=0.01)
        assert excinfo.value.transient is True
    finally:
        pool.release(conn)
        pool.shutdown()


@pytest.mark.parametrize(
    "message",
    ["database or disk is full", "no such table: photos", "disk I/O error"],
)
def test_permanent_operational_errors_are_not_transient(index: PhotoIndex, message: str) -> None:
    pool = ConnectionPool.get_pool(index.db_path)
    with patch.object(pool, "execute", side_effect=sqlite3.OperationalError(message)):
        with pytest.raises(StorageFault) as excinfo:
            index.insert_photo(_record("a", 1))
    assert excinfo.value.transient is False


def test_busy_database_is_transient(index: PhotoIndex) -> None:
    pool = ConnectionPool.get_pool(index.db_path)
    with patch.object(pool, "execute", side_effect=sqlite3.OperationalError("database is busy")):
        with pytest.raises(StorageFault) as excinfo:
            index.insert_photo(_record("a", 1))
    assert excinfo.value.transient is True
