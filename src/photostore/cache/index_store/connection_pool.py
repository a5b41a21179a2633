"""SQLite connection pool shared by every index repository on the same file.

Connections are opened lazily, configured once with the pragmas the photo
index relies on (WAL journal, enforced foreign keys, row objects) and handed
out to the I/O worker threads one at a time.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, Iterator, List, Sequence

from ...errors import StorageFault

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Thread-safe pool of SQLite connections for a single database file.

    Pools are registered per database path so repositories created on
    different threads share the same connections.
    """

    _pools: Dict[str, "ConnectionPool"] = {}
    _pools_lock = threading.Lock()

    @classmethod
    def get_pool(cls, db_path: str | Path, pool_size: int = 4) -> "ConnectionPool":
        """Return the pool registered for *db_path*, creating it on first use."""

        key = str(Path(db_path).resolve())
        with cls._pools_lock:
            pool = cls._pools.get(key)
            if pool is None:
                pool = ConnectionPool(key, pool_size)
                cls._pools[key] = pool
            return pool

    @classmethod
    def discard_pool(cls, db_path: str | Path) -> None:
        """Close and unregister the pool for *db_path* if one exists."""

        key = str(Path(db_path).resolve())
        with cls._pools_lock:
            pool = cls._pools.pop(key, None)
        if pool is not None:
            pool.shutdown()

    def __init__(self, db_path: str, pool_size: int = 4) -> None:
        self._db_path = db_path
        self._pool_size = max(1, pool_size)
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=self._pool_size)
        self._lock = threading.Lock()
        self._initialized = False

    @property
    def db_path(self) -> str:
        return self._db_path

    def _init_pool(self) -> None:
        with self._lock:
            if self._initialized:
                return
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            for _ in range(self._pool_size):
                self._pool.put(self._create_connection())
            self._initialized = True
            logger.debug(
                "Initialized connection pool for %s with %d connections",
                self._db_path,
                self._pool_size,
            )

    def _create_connection(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,  # handed between worker threads
                timeout=10.0,
            )
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA foreign_keys=ON")
            conn.execute("PRAGMA temp_store=MEMORY")
            conn.row_factory = sqlite3.Row
            return conn
        except sqlite3.Error as exc:
            logger.error("Failed to open photo index %s: %s", self._db_path, exc)
            raise StorageFault(f"Cannot open photo index {self._db_path}: {exc}") from exc

    def acquire(self, timeout: float = 5.0) -> sqlite3.Connection:
        """Take a connection from the pool, waiting up to *timeout* seconds."""

        if not self._initialized:
            self._init_pool()
        try:
            return self._pool.get(timeout=timeout)
        except Empty:
            logger.warning("Connection pool exhausted (timeout after %.1fs)", timeout)
            raise StorageFault(
                "Timed out waiting for a photo index connection", transient=True
            ) from None

    def release(self, conn: sqlite3.Connection) -> None:
        """Return *conn* to the pool after discarding any open transaction."""

        try:
            conn.rollback()
            self._pool.put(conn, block=False)
        except (sqlite3.Error, Full) as exc:
            logger.error("Error releasing connection: %s", exc)
            conn.close()

    @contextmanager
    def connection(self, timeout: float = 5.0) -> Iterator[sqlite3.Connection]:
        conn = self.acquire(timeout)
        try:
            yield conn
        finally:
            self.release(conn)

    def execute_query(self, query: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        """Run a ``SELECT`` statement and return every row."""

        with self.connection() as conn:
            return conn.execute(query, tuple(params)).fetchall()

    def execute(self, query: str, params: Sequence[Any] = ()) -> int:
        """Run a single write statement in its own transaction.

        Returns the number of affected rows.
        """

        with self.connection() as conn:
            try:
                cursor = conn.execute(query, tuple(params))
                conn.commit()
                return cursor.rowcount
            except sqlite3.Error:
                conn.rollback()
                raise

    def shutdown(self) -> None:
        """Close every idle connection held by the pool."""

        with self._lock:
            if not self._initialized:
                return
            closed_count = 0
            while True:
                try:
                    conn = self._pool.get(block=False)
                except Empty:
                    break
                conn.close()
                closed_count += 1
            self._initialized = False
            logger.debug("Closed %d connections from pool", closed_count)


__all__ = ["ConnectionPool"]
