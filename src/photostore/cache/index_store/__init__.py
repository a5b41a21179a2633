"""Photo index storage package.

The index is a single SQLite database holding two tables joinable on the
photo id:

- ``photos``: one row per committed photo (id, optimized file path,
  creation time in milliseconds).
- ``photo_metadata``: zero or one row per photo with location and
  orientation data, removed together with its photo.

Modules:

- `repository`: :class:`PhotoIndex`, the only API callers should use
- `connection_pool`: per-file pool of configured ``sqlite3`` connections
- `migrations`: schema creation keyed on ``PRAGMA user_version``

Usage:
    from photostore.cache.index_store import PhotoIndex
    index = PhotoIndex(files_dir / "photo_index.db")
"""
from .repository import PhotoIndex

__all__ = ["PhotoIndex"]
