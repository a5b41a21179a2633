"""Filesystem primitives used by the write and delete pipelines."""

from __future__ import annotations

import logging
import time
from pathlib import Path

LOGGER = logging.getLogger(__name__)

_REPLACE_ATTEMPTS = 5


def publish(staged: Path, final: Path) -> None:
    """Atomically move *staged* onto *final*.

    ``Path.replace`` maps to an atomic rename on a single filesystem, so
    readers observe either no file or the complete rendition.  Another
    process briefly holding either path (antivirus, indexers) surfaces as a
    ``PermissionError``; those attempts are retried with a short back-off.
    Any other ``OSError`` propagates immediately and *staged* is left for
    the caller to clean up.
    """

    for attempt in range(_REPLACE_ATTEMPTS):
        try:
            staged.replace(final)
            return
        except PermissionError:
            if attempt == _REPLACE_ATTEMPTS - 1:
                raise
            time.sleep(0.05 * (attempt + 1))


def remove_quietly(path: Path) -> bool:
    """Delete *path* and report whether it is gone afterwards.

    A missing file counts as removed.  Other failures are logged and
    reported as ``False`` so cleanup paths never mask the original error.
    """

    try:
        path.unlink()
    except FileNotFoundError:
        return True
    except OSError as exc:
        LOGGER.warning("Failed to delete %s: %s", path, exc)
        return False
    return True


def is_populated(path: Path) -> bool:
    """Return ``True`` when *path* is an existing, non-empty regular file."""

    try:
        return path.is_file() and path.stat().st_size > 0
    except OSError:
        return False


__all__ = ["is_populated", "publish", "remove_quietly"]
