"""Logging helpers for photostore."""

from __future__ import annotations

import logging
from typing import Optional, Union

LOGGER_NAME = "photostore"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_LOGGER: Optional[logging.Logger] = None


def get_logger(level: Union[int, str, None] = None) -> logging.Logger:
    """Return the package logger, attaching a stream handler on first use.

    Modules log through ``logging.getLogger(__name__)`` so their records
    propagate to this logger.  *level* overrides the default ``INFO``
    threshold; each :class:`~photostore.PhotoStorageManager` passes the
    ``log_level`` of its :class:`~photostore.StoreConfig`.
    """

    global _LOGGER
    if _LOGGER is None:
        _LOGGER = logging.getLogger(LOGGER_NAME)
        if not _LOGGER.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            _LOGGER.addHandler(handler)
        _LOGGER.setLevel(logging.INFO)
    if level is not None:
        _LOGGER.setLevel(level)
    return _LOGGER
