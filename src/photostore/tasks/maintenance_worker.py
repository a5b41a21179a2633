"""Background worker for the startup thumbnail sweep."""

from __future__ import annotations

import logging

from PySide6.QtCore import QObject, QRunnable, Signal

from ..library.reconciler import Reconciler

LOGGER = logging.getLogger(__name__)


class OrphanSweepSignals(QObject):
    """Signals emitted by :class:`OrphanSweepWorker`."""

    finished = Signal(int)
    """Number of orphaned thumbnails that were removed."""

    error = Signal(str)


class OrphanSweepWorker(QRunnable):
    """Run :meth:`Reconciler.purge_orphan_thumbnails` on a ``QThreadPool`` thread.

    The sweep is fire-and-forget: it is neither retried nor cancelled, and a
    failure only produces a log entry and an ``error`` emission.
    """

    def __init__(self, reconciler: Reconciler, signals: OrphanSweepSignals | None = None) -> None:
        super().__init__()
        self.setAutoDelete(True)
        self._reconciler = reconciler
        self.signals = signals if signals is not None else OrphanSweepSignals()

    def run(self) -> None:  # type: ignore[override]
        try:
            removed = self._reconciler.purge_orphan_thumbnails()
        except Exception as exc:
            LOGGER.warning("Orphaned thumbnail sweep failed: %s", exc)
            self.signals.error.emit(str(exc))
            return
        self.signals.finished.emit(removed)


__all__ = ["OrphanSweepSignals", "OrphanSweepWorker"]
