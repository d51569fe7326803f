"""Cooperative scheduling of preview work on the UI thread."""

from __future__ import annotations

import enum
from typing import Callable, Dict, Optional, Set

from mdpreview.utils.logger import logger

Deferrer = Callable[[int, Callable[[], None]], None]


class TaskPriority(enum.IntEnum):
    POSITION = 0
    REFRESH = 1


def qt_defer(delay_ms: int, callback: Callable[[], None]) -> None:
    from qtpy import QtCore

    QtCore.QTimer.singleShot(max(0, int(delay_ms)), callback)


class PreviewScheduler:
    """Two coalescing queues of depth one.

    Each priority class keeps only its latest request, and at most one
    timer per class is pending. Position requests run without delay so
    they get ahead of the comparatively expensive refreshes.
    """

    def __init__(
        self,
        defer: Optional[Deferrer] = None,
        position_delay_ms: int = 0,
        refresh_delay_ms: int = 60,
    ) -> None:
        self._defer = defer or qt_defer
        self._delays = {
            TaskPriority.POSITION: max(0, int(position_delay_ms)),
            TaskPriority.REFRESH: max(0, int(refresh_delay_ms)),
        }
        self._pending: Dict[TaskPriority, Callable[[], None]] = {}
        self._armed: Set[TaskPriority] = set()
        self._waiting_for_idle: list = []
        self._busy = False
        self._closed = False

    @property
    def busy(self) -> bool:
        return self._busy

    def has_pending(self, priority: Optional[TaskPriority] = None) -> bool:
        if priority is None:
            return bool(self._pending)
        return priority in self._pending

    def schedule(self, priority: TaskPriority, callback: Callable[[], None]) -> None:
        if self._closed:
            return
        self._pending[priority] = callback
        if priority not in self._armed:
            self._arm(priority, self._delays[priority])

    def run_exclusive(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` now, or as soon as the running task finishes."""
        if self._closed:
            return
        if not self._busy:
            self._execute(callback)
            return
        self._waiting_for_idle.append(callback)

    def cancel_all(self) -> None:
        self._pending.clear()
        self._waiting_for_idle.clear()
        self._closed = True

    def _arm(self, priority: TaskPriority, delay_ms: int) -> None:
        self._armed.add(priority)
        self._defer(delay_ms, lambda: self._fire(priority))

    def _fire(self, priority: TaskPriority) -> None:
        self._armed.discard(priority)
        if self._closed:
            return
        if self._busy:
            # A nested event loop is running inside another task.
            if priority in self._pending:
                self._arm(priority, max(10, self._delays[priority]))
            return
        callback = self._pending.pop(priority, None)
        if callback is not None:
            self._execute(callback)

    def _execute(self, callback: Callable[[], None]) -> None:
        self._busy = True
        try:
            callback()
        except Exception:
            logger.exception("Scheduled preview task failed")
        finally:
            self._busy = False
        self._drain_waiting()

    def _drain_waiting(self) -> None:
        while self._waiting_for_idle and not self._closed and not self._busy:
            callback = self._waiting_for_idle.pop(0)
            self._execute(callback)
