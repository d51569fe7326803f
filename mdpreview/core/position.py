"""Mapping between editor lines and the scroll offset of the preview."""

from __future__ import annotations

from typing import Callable, Optional

from mdpreview.core.types import ScrollState, line_marker
from mdpreview.interfaces import IPreviewDocument, IPreviewSurface
from mdpreview.utils.logger import logger


class PositionSynchronizer:
    """Keeps the preview scroll position and :class:`ScrollState` in step.

    With scroll-sync enabled the view follows the editor line. With it
    disabled the view is left alone and its relative position is captured
    instead, so it can be restored after a full reload.
    """

    def __init__(
        self,
        surface: IPreviewSurface,
        document: IPreviewDocument,
        scroll_sync_enabled: Callable[[], bool],
        state: Optional[ScrollState] = None,
    ) -> None:
        self._surface = surface
        self._document = document
        self._scroll_sync_enabled = scroll_sync_enabled
        self._state = state if state is not None else ScrollState()

    @property
    def state(self) -> ScrollState:
        return self._state

    def set_document(self, document: IPreviewDocument) -> None:
        self._document = document

    def sync_to_line(self, line: int) -> None:
        """Resolve ``line`` to a renderable line and synchronize to it."""
        try:
            resolved = int(self._document.find_closest_renderable_line(int(line)))
        except Exception as exc:
            logger.debug("Could not resolve line %s: %s", line, exc)
            resolved = -1
        self._state.current_line = resolved
        self.resync()

    def resync(self) -> None:
        """Re-apply the current scroll semantics to the live view."""
        if not self._surface.is_ready():
            return
        if self._is_scroll_sync_enabled():
            line = self._state.current_line
            if line == 0:
                self._surface.set_scroll_top(0)
            elif line > 0:
                marker = line_marker(line)
                if not self._surface.scroll_element_into_view(marker):
                    logger.debug("No line anchor %s in preview", marker)
        else:
            self._state.current_line = -1
            self.capture_state()

    def capture_state(self) -> None:
        if not self._surface.is_ready():
            return
        self._state.capture(
            self._surface.scroll_top(), self._surface.content_height()
        )

    def restore_state(self) -> None:
        """Scroll a freshly loaded view back to the captured percentage."""
        if not self._surface.is_ready():
            return
        height = self._surface.content_height()
        offset = self._state.offset_for_height(height)
        self._state.cached_height_px = max(1.0, float(height or 0.0))
        self._state.cached_position_px = offset
        self._surface.set_scroll_top(offset)

    def _is_scroll_sync_enabled(self) -> bool:
        try:
            return bool(self._scroll_sync_enabled())
        except Exception as exc:
            logger.debug("Scroll-sync flag unavailable: %s", exc)
            return False
