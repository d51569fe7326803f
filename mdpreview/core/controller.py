"""Top-level preview controller consumed by the editor."""

from __future__ import annotations

from typing import Callable, Optional

from mdpreview.core.anchors import AnchorRewriter
from mdpreview.core.navigation import NavigationClassifier, NavigationInterceptor
from mdpreview.core.position import PositionSynchronizer
from mdpreview.core.scheduler import PreviewScheduler, TaskPriority
from mdpreview.core.template import PreviewTemplate
from mdpreview.core.types import PreviewState, ScrollState
from mdpreview.core.updater import ContentUpdater
from mdpreview.interfaces import (
    IPreviewDocument,
    IPreviewHost,
    IPreviewSurface,
    IRenderPipeline,
    ISurfaceListener,
    IZoomProvider,
)
from mdpreview.utils.logger import logger
from mdpreview.utils.writer_pool import WriterPool


class PreviewController(ISurfaceListener):
    """Owns one live preview.

    Editor events are turned into scheduled work; surface events (load
    complete, navigation attempts) are dispatched to the collaborators.

    States: ``UNINITIALIZED`` until the first document load completes,
    ``REFRESHING`` while a refresh or a full load is in flight, ``LOADED``
    otherwise.
    """

    def __init__(
        self,
        surface: IPreviewSurface,
        document: IPreviewDocument,
        pipeline: IRenderPipeline,
        *,
        scroll_sync_enabled: Callable[[], bool] = lambda: True,
        host: Optional[IPreviewHost] = None,
        template: Optional[PreviewTemplate] = None,
        scheduler: Optional[PreviewScheduler] = None,
        zoom_provider: Optional[IZoomProvider] = None,
        zoom_percent: int = 100,
        classifier: Optional[NavigationClassifier] = None,
        writer_pool: Optional[WriterPool] = None,
    ) -> None:
        self._surface = surface
        self._document = document
        self._zoom_provider = zoom_provider
        self._zoom_percent = int(zoom_percent)
        self._scheduler = scheduler or PreviewScheduler()
        self._template = template or PreviewTemplate.from_file(
            source_path=document.source_path
        )
        self._state = PreviewState.UNINITIALIZED
        self._disposed = False

        self._synchronizer = PositionSynchronizer(
            surface, document, scroll_sync_enabled, ScrollState()
        )
        self._rewriter = AnchorRewriter(surface)
        self._updater = ContentUpdater(
            surface,
            pipeline,
            document,
            self._synchronizer,
            self._rewriter,
            self._template,
            writer_pool=writer_pool,
        )
        self._interceptor = NavigationInterceptor(surface, host, classifier)
        self._surface.set_listener(self)

    # ------------------------------------------------------------------ public
    @property
    def state(self) -> PreviewState:
        return self._state

    @property
    def scroll_state(self) -> ScrollState:
        return self._synchronizer.state

    @property
    def synchronizer(self) -> PositionSynchronizer:
        return self._synchronizer

    @property
    def updater(self) -> ContentUpdater:
        return self._updater

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on_cursor_line_changed(self, line: int) -> None:
        if self._disposed:
            return
        self._scheduler.schedule(
            TaskPriority.POSITION, lambda: self._update_position(line)
        )

    def on_document_changed(self) -> None:
        if self._disposed:
            return
        self._scheduler.schedule(TaskPriority.REFRESH, self._refresh)

    def set_document(self, document: IPreviewDocument) -> None:
        """Point the preview at another source document and refresh."""
        if self._disposed:
            return
        moved = document.source_path != self._template.source_path
        self._document = document
        self._synchronizer.set_document(document)
        self._updater.set_document(document)
        if moved:
            # The base href lives in the document shell; rebuild it.
            self._synchronizer.state.reset()
            self._surface.reset()
            self._state = PreviewState.UNINITIALIZED
        self.on_document_changed()

    def set_zoom_percent(self, percent: int) -> None:
        self._zoom_percent = int(percent)
        if self._state is PreviewState.LOADED:
            self._apply_zoom()

    def reload(self) -> None:
        """Discard the live document and rebuild it from the template."""
        if self._disposed:
            return
        self._synchronizer.capture_state()
        self._surface.reset()
        self._state = PreviewState.UNINITIALIZED
        self.on_document_changed()

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._scheduler.cancel_all()
        self._surface.set_listener(None)
        try:
            self._surface.dispose()
        except Exception as exc:
            logger.debug("Disposing the preview surface failed: %s", exc)
        self._updater.writer_pool.clear()
        self._synchronizer.state.reset()
        self._state = PreviewState.UNINITIALIZED

    # --------------------------------------------------------- surface events
    def on_load_finished(self, ok: bool) -> None:
        if self._disposed:
            return
        self._scheduler.run_exclusive(lambda: self._handle_load_finished(ok))

    def on_navigation_requested(self, url: Optional[str]) -> bool:
        if self._disposed:
            return False
        return self._interceptor.intercept(url)

    # ---------------------------------------------------------------- helpers
    def _update_position(self, line: int) -> None:
        self._synchronizer.sync_to_line(line)

    def _refresh(self) -> None:
        previous = self._state
        self._state = PreviewState.REFRESHING
        try:
            patched = self._updater.refresh()
        except Exception:
            logger.exception("Preview refresh failed")
            self._state = previous
            return
        if patched:
            self._state = PreviewState.LOADED
        # Otherwise a full load is in flight and on_load_finished moves on.

    def _handle_load_finished(self, ok: bool) -> None:
        if not ok:
            logger.warning("Preview document failed to load")
        self._state = PreviewState.LOADED
        self._apply_zoom()
        self._synchronizer.restore_state()
        self._rewriter.rewrite_all()
        self._synchronizer.resync()

    def _apply_zoom(self) -> None:
        if self._zoom_provider is None or self._zoom_percent == 100:
            return
        try:
            self._zoom_provider.apply_zoom(self._zoom_percent)
        except Exception as exc:
            logger.debug("Zoom is unavailable: %s", exc)
