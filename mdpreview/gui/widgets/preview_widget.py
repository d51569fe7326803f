from __future__ import annotations

from typing import Optional

from qtpy import QtCore, QtWidgets

from mdpreview.configs import get_config
from mdpreview.core.controller import PreviewController
from mdpreview.core.scheduler import PreviewScheduler
from mdpreview.core.template import PreviewTemplate
from mdpreview.gui.widgets.preview_surface import (
    DesktopPreviewHost,
    WebEnginePreviewSurface,
    WebEngineZoomProvider,
    webengine_available,
)
from mdpreview.interfaces import IPreviewDocument, IRenderPipeline
from mdpreview.rendering import MarkdownDocument, MarkdownItPipeline
from mdpreview.utils.logger import logger


class MarkdownPreviewWidget(QtWidgets.QWidget):
    """Live preview of one document, kept in step with an editor."""

    file_open_requested = QtCore.Signal(str)

    def __init__(
        self,
        document: Optional[IPreviewDocument] = None,
        pipeline: Optional[IRenderPipeline] = None,
        config: Optional[dict] = None,
        parent: Optional[QtWidgets.QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._config = dict(config) if config is not None else get_config()
        self._document = document or MarkdownDocument()
        self._pipeline = pipeline or MarkdownItPipeline()
        self._surface = None
        self._controller: Optional[PreviewController] = None
        self._build_ui()

    @property
    def webengine_available(self) -> bool:
        return self._surface is not None

    @property
    def controller(self) -> Optional[PreviewController]:
        return self._controller

    @property
    def document(self) -> IPreviewDocument:
        return self._document

    def _build_ui(self) -> None:
        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        if not webengine_available():
            label = QtWidgets.QLabel(
                "QtWebEngine is not available. Install PyQtWebEngine to enable the preview."
            )
            label.setAlignment(QtCore.Qt.AlignCenter)
            label.setWordWrap(True)
            layout.addWidget(label)
            logger.warning("Markdown preview disabled: QtWebEngine is unavailable")
            return

        self._surface = WebEnginePreviewSurface(
            js_timeout_ms=self._config.get("js_timeout_ms", 2000)
        )
        layout.addWidget(self._surface.view)

        template = PreviewTemplate.from_file(
            self._config.get("template_path"),
            source_path=self._document.source_path,
            stylesheet_path=self._config.get("stylesheet_path"),
            title=self._config.get("title") or "Markdown Preview",
        )
        scheduler = PreviewScheduler(
            position_delay_ms=self._config.get("position_delay_ms", 0),
            refresh_delay_ms=self._config.get("refresh_delay_ms", 60),
        )
        self._controller = PreviewController(
            self._surface,
            self._document,
            self._pipeline,
            scroll_sync_enabled=self.is_scroll_sync_enabled,
            host=DesktopPreviewHost(self.file_open_requested.emit),
            template=template,
            scheduler=scheduler,
            zoom_provider=WebEngineZoomProvider(self._surface.view),
            zoom_percent=self._config.get("zoom_percent", 100),
        )

    # ---------------------------------------------------------------- settings
    def is_scroll_sync_enabled(self) -> bool:
        return bool(self._config.get("scroll_sync", True))

    def set_scroll_sync_enabled(self, enabled: bool) -> None:
        self._config["scroll_sync"] = bool(enabled)

    def set_zoom_percent(self, percent: int) -> None:
        self._config["zoom_percent"] = int(percent)
        if self._controller is not None:
            self._controller.set_zoom_percent(percent)

    # ------------------------------------------------------------ editor hooks
    def set_document(self, document: IPreviewDocument) -> None:
        self._document = document
        if self._controller is not None:
            self._controller.set_document(document)

    def on_cursor_line_changed(self, line: int) -> None:
        if self._controller is not None:
            self._controller.on_cursor_line_changed(line)

    def on_document_changed(self) -> None:
        if self._controller is not None:
            self._controller.on_document_changed()

    def reload(self) -> None:
        if self._controller is not None:
            self._controller.reload()

    def dispose(self) -> None:
        if self._controller is not None:
            self._controller.dispose()
        self._surface = None

    def closeEvent(self, event) -> None:  # noqa: N802 - Qt override
        self.dispose()
        super().closeEvent(event)
