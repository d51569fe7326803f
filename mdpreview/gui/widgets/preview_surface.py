"""QtWebEngine implementation of the preview surface."""

from __future__ import annotations

import json
import time
from typing import Callable, List, Optional, Sequence, Tuple

from qtpy import QtCore, QtGui

from mdpreview.core.anchors import HrefAnchor
from mdpreview.core.types import CONTENT_ROOT_ID
from mdpreview.interfaces import (
    IAnchorElement,
    IPreviewHost,
    IPreviewSurface,
    ISurfaceListener,
    IZoomProvider,
)
from mdpreview.utils.logger import logger

try:
    from qtpy import QtWebEngineWidgets  # type: ignore

    _WEBENGINE_AVAILABLE = True
except Exception:
    QtWebEngineWidgets = None  # type: ignore
    _WEBENGINE_AVAILABLE = False


def webengine_available() -> bool:
    return _WEBENGINE_AVAILABLE


_SCROLLER_JS = "(document.scrollingElement || document.documentElement)"

_LINKS_JS = (
    "Array.prototype.map.call(document.querySelectorAll('a[href]'),"
    " function (a) { return a.href; })"
)

_APPLY_LINKS_JS = """
(function (changes) {
  var links = document.querySelectorAll('a[href]');
  changes.forEach(function (change) {
    var a = links[change[0]];
    if (a && a.href === change[1]) {
      a.setAttribute('href', change[2]);
    }
  });
})(%s);
"""

_SCROLL_INTO_VIEW_JS = """
(function (id) {
  var el = document.getElementById(id);
  if (!el) {
    return false;
  }
  el.scrollIntoView(true);
  return true;
})(%s)
"""

_SET_CONTENT_JS = """
(function (id, markup) {
  var el = document.getElementById(id);
  if (el) {
    el.innerHTML = markup;
  }
})(%s, %s);
"""

_RESET_HTML = "<!DOCTYPE html><html><head></head><body></body></html>"


def _enum_value(owner, name: str):
    value = getattr(owner, name, None)
    if value is None:
        nested = getattr(owner, "NavigationType", None)
        value = getattr(nested, name, None) if nested is not None else None
    return value


if _WEBENGINE_AVAILABLE:

    class _PreviewWebEnginePage(QtWebEngineWidgets.QWebEnginePage):
        """Page that hands every content navigation to a handler."""

        def __init__(
            self,
            parent: Optional[QtCore.QObject] = None,
            navigation_handler: Optional[Callable[[Optional[str]], bool]] = None,
        ) -> None:
            super().__init__(parent)
            self._navigation_handler = navigation_handler
            self._expected_loads = 0
            self._console_seen: dict[str, int] = {}
            self._console_last_cleanup = time.monotonic()

        def set_navigation_handler(
            self, handler: Optional[Callable[[Optional[str]], bool]]
        ) -> None:
            self._navigation_handler = handler

        def expect_load(self) -> None:
            """Let the next typed main-frame load through (issued by setHtml)."""
            self._expected_loads += 1

        def _route(self, url: QtCore.QUrl) -> bool:
            handler = self._navigation_handler
            if handler is None:
                return False
            target = url.toString() if url is not None and not url.isEmpty() else None
            try:
                return bool(handler(target))
            except Exception as exc:
                logger.warning("Preview navigation handler failed: %s", exc)
                return False

        def acceptNavigationRequest(  # noqa: N802 - Qt override
            self,
            url: QtCore.QUrl,
            navType: "QtWebEngineWidgets.QWebEnginePage.NavigationType",
            isMainFrame: bool,
        ) -> bool:
            page_cls = QtWebEngineWidgets.QWebEnginePage
            typed = _enum_value(page_cls, "NavigationTypeTyped")
            if isMainFrame and navType == typed and self._expected_loads > 0:
                self._expected_loads -= 1
                return True
            return self._route(url)

        def createWindow(  # noqa: N802 - Qt override
            self,
            windowType: "QtWebEngineWidgets.QWebEnginePage.WebWindowType",
        ) -> "QtWebEngineWidgets.QWebEnginePage":
            parent_page = self

            class _RoutingPage(QtWebEngineWidgets.QWebEnginePage):
                def acceptNavigationRequest(  # noqa: N802 - Qt override
                    self,
                    url: QtCore.QUrl,
                    navType: "QtWebEngineWidgets.QWebEnginePage.NavigationType",
                    isMainFrame: bool,
                ) -> bool:
                    # No secondary windows; route the target and drop the page.
                    parent_page._route(url)
                    QtCore.QTimer.singleShot(0, self.deleteLater)
                    return False

            return _RoutingPage(self)

        def _cleanup_console_seen(self) -> None:
            now = time.monotonic()
            if now - self._console_last_cleanup < 120:
                return
            if len(self._console_seen) > 500:
                self._console_seen.clear()
            self._console_last_cleanup = now

        def javaScriptConsoleMessage(  # noqa: N802 - Qt override
            self,
            level: "QtWebEngineWidgets.QWebEnginePage.JavaScriptConsoleMessageLevel",
            message: str,
            lineNumber: int,
            sourceID: str,
        ) -> None:
            msg = str(message or "").strip()
            if not msg:
                return
            self._cleanup_console_seen()
            count = self._console_seen.get(msg, 0) + 1
            self._console_seen[msg] = count
            if count > 3:
                if count == 4:
                    logger.info("Preview js: suppressing repeated message: %s", msg)
                return
            try:
                info_level = getattr(
                    QtWebEngineWidgets.QWebEnginePage, "InfoMessageLevel", None
                )
                warning_level = getattr(
                    QtWebEngineWidgets.QWebEnginePage, "WarningMessageLevel", None
                )
                if warning_level is not None and level == warning_level:
                    logger.warning("Preview js: %s (%s:%s)", msg, sourceID, lineNumber)
                elif info_level is not None and level == info_level:
                    logger.info("Preview js: %s (%s:%s)", msg, sourceID, lineNumber)
                else:
                    logger.error("Preview js: %s (%s:%s)", msg, sourceID, lineNumber)
            except Exception:
                pass


class WebEnginePreviewSurface(IPreviewSurface):
    """Drives a ``QWebEngineView`` on behalf of the preview core.

    Reads (scroll offset, height, link list) are evaluated synchronously
    with a bounded nested event loop; writes are queued on the page and
    therefore execute in call order.
    """

    def __init__(self, view=None, js_timeout_ms: int = 2000) -> None:
        if not _WEBENGINE_AVAILABLE:
            raise RuntimeError("QtWebEngine is not available")
        self._view = view or QtWebEngineWidgets.QWebEngineView()
        self._page = _PreviewWebEnginePage(self._view, self._on_navigation)
        self._view.setPage(self._page)
        self._view.loadFinished.connect(self._on_load_finished)
        self._listener: Optional[ISurfaceListener] = None
        self._js_timeout_ms = max(100, int(js_timeout_ms))
        self._js_running = False
        self._ready = False
        self._notify_load = False
        self._pending_loads = 0
        self._loading_document = False
        self._queued_document: Optional[Tuple[str, str]] = None
        self._disposed = False

    @property
    def view(self):
        return self._view

    # ------------------------------------------------------------- listener
    def set_listener(self, listener: Optional[ISurfaceListener]) -> None:
        self._listener = listener

    def _on_navigation(self, url: Optional[str]) -> bool:
        listener = self._listener
        if listener is None:
            return False
        return listener.on_navigation_requested(url)

    def _on_load_finished(self, ok: bool) -> None:
        if self._disposed:
            return
        self._pending_loads = max(0, self._pending_loads - 1)
        if self._pending_loads > 0:
            # A later setHtml() superseded this load.
            return
        if self._queued_document is not None:
            html, base_url = self._queued_document
            self._queued_document = None
            self._start_load(html, base_url)
            return
        self._loading_document = False
        self._ready = True
        if not self._notify_load:
            return
        self._notify_load = False
        listener = self._listener
        if listener is not None:
            listener.on_load_finished(bool(ok))

    # ---------------------------------------------------------------- reads
    def is_ready(self) -> bool:
        return self._ready and not self._disposed

    def scroll_top(self) -> float:
        return self._number(self._run_js_sync(f"{_SCROLLER_JS}.scrollTop"))

    def content_height(self) -> float:
        return self._number(
            self._run_js_sync("document.body ? document.body.offsetHeight : 0")
        )

    def scroll_element_into_view(self, element_id: str) -> bool:
        result = self._run_js_sync(_SCROLL_INTO_VIEW_JS % json.dumps(element_id))
        return result is True

    def has_content_root(self) -> bool:
        if not self.is_ready():
            return False
        script = "!!document.getElementById(%s)" % json.dumps(CONTENT_ROOT_ID)
        return self._run_js_sync(script) is True

    def links(self) -> List[IAnchorElement]:
        hrefs = self._run_js_sync(_LINKS_JS)
        if not isinstance(hrefs, list):
            return []
        return [HrefAnchor(str(href or ""), index) for index, href in enumerate(hrefs)]

    # --------------------------------------------------------------- writes
    def set_scroll_top(self, offset_px: float) -> None:
        self.run_script(f"{_SCROLLER_JS}.scrollTop = {float(offset_px):.3f};")

    def set_content_root_html(self, markup: str) -> None:
        self.run_script(
            _SET_CONTENT_JS % (json.dumps(CONTENT_ROOT_ID), json.dumps(markup))
        )

    def apply_link_changes(self, anchors: Sequence[IAnchorElement]) -> None:
        changes = [
            [anchor.index, anchor.original_href, anchor.href]
            for anchor in anchors
            if isinstance(anchor, HrefAnchor) and anchor.index is not None
        ]
        if changes:
            self.run_script(_APPLY_LINKS_JS % json.dumps(changes))

    def load_document(self, html: str, base_url: str) -> None:
        if self._disposed:
            return
        self._ready = False
        self._notify_load = True
        if self._loading_document:
            # Only the newest shell is loaded once the current load ends.
            self._queued_document = (html, base_url)
            return
        self._start_load(html, base_url)

    def _start_load(self, html: str, base_url: str) -> None:
        self._loading_document = True
        self._pending_loads += 1
        self._page.expect_load()
        self._view.setHtml(html, QtCore.QUrl(base_url))

    def run_script(self, script: str) -> None:
        if self._disposed:
            return
        page = self._view.page()
        if page is None:
            raise RuntimeError("Preview page is unavailable")
        page.runJavaScript(script)

    def reset(self) -> None:
        if self._disposed:
            return
        self._ready = False
        self._notify_load = False
        self._loading_document = False
        self._queued_document = None
        self._pending_loads += 1
        self._page.expect_load()
        self._view.setHtml(_RESET_HTML)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._listener = None
        self._page.set_navigation_handler(None)
        try:
            self._view.loadFinished.disconnect(self._on_load_finished)
        except (TypeError, RuntimeError):
            pass
        self._view.deleteLater()

    # -------------------------------------------------------------- helpers
    @staticmethod
    def _number(value: object) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0

    def _run_js_sync(self, script: str) -> object:
        if self._disposed or not self._ready:
            return None
        if self._js_running:
            logger.debug("Skipping nested synchronous preview script")
            return None
        page = self._view.page()
        if page is None:
            return None

        self._js_running = True
        loop = QtCore.QEventLoop(self._view)
        timer = QtCore.QTimer(self._view)
        timer.setSingleShot(True)
        result: dict[str, object] = {"done": False, "value": None}

        def _finish(value: object) -> None:
            if bool(result.get("done")):
                return
            result["done"] = True
            result["value"] = value
            loop.quit()

        def _timeout() -> None:
            logger.warning("Preview script timed out after %s ms", self._js_timeout_ms)
            _finish(None)

        timer.timeout.connect(_timeout)
        try:
            page.runJavaScript(script, _finish)
            if not result["done"]:
                timer.start(self._js_timeout_ms)
                loop.exec_()
        finally:
            timer.stop()
            self._js_running = False
        return result.get("value")


class WebEngineZoomProvider(IZoomProvider):
    def __init__(self, view) -> None:
        self._view = view

    def apply_zoom(self, percent: int) -> None:
        self._view.setZoomFactor(max(25, min(500, int(percent))) / 100.0)


class DesktopPreviewHost(IPreviewHost):
    """Opens files through a callback and URLs in the desktop browser."""

    def __init__(self, open_file_callback: Optional[Callable[[str], None]] = None) -> None:
        self._open_file_callback = open_file_callback

    def open_file(self, path: str) -> None:
        if callable(self._open_file_callback):
            self._open_file_callback(path)
            return
        QtGui.QDesktopServices.openUrl(QtCore.QUrl.fromLocalFile(path))

    def open_external(self, url: str) -> None:
        QtGui.QDesktopServices.openUrl(QtCore.QUrl(url))
