from __future__ import annotations

import json
import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "minimal")
pytest.importorskip("qtpy.QtWebEngineWidgets")

from qtpy import QtCore, QtWebEngineWidgets  # noqa: E402

from mdpreview.core.anchors import HrefAnchor  # noqa: E402
from mdpreview.gui.widgets.preview_surface import (  # noqa: E402
    _enum_value,
    _PreviewWebEnginePage,
    DesktopPreviewHost,
    WebEnginePreviewSurface,
    WebEngineZoomProvider,
)


class _DummyPage:
    def __init__(self):
        self.scripts = []
        self.expected_loads = 0

    def expect_load(self):
        self.expected_loads += 1

    def runJavaScript(self, script, callback=None):  # noqa: N802
        self.scripts.append(script)


class _DummyView:
    def __init__(self):
        self._page = _DummyPage()
        self.html = []
        self.zoom = None

    def page(self):
        return self._page

    def setHtml(self, html, base_url=None):  # noqa: N802
        self.html.append((html, base_url))

    def setZoomFactor(self, factor):  # noqa: N802
        self.zoom = factor


class _Listener:
    def __init__(self):
        self.loads = []
        self.urls = []

    def on_load_finished(self, ok):
        self.loads.append(ok)

    def on_navigation_requested(self, url):
        self.urls.append(url)
        return False


def _surface(ready=True):
    surface = WebEnginePreviewSurface.__new__(WebEnginePreviewSurface)
    surface._view = _DummyView()
    surface._page = surface._view.page()
    surface._listener = None
    surface._js_timeout_ms = 2000
    surface._js_running = False
    surface._ready = ready
    surface._notify_load = False
    surface._pending_loads = 0
    surface._loading_document = False
    surface._queued_document = None
    surface._disposed = False
    return surface


def test_load_document_notifies_listener_once() -> None:
    surface = _surface()
    listener = _Listener()
    surface.set_listener(listener)

    surface.load_document("<html></html>", "file:///docs/")
    assert not surface.is_ready()
    html, base_url = surface.view.html[-1]
    assert base_url.toString() == "file:///docs/"

    surface._on_load_finished(True)
    surface._on_load_finished(True)
    assert listener.loads == [True]
    assert surface.is_ready()


def test_reset_does_not_report_a_load() -> None:
    surface = _surface()
    listener = _Listener()
    surface.set_listener(listener)
    surface.reset()
    surface._on_load_finished(True)
    assert listener.loads == []


def test_links_become_indexed_href_anchors(monkeypatch) -> None:
    surface = _surface()
    monkeypatch.setattr(
        surface, "_run_js_sync", lambda script: ["file:///a.md", "https://x.org/"]
    )
    links = surface.links()
    assert [(link.index, link.href) for link in links] == [
        (0, "file:///a.md"),
        (1, "https://x.org/"),
    ]


def test_apply_link_changes_sends_only_indexed_anchors() -> None:
    surface = _surface()
    anchor = HrefAnchor("file:///a.md", index=3)
    anchor.protocol = "about:"
    surface.apply_link_changes([anchor, HrefAnchor("file:///b.md")])
    script = surface.view.page().scripts[-1]
    assert json.dumps([[3, "file:///a.md", "about:/a.md"]]) in script


def test_writes_are_dropped_after_dispose() -> None:
    surface = _surface()
    surface._disposed = True
    surface.set_scroll_top(10)
    surface.load_document("<html></html>", "file:///")
    assert surface.view.page().scripts == []
    assert surface.view.html == []


def test_navigation_is_forwarded_to_listener() -> None:
    surface = _surface()
    listener = _Listener()
    surface.set_listener(listener)
    assert surface._on_navigation("about:blank#x") is False
    assert listener.urls == ["about:blank#x"]


def test_zoom_provider_clamps_percent() -> None:
    view = _DummyView()
    WebEngineZoomProvider(view).apply_zoom(1000)
    assert view.zoom == 5.0


def test_desktop_host_prefers_the_file_callback() -> None:
    opened = []
    DesktopPreviewHost(opened.append).open_file("/docs/a.md")
    assert opened == ["/docs/a.md"]


def test_load_after_reset_notifies_once_the_document_finishes() -> None:
    surface = _surface()
    listener = _Listener()
    surface.set_listener(listener)

    surface.reset()
    surface.load_document("<html>doc</html>", "file:///docs/")
    surface._on_load_finished(True)
    assert listener.loads == []
    assert not surface.is_ready()

    surface._on_load_finished(True)
    assert listener.loads == [True]
    assert surface.is_ready()
    assert surface.view.page().expected_loads == 2


def test_load_requested_during_a_load_is_queued() -> None:
    surface = _surface()
    listener = _Listener()
    surface.set_listener(listener)

    surface.load_document("<html>first</html>", "file:///docs/")
    surface.load_document("<html>second</html>", "file:///docs/")
    assert [html for html, _ in surface.view.html] == ["<html>first</html>"]

    surface._on_load_finished(True)
    assert [html for html, _ in surface.view.html] == [
        "<html>first</html>",
        "<html>second</html>",
    ]
    assert listener.loads == []

    surface._on_load_finished(True)
    assert listener.loads == [True]


def _page():
    page = _PreviewWebEnginePage.__new__(_PreviewWebEnginePage)
    page._expected_loads = 0
    routed = []
    page._navigation_handler = lambda url: routed.append(url) or False
    return page, routed


def test_clicked_data_link_is_routed_and_cancelled() -> None:
    page, routed = _page()
    link_clicked = _enum_value(
        QtWebEngineWidgets.QWebEnginePage, "NavigationTypeLinkClicked"
    )
    url = QtCore.QUrl("data:text/html,<p>x</p>")
    assert page.acceptNavigationRequest(url, link_clicked, True) is False
    assert routed == [url.toString()]


def test_only_expected_typed_loads_are_accepted() -> None:
    page, routed = _page()
    typed = _enum_value(QtWebEngineWidgets.QWebEnginePage, "NavigationTypeTyped")
    url = QtCore.QUrl("data:text/html,<p>doc</p>")

    page.expect_load()
    assert page.acceptNavigationRequest(url, typed, True) is True
    assert page.acceptNavigationRequest(url, typed, True) is False
    assert len(routed) == 1


def test_subframe_navigations_are_routed() -> None:
    page, routed = _page()
    typed = _enum_value(QtWebEngineWidgets.QWebEnginePage, "NavigationTypeTyped")
    page.expect_load()
    url = QtCore.QUrl("https://example.com/frame")
    assert page.acceptNavigationRequest(url, typed, False) is False
    assert routed == ["https://example.com/frame"]
