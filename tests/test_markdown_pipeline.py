from __future__ import annotations

import io

from mdpreview.core.navigation import NavigationInterceptor
from mdpreview.core.position import PositionSynchronizer
from mdpreview.core.types import line_marker
from mdpreview.rendering import MarkdownDocument, MarkdownItPipeline

from preview_fakes import FakeHost, FakeSurface


def _render(document: MarkdownDocument) -> str:
    writer = io.StringIO()
    MarkdownItPipeline().render(document, writer)
    return writer.getvalue()


def test_blocks_carry_their_source_line_ids() -> None:
    document = MarkdownDocument("# Title\n\nSome text.\n\n---\n")
    html = _render(document)
    assert '<h1 id="pragma-line-0"><a id="title"></a>Title</h1>' in html
    assert '<p id="pragma-line-2">Some text.</p>' in html
    assert 'id="pragma-line-4"' in html
    assert document.renderable_lines() == [0, 2, 4]


def test_tight_list_items_are_marked_once() -> None:
    document = MarkdownDocument("- a\n- b\n")
    html = _render(document)
    assert '<ul id="pragma-line-0">' in html
    assert '<li id="pragma-line-1">' in html
    assert document.renderable_lines() == [0, 1]


def test_closest_renderable_line_rounds_down() -> None:
    document = MarkdownDocument("# A\n\ntext\n\n## B\n")
    assert document.find_closest_renderable_line(0) == 0
    assert document.find_closest_renderable_line(3) == 2
    assert document.find_closest_renderable_line(99) == 4


def test_lines_above_the_first_block_map_to_the_top() -> None:
    document = MarkdownDocument("\n\n# Late start\n\ntext\n")
    assert document.renderable_lines() == [2, 4]
    assert document.find_closest_renderable_line(0) == 0
    assert document.find_closest_renderable_line(1) == 0
    assert document.find_closest_renderable_line(3) == 2


def test_first_line_scrolls_to_top_when_document_starts_blank() -> None:
    document = MarkdownDocument("\n\n# Title\n\ntext\n")
    surface = FakeSurface(scroll_top=500, elements={line_marker(2): 14.0})
    synchronizer = PositionSynchronizer(surface, document, lambda: True)
    synchronizer.sync_to_line(0)
    assert surface.scroll == 0


def test_headings_expose_fragment_targets() -> None:
    html = _render(MarkdownDocument("# Install\n\n[go](#install)\n\n## Install\n"))
    assert '<h1 id="pragma-line-0"><a id="install"></a>Install</h1>' in html
    assert '<a href="#install">go</a>' in html
    assert '<h2 id="pragma-line-4"><a id="install-1"></a>Install</h2>' in html


def test_fragment_link_scrolls_to_heading_target() -> None:
    surface = FakeSurface(elements={"install": 90.0})
    interceptor = NavigationInterceptor(surface, FakeHost())
    html = _render(MarkdownDocument("# Install\n"))
    assert 'id="install"' in html
    assert interceptor.intercept("about:blank#install") is False
    assert surface.scroll == 90.0


def test_empty_document_maps_to_first_line() -> None:
    assert MarkdownDocument("").find_closest_renderable_line(10) == 0


def test_set_text_invalidates_the_parse() -> None:
    document = MarkdownDocument("# A\n")
    assert document.renderable_lines() == [0]
    document.set_text("text\n\n# B\n")
    assert document.renderable_lines() == [0, 2]
    assert "B</h1>" in _render(document)


def test_tables_and_task_lists_are_enabled() -> None:
    html = _render(MarkdownDocument("| a | b |\n|---|---|\n| 1 | 2 |\n\n- [x] done\n"))
    assert "<table" in html
    assert 'type="checkbox"' in html
