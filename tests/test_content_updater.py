from __future__ import annotations

import pytest

from mdpreview.core.anchors import AnchorRewriter, HrefAnchor
from mdpreview.core.position import PositionSynchronizer
from mdpreview.core.template import PreviewTemplate
from mdpreview.core.types import CONTENT_ROOT_ID
from mdpreview.core.updater import CONTENT_UPDATED_HOOK, ContentUpdater, error_markup

from preview_fakes import FakeDocument, FakePipeline, FakeSurface

TEMPLATE = "<html><head><title>[title]</title></head><body>[content]</body></html>"


def _updater(surface, pipeline=None, document=None, enabled=lambda: True):
    document = document or FakeDocument(text="hello", source_path="/docs/readme.md")
    synchronizer = PositionSynchronizer(surface, document, enabled)
    template = PreviewTemplate(TEMPLATE, source_path=document.source_path)
    updater = ContentUpdater(
        surface,
        pipeline or FakePipeline(),
        document,
        synchronizer,
        AnchorRewriter(surface),
        template,
    )
    return updater, synchronizer


def test_refresh_patches_existing_content_root() -> None:
    link = HrefAnchor("file:///docs/other.md")
    surface = FakeSurface(anchors=[link])
    updater, _sync = _updater(surface)

    assert updater.refresh() is True
    assert surface.root_html == "<p>hello</p>"
    assert surface.scripts == [CONTENT_UPDATED_HOOK]
    assert surface.loads == []
    assert link.href == "about:/docs/other.md"


def test_refresh_without_content_root_loads_full_document() -> None:
    surface = FakeSurface(has_root=False)
    updater, _sync = _updater(surface)

    assert updater.refresh() is False
    html, base_url = surface.loads[0]
    assert base_url == "file:///docs/"
    assert f'<div id="{CONTENT_ROOT_ID}"' in html
    assert "<p>hello</p>" in html
    assert '<base href="file:///docs/" />' in html
    assert surface.root_html is None


def test_refresh_on_view_that_is_not_ready_loads_full_document() -> None:
    surface = FakeSurface(ready=False, has_root=True)
    updater, _sync = _updater(surface)
    assert updater.refresh() is False
    assert len(surface.loads) == 1


def test_render_failure_shows_escaped_diagnostic() -> None:
    surface = FakeSurface()
    updater, _sync = _updater(surface, pipeline=FakePipeline(RuntimeError("boom <b>")))

    assert updater.refresh() is True
    markup = surface.root_html
    assert markup.startswith("<p>An unexpected exception occurred:</p><pre>")
    assert markup.endswith("</pre>")
    assert "RuntimeError: boom &lt;b>" in markup
    assert "<b>" not in markup


def test_render_failure_leaves_pooled_writer_empty() -> None:
    surface = FakeSurface()
    updater, _sync = _updater(surface, pipeline=FakePipeline(ValueError("bad")))
    updater.refresh()
    assert len(updater.writer_pool) == 1
    with updater.writer_pool.acquire() as writer:
        assert writer.getvalue() == ""


def test_error_markup_escapes_ampersands_before_brackets() -> None:
    markup = error_markup(KeyError("a & <b>"))
    assert "a &amp; &lt;b>" in markup


def test_failing_update_hook_is_ignored() -> None:
    surface = FakeSurface()
    surface.fail_scripts = True
    updater, _sync = _updater(surface)
    assert updater.refresh() is True
    assert surface.root_html == "<p>hello</p>"


def test_identical_refreshes_are_stable() -> None:
    surface = FakeSurface(height=2000, scroll_top=700)
    updater, sync = _updater(surface, enabled=lambda: False)

    updater.refresh()
    first_markup = surface.root_html
    first_percentage = sync.state.percentage
    updater.refresh()

    assert surface.root_html == first_markup
    assert sync.state.percentage == pytest.approx(first_percentage)
    assert first_percentage == pytest.approx(35.0)


def test_set_document_moves_the_base_href() -> None:
    surface = FakeSurface(has_root=False)
    updater, _sync = _updater(surface)
    updater.set_document(FakeDocument(text="other", source_path="/notes/b.md"))
    updater.refresh()
    html, base_url = surface.loads[-1]
    assert base_url == "file:///notes/"
    assert "<p>other</p>" in html
