"""Refresh cycle: render, patch or reload, then re-apply scroll semantics."""

from __future__ import annotations

import traceback
from typing import Optional

from mdpreview.core.anchors import AnchorRewriter
from mdpreview.core.position import PositionSynchronizer
from mdpreview.core.template import PreviewTemplate
from mdpreview.interfaces import IPreviewDocument, IPreviewSurface, IRenderPipeline
from mdpreview.utils.logger import logger
from mdpreview.utils.writer_pool import WriterPool

CONTENT_UPDATED_HOOK = (
    "if (typeof onMarkdownUpdate == 'function') onMarkdownUpdate();"
)


def escape_diagnostic(text: str) -> str:
    return str(text).replace("&", "&amp;").replace("<", "&lt;")


def error_markup(exc: BaseException) -> str:
    details = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return (
        "<p>An unexpected exception occurred:</p><pre>"
        + escape_diagnostic(details)
        + "</pre>"
    )


class ContentUpdater:
    """Replaces the rendered content of the preview without losing scroll state."""

    def __init__(
        self,
        surface: IPreviewSurface,
        pipeline: IRenderPipeline,
        document: IPreviewDocument,
        synchronizer: PositionSynchronizer,
        rewriter: AnchorRewriter,
        template: PreviewTemplate,
        writer_pool: Optional[WriterPool] = None,
    ) -> None:
        self._surface = surface
        self._pipeline = pipeline
        self._document = document
        self._synchronizer = synchronizer
        self._rewriter = rewriter
        self._template = template
        self._writer_pool = writer_pool or WriterPool()
        self.last_markup = ""

    @property
    def writer_pool(self) -> WriterPool:
        return self._writer_pool

    def set_document(self, document: IPreviewDocument) -> None:
        self._document = document
        self._template.set_source_path(getattr(document, "source_path", None))

    def render_markup(self) -> str:
        try:
            with self._writer_pool.acquire() as writer:
                self._pipeline.render(self._document, writer)
                return writer.getvalue()
        except Exception as exc:
            logger.warning("Rendering the preview failed: %s", exc)
            return error_markup(exc)

    def refresh(self) -> bool:
        """Run one refresh cycle.

        Returns ``True`` when the content root was patched in place and
        ``False`` when a full document load was started instead.
        """
        markup = self.render_markup()
        self.last_markup = markup

        if self._has_content_root():
            self._surface.set_content_root_html(markup)
            self._run_update_hook()
            self._rewriter.rewrite_all()
            patched = True
        else:
            shell = self._template.build(markup)
            self._surface.load_document(shell, self._template.base_href())
            patched = False

        self._synchronizer.resync()
        return patched

    def _has_content_root(self) -> bool:
        if not self._surface.is_ready():
            return False
        try:
            return bool(self._surface.has_content_root())
        except Exception as exc:
            logger.debug("Content root lookup failed: %s", exc)
            return False

    def _run_update_hook(self) -> None:
        try:
            self._surface.run_script(CONTENT_UPDATED_HOOK)
        except Exception as exc:
            logger.debug("Content-updated hook failed: %s", exc)
