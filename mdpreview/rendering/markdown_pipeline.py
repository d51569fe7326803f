"""Default rendering pipeline: Markdown with per-line block markers."""

from __future__ import annotations

from bisect import bisect_right
from typing import Any, Dict, List, Optional, TextIO, Tuple

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from markdown_it.token import Token
from mdit_py_plugins.anchors import anchors_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from mdpreview.core.types import line_marker
from mdpreview.interfaces import IPreviewDocument, IRenderPipeline

# Leaf blocks render without an opening/closing token pair.
_LEAF_BLOCK_TYPES = {"fence", "code_block", "hr"}


def build_markdown_engine() -> MarkdownIt:
    md = MarkdownIt("commonmark", {"typographer": True})
    md = md.enable("table").enable("strikethrough")
    return md.use(tasklists_plugin).use(anchors_plugin, min_level=1, max_level=6)


class MarkdownDocument(IPreviewDocument):
    """Markdown source with a cached, line-annotated parse."""

    def __init__(
        self,
        text: str = "",
        source_path: Optional[str] = None,
        engine: Optional[MarkdownIt] = None,
    ) -> None:
        self._text = text or ""
        self._source_path = source_path
        self._engine = engine or build_markdown_engine()
        self._parsed: Optional[Tuple[list, Dict[str, Any], List[int]]] = None

    @property
    def source_path(self) -> Optional[str]:
        return self._source_path

    @source_path.setter
    def source_path(self, value: Optional[str]) -> None:
        self._source_path = value

    @property
    def text(self) -> str:
        return self._text

    @property
    def engine(self) -> MarkdownIt:
        return self._engine

    def set_text(self, text: str) -> None:
        if text == self._text:
            return
        self._text = text or ""
        self._parsed = None

    def parse(self) -> Tuple[list, Dict[str, Any], List[int]]:
        """Return ``(tokens, env, renderable_lines)`` for the current text."""
        if self._parsed is None:
            env: Dict[str, Any] = {}
            tokens = self._engine.parse(self._text, env)
            self._parsed = (tokens, env, _mark_block_lines(tokens))
        return self._parsed

    def renderable_lines(self) -> List[int]:
        return list(self.parse()[2])

    def find_closest_renderable_line(self, requested_line: int) -> int:
        lines = self.parse()[2]
        if not lines:
            return 0
        index = bisect_right(lines, int(requested_line)) - 1
        if index < 0:
            # Nothing rendered above this line: the top of the page.
            return 0
        return lines[index]


def _mark_block_lines(tokens: list) -> List[int]:
    seen = set()
    for index, token in enumerate(tokens):
        if not token.block or token.map is None or token.hidden:
            continue
        if token.nesting != 1 and token.type not in _LEAF_BLOCK_TYPES:
            continue
        line = int(token.map[0])
        # The outermost block starting on a line owns the marker.
        if line in seen:
            continue
        seen.add(line)
        slug = token.attrGet("id")
        token.attrSet("id", line_marker(line))
        if slug and token.type == "heading_open":
            _prepend_fragment_target(tokens[index + 1], str(slug))
    return sorted(seen)


def _prepend_fragment_target(inline: Token, slug: str) -> None:
    # The heading id holds the line marker; the slug moves to an inner anchor.
    target = Token("html_inline", "", 0)
    target.content = f'<a id="{escapeHtml(slug)}"></a>'
    inline.children = [target, *(inline.children or [])]


class MarkdownItPipeline(IRenderPipeline):
    """Renders a :class:`MarkdownDocument` to HTML."""

    def render(self, document: MarkdownDocument, writer: TextIO) -> None:
        tokens, env, _lines = document.parse()
        engine = document.engine
        writer.write(engine.renderer.render(tokens, engine.options, env))
