"""Full-document shell used when the preview has to be (re)loaded."""

from __future__ import annotations

import html
from pathlib import Path
from typing import Optional

from mdpreview.configs import default_template_path
from mdpreview.core.types import CONTENT_ROOT_ID
from mdpreview.utils.logger import logger

DEFAULT_TITLE = "Markdown Preview"

_FALLBACK_TEMPLATE = (
    "<!DOCTYPE html>\n<html>\n<head>\n<title>[title]</title>\n</head>\n"
    "<body>\n[content]\n</body>\n</html>\n"
)


class PreviewTemplate:
    """HTML template with ``<head>``, ``[title]`` and ``[content]`` placeholders."""

    def __init__(
        self,
        template_text: str,
        source_path: Optional[str] = None,
        stylesheet_path: Optional[str] = None,
        title: str = DEFAULT_TITLE,
    ) -> None:
        self._template_text = template_text
        self._source_path = source_path
        self._stylesheet_path = stylesheet_path
        self._title = title or DEFAULT_TITLE

    @classmethod
    def from_file(
        cls,
        template_path: Optional[str] = None,
        source_path: Optional[str] = None,
        stylesheet_path: Optional[str] = None,
        title: str = DEFAULT_TITLE,
    ) -> "PreviewTemplate":
        path = Path(template_path or default_template_path()).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to read preview template %s: %s", path, exc)
            text = _FALLBACK_TEMPLATE
        return cls(
            text,
            source_path=source_path,
            stylesheet_path=stylesheet_path,
            title=title,
        )

    @property
    def source_path(self) -> Optional[str]:
        return self._source_path

    def set_source_path(self, source_path: Optional[str]) -> None:
        self._source_path = source_path

    def base_href(self) -> str:
        """``file:`` URL of the folder holding the source document."""
        if not self._source_path:
            folder = str(Path.cwd())
        else:
            folder = str(Path(self._source_path).expanduser().absolute().parent)
        folder = folder.replace("\\", "/").strip("/")
        if not folder:
            return "file:///"
        return f"file:///{folder}/"

    def head_block(self) -> str:
        lines = [
            "<head>",
            '    <meta http-equiv="X-UA-Compatible" content="IE=Edge" />',
            '    <meta charset="utf-8" />',
            f'    <base href="{html.escape(self.base_href(), quote=True)}" />',
        ]
        if self._stylesheet_path:
            href = Path(self._stylesheet_path).expanduser().absolute().as_uri()
            lines.append(
                f'    <link rel="stylesheet" href="{html.escape(href, quote=True)}" />'
            )
        return "\n".join(lines) + "\n"

    def build(self, markup: str) -> str:
        """Merge rendered ``markup`` into the template."""
        content = (
            f'\n    <div id="{CONTENT_ROOT_ID}" class="markdown-body">\n'
            f"{markup}\n"
            "    </div>\n"
        )
        # [content] goes last so placeholders inside the markup stay untouched.
        return (
            self._template_text.replace("<head>", self.head_block(), 1)
            .replace("[title]", html.escape(self._title))
            .replace("[content]", content, 1)
        )
