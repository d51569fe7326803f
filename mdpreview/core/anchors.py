"""Rewriting of local-file hyperlinks into the inert ``about:`` protocol.

Direct ``file:`` navigation from inside the embedded page is blocked or
unreliable, so every such link is turned into an ``about:`` link that the
navigation interceptor recognises and routes to the host instead.
"""

from __future__ import annotations

import contextlib
from typing import List, Optional
from urllib.parse import urlsplit, urlunsplit

from mdpreview.core.types import (
    BLANK_PLACEHOLDER,
    INERT_PROTOCOL,
    LOCAL_FILE_PROTOCOL,
    Anchor,
)
from mdpreview.interfaces import IAnchorElement, IPreviewSurface
from mdpreview.utils.logger import logger


class HrefAnchor(IAnchorElement):
    """Anchor backed by an absolute href string.

    Surfaces that cannot hand out live DOM nodes return these copies from
    ``links()`` and write ``href`` back in ``apply_link_changes``.
    """

    def __init__(self, href: str, index: Optional[int] = None) -> None:
        self.index = index
        self.original_href = str(href or "")
        parts = urlsplit(self.original_href)
        self._scheme = parts.scheme
        self._netloc = parts.netloc
        self._path = parts.path
        self._query = parts.query
        self._fragment = parts.fragment

    @property
    def protocol(self) -> str:
        return f"{self._scheme}:" if self._scheme else ""

    @protocol.setter
    def protocol(self, value: str) -> None:
        scheme = str(value or "").strip().rstrip(":").lower()
        if not scheme:
            raise ValueError("protocol must not be empty")
        self._scheme = scheme

    @property
    def pathname(self) -> str:
        return self._path

    @pathname.setter
    def pathname(self, value: str) -> None:
        self._path = str(value or "")

    @property
    def hash(self) -> str:
        return f"#{self._fragment}" if self._fragment else ""

    @hash.setter
    def hash(self, value: str) -> None:
        text = str(value or "")
        self._fragment = text[1:] if text.startswith("#") else text

    @property
    def href(self) -> str:
        return urlunsplit(
            (self._scheme, self._netloc, self._path, self._query, self._fragment)
        )

    @property
    def changed(self) -> bool:
        return self.href != self.original_href

    def __repr__(self) -> str:
        return f"HrefAnchor({self.href!r}, index={self.index!r})"


class AnchorRewriter:
    """Rewrites ``file:`` anchors of the rendered view in place."""

    def __init__(self, surface: IPreviewSurface) -> None:
        self._surface = surface

    def rewrite_all(self) -> List[Anchor]:
        """Rewrite every local-file anchor currently in the view.

        Returns the anchors that were rewritten. A failure on one anchor
        leaves that anchor untouched and does not stop the pass.
        """
        if not self._surface.is_ready():
            return []
        try:
            links = list(self._surface.links())
        except Exception as exc:
            logger.debug("Could not enumerate preview links: %s", exc)
            return []

        rewritten: List[Anchor] = []
        changed: List[IAnchorElement] = []
        for link in links:
            snapshot = self._snapshot(link)
            try:
                record = self.rewrite_anchor(link)
            except Exception as exc:
                logger.debug("Leaving anchor %r unchanged: %s", link, exc)
                self._restore(link, snapshot)
                continue
            if record is not None:
                rewritten.append(record)
                changed.append(link)

        if changed:
            try:
                self._surface.apply_link_changes(changed)
            except Exception as exc:
                logger.warning("Failed to apply rewritten preview links: %s", exc)
        return rewritten

    @staticmethod
    def rewrite_anchor(anchor: IAnchorElement) -> Optional[Anchor]:
        protocol = anchor.protocol or ""
        if protocol.lower() != LOCAL_FILE_PROTOCOL:
            return None

        fragment = anchor.hash or ""
        path = anchor.pathname or ""
        record = Anchor(
            original_protocol=protocol,
            original_path=path,
            fragment=fragment or None,
        )

        # The protocol cannot be swapped while a path and a fragment coexist.
        if fragment:
            anchor.hash = ""
            anchor.pathname = ""

        anchor.protocol = INERT_PROTOCOL

        if fragment:
            if not path or path.endswith("/"):
                path = BLANK_PLACEHOLDER
            anchor.pathname = path
            anchor.hash = fragment
        return record

    @staticmethod
    def _snapshot(anchor: IAnchorElement) -> Optional[tuple]:
        try:
            return (anchor.protocol, anchor.pathname, anchor.hash)
        except Exception:
            return None

    @staticmethod
    def _restore(anchor: IAnchorElement, snapshot: Optional[tuple]) -> None:
        if snapshot is None:
            return
        protocol, pathname, fragment = snapshot
        for name, value in (
            ("hash", ""),
            ("protocol", protocol),
            ("pathname", pathname),
            ("hash", fragment),
        ):
            with contextlib.suppress(Exception):
                setattr(anchor, name, value)
