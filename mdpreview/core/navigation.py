"""Classification and interception of navigation attempts from the preview."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

from mdpreview.core.types import (
    BLANK_PLACEHOLDER,
    INERT_PROTOCOL,
    NavigationKind,
    NavigationRequest,
)
from mdpreview.interfaces import IPreviewHost, IPreviewSurface
from mdpreview.utils.logger import logger

_INERT_SCHEME = INERT_PROTOCOL.rstrip(":")


class NavigationClassifier:
    """Maps an intercepted URL to a :class:`NavigationRequest`.

    Returns ``None`` for anything that must simply be dropped: no URL,
    relative URLs and schemes other than ``about`` and ``http(s)``.
    """

    def __init__(self, path_separator: str = os.sep) -> None:
        self._sep = path_separator

    def classify(self, url: Optional[str]) -> Optional[NavigationRequest]:
        if not url:
            return None
        try:
            parts = urlsplit(str(url).strip())
        except ValueError:
            return None
        scheme = (parts.scheme or "").lower()

        if scheme == _INERT_SCHEME:
            path = parts.path.lstrip("/")
            if path == BLANK_PLACEHOLDER:
                return NavigationRequest(
                    NavigationKind.IN_PAGE_FRAGMENT, unquote(parts.fragment or "")
                )
            if not path:
                return None
            target = unquote(path).replace("/", self._sep)
            return NavigationRequest(NavigationKind.LOCAL_FILE, target)

        if scheme.startswith("http") and parts.netloc:
            return NavigationRequest(NavigationKind.EXTERNAL_URL, str(url).strip())

        return None


class NavigationInterceptor:
    """Cancel-then-dispatch policy for every navigation out of the view."""

    def __init__(
        self,
        surface: IPreviewSurface,
        host: Optional[IPreviewHost] = None,
        classifier: Optional[NavigationClassifier] = None,
    ) -> None:
        self._surface = surface
        self._host = host
        self._classifier = classifier or NavigationClassifier()

    @property
    def classifier(self) -> NavigationClassifier:
        return self._classifier

    def intercept(self, url: Optional[str]) -> bool:
        """Handle ``url`` and return whether native navigation may proceed.

        The answer is always ``False``; the request is routed instead.
        """
        try:
            request = self._classifier.classify(url)
        except Exception as exc:
            logger.debug("Dropping unclassifiable navigation %r: %s", url, exc)
            return False
        if request is None:
            logger.debug("Dropping navigation to %r", url)
            return False
        try:
            self.dispatch(request)
        except Exception as exc:
            logger.warning("Navigation to %r failed: %s", request.target, exc)
        return False

    def dispatch(self, request: NavigationRequest) -> None:
        if request.kind is NavigationKind.IN_PAGE_FRAGMENT:
            if request.target and not self._surface.scroll_element_into_view(
                request.target
            ):
                logger.debug("No element with id %r in preview", request.target)
            return

        if request.kind is NavigationKind.LOCAL_FILE:
            path = self.resolve_local_file(request.target)
            if path is None:
                logger.info("Linked file does not exist: %s", request.target)
                return
            if self._host is not None:
                self._host.open_file(str(path))
            return

        if request.kind is NavigationKind.EXTERNAL_URL and self._host is not None:
            self._host.open_external(request.target)

    def resolve_local_file(self, target: str) -> Optional[Path]:
        candidates = []
        # Links resolve against an absolute base, so the leading "/" stripped
        # during classification is part of the real path on POSIX hosts.
        if os.sep == "/" and not target.startswith("/"):
            candidates.append(Path("/" + target))
        candidates.append(Path(target))
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        return None
