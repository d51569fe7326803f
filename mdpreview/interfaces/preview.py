"""
Interfaces for the preview synchronization core.

The core never talks to a browser engine, an editor or a markdown library
directly; it goes through these abstractions so the same logic drives a
QtWebEngine page in the application and in-memory fakes in tests.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, TextIO


class IAnchorElement(ABC):
    """A hyperlink element of the rendered view.

    Mirrors the location-style accessors of a DOM anchor: ``protocol``
    includes the trailing colon (``"file:"``), ``pathname`` is the path
    component and ``hash`` is either empty or starts with ``#``.
    """

    @property
    @abstractmethod
    def protocol(self) -> str:
        pass

    @protocol.setter
    @abstractmethod
    def protocol(self, value: str) -> None:
        pass

    @property
    @abstractmethod
    def pathname(self) -> str:
        pass

    @pathname.setter
    @abstractmethod
    def pathname(self, value: str) -> None:
        pass

    @property
    @abstractmethod
    def hash(self) -> str:
        pass

    @hash.setter
    @abstractmethod
    def hash(self, value: str) -> None:
        pass


class ISurfaceListener(ABC):
    """Receives notifications from the embedded browsing surface."""

    @abstractmethod
    def on_load_finished(self, ok: bool) -> None:
        """A full document load completed."""
        pass

    @abstractmethod
    def on_navigation_requested(self, url: Optional[str]) -> bool:
        """Decide a navigation attempt; return True to let it proceed."""
        pass


class IPreviewSurface(ABC):
    """The live rendered view."""

    @abstractmethod
    def set_listener(self, listener: Optional[ISurfaceListener]) -> None:
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """True once a document is loaded and can be queried."""
        pass

    @abstractmethod
    def scroll_top(self) -> float:
        pass

    @abstractmethod
    def set_scroll_top(self, offset_px: float) -> None:
        pass

    @abstractmethod
    def content_height(self) -> float:
        """Total height of the rendered body in pixels."""
        pass

    @abstractmethod
    def scroll_element_into_view(self, element_id: str) -> bool:
        """Align the element's top edge with the view; False if missing."""
        pass

    @abstractmethod
    def has_content_root(self) -> bool:
        pass

    @abstractmethod
    def set_content_root_html(self, markup: str) -> None:
        pass

    @abstractmethod
    def load_document(self, html: str, base_url: str) -> None:
        """Replace the whole document; completion is reported to the listener."""
        pass

    @abstractmethod
    def run_script(self, script: str) -> None:
        pass

    @abstractmethod
    def links(self) -> List[IAnchorElement]:
        pass

    def apply_link_changes(self, anchors: Sequence[IAnchorElement]) -> None:
        """Write modified anchors back when ``links()`` returned copies."""
        return None

    @abstractmethod
    def reset(self) -> None:
        """Drop the current document so the content root no longer exists."""
        pass

    @abstractmethod
    def dispose(self) -> None:
        pass


class IPreviewDocument(ABC):
    """Source document as seen by the preview."""

    @property
    @abstractmethod
    def source_path(self) -> Optional[str]:
        pass

    @abstractmethod
    def find_closest_renderable_line(self, requested_line: int) -> int:
        pass


class IRenderPipeline(ABC):
    """Turns a document into markup."""

    @abstractmethod
    def render(self, document: Any, writer: TextIO) -> None:
        """Write the markup for ``document`` into ``writer``; may raise."""
        pass


class IPreviewHost(ABC):
    """Host application services used by navigation."""

    @abstractmethod
    def open_file(self, path: str) -> None:
        pass

    @abstractmethod
    def open_external(self, url: str) -> None:
        pass


class IZoomProvider(ABC):
    """Optional capability to scale the embedded view."""

    @abstractmethod
    def apply_zoom(self, percent: int) -> None:
        pass
