from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

LINE_MARKER_PREFIX = "pragma-line-"
CONTENT_ROOT_ID = "___markdown-content___"
LOCAL_FILE_PROTOCOL = "file:"
INERT_PROTOCOL = "about:"
BLANK_PLACEHOLDER = "blank"


def line_marker(line: int) -> str:
    """Return the element id rendered for a source line."""
    return f"{LINE_MARKER_PREFIX}{int(line)}"


@dataclass
class ScrollState:
    """Synchronization coordinates of one live preview."""

    cached_position_px: float = 0.0
    cached_height_px: float = 0.0
    percentage: float = 0.0
    current_line: int = -1

    def capture(self, position_px: float, height_px: float) -> None:
        self.cached_position_px = max(0.0, float(position_px or 0.0))
        self.cached_height_px = max(1.0, float(height_px or 0.0))
        self.percentage = self.cached_position_px * 100 / self.cached_height_px

    def offset_for_height(self, height_px: float) -> float:
        height = max(1.0, float(height_px or 0.0))
        return self.percentage * height / 100

    def reset(self) -> None:
        self.cached_position_px = 0.0
        self.cached_height_px = 0.0
        self.percentage = 0.0
        self.current_line = -1


@dataclass(frozen=True)
class Anchor:
    original_protocol: str
    original_path: str
    fragment: Optional[str] = None


class NavigationKind(enum.Enum):
    IN_PAGE_FRAGMENT = "in_page_fragment"
    LOCAL_FILE = "local_file"
    EXTERNAL_URL = "external_url"


@dataclass(frozen=True)
class NavigationRequest:
    kind: NavigationKind
    target: str


class PreviewState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    REFRESHING = "refreshing"
