from .anchors import AnchorRewriter, HrefAnchor
from .controller import PreviewController
from .navigation import NavigationClassifier, NavigationInterceptor
from .position import PositionSynchronizer
from .scheduler import PreviewScheduler, TaskPriority
from .template import PreviewTemplate
from .types import (
    Anchor,
    NavigationKind,
    NavigationRequest,
    PreviewState,
    ScrollState,
    line_marker,
)
from .updater import ContentUpdater

__all__ = [
    "Anchor",
    "AnchorRewriter",
    "ContentUpdater",
    "HrefAnchor",
    "NavigationClassifier",
    "NavigationInterceptor",
    "NavigationKind",
    "NavigationRequest",
    "PositionSynchronizer",
    "PreviewController",
    "PreviewScheduler",
    "PreviewState",
    "PreviewTemplate",
    "ScrollState",
    "TaskPriority",
    "line_marker",
]
