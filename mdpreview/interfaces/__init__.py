"""
Interfaces package for mdpreview.

Abstract collaborators of the preview core, used for dependency injection
and testing.
"""

from .preview import (
    IAnchorElement,
    IPreviewDocument,
    IPreviewHost,
    IPreviewSurface,
    IRenderPipeline,
    ISurfaceListener,
    IZoomProvider,
)

__all__ = [
    "IAnchorElement",
    "IPreviewDocument",
    "IPreviewHost",
    "IPreviewSurface",
    "IRenderPipeline",
    "ISurfaceListener",
    "IZoomProvider",
]
