"""
Page lifecycle: lazy resource loading and text layer rendering.
"""

from .lifecycle import (
    DocumentPage,
    LoadToken,
    PageLifecycleManager,
    PageState,
    RenderSettings,
)

__all__ = [
    "DocumentPage",
    "LoadToken",
    "PageLifecycleManager",
    "PageState",
    "RenderSettings",
]
