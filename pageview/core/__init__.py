"""
Core viewer logic: layout, overlays, page lifecycle, viewport and selection.
"""

from .display import DisplayNode, DisplayTree, SceneTree
from .layout import CharIndexLocator, HighlightRange, PageLayout, parse_page_layout
from .page import DocumentPage, PageLifecycleManager, PageState
from .selection import DragSelectionController, PagePoint, SelectionRect
from .viewport import StackedPageGeometry, ViewportTracker, interval_overlap

__all__ = [
    "CharIndexLocator",
    "DisplayNode",
    "DisplayTree",
    "DocumentPage",
    "DragSelectionController",
    "HighlightRange",
    "PageLayout",
    "PageLifecycleManager",
    "PagePoint",
    "PageState",
    "SceneTree",
    "SelectionRect",
    "StackedPageGeometry",
    "ViewportTracker",
    "interval_overlap",
    "parse_page_layout",
]
