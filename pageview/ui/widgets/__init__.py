"""
Custom widgets for document viewing.
"""

from .document_view import DocumentView, PagesContainer, SelectionBand
from .page_canvas import PageCanvas

__all__ = [
    "DocumentView",
    "PageCanvas",
    "PagesContainer",
    "SelectionBand",
]
