"""
Page layout model, parsing and character-offset lookup.
"""

from .locator import CharIndexLocator
from .models import (
    Block,
    BoundingBox,
    DocumentInfo,
    HighlightRange,
    Line,
    PageLayout,
    PageSummary,
    Word,
)
from .parser import layout_to_record, parse_page_layout, parse_page_summaries

__all__ = [
    "Block",
    "BoundingBox",
    "CharIndexLocator",
    "DocumentInfo",
    "HighlightRange",
    "Line",
    "PageLayout",
    "PageSummary",
    "Word",
    "layout_to_record",
    "parse_page_layout",
    "parse_page_summaries",
]
