"""
Viewer configuration.
"""

import json
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Mapping, Optional

from pageview.core.layout.models import HighlightRange

# Host option names as used by embedding pages
_ALIASES = {
    "documentId": "document_id",
    "baseURL": "base_url",
    "baseUrl": "base_url",
    "pageNumber": "page_number",
    "highlightRanges": "highlight_ranges",
    "onChangePageNumber": "on_change_page_number",
    "prefetchPages": "prefetch_pages",
    "scrollUpdateInterval": "scroll_update_interval",
    "drawWordOverlay": "draw_word_overlay",
    "drawLineOverlay": "draw_line_overlay",
    "drawBlockOverlay": "draw_block_overlay",
}


@dataclass
class ViewerOptions:
    """Options accepted by DocumentViewer and its update() method."""

    document_id: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    base_url: str = ""
    page_number: Optional[int] = None
    highlight_ranges: Optional[List[HighlightRange]] = None
    on_change_page_number: Optional[Callable[[int], None]] = None

    prefetch_pages: int = 2  # pages kept loaded before and after the current one
    scroll_update_interval: float = 100.0  # msec
    viewport_lookahead: float = 1.0
    draw_word_overlay: bool = True
    draw_line_overlay: bool = False
    draw_block_overlay: bool = True

    request_timeout: float = 10.0  # seconds
    max_retries: int = 2

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ViewerOptions":
        """
        Build options from host-style keys.

        Both camelCase host names and field names are accepted; unknown
        keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in mapping.items():
            name = _ALIASES.get(key, key)
            if name in known:
                values[name] = value

        if values.get("highlight_ranges") is not None:
            values["highlight_ranges"] = [
                HighlightRange.from_value(r) for r in values["highlight_ranges"]
            ]
        if values.get("headers") is None:
            values.pop("headers", None)
        return cls(**values)

    @classmethod
    def from_json_file(cls, path: str) -> "ViewerOptions":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_mapping(json.load(f))
