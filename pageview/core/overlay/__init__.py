"""Overlay placement for page text layers."""

from .geometry import (
    DEFAULT_HIGHLIGHT_COLOR,
    OverlayBox,
    OverlayKind,
    OverlaySet,
    build_overlays,
    find_highlight,
    normalized_placement,
    should_highlight,
)

__all__ = [
    "DEFAULT_HIGHLIGHT_COLOR",
    "OverlayBox",
    "OverlayKind",
    "OverlaySet",
    "build_overlays",
    "find_highlight",
    "normalized_placement",
    "should_highlight",
]
