"""Viewport tracking."""

from .tracker import StackedPageGeometry, ViewportTracker, interval_overlap

__all__ = ["StackedPageGeometry", "ViewportTracker", "interval_overlap"]
