"""Drag region selection."""

from .drag import DragSelectionController, DragState, PagePoint, SelectionRect

__all__ = ["DragSelectionController", "DragState", "PagePoint", "SelectionRect"]
