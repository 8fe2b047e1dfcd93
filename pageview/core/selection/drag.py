"""
Pointer-drag region selection across pages.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from pageview.core.viewport.tracker import StackedPageGeometry


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class PagePoint:
    """A pointer position in page-local coordinates."""

    page_number: int  # 1-based
    x: float
    y: float


@dataclass(frozen=True)
class SelectionRect:
    """Selection rectangle in container content coordinates."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


class DragSelectionController:
    """
    Tracks a drag gesture and the rectangle it spans.

    The rectangle is the bounding box of the two endpoints after mapping
    them into container coordinates, so it does not depend on drag
    direction. Deriving selected text from it is left to callers.
    """

    def __init__(
        self,
        geometry: StackedPageGeometry,
        on_change: Optional[Callable[["DragSelectionController"], None]] = None,
    ):
        self.geometry = geometry
        self.on_change = on_change

        self.state = DragState.IDLE
        self.start: Optional[PagePoint] = None
        self.end: Optional[PagePoint] = None
        self.rect: Optional[SelectionRect] = None

    @property
    def dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    def _changed(self):
        if self.on_change is not None:
            self.on_change(self)

    # ===== Pointer events =====

    def pointer_down(self, point: Optional[PagePoint]):
        """Pointer pressed; ``point`` is None outside every page."""
        if point is None:
            self._stop()
            return
        self.start = point
        self.end = None
        self.rect = None
        self.state = DragState.DRAGGING
        self._changed()

    def pointer_move(self, point: Optional[PagePoint], primary_pressed: bool):
        if not self.dragging:
            return
        if not primary_pressed:
            self._stop()
            return
        self.end = point
        self._update_rect()
        self._changed()

    def pointer_up(self, point: Optional[PagePoint]):
        self.end = point
        self._stop()

    def _stop(self):
        self.state = DragState.IDLE
        self._changed()

    # ===== Geometry =====

    def page_to_container(self, point: PagePoint) -> Tuple[float, float]:
        """Map a page-local point into the container's visible coordinates."""
        origin_x, origin_y = self.geometry.page_origin(point.page_number)
        return origin_x + point.x, origin_y + point.y

    def _update_rect(self):
        if self.start is None or self.end is None:
            return

        ax, ay = self.page_to_container(self.start)
        bx, by = self.page_to_container(self.end)
        left, top = min(ax, bx), min(ay, by)
        right, bottom = max(ax, bx), max(ay, by)

        # Anchor to content so the rectangle stays put while scrolling
        self.rect = SelectionRect(
            left=left,
            top=self.geometry.scroll_top + top,
            width=right - left,
            height=bottom - top,
        )
