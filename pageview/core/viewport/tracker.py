"""
Scroll-driven active page detection.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

Interval = Tuple[float, float]


def interval_overlap(a: Interval, b: Interval) -> float:
    """
    Length of the intersection of two 1-D intervals.

    Returns 0 when the intervals are disjoint or only touch.
    """
    if b[0] > a[1] or a[0] > b[1]:
        return 0.0
    return max(0.0, min(a[1], b[1]) - max(a[0], b[0]))


@dataclass
class StackedPageGeometry:
    """
    Cached geometry of pages stacked vertically in a scrolling container.

    Heights are refreshed on resize only; scrolling just moves
    ``scroll_top``.
    """

    page_heights: List[float] = field(default_factory=list)
    viewport_height: float = 0.0
    scroll_top: float = 0.0
    page_left: float = 0.0
    top_margin: float = 0.0
    page_spacing: float = 0.0

    @property
    def page_count(self) -> int:
        return len(self.page_heights)

    def page_top(self, page_number: int) -> float:
        """Top of a page in content coordinates."""
        index = page_number - 1
        return self.top_margin + sum(self.page_heights[:index]) + self.page_spacing * index

    def page_interval(self, page_number: int) -> Interval:
        top = self.page_top(page_number)
        return top, top + self.page_heights[page_number - 1]

    def page_intervals(self) -> List[Interval]:
        intervals = []
        offset_top = self.top_margin
        for height in self.page_heights:
            intervals.append((offset_top, offset_top + height))
            offset_top += height + self.page_spacing
        return intervals

    def page_origin(self, page_number: int) -> Tuple[float, float]:
        """Page top-left relative to the container's visible top-left."""
        return self.page_left, self.page_top(page_number) - self.scroll_top


def _wall_clock_ms() -> float:
    return time.monotonic() * 1000.0


class ViewportTracker:
    """
    Picks the active page as the one with the largest visible overlap.

    Updates are rate limited: calls arriving within ``interval_ms`` of the
    last update are dropped, not deferred.
    """

    def __init__(
        self,
        geometry: StackedPageGeometry,
        on_active_page: Callable[[int], None],
        interval_ms: float = 100.0,
        lookahead: float = 1.0,
        clock: Callable[[], float] = _wall_clock_ms,
    ):
        self.geometry = geometry
        self.on_active_page = on_active_page
        self.interval_ms = interval_ms
        self.lookahead = lookahead
        self.clock = clock
        self.last_update: Optional[float] = None

    def viewport_interval(self) -> Interval:
        top = self.geometry.scroll_top
        return top, top + self.lookahead * self.geometry.viewport_height

    @staticmethod
    def most_overlapping(viewport: Interval, pages: Sequence[Interval]) -> Optional[int]:
        """
        Page number with the largest positive overlap.

        Ties go to the earlier page.
        """
        best_page, best_overlap = None, 0.0
        for page_index, interval in enumerate(pages):
            overlap = interval_overlap(viewport, interval)
            if overlap > best_overlap:
                best_page, best_overlap = page_index + 1, overlap
        return best_page

    def on_scroll(self, scroll_top: Optional[float] = None) -> Optional[int]:
        """
        Handle a scroll event.

        Args:
            scroll_top: New scroll offset, if the caller tracks it

        Returns:
            The active page if an update ran and found one, else None
        """
        if scroll_top is not None:
            self.geometry.scroll_top = scroll_top

        now = self.clock()
        if self.last_update is not None and now - self.last_update < self.interval_ms:
            return None

        page_number = self.most_overlapping(
            self.viewport_interval(), self.geometry.page_intervals()
        )
        self.last_update = self.clock()
        if page_number is not None:
            self.on_active_page(page_number)
        return page_number
