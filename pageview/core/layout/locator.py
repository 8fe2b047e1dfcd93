"""
Maps global character offsets to page numbers.
"""

from bisect import bisect_right
from typing import List, Sequence

from pageview.errors import NavigationError

from .models import Span


class CharIndexLocator:
    """
    Locates the page owning a character offset.

    Page spans are non-overlapping and increasing in page order, so the
    lookup bisects on span starts.
    """

    def __init__(self, spans: Sequence[Span]):
        self.spans: List[Span] = list(spans)
        self._starts = [span[0] for span in self.spans]

    def __len__(self) -> int:
        return len(self.spans)

    def locate_page(self, char_index: int) -> int:
        """
        Find the page whose span contains the offset.

        Args:
            char_index: Global character offset

        Returns:
            1-based page number

        Raises:
            NavigationError: If no page span contains the offset
        """
        pos = bisect_right(self._starts, char_index) - 1
        if pos >= 0:
            start, end = self.spans[pos]
            if start <= char_index <= end:
                return pos + 1
        raise NavigationError(char_index)
