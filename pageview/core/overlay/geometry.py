"""
Normalized overlay placement and highlight membership.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from pageview.core.layout.models import BoundingBox, HighlightRange, PageLayout

DEFAULT_HIGHLIGHT_COLOR = "#fea"


class OverlayKind(Enum):
    """Granularity of an overlay box."""

    BLOCK = "block_overlay"
    LINE = "line_overlay"
    WORD = "word_overlay"


@dataclass
class OverlayBox:
    """
    One overlay rectangle, placed as fractions of the page's own size.

    Fractions keep the overlay aligned with the page image at any
    on-screen scale.
    """

    kind: OverlayKind
    index: int  # position within the parent block/line
    left: float
    top: float
    width: float
    height: float
    start: int
    end: int
    text: Optional[str] = None
    highlighted: bool = False
    color: Optional[str] = None

    @property
    def style(self) -> dict:
        style = {
            "left": self.left,
            "top": self.top,
            "width": self.width,
            "height": self.height,
        }
        if self.highlighted:
            style["background"] = self.color
        return style

    @property
    def data(self) -> dict:
        data = {"index": self.index, "start": self.start, "end": self.end}
        if self.kind is OverlayKind.WORD:
            data["text"] = self.text
            data["highlighted"] = self.highlighted
        return data


@dataclass
class OverlaySet:
    """All overlays of one rendered text layer."""

    blocks: List[OverlayBox] = field(default_factory=list)
    lines: List[OverlayBox] = field(default_factory=list)
    words: List[OverlayBox] = field(default_factory=list)

    def __iter__(self):
        yield from self.blocks
        yield from self.lines
        yield from self.words

    def __len__(self) -> int:
        return len(self.blocks) + len(self.lines) + len(self.words)

    @property
    def highlighted_words(self) -> List[OverlayBox]:
        return [w for w in self.words if w.highlighted]


def normalized_placement(
    bbox: BoundingBox, page_width: float, page_height: float
) -> Tuple[float, float, float, float]:
    """
    Place a box relative to its page.

    Returns:
        (left, top, width, height) as fractions of the page dimensions
    """
    return (
        _fraction(bbox.x1, page_width),
        _fraction(bbox.y1, page_height),
        _fraction(bbox.x2 - bbox.x1, page_width),
        _fraction(bbox.y2 - bbox.y1, page_height),
    )


def _fraction(value: float, total: float) -> float:
    # Zero-sized pages give NaN placement, like other malformed numbers
    if not total:
        return math.nan
    return value / total


def find_highlight(
    ranges: Iterable[HighlightRange], index: int
) -> Optional[HighlightRange]:
    """Return the first range containing the offset, if any."""
    for highlight_range in ranges:
        if highlight_range.contains(index):
            return highlight_range
    return None


def should_highlight(ranges: Iterable[HighlightRange], index: int) -> bool:
    """Single-point containment test on a word's start offset."""
    return find_highlight(ranges, index) is not None


def build_overlays(
    layout: PageLayout,
    highlight_ranges: Sequence[HighlightRange] = (),
    draw_words: bool = True,
    draw_lines: bool = False,
    draw_blocks: bool = True,
) -> OverlaySet:
    """
    Build the complete overlay set for a page.

    Args:
        layout: Parsed page layout
        highlight_ranges: Current highlight ranges
        draw_words: Emit word overlays
        draw_lines: Emit line overlays
        draw_blocks: Emit block overlays

    Returns:
        OverlaySet in document order
    """
    overlays = OverlaySet()
    w, h = layout.width, layout.height

    for block_idx, block in enumerate(layout.blocks):
        if draw_blocks:
            overlays.blocks.append(
                OverlayBox(
                    OverlayKind.BLOCK,
                    block_idx,
                    *normalized_placement(block.bbox, w, h),
                    start=block.span[0],
                    end=block.span[1],
                )
            )

        for line_idx, line in enumerate(block.lines):
            if draw_lines:
                overlays.lines.append(
                    OverlayBox(
                        OverlayKind.LINE,
                        line_idx,
                        *normalized_placement(line.bbox, w, h),
                        start=line.span[0],
                        end=line.span[1],
                    )
                )

            if not draw_words:
                continue

            for word_idx, word in enumerate(line.words):
                match = find_highlight(highlight_ranges, word.start)
                overlays.words.append(
                    OverlayBox(
                        OverlayKind.WORD,
                        word_idx,
                        *normalized_placement(word.bbox, w, h),
                        start=word.span[0],
                        end=word.span[1],
                        text=word.text,
                        highlighted=match is not None,
                        color=(match.color or DEFAULT_HIGHLIGHT_COLOR) if match else None,
                    )
                )

    return overlays
