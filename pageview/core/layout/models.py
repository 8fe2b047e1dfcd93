import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

# ==============================================================================
# Types
# ==============================================================================

Span = Tuple[int, int]  # inclusive [start, end] global character offsets


# ==============================================================================
# Document Objects
# ==============================================================================


@dataclass(frozen=True)
class DocumentInfo:
    """Document metadata, immutable once fetched."""

    document_id: str
    title: str = ""
    filename: str = ""

    @property
    def display_title(self) -> str:
        return self.title or self.filename


@dataclass(frozen=True)
class HighlightRange:
    """An inclusive global character range to emphasize."""

    start: int
    end: int
    color: Optional[str] = None

    def contains(self, index: int) -> bool:
        return self.start <= index <= self.end

    @classmethod
    def from_value(cls, value) -> "HighlightRange":
        """Accept a HighlightRange or a {start, end, color} mapping."""
        if isinstance(value, cls):
            return value
        return cls(
            start=int(value["start"]),
            end=int(value["end"]),
            color=value.get("color"),
        )


# ==============================================================================
# Layout Objects
# ==============================================================================


@dataclass
class BoundingBox:
    """Axis-aligned box in page units."""

    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1


@dataclass
class Word:
    """A single recognized token."""

    bbox: BoundingBox
    span: Span
    text: str

    @property
    def start(self) -> int:
        return self.span[0]


@dataclass
class Line:
    """A line of words."""

    bbox: BoundingBox
    span: Span
    words: List[Word] = field(default_factory=list)

    @property
    def text(self) -> str:
        return " ".join(word.text for word in self.words)


@dataclass
class Block:
    """A block of lines (paragraph or text region)."""

    bbox: BoundingBox
    span: Span
    lines: List[Line] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)


@dataclass
class PageSummary:
    """Page dimensions and span, known before the page detail is loaded."""

    width: float
    height: float
    span: Span

    @property
    def aspect_ratio(self) -> float:
        """Height relative to width; 1.0 for a degenerate page."""
        if not self.width or not self.height:
            return 1.0
        ratio = self.height / self.width
        return ratio if math.isfinite(ratio) else 1.0


@dataclass
class PageLayout:
    """Complete block/line/word tree for one page."""

    width: float
    height: float
    span: Span
    blocks: List[Block] = field(default_factory=list)

    @property
    def words(self) -> List[Word]:
        return [word for block in self.blocks for line in block.lines for word in line.words]

    @property
    def text(self) -> str:
        return "\n\n".join(block.text for block in self.blocks)
