"""
Conversion of raw page layout records into the PageLayout tree.

Two wire shapes are accepted:

* the legacy nested arrays ``[width, height, blocks, span]`` where each
  block is ``[bbox, lines, span]``, each line ``[bbox, words, span]`` and
  each word ``[bbox, text, span]``;
* the versioned schema ``{"version": 1, "width", "height", "span",
  "blocks": [{"bbox", "span", "lines": [{"bbox", "span", "words":
  [{"bbox", "span", "text"}]}]}]}``.

Numeric ranges are not validated: values that ``float()`` accepts,
including NaN, flow through to the geometry unchanged.
"""

from typing import Any, Iterable, List, Mapping, Sequence

from pageview.errors import MalformedLayoutError

from .models import Block, BoundingBox, Line, PageLayout, PageSummary, Span, Word

SCHEMA_VERSION = 1


def parse_page_layout(raw: Any) -> PageLayout:
    """
    Parse one page's raw layout record.

    Args:
        raw: Legacy nested array or versioned mapping

    Returns:
        The parsed PageLayout

    Raises:
        MalformedLayoutError: If the record is missing items or keys
    """
    try:
        if isinstance(raw, Mapping):
            return _parse_versioned(raw)
        return _parse_legacy(raw)
    except (IndexError, KeyError, TypeError, ValueError) as e:
        raise MalformedLayoutError(f"Malformed page layout: {e!r}") from e


def parse_page_summaries(raw: Iterable[Any]) -> List[PageSummary]:
    """Parse the document-level list of ``{width, height, span}`` records."""
    try:
        return [
            PageSummary(
                width=float(item["width"]),
                height=float(item["height"]),
                span=_span(item["span"]),
            )
            for item in raw
        ]
    except (KeyError, TypeError, ValueError, IndexError) as e:
        raise MalformedLayoutError(f"Malformed page summaries: {e!r}") from e


def _bbox(arr: Sequence[Any]) -> BoundingBox:
    return BoundingBox(
        x1=float(arr[0]), y1=float(arr[1]), x2=float(arr[2]), y2=float(arr[3])
    )


def _span(arr: Sequence[Any]) -> Span:
    return (arr[0], arr[1])


# ===== Legacy nested arrays =====


def _parse_legacy(data: Sequence[Any]) -> PageLayout:
    layout = PageLayout(width=float(data[0]), height=float(data[1]), span=_span(data[3]))

    for block_arr in data[2]:
        block = Block(bbox=_bbox(block_arr[0]), span=_span(block_arr[2]))
        for line_arr in block_arr[1]:
            line = Line(bbox=_bbox(line_arr[0]), span=_span(line_arr[2]))
            for word_arr in line_arr[1]:
                line.words.append(
                    Word(bbox=_bbox(word_arr[0]), span=_span(word_arr[2]), text=word_arr[1])
                )
            block.lines.append(line)
        layout.blocks.append(block)

    return layout


# ===== Versioned schema =====


def _parse_versioned(data: Mapping[str, Any]) -> PageLayout:
    version = data.get("version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise MalformedLayoutError(f"Unsupported layout schema version: {version!r}")

    layout = PageLayout(
        width=float(data["width"]),
        height=float(data["height"]),
        span=_span(data["span"]),
    )

    for block_data in data["blocks"]:
        block = Block(bbox=_bbox(block_data["bbox"]), span=_span(block_data["span"]))
        for line_data in block_data["lines"]:
            line = Line(bbox=_bbox(line_data["bbox"]), span=_span(line_data["span"]))
            for word_data in line_data["words"]:
                line.words.append(
                    Word(
                        bbox=_bbox(word_data["bbox"]),
                        span=_span(word_data["span"]),
                        text=word_data["text"],
                    )
                )
            block.lines.append(line)
        layout.blocks.append(block)

    return layout


def layout_to_record(layout: PageLayout) -> dict:
    """Serialize a PageLayout into the versioned schema."""

    def bbox(b: BoundingBox) -> List[float]:
        return [b.x1, b.y1, b.x2, b.y2]

    return {
        "version": SCHEMA_VERSION,
        "width": layout.width,
        "height": layout.height,
        "span": list(layout.span),
        "blocks": [
            {
                "bbox": bbox(block.bbox),
                "span": list(block.span),
                "lines": [
                    {
                        "bbox": bbox(line.bbox),
                        "span": list(line.span),
                        "words": [
                            {"bbox": bbox(w.bbox), "span": list(w.span), "text": w.text}
                            for w in line.words
                        ],
                    }
                    for line in block.lines
                ],
            }
            for block in layout.blocks
        ],
    }
