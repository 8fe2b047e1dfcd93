"""
Local PDF document source backed by PyMuPDF.
"""

import logging
import os
import threading
from typing import Dict, List, Optional

import fitz  # PyMuPDF

from pageview.core.layout.models import (
    Block,
    BoundingBox,
    DocumentInfo,
    Line,
    PageLayout,
    PageSummary,
    Word,
)
from pageview.core.layout.parser import layout_to_record
from pageview.errors import ResourceFetchError

from .sources import DocumentSource

logger = logging.getLogger(__name__)


class PdfDocumentSource(DocumentSource):
    """
    Serves PDF files from disk as documents.

    Page layouts are derived from PyMuPDF word extraction. Character
    offsets run across the whole document: words are separated by one
    character, and each page's span ends after its last separator so that
    page spans are contiguous.
    """

    def __init__(self, zoom: float = 2.0):
        self.zoom = zoom
        self._paths: Dict[str, str] = {}
        self._docs: Dict[str, fitz.Document] = {}
        self._layouts: Dict[str, List[PageLayout]] = {}
        self._lock = threading.Lock()  # fitz documents are not thread-safe

    def register(self, file_path: str, document_id: Optional[str] = None) -> str:
        """
        Make a PDF file available under a document id.

        Args:
            file_path: Path to the PDF file
            document_id: Id to register; defaults to the file name stem

        Returns:
            The document id
        """
        if document_id is None:
            document_id = os.path.splitext(os.path.basename(file_path))[0]
        self._paths[document_id] = file_path
        return document_id

    def _open(self, document_id: str, resource: str) -> fitz.Document:
        if document_id in self._docs:
            return self._docs[document_id]
        path = self._paths.get(document_id)
        if path is None:
            raise ResourceFetchError(resource, reason=f"unknown document {document_id!r}")
        try:
            doc = fitz.open(path)
        except Exception as e:
            raise ResourceFetchError(resource, reason=str(e)) from e
        self._docs[document_id] = doc
        return doc

    def _page_layouts(self, document_id: str) -> List[PageLayout]:
        if document_id not in self._layouts:
            doc = self._open(document_id, "layout")
            layouts = []
            offset = 0
            for page_index in range(doc.page_count):
                layout, offset = self._extract_layout(doc.load_page(page_index), offset)
                layouts.append(layout)
            self._layouts[document_id] = layouts
        return self._layouts[document_id]

    @staticmethod
    def _extract_layout(page: fitz.Page, offset: int):
        """
        Build the layout tree for one page.

        Args:
            page: PyMuPDF page
            offset: Global character offset where this page starts

        Returns:
            Tuple of (PageLayout, offset where the next page starts)
        """
        page_start = offset
        layout = PageLayout(width=page.rect.width, height=page.rect.height, span=(0, 0))

        # (x0, y0, x1, y1, text, block_no, line_no, word_no)
        grouped: Dict[int, Dict[int, list]] = {}
        for entry in page.get_text("words", sort=True):
            grouped.setdefault(entry[5], {}).setdefault(entry[6], []).append(entry)

        for lines in grouped.values():
            block_lines = []
            for entries in lines.values():
                words = []
                for x0, y0, x1, y1, text, *_ in entries:
                    words.append(
                        Word(
                            bbox=BoundingBox(x0, y0, x1, y1),
                            span=(offset, offset + len(text) - 1),
                            text=text,
                        )
                    )
                    offset += len(text) + 1
                block_lines.append(
                    Line(
                        bbox=_union(w.bbox for w in words),
                        span=(words[0].span[0], words[-1].span[1]),
                        words=words,
                    )
                )
            layout.blocks.append(
                Block(
                    bbox=_union(line.bbox for line in block_lines),
                    span=(block_lines[0].span[0], block_lines[-1].span[1]),
                    lines=block_lines,
                )
            )

        if offset == page_start:
            # Blank page still owns one offset
            offset += 1
        layout.span = (page_start, offset - 1)
        return layout, offset

    def fetch_document_meta(self, document_id: str) -> DocumentInfo:
        with self._lock:
            doc = self._open(document_id, "document")
            metadata = doc.metadata or {}
            return DocumentInfo(
                document_id=document_id,
                title=metadata.get("title") or "",
                filename=os.path.basename(self._paths[document_id]),
            )

    def fetch_page_summaries(self, document_id: str) -> List[PageSummary]:
        with self._lock:
            return [
                PageSummary(width=layout.width, height=layout.height, span=layout.span)
                for layout in self._page_layouts(document_id)
            ]

    def fetch_page_image(self, document_id: str, page_number: int) -> bytes:
        with self._lock:
            doc = self._open(document_id, "page image")
            try:
                page = doc.load_page(page_number - 1)
                pix = page.get_pixmap(matrix=fitz.Matrix(self.zoom, self.zoom), alpha=False)
                return pix.tobytes("png")
            except Exception as e:
                raise ResourceFetchError("page image", page_number, str(e)) from e

    def fetch_page_layout(self, document_id: str, page_number: int) -> dict:
        with self._lock:
            layouts = self._page_layouts(document_id)
            if not 1 <= page_number <= len(layouts):
                raise ResourceFetchError(
                    "page layout", page_number, "page number out of range"
                )
            return layout_to_record(layouts[page_number - 1])

    def close(self) -> None:
        with self._lock:
            for doc in self._docs.values():
                doc.close()
            self._docs.clear()
            self._layouts.clear()


def _union(boxes) -> BoundingBox:
    boxes = list(boxes)
    return BoundingBox(
        x1=min(b.x1 for b in boxes),
        y1=min(b.y1 for b in boxes),
        x2=max(b.x2 for b in boxes),
        y2=max(b.y2 for b in boxes),
    )
