"""
Widget painting one page: image, loading state and text layer overlays.
"""

from typing import Optional

from PyQt5.QtCore import QRectF, Qt
from PyQt5.QtGui import QBrush, QColor, QPainter, QPen, QPixmap
from PyQt5.QtWidgets import QWidget

from pageview.core.display import DisplayNode
from pageview.core.overlay.geometry import DEFAULT_HIGHLIGHT_COLOR
from pageview.core.page.lifecycle import DocumentPage


class PageCanvas(QWidget):
    """
    Paints a page from its display nodes.

    Overlay boxes are stored as fractions of the page, so they are scaled
    to whatever size this widget currently has.
    """

    def __init__(self, page: DocumentPage, parent=None):
        super().__init__(parent)
        self.page = page
        self._pixmap: Optional[QPixmap] = None
        self._pixmap_source: Optional[bytes] = None
        self.setAttribute(Qt.WA_OpaquePaintEvent)

    @property
    def page_number(self) -> int:
        return self.page.page_number

    @property
    def aspect_ratio(self) -> float:
        return self.page.container.data.get("aspect_ratio", 1.0)

    def owns(self, node: DisplayNode) -> bool:
        """Check whether a display node belongs to this page."""
        while node is not None:
            if node is self.page.container:
                return True
            node = node.parent
        return False

    def _current_pixmap(self) -> Optional[QPixmap]:
        data = self.page.image
        if data is None:
            return None
        if data is not self._pixmap_source:
            pixmap = QPixmap()
            pixmap.loadFromData(data)
            self._pixmap = pixmap
            self._pixmap_source = data
        return self._pixmap

    def _node_rect(self, node: DisplayNode) -> QRectF:
        style = node.style
        return QRectF(
            style.get("left", 0.0) * self.width(),
            style.get("top", 0.0) * self.height(),
            style.get("width", 0.0) * self.width(),
            style.get("height", 0.0) * self.height(),
        )

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), Qt.white)

        pixmap = self._current_pixmap()
        if pixmap is not None and not pixmap.isNull():
            painter.drawPixmap(self.rect(), pixmap)

        if self.page.loading_layer.visible:
            self._paint_status(painter, "Loading…", QColor(150, 150, 150))
        elif self.page.failed_layer.visible:
            self._paint_status(painter, "Page failed to load", QColor(200, 60, 60))

        if self.page.text_layer is not None:
            self._paint_text_layer(painter, self.page.text_layer)

        painter.setPen(QPen(QColor("#eee")))
        painter.drawLine(0, 0, self.width(), 0)
        painter.end()

    def _paint_status(self, painter: QPainter, text: str, color: QColor):
        painter.setPen(color)
        painter.drawText(self.rect(), Qt.AlignCenter, text)

    def _paint_text_layer(self, painter: QPainter, text_layer: DisplayNode):
        for node in text_layer.children:
            rect = self._node_rect(node)
            if node.kind == "word_overlay":
                if not node.data.get("highlighted"):
                    continue
                color = QColor(node.style.get("background") or DEFAULT_HIGHLIGHT_COLOR)
                painter.save()
                painter.setCompositionMode(QPainter.CompositionMode_Darken)
                painter.setPen(Qt.NoPen)
                painter.setBrush(QBrush(color))
                painter.drawRect(rect.adjusted(-4, -4, 4, 4))
                painter.restore()
            else:
                painter.setBrush(Qt.NoBrush)
                painter.setPen(QPen(QColor(0, 120, 215, 40), 1))
                painter.drawRect(rect)
