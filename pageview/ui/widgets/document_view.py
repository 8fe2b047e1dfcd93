"""
Scrollable host widget for a DocumentViewer.
"""

from typing import Dict, Optional

from PyQt5.QtCore import QPoint, Qt
from PyQt5.QtGui import QColor, QPainter, QPen
from PyQt5.QtWidgets import QScrollArea, QWidget

from pageview.core.display import DisplayNode, SceneTree
from pageview.core.layout.models import DocumentInfo
from pageview.core.selection.drag import PagePoint
from pageview.core.viewer import DocumentViewer
from pageview.ui.widgets.page_canvas import PageCanvas


class SelectionBand(QWidget):
    """Translucent rectangle drawn over the pages while dragging."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setAttribute(Qt.WA_TransparentForMouseEvents)
        self.hide()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(0, 190, 255, 51))
        painter.setPen(QPen(QColor(0, 190, 255, 102), 1))
        painter.drawRect(self.rect().adjusted(0, 0, -1, -1))
        painter.end()


class PagesContainer(QWidget):
    """Content widget; forwards pointer events to the view."""

    def __init__(self, view: "DocumentView"):
        super().__init__()
        self.view = view
        self.setMouseTracking(True)

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            self.view.viewer.pointer_down(self.view.page_point_at(event.pos()))
        event.accept()

    def mouseMoveEvent(self, event):
        pressed = bool(event.buttons() & Qt.LeftButton)
        self.view.viewer.pointer_move(self.view.page_point_at(event.pos()), pressed)
        event.accept()

    def mouseReleaseEvent(self, event):
        self.view.viewer.pointer_up(self.view.page_point_at(event.pos()))
        event.accept()


class DocumentView(QScrollArea):
    """
    Lays pages out vertically and connects Qt events to the viewer.

    Pages are positioned manually; their heights follow the page aspect
    ratio at the current width and are handed to the viewer on every
    resize.
    """

    max_page_width = 960
    side_margin = 16
    top_margin = 16
    page_spacing = 0

    def __init__(self, viewer: DocumentViewer, parent=None):
        super().__init__(parent)
        self.viewer = viewer
        self.canvases: Dict[int, PageCanvas] = {}

        self.container = PagesContainer(self)
        self.setWidget(self.container)
        self.setWidgetResizable(True)
        self.setStyleSheet("QScrollArea { background: #aaa; }")
        self.band = SelectionBand(self.container)

        self.viewer.scroller = self._scroll_to
        self.viewer.document_opened.connect(self._build_pages)
        self.verticalScrollBar().valueChanged.connect(self._on_scroll)
        if isinstance(self.viewer.display, SceneTree):
            self.viewer.display.add_listener(self._on_display_change)

    # ===== Pages =====

    def _build_pages(self, info: DocumentInfo):
        for canvas in self.canvases.values():
            canvas.setParent(None)
            canvas.deleteLater()
        self.canvases.clear()

        for page in self.viewer.pages:
            canvas = PageCanvas(page, self.container)
            canvas.show()
            self.canvases[page.page_number] = canvas

        self.band.raise_()
        self._relayout()

    def _relayout(self):
        """Position pages and report their heights to the viewer."""
        viewport = self.viewport()
        width = min(self.max_page_width, viewport.width() - 2 * self.side_margin)
        width = max(width, 1)
        left = (viewport.width() - width) // 2

        heights = []
        y = self.top_margin
        for page_number in sorted(self.canvases):
            canvas = self.canvases[page_number]
            height = int(round(width * canvas.aspect_ratio))
            canvas.setGeometry(left, y, width, height)
            heights.append(height)
            y += height + self.page_spacing

        self.container.setMinimumHeight(y + self.top_margin)
        self.viewer.resize_handler(
            viewport.height(),
            heights,
            page_left=left,
            top_margin=self.top_margin,
            page_spacing=self.page_spacing,
        )

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._relayout()

    # ===== Viewer callbacks =====

    def _scroll_to(self, page_number: int, top: float):
        self.verticalScrollBar().setValue(int(top))

    def _on_scroll(self, value: int):
        self.viewer.on_scroll(value)

    def _on_display_change(self, node: DisplayNode, change: str):
        if node is self.viewer.drag_overlay:
            self._update_band(node)
            return
        for canvas in self.canvases.values():
            if canvas.owns(node):
                canvas.update()
                break

    def _update_band(self, node: DisplayNode):
        style = node.style
        if not style.get("opacity") or "width" not in style:
            self.band.hide()
            return
        self.band.setGeometry(
            int(style["left"]),
            int(style["top"]),
            max(1, int(style["width"])),
            max(1, int(style["height"])),
        )
        self.band.show()

    # ===== Coordinates =====

    def page_point_at(self, pos: QPoint) -> Optional[PagePoint]:
        """Map a container position to page-local coordinates."""
        for page_number, canvas in self.canvases.items():
            if canvas.geometry().contains(pos):
                local = pos - canvas.pos()
                return PagePoint(page_number, local.x(), local.y())
        return None
