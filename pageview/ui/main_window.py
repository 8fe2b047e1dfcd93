"""
Main application window.
"""

from typing import Optional

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import QFrame, QHBoxLayout, QLabel, QMainWindow, QVBoxLayout, QWidget

from pageview.config import ViewerOptions
from pageview.core.document.loader import ResourceLoader
from pageview.core.layout.models import DocumentInfo
from pageview.core.viewer import DocumentViewer
from pageview.ui.widgets import DocumentView


class MainWindow(QMainWindow):
    """Window with a title bar strip and the document view."""

    def __init__(self, options: ViewerOptions, loader: Optional[ResourceLoader] = None):
        super().__init__()
        self.setWindowTitle("Page Viewer")
        self.resize(1100, 900)

        self._loader = loader
        self.viewer = DocumentViewer(options, loader=loader, parent=self)
        self._setup_ui()

        self.viewer.document_opened.connect(self._on_document_opened)
        self.viewer.document_failed.connect(self._on_document_failed)
        self.viewer.page_indicator_changed.connect(self.page_label.setText)

    def _setup_ui(self):
        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        toolbar = QFrame()
        toolbar.setFixedHeight(28)
        toolbar.setStyleSheet(
            "QFrame { background: #fafafa; border-bottom: 1px solid #eee; font-size: 12px; }"
        )
        bar = QHBoxLayout(toolbar)
        bar.setContentsMargins(6, 0, 6, 0)

        self.title_label = QLabel("")
        self.title_label.setAlignment(Qt.AlignCenter)
        self.title_label.setStyleSheet("font-weight: bold;")
        self.page_label = QLabel("")

        bar.addWidget(self.title_label, 1)
        bar.addWidget(self.page_label)

        self.document_view = DocumentView(self.viewer)

        layout.addWidget(toolbar)
        layout.addWidget(self.document_view, 1)
        self.setCentralWidget(central)

    def _on_document_opened(self, info: DocumentInfo):
        self.title_label.setText(info.display_title)
        self.setWindowTitle(f"{info.display_title} - Page Viewer")

    def _on_document_failed(self, message: str):
        self.title_label.setText(message)

    def closeEvent(self, event):
        self.viewer.detach()
        if self._loader is not None:
            self._loader.shutdown()
        super().closeEvent(event)
