"""
Document viewer: ties page lifecycle, viewport tracking and drag selection
together behind the host embedding surface.
"""

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from PyQt5.QtCore import QObject, pyqtSignal

from pageview.config import ViewerOptions
from pageview.core.display import DisplayTree, SceneTree
from pageview.core.document.loader import (
    DocumentBundle,
    ResourceLoader,
    ThreadedResourceLoader,
)
from pageview.core.document.sources import HttpDocumentSource
from pageview.core.layout.locator import CharIndexLocator
from pageview.core.layout.models import DocumentInfo, HighlightRange
from pageview.core.overlay.geometry import should_highlight
from pageview.core.page.lifecycle import PageLifecycleManager, RenderSettings
from pageview.core.selection.drag import DragSelectionController, PagePoint
from pageview.core.viewport.tracker import StackedPageGeometry, ViewportTracker
from pageview.errors import NavigationError, PageViewError
from pageview.utils.diagnostics import Diagnostics

logger = logging.getLogger(__name__)

PAGE_NUMBER_CHANGED = "page_number_changed"
EVENTS = (PAGE_NUMBER_CHANGED,)


class DocumentViewer(QObject):
    """
    Renders a paginated document into a display tree.

    The host forwards scroll, resize and pointer events, and scrolls the
    container when asked through ``scroller``.
    """

    # Signals
    page_number_changed = pyqtSignal(int)
    page_indicator_changed = pyqtSignal(str)
    document_opened = pyqtSignal(object)  # DocumentInfo
    document_failed = pyqtSignal(str)
    selection_changed = pyqtSignal(object)  # SelectionRect or None

    def __init__(
        self,
        options: Union[ViewerOptions, Mapping, None] = None,
        loader: Optional[ResourceLoader] = None,
        display: Optional[DisplayTree] = None,
        diagnostics: Optional[Diagnostics] = None,
        scroller: Optional[Callable[[int, float], None]] = None,
        clock: Optional[Callable[[], float]] = None,
        parent=None,
    ):
        super().__init__(parent)

        if options is None:
            options = ViewerOptions()
        elif not isinstance(options, ViewerOptions):
            options = ViewerOptions.from_mapping(options)
        self.options = options

        self._owns_loader = loader is None
        if loader is None:
            loader = ThreadedResourceLoader(
                HttpDocumentSource(
                    options.base_url,
                    options.headers,
                    timeout=options.request_timeout,
                    max_retries=options.max_retries,
                )
            )
        self.loader = loader
        self.display = display or SceneTree()
        self.diagnostics = diagnostics or Diagnostics()
        self.scroller = scroller
        self.on_change_page_number = options.on_change_page_number or (lambda n: None)
        self.listeners: Dict[str, Callable[[int], None]] = {}

        # View state
        self.document_id: Optional[str] = None
        self.document: Optional[DocumentInfo] = None
        self.page_number: Optional[int] = options.page_number
        self.highlight_ranges: List[HighlightRange] = []
        self.locator = CharIndexLocator([])

        self.manager = PageLifecycleManager(
            loader,
            self.display,
            self.diagnostics,
            prefetch_pages=options.prefetch_pages,
            settings=RenderSettings(
                draw_word_overlay=options.draw_word_overlay,
                draw_line_overlay=options.draw_line_overlay,
                draw_block_overlay=options.draw_block_overlay,
            ),
        )
        self.geometry = StackedPageGeometry()
        tracker_kwargs = {"clock": clock} if clock is not None else {}
        self.tracker = ViewportTracker(
            self.geometry,
            self._on_active_page,
            interval_ms=options.scroll_update_interval,
            lookahead=options.viewport_lookahead,
            **tracker_kwargs,
        )
        self.drag = DragSelectionController(self.geometry, self._on_drag_changed)

        # Display nodes
        self.pages_container = self.display.create_node("pages", style={"opacity": 0})
        self.drag_overlay = self.display.create_node(
            "drag_overlay", style={"opacity": 0, "display": "block"}
        )

        if options.highlight_ranges:
            self.set_highlight_ranges(options.highlight_ranges)
        if options.document_id:
            self.set_document_id(options.document_id, options.page_number)

    # ===== Host embedding surface =====

    @property
    def pages(self):
        return self.manager.pages

    @property
    def page_count(self) -> int:
        return len(self.manager)

    @property
    def page_indicator(self) -> str:
        return f"{self.page_number or 0} / {self.page_count}"

    def on(self, event: str, listener: Callable[[int], None]):
        """Attach an external listener; one listener per event."""
        if event not in EVENTS:
            raise ValueError(f"Unknown event: {event!r}")
        self.listeners[event] = listener

    def update(self, options: Union[ViewerOptions, Mapping]):
        """Apply changed host options."""
        if isinstance(options, ViewerOptions):
            page_number = options.page_number
            ranges = options.highlight_ranges
            document_id = options.document_id
        else:
            parsed = ViewerOptions.from_mapping(options)
            page_number = parsed.page_number
            ranges = parsed.highlight_ranges
            document_id = parsed.document_id

        if document_id and document_id != self.document_id:
            self.set_document_id(document_id, page_number)
        elif page_number and page_number != self.page_number:
            self.set_page_number(page_number, True)
        if isinstance(ranges, list):
            self.set_highlight_ranges(ranges)

    def detach(self):
        """Tear down pages and stop delivering work to the host."""
        self.manager.teardown()
        self.display.remove_node(self.pages_container)
        self.display.remove_node(self.drag_overlay)
        self.listeners.clear()
        self.scroller = None
        if self._owns_loader:
            self.loader.shutdown()

    # ===== Document =====

    def set_document_id(self, document_id: str, page_number: Optional[int] = None):
        """
        Open a document; pages are created once metadata arrives.

        Args:
            document_id: Document to open
            page_number: Initial page; otherwise the first highlight's
                page, or 1
        """
        self.manager.teardown()
        self.locator = CharIndexLocator([])
        self.document = None
        self.document_id = document_id
        self.page_number = page_number
        self.display.set_style(self.pages_container, opacity=0)
        self.loader.load_document(
            document_id,
            lambda bundle: self._on_document_loaded(document_id, bundle),
            lambda error: self._on_document_failed(document_id, error),
        )

    def _on_document_loaded(self, document_id: str, bundle: DocumentBundle):
        if document_id != self.document_id:
            logger.debug("Ignoring stale document %s", document_id)
            return

        self.document = bundle.info
        pages = self.manager.create_pages(document_id, bundle.pages, self.pages_container)
        self.locator = CharIndexLocator([page.span for page in pages])
        self.display.set_style(self.pages_container, opacity=1)
        self.document_opened.emit(bundle.info)
        logger.info("Opened document %s (%d pages)", document_id, len(pages))

        if not pages:
            return

        page_number = self.page_number
        if page_number is None and self.highlight_ranges:
            try:
                page_number = self.locator.locate_page(self.highlight_ranges[0].start)
            except NavigationError as e:
                self.diagnostics.warning(str(e), char_index=e.char_index)
        self.set_page_number(page_number or 1, True)
        self.on_scroll()

    def _on_document_failed(self, document_id: str, error: PageViewError):
        if document_id != self.document_id:
            return
        self.diagnostics.error(f"Could not open document: {error}", document_id=document_id)
        self.document_failed.emit(str(error))

    # ===== Navigation =====

    def set_page_number(self, page_number: int, scroll_into_view: bool = True):
        """
        Make a page current and recompute the prefetch window.

        Args:
            page_number: 1-based page number
            scroll_into_view: Ask the host to scroll the page into view
        """
        if self.page_count:
            page_number = max(1, min(self.page_count, page_number))
        if self.page_number == page_number and not scroll_into_view:
            return

        self.page_number = page_number
        self.on_change_page_number(page_number)
        listener = self.listeners.get(PAGE_NUMBER_CHANGED)
        if listener is not None:
            listener(page_number)
        self.page_number_changed.emit(page_number)

        if not self.page_count:
            return

        self.manager.apply_window(page_number)
        if scroll_into_view and self.scroller is not None and self.geometry.page_count:
            self.scroller(page_number, self.geometry.page_top(page_number))
        self.page_indicator_changed.emit(self.page_indicator)

    def jump_to_location(self, char_index: int) -> bool:
        """Show the page containing a character offset."""
        try:
            page_number = self.locator.locate_page(char_index)
        except NavigationError as e:
            self.diagnostics.warning(str(e), char_index=char_index)
            return False
        logger.debug("jumpToLocation %d -> page %d", char_index, page_number)
        self.set_page_number(page_number, True)
        return True

    # ===== Highlights =====

    def set_highlight_ranges(self, ranges: Iterable):
        """Replace the highlight set, repaint active pages and jump to it."""
        ranges = [HighlightRange.from_value(r) for r in ranges]
        if ranges == self.highlight_ranges:
            return

        self.highlight_ranges = ranges
        self.manager.settings.highlight_ranges = ranges
        self.manager.repaint_active()

        if ranges and self.page_count:
            self.jump_to_location(ranges[0].start)

    def should_highlight(self, index: int) -> bool:
        return should_highlight(self.highlight_ranges, index)

    # ===== Viewport =====

    def on_scroll(self, scroll_top: Optional[float] = None) -> Optional[int]:
        """Scroll event from the host."""
        return self.tracker.on_scroll(scroll_top)

    def _on_active_page(self, page_number: int):
        # Scroll-driven: never scroll back into view
        self.set_page_number(page_number, False)

    def resize_handler(
        self,
        viewport_height: float,
        page_heights: Sequence[float],
        page_left: float = 0.0,
        top_margin: float = 0.0,
        page_spacing: float = 0.0,
    ):
        """
        Cache container and page heights after a geometry change.

        Measuring on every scroll is expensive, so heights are only
        refreshed here.
        """
        self.geometry.viewport_height = viewport_height
        self.geometry.page_heights = list(page_heights)
        self.geometry.page_left = page_left
        self.geometry.top_margin = top_margin
        self.geometry.page_spacing = page_spacing
        for page, height in zip(self.manager.pages, page_heights):
            page.offset_height = height

    # ===== Pointer =====

    def pointer_down(self, point: Optional[PagePoint]):
        self.drag.pointer_down(point)

    def pointer_move(self, point: Optional[PagePoint], primary_pressed: bool):
        self.drag.pointer_move(point, primary_pressed)

    def pointer_up(self, point: Optional[PagePoint]):
        self.drag.pointer_up(point)

    def _on_drag_changed(self, drag: DragSelectionController):
        style = {"opacity": 1 if drag.dragging else 0}
        if drag.rect is not None:
            style.update(
                left=drag.rect.left,
                top=drag.rect.top,
                width=drag.rect.width,
                height=drag.rect.height,
            )
        self.display.update_node(self.drag_overlay, style=style)
        self.selection_changed.emit(drag.rect if drag.dragging else None)
