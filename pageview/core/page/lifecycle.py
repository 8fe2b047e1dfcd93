"""
Per-page load/unload state machine and the prefetch window policy.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, List, Optional, Sequence, Set

from pageview.core.display import DisplayNode, DisplayTree
from pageview.core.document.loader import ResourceLoader
from pageview.core.layout.models import HighlightRange, PageLayout, PageSummary
from pageview.core.layout.parser import parse_page_layout
from pageview.core.overlay.geometry import OverlaySet, build_overlays
from pageview.errors import MalformedLayoutError, PageViewError
from pageview.utils.diagnostics import Diagnostics

logger = logging.getLogger(__name__)

IMAGE = "image"
LAYOUT = "layout"

FULL_SIZE = {"left": 0.0, "top": 0.0, "width": 1.0, "height": 1.0}


class PageState(Enum):
    """Externally observable page state."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class LoadToken:
    """Validity marker for one load cycle; unload invalidates it."""

    __slots__ = ("valid",)

    def __init__(self):
        self.valid = True

    def invalidate(self):
        self.valid = False


@dataclass
class RenderSettings:
    """Viewer-wide settings that shape a page's text layer."""

    highlight_ranges: List[HighlightRange] = field(default_factory=list)
    draw_word_overlay: bool = True
    draw_line_overlay: bool = False
    draw_block_overlay: bool = True


class DocumentPage:
    """
    Runtime state of one page.

    Resources are fetched lazily when the page enters the prefetch window.
    Image and layout arrive independently; the layout renders the text
    layer as soon as it is parsed.
    """

    def __init__(
        self,
        manager: "PageLifecycleManager",
        summary: PageSummary,
        page_index: int,
        parent: Optional[DisplayNode] = None,
    ):
        self.manager = manager
        self.page_number = page_index + 1
        self.width = summary.width
        self.height = summary.height
        self.span = summary.span

        self.active = False
        self.loading = False
        self.failed = False
        self.image_loaded = False
        self.layout_loaded = False
        self.text_layer_rendered = False

        self.layout: Optional[PageLayout] = None
        self.image: Optional[bytes] = None
        self.overlays = OverlaySet()
        self.offset_height: float = 0.0

        self._token: Optional[LoadToken] = None
        self._pending: Set[str] = set()

        display = manager.display
        self.container = display.create_node(
            "page",
            parent=parent,
            data={
                "page_number": self.page_number,
                "aspect_ratio": summary.aspect_ratio,
            },
        )
        self.loading_layer = display.create_node(
            "loading", parent=self.container, style={"display": "none", **FULL_SIZE}
        )
        self.failed_layer = display.create_node(
            "failed", parent=self.container, style={"display": "none", **FULL_SIZE}
        )
        self.image_node: Optional[DisplayNode] = None
        self.text_layer: Optional[DisplayNode] = None

    @property
    def state(self) -> PageState:
        if self.loading:
            return PageState.LOADING
        if not self.active:
            return PageState.UNLOADED
        if self.image_loaded and self.layout_loaded:
            return PageState.READY
        if self.failed:
            return PageState.FAILED
        return PageState.UNLOADED

    # ===== Lifecycle =====

    def load(self):
        """Enter the prefetch window; idempotent while a load is outstanding."""
        self.active = True

        if self.loading:
            return

        if self.layout_loaded and not self.text_layer_rendered:
            self.render_text_layer()

        missing = [
            resource
            for resource, done in ((IMAGE, self.image_loaded), (LAYOUT, self.layout_loaded))
            if not done and resource not in self._pending
        ]
        if not missing:
            return

        self.loading = True
        self.failed = False
        self._token = token = LoadToken()
        display = self.manager.display
        display.set_style(self.failed_layer, display="none")
        display.set_style(self.loading_layer, display="block")

        self._pending.update(missing)
        loader = self.manager.loader
        document_id = self.manager.document_id
        on_error_image = partial(self._on_fetch_failed, token, IMAGE)
        on_error_layout = partial(self._on_fetch_failed, token, LAYOUT)

        # Both requests go out together; completions may arrive in any order
        if IMAGE in missing:
            loader.load_page_image(
                document_id,
                self.page_number,
                partial(self._on_image_loaded, token),
                on_error_image,
            )
        if LAYOUT in missing:
            loader.load_page_layout(
                document_id,
                self.page_number,
                partial(self._on_layout_loaded, token),
                on_error_layout,
            )

    def unload(self):
        """Leave the prefetch window and release the text layer."""
        self.active = False

        if self._token is not None:
            self._token.invalidate()
            self._token = None
        self._pending.clear()
        if self.loading:
            self.loading = False
            self.manager.display.set_style(self.loading_layer, display="none")

        if self.text_layer_rendered:
            self._discard_text_layer()

    def repaint_text_layer(self):
        """Rebuild the text layer, e.g. after the highlight set changed."""
        if self.text_layer is not None:
            self._discard_text_layer()
        self.text_layer_rendered = False
        # load() is a no-op while the image is still outstanding
        if self.layout_loaded:
            self.render_text_layer()
        self.load()

    def teardown(self):
        """Invalidate outstanding loads and remove the page from the display."""
        self.unload()
        self.manager.display.remove_node(self.container)

    # ===== Completion handlers =====

    def _finish(self, resource: str):
        self._pending.discard(resource)
        if not self._pending:
            self.loading = False

    def _on_image_loaded(self, token: LoadToken, data: bytes):
        if not token.valid:
            logger.debug("Discarding stale image for page %d", self.page_number)
            return

        self.image = data
        self.image_loaded = True
        display = self.manager.display
        if self.image_node is None:
            self.image_node = display.create_node(
                "image", parent=self.container, style={"display": "block", **FULL_SIZE}
            )
        display.update_node(self.image_node, data={"image": data})
        display.set_style(self.loading_layer, display="none")
        self._finish(IMAGE)

    def _on_layout_loaded(self, token: LoadToken, raw: Any):
        if not token.valid:
            logger.debug("Discarding stale layout for page %d", self.page_number)
            return

        try:
            layout = parse_page_layout(raw)
        except MalformedLayoutError as e:
            self._on_fetch_failed(token, LAYOUT, e)
            return

        self.layout = layout
        self.layout_loaded = True
        self._finish(LAYOUT)
        self.render_text_layer()

    def _on_fetch_failed(self, token: LoadToken, resource: str, error: PageViewError):
        if not token.valid:
            return

        self.failed = True
        self._finish(resource)
        display = self.manager.display
        display.set_style(self.loading_layer, display="none")
        display.set_style(self.failed_layer, display="block")
        self.manager.diagnostics.error(
            f"Page {self.page_number} {resource} failed: {error}",
            page_number=self.page_number,
        )

    # ===== Text layer =====

    def render_text_layer(self):
        """Build the overlay tree from the cached layout."""
        if self.text_layer_rendered or self.layout is None:
            return

        settings = self.manager.settings
        overlays = build_overlays(
            self.layout,
            settings.highlight_ranges,
            draw_words=settings.draw_word_overlay,
            draw_lines=settings.draw_line_overlay,
            draw_blocks=settings.draw_block_overlay,
        )

        display = self.manager.display
        text_layer = display.create_node("text_layer", parent=self.container, style=FULL_SIZE)
        for box in overlays:
            display.create_node(box.kind.value, parent=text_layer, style=box.style, data=box.data)

        self.overlays = overlays
        self.text_layer = text_layer
        self.text_layer_rendered = True

    def _discard_text_layer(self):
        self.overlays = OverlaySet()
        if self.text_layer is not None:
            self.manager.display.remove_node(self.text_layer)
            self.text_layer = None
        self.text_layer_rendered = False

    def __repr__(self) -> str:
        return f"DocumentPage(page={self.page_number}, state={self.state.value})"


class PageLifecycleManager:
    """
    Owns the pages of the open document and applies the prefetch window.
    """

    def __init__(
        self,
        loader: ResourceLoader,
        display: DisplayTree,
        diagnostics: Optional[Diagnostics] = None,
        prefetch_pages: int = 2,
        settings: Optional[RenderSettings] = None,
    ):
        self.loader = loader
        self.display = display
        self.diagnostics = diagnostics or Diagnostics()
        self.prefetch_pages = prefetch_pages
        self.settings = settings or RenderSettings()
        self.document_id: Optional[str] = None
        self.pages: List[DocumentPage] = []

    def __len__(self) -> int:
        return len(self.pages)

    def create_pages(
        self,
        document_id: str,
        summaries: Sequence[PageSummary],
        parent: Optional[DisplayNode] = None,
    ) -> List[DocumentPage]:
        """Replace the current pages with fresh, unloaded ones."""
        self.teardown()
        self.document_id = document_id
        self.pages = [
            DocumentPage(self, summary, page_index, parent)
            for page_index, summary in enumerate(summaries)
        ]
        return self.pages

    def page(self, page_number: int) -> DocumentPage:
        return self.pages[page_number - 1]

    def window(self, page_number: int) -> range:
        """Page numbers kept loaded around the given page."""
        start = max(1, page_number - self.prefetch_pages)
        end = min(len(self.pages), page_number + self.prefetch_pages)
        return range(start, end + 1)

    def apply_window(self, page_number: int):
        """Load every page within the window and unload all others."""
        lo = page_number - self.prefetch_pages
        hi = page_number + self.prefetch_pages
        for page in self.pages:
            if lo <= page.page_number <= hi:
                page.load()
            else:
                page.unload()

    @property
    def active_pages(self) -> List[DocumentPage]:
        return [page for page in self.pages if page.active]

    def repaint_active(self):
        for page in self.active_pages:
            page.repaint_text_layer()

    def teardown(self):
        for page in self.pages:
            page.teardown()
        self.pages = []
        self.document_id = None
