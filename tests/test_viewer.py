from __future__ import annotations

import pytest

from pageview.config import ViewerOptions
from pageview.core.layout import HighlightRange, PageSummary
from pageview.core.page import PageState
from pageview.core.selection import PagePoint
from pageview.core.viewer import DocumentViewer

from conftest import make_bundle


def _open(loader, scene, diagnostics, clock, pages=10, heights=None, viewport=300, **options):
    scrolled = []
    changes = []

    def scroller(page_number, top):
        # The container reports its new offset back, as a scrollbar would
        scrolled.append((page_number, top))
        viewer.on_scroll(top)

    viewer = DocumentViewer(
        ViewerOptions(document_id="doc-1", on_change_page_number=changes.append, **options),
        loader=loader,
        display=scene,
        diagnostics=diagnostics,
        scroller=scroller,
        clock=clock,
    )
    viewer.document_opened.connect(
        lambda info: viewer.resize_handler(viewport, heights or [400] * pages)
    )
    loader.complete("document", None, make_bundle(pages))
    return viewer, scrolled, changes


def test_opening_document_seeds_pages_and_loads_first_window(
    loader, scene, diagnostics, clock
) -> None:
    opened = []
    loader_viewer = DocumentViewer(
        ViewerOptions(), loader=loader, display=scene, diagnostics=diagnostics, clock=clock
    )
    loader_viewer.document_opened.connect(opened.append)
    loader_viewer.set_document_id("doc-1")

    assert loader_viewer.page_count == 0
    loader.complete("document", None, make_bundle(10))

    assert opened[0].display_title == "Report"
    assert loader_viewer.page_count == 10
    assert loader_viewer.page_number == 1
    assert {p.page_number for p in loader_viewer.manager.active_pages} == {1, 2, 3}
    assert loader_viewer.page_indicator == "1 / 10"
    assert scene.find("pages")[0].style["opacity"] == 1
    assert scene.find("page")[0].data["aspect_ratio"] == 2


def test_initial_page_number_option_is_honored(loader, scene, diagnostics, clock) -> None:
    viewer, scrolled, changes = _open(loader, scene, diagnostics, clock, page_number=6)

    assert viewer.page_number == 6
    assert scrolled[0] == (6, 2000)
    assert {p.page_number for p in viewer.manager.active_pages} == {4, 5, 6, 7, 8}


def test_set_page_number_notifies_all_channels(loader, scene, diagnostics, clock) -> None:
    viewer, scrolled, changes = _open(loader, scene, diagnostics, clock)
    events, signals, indicators = [], [], []
    viewer.on("page_number_changed", events.append)
    viewer.page_number_changed.connect(signals.append)
    viewer.page_indicator_changed.connect(indicators.append)

    viewer.set_page_number(5)

    assert changes[-1] == 5
    assert events == [5]
    assert signals == [5]
    assert indicators == ["5 / 10"]
    assert scrolled[-1] == (5, 1600)
    assert {p.page_number for p in viewer.manager.active_pages} == {3, 4, 5, 6, 7}


def test_same_page_without_scroll_is_a_no_op(loader, scene, diagnostics, clock) -> None:
    viewer, scrolled, changes = _open(loader, scene, diagnostics, clock)
    count = len(changes)

    viewer.set_page_number(1, scroll_into_view=False)

    assert len(changes) == count


def test_unknown_event_is_rejected(loader, scene, diagnostics, clock) -> None:
    viewer, _, _ = _open(loader, scene, diagnostics, clock)
    with pytest.raises(ValueError):
        viewer.on("zoomChanged", lambda n: None)


def test_scrolling_moves_active_page_without_scrolling_back(
    loader, scene, diagnostics, clock
) -> None:
    viewer, scrolled, _ = _open(
        loader, scene, diagnostics, clock, pages=3, heights=[100, 150, 200], viewport=130
    )
    assert viewer.page_number == 1
    scroll_count = len(scrolled)
    clock.advance(1000)

    assert viewer.on_scroll(120) == 2

    assert viewer.page_number == 2
    assert len(scrolled) == scroll_count
    assert viewer.pages[1].offset_height == 150


def test_highlight_ranges_repaint_and_jump(loader, scene, diagnostics, clock) -> None:
    viewer, scrolled, _ = _open(loader, scene, diagnostics, clock)
    loader.complete_page(1)
    page = viewer.pages[0]
    old_layer = page.text_layer

    viewer.set_highlight_ranges([{"start": 510, "end": 520}])

    assert viewer.page_number == 6
    assert scrolled[-1][0] == 6
    assert not old_layer.attached
    assert not page.active


def test_identical_highlight_ranges_are_a_no_op(loader, scene, diagnostics, clock) -> None:
    viewer, scrolled, _ = _open(loader, scene, diagnostics, clock)
    loader.complete_page(1)
    viewer.set_highlight_ranges([HighlightRange(10, 20)])
    layer = viewer.pages[0].text_layer
    scroll_count = len(scrolled)

    viewer.set_highlight_ranges([{"start": 10, "end": 20}])

    assert viewer.pages[0].text_layer is layer
    assert len(scrolled) == scroll_count


def test_highlight_on_active_page_marks_words(loader, scene, diagnostics, clock) -> None:
    viewer, _, _ = _open(loader, scene, diagnostics, clock)
    loader.complete_page(1)

    viewer.set_highlight_ranges([HighlightRange(0, 3)])

    assert [w.text for w in viewer.pages[0].overlays.highlighted_words] == ["hello"]
    assert viewer.should_highlight(2)


def test_jump_outside_every_page_warns_and_aborts(loader, scene, diagnostics, clock) -> None:
    viewer, scrolled, _ = _open(loader, scene, diagnostics, clock)
    scroll_count = len(scrolled)

    assert viewer.jump_to_location(5000) is False

    assert viewer.page_number == 1
    assert len(scrolled) == scroll_count
    assert diagnostics.records == [
        ("warning", "charIndex 5000 out of bounds", {"char_index": 5000})
    ]


def test_highlights_before_open_select_initial_page(loader, scene, diagnostics, clock) -> None:
    viewer, _, _ = _open(
        loader, scene, diagnostics, clock, highlight_ranges=[HighlightRange(310, 315)]
    )
    assert viewer.page_number == 4


def test_update_applies_host_options(loader, scene, diagnostics, clock) -> None:
    viewer, _, _ = _open(loader, scene, diagnostics, clock)

    viewer.update({"pageNumber": 8})
    assert viewer.page_number == 8

    viewer.update({"highlightRanges": [{"start": 120, "end": 130}]})
    assert viewer.highlight_ranges == [HighlightRange(120, 130)]
    assert viewer.page_number == 2

    viewer.update({"documentId": "doc-2"})
    assert viewer.document_id == "doc-2"
    assert viewer.page_count == 0
    assert loader.requests[-1].resource == "document"


def test_stale_document_response_is_ignored(loader, scene, diagnostics, clock) -> None:
    viewer = DocumentViewer(
        ViewerOptions(), loader=loader, display=scene, diagnostics=diagnostics, clock=clock
    )
    viewer.set_document_id("doc-1")
    viewer.set_document_id("doc-2")

    # Requests complete in issue order; the first belongs to doc-1
    loader.complete("document", None, make_bundle(5, document_id="doc-1"))
    assert viewer.page_count == 0

    loader.complete("document", None, make_bundle(3, document_id="doc-2"))
    assert viewer.page_count == 3
    assert viewer.document.document_id == "doc-2"


def test_document_failure_is_reported(loader, scene, diagnostics, clock) -> None:
    failures = []
    viewer = DocumentViewer(
        ViewerOptions(), loader=loader, display=scene, diagnostics=diagnostics, clock=clock
    )
    viewer.document_failed.connect(failures.append)
    viewer.set_document_id("doc-1")

    loader.fail("document", None)

    assert diagnostics.levels() == ["error"]
    assert len(failures) == 1


def test_drag_updates_overlay_node(loader, scene, diagnostics, clock) -> None:
    viewer, _, _ = _open(loader, scene, diagnostics, clock)
    rects = []
    viewer.selection_changed.connect(rects.append)

    viewer.pointer_down(PagePoint(2, 30, 40))
    viewer.pointer_move(PagePoint(2, 10, 80), primary_pressed=True)

    node = viewer.drag_overlay
    assert node.style["opacity"] == 1
    assert (node.style["left"], node.style["top"]) == (10, 440)
    assert (node.style["width"], node.style["height"]) == (20, 40)

    viewer.pointer_up(None)
    assert node.style["opacity"] == 0
    assert rects[-1] is None


def test_detach_tears_everything_down(loader, scene, diagnostics, clock) -> None:
    viewer, _, _ = _open(loader, scene, diagnostics, clock)
    page = viewer.pages[0]

    viewer.detach()

    assert viewer.page_count == 0
    assert scene.root.children == []
    loader.complete_page(1)
    assert page.state is PageState.UNLOADED
    assert not page.layout_loaded


def test_new_document_starts_at_first_page_unless_given(loader, scene, diagnostics, clock) -> None:
    viewer, _, _ = _open(loader, scene, diagnostics, clock)
    viewer.set_page_number(8)

    viewer.set_document_id("doc-2")
    loader.complete("document", None, make_bundle(10, document_id="doc-2"))
    assert viewer.page_number == 1

    viewer.update({"documentId": "doc-3", "pageNumber": 4})
    loader.complete("document", None, make_bundle(10, document_id="doc-3"))
    assert viewer.page_number == 4


def test_zero_width_summary_does_not_block_opening(loader, scene, diagnostics, clock) -> None:
    viewer = DocumentViewer(
        ViewerOptions(), loader=loader, display=scene, diagnostics=diagnostics, clock=clock
    )
    viewer.set_document_id("doc-1")
    bundle = make_bundle(2)
    bundle.pages[0] = PageSummary(width=0, height=400, span=(0, 99))

    loader.complete("document", None, bundle)

    assert viewer.page_count == 2
    assert viewer.page_number == 1
