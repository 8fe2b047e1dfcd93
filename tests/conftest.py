from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import pytest

from pageview.core.display import SceneTree
from pageview.core.document.loader import DocumentBundle, ResourceLoader
from pageview.core.layout.models import DocumentInfo, PageSummary
from pageview.errors import ResourceFetchError
from pageview.utils.diagnostics import Diagnostics


@dataclass
class _Request:
    resource: str
    page_number: Optional[int]
    on_done: Callable[[Any], None]
    on_error: Callable[[Exception], None]


class DeferredLoader(ResourceLoader):
    """Records requests; tests decide when (and whether) they complete."""

    def __init__(self) -> None:
        super().__init__(source=None)
        self.requests: List[_Request] = []
        self.issued: List[tuple] = []

    def _submit(self, fetch, on_done, on_error, resource, page_number=None) -> None:
        self.requests.append(_Request(resource, page_number, on_done, on_error))
        self.issued.append((resource, page_number))

    def shutdown(self) -> None:
        self.requests.clear()

    def _take(self, resource: str, page_number: Optional[int]) -> _Request:
        for request in self.requests:
            if request.resource == resource and request.page_number == page_number:
                self.requests.remove(request)
                return request
        raise AssertionError(f"no pending {resource} request for page {page_number}")

    def complete(self, resource: str, page_number: Optional[int], value: Any) -> None:
        self._take(resource, page_number).on_done(value)

    def fail(self, resource: str, page_number: Optional[int], reason: str = "boom") -> None:
        self._take(resource, page_number).on_error(
            ResourceFetchError(resource, page_number, reason)
        )

    def count(self, resource: str, page_number: Optional[int] = None) -> int:
        return sum(
            1
            for r, n in self.issued
            if r == resource and (page_number is None or n == page_number)
        )

    def complete_page(self, page_number: int, layout=None) -> None:
        self.complete("page image", page_number, b"png-bytes")
        self.complete("page layout", page_number, layout or raw_layout(page_number))


class RecordingDiagnostics(Diagnostics):
    def __init__(self) -> None:
        super().__init__()
        self.records: List[tuple] = []

    def info(self, message: str, **context) -> None:
        self.records.append(("info", message, context))

    def warning(self, message: str, **context) -> None:
        self.records.append(("warning", message, context))

    def error(self, message: str, **context) -> None:
        self.records.append(("error", message, context))

    def levels(self) -> List[str]:
        return [level for level, _, _ in self.records]


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


PAGE_CHARS = 100


def page_span(page_number: int) -> tuple:
    start = (page_number - 1) * PAGE_CHARS
    return (start, start + PAGE_CHARS - 1)


def raw_layout(page_number: int) -> list:
    """Legacy nested-array layout with one block, one line, two words."""
    start, end = page_span(page_number)
    words = [
        [[10, 10, 50, 20], "hello", [start, start + 4]],
        [[60, 10, 100, 20], "world", [start + 6, start + 10]],
    ]
    line = [[10, 10, 100, 20], words, [start, start + 10]]
    block = [[10, 10, 100, 20], [line], [start, start + 10]]
    return [200, 400, [block], [start, end]]


def make_bundle(page_count: int, document_id: str = "doc-1") -> DocumentBundle:
    return DocumentBundle(
        info=DocumentInfo(document_id=document_id, title="Report", filename="report.pdf"),
        pages=[
            PageSummary(width=200, height=400, span=page_span(n))
            for n in range(1, page_count + 1)
        ],
    )


@pytest.fixture
def loader() -> DeferredLoader:
    return DeferredLoader()


@pytest.fixture
def scene() -> SceneTree:
    return SceneTree()


@pytest.fixture
def diagnostics() -> RecordingDiagnostics:
    return RecordingDiagnostics()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
