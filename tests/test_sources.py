from __future__ import annotations

from typing import List

import fitz
import pytest
import requests

from pageview.core.document import (
    FetchWorker,
    HttpDocumentSource,
    ImmediateResourceLoader,
    PdfDocumentSource,
)
from pageview.core.layout import parse_page_layout
from pageview.errors import ResourceFetchError


class _Response:
    def __init__(self, status_code: int = 200, payload=None, content: bytes = b"") -> None:
        self.status_code = status_code
        self._payload = payload
        self.content = content

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


class _Session:
    """Replays scripted responses; exceptions in the script are raised."""

    def __init__(self, *script) -> None:
        self.script = list(script)
        self.calls: List[tuple] = []
        self.closed = False

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, dict(headers or {}), timeout))
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step

    def close(self) -> None:
        self.closed = True


def _source(*script, **kwargs) -> HttpDocumentSource:
    return HttpDocumentSource(
        "https://docs.example.org/",
        headers={"Authorization": "Bearer t"},
        session=_Session(*script),
        **kwargs,
    )


def test_metadata_request_and_title_fallback() -> None:
    source = _source(_Response(payload={"meta": {"title": None}, "filename": "a.pdf"}))

    info = source.fetch_document_meta("doc-1")

    url, headers, timeout = source.session.calls[0]
    assert url == "https://docs.example.org/api/document/doc-1"
    assert headers == {"Authorization": "Bearer t", "Content-Type": "application/json"}
    assert timeout == 10.0
    assert info.display_title == "a.pdf"


def test_page_resources_use_page_endpoints() -> None:
    source = _source(
        _Response(content=b"png"),
        _Response(payload=[1, 2, [], [0, 9]]),
        _Response(payload=[{"width": 10, "height": 20, "span": [0, 9]}]),
    )

    assert source.fetch_page_image("d", 3) == b"png"
    assert source.fetch_page_layout("d", 3) == [1, 2, [], [0, 9]]
    summaries = source.fetch_page_summaries("d")

    assert [c[0] for c in source.session.calls] == [
        "https://docs.example.org/api/document/d/page/3/image",
        "https://docs.example.org/api/document/d/page/3/layout",
        "https://docs.example.org/api/document/d/layout",
    ]
    assert summaries[0].aspect_ratio == 2


def test_transient_failures_are_retried() -> None:
    source = _source(
        requests.ConnectionError("reset"),
        _Response(status_code=503),
        _Response(content=b"png"),
        max_retries=2,
    )

    assert source.fetch_page_image("d", 1) == b"png"
    assert len(source.session.calls) == 3


def test_retries_are_bounded() -> None:
    source = _source(_Response(status_code=500), _Response(status_code=502), max_retries=1)

    with pytest.raises(ResourceFetchError) as exc_info:
        source.fetch_page_image("d", 1)

    assert exc_info.value.page_number == 1
    assert "HTTP 502" in str(exc_info.value)


def test_client_errors_are_not_retried() -> None:
    source = _source(_Response(status_code=404), max_retries=3)

    with pytest.raises(ResourceFetchError):
        source.fetch_page_layout("d", 2)
    assert len(source.session.calls) == 1


def test_invalid_json_is_a_fetch_error() -> None:
    source = _source(_Response(content=b"<html>"))

    with pytest.raises(ResourceFetchError, match="invalid JSON"):
        source.fetch_page_layout("d", 1)


def test_immediate_loader_reports_errors_through_callback() -> None:
    loader = ImmediateResourceLoader(_source(_Response(status_code=404)))
    done, errors = [], []

    loader.load_page_image("d", 1, done.append, errors.append)

    assert done == []
    assert isinstance(errors[0], ResourceFetchError)
    loader.shutdown()
    assert loader.source.session.closed


def test_fetch_worker_normalizes_unexpected_errors() -> None:
    def fetch():
        raise RuntimeError("disk on fire")

    worker = FetchWorker(fetch, "page image", 4)
    failures = []
    worker.failed.connect(failures.append)

    worker.run()

    assert isinstance(failures[0], ResourceFetchError)
    assert failures[0].page_number == 4


# ===== Local PDF =====


@pytest.fixture
def sample_pdf(tmp_path):
    path = tmp_path / "sample.pdf"
    doc = fitz.open()
    page = doc.new_page(width=200, height=300)
    page.insert_text((20, 50), "hello world", fontsize=12)
    doc.new_page(width=200, height=300)
    doc.save(str(path))
    doc.close()
    return str(path)


def test_pdf_source_serves_a_document_bundle(sample_pdf) -> None:
    source = PdfDocumentSource(zoom=1.0)
    document_id = source.register(sample_pdf)
    loader = ImmediateResourceLoader(source)
    bundles = []

    loader.load_document(document_id, bundles.append, pytest.fail)

    bundle = bundles[0]
    assert document_id == "sample"
    assert bundle.info.display_title == "sample.pdf"
    assert [p.span for p in bundle.pages] == [(0, 11), (12, 12)]
    assert bundle.pages[0].aspect_ratio == 1.5
    loader.shutdown()


def test_pdf_source_layout_and_image(sample_pdf) -> None:
    source = PdfDocumentSource(zoom=1.0)
    document_id = source.register(sample_pdf, document_id="local")

    layout = parse_page_layout(source.fetch_page_layout(document_id, 1))
    image = source.fetch_page_image(document_id, 1)

    assert [w.text for w in layout.words] == ["hello", "world"]
    assert [w.span for w in layout.words] == [(0, 4), (6, 10)]
    assert image.startswith(b"\x89PNG")
    with pytest.raises(ResourceFetchError):
        source.fetch_page_layout(document_id, 3)
    source.close()


def test_pdf_source_unknown_document() -> None:
    with pytest.raises(ResourceFetchError, match="unknown document"):
        PdfDocumentSource().fetch_document_meta("missing")
