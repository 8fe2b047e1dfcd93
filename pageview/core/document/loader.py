"""
Asynchronous resource loading on top of a blocking DocumentSource.

Completion callbacks are always invoked on the thread that owns the viewer,
so page state transitions stay single-threaded.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Set

from PyQt5.QtCore import QThread, pyqtSignal

from pageview.core.layout.models import DocumentInfo, PageSummary
from pageview.errors import PageViewError, ResourceFetchError

from .sources import DocumentSource

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[PageViewError], None]


@dataclass
class DocumentBundle:
    """Document metadata plus the page summaries used to seed pages."""

    info: DocumentInfo
    pages: List[PageSummary]


class ResourceLoader(ABC):
    """Callback-style access to document resources."""

    def __init__(self, source: DocumentSource):
        self.source = source

    def _fetch_document(self, document_id: str) -> DocumentBundle:
        return DocumentBundle(
            info=self.source.fetch_document_meta(document_id),
            pages=self.source.fetch_page_summaries(document_id),
        )

    def load_document(
        self, document_id: str, on_done: SuccessCallback, on_error: ErrorCallback
    ) -> None:
        self._submit(
            lambda: self._fetch_document(document_id), on_done, on_error, "document"
        )

    def load_page_image(
        self,
        document_id: str,
        page_number: int,
        on_done: SuccessCallback,
        on_error: ErrorCallback,
    ) -> None:
        self._submit(
            lambda: self.source.fetch_page_image(document_id, page_number),
            on_done,
            on_error,
            "page image",
            page_number,
        )

    def load_page_layout(
        self,
        document_id: str,
        page_number: int,
        on_done: SuccessCallback,
        on_error: ErrorCallback,
    ) -> None:
        self._submit(
            lambda: self.source.fetch_page_layout(document_id, page_number),
            on_done,
            on_error,
            "page layout",
            page_number,
        )

    @abstractmethod
    def _submit(
        self,
        fetch: Callable[[], Any],
        on_done: SuccessCallback,
        on_error: ErrorCallback,
        resource: str,
        page_number: Optional[int] = None,
    ) -> None:
        ...

    def shutdown(self) -> None:
        self.source.close()


def _run_fetch(fetch, resource, page_number):
    """Run a fetch, normalizing unexpected failures to ResourceFetchError."""
    try:
        return fetch(), None
    except PageViewError as e:
        return None, e
    except Exception as e:
        logger.exception("Unexpected error fetching %s", resource)
        return None, ResourceFetchError(resource, page_number, str(e))


class ImmediateResourceLoader(ResourceLoader):
    """Runs every fetch synchronously on the calling thread."""

    def _submit(self, fetch, on_done, on_error, resource, page_number=None):
        result, error = _run_fetch(fetch, resource, page_number)
        if error is not None:
            on_error(error)
        else:
            on_done(result)


class FetchWorker(QThread):
    """Worker thread running one blocking fetch."""

    # Signals
    succeeded = pyqtSignal(object)  # fetched resource
    failed = pyqtSignal(object)  # PageViewError

    def __init__(self, fetch, resource: str, page_number: Optional[int] = None, parent=None):
        super().__init__(parent)
        self._fetch = fetch
        self._resource = resource
        self._page_number = page_number

    def run(self):
        """Execute the fetch in background thread."""
        result, error = _run_fetch(self._fetch, self._resource, self._page_number)
        if error is not None:
            self.failed.emit(error)
        else:
            self.succeeded.emit(result)


class ThreadedResourceLoader(ResourceLoader):
    """
    Runs each fetch on its own QThread.

    Results come back through queued signals and are delivered on the GUI
    thread. There is no cancellation: a started worker runs to completion.
    """

    def __init__(self, source: DocumentSource):
        super().__init__(source)
        self._workers: Set[FetchWorker] = set()

    def _submit(self, fetch, on_done, on_error, resource, page_number=None):
        worker = FetchWorker(fetch, resource, page_number)
        worker.succeeded.connect(on_done)
        worker.failed.connect(on_error)
        worker.finished.connect(lambda: self._release(worker))
        self._workers.add(worker)
        worker.start()

    def _release(self, worker: FetchWorker):
        self._workers.discard(worker)
        worker.deleteLater()

    @property
    def pending(self) -> int:
        return len(self._workers)

    def shutdown(self) -> None:
        for worker in list(self._workers):
            worker.wait()
        self._workers.clear()
        super().shutdown()
