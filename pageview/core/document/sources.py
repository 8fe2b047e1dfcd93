"""
Document sources: where document metadata, page images and layouts come from.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from pageview.core.layout.models import DocumentInfo, PageSummary
from pageview.core.layout.parser import parse_page_summaries
from pageview.errors import ResourceFetchError

logger = logging.getLogger(__name__)


class DocumentSource(ABC):
    """Blocking access to a document's resources."""

    @abstractmethod
    def fetch_document_meta(self, document_id: str) -> DocumentInfo:
        ...

    @abstractmethod
    def fetch_page_summaries(self, document_id: str) -> List[PageSummary]:
        ...

    @abstractmethod
    def fetch_page_image(self, document_id: str, page_number: int) -> bytes:
        ...

    @abstractmethod
    def fetch_page_layout(self, document_id: str, page_number: int) -> Any:
        """Return the raw layout record for a page."""

    def close(self) -> None:
        """Release any held resources."""


class HttpDocumentSource(DocumentSource):
    """
    Fetches documents from the document API.

    Endpoints (relative to ``base_url``):
        /api/document/{id}                      metadata
        /api/document/{id}/layout               page summaries
        /api/document/{id}/page/{n}/image       page image bytes
        /api/document/{id}/page/{n}/layout      raw page layout
    """

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 10.0,
        max_retries: int = 2,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = dict(headers or {})
        self.headers["Content-Type"] = "application/json"
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()

    def _url(self, document_id: str, *parts) -> str:
        path = "/".join(str(p) for p in parts)
        url = f"{self.base_url}/api/document/{document_id}"
        return f"{url}/{path}" if path else url

    def _get(self, url: str, resource: str, page_number: Optional[int] = None):
        """GET with retries on connection errors and server errors."""
        attempts = self.max_retries + 1
        last_reason = ""

        for attempt in range(1, attempts + 1):
            try:
                response = self.session.get(
                    url, headers=self.headers, timeout=self.timeout
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                last_reason = str(e)
                logger.warning(
                    "GET %s failed (attempt %d/%d): %s", url, attempt, attempts, e
                )
                continue

            if response.status_code >= 500:
                last_reason = f"HTTP {response.status_code}"
                logger.warning(
                    "GET %s returned %d (attempt %d/%d)",
                    url,
                    response.status_code,
                    attempt,
                    attempts,
                )
                continue

            try:
                response.raise_for_status()
            except requests.HTTPError as e:
                raise ResourceFetchError(resource, page_number, str(e)) from e
            return response

        raise ResourceFetchError(resource, page_number, last_reason)

    def _get_json(self, url: str, resource: str, page_number: Optional[int] = None):
        response = self._get(url, resource, page_number)
        try:
            return response.json()
        except ValueError as e:
            raise ResourceFetchError(resource, page_number, f"invalid JSON: {e}") from e

    def fetch_document_meta(self, document_id: str) -> DocumentInfo:
        data = self._get_json(self._url(document_id), "document")
        meta = data.get("meta") or {}
        return DocumentInfo(
            document_id=document_id,
            title=meta.get("title") or "",
            filename=data.get("filename") or "",
        )

    def fetch_page_summaries(self, document_id: str) -> List[PageSummary]:
        data = self._get_json(self._url(document_id, "layout"), "layout")
        return parse_page_summaries(data)

    def fetch_page_image(self, document_id: str, page_number: int) -> bytes:
        url = self._url(document_id, "page", page_number, "image")
        return self._get(url, "page image", page_number).content

    def fetch_page_layout(self, document_id: str, page_number: int) -> Any:
        url = self._url(document_id, "page", page_number, "layout")
        return self._get_json(url, "page layout", page_number)

    def close(self) -> None:
        self.session.close()
