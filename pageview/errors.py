"""
Error types raised by the page viewer.
"""

from typing import Optional


class PageViewError(Exception):
    """Base class for viewer errors."""


class NavigationError(PageViewError):
    """A character offset is not covered by any page span."""

    def __init__(self, char_index: int):
        super().__init__(f"charIndex {char_index} out of bounds")
        self.char_index = char_index


class MalformedLayoutError(PageViewError):
    """A raw layout record is structurally unusable."""


class ResourceFetchError(PageViewError):
    """Fetching a document or page resource failed."""

    def __init__(
        self, resource: str, page_number: Optional[int] = None, reason: str = ""
    ):
        where = f" for page {page_number}" if page_number is not None else ""
        message = f"Failed to fetch {resource}{where}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.resource = resource
        self.page_number = page_number
        self.reason = reason
