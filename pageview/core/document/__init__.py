"""
Document sources and asynchronous resource loading.
"""
from .loader import (
    DocumentBundle,
    FetchWorker,
    ImmediateResourceLoader,
    ResourceLoader,
    ThreadedResourceLoader,
)
from .pdf_source import PdfDocumentSource
from .sources import DocumentSource, HttpDocumentSource

__all__ = [
    'DocumentBundle',
    'DocumentSource',
    'FetchWorker',
    'HttpDocumentSource',
    'ImmediateResourceLoader',
    'PdfDocumentSource',
    'ResourceLoader',
    'ThreadedResourceLoader',
]
