"""
Document Decoding Module for the order ingestion library.

This module provides:
    - DocumentDecoder: interface for page-text decoders
    - PyMuPDFDecoder / PdfPlumberDecoder: PDF backends
    - InMemoryPages: already extracted page texts
    - get_decoder: backend factory honouring configuration
"""

from .backends import PdfPlumberDecoder, PyMuPDFDecoder, get_decoder
from .base import DecodedPages, DocumentDecoder, InMemoryPages, PageSource

__all__ = [
    'DocumentDecoder',
    'PageSource',
    'DecodedPages',
    'InMemoryPages',
    'PyMuPDFDecoder',
    'PdfPlumberDecoder',
    'get_decoder',
]
