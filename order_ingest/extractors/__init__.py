"""
Extractors Module for the order ingestion library.

This module provides one extractor per ERP export shape:
    - SpreadsheetExtractor: two-sheet workbook (header sheet, items sheet)
    - DelimitedTextExtractor: semicolon-delimited sectioned text
    - DocumentTextExtractor: per-page text of paginated documents
"""

from .base import OrderExtractor
from .cost_allocation import BusinessAreaClassifier, CostAllocationResolver
from .delimited_text import DelimitedTextExtractor, SectionParser
from .document_text import DocumentSession, DocumentTextExtractor, HeaderFieldMatcher
from .item_strategies import (
    ItemStrategy,
    MinimalStrategy,
    RelaxedStrategy,
    StrictTableStrategy,
    default_strategies,
)
from .spreadsheet import SpreadsheetExtractor

__all__ = [
    'OrderExtractor',
    'BusinessAreaClassifier',
    'CostAllocationResolver',
    'DelimitedTextExtractor',
    'SectionParser',
    'DocumentSession',
    'DocumentTextExtractor',
    'HeaderFieldMatcher',
    'ItemStrategy',
    'MinimalStrategy',
    'RelaxedStrategy',
    'StrictTableStrategy',
    'default_strategies',
    'SpreadsheetExtractor',
]
