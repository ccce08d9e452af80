"""
Canonical order model shared by every extractor.
"""

from .order import (
    OrderHeader,
    OrderLineItem,
    ExtractionQuality,
    ParsedOrder,
    SourceType,
    PRIORITIES,
)

__all__ = [
    'OrderHeader',
    'OrderLineItem',
    'ExtractionQuality',
    'ParsedOrder',
    'SourceType',
    'PRIORITIES',
]
