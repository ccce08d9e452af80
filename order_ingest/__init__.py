"""
ERP Order Ingestion.

Turns purchase orders exported by an ERP, as a two-sheet spreadsheet, a
semicolon-delimited sectioned text file or a paginated PDF, into one
canonical order model.

Usage:
    from order_ingest import FormatDispatcher

    order = FormatDispatcher().parse("PEDIDO_138768.pdf")
    print(order.to_json())
"""

from order_ingest.dispatcher import DispatchResult, FormatDispatcher
from order_ingest.model import (
    ExtractionQuality,
    OrderHeader,
    OrderLineItem,
    ParsedOrder,
    SourceType,
)
from order_ingest.postprocessor import validate_order

__version__ = "1.0.0"

__all__ = [
    'FormatDispatcher',
    'DispatchResult',
    'ExtractionQuality',
    'OrderHeader',
    'OrderLineItem',
    'ParsedOrder',
    'SourceType',
    'validate_order',
    '__version__',
]
