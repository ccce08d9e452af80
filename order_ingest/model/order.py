"""
Canonical Order Data Classes.

Every extractor, whatever the input format, produces the same structures:
an ``OrderHeader``, an ordered list of ``OrderLineItem``, and (for the
paginated-document path) an ``ExtractionQuality`` summary, bundled in a
``ParsedOrder``.

Dates are ``datetime.date`` values. Serialisation helpers render them as
ISO strings so results can be logged or handed to other services as JSON.
"""

import json
from dataclasses import dataclass, field, fields, asdict
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class SourceType(str, Enum):
    """Where a line item is sourced from."""
    IN_STOCK = "in_stock"
    PRODUCTION = "production"
    PURCHASE_REQUIRED = "purchase_required"

    @classmethod
    def parse(cls, value: Any, default: 'SourceType' = None) -> 'SourceType':
        """
        Convert a raw cell value to a SourceType.

        Unknown values fall back to ``default`` (IN_STOCK when omitted).
        """
        default = default or cls.IN_STOCK
        if isinstance(value, cls):
            return value
        text = str(value or '').strip().lower()
        for member in cls:
            if member.value == text:
                return member
        return default


PRIORITIES = ('low', 'normal', 'high')


def _date_to_str(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _date_from_str(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


@dataclass
class OrderHeader:
    """
    Order-level data shared by all line items.

    Attributes:
        order_number: ERP order identifier
        customer_name: Customer name without ERP customer/store codes
        customer_document: Tax ID (CNPJ/CPF) with punctuation removed
        customer_phone: Phone in WhatsApp form (digits with country code)
        delivery_address: Street, neighbourhood and postal code
        municipality: City, usually with "/UF" region suffix
        issue_date: Date the order was issued
        delivery_date: Promised delivery date (computed when absent)
        shipping_date: Planned shipping date
        carrier: Carrier name
        freight_type: Freight modality code (CIF, FOB, ...)
        freight_value: Freight amount
        operation_code: ERP operation (TES) code
        executive_name: Sales executive / representative
        cost_center: Cost-allocation center
        account_item: Cost-allocation accounting item
        business_area: Coarse area derived from the cost center
        notes: Free-text observations
        priority: low | normal | high
    """
    order_number: str = ""
    customer_name: str = ""
    customer_document: str = ""
    customer_phone: Optional[str] = None
    delivery_address: str = ""
    municipality: str = ""
    issue_date: Optional[date] = None
    delivery_date: Optional[date] = None
    shipping_date: Optional[date] = None
    carrier: str = ""
    freight_type: str = ""
    freight_value: float = 0.0
    operation_code: str = ""
    executive_name: str = ""
    cost_center: str = ""
    account_item: str = ""
    business_area: str = ""
    notes: str = ""
    priority: str = "normal"

    DATE_FIELDS = ('issue_date', 'delivery_date', 'shipping_date')

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for name in self.DATE_FIELDS:
            data[name] = _date_to_str(data[name])
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OrderHeader':
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for name in cls.DATE_FIELDS:
            if name in values:
                values[name] = _date_from_str(values[name])
        return cls(**values)


@dataclass
class OrderLineItem:
    """
    One line of an order.

    Attributes:
        item_number: Sequence number within the order
        item_code: Product code (required)
        description: Product description, regulatory text removed
        quantity: Requested quantity, always > 0
        unit: Unit of measure
        warehouse: Warehouse/location code
        delivery_date: Item delivery date (inherits the header's)
        source_type: Where the item is sourced from
        unit_price: Price per unit
        discount: Discount value or percentage as printed
        ipi_percent: IPI tax percentage
        icms_percent: ICMS tax percentage
        total_value: Line total
        ncm_code: Mercosur product classification code
        material_type: ERP material-type code (PA, ME, MP, ...)
    """
    item_number: str
    item_code: str
    description: str = ""
    quantity: float = 0.0
    unit: str = "UN"
    warehouse: str = ""
    delivery_date: Optional[date] = None
    source_type: SourceType = SourceType.IN_STOCK
    unit_price: float = 0.0
    discount: float = 0.0
    ipi_percent: Optional[float] = None
    icms_percent: Optional[float] = None
    total_value: float = 0.0
    ncm_code: Optional[str] = None
    material_type: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        """Identity of the item within one order."""
        return (self.item_code, self.item_number)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['delivery_date'] = _date_to_str(self.delivery_date)
        data['source_type'] = self.source_type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OrderLineItem':
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if 'delivery_date' in values:
            values['delivery_date'] = _date_from_str(values['delivery_date'])
        if 'source_type' in values:
            values['source_type'] = SourceType.parse(values['source_type'])
        return cls(**values)


@dataclass
class ExtractionQuality:
    """
    Completeness summary for a paginated-document extraction.

    Used as a confidence signal: a low ``completeness`` tells the caller
    the order should be reviewed by a person before it is accepted.
    """
    order_number: bool = False
    customer_name: bool = False
    items_count: int = 0
    items_with_price: int = 0
    total_fields: int = 11
    extracted_fields: int = 0
    issues: List[str] = field(default_factory=list)

    @property
    def completeness(self) -> float:
        """Fraction of the expected header fields that were found (0-1)."""
        if self.total_fields <= 0:
            return 0.0
        return self.extracted_fields / self.total_fields

    @property
    def level(self) -> str:
        if self.completeness >= 0.8:
            return "good"
        if self.completeness >= 0.5:
            return "medium"
        return "poor"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['completeness'] = round(self.completeness, 4)
        data['level'] = self.level
        return data


@dataclass
class ParsedOrder:
    """
    Result of one parse call.

    Example:
        >>> order = DelimitedTextExtractor().extract_text(text)
        >>> order.header.order_number
        '12345'
        >>> [item.item_code for item in order.items]
        ['052289']
    """
    header: OrderHeader = field(default_factory=OrderHeader)
    items: List[OrderLineItem] = field(default_factory=list)
    quality: Optional[ExtractionQuality] = None
    source_format: Optional[str] = None
    source_file: Optional[str] = None
    pages_processed: int = 0
    warnings: List[str] = field(default_factory=list)

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'header': self.header.to_dict(),
            'items': [item.to_dict() for item in self.items],
            'quality': self.quality.to_dict() if self.quality else None,
            'source_format': self.source_format,
            'source_file': self.source_file,
            'pages_processed': self.pages_processed,
            'warnings': list(self.warnings),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def __repr__(self) -> str:
        return (
            f"ParsedOrder("
            f"order={self.header.order_number or 'N/A'}, "
            f"customer={self.header.customer_name or 'N/A'}, "
            f"items={len(self.items)}, "
            f"format={self.source_format})"
        )
