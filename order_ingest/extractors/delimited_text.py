"""
Delimited Text Extractor Module.

Parses the semicolon-delimited, sectioned text export of the ERP. Each
line is one record; its first field names the section and the remaining
fields are positional:

    cabecalho;138768;01/03/2024
    informacoes gerais;005161 - ACME LTDA;12.345.678/0001-90;...
    rateio;SSM - SUPORTE;PROJETO X
    transporte;TRANSLOG;CIF;150,00
    entrega;005161 01 ACME;RUA A, 10;CENTRO;PORTO ALEGRE;RS;90000-000
    item;1;052289;PA;TINTA ACRILICA;2,00;32091010;100,00;200,00;210,00;11;501 - VENDA

Every line becomes a typed section value first; the extractor then folds
the sections into an order one at a time.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Type, Union

from config import get_config
from order_ingest.extractors.base import OrderExtractor
from order_ingest.extractors.cost_allocation import CostAllocationResolver
from order_ingest.model.order import OrderHeader, OrderLineItem, ParsedOrder, SourceType
from order_ingest.postprocessor.normalizers import (
    clean_document_number,
    format_whatsapp,
    parse_date,
    parse_locale_number,
    strip_regulatory_text,
)
from order_ingest.utils.exceptions import StructuralError
from order_ingest.utils.helpers import fold_accents, read_text
from order_ingest.utils.logger import get_logger

logger = get_logger(__name__)


FIELD_SEPARATOR = ';'

DEFAULT_SECTION_ALIASES = {
    'header': 'header',
    'cabecalho': 'header',
    'customer info': 'customer_info',
    'informacoes gerais': 'customer_info',
    'cost allocation': 'cost_allocation',
    'rateio': 'cost_allocation',
    'shipping': 'shipping',
    'transporte': 'shipping',
    'delivery address': 'delivery_address',
    'entrega': 'delivery_address',
    'installation': 'installation',
    'instalacao': 'installation',
    'item': 'item',
    'line item': 'item',
}

DEFAULT_MATERIAL_TYPES = {
    'PA': 'in_stock',
    'ME': 'in_stock',
    'BN': 'in_stock',
    'MP': 'production',
    'PI': 'production',
    'MC': 'purchase_required',
}

CUSTOMER_CODE_PATTERN = re.compile(r'^(\d+)\s*-\s*(.+)$')
AREA_CODE_PATTERN = re.compile(r'\(\s*\d{2}\s*\)')
LONG_DIGIT_RUN = re.compile(r'\d{10,}')
TES_CODE_PATTERN = re.compile(r'^(\d+)')

# Column the ERP usually puts the phone in; scanned first
CUSTOMER_PHONE_FIELD = 6
STATE_REGISTRATION_FIELD = 5
# Name, tax ID and the record prefix come before any phone candidate
CUSTOMER_TRAILING_FIELDS = 3


def _field(fields: List[str], index: int) -> str:
    return fields[index] if index < len(fields) else ''


def _is_phone(value: str, pattern: re.Pattern) -> bool:
    """A phone matches ``pattern`` and still has ten digits once cleaned."""
    compact = re.sub(r'[\s.\-]', '', value)
    return bool(pattern.search(compact)) and len(re.sub(r'\D', '', value)) >= 10


# =============================================================================
# SECTIONS
# =============================================================================

@dataclass(frozen=True)
class HeaderSection:
    order_number: str
    issue_date: Optional[date]
    delivery_date: Optional[date] = None

    @classmethod
    def from_fields(cls, fields: List[str]) -> 'HeaderSection':
        return cls(
            order_number=_field(fields, 1),
            issue_date=parse_date(_field(fields, 2)),
            delivery_date=parse_date(_field(fields, 3)),
        )


@dataclass(frozen=True)
class CustomerInfoSection:
    customer_name: str
    customer_document: str
    phone: Optional[str] = None
    notes: str = ''

    @classmethod
    def from_fields(cls, fields: List[str]) -> 'CustomerInfoSection':
        name = _field(fields, 1)
        match = CUSTOMER_CODE_PATTERN.match(name)
        if match:
            name = match.group(2).strip()

        notes = []
        if _field(fields, 9):
            notes.append(f"Garantia: {fields[9]}")
        if _field(fields, 10):
            notes.append(fields[10])

        return cls(
            customer_name=name,
            customer_document=clean_document_number(_field(fields, 2)),
            phone=format_whatsapp(cls.find_phone(fields)),
            notes=' | '.join(notes),
        )

    @staticmethod
    def find_phone(fields: List[str]) -> Optional[str]:
        """
        Locate the phone among the customer fields.

        The usual column wins whenever it holds a phone. The phone column
        moves between ERP versions, so the other trailing fields are scanned
        next: an "(NN)" area code wins over a bare run of ten or more digits.
        The state registration column is never a phone.
        """
        preferred = _field(fields, CUSTOMER_PHONE_FIELD)
        if _is_phone(preferred, AREA_CODE_PATTERN) or _is_phone(preferred, LONG_DIGIT_RUN):
            return preferred

        candidates = [
            value for index, value in enumerate(fields)
            if index >= CUSTOMER_TRAILING_FIELDS
            and index not in (STATE_REGISTRATION_FIELD, CUSTOMER_PHONE_FIELD)
        ]
        for pattern in (AREA_CODE_PATTERN, LONG_DIGIT_RUN):
            for value in candidates:
                if _is_phone(value, pattern):
                    return value
        return None


@dataclass(frozen=True)
class CostAllocationSection:
    text: str
    first: str = ''
    second: str = ''

    @classmethod
    def from_fields(cls, fields: List[str]) -> 'CostAllocationSection':
        return cls(
            text=FIELD_SEPARATOR.join(fields[1:]),
            first=_field(fields, 1),
            second=_field(fields, 2),
        )


@dataclass(frozen=True)
class ShippingSection:
    carrier: str
    freight_type: str
    freight_value: float = 0.0

    @classmethod
    def from_fields(cls, fields: List[str]) -> 'ShippingSection':
        return cls(
            carrier=_field(fields, 1),
            freight_type=_field(fields, 2),
            freight_value=parse_locale_number(_field(fields, 3)),
        )


@dataclass(frozen=True)
class DeliveryAddressSection:
    street: str
    neighbourhood: str = ''
    city: str = ''
    state: str = ''
    postal_code: str = ''

    @classmethod
    def from_fields(cls, fields: List[str]) -> 'DeliveryAddressSection':
        # Field 1 repeats the customer code and name
        return cls(
            street=_field(fields, 2),
            neighbourhood=_field(fields, 3),
            city=_field(fields, 4),
            state=_field(fields, 5),
            postal_code=_field(fields, 6),
        )

    @property
    def address(self) -> str:
        address = ', '.join(part for part in (self.street, self.neighbourhood) if part)
        if self.postal_code:
            address += f" - CEP: {self.postal_code}"
        return address

    @property
    def municipality(self) -> str:
        if self.state:
            return f"{self.city}/{self.state}"
        return self.city


@dataclass(frozen=True)
class InstallationSection:
    fields: Tuple[str, ...]

    @classmethod
    def from_fields(cls, fields: List[str]) -> 'InstallationSection':
        return cls(fields=tuple(fields[1:]))


@dataclass(frozen=True)
class ItemSection:
    item_number: str
    item_code: str
    material_type: str
    description: str
    quantity: float
    ncm_code: str
    unit_price: float
    total_value: float
    total_with_ipi: float
    warehouse: str
    tes_operation: str

    @classmethod
    def from_fields(cls, fields: List[str]) -> 'ItemSection':
        return cls(
            item_number=_field(fields, 1),
            item_code=_field(fields, 2),
            material_type=_field(fields, 3).upper(),
            description=_field(fields, 4),
            quantity=parse_locale_number(_field(fields, 5)),
            ncm_code=_field(fields, 6),
            unit_price=parse_locale_number(_field(fields, 7)),
            total_value=parse_locale_number(_field(fields, 8)),
            total_with_ipi=parse_locale_number(_field(fields, 9)),
            warehouse=_field(fields, 10),
            tes_operation=_field(fields, 11),
        )

    @property
    def ipi_percent(self) -> Optional[float]:
        """IPI rate implied by the totals with and without the tax."""
        if self.total_value > 0 and self.total_with_ipi > self.total_value:
            return (self.total_with_ipi - self.total_value) / self.total_value * 100
        return None


@dataclass(frozen=True)
class UnknownSection:
    prefix: str
    fields: Tuple[str, ...] = field(default_factory=tuple)


Section = Union[
    HeaderSection,
    CustomerInfoSection,
    CostAllocationSection,
    ShippingSection,
    DeliveryAddressSection,
    InstallationSection,
    ItemSection,
    UnknownSection,
]

SECTION_TYPES: Dict[str, Type] = {
    'header': HeaderSection,
    'customer_info': CustomerInfoSection,
    'cost_allocation': CostAllocationSection,
    'shipping': ShippingSection,
    'delivery_address': DeliveryAddressSection,
    'installation': InstallationSection,
    'item': ItemSection,
}


class SectionParser:
    """
    Turns one delimited line into a typed section.

    Section names are compared accent-folded and lowercased against the
    alias table, so "Cabeçalho", "CABECALHO" and "header" all select the
    header section.

    Example:
        >>> SectionParser().parse("header;12345;01/03/2024")
        HeaderSection(order_number='12345', issue_date=datetime.date(2024, 3, 1), delivery_date=None)
    """

    def __init__(self, aliases: Optional[Dict[str, str]] = None) -> None:
        if aliases is None:
            aliases = get_config("extraction.sections", DEFAULT_SECTION_ALIASES)
        self.aliases = {fold_accents(name): kind for name, kind in aliases.items()}

    def parse(self, line: str) -> Section:
        fields = [part.strip() for part in line.split(FIELD_SEPARATOR)]
        prefix = fold_accents(fields[0])

        kind = self.aliases.get(prefix)
        section_type = SECTION_TYPES.get(kind)
        if section_type is None:
            return UnknownSection(prefix=fields[0], fields=tuple(fields[1:]))
        return section_type.from_fields(fields)


# =============================================================================
# EXTRACTOR
# =============================================================================

@dataclass
class _OrderDraft:
    """Per-call accumulator."""
    header: OrderHeader = field(default_factory=OrderHeader)
    items: List[OrderLineItem] = field(default_factory=list)


class DelimitedTextExtractor(OrderExtractor):
    """
    Extractor for the semicolon-delimited sectioned text export.

    Attributes:
        section_parser: Line to section converter
        cost_allocation: Cost center / accounting item sub-extractors
        material_types: Material-type code to source-type map

    Example:
        >>> extractor = DelimitedTextExtractor()
        >>> order = extractor.extract_text("header;12345;01/03/2024\\nitem;1;052289;PA;TINTA;2")
        >>> order.header.delivery_date
        datetime.date(2024, 3, 15)
    """

    format_name = "delimited"
    extensions = frozenset(['.txt', '.csv'])

    def __init__(
        self,
        section_parser: Optional[SectionParser] = None,
        cost_allocation: Optional[CostAllocationResolver] = None
    ) -> None:
        self.extensions = frozenset(
            get_config("input.extensions.delimited", sorted(self.extensions))
        )
        self.encodings = get_config("input.text_encodings", ["utf-8", "cp1252", "latin-1"])
        self.default_unit = get_config("extraction.defaults.delimited_unit", "UN")
        self.default_warehouse = get_config("extraction.defaults.warehouse", "11")
        self.material_types = {
            code.upper(): SourceType.parse(value)
            for code, value in get_config(
                "extraction.material_types", DEFAULT_MATERIAL_TYPES
            ).items()
        }

        self.section_parser = section_parser or SectionParser()
        self.cost_allocation = cost_allocation or CostAllocationResolver()

        self._handlers: Dict[Type, Callable[[_OrderDraft, Section], None]] = {
            HeaderSection: self._apply_header,
            CustomerInfoSection: self._apply_customer_info,
            CostAllocationSection: self._apply_cost_allocation,
            ShippingSection: self._apply_shipping,
            DeliveryAddressSection: self._apply_delivery_address,
            InstallationSection: self._apply_installation,
            ItemSection: self._apply_item,
            UnknownSection: self._apply_unknown,
        }

    def extract(self, source: Union[str, Path], **options) -> ParsedOrder:
        """
        Read a text export from disk and extract its order.

        Raises:
            StructuralError: If the file has no records.
        """
        text = read_text(source, self.encodings)
        order = self.extract_text(text)
        order.source_file = str(source)
        return order

    def extract_text(self, text: str) -> ParsedOrder:
        """
        Extract an order from the text of a delimited export.

        Args:
            text: Full export content.

        Returns:
            ParsedOrder with header and items.

        Raises:
            StructuralError: If ``text`` has no non-blank lines.
        """
        lines = [line.strip() for line in text.splitlines()]
        lines = [line for line in lines if line]
        if not lines:
            raise StructuralError("malformed input: no records found")

        logger.debug(f"Parsing delimited export ({len(lines)} lines)")

        draft = _OrderDraft()
        for line in lines:
            section = self.section_parser.parse(line)
            self._handlers[type(section)](draft, section)

        order = self.build_order(draft.header, draft.items)
        logger.info(
            f"Delimited order {draft.header.order_number or 'N/A'}: "
            f"{len(draft.items)} item(s)"
        )
        return order

    # -------------------------------------------------------------------------
    # Section handlers
    # -------------------------------------------------------------------------

    def _apply_header(self, draft: _OrderDraft, section: HeaderSection) -> None:
        draft.header.order_number = section.order_number
        draft.header.issue_date = section.issue_date
        if section.delivery_date is not None:
            draft.header.delivery_date = section.delivery_date
        logger.debug(f"Header: order {section.order_number}, issued {section.issue_date}")

    def _apply_customer_info(self, draft: _OrderDraft, section: CustomerInfoSection) -> None:
        header = draft.header
        header.customer_name = section.customer_name
        header.customer_document = section.customer_document
        header.customer_phone = section.phone
        header.notes = section.notes
        logger.debug(f"Customer: {section.customer_name} (phone={section.phone})")

    def _apply_cost_allocation(self, draft: _OrderDraft, section: CostAllocationSection) -> None:
        header = draft.header
        header.cost_center = self.cost_allocation.cost_center(section.text, section.first)
        header.account_item = self.cost_allocation.account_item(section.text, section.second)
        header.business_area = self.cost_allocation.business_area(header.cost_center)
        logger.debug(
            f"Cost allocation: center={header.cost_center!r}, "
            f"account={header.account_item!r}, area={header.business_area}"
        )

    def _apply_shipping(self, draft: _OrderDraft, section: ShippingSection) -> None:
        draft.header.carrier = section.carrier
        draft.header.freight_type = section.freight_type
        draft.header.freight_value = section.freight_value

    def _apply_delivery_address(self, draft: _OrderDraft, section: DeliveryAddressSection) -> None:
        draft.header.delivery_address = section.address
        draft.header.municipality = section.municipality
        logger.debug(f"Delivery: {section.address} ({section.municipality})")

    def _apply_installation(self, draft: _OrderDraft, section: InstallationSection) -> None:
        logger.debug(f"Installation record ignored ({len(section.fields)} fields)")

    def _apply_item(self, draft: _OrderDraft, section: ItemSection) -> None:
        tes_match = TES_CODE_PATTERN.match(section.tes_operation)
        if tes_match and not draft.header.operation_code:
            draft.header.operation_code = section.tes_operation

        item = OrderLineItem(
            item_number=section.item_number or str(len(draft.items) + 1),
            item_code=section.item_code,
            description=strip_regulatory_text(section.description),
            quantity=section.quantity,
            unit=self.default_unit,
            warehouse=section.warehouse or self.default_warehouse,
            source_type=self.material_types.get(section.material_type, SourceType.IN_STOCK),
            unit_price=section.unit_price,
            total_value=section.total_value,
            ipi_percent=section.ipi_percent,
            ncm_code=section.ncm_code or None,
            material_type=section.material_type or None,
        )
        if self.keep_item(item):
            draft.items.append(item)

    def _apply_unknown(self, draft: _OrderDraft, section: UnknownSection) -> None:
        logger.debug(f"Ignoring unknown section {section.prefix!r}")
