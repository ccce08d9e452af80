"""
Spreadsheet Extractor Module.

Reads the two-sheet workbook exported by the ERP:
    - Sheet 1: one title row, then one row of order-level fields
    - Sheet 2: one title row, then one row per line item

Columns are mapped by position; the title rows are never interpreted.
"""

import zipfile
from datetime import date, datetime
from pathlib import Path
from typing import Any, BinaryIO, List, Optional, Sequence, Union

from openpyxl import load_workbook
from openpyxl.utils.datetime import from_excel
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook

from config import get_config
from order_ingest.extractors.base import OrderExtractor
from order_ingest.model.order import (
    OrderHeader,
    OrderLineItem,
    ParsedOrder,
    PRIORITIES,
    SourceType,
)
from order_ingest.postprocessor.normalizers import (
    clean_document_number,
    parse_date,
    parse_locale_number,
    strip_regulatory_text,
)
from order_ingest.utils.exceptions import CorruptedFileError, StructuralError
from order_ingest.utils.logger import get_logger

logger = get_logger(__name__)


# Sheet 1, row 2
HEADER_COLUMNS = (
    'order_number',      # 0
    'customer_name',     # 1
    'customer_document', # 2
    'delivery_address',  # 3
    'municipality',      # 4
    'issue_date',        # 5
    'delivery_date',     # 6
    'shipping_date',     # 7
    'carrier',           # 8
    'freight_type',      # 9
    'freight_value',     # 10
    'operation_code',    # 11
    'executive_name',    # 12
    'notes',             # 13
    'priority',          # 14
)

# Sheet 2, rows 2..n
ITEM_COLUMNS = (
    'item_number',   # 0
    'item_code',     # 1
    'description',   # 2
    'quantity',      # 3
    'unit',          # 4
    'warehouse',     # 5
    'delivery_date', # 6
    'source_type',   # 7
    'unit_price',    # 8
    'discount',      # 9
    'ipi_percent',   # 10
    'icms_percent',  # 11
    'total_value',   # 12
)

MALFORMED_WORKBOOK = "malformed input: expected header and items sheets"


def _cell(row: Sequence[Any], index: int) -> Any:
    if index < len(row):
        return row[index]
    return None


def _text(value: Any) -> str:
    """Render a cell as text; integral floats lose their '.0'."""
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    return str(value).strip()


def _date(value: Any) -> Optional[date]:
    """Date cells arrive as datetimes, Excel serial numbers or text."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError):
            return None
        return converted.date() if isinstance(converted, datetime) else None
    return parse_date(value)


def _optional_number(value: Any) -> Optional[float]:
    if value is None or _text(value) == '':
        return None
    return parse_locale_number(value)


class SpreadsheetExtractor(OrderExtractor):
    """
    Extractor for the two-sheet ERP workbook.

    Attributes:
        default_unit: Unit used when the unit column is blank
        default_warehouse: Warehouse used when the warehouse column is blank

    Example:
        >>> extractor = SpreadsheetExtractor()
        >>> order = extractor.extract("PEDIDO_138768.xlsx")
        >>> print(order.header.order_number, len(order.items))
    """

    format_name = "spreadsheet"
    extensions = frozenset(['.xlsx', '.xlsm'])

    def __init__(self) -> None:
        self.extensions = frozenset(
            get_config("input.extensions.spreadsheet", sorted(self.extensions))
        )
        self.default_unit = get_config("extraction.defaults.spreadsheet_unit", "PC")
        self.default_warehouse = get_config("extraction.defaults.warehouse", "11")

    def extract(self, source: Union[str, Path, BinaryIO], **options) -> ParsedOrder:
        """
        Open a workbook and extract the order it contains.

        Args:
            source: Path or binary file object of an .xlsx workbook.

        Returns:
            ParsedOrder with header and items.

        Raises:
            CorruptedFileError: If the workbook cannot be opened.
            StructuralError: If the workbook lacks the header or items sheet.
        """
        name = str(source) if isinstance(source, (str, Path)) else getattr(source, 'name', '<stream>')
        try:
            workbook = load_workbook(source, read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
            logger.error(f"Failed to open workbook {name}: {e}")
            raise CorruptedFileError(name, str(e))

        try:
            order = self.extract_workbook(workbook)
        finally:
            workbook.close()

        order.source_file = name if isinstance(source, (str, Path)) else None
        return order

    def extract_workbook(self, workbook: Workbook) -> ParsedOrder:
        """
        Extract an order from an already loaded workbook.

        Raises:
            StructuralError: If there are fewer than two sheets or the
                header sheet has no data row.
        """
        sheets = workbook.worksheets
        if len(sheets) < 2:
            logger.error(f"Workbook has {len(sheets)} sheet(s), expected 2")
            raise StructuralError(MALFORMED_WORKBOOK, {"sheets": len(sheets)})

        header_rows = list(sheets[0].iter_rows(values_only=True))
        if len(header_rows) < 2:
            logger.error("Header sheet has no data row")
            raise StructuralError(MALFORMED_WORKBOOK, {"header_rows": len(header_rows)})

        header = self._parse_header(header_rows[1])
        item_rows = list(sheets[1].iter_rows(values_only=True))[1:]
        items = self._parse_items(item_rows)

        order = self.build_order(header, items)
        logger.info(
            f"Spreadsheet order {header.order_number or 'N/A'}: "
            f"{len(items)} item(s) from {len(item_rows)} row(s)"
        )
        return order

    def _parse_header(self, row: Sequence[Any]) -> OrderHeader:
        values = {name: _cell(row, i) for i, name in enumerate(HEADER_COLUMNS)}

        priority = _text(values['priority']).lower() or 'normal'
        if priority not in PRIORITIES:
            logger.debug(f"Unknown priority {priority!r}, using 'normal'")
            priority = 'normal'

        return OrderHeader(
            order_number=_text(values['order_number']),
            customer_name=_text(values['customer_name']),
            customer_document=clean_document_number(_text(values['customer_document'])),
            delivery_address=_text(values['delivery_address']),
            municipality=_text(values['municipality']),
            issue_date=_date(values['issue_date']),
            delivery_date=_date(values['delivery_date']),
            shipping_date=_date(values['shipping_date']),
            carrier=_text(values['carrier']),
            freight_type=_text(values['freight_type']),
            freight_value=parse_locale_number(values['freight_value']),
            operation_code=_text(values['operation_code']),
            executive_name=_text(values['executive_name']),
            notes=_text(values['notes']),
            priority=priority,
        )

    def _parse_items(self, rows: List[Sequence[Any]]) -> List[OrderLineItem]:
        items = []
        for index, row in enumerate(rows, 1):
            if not row or all(cell is None for cell in row):
                continue

            values = {name: _cell(row, i) for i, name in enumerate(ITEM_COLUMNS)}
            item = OrderLineItem(
                item_number=_text(values['item_number']) or str(index),
                item_code=_text(values['item_code']),
                description=strip_regulatory_text(_text(values['description'])),
                quantity=parse_locale_number(values['quantity']),
                unit=_text(values['unit']) or self.default_unit,
                warehouse=_text(values['warehouse']) or self.default_warehouse,
                delivery_date=_date(values['delivery_date']),
                source_type=SourceType.parse(values['source_type']),
                unit_price=parse_locale_number(values['unit_price']),
                discount=parse_locale_number(values['discount']),
                ipi_percent=_optional_number(values['ipi_percent']),
                icms_percent=_optional_number(values['icms_percent']),
                total_value=parse_locale_number(values['total_value']),
            )
            if self.keep_item(item):
                items.append(item)
        return items
