"""
Item Strategies Module.

Line-item recognisers for text recovered from paginated order documents,
ordered from most to least demanding:

    - StrictTableStrategy: the pipe-delimited items table
    - RelaxedStrategy: whitespace-separated rows, description looked up by label
    - MinimalStrategy: bare "code quantity unit" triples

The document extractor runs them in order and stops at the first one that
yields items. Each strategy is stateless and returns an empty list when it
recognises nothing.
"""

import re
from abc import ABC, abstractmethod
from typing import List, Optional

from config import get_config
from order_ingest.model.order import OrderLineItem
from order_ingest.postprocessor.normalizers import parse_locale_number, strip_regulatory_text
from order_ingest.utils.logger import get_logger

logger = get_logger(__name__)


# Longer codes first: the alternation takes the first unit that fits
UNITS = r'(?:UN|PÇ|PC|KG|MT|M2|M3|CX|LT|JG|CJ|PR|RL|FD|SC|GL|KT|M|L)'

# Grouped thousands (1.000,00) before plain values (2,00 or 1.5)
QUANTITY = r'(?:\d{1,3}(?:\.\d{3})+(?:,\d{1,4})?|\d{1,6}(?:[.,]\d{1,4})?)'
MONEY = r'(?:\d{1,3}(?:\.\d{3})*,\d{2,4}|\d+,\d{2,4})'


class ItemStrategy(ABC):
    """
    Base class for item recognisers.

    Attributes:
        name: Strategy name reported in logs
        default_unit: Unit used when a row has none
        default_warehouse: Warehouse used when a row has none
    """

    name: str = ""

    def __init__(self) -> None:
        self.default_unit = get_config("extraction.defaults.document_unit", "UN")
        self.default_warehouse = get_config(
            "extraction.defaults.document_warehouse", "PRINCIPAL"
        )

    @abstractmethod
    def extract(self, text: str) -> List[OrderLineItem]:
        """Recognise line items in the items section ``text``."""
        pass

    def build_item(
        self,
        item_number: str,
        item_code: str,
        quantity_text: str,
        unit: Optional[str],
        description: str,
        **amounts
    ) -> Optional[OrderLineItem]:
        """Create an item, or None when the quantity is not positive."""
        quantity = parse_locale_number(quantity_text)
        if not quantity > 0:
            logger.debug(
                f"[{self.name}] skipping {item_code}: unusable quantity {quantity_text!r}"
            )
            return None

        return OrderLineItem(
            item_number=item_number,
            item_code=item_code,
            description=strip_regulatory_text(description.strip()),
            quantity=quantity,
            unit=(unit or self.default_unit).upper(),
            warehouse=amounts.pop('warehouse', None) or self.default_warehouse,
            **amounts
        )

    @staticmethod
    def _number(value: Optional[str]) -> float:
        return parse_locale_number(value) if value else 0.0

    @staticmethod
    def _optional_number(value: Optional[str]) -> Optional[float]:
        return parse_locale_number(value) if value else None

    @staticmethod
    def _item_number(raw: str) -> str:
        """'01' and '1' name the same row."""
        return str(int(raw)) if raw.isdigit() else raw

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class StrictTableStrategy(ItemStrategy):
    """
    Pipe-delimited items table.

    Row layout:
        | item | code | qty | unit | price | discount | IPI | ICMS | total | warehouse | description |

    Columns from the unit price on are optional, as is the warehouse.
    """

    name = "strict"

    ROW_PATTERN = re.compile(
        r"""
        \|\s*(?P<item>\d{1,4})\s*
        \|\s*(?P<code>[A-Z0-9][A-Z0-9.\-/]*)\s*
        \|\s*(?P<qty>[\d.,]+)\s*
        \|\s*(?P<unit>[A-ZÇ]{1,4}\d?)\s*
        (?:\|\s*(?P<price>[\d.,]+)\s*
          (?:\|\s*(?P<discount>[\d.,]+)\s*
            (?:\|\s*(?P<ipi>[\d.,]+)\s*
              (?:\|\s*(?P<icms>[\d.,]+)\s*
                (?:\|\s*(?P<total>[\d.,]+)\s*)?
              )?
            )?
          )?
        )?
        (?:\|\s*(?P<warehouse>\d{1,3})\s*(?=\|))?
        (?:\|\s*(?P<description>[^|\n]*?)\s*(?=\||$))?
        """,
        re.VERBOSE | re.IGNORECASE | re.MULTILINE
    )

    def extract(self, text: str) -> List[OrderLineItem]:
        items = []
        for match in self.ROW_PATTERN.finditer(text):
            item = self.build_item(
                item_number=self._item_number(match.group('item')),
                item_code=match.group('code'),
                quantity_text=match.group('qty'),
                unit=match.group('unit'),
                description=match.group('description') or '',
                warehouse=match.group('warehouse'),
                unit_price=self._number(match.group('price')),
                discount=self._number(match.group('discount')),
                ipi_percent=self._optional_number(match.group('ipi')),
                icms_percent=self._optional_number(match.group('icms')),
                total_value=self._number(match.group('total')),
            )
            if item is not None:
                items.append(item)
        return items


class RelaxedStrategy(ItemStrategy):
    """
    Whitespace-separated rows: ``item code qty unit [price [total]] [warehouse]``.

    Rows of this shape carry no description, so one is looked up under a
    "DESCRIÇÃO:" label between the row and the next row, then in the rest
    of the row's line.
    """

    name = "relaxed"

    ROW_PATTERN = re.compile(
        r'(?<!\S)(?P<item>\d{1,4})\s+'
        r'(?P<code>\d{4,8}|[A-Z]{1,4}\d[A-Z0-9.\-]*)\s+'
        rf'(?P<qty>{QUANTITY})\s+'
        rf'(?P<unit>{UNITS})\b'
        rf'(?:[ \t]+(?P<price>{MONEY}))?'
        rf'(?:[ \t]+(?P<total>{MONEY}))?'
        r'(?:[ \t]+(?P<warehouse>\d{1,3})\b(?![.,]\d))?'
    )

    DESCRIPTION_LABEL = re.compile(
        r'DESCRI[ÇC][ÃA]O\s*:?\s*(?P<description>[^\n|]+)',
        re.IGNORECASE
    )

    def __init__(self) -> None:
        super().__init__()
        self.placeholder = get_config("extraction.defaults.placeholder_description", "Produto")

    def extract(self, text: str) -> List[OrderLineItem]:
        matches = list(self.ROW_PATTERN.finditer(text))
        items = []
        for index, match in enumerate(matches):
            window_end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
            item = self.build_item(
                item_number=self._item_number(match.group('item')),
                item_code=match.group('code'),
                quantity_text=match.group('qty'),
                unit=match.group('unit'),
                description=self._find_description(text, match.end(), window_end),
                warehouse=match.group('warehouse'),
                unit_price=self._number(match.group('price')),
                total_value=self._number(match.group('total')),
            )
            if item is not None:
                items.append(item)
        return items

    def _find_description(self, text: str, start: int, end: int) -> str:
        labelled = self.DESCRIPTION_LABEL.search(text, start, end)
        if labelled:
            return re.split(r'\s{2,}', labelled.group('description').strip())[0]

        line_end = text.find('\n', start)
        rest = text[start:line_end if 0 <= line_end < end else end].strip()
        if re.search(r'[A-Za-zÀ-ú]{3,}', rest):
            return rest
        return self.placeholder


class MinimalStrategy(ItemStrategy):
    """
    Last resort: ``code qty unit`` triples.

    Item numbers follow the order in which distinct triples first appear,
    so re-reading text that repeats a row yields the same items.
    """

    name = "minimal"

    ROW_PATTERN = re.compile(
        rf'(?<!\S)(?P<code>\d{{4,8}})\s+(?P<qty>{QUANTITY})\s+(?P<unit>{UNITS})\b'
    )

    def __init__(self) -> None:
        super().__init__()
        self.placeholder = get_config("extraction.defaults.placeholder_description", "Produto")

    def extract(self, text: str) -> List[OrderLineItem]:
        items = []
        seen = set()
        for match in self.ROW_PATTERN.finditer(text):
            triple = match.group('code', 'qty', 'unit')
            if triple in seen:
                continue
            seen.add(triple)

            item = self.build_item(
                item_number=str(len(items) + 1),
                item_code=match.group('code'),
                quantity_text=match.group('qty'),
                unit=match.group('unit'),
                description=self.placeholder,
            )
            if item is not None:
                items.append(item)
        return items


def default_strategies() -> List[ItemStrategy]:
    """The strategy cascade in priority order."""
    return [StrictTableStrategy(), RelaxedStrategy(), MinimalStrategy()]
