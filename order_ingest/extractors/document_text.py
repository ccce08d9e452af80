"""
Document Text Extractor Module.

Builds an order from the per-page text of a paginated order document
(typically a PDF decoded by ``order_ingest.decoding``). Pages are consumed
one at a time:

    1. The page text is appended to a running buffer.
    2. Until order number and customer are known, labelled header fields
       are searched in the whole buffer; a value once found is kept.
    3. Items are recognised in the buffer after the items marker through
       the strategy cascade and merged, deduplicated on (code, number).
    4. Optionally, processing stops as soon as the header, at least one
       item and an end-of-document marker have been seen.

Cancellation is cooperative and checked before each page; progress is
reported after each page.
"""

import asyncio
import itertools
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Set, Tuple

from config import get_config
from order_ingest.extractors.base import OrderExtractor
from order_ingest.extractors.cost_allocation import BusinessAreaClassifier
from order_ingest.extractors.item_strategies import ItemStrategy, default_strategies
from order_ingest.model.order import ExtractionQuality, OrderHeader, OrderLineItem, ParsedOrder
from order_ingest.postprocessor.normalizers import (
    clean_document_number,
    parse_date,
    parse_locale_number,
)
from order_ingest.utils.exceptions import ExtractionCancelledError
from order_ingest.utils.logger import get_logger

logger = get_logger(__name__)


ProgressCallback = Callable[[int, int], None]

_UNSET = object()
_END = object()

# Value ends at the next "LABEL:", a wide gap, a cell border or the line end
_VALUE_END = r'(?=\s+[^\W\d_][\w./]*\s*:|\s{2,}|\||$)'

DEFAULT_END_MARKERS = [
    r"TOTAL\s+DO\s+PEDIDO",
    r"LEI\s+GERAL\s+DE\s+PROTE[CÇ][AÃ]O\s+DE\s+DADOS",
    r"LGPD",
]

DEFAULT_ITEMS_MARKERS = [
    r"COMPOSI[CÇ][AÃ]O",
    r"ITENS\s+DO\s+PEDIDO",
]

PLATE_PATTERN = re.compile(r'^[A-Z]{3}-?\d[A-Z0-9]\d{2}$', re.IGNORECASE)


# =============================================================================
# HEADER FIELDS
# =============================================================================

def _clean_text(value: str) -> Optional[str]:
    return ' '.join(value.split()) or None


def _clean_customer(value: str) -> Optional[str]:
    value = _clean_text(value) or ''
    value = re.sub(r'^\d+\s*[-–]?\s*', '', value)
    value = re.sub(r'\s*(?:[-/]|\bLOJA\b\s*:?)\s*\d{1,4}$', '', value, flags=re.IGNORECASE)
    return value.strip() or None


def _clean_municipality(value: str) -> Optional[str]:
    value = _clean_text(value) or ''
    return re.sub(r'\s*[/-]\s*[A-Z]{2}$', '', value).strip() or None


def _clean_carrier(value: str) -> Optional[str]:
    value = _clean_text(value)
    if not value or value.upper().startswith('PLACA') or PLATE_PATTERN.match(value):
        return None
    return value


def _clean_document(value: str) -> Optional[str]:
    digits = clean_document_number(value)
    return digits if len(digits) >= 11 else None


def _clean_amount(value: str) -> Optional[float]:
    amount = parse_locale_number(value)
    return amount if amount > 0 else None


@dataclass(frozen=True)
class HeaderField:
    """A header attribute with its label patterns and value cleaner."""
    name: str
    patterns: Tuple[str, ...]
    clean: Callable[[str], Any] = _clean_text


HEADER_FIELDS = (
    HeaderField('order_number', (
        r'PEDIDO\s*N[ºo°.]?\s*:?\s*(\d+)',
        r'(?:PEDIDO|ORDEM)\s*#\s*(\d{4,})',
    )),
    HeaderField('issue_date', (
        r'EMISS[AÃ]O\s*:?\s*(\d{2}/\d{2}/\d{2,4})',
    ), parse_date),
    HeaderField('delivery_date', (
        r'(?:ENTREGA|PREVIS[AÃ]O)\s*:\s*(\d{2}/\d{2}/\d{2,4})',
    ), parse_date),
    HeaderField('customer_name', (
        rf'CLIENTE\s*:\s*(.+?){_VALUE_END}',
    ), _clean_customer),
    HeaderField('customer_document', (
        r'(?:CNPJ|CPF)(?:\s*/\s*(?:CPF|CNPJ))?\s*:?\s*([\d./\-]{11,18})',
    ), _clean_document),
    HeaderField('delivery_address', (
        rf'ENDERE[ÇC]O(?:\s+DE\s+ENTREGA)?\s*:\s*(.+?){_VALUE_END}',
    )),
    HeaderField('municipality', (
        rf'MUNIC[ÍI]PIO\s*:\s*(.+?){_VALUE_END}',
        rf'CIDADE\s*:\s*(.+?){_VALUE_END}',
    ), _clean_municipality),
    HeaderField('carrier', (
        rf'TRANSPORTADORA\s*:\s*(.+?){_VALUE_END}',
    ), _clean_carrier),
    HeaderField('freight_type', (
        r'FRETE\s*/\s*TIPO\s*:\s*([A-Z]+)',
        r'TIPO\s+DE\s+FRETE\s*:\s*([A-Z]+)',
    ), lambda value: value.upper()),
    HeaderField('freight_value', (
        r'FRETE\s*/\s*TIPO\s*:\s*\S+\s+VALOR\s*:\s*(?:R\$\s*)?([\d.,]+)',
        r'VALOR\s+(?:DO\s+)?FRETE\s*:\s*(?:R\$\s*)?([\d.,]+)',
    ), _clean_amount),
    HeaderField('operation_code', (
        r'OPERA[ÇC][ÃA]O\s*:\s*(\d+)',
    )),
    HeaderField('executive_name', (
        rf'(?:EXECUTIVO|REPRESENTANTE|VENDEDOR)\s*:\s*(.+?){_VALUE_END}',
    )),
    HeaderField('cost_center', (
        rf'CENTRO\s+DE\s+CUSTOS?\s*:\s*(.+?){_VALUE_END}',
    )),
)

# Fields counted by ExtractionQuality
QUALITY_FIELDS = (
    'order_number',
    'customer_name',
    'delivery_address',
    'delivery_date',
    'freight_type',
    'carrier',
    'operation_code',
    'executive_name',
    'municipality',
    'freight_value',
    'customer_document',
)


class HeaderFieldMatcher:
    """
    Applies the labelled header patterns to document text.

    Each field is independent: a field that is already resolved is never
    searched again, so a later page cannot overwrite it.
    """

    def __init__(self, fields: Iterable[HeaderField] = HEADER_FIELDS) -> None:
        self.fields = [
            (header_field, [re.compile(p, re.IGNORECASE | re.MULTILINE) for p in header_field.patterns])
            for header_field in fields
        ]

    def apply(self, text: str, header: OrderHeader, resolved: Set[str]) -> List[str]:
        """
        Fill unresolved header fields from ``text``.

        Returns:
            Names of the fields resolved by this call.
        """
        found = []
        for header_field, patterns in self.fields:
            if header_field.name in resolved:
                continue
            value = self._search(patterns, header_field.clean, text)
            if value is not None:
                setattr(header, header_field.name, value)
                resolved.add(header_field.name)
                found.append(header_field.name)
        return found

    @staticmethod
    def _search(patterns: List[re.Pattern], clean: Callable[[str], Any], text: str) -> Any:
        for pattern in patterns:
            for match in pattern.finditer(text):
                value = clean(match.group(1))
                if value is not None:
                    return value
        return None


# =============================================================================
# EXTRACTION SESSION
# =============================================================================

class DocumentSession:
    """
    State of one document extraction.

    Created per call by ``DocumentTextExtractor``; feeding pages mutates
    only this object.
    """

    def __init__(self, extractor: 'DocumentTextExtractor') -> None:
        self.extractor = extractor
        self.pages: List[str] = []
        self.header = OrderHeader()
        self.items: List[OrderLineItem] = []
        self.resolved: Set[str] = set()
        self.strategy_name: Optional[str] = None
        self.items_marker_seen = False
        self._keys: Set[Tuple[str, str]] = set()

    @property
    def text(self) -> str:
        return '\n'.join(self.pages)

    @property
    def pages_processed(self) -> int:
        return len(self.pages)

    @property
    def header_resolved(self) -> bool:
        return {'order_number', 'customer_name'} <= self.resolved

    def feed(self, page_text: str) -> None:
        """Process the next page."""
        self.pages.append(page_text or '')
        text = self.text

        if not self.header_resolved:
            found = self.extractor.header_matcher.apply(text, self.header, self.resolved)
            if 'cost_center' in found:
                self.header.business_area = self.extractor.classifier.classify(
                    self.header.cost_center
                )

        section = self.extractor.items_section(text)
        if section is None:
            return
        self.items_marker_seen = True

        strategy_name, items = self.extractor.run_strategies(section)
        if strategy_name:
            self.strategy_name = strategy_name
        self.merge_items(items)

    def merge_items(self, items: Iterable[OrderLineItem]) -> int:
        """Append items with unseen (code, number) keys; returns how many."""
        added = 0
        for item in items:
            if item.key in self._keys:
                continue
            self._keys.add(item.key)
            self.items.append(item)
            added += 1
        return added

    def should_stop(self) -> bool:
        return (
            self.header_resolved
            and bool(self.items)
            and self.extractor.has_end_marker(self.text)
        )

    def quality(self) -> ExtractionQuality:
        """Completeness of the header as read from the document."""
        issues = []
        if 'order_number' not in self.resolved:
            issues.append("Order number not found")
        if 'customer_name' not in self.resolved:
            issues.append("Customer name not found")
        if not self.items_marker_seen:
            issues.append("Items section marker not found")
        if not self.items:
            issues.append("No items found")

        with_price = sum(1 for item in self.items if item.unit_price > 0)
        if self.items and with_price < len(self.items):
            issues.append(f"{len(self.items) - with_price} item(s) without unit price")

        return ExtractionQuality(
            order_number='order_number' in self.resolved,
            customer_name='customer_name' in self.resolved,
            items_count=len(self.items),
            items_with_price=with_price,
            total_fields=len(QUALITY_FIELDS),
            extracted_fields=sum(1 for name in QUALITY_FIELDS if name in self.resolved),
            issues=issues,
        )


# =============================================================================
# EXTRACTOR
# =============================================================================

class DocumentTextExtractor(OrderExtractor):
    """
    Extractor for per-page text of paginated order documents.

    Attributes:
        strategies: Item strategies in priority order
        early_stop: Default for the ``early_stop`` option
        max_pages: Default page limit (None processes every page)

    Example:
        >>> extractor = DocumentTextExtractor()
        >>> order = extractor.extract(["PEDIDO Nº: 1001 CLIENTE: ACME ...", "..."])
        >>> order.quality.level
        'good'
    """

    format_name = "document"
    extensions = frozenset(['.pdf'])

    def __init__(
        self,
        strategies: Optional[List[ItemStrategy]] = None,
        header_matcher: Optional[HeaderFieldMatcher] = None,
        classifier: Optional[BusinessAreaClassifier] = None
    ) -> None:
        self.extensions = frozenset(
            get_config("input.extensions.document", sorted(self.extensions))
        )
        self.strategies = strategies if strategies is not None else default_strategies()
        self.header_matcher = header_matcher or HeaderFieldMatcher()
        self.classifier = classifier or BusinessAreaClassifier()

        self.early_stop = get_config("extraction.document.early_stop", False)
        self.max_pages = get_config("input.pdf.max_pages", 10)

        self.end_markers = [
            re.compile(p, re.IGNORECASE)
            for p in get_config("extraction.document.end_markers", DEFAULT_END_MARKERS)
        ]
        self.items_markers = [
            re.compile(p, re.IGNORECASE)
            for p in get_config("extraction.document.items_markers", DEFAULT_ITEMS_MARKERS)
        ]

        logger.debug(
            f"DocumentTextExtractor initialized "
            f"(strategies={[s.name for s in self.strategies]}, max_pages={self.max_pages})"
        )

    # -------------------------------------------------------------------------
    # Building blocks
    # -------------------------------------------------------------------------

    def items_section(self, text: str) -> Optional[str]:
        """Text after the first items marker, or None when there is none."""
        starts = [m.end() for m in (p.search(text) for p in self.items_markers) if m]
        if not starts:
            return None
        return text[min(starts):]

    def has_end_marker(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.end_markers)

    def run_strategies(self, text: str) -> Tuple[Optional[str], List[OrderLineItem]]:
        """
        Run the cascade; the first strategy yielding items wins.

        Returns:
            Tuple of (strategy name, items), or (None, []) when every
            strategy came up empty.
        """
        for strategy in self.strategies:
            items = strategy.extract(text)
            if items:
                return strategy.name, items
            logger.debug(f"Strategy '{strategy.name}' found no items")
        return None, []

    # -------------------------------------------------------------------------
    # Page loop
    # -------------------------------------------------------------------------

    def _options(self, early_stop, max_pages) -> Tuple[bool, Optional[int]]:
        if early_stop is None:
            early_stop = self.early_stop
        if max_pages is _UNSET:
            max_pages = self.max_pages
        return bool(early_stop), max_pages

    @staticmethod
    def _total_pages(pages: Any, total_pages: Optional[int], max_pages: Optional[int]) -> int:
        if total_pages is None:
            try:
                total_pages = len(pages)
            except TypeError:
                total_pages = 0
        if max_pages is not None and total_pages:
            total_pages = min(total_pages, max_pages)
        return total_pages

    @staticmethod
    def _past_last_page(page_index: int, total: int, max_pages: Optional[int]) -> bool:
        if max_pages is not None and page_index > max_pages:
            return True
        return bool(total) and page_index > total

    @staticmethod
    def _check_cancelled(cancel_event: Any, page_index: int, total: int) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(f"Extraction cancelled before page {page_index}/{total}")
            raise ExtractionCancelledError(page_index, total)

    def _process_page(
        self,
        session: DocumentSession,
        page_text: str,
        page_index: int,
        total: int,
        early_stop: bool,
        on_progress: Optional[ProgressCallback]
    ) -> bool:
        """Feed one page; returns True when extraction should stop."""
        session.feed(page_text)
        logger.debug(
            f"Page {page_index}/{total or '?'}: {len(page_text or '')} chars, "
            f"header resolved={session.header_resolved}, "
            f"items={len(session.items)} (strategy={session.strategy_name})"
        )

        if on_progress is not None:
            on_progress(page_index, total)

        if early_stop and session.should_stop():
            logger.info(f"Early stop after page {page_index}: end of order reached")
            return True
        return False

    def extract(
        self,
        source: Iterable[str],
        early_stop: Optional[bool] = None,
        cancel_event: Any = None,
        on_progress: Optional[ProgressCallback] = None,
        max_pages: Any = _UNSET,
        total_pages: Optional[int] = None,
        **options
    ) -> ParsedOrder:
        """
        Extract an order from page texts.

        Args:
            source: Page texts in document order; may be a lazy iterator.
            early_stop: Stop once header, an item and the end marker were
                seen (defaults to configuration).
            cancel_event: Object with ``is_set()`` checked before each page is
                pulled from ``source``.
            on_progress: Called as ``on_progress(page_index, total_pages)``
                after each page, with a 1-based index.
            max_pages: Page limit; None processes every page (defaults to
                configuration).
            total_pages: Page count for progress when ``source`` has no len();
                no page past it is read.

        Returns:
            ParsedOrder with header, items and quality.

        Raises:
            ExtractionCancelledError: If ``cancel_event`` is set.
        """
        early_stop, max_pages = self._options(early_stop, max_pages)
        total = self._total_pages(source, total_pages, max_pages)
        session = DocumentSession(self)

        pages = iter(source)
        try:
            for page_index in itertools.count(1):
                if self._past_last_page(page_index, total, max_pages):
                    break
                # Checked before the next page is pulled, so a lazy source never decodes it
                self._check_cancelled(cancel_event, page_index, total)
                page_text = next(pages, _END)
                if page_text is _END:
                    break
                if self._process_page(session, page_text, page_index, total, early_stop, on_progress):
                    break
        finally:
            close = getattr(pages, 'close', None)
            if close is not None:
                close()

        return self._finish(session)

    async def extract_async(
        self,
        source: Any,
        early_stop: Optional[bool] = None,
        cancel_event: Any = None,
        on_progress: Optional[ProgressCallback] = None,
        max_pages: Any = _UNSET,
        total_pages: Optional[int] = None
    ) -> ParsedOrder:
        """
        Asynchronous variant of ``extract``.

        Accepts a plain or an async iterable of page texts and yields to the
        event loop between pages, so a long document does not block other
        tasks.
        """
        early_stop, max_pages = self._options(early_stop, max_pages)
        total = self._total_pages(source, total_pages, max_pages)
        session = DocumentSession(self)

        pages = _aiter_pages(source)
        try:
            for page_index in itertools.count(1):
                if self._past_last_page(page_index, total, max_pages):
                    break
                self._check_cancelled(cancel_event, page_index, total)
                try:
                    page_text = await pages.__anext__()
                except StopAsyncIteration:
                    break
                if self._process_page(session, page_text, page_index, total, early_stop, on_progress):
                    break
                await asyncio.sleep(0)
        finally:
            await pages.aclose()

        return self._finish(session)

    def _finish(self, session: DocumentSession) -> ParsedOrder:
        quality = session.quality()
        order = self.build_order(
            session.header,
            session.items,
            quality=quality,
            pages_processed=session.pages_processed,
        )
        if not session.items_marker_seen:
            order.add_warning("Items section marker not found; no items extracted")

        logger.info(
            f"Document order {session.header.order_number or 'N/A'}: "
            f"{quality.items_count} item(s), {session.pages_processed} page(s), "
            f"completeness {quality.completeness:.0%} ({quality.level})"
        )
        return order


async def _aiter_pages(pages: Any):
    """Iterate a plain or async page source, closing it when abandoned."""
    if hasattr(pages, '__aiter__'):
        iterator = pages.__aiter__()
        try:
            async for page in iterator:
                yield page
        finally:
            aclose = getattr(iterator, 'aclose', None)
            if aclose is not None:
                await aclose()
    else:
        iterator = iter(pages)
        try:
            for page in iterator:
                yield page
        finally:
            close = getattr(iterator, 'close', None)
            if close is not None:
                close()
