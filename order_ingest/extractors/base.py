"""
Base Extractor Module.

Shared contract and finishing steps for the format-specific extractors.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Union

from order_ingest.model.order import OrderHeader, OrderLineItem, ParsedOrder
from order_ingest.postprocessor.normalizers import default_delivery_date
from order_ingest.utils.helpers import get_file_extension
from order_ingest.utils.logger import get_logger

logger = get_logger(__name__)


class OrderExtractor(ABC):
    """
    Abstract base class for order extractors.

    Subclasses turn one input shape into a ``ParsedOrder``. Extractors keep
    no state between calls: everything accumulated while parsing lives in
    locals of the ``extract`` call, so one instance may serve concurrent
    callers.

    Attributes:
        format_name: Short name recorded in ``ParsedOrder.source_format``
        extensions: File extensions this extractor accepts
    """

    format_name: str = ""
    extensions: frozenset = frozenset()

    def can_handle(self, filepath: Union[str, Path]) -> bool:
        """Check whether the file extension belongs to this extractor."""
        return get_file_extension(filepath) in self.extensions

    @abstractmethod
    def extract(self, source, **options) -> ParsedOrder:
        """
        Extract a canonical order from ``source``.

        Raises:
            StructuralError: If the input does not have the expected shape.
        """
        pass

    @staticmethod
    def keep_item(item: OrderLineItem) -> bool:
        """
        Decide whether a parsed line belongs in the output.

        Lines without an item code or with a non-positive quantity are
        dropped.
        """
        if not item.item_code:
            logger.debug(f"Dropping item {item.item_number}: no item code")
            return False
        if not item.quantity > 0:
            logger.debug(
                f"Dropping item {item.item_number} ({item.item_code}): "
                f"quantity {item.quantity}"
            )
            return False
        return True

    @staticmethod
    def finalize_delivery_dates(
        header: OrderHeader,
        items: Iterable[OrderLineItem]
    ) -> None:
        """
        Fill the header delivery date and copy it to items lacking one.

        The header date falls back to the issue date plus the configured
        number of business days.
        """
        if header.delivery_date is None:
            header.delivery_date = default_delivery_date(header.issue_date)
            logger.debug(
                f"Delivery date computed: {header.delivery_date} "
                f"(issued {header.issue_date})"
            )

        for item in items:
            if item.delivery_date is None:
                item.delivery_date = header.delivery_date

    def build_order(
        self,
        header: OrderHeader,
        items: List[OrderLineItem],
        **attributes
    ) -> ParsedOrder:
        """Finalize dates and wrap header and items in a ``ParsedOrder``."""
        self.finalize_delivery_dates(header, items)
        return ParsedOrder(
            header=header,
            items=items,
            source_format=self.format_name,
            **attributes
        )
