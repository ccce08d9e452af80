"""
Order Validators Module.

Checks a ``ParsedOrder`` before it is handed to people or systems
downstream. Validation never raises: problems are collected into a
``ValidationResult`` so the caller can decide whether to import the
order, ask for manual correction, or reject it.

Errors block an import; warnings are informational.
"""

from typing import Any, Dict, List, Optional

from config import get_config
from order_ingest.model.order import ParsedOrder, OrderLineItem, PRIORITIES
from order_ingest.utils.logger import get_logger

logger = get_logger(__name__)


class ValidationResult:
    """
    Contains the result of validation checks.

    Attributes:
        is_valid: Overall validation result
        errors: List of error messages
        warnings: List of warning messages
    """

    def __init__(self):
        self.is_valid = True
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def add_error(self, message: str) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_valid': self.is_valid,
            'errors': list(self.errors),
            'warnings': list(self.warnings),
        }

    def __repr__(self) -> str:
        return (
            f"ValidationResult(valid={self.is_valid}, "
            f"errors={len(self.errors)}, warnings={len(self.warnings)})"
        )


class OrderValidator:
    """
    Validates canonical orders produced by any extractor.

    Example:
        >>> validator = OrderValidator()
        >>> result = validator.validate(parsed_order)
        >>> if not result.is_valid:
        ...     print(result.errors)
    """

    def __init__(self) -> None:
        self.min_customer_name_length = get_config(
            "postprocessing.validation.min_customer_name_length", 3
        )
        self.min_address_length = get_config(
            "postprocessing.validation.min_address_length", 5
        )
        self.min_description_length = get_config(
            "postprocessing.validation.min_description_length", 3
        )
        self.review_threshold = get_config(
            "postprocessing.validation.review_completeness_threshold", 0.5
        )

    def validate(self, order: ParsedOrder) -> ValidationResult:
        """
        Validate header, items and (when present) extraction quality.

        Args:
            order: Parsed order to check.

        Returns:
            ValidationResult with all findings.
        """
        result = ValidationResult()

        self._validate_header(order, result)
        self._validate_items(order.items, result)
        self._validate_quality(order, result)

        logger.debug(
            f"Validated order {order.header.order_number or 'N/A'}: "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings"
        )
        return result

    def _validate_header(self, order: ParsedOrder, result: ValidationResult) -> None:
        header = order.header

        if not header.order_number.strip():
            result.add_error("orderNumber: order number is required")

        if len(header.customer_name.strip()) < self.min_customer_name_length:
            result.add_error(
                f"customerName: must have at least "
                f"{self.min_customer_name_length} characters"
            )

        if len(header.delivery_address.strip()) < self.min_address_length:
            result.add_error("deliveryAddress: delivery address is required")

        if header.delivery_date is None:
            result.add_error("deliveryDate: delivery date is required")

        if header.priority not in PRIORITIES:
            result.add_error(
                f"priority: '{header.priority}' is not one of {', '.join(PRIORITIES)}"
            )

        if not header.carrier:
            result.add_warning("Carrier not provided")
        if not header.freight_type:
            result.add_warning("Freight type not provided")
        if not header.municipality:
            result.add_warning("Municipality not provided")

    def _validate_items(
        self,
        items: List[OrderLineItem],
        result: ValidationResult
    ) -> None:
        if not items:
            result.add_error("Order must have at least 1 item")
            return

        for index, item in enumerate(items, 1):
            for message in self._item_errors(item):
                result.add_error(f"Item {index} - {message}")

    def _item_errors(self, item: OrderLineItem) -> List[str]:
        errors = []
        if not item.item_code.strip():
            errors.append("itemCode: item code is required")
        if len((item.description or '').strip()) < self.min_description_length:
            errors.append("description: description is required")
        if not item.quantity > 0:
            errors.append("quantity: must be greater than zero")
        if not item.unit.strip():
            errors.append("unit: unit is required")
        if not item.warehouse.strip():
            errors.append("warehouse: warehouse is required")
        return errors

    def _validate_quality(self, order: ParsedOrder, result: ValidationResult) -> None:
        quality = order.quality
        if quality is None:
            return

        if quality.completeness < self.review_threshold:
            result.add_warning(
                f"Low extraction completeness ({quality.completeness:.0%}); "
                f"review the order manually"
            )
        for issue in quality.issues:
            result.add_warning(issue)


def validate_order(order: ParsedOrder, validator: Optional[OrderValidator] = None) -> ValidationResult:
    """Convenience wrapper around ``OrderValidator().validate``."""
    return (validator or OrderValidator()).validate(order)
