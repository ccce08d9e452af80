"""Unit tests for the canonical order model."""

import json
from datetime import date

import pytest

from order_ingest.model import (
    ExtractionQuality,
    OrderHeader,
    OrderLineItem,
    ParsedOrder,
    SourceType,
)


def test_source_type_parse() -> None:
    """Test parsing of source-type cells."""
    assert SourceType.parse("production") is SourceType.PRODUCTION
    assert SourceType.parse(" PURCHASE_REQUIRED ") is SourceType.PURCHASE_REQUIRED
    assert SourceType.parse(None) is SourceType.IN_STOCK
    assert SourceType.parse("unknown", SourceType.PRODUCTION) is SourceType.PRODUCTION


def test_header_defaults() -> None:
    """Test that an empty header has normal priority and no dates."""
    header = OrderHeader()

    assert header.priority == "normal"
    assert header.delivery_date is None
    assert header.freight_value == 0.0


def test_item_key() -> None:
    """Test item identity used for deduplication."""
    item = OrderLineItem(item_number="1", item_code="052289", quantity=2)

    assert item.key == ("052289", "1")


def test_parsed_order_to_dict_serialises_dates() -> None:
    """Test ISO dates and enum values in the dictionary form."""
    order = ParsedOrder(
        header=OrderHeader(order_number="138768", issue_date=date(2024, 3, 1)),
        items=[
            OrderLineItem(
                item_number="1",
                item_code="052289",
                quantity=2,
                delivery_date=date(2024, 3, 15),
                source_type=SourceType.PRODUCTION,
            )
        ],
        source_format="delimited",
    )

    data = order.to_dict()

    assert data["header"]["issue_date"] == "2024-03-01"
    assert data["header"]["delivery_date"] is None
    assert data["items"][0]["delivery_date"] == "2024-03-15"
    assert data["items"][0]["source_type"] == "production"
    assert data["quality"] is None
    assert json.loads(order.to_json())["header"]["order_number"] == "138768"


def test_from_dict_restores_types() -> None:
    """Test that from_dict reverses to_dict."""
    header = OrderHeader(order_number="1", issue_date=date(2024, 3, 1), priority="high")
    item = OrderLineItem(item_number="1", item_code="X1", quantity=1.5, source_type=SourceType.PURCHASE_REQUIRED)

    assert OrderHeader.from_dict(header.to_dict()) == header
    assert OrderLineItem.from_dict(item.to_dict()) == item


def test_from_dict_ignores_unknown_keys() -> None:
    """Test that extra keys do not break construction."""
    header = OrderHeader.from_dict({"order_number": "7", "legacy_field": "x"})

    assert header.order_number == "7"


@pytest.mark.parametrize(
    "extracted, level",
    [(11, "good"), (9, "good"), (8, "medium"), (6, "medium"), (5, "poor"), (0, "poor")],
)
def test_quality_level(extracted, level) -> None:
    """Test completeness thresholds: good >= 0.8, medium >= 0.5."""
    quality = ExtractionQuality(extracted_fields=extracted)

    assert quality.level == level


def test_quality_to_dict_includes_derived_values() -> None:
    """Test that completeness and level are serialised."""
    data = ExtractionQuality(extracted_fields=11, items_count=2).to_dict()

    assert data["completeness"] == 1.0
    assert data["level"] == "good"
    assert data["items_count"] == 2


def test_parsed_order_repr() -> None:
    """Test the short representation used in logs."""
    order = ParsedOrder(header=OrderHeader(order_number="1001", customer_name="ACME"))

    assert repr(order) == "ParsedOrder(order=1001, customer=ACME, items=0, format=None)"
