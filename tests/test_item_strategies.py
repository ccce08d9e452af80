"""Unit tests for the document line-item strategies."""

import pytest

from order_ingest.extractors import (
    MinimalStrategy,
    RelaxedStrategy,
    StrictTableStrategy,
    default_strategies,
)


STRICT_TABLE = """\
| ITEM | CÓDIGO | QTD | UN | PREÇO | DESC | IPI | ICMS | TOTAL | DESCRIÇÃO |
| 01 | 052289 | 2,00 | UN | 100,00 | 0,00 | 5,00 | 18,00 | 200,00 | TINTA ACRILICA 18L |
| 02 | 061100 | 1.000 | KG | 1,50 | 0,00 | 0,00 | 12,00 | 1.500,00 | RESINA BASE - LGPD: dados tratados |
| 03 | 070001 | 0 | UN | 10,00 | 0,00 | 0,00 | 18,00 | 0,00 | SEM QUANTIDADE |
"""

RELAXED_ROWS = """\
ITENS DO PEDIDO
1 052289 2,00 UN 100,00 200,00 11
DESCRIÇÃO: TINTA ACRILICA 18L
2 061100 1 PC
DESCRIÇÃO: RESINA BASE
"""

MINIMAL_ROWS = """\
052289 2 UN
061100 3 PC
052289 2 UN
"""


# =============================================================================
# Strict
# =============================================================================

def test_strict_reads_every_column() -> None:
    """Test the full pipe-delimited row."""
    items = StrictTableStrategy().extract(STRICT_TABLE)
    first = items[0]

    assert first.item_number == "1"
    assert first.item_code == "052289"
    assert first.quantity == pytest.approx(2.0)
    assert first.unit == "UN"
    assert first.unit_price == pytest.approx(100.0)
    assert first.discount == 0.0
    assert first.ipi_percent == pytest.approx(5.0)
    assert first.icms_percent == pytest.approx(18.0)
    assert first.total_value == pytest.approx(200.0)
    assert first.description == "TINTA ACRILICA 18L"
    assert first.warehouse == "PRINCIPAL"


def test_strict_skips_title_and_zero_quantity_rows() -> None:
    """Test that only data rows with a positive quantity are kept."""
    items = StrictTableStrategy().extract(STRICT_TABLE)

    assert [item.item_code for item in items] == ["052289", "061100"]


def test_strict_strips_regulatory_text_and_reads_thousands() -> None:
    """Test description cleanup and locale quantities."""
    second = StrictTableStrategy().extract(STRICT_TABLE)[1]

    assert second.description == "RESINA BASE"
    assert second.quantity == pytest.approx(1000.0)
    assert second.unit == "KG"
    assert second.total_value == pytest.approx(1500.0)


def test_strict_short_row() -> None:
    """Test that the price columns are optional."""
    items = StrictTableStrategy().extract("| 5 | AB-100 | 4 | PC | PARAFUSO |")

    assert len(items) == 1
    assert items[0].item_number == "5"
    assert items[0].item_code == "AB-100"
    assert items[0].unit_price == 0.0
    assert items[0].ipi_percent is None
    assert items[0].warehouse == "PRINCIPAL"
    assert items[0].description == "PARAFUSO"


def test_strict_warehouse_after_total() -> None:
    """Test the optional warehouse column."""
    items = StrictTableStrategy().extract(
        "| 6 | 052289 | 1 | UN | 10,00 | 0,00 | 5,00 | 18,00 | 10,00 | 12 | TINTA |"
    )

    assert items[0].warehouse == "12"
    assert items[0].description == "TINTA"


def test_strict_ignores_plain_text() -> None:
    """Test that text without a table yields nothing."""
    assert StrictTableStrategy().extract(RELAXED_ROWS) == []


# =============================================================================
# Relaxed
# =============================================================================

def test_relaxed_rows_with_labelled_descriptions() -> None:
    """Test whitespace rows whose description sits under a label."""
    first, second = RelaxedStrategy().extract(RELAXED_ROWS)

    assert first.item_code == "052289"
    assert first.quantity == pytest.approx(2.0)
    assert first.unit_price == pytest.approx(100.0)
    assert first.total_value == pytest.approx(200.0)
    assert first.warehouse == "11"
    assert first.description == "TINTA ACRILICA 18L"

    assert second.item_number == "2"
    assert second.unit == "PC"
    assert second.warehouse == "PRINCIPAL"
    assert second.description == "RESINA BASE"


def test_relaxed_description_from_rest_of_line() -> None:
    """Test the fallback to the text after the row."""
    items = RelaxedStrategy().extract("3 052289 1 UN TINTA BRANCA FOSCA\n")

    assert items[0].description == "TINTA BRANCA FOSCA"


def test_relaxed_placeholder_description() -> None:
    """Test the placeholder when no description is found."""
    items = RelaxedStrategy().extract("3 052289 1 UN\n")

    assert items[0].description == "Produto"


GROUPED_ROWS = """\
1 052289 2,00 UN 100,00 200,00 11
DESCRIÇÃO: TINTA ACRILICA 18L
2 061100 1.000,00 UN 1,50 1.500,00 11
DESCRIÇÃO: RESINA BASE
"""


def test_relaxed_grouped_thousands_quantity() -> None:
    """Test that a quantity written as 1.000,00 keeps its row."""
    items = RelaxedStrategy().extract(GROUPED_ROWS)

    assert [(item.item_code, item.quantity) for item in items] == [("052289", 2.0), ("061100", 1000.0)]
    assert items[1].unit_price == pytest.approx(1.5)
    assert items[1].total_value == pytest.approx(1500.0)
    assert items[1].description == "RESINA BASE"


def test_relaxed_price_without_thousands_separator() -> None:
    """Test that 1234,56 is read as a price rather than as description text."""
    items = RelaxedStrategy().extract("3 052289 2 UN 1234,56 2469,12 TINTA PREMIUM\n")

    assert items[0].unit_price == pytest.approx(1234.56)
    assert items[0].total_value == pytest.approx(2469.12)
    assert items[0].description == "TINTA PREMIUM"


# =============================================================================
# Minimal
# =============================================================================

def test_minimal_numbers_distinct_triples() -> None:
    """Test sequential numbering and deduplication of repeated rows."""
    items = MinimalStrategy().extract(MINIMAL_ROWS)

    assert [(item.item_number, item.item_code) for item in items] == [("1", "052289"), ("2", "061100")]
    assert all(item.description == "Produto" for item in items)
    assert items[1].unit == "PC"
    assert items[1].quantity == pytest.approx(3.0)


def test_minimal_ignores_totals() -> None:
    """Test that the minimal tier finds nothing in unrelated text."""
    assert MinimalStrategy().extract("TOTAL DO PEDIDO: 200,00") == []


def test_minimal_grouped_thousands_quantity() -> None:
    """Test that grouped quantities are recognised by the last tier too."""
    items = MinimalStrategy().extract(GROUPED_ROWS)

    assert [(item.item_code, item.quantity) for item in items] == [("052289", 2.0), ("061100", 1000.0)]


def test_default_strategies_order() -> None:
    """Test the cascade order."""
    assert [strategy.name for strategy in default_strategies()] == ["strict", "relaxed", "minimal"]
