"""Unit tests for value normalizers.

Tests cover:
- Locale number parsing
- Day-first date parsing and formatting
- Business-day arithmetic
- Regulatory boilerplate removal
- Phone, tax ID and address helpers
"""

from datetime import date, datetime, timedelta

import pytest

from order_ingest.postprocessor.normalizers import (
    AmountNormalizer,
    DateNormalizer,
    RegulatoryTextFilter,
    add_business_days,
    clean_document_number,
    default_delivery_date,
    extract_city,
    extract_state,
    format_date,
    format_whatsapp,
    parse_date,
    parse_locale_number,
    strip_regulatory_text,
)


# =============================================================================
# Numbers
# =============================================================================

@pytest.mark.parametrize(
    "raw, expected",
    [
        ("3.143,40", 3143.40),
        ("R$ 1.250,50", 1250.50),
        ("0,5", 0.5),
        ("1.000", 1000.0),
        ("785.85", 785.85),
        ("  12  ", 12.0),
        (42, 42.0),
        (3.5, 3.5),
    ],
)
def test_parse_locale_number(raw, expected) -> None:
    """Test comma-decimal and dot-thousands conventions."""
    assert parse_locale_number(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [None, "", "n/a", "PC", float("nan")])
def test_parse_locale_number_non_numeric_is_zero(raw) -> None:
    """Test that non-numeric input yields 0.0 instead of raising."""
    assert parse_locale_number(raw) == 0.0


def test_amount_normalizer_strips_currency_codes() -> None:
    """Test that currency codes are ignored."""
    assert AmountNormalizer().normalize("BRL 99,90") == pytest.approx(99.90)


# =============================================================================
# Dates
# =============================================================================

def test_parse_date_day_first() -> None:
    """Test that ambiguous dates are read day-first."""
    assert parse_date("01/03/2024") == date(2024, 3, 1)
    assert parse_date("05-04-2024") == date(2024, 4, 5)


def test_parse_date_accepts_date_objects() -> None:
    """Test that spreadsheet datetime cells are converted to dates."""
    assert parse_date(datetime(2024, 3, 1, 10, 30)) == date(2024, 3, 1)
    assert parse_date(date(2024, 3, 1)) == date(2024, 3, 1)


@pytest.mark.parametrize("raw", [None, "", "UN", "sem data"])
def test_parse_date_rejects_non_dates(raw) -> None:
    """Test that text without a date is not turned into today's date."""
    assert parse_date(raw) is None


def test_format_date() -> None:
    """Test DD/MM/YYYY rendering."""
    assert format_date(date(2024, 3, 15)) == "15/03/2024"
    assert format_date(None) == ""


# =============================================================================
# Business days
# =============================================================================

def test_add_business_days_known_value() -> None:
    """Test ten business days after Friday 01/03/2024."""
    assert add_business_days("01/03/2024", 10) == date(2024, 3, 15)


def test_add_business_days_skips_weekend() -> None:
    """Test that Friday plus one business day is Monday."""
    assert add_business_days(date(2024, 3, 1), 1) == date(2024, 3, 4)


def test_add_business_days_never_lands_on_weekend() -> None:
    """Test that any positive offset ends on a weekday."""
    start = date(2024, 1, 1)
    for offset in range(21):
        day = start + timedelta(days=offset)
        for n in range(1, 16):
            assert add_business_days(day, n).weekday() < 5


def test_add_business_days_zero_is_identity() -> None:
    """Test that adding zero days returns the input, weekends included."""
    for offset in range(7):
        day = date(2024, 3, 2) + timedelta(days=offset)
        assert add_business_days(day, 0) == day


def test_add_business_days_negative_raises() -> None:
    """Test that a negative count is rejected."""
    with pytest.raises(ValueError):
        add_business_days(date(2024, 3, 1), -1)


def test_date_normalizer_add_business_days_rejects_non_date() -> None:
    """Test that an unparseable start date raises ValueError."""
    with pytest.raises(ValueError, match="Not a date"):
        DateNormalizer().add_business_days("amanha", 3)


def test_default_delivery_date_uses_issue_date() -> None:
    """Test the configured ten business-day lead time."""
    assert default_delivery_date(date(2024, 3, 1)) == date(2024, 3, 15)


def test_default_delivery_date_without_issue_date_uses_today() -> None:
    """Test the fallback to today when the issue date is unknown."""
    assert default_delivery_date(None, today=date(2024, 3, 1)) == date(2024, 3, 15)


# =============================================================================
# Regulatory text
# =============================================================================

def test_strip_regulatory_text_truncates_before_clause() -> None:
    """Test that a data-protection clause is cut off."""
    description = "TINTA ACRILICA 18L - Em conformidade com a Lei 13.709, seus dados..."

    assert strip_regulatory_text(description) == "TINTA ACRILICA 18L"


@pytest.mark.parametrize(
    "description, expected",
    [
        ("RESINA BASE LGPD: dados tratados", "RESINA BASE"),
        ("PINCEL 2 Lei Geral de Proteção de Dados", "PINCEL 2"),
        ("ROLO LA contato: comprador@acme.com.br", "ROLO LA contato"),
        ("CHAVE 10MM 123.456.789-09", "CHAVE 10MM"),
        ("BROCA 8MM PEDIDO Nº: 1001", "BROCA 8MM"),
        ("LIXA 120 Página 2 de 3", "LIXA 120"),
    ],
)
def test_strip_regulatory_text_markers(description, expected) -> None:
    """Test each kind of marker."""
    assert strip_regulatory_text(description) == expected


def test_strip_regulatory_text_without_marker_is_unchanged() -> None:
    """Test that clean descriptions pass through."""
    assert strip_regulatory_text("TINTA ACRILICA 18L") == "TINTA ACRILICA 18L"
    assert strip_regulatory_text("") == ""


def test_regulatory_filter_custom_markers() -> None:
    """Test that markers come from the constructor when given."""
    text_filter = RegulatoryTextFilter(markers=[r"CONFIDENCIAL"])

    assert text_filter.strip("CABO 2,5MM; confidencial") == "CABO 2,5MM"
    assert text_filter.strip("CABO LGPD") == "CABO LGPD"


# =============================================================================
# Phones, tax IDs, addresses
# =============================================================================

@pytest.mark.parametrize(
    "phone, expected",
    [
        ("(51) 99876-5432", "5551998765432"),
        ("51 3333-4444", "555133334444"),
        ("+55 51 99876-5432", "5551998765432"),
        ("9876-5432", None),
        (None, None),
    ],
)
def test_format_whatsapp(phone, expected) -> None:
    """Test country-code handling."""
    assert format_whatsapp(phone) == expected


def test_clean_document_number() -> None:
    """Test CNPJ punctuation removal."""
    assert clean_document_number("12.345.678/0001-90") == "12345678000190"


def test_extract_city_and_state() -> None:
    """Test the CITY/UF and ', CITY - UF' conventions."""
    assert extract_city("Rua Principal, 123, SANTA CRUZ DO SUL/RS") == "SANTA CRUZ DO SUL"
    assert extract_state("Rua Principal, 123, SANTA CRUZ DO SUL/RS") == "RS"
    assert extract_city("Av. Brasil, 500, CURITIBA - PR") == "CURITIBA"
    assert extract_state("Av. Brasil, 500, CURITIBA - PR") == "PR"
    assert extract_city("") == ""
