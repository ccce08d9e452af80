"""
Post-Processing Module for the order ingestion library.

This module provides functionality for:
    - Locale number and day-first date normalization
    - Business-day delivery date computation
    - Regulatory boilerplate removal from descriptions
    - Phone, tax ID and address fragment cleanup
    - Order validation for downstream review
"""

from .normalizers import (
    AmountNormalizer,
    DateNormalizer,
    RegulatoryTextFilter,
    parse_locale_number,
    parse_date,
    format_date,
    add_business_days,
    default_delivery_date,
    strip_regulatory_text,
    clean_document_number,
    format_whatsapp,
    extract_city,
    extract_state,
)
from .validators import OrderValidator, ValidationResult, validate_order

__all__ = [
    'AmountNormalizer',
    'DateNormalizer',
    'RegulatoryTextFilter',
    'parse_locale_number',
    'parse_date',
    'format_date',
    'add_business_days',
    'default_delivery_date',
    'strip_regulatory_text',
    'clean_document_number',
    'format_whatsapp',
    'extract_city',
    'extract_state',
    'OrderValidator',
    'ValidationResult',
    'validate_order',
]
