"""
Value Normalizers Module.

Turns locale-specific ERP values into canonical ones:
    - Numbers written with decimal comma and dot thousands ("3.143,40")
    - Dates written day-first ("01/03/2024")
    - Delivery dates derived by adding business days
    - Product descriptions polluted with consent/compliance boilerplate
    - Phone numbers, tax IDs and "CITY/UF" address fragments

Every function here is pure and never raises on malformed text; a value
that cannot be understood becomes 0.0, None or the unchanged input.
"""

import re
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Any, List, Optional, Union

from dateutil import parser as date_parser

from config import get_config
from order_ingest.utils.logger import get_logger

logger = get_logger(__name__)


DateLike = Union[date, datetime, str]


class AmountNormalizer:
    """
    Normalizes locale-formatted amount strings to floats.

    The ERP writes "3.143,40" for 3143.40. Spreadsheet cells, on the other
    hand, may already hold numbers or dot-decimal strings ("785.85"), so a
    lone dot followed by one or two digits is kept as a decimal point.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.normalize("R$ 3.143,40")
        3143.4
        >>> normalizer.normalize("n/a")
        0.0
    """

    CURRENCY_SYMBOLS = ['R$', 'US$', '$', '€', '£']
    CURRENCY_CODES = ['BRL', 'USD', 'EUR']

    def __init__(self) -> None:
        self.decimal_separator = get_config(
            "postprocessing.amount.decimal_separator", ","
        )
        self.thousands_separator = get_config(
            "postprocessing.amount.thousands_separator", "."
        )

    def normalize(self, value: Any) -> float:
        """
        Convert ``value`` to a float.

        Args:
            value: String, number or None.

        Returns:
            Parsed value, or 0.0 when the input is not numeric.
        """
        if value is None or isinstance(value, bool):
            return 0.0
        if isinstance(value, (int, float)):
            return float(value) if value == value else 0.0

        text = self._clean_amount_string(str(value))
        if not text:
            return 0.0

        text = self._to_dot_decimal(text)

        try:
            return float(text)
        except ValueError:
            logger.debug(f"Could not parse amount: {value!r}")
            return 0.0

    def _clean_amount_string(self, amount_str: str) -> str:
        amount_str = amount_str.strip()

        for symbol in self.CURRENCY_SYMBOLS:
            amount_str = amount_str.replace(symbol, '')

        for code in self.CURRENCY_CODES:
            amount_str = re.sub(rf'\b{code}\b', '', amount_str, flags=re.IGNORECASE)

        # Keep only digits, separators and minus
        return re.sub(r'[^\d,.\-]', '', amount_str)

    def _to_dot_decimal(self, amount_str: str) -> str:
        decimal_sep = self.decimal_separator
        thousands_sep = self.thousands_separator

        if decimal_sep in amount_str:
            amount_str = amount_str.replace(thousands_sep, '')
            return amount_str.replace(decimal_sep, '.')

        if thousands_sep == '.' and amount_str.count('.') == 1:
            after_dot = amount_str.split('.', 1)[1]
            # "785.85" is a decimal, "1.234" is a thousands group
            if len(after_dot) != 3:
                return amount_str

        return amount_str.replace(thousands_sep, '')


class DateNormalizer:
    """
    Parses day-first date strings and computes business-day offsets.

    Attributes:
        output_format: Format used by ``format``
        input_formats: Explicit formats tried before dateutil

    Example:
        >>> normalizer = DateNormalizer()
        >>> normalizer.parse("01/03/2024")
        datetime.date(2024, 3, 1)
        >>> normalizer.format(normalizer.add_business_days("01/03/2024", 10))
        '15/03/2024'
    """

    DATE_PATTERN = re.compile(r'\b\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}\b')

    def __init__(self) -> None:
        self.output_format = get_config(
            "postprocessing.date.output_format", "%d/%m/%Y"
        )
        self.input_formats = get_config(
            "postprocessing.date.input_formats",
            ["%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y", "%d/%m/%y", "%Y-%m-%d"]
        )

    def parse(self, value: Any) -> Optional[date]:
        """
        Parse a date cell or string.

        Args:
            value: ``date``/``datetime`` object or a day-first date string.

        Returns:
            The date, or None when ``value`` is empty or not a date.
        """
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        text = ' '.join(str(value).split())
        if not text:
            return None

        parsed = self._try_explicit_formats(text)
        if parsed is None:
            parsed = self._try_dateutil_parser(text)

        if parsed is None:
            logger.debug(f"Could not parse date: {text!r}")
        return parsed

    def _try_explicit_formats(self, date_str: str) -> Optional[date]:
        for fmt in self.input_formats:
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                continue
        return None

    def _try_dateutil_parser(self, date_str: str) -> Optional[date]:
        # Only strings that look like dates; dateutil happily turns "PC" into today
        if not self.DATE_PATTERN.search(date_str):
            return None
        try:
            return date_parser.parse(date_str, dayfirst=True).date()
        except (ValueError, OverflowError):
            return None

    def format(self, value: Optional[date]) -> str:
        """Render ``value`` with the configured output format ('' for None)."""
        if value is None:
            return ''
        return value.strftime(self.output_format)

    def add_business_days(self, start: DateLike, business_days: int) -> date:
        """
        Advance ``start`` by ``business_days`` weekdays.

        Raises:
            ValueError: If ``start`` is not a date or ``business_days`` < 0.
        """
        start_date = self.parse(start)
        if start_date is None:
            raise ValueError(f"Not a date: {start!r}")
        return _add_business_days(start_date, business_days)


def _add_business_days(start: date, business_days: int) -> date:
    if business_days < 0:
        raise ValueError("business_days must be >= 0")

    current = start
    added = 0
    while added < business_days:
        current += timedelta(days=1)
        # Monday=0 ... Friday=4
        if current.weekday() < 5:
            added += 1
    return current


class RegulatoryTextFilter:
    """
    Cuts consent/compliance boilerplate out of item descriptions.

    ERP PDF exports often glue the data-protection footer, a customer's
    tax ID, or the next page's reprinted header onto the last description
    of a page. Everything from the first such marker on is dropped.

    Example:
        >>> RegulatoryTextFilter().strip("TINTA ACRILICA 18L - LGPD: seus dados ...")
        'TINTA ACRILICA 18L'
    """

    DEFAULT_MARKERS = [
        r"LGPD",
        r"LEI GERAL DE PROTE[CÇ][AÃ]O DE DADOS",
        r"EM CONFORMIDADE COM A LEI\s*(?:N[ºO°.]*\s*)?13\.?709",
        r"DADOS PESSOAIS",
        r"POL[IÍ]TICA DE PRIVACIDADE",
    ]

    # Leaked personal identifiers and reprinted page headers
    IDENTIFIER_PATTERNS = [
        r"\b\d{3}\.\d{3}\.\d{3}-\d{2}\b",          # CPF
        r"\b\d{2}\.\d{3}\.\d{3}/\d{4}-\d{2}\b",    # CNPJ
        r"\b[\w.+-]+@[\w-]+\.[\w.-]+\b",           # e-mail
        r"\bPEDIDO\s+N[ºO°]\s*:",
        r"\bP[AÁ]GINA\s*:?\s*\d+\s*(?:DE|/)\s*\d+",
    ]

    TRAILING_SEPARATORS = " \t\r\n-–;,|:"

    def __init__(self, markers: Optional[List[str]] = None) -> None:
        if markers is None:
            markers = get_config("postprocessing.regulatory.markers", self.DEFAULT_MARKERS)
        self.patterns = [
            re.compile(pattern, re.IGNORECASE)
            for pattern in list(markers) + self.IDENTIFIER_PATTERNS
        ]

    def strip(self, description: Optional[str]) -> Optional[str]:
        """
        Truncate ``description`` at the earliest regulatory marker.

        Returns:
            The text before the marker, or the input unchanged when no
            marker is present.
        """
        if not description:
            return description

        cut = None
        for pattern in self.patterns:
            match = pattern.search(description)
            if match and (cut is None or match.start() < cut):
                cut = match.start()

        if cut is None:
            return description

        kept = description[:cut].rstrip(self.TRAILING_SEPARATORS)
        logger.debug(f"Stripped regulatory text from description at offset {cut}")
        return kept


# =============================================================================
# MODULE-LEVEL HELPERS
# =============================================================================

@lru_cache(maxsize=1)
def _amount_normalizer() -> AmountNormalizer:
    return AmountNormalizer()


@lru_cache(maxsize=1)
def _date_normalizer() -> DateNormalizer:
    return DateNormalizer()


@lru_cache(maxsize=1)
def _regulatory_filter() -> RegulatoryTextFilter:
    return RegulatoryTextFilter()


def parse_locale_number(value: Any) -> float:
    """
    Parse a comma-decimal number; non-numeric input yields 0.0.

    Example:
        >>> parse_locale_number("3.143,40")
        3143.4
    """
    return _amount_normalizer().normalize(value)


def parse_date(value: Any) -> Optional[date]:
    """Parse a day-first date string or date cell; None when not a date."""
    return _date_normalizer().parse(value)


def format_date(value: Optional[date]) -> str:
    """Render a date as DD/MM/YYYY."""
    return _date_normalizer().format(value)


def add_business_days(start: DateLike, business_days: int) -> date:
    """
    Add ``business_days`` Monday-Friday days to ``start``.

    ``add_business_days(d, 0) == d``; for any positive count the result is
    never a Saturday or Sunday.

    Example:
        >>> add_business_days("01/03/2024", 10)
        datetime.date(2024, 3, 15)
    """
    if isinstance(start, date):
        return _add_business_days(
            start.date() if isinstance(start, datetime) else start,
            business_days
        )
    return _date_normalizer().add_business_days(start, business_days)


def default_delivery_date(issue_date: Optional[date], today: Optional[date] = None) -> date:
    """
    Delivery date used when a document does not state one.

    ``issue_date`` plus the configured lead time, or today plus the lead
    time when the issue date is unknown too.
    """
    lead_time = get_config("postprocessing.delivery.business_days", 10)
    base = issue_date or today or date.today()
    return _add_business_days(base, lead_time)


def strip_regulatory_text(description: Optional[str]) -> Optional[str]:
    """Truncate a description at the first consent/compliance marker."""
    return _regulatory_filter().strip(description)


def clean_document_number(value: Any) -> str:
    """Remove '.', '-' and '/' from a CNPJ/CPF."""
    return re.sub(r'[.\-/\s]', '', str(value or ''))


def format_whatsapp(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a Brazilian phone number for WhatsApp.

    10-11 digits get the 55 country code, 12 or more digits are assumed to
    carry it already, anything shorter is not a phone number.

    Example:
        >>> format_whatsapp("(51) 99876-5432")
        '5551998765432'
    """
    if not phone:
        return None

    digits = re.sub(r'\D', '', phone)

    if len(digits) < 10:
        return None
    if len(digits) <= 11:
        return f"55{digits}"
    return digits


def extract_city(address: Optional[str]) -> str:
    """
    Extract the city from an address.

    Example:
        >>> extract_city("Rua Principal, 123, SANTA CRUZ DO SUL/RS")
        'SANTA CRUZ DO SUL'
    """
    if not address:
        return ''

    match = re.search(r'([^,/]+)/[A-Z]{2}', address)
    if match:
        return match.group(1).strip()

    match = re.search(r',\s*([^,\-]+)\s*-\s*[A-Z]{2}', address)
    if match:
        return match.group(1).strip()

    parts = address.split(',')
    if len(parts) >= 2:
        return parts[-2].strip()

    return ''


def extract_state(address: Optional[str]) -> str:
    """
    Extract the two-letter state (UF) from an address.

    Example:
        >>> extract_state("Rua Principal, 123, SANTA CRUZ DO SUL/RS")
        'RS'
    """
    if not address:
        return ''

    for pattern in (r'/([A-Z]{2})(?:\s|$|,)', r'-\s*([A-Z]{2})(?:\s|$|,)', r'\b([A-Z]{2})$'):
        match = re.search(pattern, address)
        if match:
            return match.group(1)

    return ''
