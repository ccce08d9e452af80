"""
Cost Allocation Module.

Resolves the cost center and accounting item from the free text of an
ERP cost-allocation record, and classifies the cost center into a coarse
business area.

Both the phrase patterns and the business-area rules come from
configuration; the defaults only cover the phrasings seen so far, and an
unmatched cost center falls back to the configured default area.
"""

import re
from typing import Dict, List, Optional, Sequence

from config import get_config
from order_ingest.utils.helpers import fold_accents
from order_ingest.utils.logger import get_logger

logger = get_logger(__name__)


DEFAULT_COST_CENTER_PATTERNS = [
    r"(SSM\s*-?\s*[^;]+)",
    r"(FILIAL\s*[^;]*)",
    r"(CUSTOMER\s*SERVICE[^;]*)",
    r"(E-?COMMERCE[^;]*)",
]

DEFAULT_ACCOUNT_ITEM_PATTERNS = [
    r"(PROJETO\s+[^;]+)",
    r"(MANUTEN[CÇ][ÃA]O\s+[^;]+)",
    r"(P[ÓO]S[\s-]?VENDA[^;]*)",
]

DEFAULT_BUSINESS_AREAS = [
    {"area": "ecommerce", "keywords": ["E-COMMERCE", "ECOMMERCE"]},
    {"area": "filial", "keywords": ["FILIAL"]},
    {"area": "projetos", "keywords": ["BOWLING", "ELEVENTICKETS", "PAINEIS"]},
    {"area": "ssm", "keywords": ["SSM", "CUSTOMER", "POS-VENDA"]},
]


class BusinessAreaClassifier:
    """
    Maps a cost center to a business area with ordered keyword rules.

    The first rule with a keyword contained in the cost center wins.
    Keywords and cost centers are compared accent- and case-insensitively.

    Example:
        >>> classifier = BusinessAreaClassifier()
        >>> classifier.classify("FILIAL PORTO ALEGRE")
        'filial'
        >>> classifier.classify("")
        'ssm'
    """

    def __init__(
        self,
        rules: Optional[Sequence[Dict]] = None,
        default_area: Optional[str] = None
    ) -> None:
        if rules is None:
            rules = get_config(
                "extraction.cost_allocation.business_areas",
                DEFAULT_BUSINESS_AREAS
            )
        if default_area is None:
            default_area = get_config(
                "extraction.cost_allocation.default_business_area", "ssm"
            )

        self.default_area = default_area
        self.rules = [
            (rule["area"], [fold_accents(k) for k in rule.get("keywords", [])])
            for rule in rules
        ]

    def classify(self, cost_center: Optional[str]) -> str:
        if not cost_center:
            return self.default_area

        folded = fold_accents(cost_center)
        for area, keywords in self.rules:
            if any(keyword in folded for keyword in keywords):
                return area

        logger.debug(f"No business-area rule matched cost center {cost_center!r}")
        return self.default_area


class CostAllocationResolver:
    """
    Sub-extractors for the cost-allocation free text.

    Each field has a prioritized list of phrase patterns; the first pattern
    found anywhere in the text wins, otherwise the positional fallback is
    used.
    """

    # A cost center column that actually holds the accounting-item label
    MISPLACED_LABEL = "ITEM CONTA"

    def __init__(
        self,
        cost_center_patterns: Optional[List[str]] = None,
        account_item_patterns: Optional[List[str]] = None,
        classifier: Optional[BusinessAreaClassifier] = None
    ) -> None:
        if cost_center_patterns is None:
            cost_center_patterns = get_config(
                "extraction.cost_allocation.cost_center_patterns",
                DEFAULT_COST_CENTER_PATTERNS
            )
        if account_item_patterns is None:
            account_item_patterns = get_config(
                "extraction.cost_allocation.account_item_patterns",
                DEFAULT_ACCOUNT_ITEM_PATTERNS
            )

        self.cost_center_patterns = [re.compile(p, re.IGNORECASE) for p in cost_center_patterns]
        self.account_item_patterns = [re.compile(p, re.IGNORECASE) for p in account_item_patterns]
        self.classifier = classifier or BusinessAreaClassifier()

    @staticmethod
    def _first_match(patterns: List[re.Pattern], text: str) -> Optional[str]:
        for pattern in patterns:
            match = pattern.search(text)
            if match:
                return match.group(1).strip()
        return None

    def cost_center(self, text: str, fallback: str = "") -> str:
        value = self._first_match(self.cost_center_patterns, text)
        if value is None:
            value = fallback
        if self.MISPLACED_LABEL in value.upper():
            return ""
        return value

    def account_item(self, text: str, fallback: str = "") -> str:
        value = self._first_match(self.account_item_patterns, text)
        return fallback if value is None else value

    def business_area(self, cost_center: str) -> str:
        return self.classifier.classify(cost_center)
