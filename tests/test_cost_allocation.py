"""Unit tests for cost-allocation resolution."""

import pytest

from order_ingest.extractors import BusinessAreaClassifier, CostAllocationResolver


@pytest.mark.parametrize(
    "cost_center, area",
    [
        ("SSM - SUPORTE TECNICO", "ssm"),
        ("FILIAL PORTO ALEGRE", "filial"),
        ("E-COMMERCE LOJA VIRTUAL", "ecommerce"),
        ("PROJETOS BOWLING", "projetos"),
        ("Pós-Venda Sul", "ssm"),
        ("DIRETORIA", "ssm"),
        ("", "ssm"),
        (None, "ssm"),
    ],
)
def test_business_area(cost_center, area) -> None:
    """Test the keyword rules and the default area."""
    assert BusinessAreaClassifier().classify(cost_center) == area


def test_custom_rules_and_default() -> None:
    """Test rules passed to the constructor."""
    classifier = BusinessAreaClassifier(
        rules=[{"area": "norte", "keywords": ["MANAUS", "BELEM"]}],
        default_area="outros",
    )

    assert classifier.classify("Filial Belém") == "norte"
    assert classifier.classify("FILIAL CAXIAS") == "outros"


def test_cost_center_pattern_beats_position() -> None:
    """Test that a recognised phrase wins over the positional field."""
    resolver = CostAllocationResolver()

    assert resolver.cost_center("OUTRO;SSM - CAMPO", "OUTRO") == "SSM - CAMPO"
    assert resolver.cost_center("DIRETORIA;X", "DIRETORIA") == "DIRETORIA"


def test_account_item_pattern_and_fallback() -> None:
    """Test accounting item lookup."""
    resolver = CostAllocationResolver()

    assert resolver.account_item("SSM;PÓS-VENDA GARANTIA", "x") == "PÓS-VENDA GARANTIA"
    assert resolver.account_item("SSM;CONTRATO 12", "CONTRATO 12") == "CONTRATO 12"


def test_misplaced_account_label_clears_cost_center() -> None:
    """Test that an accounting-item label is not taken as cost center."""
    resolver = CostAllocationResolver(cost_center_patterns=[])

    assert resolver.cost_center("ITEM CONTA 4410", "ITEM CONTA 4410") == ""
