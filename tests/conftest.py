"""Shared fixtures for the order ingestion test suite."""

from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

import pytest
from openpyxl import Workbook


DELIMITED_EXPORT = """\
cabecalho;138768;01/03/2024
informacoes gerais;005161 - ACME COMERCIO LTDA;12.345.678/0001-90;RUA A;CENTRO;0960123456;(51) 99876-5432;90000-000;PT;12 meses;Entregar pela manha
rateio;SSM - SUPORTE TECNICO;PROJETO ALFA
transporte;TRANSLOG;CIF;1.250,50
entrega;005161 01 ACME;RUA DAS FLORES, 100;CENTRO;PORTO ALEGRE;RS;90000-000
instalacao;SIM;RUA DAS FLORES
item;1;052289;PA;TINTA ACRILICA 18L;2,00;32091010;100,00;200,00;210,00;11;501 - VENDA MERCADORIA
item;2;061100;MP;RESINA BASE;1.000;39069090;1,50;1.500,00;1.500,00;;502 - INDUSTRIALIZACAO
item;3;;PA;SEM CODIGO;1,00
item;4;070001;MC;QUANTIDADE ZERO;0
observacao;linha desconhecida
"""

HEADER_PAGE = """\
PEDIDO Nº: 1001  EMISSÃO: 01/03/2024
CLIENTE: 005161 - ACME COMERCIO LTDA LOJA: 01
CNPJ: 12.345.678/0001-90
ENDEREÇO: RUA DAS FLORES, 100 BAIRRO: CENTRO
MUNICÍPIO: PORTO ALEGRE/RS ESTADO: RS
TRANSPORTADORA: TRANSLOG LTDA PLACA: ABC1D23
FRETE/TIPO: CIF VALOR: 150,00
OPERAÇÃO: 501
EXECUTIVO: MARIA SILVA
COMPOSIÇÃO DO PEDIDO
| ITEM | CÓDIGO | QTD | UN | PREÇO | DESC | IPI | ICMS | TOTAL | DESCRIÇÃO |
| 01 | 052289 | 2,00 | UN | 100,00 | 0,00 | 5,00 | 18,00 | 200,00 | TINTA ACRILICA 18L |
"""

END_PAGE = """\
TOTAL DO PEDIDO: 200,00
Em conformidade com a Lei Geral de Proteção de Dados, seus dados pessoais são tratados...
"""

EXTRA_ITEM_PAGE = """\
| 02 | 061100 | 1,00 | UN | 50,00 | 0,00 | 0,00 | 18,00 | 50,00 | RESINA BASE |
"""


@pytest.fixture
def delimited_export() -> str:
    """A complete delimited export with two valid and two invalid items."""
    return DELIMITED_EXPORT


@pytest.fixture
def order_pages() -> List[str]:
    """Header and one item, end marker, then one more item."""
    return [HEADER_PAGE, END_PAGE, EXTRA_ITEM_PAGE]


@pytest.fixture
def header_row() -> list:
    return [
        138768, "ACME LTDA", "12.345.678/0001-90", "RUA A, 10 - CENTRO",
        "PORTO ALEGRE/RS", "01/03/2024", None, datetime(2024, 3, 5),
        "TRANSLOG", "CIF", "150,00", "501", "JOAO PEREIRA", "Entregar pela manha",
        "HIGH",
    ]


@pytest.fixture
def item_rows() -> list:
    return [
        [1, "052289", "TINTA ACRILICA 18L", 2, None, None, None, None, 100, 0, 5, 18, 210],
        [2, "", "SEM CODIGO", 1, "UN", "11", None, None, 10, 0, None, None, 10],
        [3, "061100", "QUANTIDADE ZERO", 0, "UN", "11", None, None, 10, 0, None, None, 0],
        [None, "070001", "PINCEL 2", "1,5", "UN", "12", datetime(2024, 4, 1), "production",
         "3,20", 0, None, None, "4,80"],
    ]


@pytest.fixture
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing an ERP-style workbook and returning its path."""

    def _make(
        header_row: Optional[list] = None,
        item_rows: Optional[list] = None,
        sheets: int = 2,
        name: str = "order.xlsx"
    ) -> Path:
        workbook = Workbook()
        header_sheet = workbook.active
        header_sheet.title = "Pedido"
        header_sheet.append(["Pedido", "Cliente", "CNPJ", "Endereco", "Municipio"])
        if header_row is not None:
            header_sheet.append(header_row)

        if sheets >= 2:
            items_sheet = workbook.create_sheet("Itens")
            items_sheet.append(["Item", "Codigo", "Descricao", "Qtd", "Unidade"])
            for row in item_rows or []:
                items_sheet.append(row)

        path = tmp_path / name
        workbook.save(path)
        return path

    return _make
