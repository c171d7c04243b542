from __future__ import annotations

from io import BytesIO
from typing import Callable, Sequence

import pytest
from openpyxl import Workbook


SAMPLE_NFE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<nfeProc xmlns="http://www.portalfiscal.inf.br/nfe" versao="4.00">
  <NFe>
    <infNFe Id="NFe35240112345678000199550010000012341000012345" versao="4.00">
      <det nItem="1">
        <prod>
          <cProd>100</cProd>
          <cEAN>7891234567890</cEAN>
          <xProd>BISCOITO RECHEADO 180G</xProd>
          <uCom>KG</uCom>
          <qCom>2.0000</qCom>
          <vProd>36.00</vProd>
          <cEANTrib>SEM GTIN</cEANTrib>
          <uTrib>KG</uTrib>
          <qTrib>2.0000</qTrib>
        </prod>
        <imposto>
          <ICMS>
            <ICMS10>
              <orig>0</orig>
              <CST>10</CST>
              <vICMSST>2.30</vICMSST>
            </ICMS10>
          </ICMS>
          <IPI>
            <IPITrib>
              <CST>50</CST>
              <vIPI>1.20</vIPI>
            </IPITrib>
          </IPI>
        </imposto>
      </det>
      <det nItem="2">
        <prod>
          <cProd>200</cProd>
          <cEAN>SEM GTIN</cEAN>
          <xProd>AGUA MINERAL 500ML</xProd>
          <uCom>UN</uCom>
          <qCom>12</qCom>
          <vProd>24.00</vProd>
          <cEANTrib>SEM GTIN</cEANTrib>
          <uTrib>UN</uTrib>
          <qTrib>12</qTrib>
          <vOutro>0.60</vOutro>
        </prod>
        <imposto>
          <ICMS>
            <ICMS60>
              <orig>0</orig>
              <CST>60</CST>
              <vICMSST>3.00</vICMSST>
            </ICMS60>
          </ICMS>
        </imposto>
      </det>
      <total>
        <ICMSTot>
          <vProd>60.00</vProd>
          <vDesc>1.50</vDesc>
          <vNF>62.60</vNF>
        </ICMSTot>
      </total>
    </infNFe>
  </NFe>
  <protNFe versao="4.00"/>
</nfeProc>
"""

PRICE_TABLE_HEADER = ("Código Produto", "Descrição Produto", "Código de barras", "Preço")


def workbook_bytes(rows: Sequence[Sequence], header: Sequence[str] = PRICE_TABLE_HEADER) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Tabela"
    if header:
        sheet.append(list(header))
    for row in rows:
        sheet.append(list(row))
    buffer = BytesIO()
    workbook.save(buffer)
    workbook.close()
    return buffer.getvalue()


@pytest.fixture
def sample_nfe_xml() -> bytes:
    return SAMPLE_NFE_XML.encode("utf-8")


@pytest.fixture
def make_price_table() -> Callable[..., bytes]:
    return workbook_bytes


@pytest.fixture
def sample_price_table() -> bytes:
    return workbook_bytes(
        [
            ("100", "BISCOITO RECHEADO 180G", "7891234567890", 5.00),
            ("200", "AGUA MINERAL 500ML", "", "3,50"),
            ("300", "PRODUTO SEM PRECO", "7890000000001", 0),
        ]
    )
