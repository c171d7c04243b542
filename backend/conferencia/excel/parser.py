from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import Any, Sequence
from xml.etree.ElementTree import ParseError
from zipfile import BadZipFile

from lxml import etree
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from conferencia.domain.errors import (
    EmptyPriceTable,
    MalformedDocument,
    MissingRequiredColumn,
)
from conferencia.domain.models import PriceTableRow
from conferencia.services.reconciliation.normalization import (
    cell_to_text,
    digits_only,
    parse_locale_number,
)

logger = logging.getLogger(__name__)

PRICE_HEADER = "Preço"
BARCODE_HEADER = "Código de barras"
DESCRIPTION_HEADER = "Descrição Produto"
CODE_HEADER = "Código Produto"

_CORRUPT_WORKBOOK_ERRORS = (
    InvalidFileException,
    BadZipFile,
    KeyError,
    OSError,
    EOFError,
    ValueError,
    ParseError,
    etree.XMLSyntaxError,
)


def parse_price_table(
    table: bytes | Path,
    *,
    source: str | None = None,
    price_header: str = PRICE_HEADER,
    barcode_header: str = BARCODE_HEADER,
    description_header: str = DESCRIPTION_HEADER,
    code_header: str = CODE_HEADER,
) -> list[PriceTableRow]:
    """
    Legge la tabella prezzi dal primo foglio del file XLSX.

    Intestazione in riga 1, colonne individuate per etichetta esatta (trim):
    prezzo e codice a barre obbligatori, descrizione e codice opzionali.
    Le righe vuote sono saltate; tutte le altre vengono restituite, anche
    con prezzo <= 0 (escluse poi dall'indice).
    """
    rows = _read_first_sheet(table, source)
    if len(rows) < 2:
        raise EmptyPriceTable(
            "Planilha deve ter pelo menos cabeçalho e uma linha de dados"
        )

    header = [str(cell).strip() if cell is not None else "" for cell in rows[0]]
    price_idx = _find_column(header, price_header)
    if price_idx is None:
        raise MissingRequiredColumn(price_header)
    barcode_idx = _find_column(header, barcode_header)
    if barcode_idx is None:
        raise MissingRequiredColumn(barcode_header)
    description_idx = _find_column(header, description_header)
    code_idx = _find_column(header, code_header)

    parsed: list[PriceTableRow] = []
    for offset, row in enumerate(rows[1:], start=2):
        if _row_is_empty(row):
            continue
        parsed.append(
            PriceTableRow(
                price=parse_locale_number(_cell(row, price_idx)),
                barcode=digits_only(_cell(row, barcode_idx)),
                description=cell_to_text(_cell(row, description_idx)).strip(),
                code=cell_to_text(_cell(row, code_idx)).strip(),
                row_number=offset,
            )
        )

    if not parsed:
        raise EmptyPriceTable(
            "Planilha deve ter pelo menos cabeçalho e uma linha de dados"
        )
    logger.info(
        "Tabella prezzi %s: %s righe lette", source or "<senza nome>", len(parsed)
    )
    return parsed


def _read_first_sheet(table: bytes | Path, source: str | None) -> list[list]:
    # In read_only il foglio viene letto solo durante l'iterazione delle righe
    stream = table if isinstance(table, Path) else BytesIO(table)
    try:
        workbook = load_workbook(stream, data_only=True, read_only=True)
        try:
            sheetnames = workbook.sheetnames
            if not sheetnames:
                return []
            return _iter_rows(workbook[sheetnames[0]])
        finally:
            workbook.close()
    except _CORRUPT_WORKBOOK_ERRORS as exc:
        logger.warning("Tabella prezzi %s illeggibile: %s", source or "<senza nome>", exc)
        raise MalformedDocument(
            "Planilha inválida ou corrompida", source=source
        ) from exc


def _iter_rows(ws) -> list[list]:
    return [list(row) for row in ws.iter_rows(values_only=True)]


def _find_column(header: Sequence[str], label: str) -> int | None:
    """Indice della colonna con l'etichetta indicata; se ripetuta vale l'ultima."""
    target = label.strip()
    found = None
    for idx, value in enumerate(header):
        if value == target:
            found = idx
    return found


def _cell(row: Sequence[Any], idx: int | None) -> Any:
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def _row_is_empty(row: Sequence) -> bool:
    return all(cell in (None, "", " ") for cell in row)


__all__ = ["parse_price_table"]
