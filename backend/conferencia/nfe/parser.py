"""
Lettura dei documenti NF-e (XML) nelle righe grezze del motore di conferenza.

Il documento può arrivare in tre forme: ``nfeProc/NFe/infNFe`` (NF-e
autorizzata con protocollo), ``NFe/infNFe`` oppure ``infNFe`` nudo. Le forme
sono provate in ordine di priorità e vince la prima che corrisponde.
I namespace sono ignorati: si confrontano solo i nomi locali.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from lxml import etree

from conferencia.domain.errors import MalformedDocument
from conferencia.domain.models import InvoiceLine, ParsedInvoice
from conferencia.services.reconciliation.normalization import (
    digits_only,
    normalize_barcode,
    parse_locale_number,
)

logger = logging.getLogger(__name__)

NO_PRODUCTS_MESSAGE = "Nenhum produto encontrado no XML da NFe"


@dataclass(frozen=True)
class DocumentShape:
    name: str
    path: tuple[str, ...]

    def locate(self, root: etree._Element) -> Optional[etree._Element]:
        """Nodo ``infNFe`` se la radice segue questa forma, altrimenti None."""
        if _local_name(root) != self.path[0]:
            return None
        node: Optional[etree._Element] = root
        for name in self.path[1:]:
            node = _child(node, name)
            if node is None:
                return None
        return node


DOCUMENT_SHAPES: tuple[DocumentShape, ...] = (
    DocumentShape("nfeProc", ("nfeProc", "NFe", "infNFe")),
    DocumentShape("NFe", ("NFe", "infNFe")),
    DocumentShape("infNFe", ("infNFe",)),
)


def parse_invoice(document: bytes, source: str | None = None) -> ParsedInvoice:
    """
    Converte un XML NF-e in ``ParsedInvoice``.

    Solleva ``MalformedDocument`` per XML non valido o senza righe ``det/prod``.
    Campi mancanti o non numerici valgono 0 / None.
    """
    root = _parse_xml(document, source)

    for shape in DOCUMENT_SHAPES:
        inf_nfe = shape.locate(root)
        if inf_nfe is not None:
            break
    else:
        raise MalformedDocument(NO_PRODUCTS_MESSAGE, source=source)

    lines = [
        line
        for line in (
            _parse_det(det, source) for det in _children(inf_nfe, "det")
        )
        if line is not None
    ]
    if not lines:
        raise MalformedDocument(NO_PRODUCTS_MESSAGE, source=source)

    totals = _path(inf_nfe, "total", "ICMSTot")
    invoice = ParsedInvoice(
        lines=lines,
        declared_discount_total=_amount(_text(totals, "vDesc")),
        declared_grand_total=_amount(_text(totals, "vNF")),
        source=source,
        access_key=digits_only(inf_nfe.get("Id")) or None,
        shape=shape.name,
    )
    logger.info(
        "NF-e %s letta (forma %s): %s righe, vNF %.2f",
        source or "<senza nome>",
        shape.name,
        len(lines),
        invoice.declared_grand_total,
    )
    return invoice


def _parse_xml(document: bytes, source: str | None) -> etree._Element:
    parser = etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )
    try:
        root = etree.fromstring(document, parser=parser)
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise MalformedDocument(f"XML inválido ({exc})", source=source) from exc
    if root is None:
        raise MalformedDocument("XML vazio", source=source)
    return root


def _parse_det(det: etree._Element, source: str | None) -> Optional[InvoiceLine]:
    prod = _child(det, "prod")
    if prod is None:
        return None

    imposto = _child(det, "imposto")
    icms_group = _first_child(_child(imposto, "ICMS"))
    icms_code = _text(icms_group, "CST") or _text(icms_group, "CSOSN")

    item_number = det.get("nItem")
    return InvoiceLine(
        code=_text(prod, "cProd") or "",
        description=_text(prod, "xProd") or "",
        commercial_unit=_text(prod, "uCom") or "",
        commercial_quantity=_amount(_text(prod, "qCom")),
        taxable_unit=_text(prod, "uTrib") or "",
        taxable_quantity=_amount(_text(prod, "qTrib")),
        gross_value=_amount(_text(prod, "vProd")),
        discount=_amount(_text(prod, "vDesc")),
        other_charges=_amount(_text(prod, "vOutro")),
        ipi_amount=_amount(_text(_path(imposto, "IPI", "IPITrib"), "vIPI")),
        icms_st_amount=_amount(_text(icms_group, "vICMSST")),
        icms_code=icms_code,
        barcode=normalize_barcode(_text(prod, "cEAN")),
        taxable_barcode=normalize_barcode(_text(prod, "cEANTrib")),
        source_document=source,
        item_number=int(item_number) if item_number and item_number.isdigit() else None,
    )


def _amount(text: str | None) -> float:
    # Quantità e valori negativi non hanno senso in una riga prodotto
    return max(parse_locale_number(text), 0.0)


def _local_name(element: etree._Element) -> str:
    if not isinstance(element.tag, str):
        return ""
    return etree.QName(element).localname


def _children(element: Optional[etree._Element], name: str) -> Iterator[etree._Element]:
    if element is None:
        return
    for child in element:
        if _local_name(child) == name:
            yield child


def _child(element: Optional[etree._Element], name: str) -> Optional[etree._Element]:
    return next(_children(element, name), None)


def _first_child(element: Optional[etree._Element]) -> Optional[etree._Element]:
    if element is None:
        return None
    for child in element:
        if isinstance(child.tag, str):
            return child
    return None


def _path(element: Optional[etree._Element], *names: str) -> Optional[etree._Element]:
    for name in names:
        element = _child(element, name)
        if element is None:
            return None
    return element


def _text(element: Optional[etree._Element], name: str) -> Optional[str]:
    child = _child(element, name)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


__all__ = ["DocumentShape", "DOCUMENT_SHAPES", "parse_invoice"]
