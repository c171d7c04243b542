"""
Esecuzione di una conferenza completa NF-e × tabella prezzi.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from conferencia.domain.models import (
    EnrichedLine,
    ParsedInvoice,
    PriceTableRow,
    ReconciliationItem,
    ReconciliationResult,
)
from conferencia.services.reconciliation.classifier import build_conference, classify
from conferencia.services.reconciliation.decomposer import (
    ReconciliationOptions,
    decompose_invoice,
)
from conferencia.services.reconciliation.matcher import match_line
from conferencia.services.reconciliation.price_index import PriceIndex
from conferencia.services.reconciliation.report import (
    DiagnosticObserver,
    build_diagnostics,
    emit,
    shorten_label,
)


def _decimal_sum(values: Iterable[float]) -> Decimal:
    return sum((Decimal(str(value)) for value in values), Decimal("0"))


def run_reconciliation(
    invoices: Sequence[ParsedInvoice],
    rows: Iterable[PriceTableRow],
    options: ReconciliationOptions | None = None,
    observer: Optional[DiagnosticObserver] = None,
) -> ReconciliationResult:
    """
    Scompone ogni documento in modo indipendente (lo sconto si ripartisce per
    documento), concatena le righe nell'ordine di invio, costruisce l'indice
    una sola volta e classifica ogni riga.

    Nessun I/O e nessuno stato condiviso: input uguali danno risultati uguali.
    """
    options = options or ReconciliationOptions()

    enriched_lines: list[EnrichedLine] = []
    documents = []
    for invoice in invoices:
        enriched = decompose_invoice(invoice, options)
        emit(
            observer,
            logging.INFO,
            "invoice.decomposed",
            source=invoice.source,
            shape=invoice.shape,
            lines=len(enriched),
            declared_discount=invoice.declared_discount_total,
        )
        for line in enriched:
            emit(
                observer,
                logging.DEBUG,
                "line.units",
                item=line.line.item_number,
                description=shorten_label(line.line.description),
                tag=line.units_tag.value,
                count=line.unit_count,
                rationale=line.units_rationale,
            )

        conference = build_conference(
            (line.total_paid for line in enriched),
            invoice.declared_grand_total,
            invoice.declared_discount_total,
            source=invoice.source,
            access_key=invoice.access_key,
        )
        if not conference.balanced:
            emit(
                observer,
                logging.WARNING,
                "run.unbalanced",
                source=invoice.source,
                items_total=conference.items_total,
                declared_total=conference.declared_total,
                difference=conference.difference,
            )
        documents.append(conference)
        enriched_lines.extend(enriched)

    index = PriceIndex.build(rows)
    emit(
        observer,
        logging.INFO,
        "index.built",
        rows=len(index.rows),
        barcodes=len(index.by_barcode),
        codes=len(index.by_code),
        fuzzy_rows=len(index.fuzzy_rows),
        skipped=index.skipped_rows,
    )

    items: list[ReconciliationItem] = []
    for line in enriched_lines:
        match = match_line(line, index, options.fuzzy_min_score)
        emit(
            observer,
            logging.DEBUG,
            "line.matched",
            item=line.line.item_number,
            description=shorten_label(line.line.description),
            tag=match.tag.value,
            price=match.price,
            score=match.score,
        )
        items.append(classify(line, match, options.margin_percent))

    run_conference = build_conference(
        (item.enriched.total_paid for item in items),
        _decimal_sum(invoice.declared_grand_total for invoice in invoices),
        _decimal_sum(invoice.declared_discount_total for invoice in invoices),
    )
    diagnostics = build_diagnostics(items, index, documents)
    emit(observer, logging.INFO, "run.summary", **diagnostics)

    return ReconciliationResult(
        items=tuple(items),
        conference=run_conference,
        documents=tuple(documents),
        margin_percent=options.margin_percent,
        multiplier=options.multiplier,
        diagnostics=diagnostics,
    )


__all__ = ["run_reconciliation"]
