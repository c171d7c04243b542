"""
ComparisonService - conferenza di uno o più XML NF-e contro una tabella prezzi.

Collega gli adapter (lxml per l'XML, openpyxl per la tabella) al motore di
riconciliazione. Un errore strutturale in un qualsiasi documento interrompe
l'intera richiesta; le ambiguità di riga finiscono nello stato della riga.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from conferencia.core import settings as default_settings
from conferencia.core.config import Settings
from conferencia.domain.errors import ComparisonError
from conferencia.domain.models import ReconciliationResult
from conferencia.excel import parse_price_table
from conferencia.nfe import parse_invoice
from conferencia.services.reconciliation import (
    ReconciliationOptions,
    logging_observer,
    parse_locale_number,
    run_reconciliation,
)
from conferencia.services.reconciliation.report import (
    DiagnosticObserver,
    unpriced_samples,
)

logger = logging.getLogger(__name__)


class ComparisonService:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or default_settings

    def resolve_margin(self, value: Any) -> float:
        """Margine richiesto; vuoto, non numerico o <= 0 => margine di default."""
        margin = parse_locale_number(value)
        if margin <= 0:
            return self.settings.default_margin_percent
        return margin

    def build_options(
        self,
        margin_percent: Any = None,
        *,
        tax_enrichment: bool | None = None,
    ) -> ReconciliationOptions:
        return ReconciliationOptions.from_settings(
            self.settings,
            margin_percent=self.resolve_margin(margin_percent),
            tax_enrichment=tax_enrichment,
        )

    def _observer(self) -> Optional[DiagnosticObserver]:
        if not self.settings.diagnostics_enabled:
            return None
        return logging_observer(logging.getLogger("conferencia.diagnostics"))

    def compare(
        self,
        xml_documents: Sequence[tuple[str, bytes]],
        table: bytes | Path,
        *,
        table_name: str | None = None,
        margin_percent: Any = None,
        tax_enrichment: bool | None = None,
        observer: Optional[DiagnosticObserver] = None,
    ) -> ReconciliationResult:
        """
        Esegue una conferenza completa.

        Args:
            xml_documents: coppie (nome file, contenuto) nell'ordine di invio
            table: contenuto o percorso del file XLSX
            margin_percent: margine richiesto (stringa o numero, default da settings)
            tax_enrichment: None => valore da settings; False => modalità storica

        Raises:
            MalformedDocument, MissingRequiredColumn, EmptyPriceTable
        """
        if not xml_documents:
            raise ComparisonError("Nenhum arquivo XML informado")

        options = self.build_options(margin_percent, tax_enrichment=tax_enrichment)
        invoices = [parse_invoice(content, source=name) for name, content in xml_documents]
        rows = parse_price_table(
            table,
            source=table_name,
            price_header=self.settings.price_header,
            barcode_header=self.settings.barcode_header,
            description_header=self.settings.description_header,
            code_header=self.settings.code_header,
        )

        result = run_reconciliation(
            invoices,
            rows,
            options,
            observer=observer if observer is not None else self._observer(),
        )

        logger.info(
            "Conferenza completata: %s documenti, %s righe, differenza %.2f (margine %s%%)",
            len(invoices),
            len(result.items),
            result.conference.difference,
            options.margin_percent,
        )
        if self.settings.diagnostics_enabled:
            for sample in unpriced_samples(result.items):
                logger.debug("Riga senza prezzo: %s", sample)
        return result

    def compare_files(
        self,
        xml_paths: Sequence[Path],
        table_path: Path,
        *,
        margin_percent: Any = None,
        tax_enrichment: bool | None = None,
    ) -> ReconciliationResult:
        documents = [(path.name, path.read_bytes()) for path in xml_paths]
        return self.compare(
            documents,
            table_path,
            table_name=table_path.name,
            margin_percent=margin_percent,
            tax_enrichment=tax_enrichment,
        )


comparison_service = ComparisonService()
