"""
Eventi diagnostici e riepilogo di una conferenza.

Il motore non scrive log direttamente: emette ``DiagnosticEvent`` verso un
observer opzionale (disattivato di default). ``logging_observer`` li inoltra
al modulo ``logging``.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence

from conferencia.domain.models import (
    Conference,
    LineStatus,
    MatchTag,
    ReconciliationItem,
)
from conferencia.services.reconciliation.price_index import PriceIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagnosticEvent:
    level: int
    name: str
    payload: Mapping[str, Any] = field(default_factory=dict)


DiagnosticObserver = Callable[[DiagnosticEvent], None]


def emit(
    observer: Optional[DiagnosticObserver],
    level: int,
    name: str,
    **payload: Any,
) -> None:
    if observer is None:
        return
    observer(DiagnosticEvent(level=level, name=name, payload=payload))


def logging_observer(target: logging.Logger | None = None) -> DiagnosticObserver:
    """Observer che scrive ogni evento sul logger indicato, al livello dell'evento."""
    target = target or logger

    def _observe(event: DiagnosticEvent) -> None:
        if not target.isEnabledFor(event.level):
            return
        target.log(
            event.level,
            "%s %s",
            event.name,
            _format_payload(event.payload),
            extra={"event": event.name, "payload": dict(event.payload)},
        )

    return _observe


def _format_payload(payload: Mapping[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in payload.items())


def shorten_label(label: str, limit: int = 80) -> str:
    """Accorcia descrizioni troppo lunghe per i messaggi diagnostici."""
    text = (label or "").strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def build_diagnostics(
    items: Sequence[ReconciliationItem],
    index: PriceIndex,
    documents: Sequence[Conference] = (),
) -> dict[str, Any]:
    """
    Riepilogo della conferenza: conteggi per stato e per tipo di match,
    righe con cEAN/cEANTrib, righe di tabella indicizzate e scartate.
    """
    statuses = Counter(item.status.value for item in items)
    tags = Counter(item.match.tag.value for item in items)
    units = Counter(item.enriched.units_tag.value for item in items)

    return {
        "itens": len(items),
        "com_ean": sum(1 for item in items if item.enriched.line.barcode),
        "com_ean_trib": sum(1 for item in items if item.enriched.line.taxable_barcode),
        "por_status": {status.value: statuses.get(status.value, 0) for status in LineStatus},
        "por_match": {tag.value: tags.get(tag.value, 0) for tag in MatchTag},
        "por_unidade": dict(sorted(units.items())),
        "linhas_tabela": len(index.rows),
        "linhas_tabela_indexadas": len(index.rows) - index.skipped_rows,
        "linhas_tabela_ignoradas": index.skipped_rows,
        "documentos_divergentes": [
            conference.source for conference in documents if not conference.balanced
        ],
    }


def unpriced_samples(
    items: Sequence[ReconciliationItem], limit: int = 10
) -> list[dict[str, Any]]:
    """Prime righe senza prezzo, per il debug dei barcode non trovati."""
    samples: list[dict[str, Any]] = []
    for item in items:
        if item.status is not LineStatus.no_price:
            continue
        line = item.enriched.line
        samples.append(
            {
                "descricao": shorten_label(line.description),
                "ean": line.barcode or "",
                "ean_trib": line.taxable_barcode or "",
            }
        )
        if len(samples) >= limit:
            break
    return samples


__all__ = [
    "DiagnosticEvent",
    "DiagnosticObserver",
    "emit",
    "logging_observer",
    "shorten_label",
    "build_diagnostics",
    "unpriced_samples",
]
