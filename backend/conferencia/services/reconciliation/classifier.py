"""
Classificazione delle righe (prezzo minimo/stato) e conferenza dei totali.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from conferencia.domain.models import (
    Conference,
    EnrichedLine,
    LineStatus,
    MatchResult,
    ReconciliationItem,
)
from conferencia.services.reconciliation.config import (
    BALANCE_TOLERANCE,
    CURRENCY_DECIMALS,
    DEFAULT_MARGIN_PERCENT,
    UNIT_PRICE_DECIMALS,
)


def _to_decimal(value: float | int | Decimal | None) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def _quantize(value: Decimal, decimals: int) -> float:
    return float(value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP))


def minimum_price(unit_cost: float, margin_percent: float = DEFAULT_MARGIN_PERCENT) -> float:
    """Prezzo minimo accettabile: costo × (1 + margine/100), 4 decimali."""
    multiplier = 1 + _to_decimal(margin_percent) / 100
    return _quantize(_to_decimal(unit_cost) * multiplier, UNIT_PRICE_DECIMALS)


def line_status(unit_cost: float, price: float | None, minimum: float) -> LineStatus:
    if unit_cost <= 0:
        return LineStatus.parse_error
    if price is None or price <= 0:
        return LineStatus.no_price
    if price >= minimum:
        return LineStatus.ok
    return LineStatus.below_minimum


def classify(
    enriched: EnrichedLine,
    match: MatchResult,
    margin_percent: float = DEFAULT_MARGIN_PERCENT,
) -> ReconciliationItem:
    minimum = minimum_price(enriched.unit_cost, margin_percent)
    return ReconciliationItem(
        enriched=enriched,
        match=match,
        minimum_price=minimum,
        status=line_status(enriched.unit_cost, match.price, minimum),
    )


def build_conference(
    totals: Iterable[float],
    declared_total: float,
    declared_discount_total: float = 0.0,
    *,
    source: str | None = None,
    access_key: str | None = None,
) -> Conference:
    """
    Somma dei totali riga confrontata con vNF.

    La differenza è arrotondata a 2 decimali solo in uscita; il flag
    ``balanced`` usa la differenza esatta (|somma - vNF| < 0.01).
    Puramente informativa: non blocca l'esito delle righe.
    """
    items_total = sum((_to_decimal(total) for total in totals), Decimal("0"))
    declared = _to_decimal(declared_total)
    difference = items_total - declared
    return Conference(
        items_total=_quantize(items_total, CURRENCY_DECIMALS),
        declared_total=_quantize(declared, CURRENCY_DECIMALS),
        difference=_quantize(difference, CURRENCY_DECIMALS),
        declared_discount_total=_quantize(
            _to_decimal(declared_discount_total), CURRENCY_DECIMALS
        ),
        balanced=abs(difference) < Decimal(BALANCE_TOLERANCE),
        source=source,
        access_key=access_key,
    )


__all__ = ["minimum_price", "line_status", "classify", "build_conference"]
