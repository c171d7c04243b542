"""
Scomposizione delle righe NF-e nel costo reale per unità vendibile.

Per ogni riga: sconto ripartito, IPI, ICMS-ST e altre spese concorrono al totale
pagato; il numero di unità vendibili si deduce da uTrib/qTrib e dalla descrizione.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from conferencia.domain.models import (
    EnrichedLine,
    InvoiceLine,
    ParsedInvoice,
    SizeInfo,
    UnitsResult,
    UnitsTag,
)
from conferencia.services.reconciliation.config import (
    CURRENCY_DECIMALS,
    DEFAULT_MARGIN_PERCENT,
    DEFAULT_ST_EXEMPT_CODES,
    DIRECT_UNIT_LABELS,
    FUZZY_MIN_SCORE,
    MASS_VOLUME_LABELS,
    PACK_ROUNDING_TOLERANCE,
    SUBUNIT_LABELS,
    UNIT_PRICE_DECIMALS,
)
from conferencia.services.reconciliation.normalization import round_half_up
from conferencia.services.reconciliation.units import detect_pack, parse_size


@dataclass(frozen=True)
class ReconciliationOptions:
    """Parametri di una conferenza (margine, soglia fuzzy, regole fiscali)."""

    margin_percent: float = DEFAULT_MARGIN_PERCENT
    fuzzy_min_score: float = FUZZY_MIN_SCORE
    st_exempt_codes: frozenset[str] = DEFAULT_ST_EXEMPT_CODES
    tax_enrichment: bool = True

    @property
    def multiplier(self) -> float:
        return float(1 + Decimal(str(self.margin_percent)) / 100)

    @classmethod
    def from_settings(
        cls,
        settings,
        *,
        margin_percent: float | None = None,
        tax_enrichment: bool | None = None,
    ) -> "ReconciliationOptions":
        return cls(
            margin_percent=(
                margin_percent
                if margin_percent is not None
                else settings.default_margin_percent
            ),
            fuzzy_min_score=settings.fuzzy_min_score,
            st_exempt_codes=frozenset(
                code.strip() for code in settings.icms_st_exempt_codes if code.strip()
            ),
            tax_enrichment=(
                tax_enrichment if tax_enrichment is not None else settings.tax_enrichment
            ),
        )


def _format_count(value: float) -> str:
    text = format(value, ".2f")
    return text.rstrip("0").rstrip(".") if "." in text else text


def infer_units(line: InvoiceLine, size: SizeInfo, pack: int | None) -> UnitsResult:
    """
    Numero di unità vendibili della riga.

    - uTrib contabile (LAT, UN, PC...): qTrib così com'è;
    - uTrib a peso/volume con formato in descrizione: qTrib / formato,
      arrotondato all'intero solo se c'è un pack e lo scarto è < 0.1;
    - uTrib a peso/volume senza formato: qTrib, prezzo per KG/L;
    - altrimenti qTrib (1 se zero).
    """
    label = (line.taxable_unit or "").strip().upper()
    quantity = line.taxable_quantity

    if label in DIRECT_UNIT_LABELS:
        return UnitsResult(
            count=quantity,
            tag=UnitsTag.direct_unit,
            rationale=f"{_format_count(quantity)} {label}",
        )

    if label in MASS_VOLUME_LABELS:
        if not size.known:
            return UnitsResult(
                count=quantity,
                tag=UnitsTag.unit_not_identified,
                rationale=f"R$/{label} - unidade não identificada",
            )

        normalized_quantity = quantity / 1000 if label in SUBUNIT_LABELS else quantity
        candidate = normalized_quantity / size.normalized_magnitude
        size_label = f"{_format_count(size.magnitude)}{size.unit}"

        if pack:
            rounded = round(candidate)
            if abs(rounded - candidate) < PACK_ROUNDING_TOLERANCE:
                return UnitsResult(
                    count=float(rounded),
                    tag=UnitsTag.computed_with_pack_check,
                    rationale=f"{rounded} unidades ({size_label} cada, pack {pack})",
                )

        return UnitsResult(
            count=candidate,
            tag=UnitsTag.computed,
            rationale=f"{candidate:.2f} unidades ({size_label} cada)",
        )

    return UnitsResult(
        count=quantity or 1.0,
        tag=UnitsTag.fallback,
        rationale=f"{_format_count(quantity)} {label or '?'} (fallback)",
    )


def apportion_discounts(
    lines: Sequence[InvoiceLine], declared_discount_total: float
) -> list[float]:
    """
    Ripartisce lo sconto di documento (ICMSTot/vDesc) pro-rata sul vProd.

    Le righe con vDesc proprio non nullo lo mantengono invariato.
    """
    shares = [0.0] * len(lines)
    if declared_discount_total > 0:
        gross_total = sum(line.gross_value for line in lines)
        if gross_total > 0:
            shares = [
                line.gross_value * declared_discount_total / gross_total
                for line in lines
            ]
    return [
        line.discount if line.discount else share
        for line, share in zip(lines, shares)
    ]


def icms_st_charged(
    amount: float, code: str | None, exempt_codes: Iterable[str] = DEFAULT_ST_EXEMPT_CODES
) -> float:
    """vICMSST da sommare al costo: solo se > 0 e CST non già trattenuto a monte."""
    if amount <= 0:
        return 0.0
    if code is not None and code.strip() in exempt_codes:
        return 0.0
    return amount


def decompose_line(
    line: InvoiceLine,
    apportioned_discount: float,
    options: ReconciliationOptions | None = None,
) -> EnrichedLine:
    """Costruisce la EnrichedLine; gli arrotondamenti avvengono solo qui."""
    options = options or ReconciliationOptions()

    if options.tax_enrichment:
        discount = apportioned_discount
        ipi = line.ipi_amount if line.ipi_amount > 0 else 0.0
        icms_st = icms_st_charged(
            line.icms_st_amount, line.icms_code, options.st_exempt_codes
        )
        other = line.other_charges if line.other_charges > 0 else 0.0
    else:
        # Modalità storica: solo lo sconto esplicito della riga
        discount = line.discount
        ipi = icms_st = other = 0.0

    total_paid = line.gross_value - discount + ipi + icms_st + other

    size = parse_size(line.description)
    pack = detect_pack(line.description)
    units = infer_units(line, size, pack)

    unit_cost = total_paid / units.count if units.count > 0 else 0.0
    price_per_measure = None
    if size.known and unit_cost:
        price_per_measure = round_half_up(
            unit_cost / size.normalized_magnitude, UNIT_PRICE_DECIMALS
        )

    commercial_unit_price = 0.0
    if line.commercial_quantity > 0:
        commercial_unit_price = (line.gross_value - discount) / line.commercial_quantity

    return EnrichedLine(
        line=line,
        applied_discount=round_half_up(discount, CURRENCY_DECIMALS),
        ipi_charged=round_half_up(ipi, CURRENCY_DECIMALS),
        icms_st_charged=round_half_up(icms_st, CURRENCY_DECIMALS),
        total_paid=round_half_up(total_paid, CURRENCY_DECIMALS),
        unit_count=round_half_up(units.count, UNIT_PRICE_DECIMALS),
        units_tag=units.tag,
        units_rationale=units.rationale,
        pack=pack,
        size=size,
        unit_cost=round_half_up(unit_cost, UNIT_PRICE_DECIMALS),
        price_per_measure=price_per_measure,
        measure_unit=size.normalized_unit if price_per_measure is not None else None,
        commercial_unit_price=round_half_up(commercial_unit_price, UNIT_PRICE_DECIMALS),
    )


def decompose_invoice(
    invoice: ParsedInvoice, options: ReconciliationOptions | None = None
) -> list[EnrichedLine]:
    """Scompone tutte le righe di un documento (ripartizione sconto per documento)."""
    options = options or ReconciliationOptions()
    lines = list(invoice.lines)
    if options.tax_enrichment:
        discounts = apportion_discounts(lines, invoice.declared_discount_total)
    else:
        discounts = [line.discount for line in lines]

    return [
        decompose_line(line, discount, options)
        for line, discount in zip(lines, discounts)
    ]


__all__ = [
    "ReconciliationOptions",
    "infer_units",
    "apportion_discounts",
    "icms_st_charged",
    "decompose_line",
    "decompose_invoice",
]
