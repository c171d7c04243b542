"""Strutture dati del motore di conferenza NF-e × tabella prezzi."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence


class UnitsTag(str, Enum):
    direct_unit = "direct-unit"
    computed = "computed"
    computed_with_pack_check = "computed-with-pack-check"
    unit_not_identified = "unit-not-identified"
    fallback = "fallback"


class MatchTag(str, Enum):
    barcode_primary = "barcode-primary"
    barcode_secondary = "barcode-secondary"
    code = "code"
    fuzzy = "fuzzy"
    none = "none"


class LineStatus(str, Enum):
    ok = "ok"
    below_minimum = "below-minimum"
    no_price = "no-price"
    parse_error = "parse-error"


@dataclass(frozen=True)
class InvoiceLine:
    """Riga prodotto (det) così come letta dall'XML, senza calcoli."""

    code: str
    description: str
    commercial_unit: str
    commercial_quantity: float
    taxable_unit: str
    taxable_quantity: float
    gross_value: float
    discount: float = 0.0
    other_charges: float = 0.0
    ipi_amount: float = 0.0
    icms_st_amount: float = 0.0
    icms_code: str | None = None
    barcode: str | None = None
    taxable_barcode: str | None = None
    source_document: str | None = None
    item_number: int | None = None


@dataclass(frozen=True)
class ParsedInvoice:
    lines: list[InvoiceLine]
    declared_discount_total: float
    declared_grand_total: float
    source: str | None = None
    access_key: str | None = None
    shape: str | None = None


@dataclass(frozen=True)
class SizeInfo:
    """Peso/volume di una singola unità vendibile (tutto None = sconosciuto)."""

    magnitude: float | None = None
    unit: str | None = None
    normalized_unit: str | None = None
    normalized_magnitude: float | None = None

    @property
    def known(self) -> bool:
        return bool(self.normalized_magnitude)


@dataclass(frozen=True)
class UnitsResult:
    count: float
    tag: UnitsTag
    rationale: str


@dataclass(frozen=True)
class EnrichedLine:
    """InvoiceLine con costi reali e unità vendibili (valori già arrotondati)."""

    line: InvoiceLine
    applied_discount: float
    ipi_charged: float
    icms_st_charged: float
    total_paid: float
    unit_count: float
    units_tag: UnitsTag
    units_rationale: str
    pack: int | None
    size: SizeInfo
    unit_cost: float
    price_per_measure: float | None = None
    measure_unit: str | None = None
    commercial_unit_price: float = 0.0


@dataclass(frozen=True)
class PriceTableRow:
    price: float
    barcode: str
    description: str
    code: str
    row_number: int | None = None


@dataclass(frozen=True)
class MatchResult:
    tag: MatchTag
    price: float | None = None
    matched_barcode: str | None = None
    score: float | None = None
    note: str = ""


@dataclass(frozen=True)
class ReconciliationItem:
    enriched: EnrichedLine
    match: MatchResult
    minimum_price: float
    status: LineStatus


@dataclass(frozen=True)
class Conference:
    items_total: float
    declared_total: float
    difference: float
    declared_discount_total: float
    balanced: bool
    source: str | None = None
    access_key: str | None = None


@dataclass(frozen=True)
class ReconciliationResult:
    items: Sequence[ReconciliationItem]
    conference: Conference
    documents: Sequence[Conference]
    margin_percent: float
    multiplier: float
    diagnostics: dict[str, Any] = field(default_factory=dict)
