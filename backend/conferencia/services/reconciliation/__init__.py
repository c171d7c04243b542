"""
Motore di conferenza NF-e × tabella prezzi.

Struttura modulare:
- config: costanti (etichette uTrib, soglie, token di rumore)
- normalization: numeri, barcode, descrizioni, similarità bigrammi
- units: formato (peso/volume) e pack dalla descrizione
- decomposer: costo reale per unità vendibile
- price_index / matcher: lookup e cascata di matching
- classifier: prezzo minimo, stato riga, conferenza totali
- report: eventi diagnostici e riepilogo
- engine: una conferenza completa
"""

from .classifier import build_conference, classify, line_status, minimum_price
from .decomposer import (
    ReconciliationOptions,
    apportion_discounts,
    decompose_invoice,
    decompose_line,
    icms_st_charged,
    infer_units,
)
from .engine import run_reconciliation
from .matcher import find_fuzzy_candidate, match_line
from .normalization import (
    bigram_similarity,
    digits_only,
    extract_capacity_tokens,
    has_capacity_overlap,
    normalize_barcode,
    normalize_name,
    parse_locale_number,
    round_half_up,
)
from .price_index import PriceIndex
from .report import (
    DiagnosticEvent,
    build_diagnostics,
    logging_observer,
    unpriced_samples,
)
from .units import detect_pack, parse_size

__all__ = [
    "ReconciliationOptions",
    "run_reconciliation",
    "parse_locale_number",
    "digits_only",
    "normalize_barcode",
    "round_half_up",
    "normalize_name",
    "extract_capacity_tokens",
    "has_capacity_overlap",
    "bigram_similarity",
    "parse_size",
    "detect_pack",
    "infer_units",
    "apportion_discounts",
    "icms_st_charged",
    "decompose_line",
    "decompose_invoice",
    "PriceIndex",
    "match_line",
    "find_fuzzy_candidate",
    "minimum_price",
    "line_status",
    "classify",
    "build_conference",
    "DiagnosticEvent",
    "build_diagnostics",
    "logging_observer",
    "unpriced_samples",
]
