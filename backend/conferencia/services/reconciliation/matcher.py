"""
Matching di una riga NF-e sulla tabella prezzi.

Cascata, ferma al primo successo: cEAN, cEANTrib, cProd, descrizione (fuzzy).
"""
from __future__ import annotations

from typing import Optional, Sequence

from conferencia.domain.models import (
    EnrichedLine,
    MatchResult,
    MatchTag,
    PriceTableRow,
)
from conferencia.services.reconciliation.config import FUZZY_MIN_SCORE
from conferencia.services.reconciliation.normalization import (
    bigram_similarity,
    digits_only,
    has_capacity_overlap,
    normalize_name,
    round_half_up,
)
from conferencia.services.reconciliation.price_index import PriceIndex


NOTE_NO_BARCODE = "EAN XML vazio/SEM GTIN"
NOTE_PRIMARY_UNMATCHED = "cEAN sem match"
NOTE_SECONDARY_UNMATCHED = "cEANTrib sem match"


def find_fuzzy_candidate(
    description: str,
    candidates: Sequence[PriceTableRow],
    min_score: float = FUZZY_MIN_SCORE,
) -> tuple[Optional[PriceTableRow], float]:
    """
    Miglior candidato per similarità bigrammi sulle descrizioni normalizzate.

    I candidati con capacità incompatibile (500ML vs 1L) sono scartati prima
    del punteggio; a parità di punteggio resta il primo trovato.
    """
    query = normalize_name(description)
    if not query:
        return None, 0.0

    best_row: Optional[PriceTableRow] = None
    best_score = 0.0
    for row in candidates:
        if not has_capacity_overlap(description, row.description):
            continue
        score = bigram_similarity(query, normalize_name(row.description))
        if score > best_score and score >= min_score:
            best_row = row
            best_score = score
    return best_row, best_score


def _unmatched_note(primary: str | None, secondary: str | None) -> str:
    if not primary and not secondary:
        return NOTE_NO_BARCODE
    if primary and secondary:
        return f"{NOTE_PRIMARY_UNMATCHED}; {NOTE_SECONDARY_UNMATCHED}"
    return NOTE_PRIMARY_UNMATCHED if primary else NOTE_SECONDARY_UNMATCHED


def match_line(
    enriched: EnrichedLine,
    index: PriceIndex,
    min_score: float = FUZZY_MIN_SCORE,
) -> MatchResult:
    line = enriched.line
    primary = line.barcode
    secondary = line.taxable_barcode

    price = index.price_for_barcode(primary)
    if price is not None:
        return MatchResult(
            tag=MatchTag.barcode_primary,
            price=price,
            matched_barcode=digits_only(primary),
        )

    price = index.price_for_barcode(secondary)
    if price is not None:
        return MatchResult(
            tag=MatchTag.barcode_secondary,
            price=price,
            matched_barcode=digits_only(secondary),
        )

    price = index.price_for_code(line.code)
    if price is not None:
        return MatchResult(tag=MatchTag.code, price=price)

    row, score = find_fuzzy_candidate(line.description, index.fuzzy_rows, min_score)
    if row is not None:
        return MatchResult(
            tag=MatchTag.fuzzy,
            price=row.price,
            matched_barcode=digits_only(row.barcode) or None,
            score=round_half_up(score, 4),
        )

    return MatchResult(tag=MatchTag.none, note=_unmatched_note(primary, secondary))


__all__ = ["match_line", "find_fuzzy_candidate"]
