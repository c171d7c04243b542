"""
Inferenza di formato (peso/volume) e pack dalla descrizione prodotto.
"""
from __future__ import annotations

import re

from conferencia.domain.models import SizeInfo
from conferencia.services.reconciliation.config import SUBUNIT_LABELS
from conferencia.services.reconciliation.normalization import parse_locale_number


_SIZE_PATTERN = re.compile(
    r"(\d+(?:[.,]\d+)?)\s*(G|KG|ML|L|LITRO|LITROS)\b",
    flags=re.IGNORECASE,
)
_PACK_PATTERN = re.compile(r"(\d+)\s*(U|UN|UNID|PACK)\b", flags=re.IGNORECASE)

_NORMALIZED_UNITS = {
    "G": "KG",
    "KG": "KG",
    "ML": "L",
    "L": "L",
    "LITRO": "L",
    "LITROS": "L",
}


def parse_size(description: str | None) -> SizeInfo:
    """
    Primo token numero+unità della descrizione (es. "180G", "1,5 L").

    G e ML vengono riportati in KG e L dividendo per 1000.
    Nessun token: SizeInfo vuota (formato sconosciuto, mai zero).
    """
    if not description:
        return SizeInfo()
    match = _SIZE_PATTERN.search(description)
    if not match:
        return SizeInfo()

    magnitude = parse_locale_number(match.group(1))
    unit = match.group(2).upper()
    normalized = magnitude / 1000 if unit in SUBUNIT_LABELS else magnitude
    return SizeInfo(
        magnitude=magnitude,
        unit=unit,
        normalized_unit=_NORMALIZED_UNITS[unit],
        normalized_magnitude=normalized,
    )


def detect_pack(description: str | None) -> int | None:
    """Moltiplicatore di confezione ("12UN", "6 PACK"); None se non dichiarato."""
    if not description:
        return None
    match = _PACK_PATTERN.search(description)
    return int(match.group(1)) if match else None


__all__ = ["parse_size", "detect_pack"]
