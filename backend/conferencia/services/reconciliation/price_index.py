"""
Indice di lookup sulla tabella prezzi, costruito una volta per conferenza.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from conferencia.domain.models import PriceTableRow
from conferencia.services.reconciliation.normalization import digits_only


@dataclass(frozen=True)
class PriceIndex:
    by_barcode: Mapping[str, float]
    by_code: Mapping[str, float]
    fuzzy_rows: Sequence[PriceTableRow]
    rows: Sequence[PriceTableRow] = field(default_factory=tuple)
    skipped_rows: int = 0

    @classmethod
    def build(cls, rows: Iterable[PriceTableRow]) -> "PriceIndex":
        """
        Mappe barcode→prezzo e codice→prezzo sulle righe con prezzo > 0
        (a parità di chiave vince la riga successiva) e lista, in ordine di
        tabella, delle righe con prezzo > 0 e descrizione per il fuzzy.
        """
        all_rows = tuple(rows)
        by_barcode: dict[str, float] = {}
        by_code: dict[str, float] = {}
        fuzzy_rows: list[PriceTableRow] = []
        skipped = 0

        for row in all_rows:
            if row.price <= 0:
                skipped += 1
                continue
            barcode = digits_only(row.barcode)
            if barcode:
                by_barcode[barcode] = row.price
            code = (row.code or "").strip()
            if code:
                by_code[code] = row.price
            if (row.description or "").strip():
                fuzzy_rows.append(row)

        return cls(
            by_barcode=MappingProxyType(by_barcode),
            by_code=MappingProxyType(by_code),
            fuzzy_rows=tuple(fuzzy_rows),
            rows=all_rows,
            skipped_rows=skipped,
        )

    def price_for_barcode(self, barcode: str | None) -> float | None:
        if not barcode:
            return None
        return self.by_barcode.get(digits_only(barcode))

    def price_for_code(self, code: str | None) -> float | None:
        if not code or not code.strip():
            return None
        return self.by_code.get(code.strip())


__all__ = ["PriceIndex"]
