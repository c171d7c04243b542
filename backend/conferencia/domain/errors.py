"""Errori strutturali che interrompono una conferenza.

Le ambiguità a livello di singola riga (unità non identificata, quantità o prezzo
non positivi) non sollevano eccezioni: finiscono in tag/stato/nota della riga.
"""
from __future__ import annotations


class ComparisonError(ValueError):
    """Base per gli errori che bloccano l'intera richiesta."""


class MalformedDocument(ComparisonError):
    """Documento NF-e illeggibile o senza righe prodotto riconoscibili."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class MissingRequiredColumn(ComparisonError):
    """La tabella prezzi non contiene una colonna obbligatoria."""

    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(f'Coluna "{column}" não encontrada')


class EmptyPriceTable(ComparisonError):
    """La tabella prezzi non ha righe dati dopo l'intestazione."""


__all__ = [
    "ComparisonError",
    "MalformedDocument",
    "MissingRequiredColumn",
    "EmptyPriceTable",
]
