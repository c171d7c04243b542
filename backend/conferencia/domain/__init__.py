"""Domain conferenza (righe NF-e, tabella prezzi, esiti)."""
from .errors import (
    ComparisonError,
    EmptyPriceTable,
    MalformedDocument,
    MissingRequiredColumn,
)
from .models import (
    Conference,
    EnrichedLine,
    InvoiceLine,
    LineStatus,
    MatchResult,
    MatchTag,
    ParsedInvoice,
    PriceTableRow,
    ReconciliationItem,
    ReconciliationResult,
    SizeInfo,
    UnitsResult,
    UnitsTag,
)

__all__ = [
    "ComparisonError",
    "EmptyPriceTable",
    "MalformedDocument",
    "MissingRequiredColumn",
    "Conference",
    "EnrichedLine",
    "InvoiceLine",
    "LineStatus",
    "MatchResult",
    "MatchTag",
    "ParsedInvoice",
    "PriceTableRow",
    "ReconciliationItem",
    "ReconciliationResult",
    "SizeInfo",
    "UnitsResult",
    "UnitsTag",
]
