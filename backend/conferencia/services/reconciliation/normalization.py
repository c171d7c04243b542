"""
Utilità di normalizzazione numeri, barcode e descrizioni per la conferenza.
"""
from __future__ import annotations

import math
import re
import unicodedata
from collections import Counter
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from conferencia.services.reconciliation.config import (
    CAPACITY_UNITS,
    NOISE_TOKENS,
    VALID_BARCODE_LENGTHS,
)


_NON_DIGITS = re.compile(r"\D")
_WHITESPACE = re.compile(r"\s+")
_NOISE_PATTERN = re.compile(r"\b(?:" + "|".join(NOISE_TOKENS) + r")\b")
_COUNT_PATTERNS = (
    re.compile(r"C/\d+"),
    re.compile(r"\d+UN"),
    re.compile(r"\d+X"),
)
_CAPACITY_PATTERN = re.compile(
    r"(\d+(?:\.\d+)?)(" + "|".join(CAPACITY_UNITS) + r")\b",
    flags=re.IGNORECASE,
)


def parse_locale_number(value: Any) -> float:
    """
    Converte un valore inserito dall'utente in float.

    Accetta numeri, stringhe con virgola o punto come separatore decimale,
    separatori delle migliaia ("1.234,56", "1,234.56") e prefisso "R$".
    Valori vuoti, None o non interpretabili valgono 0.0 (anche NaN/inf).
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    text = str(value).strip().replace("R$", "")
    text = re.sub(r"[\s  ]", "", text)
    if not text:
        return 0.0

    if "," in text and "." in text:
        # Il separatore che compare per ultimo è quello decimale
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", "") if text.count(",") > 1 else text.replace(",", ".")
    elif text.count(".") > 1:
        text = text.replace(".", "")

    try:
        number = float(text)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def round_half_up(value: float | Decimal | int, decimals: int) -> float:
    """Arrotondamento commerciale (ROUND_HALF_UP) su base decimale."""
    exponent = Decimal(1).scaleb(-decimals)
    try:
        return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return 0.0


def cell_to_text(value: Any) -> str:
    """Testo di una cella; i float interi (es. EAN letti come 7891234567890.0) diventano interi."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def digits_only(value: Any) -> str:
    return _NON_DIGITS.sub("", cell_to_text(value))


def normalize_barcode(value: Any) -> str | None:
    """EAN/GTIN solo cifre se di lunghezza 8, 12, 13 o 14; altrimenti None ("SEM GTIN" incluso)."""
    digits = digits_only(value)
    if not digits or len(digits) not in VALID_BARCODE_LENGTHS:
        return None
    return digits


def strip_accents(text: str) -> str:
    normalized = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def normalize_name(name: str | None) -> str:
    """
    Normalizza una descrizione per il confronto fuzzy:
    maiuscolo, senza accenti, senza token di imballo e pattern di conteggio.
    """
    if not name:
        return ""
    normalized = strip_accents(name.upper())
    normalized = _NOISE_PATTERN.sub(" ", normalized)
    for pattern in _COUNT_PATTERNS:
        normalized = pattern.sub(" ", normalized)
    return _WHITESPACE.sub(" ", normalized).strip()


def extract_capacity_tokens(name: str | None) -> list[str]:
    """Token numero+unità (500ML, 1L, 180G...) dalla descrizione grezza."""
    if not name:
        return []
    return [match.group(0).upper() for match in _CAPACITY_PATTERN.finditer(name)]


def has_capacity_overlap(first: str | None, second: str | None) -> bool:
    """False solo se entrambe le descrizioni hanno capacità e nessuna coincide."""
    tokens_first = extract_capacity_tokens(first)
    tokens_second = extract_capacity_tokens(second)
    if not tokens_first or not tokens_second:
        return True
    return bool(set(tokens_first) & set(tokens_second))


def bigram_similarity(first: str, second: str) -> float:
    """Coefficiente di Dice sui bigrammi (spazi ignorati), in [0, 1]."""
    first = _WHITESPACE.sub("", first)
    second = _WHITESPACE.sub("", second)
    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    bigrams = Counter(first[i : i + 2] for i in range(len(first) - 1))
    intersection = 0
    for i in range(len(second) - 1):
        bigram = second[i : i + 2]
        if bigrams[bigram] > 0:
            bigrams[bigram] -= 1
            intersection += 1
    return (2.0 * intersection) / (len(first) + len(second) - 2)
