"""
Configurazione e costanti per il motore di conferenza.
"""

# Barcode
VALID_BARCODE_LENGTHS = frozenset({8, 12, 13, 14})
"""Lunghezze ammesse per EAN/GTIN dopo la rimozione dei caratteri non numerici."""

# Unit labels (uTrib)
DIRECT_UNIT_LABELS = frozenset(
    {"LAT", "LATA", "GR", "GRF", "PEC", "PC", "PC1", "UN", "UN1", "UND", "UNID"}
)
"""Unità tributarie contabili direttamente (lattine, vasetti, pezzi, unità)."""

MASS_VOLUME_LABELS = frozenset({"KG", "G", "L", "ML"})
"""Unità tributarie a peso/volume: le unità vendibili si deducono dalla descrizione."""

SUBUNIT_LABELS = {"G": "KG", "ML": "L"}
"""Sottomultipli convertiti (÷1000) nell'unità normalizzata."""

PACK_ROUNDING_TOLERANCE = 0.1
"""Scarto massimo dall'intero più vicino per accettare il conteggio con pack."""

# Fuzzy matching
FUZZY_MIN_SCORE = 0.80
"""Soglia minima di similarità bigrammi per il match per descrizione."""

NOISE_TOKENS = ("LT", "LATA", "PET", "CP", "FI", "FL", "CX", "PACK", "FARDO", "KIT")
"""Token di imballo rimossi prima del confronto descrizioni."""

CAPACITY_UNITS = ("ML", "L", "G", "KG", "MG")
"""Unità che definiscono un token di capacità (es. 500ML)."""

# ICMS-ST
DEFAULT_ST_EXEMPT_CODES = frozenset({"60"})
"""CST con ICMS-ST già trattenuto a monte (non sommato al costo della riga)."""

# Margin / conference
DEFAULT_MARGIN_PERCENT = 50.0
"""Margine di default: prezzo minimo = 1.5 × costo unitario reale."""

BALANCE_TOLERANCE = "0.01"
"""Differenza assoluta (esclusa) sotto cui somma righe e vNF coincidono."""

CURRENCY_DECIMALS = 2
UNIT_PRICE_DECIMALS = 4
