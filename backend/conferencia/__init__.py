"""Conferência NF-e x tabela de preços: backend FastAPI e motore di riconciliazione."""

__version__ = "0.1.0"
