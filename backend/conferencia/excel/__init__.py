from .parser import parse_price_table

__all__ = ["parse_price_table"]
