from .parser import DOCUMENT_SHAPES, DocumentShape, parse_invoice

__all__ = ["DOCUMENT_SHAPES", "DocumentShape", "parse_invoice"]
