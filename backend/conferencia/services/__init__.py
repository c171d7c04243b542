from .comparison_service import ComparisonService, comparison_service
from .storage import UploadReader, UploadedDocument, upload_reader

__all__ = [
    "ComparisonService",
    "comparison_service",
    "UploadReader",
    "UploadedDocument",
    "upload_reader",
]
