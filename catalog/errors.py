"""Ingestion error taxonomy.

Transport, parse and format failures abort an ingestion and surface to the
caller as a single message. Field-level anomalies never raise; the
normalizers default or coerce them instead.
"""

__all__ = [
    "IngestionError",
    "TransportError",
    "ParseError",
    "FormatError",
    "SupplierNotFoundError",
    "UnexpectedIngestionError",
    "UNRECOGNIZED_FORMAT",
]

UNRECOGNIZED_FORMAT = (
    "Unrecognized format: expected either an array of products "
    "or a category-structured object."
)


class IngestionError(Exception):
    """Base class for failures that abort an ingestion."""
    pass


class TransportError(IngestionError):
    """Raised when a file or network read fails."""
    pass


class ParseError(IngestionError):
    """Raised when a document is not valid JSON or CSV."""
    pass


class FormatError(IngestionError):
    """Raised when a parsed document has an unrecognized top-level shape."""

    def __init__(self, message: str = UNRECOGNIZED_FORMAT):
        super().__init__(message)


class SupplierNotFoundError(IngestionError):
    """Raised when a supplier id is missing from the supplier index."""
    pass


class UnexpectedIngestionError(IngestionError):
    """Raised when a loader fails with an exception outside this taxonomy."""
    pass
