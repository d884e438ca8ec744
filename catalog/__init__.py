"""Product catalog ingestion: normalize CSV/JSON sources into one product store."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from catalog.errors import (
    FormatError,
    IngestionError,
    ParseError,
    SupplierNotFoundError,
    TransportError,
    UnexpectedIngestionError,
)
from catalog.feeds import SupplierFeedClient
from catalog.ingest import CatalogIngestor, IngestResult
from catalog.models import Filters, Product, SupplierEntry, SupplierTheme
from catalog.normalize import (
    category_structure_to_products,
    csv_row_to_product,
    detect_json_format,
    json_item_to_product,
    products_from_csv_text,
    products_from_json_text,
)
from catalog.projection import FilteredView, filter_products
from catalog.store import CatalogStore, StoreState

__all__ = [
    # Version
    "__version__",
    # Models
    "Product",
    "Filters",
    "SupplierEntry",
    "SupplierTheme",
    # Errors
    "IngestionError",
    "TransportError",
    "ParseError",
    "FormatError",
    "SupplierNotFoundError",
    "UnexpectedIngestionError",
    # Normalizers
    "csv_row_to_product",
    "json_item_to_product",
    "category_structure_to_products",
    "detect_json_format",
    "products_from_csv_text",
    "products_from_json_text",
    # Store and projection
    "CatalogStore",
    "StoreState",
    "filter_products",
    "FilteredView",
    # Orchestration
    "CatalogIngestor",
    "IngestResult",
    "SupplierFeedClient",
]
