"""Configuration and constants for catalog ingestion."""

import os
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv

__all__ = [
    "PROJECT_ROOT",
    "SUPPLIER_DATA_SOURCE",
    "SUPPLIER_INDEX_FILE",
    "REQUEST_TIMEOUT",
    "HEADERS",
    "LOG_DIR",
    "FLASK_HOST",
    "FLASK_PORT",
    "FLASK_DEBUG",
    "MAX_UPLOAD_BYTES",
    "DEFAULT_CATEGORY",
    "DEFAULT_SUPPLIER",
    "CSV_COLUMNS",
    "FIELD_ALIASES",
    "THEME_DEFAULTS",
    "get_aliases",
]

_THIS_DIR = Path(__file__).parent
PROJECT_ROOT = _THIS_DIR.parent

# Load environment variables from .env file at the project root
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")

# Supplier feeds: either an http(s) base URL or a local directory
SUPPLIER_DATA_SOURCE = os.getenv(
    "CATALOG_SUPPLIER_DATA", str(PROJECT_ROOT / "supplier-data")
)
SUPPLIER_INDEX_FILE = "suppliers.json"

# HTTP settings for remote feeds
REQUEST_TIMEOUT = float(os.getenv("CATALOG_REQUEST_TIMEOUT", "15"))
HEADERS = {
    "User-Agent": "catalog-ingest/0.1 (supplier feed client)",
    "Accept": "application/json",
}

# Logs
LOG_DIR = Path(os.getenv("CATALOG_LOG_DIR", str(PROJECT_ROOT / "logs")))

# Flask app settings (allow env overrides; default debug off for safety)
FLASK_HOST = os.getenv("FLASK_HOST", "127.0.0.1")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "5000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"
MAX_UPLOAD_BYTES = int(float(os.getenv("CATALOG_MAX_UPLOAD_MB", "16")) * 1024 * 1024)


# =============================================================================
# Field Defaults and Alias Tables
# =============================================================================

DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_SUPPLIER = "Unknown"

# CSV columns map 1:1 onto product fields; anything else in the file is ignored
CSV_COLUMNS: Dict[str, str] = {
    "id": "id",
    "name": "name",
    "description": "description",
    "category": "category",
    "supplier": "supplier",
    "price": "price",
    "unit": "unit",
    "available": "available",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

# Each product field maps to the source keys tried in order; first present wins.
# New aliases go here, the normalizers read this table.
FIELD_ALIASES: Dict[str, List[str]] = {
    "id": ["id"],
    "name": ["name", "product_name", "title"],
    "description": ["description"],
    "category": ["category"],
    "supplier": ["supplier", "vendor"],
    "price": ["price"],
    "unit": ["unit", "pack_size"],
    "available": ["available"],
    "image_url": ["image_url", "imageUrl", "image"],
    "technical_details": ["technical_details", "technicalDetails"],
    "applications": ["applications"],
    "badges": ["badges"],
    "item_number": ["item_number", "itemNumber"],
    "url": ["url", "product_url"],
    "created_at": ["createdAt", "created_at"],
    "updated_at": ["updatedAt", "updated_at"],
}

# Supplier theme config: config key -> default value
THEME_DEFAULTS: Dict[str, str] = {
    "supplier_name": "Supplier Catalog",
    "primary_color": "#1e40af",
    "secondary_color": "#047857",
    "tertiary_color": "#d97706",
    "logo_url": "",
    "contact_email": "",
    "contact_phone": "",
    "website": "",
}


def get_aliases(field_name: str) -> List[str]:
    """Get the candidate source keys for a product field."""
    return FIELD_ALIASES.get(field_name, [field_name])
