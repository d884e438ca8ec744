"""Schema normalizers: map CSV rows and JSON documents onto Product records.

Three source shapes are supported:

- CSV rows (column name -> cell value), one product per row
- flat JSON arrays of product-like objects with inconsistent key names
- category-structured JSON, ``{"Category": [item, ...], ...}``

The normalizers are pure: they never touch the store and never raise on
missing or malformed fields. Only unparseable documents and unrecognized
top-level shapes raise (see ``catalog.errors``).
"""

import json
import uuid
from dataclasses import replace
from typing import Any, Iterable, List, Mapping, Optional

from catalog.coerce import (
    is_missing,
    now_iso,
    to_boolean,
    to_number_or_none,
    to_string_list,
    to_text,
)
from catalog.config import CSV_COLUMNS, DEFAULT_CATEGORY, DEFAULT_SUPPLIER, get_aliases
from catalog.csv_utils import read_csv_rows
from catalog.errors import FormatError, ParseError
from catalog.logging_config import get_logger
from catalog.models import Product

__all__ = [
    "CATEGORY_FORMAT",
    "FLAT_FORMAT",
    "resolve_alias",
    "csv_row_to_product",
    "json_item_to_product",
    "normalize_csv_rows",
    "normalize_json_items",
    "category_structure_to_products",
    "detect_json_format",
    "products_from_json",
    "products_from_json_text",
    "products_from_csv_text",
]

logger = get_logger("normalize")

CATEGORY_FORMAT = "category"
FLAT_FORMAT = "flat"


def _generate_id() -> str:
    return str(uuid.uuid4())


def resolve_alias(item: Mapping[str, Any], field_name: str) -> Any:
    """Return the value of the first present alias key for ``field_name``.

    A key is present when its value is neither None nor an empty string.
    Returns None when no alias is present.
    """
    for key in get_aliases(field_name):
        value = item.get(key)
        if not is_missing(value) and value != "":
            return value
    return None


def _ensure_unique_ids(products: List[Product]) -> List[Product]:
    """Give repeated ids a fresh UUID, keeping the first occurrence."""
    seen = set()
    result: List[Product] = []
    for product in products:
        if product.id in seen:
            new_id = _generate_id()
            logger.warning(f"Duplicate product id {product.id!r} replaced with {new_id}")
            product = replace(product, id=new_id)
        seen.add(product.id)
        result.append(product)
    return result


# =============================================================================
# CSV
# =============================================================================

def csv_row_to_product(row: Mapping[str, Any], index: int) -> Product:
    """Convert one CSV row into a Product.

    Columns map 1:1 by name. A missing id becomes ``temp-<index>`` and a
    missing ``available`` column means unavailable.
    """
    def cell(field_name: str) -> Any:
        return row.get(CSV_COLUMNS[field_name])

    timestamp = now_iso()
    return Product(
        id=to_text(cell("id"), default=f"temp-{index}"),
        name=to_text(cell("name")),
        description=to_text(cell("description")),
        category=to_text(cell("category")),
        supplier=to_text(cell("supplier")),
        price=to_number_or_none(cell("price")),
        unit=to_text(cell("unit"), default=None),
        available=to_boolean(cell("available"), default=False),
        created_at=to_text(cell("created_at"), default=timestamp),
        updated_at=to_text(cell("updated_at"), default=timestamp),
    )


def normalize_csv_rows(rows: Iterable[Mapping[str, Any]]) -> List[Product]:
    """Convert parsed CSV rows into products with unique ids."""
    products = [csv_row_to_product(row, index) for index, row in enumerate(rows)]
    return _ensure_unique_ids(products)


def products_from_csv_text(text: str) -> List[Product]:
    """Parse CSV text (header row first) and normalize every data row."""
    return normalize_csv_rows(read_csv_rows(text))


# =============================================================================
# JSON
# =============================================================================

def json_item_to_product(item: Mapping[str, Any], category: Optional[str] = None) -> Product:
    """Convert one flat JSON object into a Product using the alias tables.

    Args:
        item: Source object with arbitrary key naming
        category: When given, overrides any category in the item

    Returns:
        A fully populated Product
    """
    def text(field_name: str, default: Optional[str] = "") -> Optional[str]:
        return to_text(resolve_alias(item, field_name), default=default)

    timestamp = now_iso()
    return Product(
        id=text("id", default=None) or _generate_id(),
        name=text("name"),
        description=text("description"),
        category=category if category is not None else text("category", DEFAULT_CATEGORY),
        supplier=text("supplier", DEFAULT_SUPPLIER),
        price=to_number_or_none(resolve_alias(item, "price")),
        unit=text("unit", default=None),
        available=to_boolean(resolve_alias(item, "available"), default=True),
        image_url=text("image_url", default=None),
        technical_details=text("technical_details", default=None),
        applications=to_string_list(resolve_alias(item, "applications")),
        badges=to_string_list(resolve_alias(item, "badges")),
        item_number=text("item_number", default=None),
        url=text("url", default=None),
        created_at=text("created_at", timestamp),
        updated_at=text("updated_at", timestamp),
    )


def _iter_objects(items: Iterable[Any], context: str) -> Iterable[Mapping[str, Any]]:
    for position, item in enumerate(items):
        if isinstance(item, Mapping):
            yield item
        else:
            logger.warning(f"Skipping non-object item at {context}[{position}]: {type(item).__name__}")


def normalize_json_items(items: Iterable[Any]) -> List[Product]:
    """Convert a flat JSON array into products with unique ids."""
    products = [json_item_to_product(item) for item in _iter_objects(items, "items")]
    return _ensure_unique_ids(products)


def category_structure_to_products(structure: Mapping[str, Any]) -> List[Product]:
    """Flatten ``{category: [items]}`` into products.

    The enclosing key always wins over any ``category`` inside an item.
    Order follows the mapping's insertion order, then each list's order.
    Keys whose value is not a list are skipped.
    """
    products: List[Product] = []
    for category, items in structure.items():
        if not isinstance(items, list):
            logger.debug(f"Skipping non-list category key {category!r}")
            continue
        for item in _iter_objects(items, repr(category)):
            products.append(json_item_to_product(item, category=str(category)))
    return _ensure_unique_ids(products)


def detect_json_format(data: Any) -> str:
    """Classify a parsed JSON document as category-structured or flat.

    Raises:
        FormatError: If the document is neither shape
    """
    if isinstance(data, dict) and any(isinstance(value, list) for value in data.values()):
        return CATEGORY_FORMAT
    if isinstance(data, list):
        return FLAT_FORMAT
    raise FormatError()


def products_from_json(data: Any) -> List[Product]:
    """Normalize an already-parsed JSON document of either shape."""
    if detect_json_format(data) == CATEGORY_FORMAT:
        return category_structure_to_products(data)
    return normalize_json_items(data)


def products_from_json_text(text: str) -> List[Product]:
    """Parse JSON text and normalize it.

    Raises:
        ParseError: If the text is not valid JSON
        FormatError: If the document shape is unrecognized
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ParseError(f"Invalid JSON: {e}") from e
    return products_from_json(data)
