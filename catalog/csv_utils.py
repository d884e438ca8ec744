"""CSV import and export utilities."""

import csv
import io
import os
import warnings
from typing import Any, Dict, Iterable, List

import pandas as pd

from catalog.errors import ParseError
from catalog.models import Product

__all__ = [
    "read_csv_rows",
    "product_to_row",
    "export_products_to_csv",
    "products_to_csv_text",
    "EXPORT_FIELDS",
]

# Column order for exports; list fields are joined with "; "
EXPORT_FIELDS = [
    "id", "name", "description", "category", "supplier", "price", "unit",
    "available", "imageUrl", "technicalDetails", "applications", "badges",
    "item_number", "url", "createdAt", "updatedAt",
]


def read_csv_rows(text: str) -> List[Dict[str, Any]]:
    """Parse CSV text into a list of row dicts keyed by header name.

    Every cell is kept as a string; cells missing from short rows are None.
    Blank lines are skipped and an empty document yields no rows. Rows with
    more fields than the header are rejected, never shifted into an index.

    Raises:
        ParseError: With the parser's own message on structural errors
    """
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", pd.errors.ParserWarning)
            df = pd.read_csv(
                io.StringIO(text),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                index_col=False,
            )
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, pd.errors.ParserWarning, UnicodeDecodeError) as e:
        raise ParseError(f"CSV parsing error: {e}") from e

    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


def product_to_row(product: Product) -> Dict[str, Any]:
    """Convert a Product into a CSV-ready row."""
    row = product.to_dict()
    for key in ("applications", "badges"):
        row[key] = "; ".join(str(v) for v in row.get(key) or [])
    row["available"] = "true" if row["available"] else "false"
    if row.get("price") is None:
        row["price"] = ""
    return row


def _write_rows(handle, products: Iterable[Product]) -> int:
    writer = csv.DictWriter(handle, fieldnames=EXPORT_FIELDS, extrasaction="ignore")
    writer.writeheader()
    count = 0
    for product in products:
        writer.writerow(product_to_row(product))
        count += 1
    return count


def products_to_csv_text(products: Iterable[Product]) -> str:
    """Render products as CSV text (header included)."""
    buffer = io.StringIO()
    _write_rows(buffer, products)
    return buffer.getvalue()


def export_products_to_csv(products: Iterable[Product], csv_path: str) -> int:
    """Export products to a CSV file.

    The output can be ingested again: the CSV normalizer reads the id, core
    text fields, price, unit, availability and timestamps back.

    Args:
        products: Products to export, typically the filtered view
        csv_path: Path for the output CSV file

    Returns:
        Number of products exported
    """
    os.makedirs(os.path.dirname(csv_path) or ".", exist_ok=True)
    with open(csv_path, "w", newline="", encoding="utf-8") as f:
        count = _write_rows(f, products)
    return count
