"""Filter and search projection over the working product set."""

from dataclasses import fields
from typing import Any, List, Optional, Sequence, Tuple

from catalog.models import Filters, Product

__all__ = ["filter_products", "matches_search", "facet_values", "FilteredView"]

_FIELD_NAMES = [f.name for f in fields(Product)]
_FACET_FIELDS = {"category", "supplier"}


def _value_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def matches_search(product: Product, search_term: str) -> bool:
    """True if any non-empty field contains ``search_term`` (case-insensitive)."""
    if not search_term:
        return True
    needle = search_term.lower()
    for name in _FIELD_NAMES:
        value = getattr(product, name)
        if not value:
            continue
        if needle in _value_text(value).lower():
            return True
    return False


def filter_products(products: Sequence[Product], filters: Filters) -> List[Product]:
    """Return the products matching search, category and supplier, in order."""
    return [
        product
        for product in products
        if matches_search(product, filters.search_term)
        and (filters.category is None or product.category == filters.category)
        and (filters.supplier is None or product.supplier == filters.supplier)
    ]


def facet_values(products: Sequence[Product], field_name: str) -> List[str]:
    """Sorted distinct non-empty values of ``category`` or ``supplier``."""
    if field_name not in _FACET_FIELDS:
        raise KeyError(f"Unsupported facet: {field_name}")
    return sorted({getattr(p, field_name) for p in products if getattr(p, field_name)})


class FilteredView:
    """Memoized projection, recomputed only when products or filters change.

    Store snapshots replace the products tuple on every mutation, so the
    tuple's identity is enough to detect a change.
    """

    def __init__(self) -> None:
        self._key: Optional[Tuple[int, Filters]] = None
        self._products: Optional[Sequence[Product]] = None
        self._result: List[Product] = []

    def get(self, products: Sequence[Product], filters: Filters) -> List[Product]:
        key = (id(products), filters)
        if self._key != key or self._products is not products:
            self._result = filter_products(products, filters)
            self._key = key
            self._products = products
        return list(self._result)
