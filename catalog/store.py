"""Canonical product store.

Holds two collections: ``original_products``, the snapshot as first loaded,
and ``products``, the editable working set. State lives in an immutable
``StoreState``; every operation swaps in a new snapshot and returns it, so
readers never observe a half-applied update.

Edits only ever touch ``products``. ``reset_to_original`` is a hard rollback
to the snapshot taken by the last ``set_products`` call.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from catalog.coerce import to_boolean, to_number_or_none, to_text
from catalog.logging_config import get_logger
from catalog.models import Filters, Product
from catalog.normalize import category_structure_to_products
from catalog.projection import FilteredView

__all__ = ["StoreState", "CatalogStore", "coerce_edit", "FILTER_KEYS"]

logger = get_logger("store")

FILTER_KEYS = ("category", "supplier", "search_term")


@dataclass(frozen=True)
class StoreState:
    original_products: Tuple[Product, ...] = ()
    products: Tuple[Product, ...] = ()
    selected_product: Optional[Product] = None
    filters: Filters = field(default_factory=Filters)
    is_loading: bool = False
    error: Optional[str] = None


def coerce_edit(field_name: str, raw: Any) -> Any:
    """Coerce a raw edited cell value into the type of ``field_name``."""
    if field_name == "price":
        return to_number_or_none(raw)
    if field_name == "available":
        return to_boolean(raw, default=False)
    if field_name in ("applications", "badges"):
        if isinstance(raw, str):
            return [part.strip() for part in raw.split(",") if part.strip()]
        return list(raw or [])
    return to_text(raw)


class CatalogStore:
    """Explicit state container for the canonical product collection."""

    def __init__(self, state: Optional[StoreState] = None) -> None:
        self._state = state or StoreState()
        self._view = FilteredView()

    @property
    def state(self) -> StoreState:
        return self._state

    def _commit(self, **changes: Any) -> StoreState:
        self._state = replace(self._state, **changes)
        return self._state

    # ------------------------------------------------------------------
    # Collection replacement
    # ------------------------------------------------------------------

    def set_products(self, products: Iterable[Product]) -> StoreState:
        """Replace both the original snapshot and the working set."""
        snapshot = tuple(products)
        logger.debug(f"Loaded {len(snapshot)} products")
        return self._commit(
            original_products=snapshot,
            products=snapshot,
            is_loading=False,
        )

    def set_products_from_category_structure(self, structure: Mapping[str, Any]) -> StoreState:
        """Normalize ``{category: [items]}`` and load the result."""
        return self.set_products(category_structure_to_products(structure))

    def reset_to_original(self) -> StoreState:
        """Discard all edits, filters and the selection."""
        return self._commit(
            products=tuple(self._state.original_products),
            filters=Filters(),
            selected_product=None,
        )

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def update_product(self, updated: Product) -> StoreState:
        """Replace the record with the same id; no-op if there is none."""
        state = self._state
        if not any(p.id == updated.id for p in state.products):
            logger.debug(f"update_product: no product with id {updated.id!r}")
            return state

        products = tuple(updated if p.id == updated.id else p for p in state.products)
        selected = state.selected_product
        if selected is not None and selected.id == updated.id:
            selected = updated
        return self._commit(products=products, selected_product=selected)

    def edit_product(self, product_id: str, **changes: Any) -> Optional[Product]:
        """Merge field changes into a product and store the new record.

        Returns the new record, or None if the id is unknown.
        """
        current = self.get_product(product_id)
        if current is None:
            return None
        updated = current.with_changes(**changes)
        self.update_product(updated)
        return updated

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in self._state.products:
            if product.id == product_id:
                return product
        return None

    # ------------------------------------------------------------------
    # Filters and selection
    # ------------------------------------------------------------------

    def set_filter(self, key: str, value: Optional[str]) -> StoreState:
        """Set one filter; an empty category or supplier clears that filter."""
        if key not in FILTER_KEYS:
            raise KeyError(f"Unknown filter: {key}")
        if key == "search_term":
            value = value or ""
        elif value == "":
            value = None
        return self._commit(filters=replace(self._state.filters, **{key: value}))

    def set_search_term(self, term: str) -> StoreState:
        return self.set_filter("search_term", term)

    def clear_filters(self) -> StoreState:
        return self._commit(filters=Filters())

    def set_selected_product(self, product: Optional[Product]) -> StoreState:
        return self._commit(selected_product=product)

    def set_error(self, error: Optional[str]) -> StoreState:
        return self._commit(error=error)

    def set_loading(self, is_loading: bool) -> StoreState:
        return self._commit(is_loading=is_loading)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def filtered_products(self) -> List[Product]:
        """Products matching the active filters (memoized)."""
        return self._view.get(self._state.products, self._state.filters)
