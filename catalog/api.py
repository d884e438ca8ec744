"""API endpoints over the catalog store.

These routes are the UI event handlers: uploads and supplier loads go
through the ingestor, edits/filters/selection go straight to the store,
and reads come from the filtered projection.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from flask import Blueprint, Response, current_app, jsonify, request

from catalog.csv_utils import products_to_csv_text
from catalog.errors import (
    IngestionError,
    SupplierNotFoundError,
    TransportError,
    UnexpectedIngestionError,
)
from catalog.ingest import CSV_SUFFIXES, JSON_SUFFIXES, CatalogIngestor, IngestResult
from catalog.projection import facet_values
from catalog.store import FILTER_KEYS, CatalogStore, coerce_edit

__all__ = ["api", "INGESTOR_KEY"]

logger = logging.getLogger(__name__)

INGESTOR_KEY = "catalog_ingestor"

api = Blueprint("api", __name__, url_prefix="/api")

ApiResponse = Union[Response, Tuple[Response, int]]

# Product fields that PATCH may change
EDITABLE_FIELDS = {
    "name", "description", "category", "supplier", "price", "unit", "available",
    "image_url", "technical_details", "applications", "badges", "item_number", "url",
}
# Wire names accepted as aliases for editable fields
_WIRE_TO_FIELD = {"imageUrl": "image_url", "technicalDetails": "technical_details"}


def _ingestor() -> CatalogIngestor:
    return current_app.extensions[INGESTOR_KEY]


def _store() -> CatalogStore:
    return _ingestor().store


def _error(message: str, status: int) -> Tuple[Response, int]:
    return jsonify({"error": message}), status


def _ingestion_status(error: IngestionError) -> int:
    if isinstance(error, SupplierNotFoundError):
        return 404
    if isinstance(error, TransportError):
        return 502
    if isinstance(error, UnexpectedIngestionError):
        return 500
    return 400


def _result_payload(result: IngestResult) -> Dict[str, Any]:
    return {
        "source": result.source,
        "count": result.count,
        "applied": result.applied,
        "total": len(_store().state.products),
    }


# ---------- PRODUCTS ----------


@api.route("/products", methods=["GET"])
def list_products() -> Response:
    """Filtered view of the working set."""
    store = _store()
    products = store.filtered_products()
    return jsonify({
        "products": [p.to_dict() for p in products],
        "count": len(products),
        "total": len(store.state.products),
        "filters": store.state.filters.to_dict(),
    })


@api.route("/products/<product_id>", methods=["GET"])
def get_product(product_id: str) -> ApiResponse:
    product = _store().get_product(product_id)
    if product is None:
        return _error(f"Product '{product_id}' not found", 404)
    return jsonify(product.to_dict())


@api.route("/products/<product_id>", methods=["PATCH"])
def edit_product(product_id: str) -> ApiResponse:
    """Edit fields of a product.

    Request JSON: field -> raw value, e.g. {"price": "4.25", "available": "true"}.
    Values are coerced like table cell edits; ``updatedAt`` is refreshed.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or not payload:
        return _error("Request body must be a non-empty JSON object", 400)

    changes: Dict[str, Any] = {}
    for key, raw in payload.items():
        field_name = _WIRE_TO_FIELD.get(key, key)
        if field_name not in EDITABLE_FIELDS:
            return _error(f"Field '{key}' cannot be edited", 400)
        changes[field_name] = coerce_edit(field_name, raw)

    updated = _store().edit_product(product_id, **changes)
    if updated is None:
        return _error(f"Product '{product_id}' not found", 404)
    return jsonify(updated.to_dict())


@api.route("/reset", methods=["POST"])
def reset() -> Response:
    """Roll the working set back to the last loaded snapshot."""
    state = _store().reset_to_original()
    return jsonify({"total": len(state.products)})


# ---------- FILTERS & SELECTION ----------


@api.route("/filters", methods=["GET"])
def get_filters() -> Response:
    return jsonify(_store().state.filters.to_dict())


@api.route("/filters", methods=["PUT"])
def set_filters() -> ApiResponse:
    """Set one or more filters; empty strings clear category/supplier."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _error("Request body must be a JSON object", 400)

    store = _store()
    for key, value in payload.items():
        if key not in FILTER_KEYS:
            return _error(f"Unknown filter '{key}'", 400)
        store.set_filter(key, value)
    return jsonify(store.state.filters.to_dict())


@api.route("/filters", methods=["DELETE"])
def clear_filters() -> Response:
    return jsonify(_store().clear_filters().filters.to_dict())


@api.route("/facets", methods=["GET"])
def facets() -> Response:
    """Distinct categories and suppliers for filter dropdowns."""
    products = _store().state.products
    return jsonify({
        "categories": facet_values(products, "category"),
        "suppliers": facet_values(products, "supplier"),
    })


@api.route("/selection", methods=["GET"])
def get_selection() -> Response:
    selected = _store().state.selected_product
    return jsonify({"product": selected.to_dict() if selected else None})


@api.route("/selection", methods=["PUT"])
def set_selection() -> ApiResponse:
    """Select a product by id; {"id": null} clears the selection."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _error("Request body must be a JSON object", 400)
    product_id = payload.get("id")
    store = _store()
    if product_id is None:
        store.set_selected_product(None)
        return jsonify({"product": None})

    product = store.get_product(str(product_id))
    if product is None:
        return _error(f"Product '{product_id}' not found", 404)
    store.set_selected_product(product)
    return jsonify({"product": product.to_dict()})


@api.route("/state", methods=["GET"])
def get_state() -> Response:
    state = _store().state
    return jsonify({
        "is_loading": state.is_loading,
        "error": state.error,
        "total": len(state.products),
        "original_total": len(state.original_products),
        "selected_id": state.selected_product.id if state.selected_product else None,
        "filters": state.filters.to_dict(),
    })


# ---------- INGESTION ----------


@api.route("/upload", methods=["POST"])
def upload() -> ApiResponse:
    """Ingest an uploaded CSV or JSON file (multipart field 'file')."""
    file = request.files.get("file")
    if file is None or not file.filename:
        return _error("No file uploaded", 400)

    filename = file.filename
    suffix = Path(filename).suffix.lower()
    if suffix not in CSV_SUFFIXES | JSON_SUFFIXES:
        return _error("Please upload a .csv or .json file", 400)

    try:
        result = _ingestor().load_upload(filename, file.read())
    except IngestionError as e:
        logger.warning(f"Upload of {filename} failed: {e}")
        return _error(str(e), _ingestion_status(e))
    return jsonify(_result_payload(result))


@api.route("/suppliers", methods=["GET"])
def list_suppliers() -> ApiResponse:
    try:
        suppliers = _ingestor().feed_client.list_suppliers()
    except IngestionError as e:
        return _error(str(e), _ingestion_status(e))
    return jsonify({"suppliers": [s.to_dict() for s in suppliers]})


@api.route("/suppliers/<supplier_id>/load", methods=["POST"])
def load_supplier(supplier_id: str) -> ApiResponse:
    try:
        result = _ingestor().load_supplier(supplier_id)
    except IngestionError as e:
        logger.warning(f"Loading supplier {supplier_id} failed: {e}")
        return _error(str(e), _ingestion_status(e))
    return jsonify(_result_payload(result))


@api.route("/suppliers/<supplier_id>/theme", methods=["GET"])
def supplier_theme(supplier_id: str) -> ApiResponse:
    client = _ingestor().feed_client
    try:
        theme = client.fetch_theme(client.get_supplier(supplier_id))
    except IngestionError as e:
        return _error(str(e), _ingestion_status(e))
    return jsonify({**theme.to_dict(), "css_variables": theme.css_variables()})


@api.route("/export.csv", methods=["GET"])
def export_csv() -> Response:
    """Download the filtered view as CSV."""
    text = products_to_csv_text(_store().filtered_products())
    return Response(
        text,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=product-catalog.csv"},
    )
