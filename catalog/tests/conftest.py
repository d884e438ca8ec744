"""Shared test fixtures for the catalog test suite."""

import json
import logging

import pytest

from catalog.app import create_app
from catalog.feeds import SupplierFeedClient
from catalog.models import Product
from catalog.store import CatalogStore

TIMESTAMP = "2024-01-01T00:00:00.000Z"


def make_product(product_id: str, **overrides) -> Product:
    """Build a fully-populated product for store and projection tests."""
    values = {
        "id": product_id,
        "name": f"Product {product_id}",
        "description": "",
        "category": "Dairy",
        "supplier": "Acme",
        "created_at": TIMESTAMP,
        "updated_at": TIMESTAMP,
    }
    values.update(overrides)
    return Product(**values)


@pytest.fixture
def products():
    return [
        make_product("p1", name="Whole Milk", price=3.5, unit="1 L"),
        make_product("p2", name="Sourdough", category="Bakery", supplier="Bake Co", price=4.0),
        make_product("p3", name="Butter", description="Salted butter", available=False),
        make_product("p4", name="Rye Flour", category="Bakery", applications=["bread", "pastry"]),
    ]


@pytest.fixture
def store(products):
    store = CatalogStore()
    store.set_products(products)
    return store


@pytest.fixture
def sample_csv_text():
    return (
        "id,name,description,category,supplier,price,unit\n"
        "c1,Whole Milk,Fresh,Dairy,Acme,$3.50,1 L\n"
        ",Sourdough,,Bakery,Bake Co,4,loaf\n"
    )


@pytest.fixture
def category_data():
    return {
        "Dairy": [
            {"name": "Milk", "price": "$3.50"},
            {"product_name": "Cream", "vendor": "Acme", "category": "Bakery"},
        ],
        "Baking": [
            {"title": "Flour", "pack_size": "25 kg", "applications": "bread"},
        ],
    }


@pytest.fixture
def supplier_dir(tmp_path, category_data):
    """Local supplier-data directory with one supplier."""
    root = tmp_path / "supplier-data"
    (root / "acme").mkdir(parents=True)
    (root / "suppliers.json").write_text(json.dumps([
        {
            "id": "acme",
            "name": "Acme Foods",
            "description": "Dairy and baking",
            "products_file": "acme/products.json",
            "config_file": "acme/config.json",
        },
        {
            "id": "broken",
            "name": "Broken Feed",
            "products_file": "broken/products.json",
            "config_file": "broken/config.json",
        },
    ]))
    (root / "acme" / "products.json").write_text(json.dumps(category_data))
    (root / "acme" / "config.json").write_text(json.dumps({
        "supplier_name": "Acme Foods",
        "primary_color": "#ff0000",
        "logo_url": "",
    }))
    return root


@pytest.fixture
def feed_client(supplier_dir):
    return SupplierFeedClient(str(supplier_dir))


@pytest.fixture
def app(feed_client):
    app = create_app(feed_client=feed_client)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def catalog_logger():
    """The package logger, restored to a clean state after the test."""
    logger = logging.getLogger("catalog")
    yield logger
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
