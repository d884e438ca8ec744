"""Tests for the schema normalizers and JSON format detection."""

import json

import pytest

from catalog.config import DEFAULT_CATEGORY, DEFAULT_SUPPLIER
from catalog.errors import FormatError, ParseError
from catalog.models import Product
from catalog.normalize import (
    CATEGORY_FORMAT,
    FLAT_FORMAT,
    category_structure_to_products,
    csv_row_to_product,
    detect_json_format,
    json_item_to_product,
    normalize_json_items,
    products_from_csv_text,
    products_from_json_text,
    resolve_alias,
)


class TestCsvRowNormalizer:
    """CSV rows map 1:1 by column name."""

    def test_maps_columns(self):
        row = {
            "id": "c1", "name": "Milk", "description": "Fresh", "category": "Dairy",
            "supplier": "Acme", "price": "$3.50", "unit": "1 L", "available": "true",
            "createdAt": "2024-01-01T00:00:00.000Z", "updatedAt": "2024-02-01T00:00:00.000Z",
        }
        product = csv_row_to_product(row, 0)

        assert product.id == "c1"
        assert product.name == "Milk"
        assert product.category == "Dairy"
        assert product.supplier == "Acme"
        assert product.price == 3.5
        assert product.unit == "1 L"
        assert product.available is True
        assert product.created_at == "2024-01-01T00:00:00.000Z"
        assert product.updated_at == "2024-02-01T00:00:00.000Z"

    def test_missing_id_uses_row_index(self):
        assert csv_row_to_product({"name": "Milk"}, 7).id == "temp-7"
        assert csv_row_to_product({"id": "", "name": "Milk"}, 2).id == "temp-2"

    def test_missing_fields_default_to_empty(self):
        product = csv_row_to_product({}, 0)

        assert product.name == ""
        assert product.category == ""
        assert product.supplier == ""
        assert product.price is None
        assert product.unit is None
        assert product.created_at
        assert product.updated_at

    def test_missing_available_column_means_unavailable(self):
        assert csv_row_to_product({"name": "Milk"}, 0).available is False

    @pytest.mark.parametrize("raw,expected", [("1", True), ("true", True), ("false", False), ("no", False)])
    def test_available_coercion(self, raw, expected):
        assert csv_row_to_product({"available": raw}, 0).available is expected

    def test_unknown_columns_are_ignored(self):
        product = csv_row_to_product({"name": "Milk", "colour": "white"}, 0)
        assert not hasattr(product, "colour")


class TestCsvText:
    """CSV documents parsed through pandas."""

    def test_parses_rows(self, sample_csv_text):
        products = products_from_csv_text(sample_csv_text)

        assert [p.name for p in products] == ["Whole Milk", "Sourdough"]
        assert products[0].id == "c1"
        assert products[1].id == "temp-1"
        assert products[0].price == 3.5
        assert products[1].price == 4.0
        assert products[1].description == ""

    def test_blank_lines_are_skipped(self):
        products = products_from_csv_text("name,price\nMilk,1\n\nBread,2\n")
        assert [p.name for p in products] == ["Milk", "Bread"]

    def test_empty_document_yields_no_products(self):
        assert products_from_csv_text("") == []
        assert products_from_csv_text("id,name\n") == []

    def test_structural_error_surfaces_parser_message(self):
        with pytest.raises(ParseError) as exc_info:
            products_from_csv_text("id,name\n1,Milk\n2,Bread,extra\n")
        assert "Expected 2 fields" in str(exc_info.value)

    def test_duplicate_ids_are_made_unique(self):
        products = products_from_csv_text("id,name\nx,Milk\nx,Bread\n")
        ids = [p.id for p in products]

        assert ids[0] == "x"
        assert len(set(ids)) == 2


class TestAliasResolution:
    """Alias tables: first present key wins."""

    def test_first_present_alias_wins(self):
        item = {"title": "C", "product_name": "B", "name": "A"}
        assert resolve_alias(item, "name") == "A"

    def test_empty_values_are_skipped(self):
        item = {"name": "", "product_name": None, "title": "Flour"}
        assert resolve_alias(item, "name") == "Flour"

    def test_absent_field_is_none(self):
        assert resolve_alias({}, "supplier") is None

    def test_product_name_and_vendor(self):
        product = json_item_to_product({"product_name": "Flour", "vendor": "Acme"})

        assert product.name == "Flour"
        assert product.supplier == "Acme"
        assert product.category == DEFAULT_CATEGORY

    def test_image_and_details_aliases(self):
        product = json_item_to_product({
            "image": "https://img.example.com/a.png",
            "technicalDetails": "Protein 12%",
            "itemNumber": 1001,
            "product_url": "https://example.com/p/1001",
        })

        assert product.image_url == "https://img.example.com/a.png"
        assert product.technical_details == "Protein 12%"
        assert product.item_number == "1001"
        assert product.url == "https://example.com/p/1001"


class TestJsonItemNormalizer:
    def test_defaults_for_empty_item(self):
        product = json_item_to_product({})

        assert product.id
        assert product.name == ""
        assert product.category == DEFAULT_CATEGORY
        assert product.supplier == DEFAULT_SUPPLIER
        assert product.available is True
        assert product.price is None
        assert product.unit is None
        assert product.applications == []
        assert product.badges == []

    def test_generated_ids_are_distinct(self):
        assert json_item_to_product({}).id != json_item_to_product({}).id

    def test_available_present_is_kept(self):
        assert json_item_to_product({"available": False}).available is False

    def test_scalar_applications_are_wrapped(self):
        assert json_item_to_product({"applications": "bread"}).applications == ["bread"]
        assert json_item_to_product({"applications": ["a", "b"]}).applications == ["a", "b"]

    def test_numeric_id_becomes_text(self):
        assert json_item_to_product({"id": 17}).id == "17"

    def test_timestamps_are_kept_when_present(self):
        product = json_item_to_product({"createdAt": "2023-05-01T00:00:00Z", "updated_at": "2023-06-01T00:00:00Z"})

        assert product.created_at == "2023-05-01T00:00:00Z"
        assert product.updated_at == "2023-06-01T00:00:00Z"

    def test_non_object_items_are_skipped(self):
        products = normalize_json_items([{"name": "Milk"}, "junk", 3, None])
        assert [p.name for p in products] == ["Milk"]


class TestCategoryStructure:
    """Category-keyed documents."""

    def test_round_trip_example(self):
        products = category_structure_to_products({"Dairy": [{"name": "Milk", "price": "$3.50"}]})

        assert len(products) == 1
        product = products[0]
        assert product.category == "Dairy"
        assert product.price == 3.5
        assert product.available is True
        assert product.id

    def test_structural_key_overrides_item_category(self, category_data):
        products = category_structure_to_products(category_data)
        cream = next(p for p in products if p.name == "Cream")

        assert cream.category == "Dairy"
        assert cream.supplier == "Acme"

    def test_order_follows_categories_then_items(self, category_data):
        products = category_structure_to_products(category_data)

        assert [(p.category, p.name) for p in products] == [
            ("Dairy", "Milk"),
            ("Dairy", "Cream"),
            ("Baking", "Flour"),
        ]

    def test_non_list_values_are_skipped(self):
        products = category_structure_to_products({"version": 2, "Dairy": [{"name": "Milk"}]})
        assert [p.name for p in products] == ["Milk"]

    def test_ids_unique_across_categories(self):
        products = category_structure_to_products({
            "Dairy": [{"id": "1", "name": "Milk"}],
            "Bakery": [{"id": "1", "name": "Bread"}],
        })
        assert len({p.id for p in products}) == 2
        assert products[0].id == "1"


class TestFormatDetection:
    def test_category_structured(self):
        assert detect_json_format({"Dairy": [], "meta": "x"}) == CATEGORY_FORMAT

    def test_flat_array(self):
        assert detect_json_format([]) == FLAT_FORMAT
        assert detect_json_format([{"name": "Milk"}]) == FLAT_FORMAT

    @pytest.mark.parametrize("data", [{}, {"name": "Milk"}, "text", 42, None])
    def test_unrecognized_shapes(self, data):
        with pytest.raises(FormatError) as exc_info:
            detect_json_format(data)
        assert "Unrecognized format" in str(exc_info.value)


class TestJsonText:
    def test_flat_document(self):
        text = json.dumps([{"product_name": "Flour", "vendor": "Acme"}])
        products = products_from_json_text(text)

        assert len(products) == 1
        assert products[0].name == "Flour"
        assert products[0].category == DEFAULT_CATEGORY

    def test_category_document(self, category_data):
        products = products_from_json_text(json.dumps(category_data))
        assert {p.category for p in products} == {"Dairy", "Baking"}

    def test_invalid_json_raises_parse_error(self):
        with pytest.raises(ParseError) as exc_info:
            products_from_json_text("{not json")
        assert "Invalid JSON" in str(exc_info.value)

    def test_object_without_arrays_raises_format_error(self):
        with pytest.raises(FormatError):
            products_from_json_text('{"name": "Milk"}')


class TestAvailabilityDefaultsAcrossFormats:
    """CSV defaults to unavailable, JSON to available, in the same run."""

    def test_defaults_hold_together(self):
        csv_products = products_from_csv_text("name\nMilk\n")
        flat_products = products_from_json_text('[{"name": "Milk"}]')
        category_products = products_from_json_text('{"Dairy": [{"name": "Milk"}]}')

        assert csv_products[0].available is False
        assert flat_products[0].available is True
        assert category_products[0].available is True


# Valid JSON whose field values are the wrong type or out of range
MALFORMED_ITEMS = [
    {"name": {"en": "Milk"}, "price": 10 ** 400},
    {"name": ["Milk", "Whole"], "applications": {"use": "baking"}},
    {"price": float("nan"), "available": [], "badges": 7},
    {"id": {"sku": 1}, "category": ["Dairy"], "vendor": 3.0, "createdAt": {}},
    {"title": None, "price": "abc", "available": {"yes": True}, "image": 42},
    {"price": float("inf"), "unit": False, "url": ["a", "b"], "itemNumber": 12.0},
]


def _assert_well_typed(product):
    assert isinstance(product, Product)
    for name in ("id", "name", "description", "category", "supplier", "created_at", "updated_at"):
        assert isinstance(getattr(product, name), str)
    assert product.id
    assert product.price is None or isinstance(product.price, float)
    assert isinstance(product.available, bool)
    assert isinstance(product.applications, list)
    assert isinstance(product.badges, list)


class TestNormalizersAreTotal:
    """Malformed field values are absorbed, never raised."""

    @pytest.mark.parametrize("item", MALFORMED_ITEMS)
    def test_flat_path(self, item):
        products = normalize_json_items([item])

        assert len(products) == 1
        _assert_well_typed(products[0])

    @pytest.mark.parametrize("item", MALFORMED_ITEMS)
    def test_category_path(self, item):
        products = category_structure_to_products({"Dairy": [item]})

        assert len(products) == 1
        _assert_well_typed(products[0])
        assert products[0].category == "Dairy"

    def test_all_items_together(self):
        products = normalize_json_items(MALFORMED_ITEMS)

        assert len(products) == len(MALFORMED_ITEMS)
        assert len({p.id for p in products}) == len(products)

    def test_huge_and_nan_prices_from_json_text(self):
        text = '[{"name": "Milk", "price": 1' + "0" * 400 + '}, {"name": "Bread", "price": NaN}]'
        products = products_from_json_text(text)

        assert [p.name for p in products] == ["Milk", "Bread"]
        assert [p.price for p in products] == [None, None]

    def test_stringified_values(self):
        product = json_item_to_product(MALFORMED_ITEMS[3])

        assert product.id == "{'sku': 1}"
        assert product.category == "['Dairy']"
        assert product.supplier == "3"
