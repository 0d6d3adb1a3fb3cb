"""Unit tests for storefront_harvester.adapters.shopify: normalization and price filter."""

import math

import pytest

from storefront_harvester.adapters.registry import AdapterRegistry
from storefront_harvester.adapters.shopify import (
    ShopifyAdapter,
    coerce_tags,
    filter_by_price,
    normalize,
    parse_price,
)


# ============================================================================
# Prices
# ============================================================================
class TestPrice:
    def test_minimum_of_parseable_variant_prices(self, raw_product):
        product = normalize(raw_product)
        assert product.price == 15.00

    def test_no_parseable_price_is_absent(self):
        product = normalize({"variants": [{"price": "abc"}, {"price": None}, {}]})
        assert product.price is None

    def test_no_variants(self):
        assert normalize({"title": "x"}).price is None

    def test_compare_at_only_from_declaring_variants(self, raw_product):
        product = normalize(raw_product)
        assert product.compare_at_price == 29.99

    def test_compare_at_absent_when_none_declared(self):
        product = normalize({"variants": [{"price": "5"}, {"price": "6", "compare_at_price": None}]})
        assert product.compare_at_price is None

    @pytest.mark.parametrize("value", ["nan", "inf", "-1", True, [], "  "])
    def test_rejects_non_finite_or_negative(self, value):
        assert parse_price(value) is None

    @pytest.mark.parametrize("value,expected", [("19.99", 19.99), (12, 12.0), (" 3.5 ", 3.5), ("0", 0.0)])
    def test_accepts_numbers(self, value, expected):
        assert math.isclose(parse_price(value), expected)


# ============================================================================
# Tags
# ============================================================================
class TestTags:
    def test_sequence_kept_as_is(self):
        tags = ["b", "a", "b"]
        assert normalize({"tags": tags}).tags == ["b", "a", "b"]

    def test_delimited_string_split(self):
        assert normalize({"tags": "a, b"}).tags == ["a", "b"]

    def test_idempotent(self):
        once = normalize({"tags": "x, y,z"}).tags
        assert normalize({"tags": once}).tags == once == ["x", "y", "z"]

    @pytest.mark.parametrize("value", [None, 42, {"a": 1}])
    def test_other_types_become_empty(self, value):
        assert coerce_tags(value) == []

    def test_empty_string(self):
        assert coerce_tags("") == []


# ============================================================================
# Derived fields
# ============================================================================
class TestDerivedFields:
    def test_full_record(self, raw_product):
        product = normalize(raw_product)

        assert product.id == 7001
        assert product.title == "Merino Runner Shoe"
        assert product.handle == "merino-runner"
        assert product.featured_image == "https://cdn.example/a.jpg"
        assert product.images_count == 2
        assert product.variants_count == 3
        assert product.availability == "in stock"
        assert product.condition == "new"
        assert product.status == "active"
        assert product.brand == "Allbirds"
        assert product.category == "Shoes"
        assert product.barcode == "0001"
        assert product.weight == 0.3

    def test_out_of_stock_when_no_variant_available(self):
        product = normalize({"variants": [{"price": "1", "available": False}]})
        assert product.availability == "out of stock"

    def test_dimensions_from_first_variant(self):
        product = normalize({"variants": [{"price": "1", "length": 10, "width": "4", "height": None}]})
        assert product.dimensions.length == 10.0
        assert product.dimensions.width == 4.0
        assert product.dimensions.height is None

    def test_nested_dimensions_object(self):
        product = normalize({"variants": [{"dimensions": {"length": 1, "width": 2, "height": 3}}]})
        assert product.dimensions.to_dict() == {"length": 1.0, "width": 2.0, "height": 3.0}

    def test_status_kept_when_given(self):
        assert normalize({"status": "draft"}).status == "draft"

    def test_vendor_and_type_blank_not_fabricated(self):
        product = normalize({"title": "x"})
        assert product.vendor == ""
        assert product.product_type == ""
        assert product.category == ""

    @pytest.mark.parametrize("raw", [None, "string", 12, [], {"variants": "bad", "images": 7}])
    def test_never_fails_on_garbage(self, raw):
        product = normalize(raw)
        assert product.variants == []
        assert product.price is None

    def test_image_as_plain_url(self):
        assert normalize({"images": ["https://cdn.example/x.png"]}).featured_image == "https://cdn.example/x.png"


class TestToDict:
    def test_round_trips_known_and_extra_keys(self, raw_product):
        data = normalize(raw_product).to_dict()

        assert data["vendor_extra_field"] == "kept"
        assert data["price"] == 15.0
        assert data["featured_image_url"] == "https://cdn.example/a.jpg"
        assert data["variants_count"] == 3
        assert data["variants"][0]["price"] == "19.99"
        assert "dimensions" not in data  # unset keys dropped

    def test_raw_derived_keys_do_not_shadow(self):
        data = normalize({"price": "999", "variants": [{"price": "5"}]}).to_dict()
        assert data["price"] == 5.0


# ============================================================================
# Price filter
# ============================================================================
class TestFilterByPrice:
    def test_keeps_at_or_above_threshold(self):
        products = [normalize({"id": i, "variants": [{"price": p}]}) for i, p in enumerate(["10", "25", "40"])]
        kept = filter_by_price(products, 25)
        assert [p.id for p in kept] == [1, 2]

    def test_absent_price_counts_as_zero(self):
        products = [normalize({"id": 1})]
        assert filter_by_price(products, 0.01) == []
        assert len(filter_by_price(products, 0)) == 1


class TestRegistry:
    def test_fallback_adapter(self):
        registry = AdapterRegistry()
        assert isinstance(registry.match("https://any.example/products.json"), ShopifyAdapter)

    def test_specific_adapter_preferred(self):
        class OnlyExample:
            name = "only-example"
            domains = ["only.example"]

            def matches(self, url):
                return "only.example" in url

            def normalize(self, raw):
                return normalize(raw)

        registry = AdapterRegistry()
        adapter = OnlyExample()
        registry.register(adapter)
        assert registry.match("https://only.example/products.json") is adapter
        assert isinstance(registry.match("https://other.example/products.json"), ShopifyAdapter)
