"""Tests for the Product and Merchant aggregates."""

import pytest
from protean.exceptions import ValidationError
from storefront.catalogue.product import PricingType, Product
from storefront.merchant.merchant import DEFAULT_TIMEZONE, Merchant


class TestProduct:
    def test_simple_product(self):
        product = Product.create(merchant_id="m-1", name="Bolo de chocolate", price=29.90)
        assert product.is_active is True
        assert product.min_quantity == 1
        assert product.is_variant_only is False

    def test_variant_only_product(self):
        product = Product.create(
            merchant_id="m-1",
            name="Brigadeiro",
            variants=[{"label": "Caixa com 25", "price": 45.0}],
        )
        assert product.is_variant_only is True
        assert product.variants[0].pricing_type == PricingType.UNIT.value

    def test_product_without_any_price_is_invalid(self):
        with pytest.raises(ValidationError) as exc:
            Product.create(merchant_id="m-1", name="Sem preço")
        assert "price" in exc.value.messages

    def test_min_quantity_at_least_one(self):
        with pytest.raises(ValidationError):
            Product.create(merchant_id="m-1", name="Bolo", price=10.0, min_quantity=0)

    def test_find_variant(self):
        product = Product.create(merchant_id="m-1", name="Torta", price=50.0)
        variant = product.add_variant("Fatia", 8.5)
        assert product.find_variant(str(variant.id)).label == "Fatia"
        assert product.find_variant("missing") is None

    def test_add_variant_assigns_sort_order(self):
        product = Product.create(merchant_id="m-1", name="Torta", price=50.0)
        product.add_variant("Fatia", 8.5)
        second = product.add_variant("Inteira", 80.0, pricing_type=PricingType.WEIGHT.value)
        assert second.sort_order == 1
        assert second.pricing_type == "WEIGHT"

    def test_deactivate_and_activate(self):
        product = Product.create(merchant_id="m-1", name="Bolo", price=10.0)
        product.deactivate()
        assert product.is_active is False
        product.activate()
        assert product.is_active is True


class TestMerchant:
    def test_register_normalizes_slug(self):
        merchant = Merchant.register(name=" Doce Lar ", slug=" Doce-Lar ")
        assert merchant.slug == "doce-lar"
        assert merchant.name == "Doce Lar"
        assert merchant.timezone == DEFAULT_TIMEZONE

    def test_slug_must_be_url_safe(self):
        with pytest.raises(ValidationError) as exc:
            Merchant.register(name="Doce Lar", slug="doce lar!")
        assert "slug" in exc.value.messages

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError) as exc:
            Merchant.register(name="Doce Lar", slug="doce-lar", timezone="Mars/Olympus")
        assert "timezone" in exc.value.messages

    def test_order_numbers_are_sequential(self):
        merchant = Merchant.register(name="Doce Lar", slug="doce-lar")
        assert merchant.issue_order_number() == 1
        assert merchant.issue_order_number() == 2
        assert merchant.last_order_number == 2
