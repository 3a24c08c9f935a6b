"""Product aggregate root with its Variant entity.

A product is what the customer recognises ("Chocolate cake"); a variant is a
purchasable option of it ("500g"). Simple products carry their own price;
variant-only products leave ``price`` empty and every variant is priced.
``min_quantity`` sits on the product because the minimum applies whichever
variant is chosen.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront


class PricingType(Enum):
    UNIT = "UNIT"
    WEIGHT = "WEIGHT"


@storefront.entity(part_of="Product")
class Variant:
    label = String(required=True, max_length=100)
    price = Float(required=True, min_value=0.0)
    pricing_type = String(choices=PricingType, default=PricingType.UNIT.value)
    is_active = Boolean(default=True)
    sort_order = Integer(default=0)


@storefront.aggregate
class Product:
    merchant_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(min_value=0.0)
    min_quantity = Integer(default=1, min_value=1)
    is_active = Boolean(default=True)
    variants = HasMany(Variant)
    created_at = DateTime(default=lambda: datetime.now(UTC))
    updated_at = DateTime(default=lambda: datetime.now(UTC))

    @invariant.post
    def must_be_priced(self):
        if self.price is None and not self.variants:
            raise ValidationError({"price": ["A product without variants needs a price"]})

    @classmethod
    def create(cls, merchant_id, name, price=None, min_quantity=1, description=None, is_active=True, variants=None):
        now = datetime.now(UTC)
        return cls(
            merchant_id=merchant_id,
            name=name,
            description=description,
            price=price,
            min_quantity=min_quantity,
            is_active=is_active,
            variants=[Variant(**variant) for variant in (variants or [])],
            created_at=now,
            updated_at=now,
        )

    @property
    def is_variant_only(self):
        return self.price is None

    def find_variant(self, variant_id):
        return next((v for v in self.variants if str(v.id) == str(variant_id)), None)

    def add_variant(self, label, price, pricing_type=PricingType.UNIT.value, sort_order=None):
        variant = Variant(
            label=label,
            price=price,
            pricing_type=pricing_type,
            sort_order=len(self.variants) if sort_order is None else sort_order,
        )
        self.add_variants(variant)
        self.updated_at = datetime.now(UTC)
        return variant

    def activate(self):
        self.is_active = True
        self.updated_at = datetime.now(UTC)

    def deactivate(self):
        self.is_active = False
        self.updated_at = datetime.now(UTC)

    def rename(self, name):
        self.name = name
        self.updated_at = datetime.now(UTC)

    def reprice(self, price):
        self.price = price
        self.updated_at = datetime.now(UTC)


@storefront.repository(part_of=Product)
class ProductRepository:
    def find_for_merchant(self, merchant_id, product_id):
        """Product ``product_id`` if it belongs to ``merchant_id``, else None."""
        if not product_id:
            return None
        products = self._dao.query.filter(id=str(product_id)).all().items
        return next((p for p in products if str(p.merchant_id) == str(merchant_id)), None)
