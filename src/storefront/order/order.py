"""Order aggregate: the price-frozen record of what a customer asked a merchant for.

State Machine:
    PENDING → APPROVED → REJECTED
    PENDING → REJECTED
    REJECTED is terminal.

Items are snapshots taken when the order is placed. Product names and prices
are copied onto the item, so later catalogue edits never reach placed orders.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, Float, HasMany, Identifier, Integer, String

from storefront.domain import storefront
from storefront.order.events import OrderPlaced, OrderStatusChanged
from storefront.shared.errors import ConflictError

NOTES_MAX_LENGTH = 500


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class FulfillmentType(Enum):
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.APPROVED, OrderStatus.REJECTED},
    OrderStatus.APPROVED: {OrderStatus.REJECTED},
    OrderStatus.REJECTED: set(),  # Terminal
}

_PICKUP_FIELDS = ("pickup_slot_id", "pickup_time")
_DELIVERY_FIELDS = (
    "delivery_postal_code",
    "delivery_street",
    "delivery_number",
    "delivery_neighborhood",
    "delivery_city",
)


def _as_status(value):
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        return None


def can_transition(current, requested):
    """Whether an order in ``current`` status may move to ``requested``.

    Accepts ``OrderStatus`` members or their string values. Unknown statuses
    never transition.
    """
    current, requested = _as_status(current), _as_status(requested)
    if current is None or requested is None:
        return False
    return requested in _VALID_TRANSITIONS[current]


def compose_shipping_address(street, number, neighborhood, city, postal_code):
    """Single-line address kept alongside the structured fields for older readers."""
    return f"{street}, {number} - {neighborhood} - {city} - CEP {postal_code}"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A snapshot line: product name, variant label and unit price as they were
    when the order was placed. Items are never edited after creation."""

    product_id = Identifier(required=True)
    variant_id = Identifier()
    product_name = String(required=True, max_length=255)
    variant_label = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)

    @property
    def line_total(self):
        return round((self.unit_price - (self.discount_amount or 0.0)) * self.quantity, 2)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    merchant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    order_number = Integer(required=True, min_value=1)
    delivery_date = Date(required=True)
    fulfillment_type = String(required=True, choices=FulfillmentType)
    pickup_slot_id = Identifier()
    pickup_time = String(max_length=20)
    delivery_postal_code = String(max_length=8)
    delivery_street = String(max_length=255)
    delivery_number = String(max_length=20)
    delivery_neighborhood = String(max_length=120)
    delivery_city = String(max_length=120)
    shipping_address = String(max_length=500)
    notes = String(max_length=NOTES_MAX_LENGTH)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def fulfillment_fields_must_match_type(self):
        if self.fulfillment_type == FulfillmentType.PICKUP.value:
            required, forbidden = _PICKUP_FIELDS, _DELIVERY_FIELDS + ("shipping_address",)
        else:
            required, forbidden = _DELIVERY_FIELDS, _PICKUP_FIELDS

        missing = [f for f in required if not getattr(self, f)]
        if missing:
            raise ValidationError({f: [f"Required for {self.fulfillment_type} orders"] for f in missing})
        stray = [f for f in forbidden if getattr(self, f)]
        if stray:
            raise ValidationError({f: [f"Not allowed on {self.fulfillment_type} orders"] for f in stray})

    @invariant.post
    def must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["An order needs at least one item"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        merchant_id,
        customer_id,
        order_number,
        delivery_date,
        fulfillment,
        items_data,
        notes=None,
    ):
        """Create a PENDING order from already-validated data.

        Args:
            fulfillment: Dict with ``fulfillment_type`` and the fields of that
                branch only (pickup slot and time label, or the delivery address).
            items_data: List of dicts with product_id, variant_id, product_name,
                variant_label, quantity, unit_price and optionally discount_amount.
        """
        now = datetime.now(UTC)
        order = cls(
            merchant_id=merchant_id,
            customer_id=customer_id,
            order_number=order_number,
            delivery_date=delivery_date,
            notes=notes,
            status=OrderStatus.PENDING.value,
            items=[OrderItem(**item) for item in items_data],
            created_at=now,
            updated_at=now,
            **fulfillment,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                merchant_id=str(merchant_id),
                customer_id=str(customer_id),
                order_number=order_number,
                fulfillment_type=order.fulfillment_type,
                delivery_date=delivery_date,
                item_count=len(order.items),
                total=order.total,
                placed_at=now,
            )
        )
        return order

    @property
    def total(self):
        return round(sum(item.line_total for item in self.items), 2)

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def change_status(self, requested):
        """Move the order to ``requested``; illegal transitions raise ConflictError."""
        current = OrderStatus(self.status)
        target = _as_status(requested)
        if not can_transition(current, target):
            target_label = target.value if target else requested
            raise ConflictError(
                f"Transition not allowed: order is {current.value} and cannot become {target_label}.",
                field="status",
            )

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                merchant_id=str(self.merchant_id),
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )
