"""Domain events raised by the Order aggregate."""

from protean.fields import Date, DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A customer's cart became a pending, price-frozen order."""

    __version__ = 1

    order_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    order_number = Integer(required=True)
    fulfillment_type = String(required=True)
    delivery_date = Date(required=True)
    item_count = Integer(required=True)
    total = Float(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    """The merchant approved or rejected an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)
