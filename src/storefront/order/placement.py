"""Order placement: from an anonymous customer's cart to a pending, price-frozen order.

Every rule is a gate; the first one that fails raises and nothing is written.
Structural checks on the request run before any lookup, so a malformed request
is reported as such before catalogue or calendar rules are considered.

Gates, in order:
    1. merchant exists (by slug)
    2. phone normalizes
    3. customer is found or created
    4. every line: product exists, is active, has a price for the chosen
       variant (or a base price), and meets the minimum quantity
    5. delivery date is not in the past and the day is not closed
    6. pickup slot matches the weekday, or the postal code is served and the
       address is complete
    7. prices frozen, totals computed
    8. order, items and order counter written in one unit of work; a counter
       advanced meanwhile by another placement is read again and the number
       re-issued
"""

import json
from datetime import date

from protean import handle
from protean.exceptions import ExpectedVersionError
from protean.fields import Date, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.reader import CatalogReader
from storefront.customer.directory import CustomerDirectory
from storefront.domain import storefront
from storefront.logistics.delivery_area import DeliveryAreaValidator
from storefront.logistics.pickup_slot import PickupSlotResolver, day_of_week_for
from storefront.logistics.schedule import ScheduleAvailability
from storefront.merchant.merchant import Merchant
from storefront.order.order import (
    NOTES_MAX_LENGTH,
    FulfillmentType,
    Order,
    compose_shipping_address,
)
from storefront.order.writer import OrderWriter
from storefront.shared.errors import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    StorefrontError,
    UnprocessableError,
)
from storefront.shared.phone import format_phone, normalize_phone
from storefront.shared.postal_code import normalize_postal_code
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_NUMBER_ATTEMPTS = 3

_ADDRESS_FIELDS = {
    "delivery_street": "street",
    "delivery_number": "number",
    "delivery_neighborhood": "neighborhood",
    "delivery_city": "city",
}


@storefront.command(part_of="Order")
class PlaceOrder:
    merchant_slug = String(required=True, max_length=80)
    customer_name = String(max_length=120)
    customer_phone = String(max_length=30)
    items = Text(required=True)  # JSON: list of {product_id, variant_id?, quantity}
    fulfillment_type = String(max_length=20)
    pickup_slot_id = Identifier()
    delivery_postal_code = String(max_length=9)
    delivery_street = String(max_length=255)
    delivery_number = String(max_length=20)
    delivery_neighborhood = String(max_length=120)
    delivery_city = String(max_length=120)
    delivery_date = Date(required=True)
    notes = Text()


class PlacementRequest:
    """What the customer submitted, with items decoded. Carries no prices."""

    def __init__(
        self,
        merchant_slug,
        customer_name,
        customer_phone,
        items,
        fulfillment_type,
        delivery_date,
        pickup_slot_id=None,
        delivery_postal_code=None,
        delivery_street=None,
        delivery_number=None,
        delivery_neighborhood=None,
        delivery_city=None,
        notes=None,
    ):
        self.merchant_slug = merchant_slug
        self.customer_name = customer_name
        self.customer_phone = customer_phone
        self.items = items
        self.fulfillment_type = fulfillment_type
        self.delivery_date = delivery_date
        self.pickup_slot_id = pickup_slot_id
        self.delivery_postal_code = delivery_postal_code
        self.delivery_street = delivery_street
        self.delivery_number = delivery_number
        self.delivery_neighborhood = delivery_neighborhood
        self.delivery_city = delivery_city
        self.notes = notes

    @classmethod
    def from_command(cls, command):
        try:
            items = json.loads(command.items) if isinstance(command.items, str) else command.items
        except json.JSONDecodeError:
            raise BadRequestError("Items must be a JSON list.", field="items") from None

        delivery_date = command.delivery_date
        if isinstance(delivery_date, str):
            delivery_date = date.fromisoformat(delivery_date)

        return cls(
            merchant_slug=command.merchant_slug,
            customer_name=command.customer_name,
            customer_phone=command.customer_phone,
            items=items,
            fulfillment_type=command.fulfillment_type,
            delivery_date=delivery_date,
            pickup_slot_id=command.pickup_slot_id,
            delivery_postal_code=command.delivery_postal_code,
            delivery_street=command.delivery_street,
            delivery_number=command.delivery_number,
            delivery_neighborhood=command.delivery_neighborhood,
            delivery_city=command.delivery_city,
            notes=command.notes,
        )


def _blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def check_request_shape(request):
    """Reject structurally malformed requests before anything is looked up."""
    if _blank(request.merchant_slug):
        raise BadRequestError("Store slug is required.", field="merchant_slug")
    if _blank(request.customer_name):
        raise BadRequestError("Customer name is required.", field="customer_name")
    if _blank(request.customer_phone):
        raise BadRequestError("Customer phone is required.", field="customer_phone")
    if not isinstance(request.items, list) or not request.items:
        raise BadRequestError("An order must have at least one item.", field="items")

    for position, line in enumerate(request.items, start=1):
        if not isinstance(line, dict) or _blank(line.get("product_id")):
            raise BadRequestError(f"Item {position} must include a product_id.", field="items")
        quantity = line.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise BadRequestError(f"Item {position} must have a whole-number quantity.", field="items")

    if not isinstance(request.delivery_date, date):
        raise BadRequestError("delivery_date must be a valid date.", field="delivery_date")

    if request.fulfillment_type == FulfillmentType.PICKUP.value:
        if _blank(request.pickup_slot_id):
            raise BadRequestError("pickup_slot_id is required for pickup orders.", field="pickup_slot_id")
    elif request.fulfillment_type == FulfillmentType.DELIVERY.value:
        if _blank(request.delivery_postal_code):
            raise BadRequestError(
                "delivery_postal_code is required for delivery orders.", field="delivery_postal_code"
            )
    else:
        raise BadRequestError("fulfillment_type must be PICKUP or DELIVERY.", field="fulfillment_type")


def _clean_notes(notes):
    if not notes or not notes.strip():
        return None
    return notes.strip()[:NOTES_MAX_LENGTH]


class OrderPlacementService:
    """Orchestrates a placement against the collaborators it is given.

    Nothing here reaches for global state: the handler below wires the
    repository-backed collaborators, tests may pass their own. ``today`` maps a
    merchant to its current calendar day.
    """

    def __init__(
        self,
        merchants,
        catalog,
        customers,
        schedule,
        pickup_slots,
        delivery_area,
        writer,
        today=None,
    ):
        self.merchants = merchants
        self.catalog = catalog
        self.customers = customers
        self.schedule = schedule
        self.pickup_slots = pickup_slots
        self.delivery_area = delivery_area
        self.writer = writer
        self.today = today or (lambda merchant: merchant.today())

    def place(self, request):
        check_request_shape(request)

        merchant = self.merchants.find_by_slug(request.merchant_slug)
        if merchant is None:
            raise NotFoundError("Store not found.", field="merchant_slug")

        phone = normalize_phone(request.customer_phone)
        customer = self.customers.upsert(merchant.id, request.customer_name, phone)

        lines = [self._freeze_line(merchant, line) for line in request.items]

        self._check_delivery_date(merchant, request.delivery_date)

        if request.fulfillment_type == FulfillmentType.PICKUP.value:
            fulfillment = self._pickup(merchant, request)
        else:
            fulfillment = self._delivery(merchant, request)

        merchant, order = self._write(merchant, customer, request, fulfillment, lines)

        logger.info(
            "order_placed",
            merchant_id=str(merchant.id),
            order_id=str(order.id),
            order_number=order.order_number,
            fulfillment_type=order.fulfillment_type,
            total=order.total,
        )
        return confirmation_for(order, merchant, customer)

    def _write(self, merchant, customer, request, fulfillment, lines):
        """Issue the next order number and write the order under it.

        A merchant read before another placement committed carries a stale
        counter and its save fails the version check. The merchant is then read
        again and a fresh number issued; orders built on a stale counter are
        never written.
        """
        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            order = Order.place(
                merchant_id=merchant.id,
                customer_id=customer.id,
                order_number=merchant.issue_order_number(),
                delivery_date=request.delivery_date,
                fulfillment=fulfillment,
                items_data=lines,
                notes=_clean_notes(request.notes),
            )
            try:
                self.writer.write_new(merchant, order)
                return merchant, order
            except ExpectedVersionError:
                logger.info(
                    "order_number_contended",
                    merchant_id=str(merchant.id),
                    order_number=order.order_number,
                    attempt=attempt,
                )
                merchant = self.merchants.get(merchant.id)

        raise ConflictError(
            "The store is receiving many orders right now. Please try again.",
            field="order_number",
        )

    def _freeze_line(self, merchant, line):
        product = self.catalog.product_for(merchant.id, line["product_id"])
        if not product.is_active:
            raise UnprocessableError(f'"{product.name}" is currently unavailable.', field="items")

        variant_id = line.get("variant_id")
        if variant_id:
            variant = product.find_variant(variant_id)
            if variant is None or not variant.is_active:
                raise UnprocessableError(
                    f'The selected option for "{product.name}" is not available.', field="items"
                )
            unit_price, variant_label = variant.price, variant.label
        else:
            if product.price is None:
                raise UnprocessableError(f'Please select an option for "{product.name}".', field="items")
            unit_price, variant_label = product.price, None

        quantity = line["quantity"]
        minimum = product.min_quantity or 1
        if quantity <= 0 or quantity < minimum:
            raise UnprocessableError(
                f'The minimum quantity for "{product.name}" is {minimum}.',
                field="items",
            )

        return {
            "product_id": product.id,
            "variant_id": variant_id or None,
            "product_name": product.name,
            "variant_label": variant_label,
            "quantity": quantity,
            "unit_price": unit_price,
            "discount_amount": 0.0,
        }

    def _check_delivery_date(self, merchant, delivery_date):
        if delivery_date < self.today(merchant):
            raise UnprocessableError("The delivery date cannot be in the past.", field="delivery_date")

        override = self.schedule.override_for(merchant.id, delivery_date)
        if override is not None and not override.is_open:
            raise UnprocessableError(
                f"The store is closed on {delivery_date.isoformat()}.",
                field="delivery_date",
            )

    def _pickup(self, merchant, request):
        slot = self.pickup_slots.resolve_active_slot(
            merchant.id, day_of_week_for(request.delivery_date), request.pickup_slot_id
        )
        return {
            "fulfillment_type": FulfillmentType.PICKUP.value,
            "pickup_slot_id": slot.id,
            "pickup_time": slot.label,
        }

    def _delivery(self, merchant, request):
        postal_code = normalize_postal_code(
            request.delivery_postal_code, field="delivery_postal_code", error=BadRequestError
        )
        area = self.delivery_area.is_served(merchant.id, postal_code)
        if not area.served:
            raise UnprocessableError(
                f"Delivery is not available for postal code {postal_code}.",
                field="delivery_postal_code",
            )

        address = {}
        for field, label in _ADDRESS_FIELDS.items():
            value = getattr(request, field)
            if _blank(value):
                raise UnprocessableError(f"The delivery address is incomplete: {label} is required.", field=field)
            address[field] = value.strip()

        return {
            "fulfillment_type": FulfillmentType.DELIVERY.value,
            "delivery_postal_code": postal_code,
            "shipping_address": compose_shipping_address(
                address["delivery_street"],
                address["delivery_number"],
                address["delivery_neighborhood"],
                address["delivery_city"],
                postal_code,
            ),
            **address,
        }


def confirmation_for(order, merchant, customer):
    """Display snapshot returned to the customer once the order is stored."""
    return {
        "order_number": order.order_number,
        "reference": str(order.id),
        "status": order.status,
        "merchant_name": merchant.name,
        "customer": {
            "name": customer.name,
            "phone": format_phone(customer.phone),
        },
        "items": [
            {
                "product_name": item.product_name,
                "variant_label": item.variant_label,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "discount_amount": item.discount_amount,
                "line_total": item.line_total,
            }
            for item in order.items
        ],
        "total": order.total,
        "fulfillment_type": order.fulfillment_type,
        "pickup_time": order.pickup_time,
        "delivery_postal_code": order.delivery_postal_code,
        "delivery_street": order.delivery_street,
        "delivery_number": order.delivery_number,
        "delivery_neighborhood": order.delivery_neighborhood,
        "delivery_city": order.delivery_city,
        "shipping_address": order.shipping_address,
        "delivery_date": order.delivery_date,
        "notes": order.notes,
        "created_at": order.created_at,
    }


def build_placement_service():
    """Placement service wired to the repositories of the current domain."""
    return OrderPlacementService(
        merchants=current_domain.repository_for(Merchant),
        catalog=CatalogReader(),
        customers=CustomerDirectory(),
        schedule=ScheduleAvailability(),
        pickup_slots=PickupSlotResolver(),
        delivery_area=DeliveryAreaValidator(),
        writer=OrderWriter(),
    )


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        request = PlacementRequest.from_command(command)
        try:
            return build_placement_service().place(request)
        except StorefrontError as exc:
            logger.info(
                "order_rejected",
                merchant_slug=command.merchant_slug,
                kind=exc.kind,
                field=exc.field,
                reason=exc.message,
            )
            raise
