"""FastAPI endpoints for the Storefront domain.

``catalog_router`` is public: customers browse and order without signing in.
The other routers act on behalf of the signed-in merchant, whose id comes from
the ``current_merchant_id`` dependency.
"""

import json
from datetime import date

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from storefront.api.errors import current_merchant_id
from storefront.api.schemas import (
    AddDeliveryRangeRequest,
    ChangeOrderStatusRequest,
    CreatePickupSlotRequest,
    DeliveryAreaResponse,
    DeliveryRangeResponse,
    IdResponse,
    OrderConfirmationResponse,
    OrderDetailResponse,
    OrderSummaryResponse,
    PickupSlotResponse,
    PlaceOrderRequest,
    ScheduleDayResponse,
    SetDayAvailabilityRequest,
    StatusResponse,
    TogglePickupSlotRequest,
)
from storefront.logistics.delivery_area import (
    AddDeliveryRange,
    DeliveryAreaValidator,
    DeliveryRange,
    RemoveDeliveryRange,
)
from storefront.logistics.pickup_slot import CreatePickupSlot, PickupSlot, TogglePickupSlot
from storefront.logistics.schedule import ScheduleAvailability, SetDayAvailability
from storefront.merchant.merchant import Merchant
from storefront.order import dashboard
from storefront.order.placement import PlaceOrder
from storefront.order.status import ChangeOrderStatus
from storefront.shared.errors import NotFoundError
from storefront.shared.postal_code import normalize_postal_code

catalog_router = APIRouter(prefix="/catalog", tags=["catalog"])
order_router = APIRouter(prefix="/orders", tags=["orders"])
pickup_slot_router = APIRouter(prefix="/pickup-slots", tags=["pickup-slots"])
delivery_range_router = APIRouter(prefix="/delivery-ranges", tags=["delivery-ranges"])
schedule_router = APIRouter(prefix="/schedule", tags=["schedule"])


def _merchant_by_slug(slug):
    merchant = current_domain.repository_for(Merchant).find_by_slug(slug)
    if merchant is None:
        raise NotFoundError("Store not found.", field="slug")
    return merchant


def _slot_response(slot):
    return PickupSlotResponse(
        id=str(slot.id),
        day_of_week=slot.day_of_week,
        start_time=slot.start_time,
        end_time=slot.end_time,
        label=slot.label,
        is_active=slot.is_active,
    )


# --- Public catalog endpoints ---


@catalog_router.post("/{slug}/orders", status_code=201, response_model=OrderConfirmationResponse)
async def place_order(slug: str, body: PlaceOrderRequest) -> OrderConfirmationResponse:
    delivery = body.delivery
    command = PlaceOrder(
        merchant_slug=slug,
        customer_name=body.customer.name,
        customer_phone=body.customer.phone,
        items=json.dumps([item.model_dump() for item in body.items]),
        fulfillment_type=body.fulfillment_type,
        pickup_slot_id=body.pickup_slot_id,
        delivery_postal_code=delivery.postal_code if delivery else None,
        delivery_street=delivery.street if delivery else None,
        delivery_number=delivery.number if delivery else None,
        delivery_neighborhood=delivery.neighborhood if delivery else None,
        delivery_city=delivery.city if delivery else None,
        delivery_date=body.delivery_date,
        notes=body.notes,
    )
    confirmation = current_domain.process(command, asynchronous=False)
    return OrderConfirmationResponse(**confirmation)


@catalog_router.get("/{slug}/delivery-area", response_model=DeliveryAreaResponse)
async def check_delivery_area(slug: str, postal_code: str = Query(..., max_length=9)) -> DeliveryAreaResponse:
    """Pre-check for the order form. Placement validates the postal code again."""
    merchant = _merchant_by_slug(slug)
    normalized = normalize_postal_code(postal_code)
    area = DeliveryAreaValidator().is_served(merchant.id, normalized)
    return DeliveryAreaResponse(postal_code=normalized, served=area.served, unrestricted=area.unrestricted)


@catalog_router.get("/{slug}/pickup-slots", response_model=list[PickupSlotResponse])
async def list_public_pickup_slots(
    slug: str, day_of_week: int | None = Query(None, ge=0, le=6)
) -> list[PickupSlotResponse]:
    merchant = _merchant_by_slug(slug)
    slots = current_domain.repository_for(PickupSlot).for_merchant(
        merchant.id, day_of_week=day_of_week, active_only=True
    )
    return [_slot_response(slot) for slot in slots]


# --- Merchant order endpoints ---


@order_router.get("", response_model=list[OrderSummaryResponse])
async def list_orders(
    status: list[str] | None = Query(None),
    customer_id: str | None = None,
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    merchant_id: str = Depends(current_merchant_id),
) -> list[OrderSummaryResponse]:
    orders = dashboard.list_orders(
        merchant_id,
        statuses=status,
        customer_id=customer_id,
        date_from=date_from,
        date_to=date_to,
    )
    return [OrderSummaryResponse(**order) for order in orders]


@order_router.get("/{order_id}", response_model=OrderDetailResponse)
async def get_order(order_id: str, merchant_id: str = Depends(current_merchant_id)) -> OrderDetailResponse:
    return OrderDetailResponse(**dashboard.get_order(merchant_id, order_id))


@order_router.put("/{order_id}/status", response_model=OrderDetailResponse)
async def change_order_status(
    order_id: str,
    body: ChangeOrderStatusRequest,
    merchant_id: str = Depends(current_merchant_id),
) -> OrderDetailResponse:
    command = ChangeOrderStatus(order_id=order_id, merchant_id=merchant_id, status=body.status)
    current_domain.process(command, asynchronous=False)
    return OrderDetailResponse(**dashboard.get_order(merchant_id, order_id))


# --- Merchant pickup slot endpoints ---


@pickup_slot_router.post("", status_code=201, response_model=IdResponse)
async def create_pickup_slot(
    body: CreatePickupSlotRequest, merchant_id: str = Depends(current_merchant_id)
) -> IdResponse:
    command = CreatePickupSlot(
        merchant_id=merchant_id,
        day_of_week=body.day_of_week,
        start_time=body.start_time,
        end_time=body.end_time,
    )
    result = current_domain.process(command, asynchronous=False)
    return IdResponse(id=result)


@pickup_slot_router.put("/{slot_id}/active", response_model=StatusResponse)
async def toggle_pickup_slot(
    slot_id: str, body: TogglePickupSlotRequest, merchant_id: str = Depends(current_merchant_id)
) -> StatusResponse:
    command = TogglePickupSlot(merchant_id=merchant_id, slot_id=slot_id, is_active=body.is_active)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@pickup_slot_router.get("", response_model=list[PickupSlotResponse])
async def list_pickup_slots(merchant_id: str = Depends(current_merchant_id)) -> list[PickupSlotResponse]:
    slots = current_domain.repository_for(PickupSlot).for_merchant(merchant_id)
    return [_slot_response(slot) for slot in slots]


# --- Merchant delivery range endpoints ---


@delivery_range_router.post("", status_code=201, response_model=IdResponse)
async def add_delivery_range(
    body: AddDeliveryRangeRequest, merchant_id: str = Depends(current_merchant_id)
) -> IdResponse:
    command = AddDeliveryRange(
        merchant_id=merchant_id,
        postal_code_start=body.postal_code_start,
        postal_code_end=body.postal_code_end,
    )
    result = current_domain.process(command, asynchronous=False)
    return IdResponse(id=result)


@delivery_range_router.delete("/{range_id}", response_model=StatusResponse)
async def remove_delivery_range(range_id: str, merchant_id: str = Depends(current_merchant_id)) -> StatusResponse:
    command = RemoveDeliveryRange(merchant_id=merchant_id, range_id=range_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@delivery_range_router.get("", response_model=list[DeliveryRangeResponse])
async def list_delivery_ranges(merchant_id: str = Depends(current_merchant_id)) -> list[DeliveryRangeResponse]:
    ranges = current_domain.repository_for(DeliveryRange).for_merchant(merchant_id)
    return [
        DeliveryRangeResponse(id=str(r.id), postal_code_start=r.postal_code_start, postal_code_end=r.postal_code_end)
        for r in ranges
    ]


# --- Merchant schedule endpoints ---


@schedule_router.get("", response_model=list[ScheduleDayResponse])
async def get_schedule(
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    merchant_id: str = Depends(current_merchant_id),
) -> list[ScheduleDayResponse]:
    merchant = current_domain.repository_for(Merchant).get(merchant_id)
    days = ScheduleAvailability().resolve_schedule(
        merchant.id, today=merchant.today(), date_from=date_from, date_to=date_to
    )
    return [ScheduleDayResponse(**day) for day in days]


@schedule_router.put("/{day}", response_model=StatusResponse)
async def set_day_availability(
    day: date, body: SetDayAvailabilityRequest, merchant_id: str = Depends(current_merchant_id)
) -> StatusResponse:
    command = SetDayAvailability(merchant_id=merchant_id, date=day, is_open=body.is_open)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
