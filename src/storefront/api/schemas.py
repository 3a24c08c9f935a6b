"""Pydantic request/response schemas for the Storefront API."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field

# --- Public ordering ---


class OrderItemRequest(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int


class CustomerRequest(BaseModel):
    name: str = Field(..., max_length=120)
    phone: str = Field(..., max_length=30)


class DeliveryAddressRequest(BaseModel):
    postal_code: str = Field(..., max_length=9)
    street: str | None = Field(None, max_length=255)
    number: str | None = Field(None, max_length=20)
    neighborhood: str | None = Field(None, max_length=120)
    city: str | None = Field(None, max_length=120)


class PlaceOrderRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer": {"name": "Ana Souza", "phone": "(11) 99999-8888"},
                    "items": [{"product_id": "prod-001", "quantity": 2}],
                    "fulfillment_type": "PICKUP",
                    "pickup_slot_id": "slot-001",
                    "delivery_date": "2026-11-02",
                    "notes": "Sem cobertura, por favor",
                },
                {
                    "customer": {"name": "Ana Souza", "phone": "11999998888"},
                    "items": [{"product_id": "prod-001", "variant_id": "var-500g", "quantity": 1}],
                    "fulfillment_type": "DELIVERY",
                    "delivery": {
                        "postal_code": "03000-000",
                        "street": "Rua Augusta",
                        "number": "1200",
                        "neighborhood": "Consolação",
                        "city": "São Paulo",
                    },
                    "delivery_date": "2026-11-03",
                },
            ]
        }
    }

    customer: CustomerRequest
    items: list[OrderItemRequest]
    fulfillment_type: str
    pickup_slot_id: str | None = None
    delivery: DeliveryAddressRequest | None = None
    delivery_date: dt.date
    notes: str | None = None


class ConfirmationItemResponse(BaseModel):
    product_name: str
    variant_label: str | None = None
    quantity: int
    unit_price: float
    discount_amount: float = 0.0
    line_total: float


class ConfirmationCustomerResponse(BaseModel):
    name: str
    phone: str


class OrderConfirmationResponse(BaseModel):
    order_number: int
    reference: str
    status: str
    merchant_name: str
    customer: ConfirmationCustomerResponse
    items: list[ConfirmationItemResponse]
    total: float
    fulfillment_type: str
    pickup_time: str | None = None
    delivery_postal_code: str | None = None
    delivery_street: str | None = None
    delivery_number: str | None = None
    delivery_neighborhood: str | None = None
    delivery_city: str | None = None
    shipping_address: str | None = None
    delivery_date: dt.date
    notes: str | None = None
    created_at: dt.datetime | None = None


class DeliveryAreaResponse(BaseModel):
    postal_code: str
    served: bool
    unrestricted: bool


# --- Merchant: orders ---


class OrderCustomerResponse(BaseModel):
    id: str
    name: str | None = None
    phone: str | None = None


class OrderSummaryResponse(BaseModel):
    id: str
    order_number: int
    status: str
    delivery_date: dt.date
    fulfillment_type: str
    pickup_time: str | None = None
    shipping_address: str | None = None
    customer: OrderCustomerResponse
    item_count: int
    total: float
    created_at: dt.datetime | None = None


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    variant_id: str | None = None
    product_name: str
    variant_label: str | None = None
    quantity: int
    unit_price: float
    discount_amount: float = 0.0
    line_total: float


class OrderDetailResponse(OrderSummaryResponse):
    pickup_slot_id: str | None = None
    delivery_postal_code: str | None = None
    delivery_street: str | None = None
    delivery_number: str | None = None
    delivery_neighborhood: str | None = None
    delivery_city: str | None = None
    notes: str | None = None
    items: list[OrderItemResponse]
    updated_at: dt.datetime | None = None


class ChangeOrderStatusRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"status": "APPROVED"}]}}

    status: str = Field(..., max_length=20)


# --- Merchant: logistics ---


class CreatePickupSlotRequest(BaseModel):
    model_config = {
        "json_schema_extra": {"examples": [{"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"}]}
    }

    day_of_week: int = Field(..., ge=0, le=6)
    start_time: str = Field(..., max_length=5)
    end_time: str = Field(..., max_length=5)


class TogglePickupSlotRequest(BaseModel):
    is_active: bool


class PickupSlotResponse(BaseModel):
    id: str
    day_of_week: int
    start_time: str
    end_time: str
    label: str
    is_active: bool


class AddDeliveryRangeRequest(BaseModel):
    model_config = {
        "json_schema_extra": {"examples": [{"postal_code_start": "01000-000", "postal_code_end": "05999-999"}]}
    }

    postal_code_start: str = Field(..., max_length=9)
    postal_code_end: str = Field(..., max_length=9)


class DeliveryRangeResponse(BaseModel):
    id: str
    postal_code_start: str
    postal_code_end: str


class SetDayAvailabilityRequest(BaseModel):
    is_open: bool


class ScheduleDayResponse(BaseModel):
    date: dt.date
    is_open: bool
    is_default: bool
    is_editable: bool


# --- Common ---


class IdResponse(BaseModel):
    id: str


class StatusResponse(BaseModel):
    status: str = "ok"
