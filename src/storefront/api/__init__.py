"""Storefront domain API package."""

from storefront.api.errors import current_merchant_id, register_exception_handlers
from storefront.api.routes import (
    catalog_router,
    delivery_range_router,
    order_router,
    pickup_slot_router,
    schedule_router,
)

routers = [catalog_router, order_router, pickup_slot_router, delivery_range_router, schedule_router]

__all__ = [
    "catalog_router",
    "order_router",
    "pickup_slot_router",
    "delivery_range_router",
    "schedule_router",
    "routers",
    "current_merchant_id",
    "register_exception_handlers",
]
