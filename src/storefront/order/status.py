"""Merchant decisions on an order: approve or reject."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order, OrderStatus, can_transition
from storefront.order.writer import OrderWriter
from storefront.shared.errors import ConflictError, NotFoundError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@storefront.command(part_of="Order")
class ChangeOrderStatus:
    order_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)


class OrderStatusService:
    def __init__(self, orders, writer):
        self.orders = orders
        self.writer = writer

    def change_status(self, order_id, merchant_id, requested):
        """Apply ``requested`` to the merchant's order.

        The current status is always re-read, so a client retrying a change that
        already went through gets a conflict rather than a silent success.
        """
        order = self.orders.find_for_merchant(merchant_id, order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found.", field="order_id")

        current = order.status
        if not can_transition(current, requested):
            logger.info(
                "status_transition_refused",
                order_id=str(order_id),
                current=current,
                requested=str(requested),
            )
            raise ConflictError(
                f"Transition not allowed: order is {current} and cannot become {requested}.",
                field="status",
            )

        order.change_status(requested)
        self.writer.save_status(order)
        logger.info("order_status_changed", order_id=str(order.id), previous=current, status=order.status)
        return order


@storefront.command_handler(part_of=Order)
class ChangeOrderStatusHandler:
    @handle(ChangeOrderStatus)
    def change_order_status(self, command):
        service = OrderStatusService(orders=current_domain.repository_for(Order), writer=OrderWriter())
        return service.change_status(command.order_id, command.merchant_id, command.status)
