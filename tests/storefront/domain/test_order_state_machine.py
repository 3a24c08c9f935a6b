"""Tests for the order status graph: can_transition and Order.change_status."""

from datetime import date

import pytest
from storefront.order.events import OrderStatusChanged
from storefront.order.order import Order, OrderStatus, can_transition
from storefront.shared.errors import ConflictError


def _make_order():
    order = Order.place(
        merchant_id="merchant-001",
        customer_id="cust-001",
        order_number=1,
        delivery_date=date(2030, 1, 7),
        fulfillment={"fulfillment_type": "PICKUP", "pickup_slot_id": "slot-001", "pickup_time": "09:00 - 12:00"},
        items_data=[
            {
                "product_id": "prod-001",
                "product_name": "Bolo de chocolate",
                "quantity": 1,
                "unit_price": 29.90,
            }
        ],
    )
    order._events.clear()
    return order


class TestCanTransition:
    @pytest.mark.parametrize(
        "current,requested",
        [
            (OrderStatus.PENDING, OrderStatus.APPROVED),
            (OrderStatus.PENDING, OrderStatus.REJECTED),
            (OrderStatus.APPROVED, OrderStatus.REJECTED),
        ],
    )
    def test_allowed(self, current, requested):
        assert can_transition(current, requested) is True

    @pytest.mark.parametrize(
        "current,requested",
        [
            (OrderStatus.APPROVED, OrderStatus.PENDING),
            (OrderStatus.APPROVED, OrderStatus.APPROVED),
            (OrderStatus.PENDING, OrderStatus.PENDING),
            (OrderStatus.REJECTED, OrderStatus.APPROVED),
            (OrderStatus.REJECTED, OrderStatus.PENDING),
            (OrderStatus.REJECTED, OrderStatus.REJECTED),
        ],
    )
    def test_refused(self, current, requested):
        assert can_transition(current, requested) is False

    def test_accepts_string_values(self):
        assert can_transition("PENDING", "APPROVED") is True
        assert can_transition("REJECTED", "APPROVED") is False

    def test_unknown_status_never_transitions(self):
        assert can_transition("PENDING", "SHIPPED") is False
        assert can_transition("ARCHIVED", "REJECTED") is False


class TestChangeStatus:
    def test_approve_pending_order(self):
        order = _make_order()
        order.change_status(OrderStatus.APPROVED)
        assert order.status == OrderStatus.APPROVED.value

    def test_reject_approved_order(self):
        order = _make_order()
        order.change_status("APPROVED")
        order.change_status("REJECTED")
        assert order.status == OrderStatus.REJECTED.value

    def test_back_to_pending_is_a_conflict(self):
        order = _make_order()
        order.change_status("APPROVED")
        with pytest.raises(ConflictError) as exc:
            order.change_status("PENDING")
        assert "APPROVED" in exc.value.message
        assert order.status == OrderStatus.APPROVED.value

    def test_rejected_is_terminal(self):
        order = _make_order()
        order.change_status("REJECTED")
        for requested in ("PENDING", "APPROVED", "REJECTED"):
            with pytest.raises(ConflictError):
                order.change_status(requested)
        assert order.status == OrderStatus.REJECTED.value

    def test_raises_status_changed_event(self):
        order = _make_order()
        order.change_status("APPROVED")

        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderStatusChanged)
        assert event.previous_status == "PENDING"
        assert event.new_status == "APPROVED"
        assert event.order_id == str(order.id)

    def test_refused_change_raises_no_event(self):
        order = _make_order()
        order.change_status("REJECTED")
        order._events.clear()

        with pytest.raises(ConflictError):
            order.change_status("APPROVED")
        assert order._events == []
