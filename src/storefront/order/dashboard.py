"""Read-only order views for the merchant dashboard."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.customer.customer import Customer
from storefront.order.order import Order
from storefront.shared.errors import NotFoundError


def _customer_view(customer_id):
    try:
        customer = current_domain.repository_for(Customer).get(customer_id)
    except ObjectNotFoundError:
        return {"id": str(customer_id), "name": None, "phone": None}
    return {"id": str(customer.id), "name": customer.name, "phone": customer.display_phone}


def order_summary(order, customer):
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "status": order.status,
        "delivery_date": order.delivery_date,
        "fulfillment_type": order.fulfillment_type,
        "pickup_time": order.pickup_time,
        "shipping_address": order.shipping_address,
        "customer": customer,
        "item_count": len(order.items),
        "total": order.total,
        "created_at": order.created_at,
    }


def order_detail(order, customer):
    return {
        **order_summary(order, customer),
        "pickup_slot_id": str(order.pickup_slot_id) if order.pickup_slot_id else None,
        "delivery_postal_code": order.delivery_postal_code,
        "delivery_street": order.delivery_street,
        "delivery_number": order.delivery_number,
        "delivery_neighborhood": order.delivery_neighborhood,
        "delivery_city": order.delivery_city,
        "notes": order.notes,
        "items": [
            {
                "id": str(item.id),
                "product_id": str(item.product_id),
                "variant_id": str(item.variant_id) if item.variant_id else None,
                "product_name": item.product_name,
                "variant_label": item.variant_label,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "discount_amount": item.discount_amount,
                "line_total": item.line_total,
            }
            for item in order.items
        ],
        "updated_at": order.updated_at,
    }


def list_orders(merchant_id, statuses=None, customer_id=None, date_from=None, date_to=None):
    orders = current_domain.repository_for(Order).list_for_merchant(
        merchant_id,
        statuses=statuses,
        customer_id=customer_id,
        date_from=date_from,
        date_to=date_to,
    )
    customers = {}
    summaries = []
    for order in orders:
        key = str(order.customer_id)
        if key not in customers:
            customers[key] = _customer_view(order.customer_id)
        summaries.append(order_summary(order, customers[key]))
    return summaries


def get_order(merchant_id, order_id):
    order = current_domain.repository_for(Order).find_for_merchant(merchant_id, order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found.", field="order_id")
    return order_detail(order, _customer_view(order.customer_id))
