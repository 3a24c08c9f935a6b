"""Repository for the Order aggregate."""

from protean.exceptions import ObjectNotFoundError

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_for_merchant(self, merchant_id, order_id):
        """The order if it exists and belongs to ``merchant_id``, else None."""
        try:
            order = self.get(order_id)
        except ObjectNotFoundError:
            return None
        return order if str(order.merchant_id) == str(merchant_id) else None

    def list_for_merchant(self, merchant_id, statuses=None, customer_id=None, date_from=None, date_to=None):
        """Orders of a merchant for the dashboard, soonest delivery first.

        Orders on the same day are ordered by pickup time; delivery orders,
        which have none, come after the pickups of that day.
        """
        filters = {"merchant_id": str(merchant_id)}
        if customer_id:
            filters["customer_id"] = str(customer_id)
        orders = self._dao.query.filter(**filters).all().items

        if statuses:
            wanted = {s.value if hasattr(s, "value") else s for s in statuses}
            orders = [o for o in orders if o.status in wanted]
        if date_from:
            orders = [o for o in orders if o.delivery_date >= date_from]
        if date_to:
            orders = [o for o in orders if o.delivery_date <= date_to]

        return sorted(orders, key=lambda o: (o.delivery_date, o.pickup_time or "~", o.order_number))
