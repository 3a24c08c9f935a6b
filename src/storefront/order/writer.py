"""Persistence of orders: the only code path that writes Order rows."""

from protean.utils.globals import current_domain

from storefront.merchant.merchant import Merchant
from storefront.order.order import Order


class OrderWriter:
    """Writes orders through the repositories of the active unit of work.

    ``write_new`` saves the merchant (whose order counter was just advanced)
    and the order with all its items; both land in the same unit of work, so
    either all of it is committed or none of it is.
    """

    def __init__(self, orders=None, merchants=None):
        self._orders = orders
        self._merchants = merchants

    @property
    def orders(self):
        return self._orders or current_domain.repository_for(Order)

    @property
    def merchants(self):
        return self._merchants or current_domain.repository_for(Merchant)

    def write_new(self, merchant, order):
        self.merchants.add(merchant)
        self.orders.add(order)
        return order

    def save_status(self, order):
        self.orders.add(order)
        return order
