"""Storefront bounded context: merchant catalogues, public ordering and order review.

Hosts the order placement pipeline (cart to price-frozen order in one unit of
work), the order status state machine, and the merchant-owned logistics
configuration the pipeline consults: delivery ranges, pickup slots and the
opening calendar.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

storefront = Domain(name="storefront")
