"""Find-or-create access to customers."""

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.customer.customer import Customer
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CustomerDirectory:
    def __init__(self, repository=None):
        self._repository = repository

    @property
    def repository(self):
        return self._repository or current_domain.repository_for(Customer)

    def upsert(self, merchant_id, name, phone):
        """Return the customer registered under ``phone``, creating it when absent.

        An existing customer is reused as-is; the name typed on a later order does
        not overwrite the stored one. When another placement registers the same
        phone between the lookup and the insert, the insert collides on the
        customer id and the stored customer is returned instead.
        """
        customer = self.repository.find_by_phone(merchant_id, phone)
        if customer is not None:
            return customer

        customer = Customer.register(merchant_id=merchant_id, name=name, phone=phone)
        try:
            self.repository.add(customer)
        except ValidationError as exc:
            if "id" not in exc.messages:
                raise
            logger.info("customer_already_registered", merchant_id=str(merchant_id), customer_id=str(customer.id))
            return self.repository.get(customer.id)

        logger.info("customer_registered", merchant_id=str(merchant_id), customer_id=str(customer.id))
        return customer
