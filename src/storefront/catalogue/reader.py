"""Read-only catalogue lookups used while placing an order."""

from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.shared.errors import NotFoundError


class CatalogReader:
    """Loads a merchant's products straight from the repository on every call.

    Nothing is cached: prices and active flags may change between the moment a
    customer opened the catalogue and the moment the order is submitted.
    """

    def __init__(self, repository=None):
        self._repository = repository

    @property
    def repository(self):
        return self._repository or current_domain.repository_for(Product)

    def product_for(self, merchant_id, product_id):
        product = self.repository.find_for_merchant(merchant_id, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found.", field="items")
        return product
