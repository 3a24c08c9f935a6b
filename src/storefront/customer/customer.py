"""Customer aggregate: a buyer known to one merchant by phone number."""

import uuid
from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront
from storefront.shared.phone import format_phone

_CUSTOMER_NAMESPACE = uuid.UUID("6f1c2a4e-93b5-4d6a-9a57-1f0c8e2d7b31")


def customer_id_for(merchant_id, phone):
    """Identity of the customer registered under ``phone`` with ``merchant_id``.

    Derived from the pair, so two registrations of the same phone collide on
    the identifier instead of producing two customers.
    """
    return str(uuid.uuid5(_CUSTOMER_NAMESPACE, f"{merchant_id}:{phone}"))


@storefront.aggregate
class Customer:
    """Customers never sign in. The (merchant, phone) pair is their identity;
    the phone is stored in its normalized digit form."""

    merchant_id = Identifier(required=True)
    name = String(required=True, max_length=120)
    phone = String(required=True, max_length=20)
    created_at = DateTime()

    @classmethod
    def register(cls, merchant_id, name, phone):
        return cls(
            id=customer_id_for(merchant_id, phone),
            merchant_id=merchant_id,
            name=name.strip(),
            phone=phone,
            created_at=datetime.now(UTC),
        )

    @property
    def display_phone(self):
        return format_phone(self.phone)


@storefront.repository(part_of=Customer)
class CustomerRepository:
    def find_by_phone(self, merchant_id, phone):
        """Customer of ``merchant_id`` registered under the normalized ``phone``."""
        customers = self._dao.query.filter(merchant_id=str(merchant_id), phone=phone).all().items
        return customers[0] if customers else None
