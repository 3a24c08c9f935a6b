"""Find-or-create of customers by (merchant, phone)."""

from protean import current_domain
from storefront.customer.customer import Customer, customer_id_for
from storefront.customer.directory import CustomerDirectory

PHONE = "5511999998888"


class LookupRanEarly:
    """Repository whose phone lookup reflects the state before another placement wrote."""

    def __init__(self, repository):
        self._repository = repository

    def find_by_phone(self, merchant_id, phone):
        return None

    def add(self, customer):
        return self._repository.add(customer)

    def get(self, customer_id):
        return self._repository.get(customer_id)


def _stored_customers():
    return current_domain.repository_for(Customer)._dao.query.all().items


class TestCustomerIdentity:
    def test_identity_derives_from_merchant_and_phone(self):
        assert customer_id_for("m-1", PHONE) == customer_id_for("m-1", PHONE)
        assert customer_id_for("m-1", PHONE) != customer_id_for("m-2", PHONE)
        assert customer_id_for("m-1", PHONE) != customer_id_for("m-1", "5521988887777")

    def test_registered_customer_carries_the_derived_identity(self, merchant):
        customer = Customer.register(merchant_id=merchant.id, name="Ana Souza", phone=PHONE)
        assert customer.id == customer_id_for(merchant.id, PHONE)


class TestUpsert:
    def test_creates_then_reuses(self, merchant):
        directory = CustomerDirectory()
        first = directory.upsert(merchant.id, "Ana Souza", PHONE)
        second = directory.upsert(merchant.id, "Ana S.", PHONE)

        assert second.id == first.id
        assert second.name == "Ana Souza"
        assert len(_stored_customers()) == 1

    def test_registration_racing_another_keeps_a_single_customer(self, merchant):
        existing = CustomerDirectory().upsert(merchant.id, "Ana Souza", PHONE)

        racing = CustomerDirectory(repository=LookupRanEarly(current_domain.repository_for(Customer)))
        customer = racing.upsert(merchant.id, "Ana S.", PHONE)

        assert customer.id == existing.id
        assert customer.name == "Ana Souza"
        assert len(_stored_customers()) == 1

    def test_same_phone_with_two_merchants(self, merchant, other_merchant):
        directory = CustomerDirectory()
        directory.upsert(merchant.id, "Ana Souza", PHONE)
        directory.upsert(other_merchant.id, "Ana Souza", PHONE)
        assert len(_stored_customers()) == 2
