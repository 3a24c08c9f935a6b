import os
from datetime import date, timedelta

import pytest


@pytest.fixture(scope="session")
def _storefront_domain(request):
    """Initialize the storefront domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from storefront.domain import storefront

    storefront.init()
    return storefront


@pytest.fixture(scope="session", autouse=True)
def setup_db(_storefront_domain):
    from storefront.utils.db import drop_db, setup_db

    setup_db(_storefront_domain)

    yield

    drop_db(_storefront_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_storefront_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _storefront_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------
@pytest.fixture()
def next_weekday():
    """First date with the given weekday (0 = Sunday) at least two days ahead.

    Two days of margin keep the date in the future whatever the merchant's
    timezone is.
    """

    def _next(day_of_week):
        candidate = date.today() + timedelta(days=2)
        while candidate.isoweekday() % 7 != day_of_week:
            candidate += timedelta(days=1)
        return candidate

    return _next


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def merchant():
    from protean import current_domain
    from storefront.merchant.merchant import Merchant

    merchant = Merchant.register(name="Doce Lar", slug="doce-lar")
    current_domain.repository_for(Merchant).add(merchant)
    return merchant


@pytest.fixture()
def other_merchant():
    from protean import current_domain
    from storefront.merchant.merchant import Merchant

    merchant = Merchant.register(name="Padaria Central", slug="padaria-central")
    current_domain.repository_for(Merchant).add(merchant)
    return merchant


@pytest.fixture()
def make_product(merchant):
    from protean import current_domain
    from storefront.catalogue.product import Product

    def _make(merchant_id=None, **overrides):
        data = {"name": "Bolo de chocolate", "price": 29.90, "min_quantity": 1}
        data.update(overrides)
        product = Product.create(merchant_id=merchant_id or merchant.id, **data)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def make_slot(merchant):
    from protean import current_domain
    from storefront.logistics.pickup_slot import CreatePickupSlot

    def _make(day_of_week=1, start_time="09:00", end_time="12:00", merchant_id=None):
        command = CreatePickupSlot(
            merchant_id=merchant_id or merchant.id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
        )
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture()
def make_range(merchant):
    from protean import current_domain
    from storefront.logistics.delivery_area import AddDeliveryRange

    def _make(start="01000000", end="05999999", merchant_id=None):
        command = AddDeliveryRange(
            merchant_id=merchant_id or merchant.id,
            postal_code_start=start,
            postal_code_end=end,
        )
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture()
def place_order(merchant):
    """Submit a PlaceOrder command; keyword overrides replace the defaults.

    ``items`` may be given as a list, it is JSON-encoded here.
    """
    import json

    from protean import current_domain
    from storefront.order.placement import PlaceOrder

    def _place(**overrides):
        data = {
            "merchant_slug": merchant.slug,
            "customer_name": "Ana Souza",
            "customer_phone": "(11) 99999-8888",
            "fulfillment_type": "PICKUP",
        }
        data.update(overrides)
        if not isinstance(data.get("items"), str):
            data["items"] = json.dumps(data.get("items", []))
        return current_domain.process(PlaceOrder(**data), asynchronous=False)

    return _place


@pytest.fixture()
def delivery_address():
    return {
        "fulfillment_type": "DELIVERY",
        "delivery_postal_code": "03000-000",
        "delivery_street": "Rua Augusta",
        "delivery_number": "1200",
        "delivery_neighborhood": "Consolação",
        "delivery_city": "São Paulo",
    }
