import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from storefront.api import current_merchant_id, register_exception_handlers, routers


def _app():
    app = FastAPI()
    for router in routers:
        app.include_router(router)
    register_exception_handlers(app)
    return app


@pytest.fixture()
def anonymous_client():
    """Client without a signed-in merchant, as used by the public catalogue."""
    return TestClient(_app())


@pytest.fixture()
def client(merchant):
    """Client signed in as the ``merchant`` fixture."""
    app = _app()
    app.dependency_overrides[current_merchant_id] = lambda: str(merchant.id)
    return TestClient(app)
