import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Select the test configuration before any settings are read, so the
    in-memory adapters are used throughout.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["STOREFRONT_ENVIRONMENT"] = "test"

    from shared.config import get_settings

    get_settings.cache_clear()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to put every swappable adapter back to its default after each test"""
    yield

    from catalogue.client import get_catalog
    from identity.provider import reset_identity_provider
    from payments.gateway import reset_gateway
    from shared.config import get_settings

    reset_gateway()
    reset_identity_provider()
    get_catalog.cache_clear()
    get_settings.cache_clear()


CATALOG_PRODUCTS = [
    {
        "id": 1,
        "title": "Cotton Shirt",
        "price": 20.0,
        "description": "A plain cotton shirt",
        "category": "men's clothing",
        "image": "https://catalog.test/img/1.png",
        "rating": {"rate": 4.1, "count": 259},
    },
    {
        "id": 2,
        "title": "Coffee Mug",
        "price": 12.5,
        "description": "Holds coffee",
        "category": "kitchen",
        "image": "https://catalog.test/img/2.png",
        "rating": {"rate": 3.9, "count": 70},
    },
    {
        "id": 3,
        "title": "Rain Jacket",
        "price": 56.99,
        "description": "Keeps rain out",
        "category": "women's clothing",
        "image": "https://catalog.test/img/3.png",
        "rating": {"rate": 2.6, "count": 235},
    },
]


@pytest.fixture()
def catalog_requests():
    """Requests seen by the stubbed catalogue API, in order."""
    return []


@pytest.fixture()
def catalog_transport(catalog_requests):
    """An httpx transport that answers like the public catalogue API."""
    import httpx

    def handler(request):
        catalog_requests.append(request)
        path = request.url.path
        if path == "/products":
            limit = request.url.params.get("limit")
            products = CATALOG_PRODUCTS[: int(limit)] if limit else CATALOG_PRODUCTS
            return httpx.Response(200, json=products)
        if path == "/products/categories":
            return httpx.Response(200, json=sorted({p["category"] for p in CATALOG_PRODUCTS}))
        if path.startswith("/products/category/"):
            category = path.removeprefix("/products/category/")
            return httpx.Response(200, json=[p for p in CATALOG_PRODUCTS if p["category"] == category])
        if path.startswith("/products/"):
            product_id = path.removeprefix("/products/")
            match = next((p for p in CATALOG_PRODUCTS if str(p["id"]) == product_id), None)
            # Unknown ids are answered with an empty 200, as the public API does
            return httpx.Response(200, json=match) if match else httpx.Response(200, content=b"")
        return httpx.Response(404, json={"error": "not found"})

    return httpx.MockTransport(handler)


@pytest.fixture()
def catalog(catalog_transport):
    import httpx

    from catalogue.client import CatalogClient

    return CatalogClient("https://catalog.test", client=httpx.AsyncClient(transport=catalog_transport))
