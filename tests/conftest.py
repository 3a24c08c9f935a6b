import pytest

# Suite directory -> marker applied to every test collected under it
_SUITE_MARKERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "integration": pytest.mark.integration,
    "bdd": pytest.mark.bdd,
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="PROTEAN_ENV overlay of storefront/domain.toml to run the suite against",
    )


def pytest_collection_modifyitems(config, items):
    for item in items:
        suite = next((part for part in item.path.parts if part in _SUITE_MARKERS), None)
        if suite is None:
            continue
        item.add_marker(_SUITE_MARKERS[suite])
        if suite in ("integration", "bdd") and item.get_closest_marker("fast") is None:
            item.add_marker(pytest.mark.slow)
