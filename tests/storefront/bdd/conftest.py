"""Shared BDD fixtures and step definitions for the Storefront domain."""

import pytest
from pytest_bdd import given, parsers, then
from storefront.shared.errors import ConflictError, UnprocessableError


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def outcome():
    """Container for the result or the storefront error of the last action."""
    return {"result": None, "exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a store with a product "{name}" priced {price:f}'), target_fixture="product")
def store_with_product(make_product, name, price):
    return make_product(name=name, price=price, min_quantity=1)


@given(parsers.cfparse('a Monday pickup slot from "{start}" to "{end}"'), target_fixture="slot_id")
def monday_pickup_slot(make_slot, start, end):
    return make_slot(day_of_week=1, start_time=start, end_time=end)


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the action is refused as unprocessable mentioning "{text}"'))
def refused_as_unprocessable(outcome, text):
    assert isinstance(outcome["exc"], UnprocessableError), f"Expected UnprocessableError, got {outcome['exc']!r}"
    assert text in outcome["exc"].message


@then("the action is refused as a conflict")
def refused_as_conflict(outcome):
    assert isinstance(outcome["exc"], ConflictError), f"Expected ConflictError, got {outcome['exc']!r}"


@then("the action succeeds")
def action_succeeds(outcome):
    assert outcome["exc"] is None, f"Unexpected error: {outcome['exc']!r}"
