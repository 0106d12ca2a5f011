"""
Tests for `services/pricing_service.py`.

Covers contract rules:
- compute_cost is a step function on the reference amount (10 / 15 / 20).
- The reference amount is the listing price for listing_contact leads and the
  request budget (max, then min, then 0) for request_contact leads.
- Bundle prices buy their bundle credits; other payments convert per unit.
"""

from __future__ import annotations

import pytest

from domain.lead import LeadSubject, LeadSubjectType
from domain.matching import CompatibilityRequest, ListingInventory, ListingUnit
from services.pricing_service import (
    CREDIT_BUNDLES,
    LEAD_TIERS,
    compute_cost,
    credits_for_payment,
    reference_amount_for,
)


@pytest.mark.parametrize(
    "reference_amount, expected",
    [
        (0, 10),
        (150_000, 10),
        (299_999, 10),
        (300_000, 15),
        (699_999, 15),
        (700_000, 20),
        (5_000_000, 20),
    ],
)
def test_compute_cost_tiers(reference_amount: int, expected: int) -> None:
    """Verify the tier boundaries are inclusive on the lower bound."""

    assert compute_cost(reference_amount) == expected


def test_compute_cost_negative_amount_is_standard() -> None:
    """A negative amount is below every threshold and costs the base tier."""

    assert compute_cost(-1) == 10


def test_lead_tiers_are_ordered_high_to_low() -> None:
    thresholds = [tier.min_amount for tier in LEAD_TIERS]
    assert thresholds == sorted(thresholds, reverse=True)


def test_reference_amount_for_listing_uses_cheapest_unit() -> None:
    listing = ListingInventory(
        listing_id="lodge-1",
        account_id="landlord-1",
        location="Ifite",
        units=(ListingUnit("2-Bedroom Flat", 800_000), ListingUnit("Self-con", 250_000)),
    )

    amount = reference_amount_for(LeadSubject.for_listing(listing))

    assert amount == 250_000
    assert compute_cost(amount) == 10


def test_reference_amount_for_request_prefers_max_budget() -> None:
    request = CompatibilityRequest(
        locations=("Ifite",), min_budget=200_000, max_budget=750_000, request_id="request-1"
    )

    assert reference_amount_for(LeadSubject.for_request(request)) == 750_000


def test_reference_amount_for_request_falls_back_to_min_then_zero() -> None:
    only_min = LeadSubject(LeadSubjectType.REQUEST_CONTACT, "request-1", min_budget=350_000)
    neither = LeadSubject(LeadSubjectType.REQUEST_CONTACT, "request-2")

    assert reference_amount_for(only_min) == 350_000
    assert reference_amount_for(neither) == 0
    assert compute_cost(0) == 10


def test_reference_amount_for_listing_requires_price() -> None:
    with pytest.raises(ValueError):
        reference_amount_for(LeadSubject(LeadSubjectType.LISTING_CONTACT, "lodge-1"))


def test_request_subject_requires_request_id() -> None:
    with pytest.raises(ValueError):
        LeadSubject.for_request(CompatibilityRequest(locations=("Ifite",), max_budget=500_000))


def test_credits_for_bundle_prices() -> None:
    """Exact bundle prices include the bundle bonus."""

    assert credits_for_payment(5_000) == 50
    assert credits_for_payment(10_000) == 110
    assert credits_for_payment(20_000) == 230
    assert {b.price: b.credits for b in CREDIT_BUNDLES} == {5_000: 50, 10_000: 110, 20_000: 230}


def test_credits_for_other_amounts_round_down() -> None:
    assert credits_for_payment(2_550) == 25
    assert credits_for_payment(99) == 0
    assert credits_for_payment(0) == 0
    assert credits_for_payment(-500) == 0
