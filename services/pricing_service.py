"""
Pricing service for lead unlocks and credit bundles.

Maps the subject's price or budget to the credit cost of unlocking a lead,
and maps a verified payment amount to the credits it buys.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from domain.lead import LeadSubject, LeadSubjectType
from domain.matching import effective_budget


@dataclass(frozen=True, slots=True)
class LeadTier:
    """Unlock cost applied when reference_amount >= min_amount."""
    name: str
    min_amount: int
    cost: int


# Ordered from the highest threshold down; the first matching tier wins.
LEAD_TIERS: Tuple[LeadTier, ...] = (
    LeadTier(name="PREMIUM", min_amount=700_000, cost=20),
    LeadTier(name="HIGH_VALUE", min_amount=300_000, cost=15),
    LeadTier(name="STANDARD", min_amount=0, cost=10),
)


@dataclass(frozen=True, slots=True)
class CreditBundle:
    """
    A purchasable credit pack.

    credits already includes bonus; bonus is kept separately for display.
    """
    name: str
    price: int
    credits: int
    bonus: int = 0


CREDIT_BUNDLES: Tuple[CreditBundle, ...] = (
    CreditBundle(name="Starter Pack", price=5_000, credits=50),
    CreditBundle(name="Agent Killer", price=10_000, credits=110, bonus=10),
    CreditBundle(name="Tycoon Pack", price=20_000, credits=230, bonus=30),
)

# Currency units per credit for payments that do not match a bundle price.
CREDIT_UNIT_PRICE: int = 100


def compute_cost(reference_amount: int) -> int:
    """
    Credit cost to unlock a lead whose subject is priced at reference_amount.

    Pure and total:
        >= 700000           -> 20
        300000 .. 699999    -> 15
        otherwise           -> 10

    Example:
        compute_cost(299_999)  # 10
        compute_cost(300_000)  # 15
        compute_cost(700_000)  # 20
    """
    for tier in LEAD_TIERS:
        if reference_amount >= tier.min_amount:
            return tier.cost
    # Negative amounts fall below every threshold.
    return LEAD_TIERS[-1].cost


def reference_amount_for(subject: LeadSubject) -> int:
    """
    Select the amount that prices a lead.

    listing_contact leads are priced by the listing price; request_contact
    leads by the request's max budget, falling back to min budget, else 0.
    """
    if subject.subject_type is LeadSubjectType.LISTING_CONTACT:
        if subject.listing_price is None:
            raise ValueError("listing_price is required for listing_contact leads")
        return subject.listing_price

    return effective_budget(subject.min_budget, subject.max_budget)


def credits_for_payment(amount_paid: int) -> int:
    """
    Credits bought by a verified payment.

    Exact bundle prices receive the bundle's credits (bonus included); any
    other amount converts at CREDIT_UNIT_PRICE per credit, rounded down.
    """
    if amount_paid <= 0:
        return 0
    for bundle in CREDIT_BUNDLES:
        if amount_paid == bundle.price:
            return bundle.credits
    return amount_paid // CREDIT_UNIT_PRICE


__all__ = [
    "LeadTier",
    "LEAD_TIERS",
    "CreditBundle",
    "CREDIT_BUNDLES",
    "CREDIT_UNIT_PRICE",
    "compute_cost",
    "reference_amount_for",
    "credits_for_payment",
]
