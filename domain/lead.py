"""
Domain: Lead and UnlockRecord entities.

Contract excerpts implemented here:
- A Lead is a contact-reveal target: either a seeker's inbound contact request
  on a provider's listing (listing_contact) or a provider's wish to contact a
  seeker's posted request (request_contact).
- owner_account_id is the account whose contact is protected; requesting_account_id
  is the account that may unlock it.
- status transitions pending -> unlocked exactly once, driven by a successful unlock.
- At most one UnlockRecord exists per (requesting_account_id, lead_id); its existence
  is the single source of truth for "already paid for this lead by this account".
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from .matching import CompatibilityRequest, ListingInventory
from .time import require_utc_timestamp


class LeadSubjectType(str, Enum):
    LISTING_CONTACT = "listing_contact"
    REQUEST_CONTACT = "request_contact"


class LeadStatus(str, Enum):
    PENDING = "pending"
    UNLOCKED = "unlocked"


@dataclass(frozen=True, slots=True)
class Lead:
    lead_id: str
    subject_type: LeadSubjectType
    subject_ref: str
    owner_account_id: str
    requesting_account_id: str
    status: LeadStatus
    created_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if self.owner_account_id == self.requesting_account_id:
            raise ValueError("a lead cannot target its own requester")

    @property
    def is_unlocked(self) -> bool:
        return self.status is LeadStatus.UNLOCKED

    def unlocked(self) -> "Lead":
        """Return the lead in its terminal unlocked state."""

        if self.is_unlocked:
            raise ValueError("Lead is already unlocked")
        return replace(self, status=LeadStatus.UNLOCKED)


@dataclass(frozen=True, slots=True)
class UnlockRecord:
    """Immutable proof that requesting_account_id paid cost_charged for lead_id."""

    unlock_id: str
    requesting_account_id: str
    lead_id: str
    cost_charged: int
    unlocked_at: datetime
    status: LeadStatus = LeadStatus.UNLOCKED

    def __post_init__(self) -> None:
        require_utc_timestamp("unlocked_at", self.unlocked_at)
        if self.cost_charged < 0:
            raise ValueError("cost_charged must be >= 0")


@dataclass(frozen=True, slots=True)
class LeadSubject:
    """
    Stored pricing inputs of a lead's subject.

    listing_contact subjects carry the listing's headline price; request_contact
    subjects carry the request's raw budget bounds. Which amount prices the
    unlock is decided by services/pricing_service.py.
    """

    subject_type: LeadSubjectType
    subject_ref: str
    listing_price: Optional[int] = None
    min_budget: Optional[int] = None
    max_budget: Optional[int] = None

    @staticmethod
    def for_listing(listing: ListingInventory) -> "LeadSubject":
        return LeadSubject(
            subject_type=LeadSubjectType.LISTING_CONTACT,
            subject_ref=listing.listing_id,
            listing_price=listing.price,
        )

    @staticmethod
    def for_request(request: CompatibilityRequest) -> "LeadSubject":
        if request.request_id is None:
            raise ValueError("request_id is required to reference a request")
        return LeadSubject(
            subject_type=LeadSubjectType.REQUEST_CONTACT,
            subject_ref=request.request_id,
            min_budget=request.min_budget,
            max_budget=request.max_budget,
        )
