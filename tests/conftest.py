"""
Pytest configuration and shared fixtures.

This file adds the project root to the Python path so that tests can import
from the domain, repositories, services and api modules, and provides an
in-memory store seeded with one provider, one seeker and one pending lead.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.account import Account, AccountRole  # noqa: E402
from domain.lead import Lead, LeadStatus, LeadSubjectType  # noqa: E402
from domain.matching import CompatibilityRequest, ListingInventory, ListingUnit  # noqa: E402
from repositories.memory_store import InMemoryCreditStore  # noqa: E402
from services.notification_service import RecordingNotificationDispatcher  # noqa: E402
from services.unlock_service import UnlockGateway  # noqa: E402
from services.wallet_service import WalletLedger  # noqa: E402

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

PROVIDER_ID = "landlord-1"
OTHER_PROVIDER_ID = "landlord-2"
SEEKER_ID = "student-1"
SEEKER_PHONE = "+2348000000001"

# Listing priced at 200000 -> unlock cost 10
LEAD_ID = "lead-1"
LISTING_ID = "lodge-1"
LISTING_PRICE = 200_000

# Request with max budget 750000 -> unlock cost 20
REQUEST_LEAD_ID = "lead-2"
REQUEST_ID = "request-1"


@pytest.fixture
def store() -> InMemoryCreditStore:
    return InMemoryCreditStore()


@pytest.fixture
def dispatcher() -> RecordingNotificationDispatcher:
    return RecordingNotificationDispatcher()


@pytest.fixture
def ledger(store, dispatcher) -> WalletLedger:
    return WalletLedger(store, dispatcher)


@pytest.fixture
def gateway(store, ledger, dispatcher) -> UnlockGateway:
    return UnlockGateway(store, ledger, dispatcher)


@pytest.fixture
def seeded(store) -> InMemoryCreditStore:
    """Provider, second provider, seeker, one listing lead and one request lead."""

    store.put_account(Account(PROVIDER_ID, AccountRole.PROVIDER, contact_phone="+2348000000100"))
    store.put_account(Account(OTHER_PROVIDER_ID, AccountRole.PROVIDER))
    store.put_account(Account(SEEKER_ID, AccountRole.TENANT_SEEKER, contact_phone=SEEKER_PHONE))

    store.put_listing(ListingInventory(
        listing_id=LISTING_ID,
        account_id=PROVIDER_ID,
        location="Ifite",
        units=(ListingUnit("Standard Self-con", LISTING_PRICE),),
    ))
    store.put_request(CompatibilityRequest(
        locations=("Ifite",),
        min_budget=400_000,
        max_budget=750_000,
        request_id=REQUEST_ID,
        account_id=SEEKER_ID,
    ))

    store.put_lead(Lead(
        lead_id=LEAD_ID,
        subject_type=LeadSubjectType.LISTING_CONTACT,
        subject_ref=LISTING_ID,
        owner_account_id=SEEKER_ID,
        requesting_account_id=PROVIDER_ID,
        status=LeadStatus.PENDING,
        created_at=NOW,
    ))
    store.put_lead(Lead(
        lead_id=REQUEST_LEAD_ID,
        subject_type=LeadSubjectType.REQUEST_CONTACT,
        subject_ref=REQUEST_ID,
        owner_account_id=SEEKER_ID,
        requesting_account_id=PROVIDER_ID,
        status=LeadStatus.PENDING,
        created_at=NOW,
    ))
    return store
