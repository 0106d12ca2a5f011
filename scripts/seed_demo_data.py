"""
Demo walk-through against the in-memory store.

Seeds a seeker, two providers with listings, and a lead, then prints:
- the compatibility ranking for the seeker's request
- an unlock attempt with no credits, a top-up, an unlock, and a repeat unlock
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

# Add parent directory to path so we can import from services
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.account import Account, AccountRole
from domain.lead import Lead, LeadStatus, LeadSubjectType
from domain.matching import CompatibilityRequest, ListingInventory, ListingUnit
from repositories.memory_store import InMemoryCreditStore
from services.compatibility_service import compute_compatibility
from services.notification_service import RecordingNotificationDispatcher
from services.unlock_service import UnlockGateway
from services.wallet_service import WalletLedger

SEEKER_ID = "student-demo"
PROVIDER_A = "landlord-ifite"
PROVIDER_B = "landlord-okpuno"


def seed(store: InMemoryCreditStore):
    now = datetime.now(timezone.utc)

    store.put_account(Account(SEEKER_ID, AccountRole.TENANT_SEEKER, contact_phone="+2348000000001"))
    store.put_account(Account(PROVIDER_A, AccountRole.PROVIDER, trust_score=72, is_verified=True, verified_at=now))
    store.put_account(Account(PROVIDER_B, AccountRole.PROVIDER))

    request = CompatibilityRequest(
        locations=("Ifite",),
        min_budget=150_000,
        max_budget=250_000,
        description="Looking for a self-con with water and security",
        request_id="request-demo",
        account_id=SEEKER_ID,
    )
    store.put_request(request)

    listings = [
        ListingInventory(
            listing_id="lodge-ifite",
            account_id=PROVIDER_A,
            location="Ifite",
            units=(ListingUnit("Standard Self-con", 220_000),),
            amenities=("Water", "Security", "Prepaid"),
            owner_is_verified=True,
            owner_trust_score=72,
        ),
        ListingInventory(
            listing_id="lodge-okpuno",
            account_id=PROVIDER_B,
            location="Okpuno",
            units=(ListingUnit("2-Bedroom Flat", 450_000),),
            amenities=("Parking",),
        ),
    ]
    for listing in listings:
        store.put_listing(listing)

    store.put_lead(Lead(
        lead_id="lead-demo",
        subject_type=LeadSubjectType.REQUEST_CONTACT,
        subject_ref="request-demo",
        owner_account_id=SEEKER_ID,
        requesting_account_id=PROVIDER_A,
        status=LeadStatus.PENDING,
        created_at=now,
    ))
    return request, listings


def run_demo():
    store = InMemoryCreditStore()
    dispatcher = RecordingNotificationDispatcher()
    ledger = WalletLedger(store, dispatcher)
    gateway = UnlockGateway(store, ledger, dispatcher)

    request, listings = seed(store)

    print("=" * 50)
    print("COMPATIBILITY RANKING")
    print("=" * 50)
    for match in compute_compatibility(request, listings):
        print(f"{match.account_id:<20} {match.score:>3}  (best listing: {match.listing_id})")

    print("\n" + "=" * 50)
    print("UNLOCK WALK-THROUGH")
    print("=" * 50)

    result = gateway.unlock(PROVIDER_A, "lead-demo")
    print(f"Unlock with empty wallet: {result.status.value} (balance {result.remaining_balance})")

    balance = ledger.apply_topup(PROVIDER_A, 50, "demo-payment-1")
    print(f"Top-up applied: balance {balance}")

    result = gateway.unlock(PROVIDER_A, "lead-demo")
    print(f"Unlock: {result.status.value}, charged {result.cost_charged}, contact {result.revealed_contact}")

    result = gateway.unlock(PROVIDER_A, "lead-demo")
    print(f"Repeat unlock: {result.status.value}, balance {result.remaining_balance}")

    report = ledger.reconcile(PROVIDER_A)
    print(f"Ledger consistent: {report.is_consistent} ({report.transaction_count} transactions)")
    print(f"Events dispatched: {[e.event_type for e in dispatcher.events]}")


if __name__ == "__main__":
    run_demo()
