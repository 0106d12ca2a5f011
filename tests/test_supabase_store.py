"""
Tests for `repositories/supabase_store.py` against a fake PostgREST client.

Covers:
- Row mapping into domain entities (UTC timestamps, enums).
- RPC payloads translated into outcomes and domain errors.
- PostgREST errors: conflict codes become ConcurrencyConflict, others StoreError.
- Transport failures and rows that do not fit the schema become StoreError.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import httpx
import pytest
from postgrest.exceptions import APIError

from domain.errors import (
    AccountNotFound,
    ConcurrencyConflict,
    InsufficientFunds,
    StoreError,
    TopupVerificationFailed,
)
from domain.lead import LeadStatus, LeadSubjectType
from domain.ledger import TransactionKind
from repositories.store import AtomicUnlockOutcome
from repositories.supabase_store import SupabaseCreditStore


class FakeQuery:
    """Chainable stand-in for a PostgREST request builder."""

    def __init__(self, data: Any = None, error: Optional[Exception] = None) -> None:
        self.data = data
        self.error = error
        self.calls: List[tuple] = []

    def __getattr__(self, name: str):
        def chain(*args, **kwargs):
            self.calls.append((name, args))
            return self
        return chain

    def execute(self):
        if self.error is not None:
            raise self.error
        return SimpleNamespace(data=self.data, error=None)


class FakeClient:
    def __init__(self) -> None:
        self.tables: Dict[str, FakeQuery] = {}
        self.rpcs: Dict[str, FakeQuery] = {}
        self.rpc_params: Dict[str, Dict[str, Any]] = {}

    def table(self, name: str) -> FakeQuery:
        return self.tables.setdefault(name, FakeQuery([]))

    def rpc(self, name: str, params: Dict[str, Any]) -> FakeQuery:
        self.rpc_params[name] = params
        return self.rpcs.setdefault(name, FakeQuery(None))


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def supabase_store(client) -> SupabaseCreditStore:
    return SupabaseCreditStore(client)


def api_error(code: str) -> APIError:
    return APIError({"message": "boom", "code": code, "hint": None, "details": None})


def test_get_lead_maps_row(client, supabase_store) -> None:
    client.tables["leads"] = FakeQuery([{
        "id": "lead-1",
        "subject_type": "listing_contact",
        "subject_ref": "lodge-1",
        "owner_account_id": "student-1",
        "requesting_account_id": "landlord-1",
        "status": "pending",
        "created_at": "2025-01-01T00:00:00Z",
    }])

    lead = supabase_store.get_lead("lead-1")

    assert lead.subject_type is LeadSubjectType.LISTING_CONTACT
    assert lead.status is LeadStatus.PENDING
    assert lead.created_at.utcoffset().total_seconds() == 0


def test_missing_rows_return_none(supabase_store) -> None:
    assert supabase_store.get_lead("nope") is None
    assert supabase_store.get_account("nope") is None
    assert supabase_store.get_balance("nope") == 0
    assert supabase_store.get_lead_subject(LeadSubjectType.LISTING_CONTACT, "nope") is None
    assert supabase_store.get_lead_subject(LeadSubjectType.REQUEST_CONTACT, "nope") is None


def test_request_subject_carries_raw_budgets(client, supabase_store) -> None:
    client.tables["lodge_requests"] = FakeQuery([{"min_budget": 350000, "max_budget": None}])

    subject = supabase_store.get_lead_subject(LeadSubjectType.REQUEST_CONTACT, "request-1")

    assert subject.subject_ref == "request-1"
    assert subject.min_budget == 350000
    assert subject.max_budget is None
    assert subject.listing_price is None


def test_listing_subject_carries_cheapest_unit_price(client, supabase_store) -> None:
    client.tables["listing_units"] = FakeQuery([{"price": "250000"}])

    subject = supabase_store.get_lead_subject(LeadSubjectType.LISTING_CONTACT, "lodge-1")

    assert subject.subject_type is LeadSubjectType.LISTING_CONTACT
    assert subject.listing_price == 250000
    assert ("order", ("price",)) in client.tables["listing_units"].calls


def test_list_transactions_maps_rows(client, supabase_store) -> None:
    client.tables["credit_transactions"] = FakeQuery([
        {"id": 1, "account_id": "landlord-1", "amount": 50, "kind": "purchase",
         "description": "Credit purchase", "created_at": "2025-01-01T00:00:00+00:00"},
        {"id": 2, "account_id": "landlord-1", "amount": -10, "kind": "debit_unlock",
         "description": None, "created_at": "2025-01-02T00:00:00+00:00"},
    ])

    transactions = supabase_store.list_transactions("landlord-1")

    assert [t.amount for t in transactions] == [50, -10]
    assert transactions[1].kind is TransactionKind.DEBIT_UNLOCK
    assert transactions[1].description == ""


def test_unlock_rpc_success(client, supabase_store) -> None:
    client.rpcs["unlock_lead_atomic"] = FakeQuery({
        "outcome": "unlocked",
        "balance": 10,
        "unlock_id": "u-1",
        "cost_charged": 10,
        "unlocked_at": "2025-01-01T00:00:00Z",
    })

    result = supabase_store.unlock_lead_atomic("landlord-1", "lead-1", 10, "Unlocked lead lead-1")

    assert result.outcome is AtomicUnlockOutcome.UNLOCKED
    assert result.balance == 10
    assert result.record.cost_charged == 10
    assert client.rpc_params["unlock_lead_atomic"]["p_cost"] == 10


def test_unlock_rpc_insufficient(client, supabase_store) -> None:
    client.rpcs["unlock_lead_atomic"] = FakeQuery({"outcome": "insufficient_credits", "balance": 8})

    result = supabase_store.unlock_lead_atomic("landlord-1", "lead-1", 10, "x")

    assert result.outcome is AtomicUnlockOutcome.INSUFFICIENT_CREDITS
    assert result.balance == 8
    assert result.record is None


def test_unlock_rpc_unexpected_payload(client, supabase_store) -> None:
    client.rpcs["unlock_lead_atomic"] = FakeQuery({"outcome": "exploded"})

    with pytest.raises(StoreError):
        supabase_store.unlock_lead_atomic("landlord-1", "lead-1", 10, "x")


def test_append_transaction_errors(client, supabase_store) -> None:
    client.rpcs["record_credit_transaction"] = FakeQuery({"success": False, "error": "INSUFFICIENT_FUNDS", "balance": 3})
    with pytest.raises(InsufficientFunds):
        supabase_store.append_transaction("landlord-1", -10, TransactionKind.ADMIN_ADJUSTMENT, "x")

    client.rpcs["record_credit_transaction"] = FakeQuery({"success": False, "error": "ACCOUNT_NOT_FOUND"})
    with pytest.raises(AccountNotFound):
        supabase_store.append_transaction("ghost", 10, TransactionKind.ADMIN_ADJUSTMENT, "x")

    client.rpcs["record_credit_transaction"] = FakeQuery({"success": True, "balance": 13})
    assert supabase_store.append_transaction("landlord-1", 10, TransactionKind.ADMIN_ADJUSTMENT, "x") == 13


def test_apply_topup_duplicate(client, supabase_store) -> None:
    client.rpcs["apply_topup"] = FakeQuery({"applied": False, "balance": 50, "transaction_id": 7})

    result = supabase_store.apply_topup("landlord-1", 50, "ref-1", "Credit purchase (ref-1)")

    assert not result.applied
    assert result.balance == 50
    assert result.transaction_id == "7"

def test_apply_topup_reference_conflict(client, supabase_store) -> None:
    client.rpcs["apply_topup"] = FakeQuery({"applied": False, "error": "REFERENCE_CONFLICT"})

    with pytest.raises(TopupVerificationFailed):
        supabase_store.apply_topup("landlord-2", 110, "ref-x", "Credit purchase (ref-x)")

@pytest.mark.parametrize("code", ["40001", "40P01", "55P03", "23505"])
def test_conflict_codes_raise_concurrency_conflict(client, supabase_store, code: str) -> None:
    client.rpcs["unlock_lead_atomic"] = FakeQuery(error=api_error(code))

    with pytest.raises(ConcurrencyConflict):
        supabase_store.unlock_lead_atomic("landlord-1", "lead-1", 10, "x")


def test_other_errors_raise_store_error(client, supabase_store) -> None:
    client.tables["leads"] = FakeQuery(error=api_error("42P01"))

    with pytest.raises(StoreError):
        supabase_store.get_lead("lead-1")


def test_adjust_trust_score_unknown_account(client, supabase_store) -> None:
    client.rpcs["adjust_trust_score"] = FakeQuery(None)

    with pytest.raises(AccountNotFound):
        supabase_store.adjust_trust_score("ghost", 5)


def test_connection_failure_raises_store_error(client, supabase_store) -> None:
    client.tables["leads"] = FakeQuery(error=httpx.ConnectError("connection refused"))

    with pytest.raises(StoreError):
        supabase_store.get_lead("lead-1")


def test_read_timeout_on_rpc_raises_store_error(client, supabase_store) -> None:
    client.rpcs["unlock_lead_atomic"] = FakeQuery(error=httpx.ReadTimeout("timed out"))

    with pytest.raises(StoreError):
        supabase_store.unlock_lead_atomic("landlord-1", "lead-1", 10, "x")


def test_malformed_lead_row_raises_store_error(client, supabase_store) -> None:
    client.tables["leads"] = FakeQuery([{"id": "lead-1", "subject_type": "listing_contact"}])

    with pytest.raises(StoreError):
        supabase_store.get_lead("lead-1")


def test_malformed_rows_raise_store_error(client, supabase_store) -> None:
    client.tables["credit_transactions"] = FakeQuery([
        {"id": 1, "account_id": "landlord-1", "amount": "fifty", "kind": "purchase",
         "created_at": "2025-01-01T00:00:00+00:00"},
    ])
    client.tables["wallet_balances"] = FakeQuery([{"balance": None}])
    client.rpcs["unlock_lead_atomic"] = FakeQuery({
        "outcome": "unlocked",
        "balance": 10,
        "unlock_id": "u-1",
        "cost_charged": 10,
        "unlocked_at": "not a timestamp",
    })

    with pytest.raises(StoreError):
        supabase_store.list_transactions("landlord-1")
    with pytest.raises(StoreError):
        supabase_store.get_balance("landlord-1")
    with pytest.raises(StoreError):
        supabase_store.unlock_lead_atomic("landlord-1", "lead-1", 10, "x")


def test_non_object_rpc_payload_raises_store_error(client, supabase_store) -> None:
    client.rpcs["apply_topup"] = FakeQuery([{"applied": True}])

    with pytest.raises(StoreError):
        supabase_store.apply_topup("landlord-1", 50, "ref-1", "Credit purchase (ref-1)")
