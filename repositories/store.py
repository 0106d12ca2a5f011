"""
Credit store interface (persistence port).

Services receive a CreditStore instance instead of importing a global client,
so the same orchestration runs against Supabase in production and against the
in-memory store in tests and local development.

Every wallet mutation goes through one of the three atomic operations below
(append_transaction, unlock_lead_atomic, apply_topup). Each is all-or-nothing:
either every row it writes is committed, or none is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional, Protocol

from domain.account import Account
from domain.lead import Lead, LeadSubject, LeadSubjectType, UnlockRecord
from domain.ledger import CreditTransaction, TransactionKind


class AtomicUnlockOutcome(str, Enum):
    UNLOCKED = "unlocked"
    ALREADY_UNLOCKED = "already_unlocked"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class AtomicUnlockResult:
    """Result of the atomic debit-and-record step."""

    outcome: AtomicUnlockOutcome
    balance: int
    record: Optional[UnlockRecord] = None


@dataclass(frozen=True, slots=True)
class TopupResult:
    """
    applied is False when the external reference had already been credited to
    the same account. A reference already credited to a different account
    raises TopupVerificationFailed instead.
    """

    balance: int
    applied: bool
    transaction_id: Optional[str] = None


class CreditStore(Protocol):
    # Reads

    def get_account(self, account_id: str) -> Optional[Account]: ...

    def get_lead(self, lead_id: str) -> Optional[Lead]: ...

    def get_unlock_record(self, requesting_account_id: str, lead_id: str) -> Optional[UnlockRecord]: ...

    def get_lead_subject(self, subject_type: LeadSubjectType, subject_ref: str) -> Optional[LeadSubject]: ...

    def get_balance(self, account_id: str) -> int: ...

    def list_transactions(self, account_id: str) -> List[CreditTransaction]: ...

    def list_wallet_account_ids(self) -> List[str]: ...

    # Atomic wallet mutations

    def append_transaction(
        self,
        account_id: str,
        amount: int,
        kind: TransactionKind,
        description: str,
    ) -> int: ...

    def unlock_lead_atomic(
        self,
        requesting_account_id: str,
        lead_id: str,
        cost: int,
        description: str,
    ) -> AtomicUnlockResult: ...

    def apply_topup(
        self,
        account_id: str,
        credits: int,
        external_reference: str,
        description: str,
    ) -> TopupResult: ...

    # Reputation

    def adjust_trust_score(self, account_id: str, delta: int) -> int: ...

    def mark_verified(self, account_id: str, verified_at: datetime) -> Account: ...


__all__ = [
    "AtomicUnlockOutcome",
    "AtomicUnlockResult",
    "TopupResult",
    "CreditStore",
]
