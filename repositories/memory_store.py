"""
In-memory credit store.

Thread-safe implementation of the CreditStore protocol used by the test suite
and by local development (STORE_BACKEND=memory). A single lock serializes
every read-modify-write, which makes all wallet operations linearizable.

Atomic operations validate every precondition before writing anything, so an
operation that fails leaves no partial state behind.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from domain.account import MAX_TRUST_SCORE, MIN_TRUST_SCORE, Account
from domain.errors import AccountNotFound, TopupVerificationFailed
from domain.lead import Lead, LeadSubject, LeadSubjectType, UnlockRecord
from domain.ledger import CreditTransaction, TransactionKind, check_debit
from domain.matching import CompatibilityRequest, ListingInventory
from domain.time import utc_now
from repositories.store import AtomicUnlockOutcome, AtomicUnlockResult, TopupResult


class InMemoryCreditStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._accounts: Dict[str, Account] = {}
        self._leads: Dict[str, Lead] = {}
        self._subjects: Dict[Tuple[LeadSubjectType, str], LeadSubject] = {}
        self._balances: Dict[str, int] = {}
        self._transactions: List[CreditTransaction] = []
        self._unlocks: Dict[Tuple[str, str], UnlockRecord] = {}
        self._topups: Dict[str, Tuple[str, str]] = {}  # external_reference -> (account_id, transaction_id)

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def put_account(self, account: Account) -> Account:
        with self._lock:
            self._accounts[account.account_id] = account
            if account.is_provider:
                self._balances.setdefault(account.account_id, 0)
        return account

    def put_lead(self, lead: Lead) -> Lead:
        with self._lock:
            self._leads[lead.lead_id] = lead
        return lead

    def put_listing(self, listing: ListingInventory) -> ListingInventory:
        subject = LeadSubject.for_listing(listing)
        with self._lock:
            self._subjects[(subject.subject_type, subject.subject_ref)] = subject
        return listing

    def put_request(self, request: CompatibilityRequest) -> CompatibilityRequest:
        subject = LeadSubject.for_request(request)
        with self._lock:
            self._subjects[(subject.subject_type, subject.subject_ref)] = subject
        return request

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_account(self, account_id: str) -> Optional[Account]:
        with self._lock:
            return self._accounts.get(account_id)

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        with self._lock:
            return self._leads.get(lead_id)

    def get_unlock_record(self, requesting_account_id: str, lead_id: str) -> Optional[UnlockRecord]:
        with self._lock:
            return self._unlocks.get((requesting_account_id, lead_id))

    def get_lead_subject(self, subject_type: LeadSubjectType, subject_ref: str) -> Optional[LeadSubject]:
        with self._lock:
            return self._subjects.get((subject_type, subject_ref))

    def get_balance(self, account_id: str) -> int:
        with self._lock:
            return self._balances.get(account_id, 0)

    def list_transactions(self, account_id: str) -> List[CreditTransaction]:
        with self._lock:
            return [t for t in self._transactions if t.account_id == account_id]

    def list_wallet_account_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._balances)

    # ------------------------------------------------------------------
    # Atomic wallet mutations
    # ------------------------------------------------------------------

    def _append_locked(
        self,
        account_id: str,
        amount: int,
        kind: TransactionKind,
        description: str,
        created_at: datetime,
    ) -> CreditTransaction:
        # Caller holds self._lock and has already validated the balance.
        transaction = CreditTransaction(
            transaction_id=str(uuid4()),
            account_id=account_id,
            amount=amount,
            kind=kind,
            description=description,
            created_at=created_at,
        )
        self._transactions.append(transaction)
        self._balances[account_id] = self._balances.get(account_id, 0) + amount
        return transaction

    def append_transaction(
        self,
        account_id: str,
        amount: int,
        kind: TransactionKind,
        description: str,
    ) -> int:
        with self._lock:
            if account_id not in self._accounts:
                raise AccountNotFound(account_id)
            new_balance = check_debit(account_id, self._balances.get(account_id, 0), amount)
            self._append_locked(account_id, amount, kind, description, utc_now())
            return new_balance

    def unlock_lead_atomic(
        self,
        requesting_account_id: str,
        lead_id: str,
        cost: int,
        description: str,
    ) -> AtomicUnlockResult:
        with self._lock:
            balance = self._balances.get(requesting_account_id, 0)

            lead = self._leads.get(lead_id)
            if lead is None or lead.requesting_account_id != requesting_account_id:
                return AtomicUnlockResult(AtomicUnlockOutcome.NOT_FOUND, balance)

            existing = self._unlocks.get((requesting_account_id, lead_id))
            if existing is not None:
                return AtomicUnlockResult(AtomicUnlockOutcome.ALREADY_UNLOCKED, balance, existing)

            if balance < cost:
                return AtomicUnlockResult(AtomicUnlockOutcome.INSUFFICIENT_CREDITS, balance)

            now = utc_now()
            record = UnlockRecord(
                unlock_id=str(uuid4()),
                requesting_account_id=requesting_account_id,
                lead_id=lead_id,
                cost_charged=cost,
                unlocked_at=now,
            )
            if cost > 0:
                self._append_locked(requesting_account_id, -cost, TransactionKind.DEBIT_UNLOCK, description, now)
            self._unlocks[(requesting_account_id, lead_id)] = record
            if not lead.is_unlocked:
                self._leads[lead_id] = lead.unlocked()

            return AtomicUnlockResult(
                AtomicUnlockOutcome.UNLOCKED,
                self._balances.get(requesting_account_id, 0),
                record,
            )

    def apply_topup(
        self,
        account_id: str,
        credits: int,
        external_reference: str,
        description: str,
    ) -> TopupResult:
        if credits <= 0:
            raise ValueError("credits must be positive")
        with self._lock:
            if account_id not in self._accounts:
                raise AccountNotFound(account_id)
            balance = self._balances.get(account_id, 0)
            previous = self._topups.get(external_reference)
            if previous is not None:
                applied_to, transaction_id = previous
                if applied_to != account_id:
                    raise TopupVerificationFailed(
                        f"Reference {external_reference} was already applied to a different account"
                    )
                return TopupResult(balance=balance, applied=False, transaction_id=transaction_id)
            transaction = self._append_locked(
                account_id, credits, TransactionKind.PURCHASE, description, utc_now()
            )
            self._topups[external_reference] = (account_id, transaction.transaction_id)
            return TopupResult(
                balance=self._balances[account_id],
                applied=True,
                transaction_id=transaction.transaction_id,
            )

    # ------------------------------------------------------------------
    # Reputation
    # ------------------------------------------------------------------

    def adjust_trust_score(self, account_id: str, delta: int) -> int:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                raise AccountNotFound(account_id)
            score = max(MIN_TRUST_SCORE, min(MAX_TRUST_SCORE, account.trust_score + delta))
            self._accounts[account_id] = replace(account, trust_score=score)
            return score

    def mark_verified(self, account_id: str, verified_at: datetime) -> Account:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                raise AccountNotFound(account_id)
            updated = replace(account, is_verified=True, verified_at=verified_at)
            self._accounts[account_id] = updated
            return updated


__all__ = ["InMemoryCreditStore"]
