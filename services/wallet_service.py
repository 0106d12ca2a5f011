"""
Wallet ledger service.

The ledger is the source of truth for credits: an append-only log of
CreditTransaction rows plus a running balance per provider account. The
running balance is an optimization; reconcile() re-derives it from the log.

All ledger writes in the system go through this service:
- record_transaction(): generic append (admin adjustments, manual credits)
- apply_topup(): idempotent purchase credit keyed by the payment reference
- debit_for_unlock(): the debit-and-record step of a lead unlock, executed
  atomically by the store together with the unlock record
"""

from __future__ import annotations

import logging
from typing import List, Optional

from domain.account import WalletStats
from domain.errors import AccountNotFound
from domain.ledger import CreditTransaction, ReconciliationReport, TransactionKind, derive_balance
from repositories.store import AtomicUnlockResult, CreditStore, TopupResult
from services.notification_service import (
    CREDITS_TOPPED_UP,
    CreditEvent,
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    safe_dispatch,
)

logger = logging.getLogger(__name__)


class WalletLedger:
    def __init__(self, store: CreditStore, dispatcher: Optional[NotificationDispatcher] = None) -> None:
        self._store = store
        self._dispatcher = dispatcher or LoggingNotificationDispatcher()

    def get_balance(self, account_id: str) -> int:
        return self._store.get_balance(account_id)

    def list_transactions(self, account_id: str) -> List[CreditTransaction]:
        return self._store.list_transactions(account_id)

    def record_transaction(
        self,
        account_id: str,
        amount: int,
        kind: TransactionKind,
        description: str,
    ) -> int:
        """
        Append a ledger row and return the new balance.

        Raises:
            InsufficientFunds: amount < 0 and balance + amount < 0. Nothing is written.
            ValueError: amount is zero.
        """
        if amount == 0:
            raise ValueError("amount must be non-zero")
        kind = TransactionKind(kind)

        new_balance = self._store.append_transaction(account_id, amount, kind, description)
        logger.info(
            "Ledger transaction recorded",
            extra={"account_id": account_id, "amount": amount, "kind": kind.value, "balance": new_balance},
        )
        return new_balance

    def admin_adjust(self, account_id: str, amount: int, reason: str) -> int:
        return self.record_transaction(account_id, amount, TransactionKind.ADMIN_ADJUSTMENT, reason)

    def apply_topup(self, account_id: str, credits: int, external_reference: str) -> int:
        """Credit a verified top-up once per external_reference; returns the balance."""

        return self.credit_topup(account_id, credits, external_reference).balance

    def credit_topup(self, account_id: str, credits: int, external_reference: str) -> TopupResult:
        """
        Credit a verified top-up exactly once per external_reference.

        Duplicate deliveries of the same reference for the same account return
        the current balance with applied=False and write nothing. A reference
        already credited to another account raises TopupVerificationFailed.
        """
        if credits <= 0:
            raise ValueError("credits must be positive")
        if not external_reference:
            raise ValueError("external_reference is required")

        result = self._store.apply_topup(
            account_id,
            credits,
            external_reference,
            f"Credit purchase ({external_reference})",
        )

        if not result.applied:
            logger.info(
                "Duplicate top-up ignored",
                extra={"account_id": account_id, "external_reference": external_reference},
            )
            return result

        logger.info(
            "Top-up applied",
            extra={
                "account_id": account_id,
                "credits": credits,
                "external_reference": external_reference,
                "balance": result.balance,
            },
        )
        safe_dispatch(
            self._dispatcher,
            CreditEvent(
                event_type=CREDITS_TOPPED_UP,
                account_id=account_id,
                payload={"credits": credits, "balance": result.balance, "external_reference": external_reference},
            ),
        )
        return result

    def debit_for_unlock(
        self,
        requesting_account_id: str,
        lead_id: str,
        cost: int,
    ) -> AtomicUnlockResult:
        """Debit cost and record the unlock of lead_id as one atomic unit."""

        return self._store.unlock_lead_atomic(
            requesting_account_id,
            lead_id,
            cost,
            f"Unlocked lead {lead_id}",
        )

    def reconcile(self, account_id: str) -> ReconciliationReport:
        """Compare the maintained balance with the sum of the account's transactions."""

        transactions = self._store.list_transactions(account_id)
        report = ReconciliationReport(
            account_id=account_id,
            stored_balance=self._store.get_balance(account_id),
            derived_balance=derive_balance(transactions),
            transaction_count=len(transactions),
        )
        if not report.is_consistent:
            logger.error(
                "Wallet balance drift detected",
                extra={
                    "account_id": account_id,
                    "stored_balance": report.stored_balance,
                    "derived_balance": report.derived_balance,
                },
            )
        return report

    def get_wallet_stats(self, account_id: str) -> WalletStats:
        account = self._store.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return WalletStats(
            balance=self._store.get_balance(account_id),
            trust_score=account.trust_score,
            is_verified=account.is_verified,
            verified_at=account.verified_at,
        )


__all__ = ["WalletLedger"]
