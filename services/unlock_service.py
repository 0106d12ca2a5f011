"""
Unlock service: pay credits to reveal a lead's protected contact details.

Handles:
- Idempotent unlocks (a second call for the same (account, lead) never charges)
- Cost calculation from the lead subject's price or budget
- Atomic debit-and-record through the wallet ledger
- Retry of transient storage conflicts (safe: the atomic step re-validates)

Outcomes are returned as UnlockResult values; no exception crosses this
service's boundary for ledger or unlock outcomes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from domain.errors import ConcurrencyConflict, CreditEconomyError
from domain.lead import Lead
from repositories.store import AtomicUnlockOutcome, CreditStore
from services.notification_service import (
    LEAD_UNLOCKED,
    CreditEvent,
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    safe_dispatch,
)
from services.pricing_service import compute_cost, reference_amount_for
from services.wallet_service import WalletLedger

logger = logging.getLogger(__name__)


class UnlockStatus(str, Enum):
    UNLOCKED = "unlocked"
    ALREADY_UNLOCKED = "already_unlocked"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    NOT_FOUND = "not_found"
    TRANSIENT_FAILURE = "transient_failure"


_SUCCESS_STATUSES = frozenset({UnlockStatus.UNLOCKED, UnlockStatus.ALREADY_UNLOCKED})


@dataclass(frozen=True, slots=True)
class UnlockResult:
    """
    Result of an unlock attempt.

    status: tagged outcome; callers branch on this, never on message
    remaining_balance: caller's balance after the attempt; None when the
        balance could not be read (TRANSIENT_FAILURE)
    revealed_contact: owner's contact, only for UNLOCKED / ALREADY_UNLOCKED
    cost_charged: credits debited by this call (0 unless UNLOCKED)
    """
    status: UnlockStatus
    remaining_balance: Optional[int]
    revealed_contact: Optional[str]
    message: str
    cost_charged: int = 0
    required_credits: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status in _SUCCESS_STATUSES


@dataclass(frozen=True, slots=True)
class UnlockQuote:
    lead_id: str
    cost: int
    balance: int
    already_unlocked: bool

    @property
    def affordable(self) -> bool:
        return self.already_unlocked or self.balance >= self.cost


class UnlockGateway:
    def __init__(
        self,
        store: CreditStore,
        ledger: Optional[WalletLedger] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        max_attempts: int = 3,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._store = store
        self._dispatcher = dispatcher or LoggingNotificationDispatcher()
        self._ledger = ledger or WalletLedger(store, self._dispatcher)
        self._max_attempts = max_attempts

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_lead(self, requesting_account_id: str, lead_id: str) -> Optional[Lead]:
        lead = self._store.get_lead(lead_id)
        # A lead addressed to another account is reported as absent.
        if lead is None or lead.requesting_account_id != requesting_account_id:
            return None
        return lead

    def _reveal_contact(self, lead: Lead) -> Optional[str]:
        owner = self._store.get_account(lead.owner_account_id)
        return owner.contact_phone if owner is not None else None

    def _cost_for(self, lead: Lead) -> Optional[int]:
        subject = self._store.get_lead_subject(lead.subject_type, lead.subject_ref)
        if subject is None:
            return None
        return compute_cost(reference_amount_for(subject))

    def _not_found(self, requesting_account_id: str) -> "UnlockResult":
        return UnlockResult(
            status=UnlockStatus.NOT_FOUND,
            remaining_balance=self._store.get_balance(requesting_account_id),
            revealed_contact=None,
            message="Lead not found.",
        )

    def _already_unlocked(self, requesting_account_id: str, lead: Lead) -> "UnlockResult":
        return UnlockResult(
            status=UnlockStatus.ALREADY_UNLOCKED,
            remaining_balance=self._store.get_balance(requesting_account_id),
            revealed_contact=self._reveal_contact(lead),
            message="Lead already unlocked.",
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def quote(self, requesting_account_id: str, lead_id: str) -> Optional[UnlockQuote]:
        """Preview the unlock cost without touching the ledger. None if the lead is not found."""

        lead = self._load_lead(requesting_account_id, lead_id)
        if lead is None:
            return None
        cost = self._cost_for(lead)
        if cost is None:
            return None
        return UnlockQuote(
            lead_id=lead_id,
            cost=cost,
            balance=self._store.get_balance(requesting_account_id),
            already_unlocked=self._store.get_unlock_record(requesting_account_id, lead_id) is not None,
        )

    def unlock(self, requesting_account_id: str, lead_id: str) -> UnlockResult:
        """
        Unlock a lead for the requesting account.

        Process:
        1. Load the lead (NOT_FOUND if absent or addressed to another account)
        2. Existing unlock record -> ALREADY_UNLOCKED, no charge
        3. Compute cost from the subject's price or budget
        4. Atomically: re-check unlock record and balance, debit, insert
           unlock record, mark lead unlocked
        5. Reveal the owner's contact

        Unexpected storage errors are logged and reported as TRANSIENT_FAILURE.
        """
        try:
            return self._unlock(requesting_account_id, lead_id)
        except CreditEconomyError as e:
            # Includes StoreError; details stay in the log.
            logger.exception(
                "Unlock failed",
                extra={
                    "account_id": requesting_account_id,
                    "lead_id": lead_id,
                    "error_type": type(e).__name__,
                },
            )
            return UnlockResult(
                status=UnlockStatus.TRANSIENT_FAILURE,
                remaining_balance=None,
                revealed_contact=None,
                message="Unlock is temporarily unavailable. Please try again.",
            )

    def _unlock(self, requesting_account_id: str, lead_id: str) -> UnlockResult:
        # 1. Load lead
        lead = self._load_lead(requesting_account_id, lead_id)
        if lead is None:
            return self._not_found(requesting_account_id)

        # 2. Fast path for repeat unlocks
        if self._store.get_unlock_record(requesting_account_id, lead_id) is not None:
            return self._already_unlocked(requesting_account_id, lead)

        # 3. Cost
        cost = self._cost_for(lead)
        if cost is None:
            logger.warning(
                "Lead subject missing",
                extra={"lead_id": lead_id, "subject_type": lead.subject_type.value, "subject_ref": lead.subject_ref},
            )
            return self._not_found(requesting_account_id)

        # 4. Atomic debit-and-record, retried on transient conflicts
        attempt = 0
        while True:
            attempt += 1
            try:
                atomic = self._ledger.debit_for_unlock(requesting_account_id, lead_id, cost)
                break
            except ConcurrencyConflict:
                if attempt >= self._max_attempts:
                    raise
                logger.warning(
                    "Unlock conflict, retrying",
                    extra={"account_id": requesting_account_id, "lead_id": lead_id, "attempt": attempt},
                )

        if atomic.outcome is AtomicUnlockOutcome.NOT_FOUND:
            return self._not_found(requesting_account_id)

        if atomic.outcome is AtomicUnlockOutcome.ALREADY_UNLOCKED:
            return self._already_unlocked(requesting_account_id, lead)

        if atomic.outcome is AtomicUnlockOutcome.INSUFFICIENT_CREDITS:
            return UnlockResult(
                status=UnlockStatus.INSUFFICIENT_CREDITS,
                remaining_balance=atomic.balance,
                revealed_contact=None,
                message=f"Insufficient credits. You need {cost} credits to unlock this lead.",
                required_credits=cost,
            )

        # 5. Committed; reveal contact
        logger.info(
            "Lead unlocked",
            extra={
                "account_id": requesting_account_id,
                "lead_id": lead_id,
                "cost_charged": cost,
                "balance": atomic.balance,
            },
        )
        safe_dispatch(
            self._dispatcher,
            CreditEvent(
                event_type=LEAD_UNLOCKED,
                account_id=requesting_account_id,
                payload={"lead_id": lead_id, "cost_charged": cost, "balance": atomic.balance},
            ),
        )
        return UnlockResult(
            status=UnlockStatus.UNLOCKED,
            remaining_balance=atomic.balance,
            revealed_contact=self._reveal_contact(lead),
            message="Lead unlocked. Contact details revealed.",
            cost_charged=cost,
        )


__all__ = [
    "UnlockStatus",
    "UnlockResult",
    "UnlockQuote",
    "UnlockGateway",
]
