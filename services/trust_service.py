"""
Trust (reputation) score model.

Owns every mutation of Account.trust_score. Deltas are supplied by the
external event feed (verification approvals, report outcomes, reviews); this
module clamps results to [0, 100] and derives account visibility from the
score.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from domain.account import Account
from domain.errors import AccountNotFound
from domain.time import require_utc_timestamp, utc_now
from repositories.store import CreditStore

logger = logging.getLogger(__name__)

# Below this score listings are pushed to the bottom of feeds.
DEMOTION_THRESHOLD: int = 30
# At or below this score the account is suspended.
SUSPENSION_THRESHOLD: int = 0


class Visibility(str, Enum):
    VISIBLE = "visible"
    DEMOTED = "demoted"
    SUSPENDED = "suspended"


def visibility_for(trust_score: int) -> Visibility:
    if trust_score <= SUSPENSION_THRESHOLD:
        return Visibility.SUSPENDED
    if trust_score < DEMOTION_THRESHOLD:
        return Visibility.DEMOTED
    return Visibility.VISIBLE


@dataclass(frozen=True, slots=True)
class TrustEvent:
    account_id: str
    delta: int
    reason: str


@dataclass(frozen=True, slots=True)
class TrustUpdate:
    account_id: str
    trust_score: int
    visibility: Visibility


class TrustScoreModel:
    def __init__(self, store: CreditStore) -> None:
        self._store = store

    def _require_account(self, account_id: str) -> Account:
        account = self._store.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return account

    def get_trust_score(self, account_id: str) -> int:
        return self._require_account(account_id).trust_score

    def get_visibility(self, account_id: str) -> Visibility:
        return visibility_for(self.get_trust_score(account_id))

    def apply_trust_event(self, event: TrustEvent) -> TrustUpdate:
        """Apply a score delta from the event feed; the result is clamped to [0, 100]."""

        score = self._store.adjust_trust_score(event.account_id, event.delta)
        update = TrustUpdate(
            account_id=event.account_id,
            trust_score=score,
            visibility=visibility_for(score),
        )
        logger.info(
            "Trust score updated",
            extra={
                "account_id": event.account_id,
                "delta": event.delta,
                "reason": event.reason,
                "trust_score": score,
                "visibility": update.visibility.value,
            },
        )
        return update

    def approve_verification(
        self,
        account_id: str,
        delta: int = 0,
        verified_at: Optional[datetime] = None,
    ) -> TrustUpdate:
        """Mark the account verified and apply the verification delta, if any."""

        verified_at = verified_at or utc_now()
        require_utc_timestamp("verified_at", verified_at)

        account = self._store.mark_verified(account_id, verified_at)
        if delta:
            return self.apply_trust_event(TrustEvent(account_id, delta, "verification_approved"))
        return TrustUpdate(
            account_id=account_id,
            trust_score=account.trust_score,
            visibility=visibility_for(account.trust_score),
        )


__all__ = [
    "DEMOTION_THRESHOLD",
    "SUSPENSION_THRESHOLD",
    "Visibility",
    "visibility_for",
    "TrustEvent",
    "TrustUpdate",
    "TrustScoreModel",
]
