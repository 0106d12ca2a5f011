"""
Top-up ingestion from the payment gateway.

The gateway reports a successful charge with its own reference. This service
verifies the confirmation, converts the paid amount to credits and credits
the wallet idempotently on that reference, so duplicate webhook deliveries
never double-credit.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from domain.errors import AccountNotFound, TopupVerificationFailed
from repositories.store import CreditStore
from services.pricing_service import credits_for_payment
from services.wallet_service import WalletLedger

logger = logging.getLogger(__name__)

SUCCESS_STATUS = "success"


def verify_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Check the gateway's HMAC-SHA512 signature of the raw request body.

    Uses a constant-time comparison.
    """
    if not signature:
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()
    return hmac.compare_digest(signature, expected)


@dataclass(frozen=True, slots=True)
class PaymentConfirmation:
    """
    A payment gateway's report of a charge.

    amount_paid is in whole currency units; account_id comes from the
    metadata attached when the payment was initialized.
    """
    external_reference: str
    account_id: str
    amount_paid: int
    status: str

    @staticmethod
    def from_payload(payload: Mapping[str, Any]) -> "PaymentConfirmation":
        """Build from a gateway webhook payload ({"event", "data": {...}})."""

        data = payload.get("data") or {}
        metadata = data.get("metadata") or {}
        try:
            return PaymentConfirmation(
                external_reference=str(data["reference"]),
                account_id=str(metadata["account_id"]),
                amount_paid=int(data["amount"]),
                status=str(data.get("status", "")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TopupVerificationFailed("Malformed payment confirmation") from e


@dataclass(frozen=True, slots=True)
class TopupReceipt:
    """credits is what this delivery added: 0 when applied is False (duplicate)."""
    external_reference: str
    account_id: str
    credits: int
    balance: int
    applied: bool = True


class TopupService:
    def __init__(self, store: CreditStore, ledger: Optional[WalletLedger] = None) -> None:
        self._store = store
        self._ledger = ledger or WalletLedger(store)

    def ingest(self, confirmation: PaymentConfirmation) -> TopupReceipt:
        """
        Verify a confirmation and credit the wallet.

        Raises:
            TopupVerificationFailed: status is not success, amount buys no
                credits, reference is empty, account is unknown or not a
                provider, or the reference was already credited to a
                different account. Nothing is credited.
        """
        if confirmation.status != SUCCESS_STATUS:
            raise TopupVerificationFailed(f"Payment status is {confirmation.status!r}")
        if not confirmation.external_reference:
            raise TopupVerificationFailed("Payment reference is missing")

        credits = credits_for_payment(confirmation.amount_paid)
        if credits <= 0:
            raise TopupVerificationFailed("Payment amount does not buy any credits")

        account = self._store.get_account(confirmation.account_id)
        if account is None or not account.is_provider:
            raise TopupVerificationFailed("Payment is not attached to a provider wallet")

        try:
            result = self._ledger.credit_topup(
                confirmation.account_id,
                credits,
                confirmation.external_reference,
            )
        except AccountNotFound as e:
            raise TopupVerificationFailed("Payment is not attached to a provider wallet") from e

        return TopupReceipt(
            external_reference=confirmation.external_reference,
            account_id=confirmation.account_id,
            credits=credits if result.applied else 0,
            balance=result.balance,
            applied=result.applied,
        )


__all__ = [
    "SUCCESS_STATUS",
    "verify_signature",
    "PaymentConfirmation",
    "TopupReceipt",
    "TopupService",
]
