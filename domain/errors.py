"""
Domain: error taxonomy for the credit economy.

Ledger and unlock outcomes are normally reported as structured results; these
exceptions are raised inside the service layer and at the store boundary, and
are translated into results or HTTP status codes before leaving the service.
"""

from __future__ import annotations


class CreditEconomyError(Exception):
    """Base class for credit economy errors."""


class InsufficientFunds(CreditEconomyError):
    """Raised when a debit would drive a wallet balance below zero."""

    def __init__(self, account_id: str, balance: int, amount: int) -> None:
        super().__init__(
            f"Debit of {-amount} credits exceeds balance {balance} for account {account_id}"
        )
        self.account_id = account_id
        self.balance = balance
        self.amount = amount


class InsufficientCredits(CreditEconomyError):
    """Unlock cost exceeds the caller's balance. Recoverable by topping up."""


class LeadNotFound(CreditEconomyError):
    """The lead does not exist (or is not visible to the caller)."""


class AccountNotFound(CreditEconomyError):
    """The account does not exist."""


class ConcurrencyConflict(CreditEconomyError):
    """Transient storage conflict (serialization failure, lock timeout). Safe to retry."""


class TopupVerificationFailed(CreditEconomyError):
    """A payment confirmation could not be verified; nothing was credited."""


class StoreError(CreditEconomyError):
    """Unexpected persistence failure. Details are logged, never surfaced to callers."""


__all__ = [
    "CreditEconomyError",
    "InsufficientFunds",
    "InsufficientCredits",
    "LeadNotFound",
    "AccountNotFound",
    "ConcurrencyConflict",
    "TopupVerificationFailed",
    "StoreError",
]
