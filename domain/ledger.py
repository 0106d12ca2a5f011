"""
Domain: credit ledger entries.

Contract excerpts implemented here:
- CreditTransaction rows are append-only and immutable once written.
- amount is a signed integer: positive credits the wallet, negative debits it.
- A wallet balance always equals the sum of its account's transaction amounts.
- A debit that would make the balance negative is rejected, never clamped.

This module contains only pure domain entities; no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from .errors import InsufficientFunds
from .time import require_utc_timestamp


class TransactionKind(str, Enum):
    PURCHASE = "purchase"
    DEBIT_UNLOCK = "debit_unlock"
    ADMIN_ADJUSTMENT = "admin_adjustment"


@dataclass(frozen=True, slots=True)
class CreditTransaction:
    """Immutable ledger row."""

    transaction_id: str
    account_id: str
    amount: int
    kind: TransactionKind
    description: str
    created_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if self.amount == 0:
            raise ValueError("amount must be non-zero")
        if self.kind is TransactionKind.PURCHASE and self.amount < 0:
            raise ValueError("purchase transactions must credit the wallet")
        if self.kind is TransactionKind.DEBIT_UNLOCK and self.amount > 0:
            raise ValueError("debit_unlock transactions must debit the wallet")


def derive_balance(transactions: Iterable[CreditTransaction]) -> int:
    """Re-derive a balance from the log (audit path)."""

    return sum(t.amount for t in transactions)


def check_debit(account_id: str, balance: int, amount: int) -> int:
    """
    Return the balance after applying amount, or raise InsufficientFunds.

    Credits are always accepted; debits must leave the balance >= 0.
    """

    new_balance = balance + amount
    if amount < 0 and new_balance < 0:
        raise InsufficientFunds(account_id, balance, amount)
    return new_balance


@dataclass(frozen=True, slots=True)
class ReconciliationReport:
    """Comparison of a maintained running total against the transaction log."""

    account_id: str
    stored_balance: Optional[int]
    derived_balance: int
    transaction_count: int

    @property
    def drift(self) -> int:
        return (self.stored_balance or 0) - self.derived_balance

    @property
    def is_consistent(self) -> bool:
        return self.drift == 0
