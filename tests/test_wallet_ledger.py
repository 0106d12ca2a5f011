"""
Tests for `services/wallet_service.py` over the in-memory store.

Covers contract rules:
- Balance always equals the sum of the account's transaction amounts.
- A debit that would make the balance negative is rejected and writes nothing.
- Top-ups are applied exactly once per external reference, even concurrently.
- reconcile() reports drift between the running total and the log.
"""

from __future__ import annotations

import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from domain.errors import AccountNotFound, InsufficientFunds, TopupVerificationFailed
from domain.ledger import TransactionKind, derive_balance
from services.notification_service import CREDITS_TOPPED_UP

from conftest import OTHER_PROVIDER_ID, PROVIDER_ID


def test_new_provider_wallet_is_empty(seeded, ledger) -> None:
    assert ledger.get_balance(PROVIDER_ID) == 0
    assert ledger.list_transactions(PROVIDER_ID) == []


def test_record_transaction_returns_new_balance(seeded, ledger) -> None:
    assert ledger.record_transaction(PROVIDER_ID, 30, TransactionKind.ADMIN_ADJUSTMENT, "goodwill") == 30
    assert ledger.admin_adjust(PROVIDER_ID, -12, "correction") == 18

    kinds = [t.kind for t in ledger.list_transactions(PROVIDER_ID)]
    assert kinds == [TransactionKind.ADMIN_ADJUSTMENT, TransactionKind.ADMIN_ADJUSTMENT]


def test_record_transaction_accepts_kind_value(seeded, ledger) -> None:
    ledger.record_transaction(PROVIDER_ID, 5, "admin_adjustment", "string kind")

    assert ledger.list_transactions(PROVIDER_ID)[0].kind is TransactionKind.ADMIN_ADJUSTMENT


def test_zero_amount_is_rejected(seeded, ledger) -> None:
    with pytest.raises(ValueError):
        ledger.record_transaction(PROVIDER_ID, 0, TransactionKind.ADMIN_ADJUSTMENT, "noop")


def test_overdraft_is_rejected_and_writes_nothing(seeded, ledger) -> None:
    ledger.apply_topup(PROVIDER_ID, 8, "ref-1")

    with pytest.raises(InsufficientFunds):
        ledger.admin_adjust(PROVIDER_ID, -10, "too much")

    assert ledger.get_balance(PROVIDER_ID) == 8
    assert len(ledger.list_transactions(PROVIDER_ID)) == 1


def test_unknown_account_is_rejected(seeded, ledger) -> None:
    with pytest.raises(AccountNotFound):
        ledger.admin_adjust("nobody", 10, "x")
    with pytest.raises(AccountNotFound):
        ledger.apply_topup("nobody", 10, "ref-x")


def test_balance_is_conserved_over_random_operations(seeded, ledger) -> None:
    """Every accepted operation keeps balance == sum(transactions) and balance >= 0."""

    rng = random.Random(7)
    for i in range(200):
        amount = rng.randint(-40, 40) or 1
        try:
            if amount > 0 and rng.random() < 0.5:
                ledger.apply_topup(PROVIDER_ID, amount, f"ref-{i}")
            else:
                ledger.admin_adjust(PROVIDER_ID, amount, f"op-{i}")
        except InsufficientFunds:
            pass

        balance = ledger.get_balance(PROVIDER_ID)
        assert balance >= 0
        assert balance == derive_balance(ledger.list_transactions(PROVIDER_ID))


def test_topup_is_idempotent_on_reference(seeded, ledger, dispatcher) -> None:
    assert ledger.apply_topup(PROVIDER_ID, 50, "pay-123") == 50
    assert ledger.apply_topup(PROVIDER_ID, 50, "pay-123") == 50

    transactions = ledger.list_transactions(PROVIDER_ID)
    assert len(transactions) == 1
    assert transactions[0].kind is TransactionKind.PURCHASE
    assert [e.event_type for e in dispatcher.events] == [CREDITS_TOPPED_UP]


def test_credit_topup_reports_whether_it_applied(seeded, ledger) -> None:
    first = ledger.credit_topup(PROVIDER_ID, 50, "pay-123")
    second = ledger.credit_topup(PROVIDER_ID, 50, "pay-123")

    assert first.applied is True
    assert second.applied is False
    assert second.balance == 50
    assert second.transaction_id == first.transaction_id


def test_topup_reference_is_bound_to_its_account(seeded, ledger) -> None:
    ledger.apply_topup(PROVIDER_ID, 50, "pay-123")

    with pytest.raises(TopupVerificationFailed):
        ledger.apply_topup(OTHER_PROVIDER_ID, 50, "pay-123")

    assert ledger.get_balance(OTHER_PROVIDER_ID) == 0
    assert ledger.list_transactions(OTHER_PROVIDER_ID) == []


def test_concurrent_duplicate_topups_credit_once(seeded, ledger) -> None:
    with ThreadPoolExecutor(max_workers=8) as pool:
        balances = list(pool.map(lambda _: ledger.apply_topup(PROVIDER_ID, 110, "pay-dup"), range(16)))

    assert set(balances) == {110}
    assert ledger.get_balance(PROVIDER_ID) == 110
    assert len(ledger.list_transactions(PROVIDER_ID)) == 1


def test_topup_requires_positive_credits_and_reference(seeded, ledger) -> None:
    with pytest.raises(ValueError):
        ledger.apply_topup(PROVIDER_ID, 0, "ref")
    with pytest.raises(ValueError):
        ledger.apply_topup(PROVIDER_ID, 10, "")


def test_reconcile_consistent_wallet(seeded, ledger) -> None:
    ledger.apply_topup(PROVIDER_ID, 50, "ref-1")
    ledger.admin_adjust(PROVIDER_ID, -5, "fee")

    report = ledger.reconcile(PROVIDER_ID)

    assert report.is_consistent
    assert report.stored_balance == 45
    assert report.derived_balance == 45
    assert report.transaction_count == 2


def test_reconcile_detects_drift(seeded, ledger) -> None:
    ledger.apply_topup(PROVIDER_ID, 50, "ref-1")
    seeded._balances[PROVIDER_ID] = 70  # simulate a corrupted running total

    report = ledger.reconcile(PROVIDER_ID)

    assert not report.is_consistent
    assert report.drift == 20


def test_get_wallet_stats(seeded, ledger) -> None:
    ledger.apply_topup(PROVIDER_ID, 20, "ref-1")

    stats = ledger.get_wallet_stats(PROVIDER_ID)

    assert stats.balance == 20
    assert stats.trust_score == 50
    assert stats.is_verified is False
    assert stats.verified_at is None

    with pytest.raises(AccountNotFound):
        ledger.get_wallet_stats("nobody")
