"""
Reconcile wallet balances against the credit transaction log.

For every wallet, re-derives the balance as the sum of its credit_transactions
rows and compares it with the maintained running total in wallet_balances.
Exits with status 1 if any wallet has drifted.

Usage:
    python scripts/reconcile_wallets.py
    python scripts/reconcile_wallets.py --account landlord-123
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path so we can import from repositories
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.logging_setup import configure_logging
from config.settings import get_settings
from repositories.client import get_supabase_client
from repositories.supabase_store import SupabaseCreditStore
from services.wallet_service import WalletLedger


def reconcile_wallets(ledger: WalletLedger, account_ids: list) -> int:
    """Print a reconciliation table and return the number of drifted wallets."""

    drifted = 0

    print("=" * 70)
    print("WALLET RECONCILIATION")
    print("=" * 70)
    print(f"{'Account':<38} {'Stored':>8} {'Derived':>8} {'Rows':>6}  Status")
    print("-" * 70)

    for account_id in account_ids:
        report = ledger.reconcile(account_id)
        status = "OK" if report.is_consistent else f"DRIFT {report.drift:+d}"
        if not report.is_consistent:
            drifted += 1
        print(
            f"{account_id:<38} {report.stored_balance or 0:>8} "
            f"{report.derived_balance:>8} {report.transaction_count:>6}  {status}"
        )

    print("-" * 70)
    print(f"Wallets checked: {len(account_ids)}")
    print(f"Wallets drifted: {drifted}")
    print("=" * 70)

    return drifted


def main() -> int:
    parser = argparse.ArgumentParser(description="Audit wallet balances against the ledger")
    parser.add_argument("--account", action="append", help="Account id to check (repeatable)")
    args = parser.parse_args()

    configure_logging(get_settings().log_level)

    store = SupabaseCreditStore(get_supabase_client())
    ledger = WalletLedger(store)
    account_ids = args.account or store.list_wallet_account_ids()

    return 1 if reconcile_wallets(ledger, account_ids) else 0


if __name__ == "__main__":
    sys.exit(main())
