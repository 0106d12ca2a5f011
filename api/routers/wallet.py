"""
Wallet API Endpoints.

Read-only views of a provider's balance, reputation and ledger.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import Caller, get_wallet_ledger, require_provider
from api.models import ErrorResponse, TransactionListResponse, TransactionResponse, WalletStatsResponse
from domain.errors import AccountNotFound, StoreError
from services.wallet_service import WalletLedger

router = APIRouter()


def _require_self(caller: Caller, account_id: str) -> None:
    if caller.account_id != account_id:
        raise HTTPException(status_code=403, detail="Not authorized to view this wallet")


@router.get(
    "/wallet/{account_id}",
    response_model=WalletStatsResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Get Wallet Stats",
    description="Balance, trust score and verification status for the caller's wallet."
)
def get_wallet_stats(
    account_id: str,
    caller: Caller = Depends(require_provider),
    ledger: WalletLedger = Depends(get_wallet_ledger),
):
    _require_self(caller, account_id)

    try:
        stats = ledger.get_wallet_stats(account_id)
    except AccountNotFound:
        raise HTTPException(status_code=404, detail=f"Account not found: {account_id}")
    except StoreError:
        raise HTTPException(status_code=503, detail="Wallet is temporarily unavailable")

    return WalletStatsResponse(
        balance=stats.balance,
        trust_score=stats.trust_score,
        is_verified=stats.is_verified,
        verified_at=stats.verified_at,
    )


@router.get(
    "/wallet/{account_id}/transactions",
    response_model=TransactionListResponse,
    responses={403: {"model": ErrorResponse}},
    summary="List Wallet Transactions",
    description="Append-only credit ledger for the caller's wallet, oldest first."
)
def list_wallet_transactions(
    account_id: str,
    caller: Caller = Depends(require_provider),
    ledger: WalletLedger = Depends(get_wallet_ledger),
):
    _require_self(caller, account_id)

    try:
        transactions = ledger.list_transactions(account_id)
        balance = ledger.get_balance(account_id)
    except StoreError:
        raise HTTPException(status_code=503, detail="Wallet is temporarily unavailable")

    return TransactionListResponse(
        account_id=account_id,
        balance=balance,
        transactions=[
            TransactionResponse(
                transaction_id=t.transaction_id,
                amount=t.amount,
                kind=t.kind.value,
                description=t.description,
                created_at=t.created_at,
            )
            for t in transactions
        ],
    )
