"""
FastAPI dependencies: store and service wiring, caller identity.

The identity provider sits in front of this API and forwards the
authenticated caller as X-Account-Id / X-Account-Role headers.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from config.settings import Settings, get_settings
from domain.account import AccountRole
from repositories.memory_store import InMemoryCreditStore
from repositories.store import CreditStore
from services.notification_service import (
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    SupabaseNotificationDispatcher,
)
from services.topup_service import TopupService
from services.unlock_service import UnlockGateway
from services.wallet_service import WalletLedger


@lru_cache(maxsize=1)
def get_store() -> CreditStore:
    settings = get_settings()
    if settings.store_backend == "memory":
        return InMemoryCreditStore()

    from repositories.client import get_supabase_client
    from repositories.supabase_store import SupabaseCreditStore

    return SupabaseCreditStore(get_supabase_client())


@lru_cache(maxsize=1)
def get_dispatcher() -> NotificationDispatcher:
    settings = get_settings()
    if settings.store_backend == "memory":
        return LoggingNotificationDispatcher()

    from repositories.client import get_supabase_client

    return SupabaseNotificationDispatcher(get_supabase_client())


def get_wallet_ledger(
    store: CreditStore = Depends(get_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> WalletLedger:
    return WalletLedger(store, dispatcher)


def get_unlock_gateway(
    store: CreditStore = Depends(get_store),
    ledger: WalletLedger = Depends(get_wallet_ledger),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
) -> UnlockGateway:
    return UnlockGateway(store, ledger, dispatcher, max_attempts=settings.unlock_max_attempts)


def get_topup_service(
    store: CreditStore = Depends(get_store),
    ledger: WalletLedger = Depends(get_wallet_ledger),
) -> TopupService:
    return TopupService(store, ledger)


@dataclass(frozen=True, slots=True)
class Caller:
    account_id: str
    role: AccountRole


def get_caller(
    x_account_id: str = Header(..., min_length=1),
    x_account_role: str = Header(...),
) -> Caller:
    try:
        role = AccountRole(x_account_role)
    except ValueError:
        raise HTTPException(status_code=401, detail="Unknown account role")
    return Caller(account_id=x_account_id, role=role)


def require_provider(caller: Caller = Depends(get_caller)) -> Caller:
    if caller.role is not AccountRole.PROVIDER:
        raise HTTPException(status_code=403, detail="Only providers can use credits")
    return caller
