"""
Supabase credit store (persistence).

Reads go straight to the tables through PostgREST. Every wallet mutation is a
call to a PostgreSQL function (see migrations/001_credit_economy.sql) so that
the balance check, the ledger append and any dependent rows are written in a
single database transaction:

- record_credit_transaction(): locks the wallet row (FOR UPDATE), rejects
  debits that would go negative, appends to credit_transactions.
- unlock_lead_atomic(): locks the wallet row, re-checks unlock_records and the
  balance, then debits through record_credit_transaction(), inserts the
  unlock record and marks the lead unlocked.
- apply_topup(): inserts into topup_events (primary key on the external
  reference) and credits through record_credit_transaction(). A reference
  already recorded against another account is reported as REFERENCE_CONFLICT.

This module does not enforce business rules beyond translating rows and
database errors into domain objects. Transport failures and rows that do not
fit the schema surface as StoreError.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.account import Account, AccountRole
from domain.errors import (
    AccountNotFound,
    ConcurrencyConflict,
    InsufficientFunds,
    StoreError,
    TopupVerificationFailed,
)
from domain.lead import Lead, LeadStatus, LeadSubject, LeadSubjectType, UnlockRecord
from domain.ledger import CreditTransaction, TransactionKind
from domain.time import parse_utc_datetime, require_utc_timestamp
from repositories.store import AtomicUnlockOutcome, AtomicUnlockResult, TopupResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Table names. Keep aligned with migrations/001_credit_economy.sql.
_ACCOUNTS_TABLE: str = "accounts"
_LEADS_TABLE: str = "leads"
_UNLOCKS_TABLE: str = "unlock_records"
_TRANSACTIONS_TABLE: str = "credit_transactions"
_WALLETS_TABLE: str = "wallet_balances"
_LISTING_UNITS_TABLE: str = "listing_units"
_REQUESTS_TABLE: str = "lodge_requests"

# serialization_failure, deadlock_detected, lock_not_available, unique_violation
_CONFLICT_CODES = frozenset({"40001", "40P01", "55P03", "23505"})


def _row_to_account(row: Mapping[str, Any]) -> Account:
    return Account(
        account_id=str(row["id"]),
        role=AccountRole(str(row["role"])),
        trust_score=int(row.get("trust_score", 50)),
        is_verified=bool(row.get("is_verified", False)),
        verified_at=parse_utc_datetime(row["verified_at"]) if row.get("verified_at") else None,
        display_name=row.get("display_name"),
        contact_phone=row.get("contact_phone"),
        created_at=parse_utc_datetime(row["created_at"]) if row.get("created_at") else None,
    )


def _row_to_lead(row: Mapping[str, Any]) -> Lead:
    return Lead(
        lead_id=str(row["id"]),
        subject_type=LeadSubjectType(str(row["subject_type"])),
        subject_ref=str(row["subject_ref"]),
        owner_account_id=str(row["owner_account_id"]),
        requesting_account_id=str(row["requesting_account_id"]),
        status=LeadStatus(str(row["status"])),
        created_at=parse_utc_datetime(row["created_at"]),
    )


def _row_to_unlock(row: Mapping[str, Any]) -> UnlockRecord:
    return UnlockRecord(
        unlock_id=str(row["id"]),
        requesting_account_id=str(row["requesting_account_id"]),
        lead_id=str(row["lead_id"]),
        cost_charged=int(row["cost_charged"]),
        unlocked_at=parse_utc_datetime(row["unlocked_at"]),
        status=LeadStatus(str(row.get("status", LeadStatus.UNLOCKED.value))),
    )


def _row_to_transaction(row: Mapping[str, Any]) -> CreditTransaction:
    return CreditTransaction(
        transaction_id=str(row["id"]),
        account_id=str(row["account_id"]),
        amount=int(row["amount"]),
        kind=TransactionKind(str(row["kind"])),
        description=str(row.get("description") or ""),
        created_at=parse_utc_datetime(row["created_at"]),
    )


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


class SupabaseCreditStore:
    def __init__(self, client: Client) -> None:
        self._client = client

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _execute(self, query: Any, action: str) -> Any:
        """Execute a PostgREST builder, translating failures into domain errors."""

        try:
            response = query.execute()
        except APIError as e:
            code = getattr(e, "code", None)
            if code in _CONFLICT_CODES:
                raise ConcurrencyConflict(f"{action}: conflicting concurrent update") from e
            logger.error(
                "Supabase call failed",
                extra={"action": action, "code": code, "error_message": getattr(e, "message", str(e))},
            )
            raise StoreError(f"Failed to {action}") from e
        except Exception as e:
            # Transport failures (connection refused, timeouts) from the HTTP client.
            logger.error(
                "Supabase request failed",
                extra={"action": action, "error_type": type(e).__name__, "error_message": str(e)},
            )
            raise StoreError(f"Failed to {action}") from e

        error = getattr(response, "error", None)
        if error:
            logger.error("Supabase call returned an error", extra={"action": action, "error_message": str(error)})
            raise StoreError(f"Failed to {action}")
        return response

    def _rows(self, query: Any, action: str) -> List[Dict[str, Any]]:
        response = self._execute(query, action)
        return getattr(response, "data", None) or []

    def _rpc(self, function: str, params: Dict[str, Any]) -> Any:
        response = self._execute(self._client.rpc(function, params), f"call {function}")
        return getattr(response, "data", None)

    def _rpc_object(self, function: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Call a function that returns a JSON object."""

        result = self._rpc(function, params)
        if result is None:
            return {}
        if not isinstance(result, dict):
            logger.error("Unexpected payload from Supabase", extra={"action": f"call {function}"})
            raise StoreError(f"{function} returned an unexpected payload")
        return result

    def _map(self, mapper: Callable[[Any], T], row: Any, action: str) -> T:
        """Apply a row mapper; rows that do not fit the schema raise StoreError."""

        try:
            return mapper(row)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(
                "Unexpected row shape from Supabase",
                extra={"action": action, "error_type": type(e).__name__, "error_message": str(e)},
            )
            raise StoreError(f"Failed to {action}: malformed row") from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_account(self, account_id: str) -> Optional[Account]:
        rows = self._rows(
            self._client.table(_ACCOUNTS_TABLE).select("*").eq("id", account_id).limit(1),
            "fetch account",
        )
        return self._map(_row_to_account, rows[0], "fetch account") if rows else None

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        rows = self._rows(
            self._client.table(_LEADS_TABLE).select("*").eq("id", lead_id).limit(1),
            "fetch lead",
        )
        return self._map(_row_to_lead, rows[0], "fetch lead") if rows else None

    def get_unlock_record(self, requesting_account_id: str, lead_id: str) -> Optional[UnlockRecord]:
        rows = self._rows(
            self._client.table(_UNLOCKS_TABLE)
            .select("*")
            .eq("requesting_account_id", requesting_account_id)
            .eq("lead_id", lead_id)
            .limit(1),
            "fetch unlock record",
        )
        return self._map(_row_to_unlock, rows[0], "fetch unlock record") if rows else None

    def get_lead_subject(self, subject_type: LeadSubjectType, subject_ref: str) -> Optional[LeadSubject]:
        if subject_type is LeadSubjectType.LISTING_CONTACT:
            # A listing is priced by its cheapest unit.
            rows = self._rows(
                self._client.table(_LISTING_UNITS_TABLE)
                .select("price")
                .eq("listing_id", subject_ref)
                .order("price")
                .limit(1),
                "fetch listing price",
            )
            if not rows:
                return None
            return self._map(
                lambda r: LeadSubject(subject_type, subject_ref, listing_price=int(r["price"])),
                rows[0],
                "fetch listing price",
            )

        rows = self._rows(
            self._client.table(_REQUESTS_TABLE)
            .select("min_budget, max_budget")
            .eq("id", subject_ref)
            .limit(1),
            "fetch request budget",
        )
        if not rows:
            return None
        return self._map(
            lambda r: LeadSubject(
                subject_type,
                subject_ref,
                min_budget=_optional_int(r.get("min_budget")),
                max_budget=_optional_int(r.get("max_budget")),
            ),
            rows[0],
            "fetch request budget",
        )

    def get_balance(self, account_id: str) -> int:
        rows = self._rows(
            self._client.table(_WALLETS_TABLE).select("balance").eq("account_id", account_id).limit(1),
            "fetch wallet balance",
        )
        return self._map(lambda r: int(r["balance"]), rows[0], "fetch wallet balance") if rows else 0

    def list_transactions(self, account_id: str) -> List[CreditTransaction]:
        rows = self._rows(
            self._client.table(_TRANSACTIONS_TABLE)
            .select("*")
            .eq("account_id", account_id)
            .order("created_at"),
            "list credit transactions",
        )
        return [self._map(_row_to_transaction, row, "list credit transactions") for row in rows]

    def list_wallet_account_ids(self) -> List[str]:
        rows = self._rows(
            self._client.table(_WALLETS_TABLE).select("account_id").order("account_id"),
            "list wallets",
        )
        return [self._map(lambda r: str(r["account_id"]), row, "list wallets") for row in rows]

    # ------------------------------------------------------------------
    # Atomic wallet mutations
    # ------------------------------------------------------------------

    def append_transaction(
        self,
        account_id: str,
        amount: int,
        kind: TransactionKind,
        description: str,
    ) -> int:
        result = self._rpc_object(
            "record_credit_transaction",
            {
                "p_account_id": account_id,
                "p_amount": amount,
                "p_kind": kind.value,
                "p_description": description,
            },
        )

        if result.get("error") == "INSUFFICIENT_FUNDS":
            raise InsufficientFunds(account_id, int(result.get("balance", 0)), amount)
        if result.get("error") == "ACCOUNT_NOT_FOUND":
            raise AccountNotFound(account_id)
        if not result.get("success"):
            raise StoreError("record_credit_transaction returned an unexpected payload")
        return self._map(lambda r: int(r["balance"]), result, "call record_credit_transaction")

    def unlock_lead_atomic(
        self,
        requesting_account_id: str,
        lead_id: str,
        cost: int,
        description: str,
    ) -> AtomicUnlockResult:
        result = self._rpc_object(
            "unlock_lead_atomic",
            {
                "p_requesting_account_id": requesting_account_id,
                "p_lead_id": lead_id,
                "p_cost": cost,
                "p_description": description,
            },
        )

        def to_result(payload: Mapping[str, Any]) -> AtomicUnlockResult:
            record = None
            if payload.get("unlock_id"):
                record = UnlockRecord(
                    unlock_id=str(payload["unlock_id"]),
                    requesting_account_id=requesting_account_id,
                    lead_id=lead_id,
                    cost_charged=int(payload["cost_charged"]),
                    unlocked_at=parse_utc_datetime(payload["unlocked_at"]),
                )
            return AtomicUnlockResult(
                outcome=AtomicUnlockOutcome(str(payload.get("outcome"))),
                balance=int(payload.get("balance", 0)),
                record=record,
            )

        return self._map(to_result, result, "call unlock_lead_atomic")

    def apply_topup(
        self,
        account_id: str,
        credits: int,
        external_reference: str,
        description: str,
    ) -> TopupResult:
        if credits <= 0:
            raise ValueError("credits must be positive")

        result = self._rpc_object(
            "apply_topup",
            {
                "p_account_id": account_id,
                "p_credits": credits,
                "p_external_reference": external_reference,
                "p_description": description,
            },
        )

        if result.get("error") == "ACCOUNT_NOT_FOUND":
            raise AccountNotFound(account_id)
        if result.get("error") == "REFERENCE_CONFLICT":
            logger.warning(
                "Top-up reference already applied to another account",
                extra={"external_reference": external_reference, "account_id": account_id},
            )
            raise TopupVerificationFailed(
                f"Reference {external_reference} was already applied to a different account"
            )
        if "balance" not in result:
            raise StoreError("apply_topup returned an unexpected payload")
        return self._map(
            lambda r: TopupResult(
                balance=int(r["balance"]),
                applied=bool(r.get("applied")),
                transaction_id=str(r["transaction_id"]) if r.get("transaction_id") else None,
            ),
            result,
            "call apply_topup",
        )

    # ------------------------------------------------------------------
    # Reputation
    # ------------------------------------------------------------------

    def adjust_trust_score(self, account_id: str, delta: int) -> int:
        result = self._rpc("adjust_trust_score", {"p_account_id": account_id, "p_delta": delta})
        if result is None:
            raise AccountNotFound(account_id)
        return self._map(int, result, "call adjust_trust_score")

    def mark_verified(self, account_id: str, verified_at: datetime) -> Account:
        require_utc_timestamp("verified_at", verified_at)
        rows = self._rows(
            self._client.table(_ACCOUNTS_TABLE)
            .update({"is_verified": True, "verified_at": verified_at.astimezone(timezone.utc).isoformat()})
            .eq("id", account_id),
            "mark account verified",
        )
        if not rows:
            raise AccountNotFound(account_id)
        return self._map(_row_to_account, rows[0], "mark account verified")


__all__ = ["SupabaseCreditStore"]
