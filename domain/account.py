"""
Domain: marketplace accounts and their wallet view.

Accounts are either tenant-seekers (students posting requests) or providers
(landlords listing lodges). Only providers hold a credit wallet.

Contract excerpts implemented here:
- trust_score is an integer in [0, 100], default 50.
- trust_score is mutated only by the trust model in response to external events.
- WalletStats is the read model returned by get_wallet_stats.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .time import require_utc_timestamp

DEFAULT_TRUST_SCORE: int = 50
MIN_TRUST_SCORE: int = 0
MAX_TRUST_SCORE: int = 100


class AccountRole(str, Enum):
    TENANT_SEEKER = "tenant_seeker"
    PROVIDER = "provider"


@dataclass(frozen=True, slots=True)
class Account:
    """
    Marketplace account.

    contact_phone is the protected contact field; it is revealed to a provider
    only after the provider has unlocked a lead owned by this account.
    """

    account_id: str
    role: AccountRole
    trust_score: int = DEFAULT_TRUST_SCORE
    is_verified: bool = False
    verified_at: Optional[datetime] = None
    display_name: Optional[str] = None
    contact_phone: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not MIN_TRUST_SCORE <= self.trust_score <= MAX_TRUST_SCORE:
            raise ValueError(
                f"trust_score must be within [{MIN_TRUST_SCORE}, {MAX_TRUST_SCORE}]"
            )
        if self.verified_at is not None:
            require_utc_timestamp("verified_at", self.verified_at)
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def is_provider(self) -> bool:
        return self.role is AccountRole.PROVIDER


@dataclass(frozen=True, slots=True)
class WalletStats:
    """Balance plus reputation summary for a provider wallet."""

    balance: int
    trust_score: int
    is_verified: bool
    verified_at: Optional[datetime] = None
