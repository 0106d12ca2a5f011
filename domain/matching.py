"""
Domain: inputs to compatibility scoring.

A CompatibilityRequest is a seeker's posted want; a ListingInventory is a
provider's offering with one or more units. Both are plain value objects; the
scoring rules live in services/compatibility_service.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .account import DEFAULT_TRUST_SCORE


def effective_budget(min_budget: Optional[int], max_budget: Optional[int]) -> int:
    """max_budget, falling back to min_budget, else 0 (unspecified)."""

    return max_budget or min_budget or 0


@dataclass(frozen=True, slots=True)
class CompatibilityRequest:
    locations: Tuple[str, ...]
    min_budget: Optional[int] = None
    max_budget: Optional[int] = None
    description: str = ""
    is_urgent: bool = False
    request_id: Optional[str] = None
    account_id: Optional[str] = None

    def __post_init__(self) -> None:
        # Accept any iterable of locations but store a tuple so the value stays hashable.
        object.__setattr__(self, "locations", tuple(self.locations))
        for name in ("min_budget", "max_budget"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be >= 0")

    @property
    def budget(self) -> int:
        """max_budget, falling back to min_budget, else 0 (unspecified)."""

        return effective_budget(self.min_budget, self.max_budget)


@dataclass(frozen=True, slots=True)
class ListingUnit:
    name: str
    price: int

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValueError("price must be >= 0")


@dataclass(frozen=True, slots=True)
class ListingInventory:
    listing_id: str
    account_id: str
    location: str
    units: Tuple[ListingUnit, ...]
    amenities: Tuple[str, ...] = field(default_factory=tuple)
    description: str = ""
    landmark: Optional[str] = None
    owner_is_verified: bool = False
    owner_trust_score: int = DEFAULT_TRUST_SCORE

    def __post_init__(self) -> None:
        object.__setattr__(self, "units", tuple(self.units))
        object.__setattr__(self, "amenities", tuple(self.amenities))
        if not self.units:
            raise ValueError("a listing must have at least one unit")

    @property
    def price(self) -> int:
        """Cheapest unit price; the headline price used for scoring and pricing."""

        return min(unit.price for unit in self.units)
