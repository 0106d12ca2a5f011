"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from domain.matching import CompatibilityRequest, ListingInventory, ListingUnit


# ============================================================================
# Unlock Models
# ============================================================================

class UnlockResponse(BaseModel):
    """Outcome of an unlock attempt."""
    success: bool
    status: str  # unlocked, already_unlocked, insufficient_credits, not_found
    message: str
    remaining_balance: Optional[int] = None  # None when the balance could not be read
    revealed_contact: Optional[str] = None
    cost_charged: int = 0
    required_credits: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "status": "unlocked",
                "message": "Lead unlocked. Contact details revealed.",
                "remaining_balance": 10,
                "revealed_contact": "+2348012345678",
                "cost_charged": 10,
                "required_credits": None
            }
        }


class UnlockQuoteResponse(BaseModel):
    """Cost preview for unlocking a lead."""
    lead_id: str
    cost: int
    balance: int
    already_unlocked: bool
    affordable: bool


# ============================================================================
# Wallet Models
# ============================================================================

class WalletStatsResponse(BaseModel):
    """Balance and reputation summary for a provider wallet."""
    balance: int
    trust_score: int
    is_verified: bool
    verified_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "balance": 110,
                "trust_score": 50,
                "is_verified": False,
                "verified_at": None
            }
        }


class TransactionResponse(BaseModel):
    """Single ledger row."""
    transaction_id: str
    amount: int
    kind: str  # purchase, debit_unlock, admin_adjustment
    description: str
    created_at: datetime


class TransactionListResponse(BaseModel):
    account_id: str
    balance: int
    transactions: List[TransactionResponse]


# ============================================================================
# Compatibility Models
# ============================================================================

class ListingUnitModel(BaseModel):
    name: str
    price: int = Field(..., ge=0)


class ListingModel(BaseModel):
    """A provider's listing as submitted for scoring."""
    listing_id: str
    account_id: str
    location: str
    units: List[ListingUnitModel] = Field(..., min_length=1)
    amenities: List[str] = Field(default_factory=list)
    description: str = ""
    landmark: Optional[str] = None
    owner_is_verified: bool = False
    owner_trust_score: int = Field(50, ge=0, le=100)

    def to_domain(self) -> ListingInventory:
        return ListingInventory(
            listing_id=self.listing_id,
            account_id=self.account_id,
            location=self.location,
            units=tuple(ListingUnit(name=u.name, price=u.price) for u in self.units),
            amenities=tuple(self.amenities),
            description=self.description,
            landmark=self.landmark,
            owner_is_verified=self.owner_is_verified,
            owner_trust_score=self.owner_trust_score,
        )


class CompatibilityRequestModel(BaseModel):
    """A seeker's posted request."""
    locations: List[str] = Field(default_factory=list)
    min_budget: Optional[int] = Field(None, ge=0)
    max_budget: Optional[int] = Field(None, ge=0)
    description: str = ""
    is_urgent: bool = False
    request_id: Optional[str] = None
    account_id: Optional[str] = None

    def to_domain(self) -> CompatibilityRequest:
        return CompatibilityRequest(
            locations=tuple(self.locations),
            min_budget=self.min_budget,
            max_budget=self.max_budget,
            description=self.description,
            is_urgent=self.is_urgent,
            request_id=self.request_id,
            account_id=self.account_id,
        )


class CompatibilityQuery(BaseModel):
    """Score one request against many listings."""
    request: CompatibilityRequestModel
    listings: List[ListingModel]

    class Config:
        json_schema_extra = {
            "example": {
                "request": {
                    "locations": ["Ifite"],
                    "min_budget": 100000,
                    "max_budget": 250000,
                    "description": "Self-con with water and light"
                },
                "listings": [
                    {
                        "listing_id": "lodge-1",
                        "account_id": "landlord-1",
                        "location": "Ifite",
                        "units": [{"name": "Standard Self-con", "price": 200000}],
                        "amenities": ["Water", "Light"],
                        "owner_is_verified": True,
                        "owner_trust_score": 70
                    }
                ]
            }
        }


class CompatibilityScoreResponse(BaseModel):
    account_id: str
    score: int
    listing_id: str


class RequestRankingQuery(BaseModel):
    """Score many requests against one listing."""
    listing: ListingModel
    requests: List[CompatibilityRequestModel]


class RequestScoreResponse(BaseModel):
    request_id: Optional[str]
    account_id: Optional[str]
    score: int


# ============================================================================
# Top-up Models
# ============================================================================

class TopupResponse(BaseModel):
    """Result of a payment webhook delivery."""
    status: str  # credited, duplicate, ignored
    external_reference: Optional[str] = None
    credits: int = 0
    balance: Optional[int] = None


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Invalid request",
                "detail": "Lead not found",
                "status_code": 400
            }
        }
