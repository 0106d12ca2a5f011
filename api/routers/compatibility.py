"""
Compatibility API Endpoints.

Stateless scoring of requests against listings. Nothing here touches the
ledger.
"""

from typing import List

from fastapi import APIRouter

from api.models import (
    CompatibilityQuery,
    CompatibilityScoreResponse,
    RequestRankingQuery,
    RequestScoreResponse,
)
from services.compatibility_service import compute_compatibility, rank_requests

router = APIRouter()


@router.post(
    "/compatibility",
    response_model=List[CompatibilityScoreResponse],
    summary="Rank Providers For A Request",
    description="Best-match score (0-99) per provider across their listings, highest first."
)
def rank_providers(query: CompatibilityQuery):
    """
    Score a seeker's request against a set of listings.

    Each provider appears once, with the maximum score across its listings.
    Ties are ordered by account id.
    """
    matches = compute_compatibility(
        query.request.to_domain(),
        [listing.to_domain() for listing in query.listings],
    )
    return [
        CompatibilityScoreResponse(account_id=m.account_id, score=m.score, listing_id=m.listing_id)
        for m in matches
    ]


@router.post(
    "/compatibility/requests",
    response_model=List[RequestScoreResponse],
    summary="Rank Requests For A Listing",
    description="Score seekers' requests against one listing, highest first."
)
def rank_requests_for_listing(query: RequestRankingQuery):
    matches = rank_requests(
        query.listing.to_domain(),
        [request.to_domain() for request in query.requests],
    )
    return [
        RequestScoreResponse(request_id=m.request_id, account_id=m.account_id, score=m.score)
        for m in matches
    ]
