"""
Compatibility scoring between a seeker's request and a provider's listing.

The score is a deterministic integer in [0, 99] built from five components:

    location   max 30   exact/containment match 30, landmark adjacency 15
    budget     max 35   within budget 35, linear decay to 0 at 50% overflow
    room type  max 20   keyword match 20, mismatch 0, no keywords 10
    amenities  max 10   +2 per requested amenity offered, no keywords 5
    trust      max 5    +3 verified owner, +2 owner trust_score > 60

final = min(99, round_half_up(sum)). Arithmetic is exact (fractions), so the
same inputs always produce the same score on every platform.

This module is pure: no I/O, no randomness, no clock.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from domain.matching import CompatibilityRequest, ListingInventory


@dataclass(frozen=True, slots=True)
class ScoreWeights:
    location_match: int = 30
    location_adjacent: int = 15
    budget_within: int = 35
    budget_unspecified_low: int = 25
    budget_unspecified_high: int = 15
    budget_unspecified_threshold: int = 500_000
    # Overflow ratio multiplier: the budget component reaches 0 at 1/decay overflow.
    budget_decay: int = 2
    room_type_match: int = 20
    room_type_neutral: int = 10
    amenity_each: int = 2
    amenity_cap: int = 10
    amenity_neutral: int = 5
    trust_verified: int = 3
    trust_high_score: int = 2
    trust_high_threshold: int = 60
    max_score: int = 99


DEFAULT_WEIGHTS = ScoreWeights()

ANY_LOCATION_WILDCARDS: FrozenSet[str] = frozenset({"any", "any location", "anywhere"})

AREA_LANDMARKS: Mapping[str, Tuple[str, ...]] = {
    "Ifite": (
        "UNIZIK Main Gate", "Ifite Overpass (Flyover)", "Garba Square", "Amansea-Ifite Road Junction",
        "Enu-Ifite Village Hall", "Ezinato-Ifite Village Square", "Miracle Junction", "First Gate (UNIZIK)",
        "Second Gate (UNIZIK)", "Dozie Way", "Ezenwa Crescent", "Back Gate (UNIZIK)",
        "Book Foundation Junction", "Ifite Market", "Regina Caeli Road Junction (Ifite end)",
    ),
    "Okpuno": (
        "Silluch Roundabout", "Okpuno Town Hall", "Igwe of Okpuno Palace", "St. John's Catholic Church",
        "Tansi International College", "Pope John Paul II Seminary", "Aguchi Layout", "Obunumo Village Square",
        "Okpuno Community Secondary School", "Odadi Layout", "Okpuno-Isuaniocha Road Junction",
        "Agbolo Layout", "Ring Road Okpuno", "St. John's Primary School", "Okpuno Electrification Project Marker",
    ),
    "Aroma": (
        "Starry Empire", "Alex Ekwueme Square", "Anambra State Secretariate", "Arroma Junction",
        "ABO Gallery (ArtsyByOma)", "Government House", "Anambra Broadcasting Service",
        "International Convention Center", "CBN Awka", "Anambra State House of Assembly",
        "St. Patrick's Cathedral", "Iyiagu Estate", "Aroma Park", "Juhel Parenteral Factory",
    ),
    "Amansea": (
        "Amansea Bridge", "Awka Millennium City (AMC)", "Amansea Cattle Market", "Amansea Flyover",
        "Garri Market", "Amansea Village Square", "UNIZIK Faculty of Agriculture", "Amansea-Ebenebe Road Junction",
        "The Border Landmark", "Amansea Community School", "River Mammy (Ezu River)",
        "Amansea Police Station", "Victoria Point", "Hilltop Estate", "Amansea Junction",
    ),
    "Temp Site": (
        "UNIZIK Junction", "Club Gaga", "Chow County Bistro", "Diamond Pizza", "Bamboo Bar",
        "Temp Site Bus Park", "Regina Caeli Hospital", "Zik Avenue", "Geobi Suites", "Temp Site Market",
        "Ekwueme Hall", "First Bank", "Okasha Plaza", "Cornerstone Junction", "Arthur Eze Street Junction",
    ),
}

# Normalized (see _normalize) so "Self-con", "self con" and "SELF CON" all match.
ROOM_TYPE_KEYWORDS: Tuple[str, ...] = (
    "self con",
    "selfcon",
    "self contain",
    "studio",
    "single room",
    "face me i face you",
    "face me",
    "1 bedroom",
    "2 bedroom",
    "3 bedroom",
    "one bedroom",
    "two bedroom",
    "three bedroom",
    "mini flat",
    "flat",
    "penthouse",
    "basement",
    "executive",
)

AMENITY_KEYWORDS: Tuple[str, ...] = ("water", "light", "security", "prepaid", "parking", "tiled")


def _normalize(text: Optional[str]) -> str:
    if not text:
        return ""
    text = text.lower().replace("-", " ").replace("_", " ")
    return " ".join(text.split())


def _contains_word(text: str, phrase: str) -> bool:
    return re.search(r"\b" + re.escape(phrase) + r"\b", text) is not None


_NORMALIZED_AREAS: Dict[str, str] = {area: _normalize(area) for area in AREA_LANDMARKS}
_NORMALIZED_LANDMARKS: Dict[str, Tuple[str, ...]] = {
    area: tuple(_normalize(landmark) for landmark in landmarks)
    for area, landmarks in AREA_LANDMARKS.items()
}


def _areas_named_in(text: str) -> FrozenSet[str]:
    return frozenset(area for area, name in _NORMALIZED_AREAS.items() if name and name in text)


def _areas_by_landmark_in(text: str) -> FrozenSet[str]:
    return frozenset(
        area
        for area, landmarks in _NORMALIZED_LANDMARKS.items()
        if any(landmark in text for landmark in landmarks)
    )


def extract_room_types(text: str) -> List[str]:
    normalized = _normalize(text)
    return [kw for kw in ROOM_TYPE_KEYWORDS if _contains_word(normalized, kw)]


def extract_amenities(text: str) -> List[str]:
    normalized = _normalize(text)
    return [kw for kw in AMENITY_KEYWORDS if _contains_word(normalized, kw)]


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

def location_component(
    request: CompatibilityRequest,
    listing: ListingInventory,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> int:
    listing_location = _normalize(listing.location)
    wanted = [_normalize(location) for location in request.locations]
    wanted = [location for location in wanted if location]

    if listing_location in ANY_LOCATION_WILDCARDS or any(w in ANY_LOCATION_WILDCARDS for w in wanted):
        return weights.location_match

    if listing_location:
        for location in wanted:
            if location in listing_location or listing_location in location:
                return weights.location_match

    listing_texts = [listing_location, _normalize(listing.landmark)]
    listing_areas: FrozenSet[str] = frozenset().union(*(_areas_named_in(t) for t in listing_texts if t))
    listing_landmark_areas: FrozenSet[str] = frozenset().union(
        *(_areas_by_landmark_in(t) for t in listing_texts if t)
    )

    for location in wanted:
        # Request named a landmark inside the listing's area, or named an area
        # that contains the listing's landmark.
        if listing_areas & _areas_by_landmark_in(location):
            return weights.location_adjacent
        if _areas_named_in(location) & listing_landmark_areas:
            return weights.location_adjacent

    return 0


def budget_component(
    request: CompatibilityRequest,
    listing: ListingInventory,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> Fraction:
    budget = request.budget
    price = listing.price

    if budget == 0:
        if price < weights.budget_unspecified_threshold:
            return Fraction(weights.budget_unspecified_low)
        return Fraction(weights.budget_unspecified_high)

    if price <= budget:
        return Fraction(weights.budget_within)

    overflow_ratio = Fraction(price - budget, budget)
    return max(Fraction(0), weights.budget_within * (1 - weights.budget_decay * overflow_ratio))


def room_type_component(
    request: CompatibilityRequest,
    listing: ListingInventory,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> int:
    keywords = extract_room_types(request.description)
    if not keywords:
        return weights.room_type_neutral

    unit_names = [_normalize(unit.name) for unit in listing.units]
    for keyword in keywords:
        for name in unit_names:
            if name and (keyword in name or name in keyword):
                return weights.room_type_match
    return 0


def amenities_component(
    request: CompatibilityRequest,
    listing: ListingInventory,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> int:
    wanted = extract_amenities(request.description)
    if not wanted:
        return weights.amenity_neutral

    offered = [_normalize(amenity) for amenity in listing.amenities]
    description = _normalize(listing.description)

    score = 0
    for amenity in wanted:
        if any(_contains_word(item, amenity) for item in offered) or _contains_word(description, amenity):
            score += weights.amenity_each
    return min(weights.amenity_cap, score)


def trust_component(listing: ListingInventory, weights: ScoreWeights = DEFAULT_WEIGHTS) -> int:
    bonus = 0
    if listing.owner_is_verified:
        bonus += weights.trust_verified
    if listing.owner_trust_score > weights.trust_high_threshold:
        bonus += weights.trust_high_score
    return bonus


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------

def _round_half_up(value: Fraction) -> int:
    return math.floor(value + Fraction(1, 2))


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    location: int
    budget: float
    room_type: int
    amenities: int
    trust: int
    score: int


def score_breakdown(
    request: CompatibilityRequest,
    listing: ListingInventory,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> ScoreBreakdown:
    location = location_component(request, listing, weights)
    budget = budget_component(request, listing, weights)
    room_type = room_type_component(request, listing, weights)
    amenities = amenities_component(request, listing, weights)
    trust = trust_component(listing, weights)

    total = location + budget + room_type + amenities + trust
    score = max(0, min(weights.max_score, _round_half_up(total)))

    return ScoreBreakdown(
        location=location,
        budget=float(budget),
        room_type=room_type,
        amenities=amenities,
        trust=trust,
        score=score,
    )


def compute_score(
    request: CompatibilityRequest,
    listing: ListingInventory,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> int:
    """Compatibility of a request and a listing, an integer in [0, 99]."""

    return score_breakdown(request, listing, weights).score


@dataclass(frozen=True, slots=True)
class CompatibilityMatch:
    account_id: str
    score: int
    listing_id: str


@dataclass(frozen=True, slots=True)
class RequestMatch:
    request_id: Optional[str]
    account_id: Optional[str]
    score: int


def compute_compatibility(
    request: CompatibilityRequest,
    listings: Iterable[ListingInventory],
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> List[CompatibilityMatch]:
    """
    Rank providers for a request.

    Each provider is reported once with the maximum score across its listings
    (best match, not average). Sorted by score descending, then account_id.
    """

    best: Dict[str, CompatibilityMatch] = {}
    for listing in listings:
        score = compute_score(request, listing, weights)
        current = best.get(listing.account_id)
        if current is None or score > current.score:
            best[listing.account_id] = CompatibilityMatch(
                account_id=listing.account_id,
                score=score,
                listing_id=listing.listing_id,
            )

    return sorted(best.values(), key=lambda m: (-m.score, m.account_id))


def rank_requests(
    listing: ListingInventory,
    requests: Sequence[CompatibilityRequest],
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> List[RequestMatch]:
    """Rank seekers' requests for a provider's listing, best first."""

    matches = [
        RequestMatch(
            request_id=request.request_id,
            account_id=request.account_id,
            score=compute_score(request, listing, weights),
        )
        for request in requests
    ]
    return sorted(matches, key=lambda m: (-m.score, m.request_id or ""))


__all__ = [
    "ScoreWeights",
    "DEFAULT_WEIGHTS",
    "AREA_LANDMARKS",
    "ROOM_TYPE_KEYWORDS",
    "AMENITY_KEYWORDS",
    "extract_room_types",
    "extract_amenities",
    "location_component",
    "budget_component",
    "room_type_component",
    "amenities_component",
    "trust_component",
    "ScoreBreakdown",
    "score_breakdown",
    "compute_score",
    "CompatibilityMatch",
    "RequestMatch",
    "compute_compatibility",
    "rank_requests",
]
