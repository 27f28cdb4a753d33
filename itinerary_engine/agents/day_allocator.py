"""Slot-based allocation of ranked places to a single day."""
from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Set, Tuple

from itinerary_engine.agents.preference_scorer import rank_key
from itinerary_engine.schemas import RecommendedPlace

MAX_STOPS_PER_DAY = 8

# (slot name, bucket, how many) in day order.
SLOT_TEMPLATE: Tuple[Tuple[str, str, int], ...] = (
    ("morning", "attraction", 2),
    ("lunch", "food", 1),
    ("afternoon-culture", "culture", 1),
    ("afternoon-shopping", "shopping", 1),
    ("coffee", "cafe", 1),
    ("dinner", "food", 1),
    ("evening", "nightlife", 1),
)


def categorize_pool(places: Iterable[RecommendedPlace]) -> Dict[str, List[RecommendedPlace]]:
    pools: Dict[str, List[RecommendedPlace]] = {}
    for place in places:
        pools.setdefault(place.bucket, []).append(place)
    return pools


def allocate_day(
    pools: Dict[str, List[RecommendedPlace]],
    used_ids: Set[str],
    interests: Sequence[str] = (),
    must_visit: Sequence[RecommendedPlace] = (),
) -> Tuple[List[RecommendedPlace], Set[str]]:
    """Pick up to eight unused places for one day.

    ``used_ids`` is the trip-wide accumulator; the returned set is the same
    object, extended with every id picked here. ``interests`` already shaped
    each place's match score, so it is accepted for symmetry with the other
    stages but not consulted again.
    """
    stops: List[RecommendedPlace] = []

    for place in must_visit:
        if len(stops) >= MAX_STOPS_PER_DAY:
            break
        if place.id in used_ids:
            continue
        stops.append(place)
        used_ids.add(place.id)

    for _slot, bucket, count in SLOT_TEMPLATE:
        if len(stops) >= MAX_STOPS_PER_DAY:
            break
        candidates = sorted(
            (p for p in pools.get(bucket, []) if p.id not in used_ids),
            key=rank_key,
            reverse=True,
        )
        picked = 0
        for place in candidates:
            if picked >= count or len(stops) >= MAX_STOPS_PER_DAY:
                break
            if place.id in used_ids:
                continue
            stops.append(place)
            used_ids.add(place.id)
            picked += 1

    if len(stops) < MAX_STOPS_PER_DAY:
        leftovers = sorted(
            (
                p
                for places in pools.values()
                for p in places
                if p.id not in used_ids
            ),
            key=lambda p: p.match_score,
            reverse=True,
        )
        for place in leftovers:
            if len(stops) >= MAX_STOPS_PER_DAY:
                break
            if place.id in used_ids:
                continue
            stops.append(place)
            used_ids.add(place.id)

    return stops, used_ids
