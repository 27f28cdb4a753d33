"""Lodging check-in / check-out events that link consecutive days."""
from __future__ import annotations

import logging
import os
from typing import List, Optional, Sequence

from itinerary_engine.agents.route_optimizer import estimate_travel, haversine_km
from itinerary_engine.config import Settings
from itinerary_engine.errors import AccommodationNotFound, GeocodeFailure
from itinerary_engine.schemas import (
    AccommodationInfo,
    BookedAccommodation,
    Coordinate,
    PlaceCandidate,
    RecommendedPlace,
)
from itinerary_engine.tools.kakao_local import LODGING_CATEGORY, GeocodeProvider, PlaceProvider

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

CHECK_IN_MINUTES = 30
CHECK_OUT_MINUTES = 20

LODGING_KEYWORDS = {
    "hotel": "호텔",
    "airbnb": "숙소",
    "guesthouse": "게스트하우스",
    "resort": "리조트",
    "other": "펜션",
}


def _event_name(root: str, event: str) -> str:
    return f"{root} ({'check-in' if event == 'check_in' else 'check-out'})"


def _anchor(stops: Sequence[RecommendedPlace], fallback: Optional[Coordinate]) -> Optional[Coordinate]:
    for stop in reversed(stops):
        if not stop.is_accommodation_event:
            return stop.coordinate
    if stops:
        return stops[-1].coordinate
    return fallback


def _check_in_event(
    *,
    day: int,
    root: str,
    coordinate: Coordinate,
    accommodation_type: str,
    address: str = "",
    rating: Optional[float] = None,
    review_count: int = 0,
    booked: bool = False,
    needs_manual_search: bool = False,
    tags: Sequence[str] = (),
    source: str = "provider",
) -> RecommendedPlace:
    return RecommendedPlace(
        id=f"lodging:{day}:check_in",
        name=_event_name(root, "check_in"),
        bucket="accommodation",
        category="Accommodation",
        address=address,
        lat=coordinate.lat,
        lng=coordinate.lng,
        rating=rating,
        review_count=review_count,
        tags=list(tags),
        visit_minutes=CHECK_IN_MINUTES,
        accommodation=AccommodationInfo(
            event="check_in",
            root_name=root,
            accommodation_type=accommodation_type,
            address=address,
            booked=booked,
            needs_manual_search=needs_manual_search,
        ),
        source=source,
    )


def prepend_check_out(
    stops: List[RecommendedPlace],
    previous_check_in: Optional[RecommendedPlace],
    day: int = 0,
) -> List[RecommendedPlace]:
    """Return ``stops`` led by a check-out mirroring yesterday's check-in."""
    if previous_check_in is None or previous_check_in.accommodation is None:
        return list(stops)
    info = previous_check_in.accommodation
    check_out = RecommendedPlace(
        id=f"lodging:{day}:check_out",
        name=_event_name(info.root_name, "check_out"),
        bucket="accommodation",
        category=previous_check_in.category,
        address=previous_check_in.address,
        lat=previous_check_in.lat,
        lng=previous_check_in.lng,
        rating=previous_check_in.rating,
        review_count=previous_check_in.review_count,
        tags=list(previous_check_in.tags),
        visit_minutes=CHECK_OUT_MINUTES,
        accommodation=info.model_copy(update={"event": "check_out"}),
        source=previous_check_in.source,
    )
    return [check_out, *stops]


async def _resolve_booked(
    booked: BookedAccommodation,
    geocoder: Optional[GeocodeProvider],
    anchor: Optional[Coordinate],
) -> Coordinate:
    if booked.coordinate is not None:
        return booked.coordinate
    try:
        if geocoder is None or not booked.address:
            raise GeocodeFailure("no geocoder or address available for booked lodging")
        resolved = await geocoder.resolve(booked.address)
        if resolved is None:
            raise GeocodeFailure(f"address {booked.address!r} did not resolve")
        return resolved
    except Exception:
        logger.warning("Could not geocode booked lodging %r; anchoring to last stop", booked.name, exc_info=True)
        if anchor is None:
            raise
        return anchor


async def _search_lodging(
    provider: PlaceProvider,
    destination: str,
    accommodation_type: str,
    near: Coordinate,
    radius_km: float,
) -> PlaceCandidate:
    keyword = LODGING_KEYWORDS.get(accommodation_type, LODGING_KEYWORDS["hotel"])
    query = f"{destination} {keyword}"
    results = await provider.search(
        query, category=LODGING_CATEGORY, near=near, radius_m=int(radius_km * 1000)
    )
    nearby = [
        c for c in results
        if haversine_km(near, Coordinate(lat=c.lat, lng=c.lng)) <= radius_km
    ]
    if not nearby:
        raise AccommodationNotFound(f"no {accommodation_type} within {radius_km:.1f}km for '{query}'")
    return max(nearby, key=lambda c: (c.rating or 0.0, c.review_count))


async def append_check_in(
    stops: List[RecommendedPlace],
    destination: str,
    accommodation_type: str,
    provider: Optional[PlaceProvider],
    geocoder: Optional[GeocodeProvider] = None,
    booked: Optional[BookedAccommodation] = None,
    *,
    day: int = 0,
    fallback_anchor: Optional[Coordinate] = None,
    transport_mode: str = "driving",
    settings: Settings | None = None,
) -> List[RecommendedPlace]:
    """Return ``stops`` followed by a check-in event. Never raises.

    A booked lodging is placed at its own (or geocoded) coordinate without a
    search. Otherwise the top-rated lodging of the requested type near the
    day's last stop is used, or a placeholder asking the user to search.
    """
    settings = settings or Settings.from_env()
    if accommodation_type not in LODGING_KEYWORDS:
        accommodation_type = "hotel"
    anchor = _anchor(stops, fallback_anchor)
    event: Optional[RecommendedPlace] = None

    if booked is not None:
        try:
            coordinate = await _resolve_booked(booked, geocoder, anchor)
            root = booked.name.strip() or f"{destination} lodging"
            event = _check_in_event(
                day=day,
                root=root,
                coordinate=coordinate,
                accommodation_type=accommodation_type,
                address=booked.address,
                booked=True,
                tags=["booked-lodging"],
                source="user",
            )
        except Exception:
            logger.warning("Booked lodging unusable for day %d; falling back to placeholder", day, exc_info=True)
    elif provider is not None and anchor is not None:
        try:
            found = await _search_lodging(
                provider, destination, accommodation_type, anchor, settings.lodging_radius_km
            )
            event = _check_in_event(
                day=day,
                root=found.name,
                coordinate=Coordinate(lat=found.lat, lng=found.lng),
                accommodation_type=accommodation_type,
                address=found.address or found.road_address,
                rating=found.rating,
                review_count=found.review_count,
                tags=["recommended-lodging"],
            )
            logger.info("Day %d lodging: %s", day, found.name)
        except AccommodationNotFound as exc:
            logger.warning("Day %d: %s", day, exc)
        except Exception:
            logger.warning("Lodging search failed for day %d", day, exc_info=True)

    if event is None:
        if anchor is None:
            logger.warning("Day %d has no anchor coordinate; skipping check-in", day)
            return list(stops)
        event = _check_in_event(
            day=day,
            root=f"{destination} {accommodation_type}",
            coordinate=anchor,
            accommodation_type=accommodation_type,
            needs_manual_search=True,
            tags=["lodging-placeholder", "search-manually"],
            source="fallback",
        )

    if anchor is not None and stops:
        event.segment = estimate_travel(stops[-1].coordinate, event.coordinate, transport_mode)
    return [*stops, event]
