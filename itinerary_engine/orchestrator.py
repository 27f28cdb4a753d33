# itinerary_engine/orchestrator.py
from __future__ import annotations

import os
import zlib
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple
import logging

from itinerary_engine.schemas import (
    BookedAccommodation,
    Coordinate,
    Itinerary,
    ItineraryRequest,
    ItineraryResponse,
    MustVisitPlace,
    RecommendedPlace,
)
from itinerary_engine.config import Settings
from itinerary_engine.errors import DayGenerationFailure, ItineraryGenerationFailure
from itinerary_engine.agents.foundation_agent import extract_foundation
from itinerary_engine.agents.place_aggregator import aggregate
from itinerary_engine.agents.day_allocator import allocate_day, categorize_pool
from itinerary_engine.agents.route_optimizer import day_summary, haversine_km, optimize_day
from itinerary_engine.agents.accommodation import append_check_in, prepend_check_out
from itinerary_engine.agents.regions import region_center
from itinerary_engine.tools.kakao_local import GeocodeProvider, KakaoLocalClient, PlaceProvider

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

# Candidate budget per trip day; bounds the number of provider calls.
CANDIDATES_PER_DAY = 12

# Searched places this close to a must-visit entry are treated as the same place.
SAME_PLACE_KM = 0.03


def _must_visit_place(entry: MustVisitPlace, coordinate: Coordinate) -> RecommendedPlace:
    key = entry.place_id or f"{entry.name}|{coordinate.lat:.5f}|{coordinate.lng:.5f}"
    return RecommendedPlace(
        id=f"must:{entry.place_id}" if entry.place_id else f"must:{zlib.crc32(key.encode('utf-8')):08x}",
        name=entry.name,
        bucket="attraction",
        address=entry.address,
        lat=coordinate.lat,
        lng=coordinate.lng,
        tags=["must-visit"],
        source="user",
    )


def _same_place(place: RecommendedPlace, must: RecommendedPlace) -> bool:
    # must-visit ids hash the same key as provider ids, only the prefix differs
    if place.id == "place:" + must.id.split(":", 1)[-1]:
        return True
    if place.name.strip() == must.name.strip():
        return True
    return haversine_km(place.coordinate, must.coordinate) <= SAME_PLACE_KM


def _without_must_visit(
    places: Sequence[RecommendedPlace], must_visit: Sequence[RecommendedPlace]
) -> List[RecommendedPlace]:
    """Drop searched places that are really one of the user's must-visit places."""
    kept = [p for p in places if not any(_same_place(p, must) for must in must_visit)]
    if len(kept) < len(places):
        logger.info("Removed %d searched place(s) duplicating must-visit entries", len(places) - len(kept))
    return kept


async def resolve_must_visit(
    entries: Sequence[MustVisitPlace],
    geocoder: Optional[GeocodeProvider],
    notes: List[str],
) -> List[RecommendedPlace]:
    """Turn user must-visit entries into places, geocoding those without coordinates."""
    resolved: List[RecommendedPlace] = []
    for entry in entries:
        coordinate: Optional[Coordinate] = None
        if entry.lat is not None and entry.lng is not None:
            coordinate = Coordinate(lat=entry.lat, lng=entry.lng)
        elif geocoder is not None:
            try:
                coordinate = await geocoder.resolve(entry.address or entry.name)
            except Exception:
                logger.warning("Geocoding must-visit place %r failed", entry.name, exc_info=True)
        if coordinate is None:
            notes.append(f"Could not locate must-visit place '{entry.name}'; it was left out.")
            continue
        resolved.append(_must_visit_place(entry, coordinate))
    return resolved


def _spread_over_days(places: Sequence[RecommendedPlace], days: int) -> Dict[int, List[RecommendedPlace]]:
    by_day: Dict[int, List[RecommendedPlace]] = {}
    for index, place in enumerate(places):
        by_day.setdefault(index % days, []).append(place)
    return by_day


async def _build_day(
    day: int,
    *,
    destination: str,
    interests: Sequence[str],
    pools: Dict[str, List[RecommendedPlace]],
    used_ids: Set[str],
    start: Coordinate,
    previous_check_in: Optional[RecommendedPlace],
    transport_mode: str,
    accommodation_type: str,
    provider: Optional[PlaceProvider],
    geocoder: Optional[GeocodeProvider],
    booked: Optional[BookedAccommodation],
    must_visit: Sequence[RecommendedPlace],
    settings: Settings,
) -> Tuple[List[RecommendedPlace], Set[str]]:
    try:
        day_start = previous_check_in.coordinate if previous_check_in is not None else start
        stops, used_ids = allocate_day(pools, used_ids, interests, must_visit)
        ordered = optimize_day(stops, day_start, transport_mode)
        ordered = prepend_check_out(ordered, previous_check_in, day)
        ordered = await append_check_in(
            ordered,
            destination,
            accommodation_type,
            provider,
            geocoder,
            booked,
            day=day,
            fallback_anchor=day_start,
            transport_mode=transport_mode,
            settings=settings,
        )
    except Exception as exc:
        raise DayGenerationFailure(day, str(exc) or exc.__class__.__name__) from exc
    return ordered, used_ids


def _last_check_in(stops: Sequence[RecommendedPlace]) -> Optional[RecommendedPlace]:
    if stops and stops[-1].accommodation is not None and stops[-1].accommodation.event == "check_in":
        return stops[-1]
    return None


async def _assemble(
    destination: str,
    interests: Sequence[str],
    days: int,
    start_location: Optional[Coordinate],
    transport_mode: str,
    accommodation_type: str,
    provider: Optional[PlaceProvider],
    geocoder: Optional[GeocodeProvider],
    booked: Optional[BookedAccommodation],
    must_visit: Sequence[RecommendedPlace],
    settings: Settings,
    notes: List[str],
) -> Itinerary:
    days = max(1, int(days))
    start = start_location or region_center(destination)
    logger.info(
        "Itinerary start: destination=%s, days=%d, interests=%s, mode=%s, lodging=%s",
        destination,
        days,
        ", ".join(interests) or "-",
        transport_mode,
        "booked" if booked else accommodation_type,
    )

    if provider is None:
        raise ItineraryGenerationFailure("no place provider configured")
    aggregation = await aggregate(provider, destination, interests, days * CANDIDATES_PER_DAY, settings)
    notes.extend(aggregation.notes)
    pools = categorize_pool(_without_must_visit(aggregation.places, must_visit))
    must_by_day = _spread_over_days(must_visit, days)

    itinerary: Itinerary = {}
    used_ids: Set[str] = set()
    previous_check_in: Optional[RecommendedPlace] = None
    for day in range(days):
        try:
            stops, day_used = await _build_day(
                day,
                destination=destination,
                interests=interests,
                pools=pools,
                used_ids=set(used_ids),
                start=start,
                previous_check_in=previous_check_in,
                transport_mode=transport_mode,
                accommodation_type=accommodation_type,
                provider=provider,
                geocoder=geocoder,
                booked=booked,
                must_visit=must_by_day.get(day, []),
                settings=settings,
            )
        except DayGenerationFailure as exc:
            logger.exception("Day %d could not be generated; leaving it empty", day)
            notes.append(f"Day {day + 1} could not be planned ({exc}).")
            itinerary[day] = []
            previous_check_in = None
            continue
        itinerary[day] = stops
        used_ids = day_used
        previous_check_in = _last_check_in(stops)
        logger.info("Day %d planned with %d stop(s)", day, len(stops))
    return itinerary


async def generate_itinerary(
    destination: str,
    interests: Sequence[str],
    days: int,
    start_location: Optional[Coordinate],
    transport_mode: str,
    accommodation_type: str,
    provider: Optional[PlaceProvider],
    geocoder: Optional[GeocodeProvider] = None,
    booked: Optional[BookedAccommodation] = None,
    must_visit: Sequence[RecommendedPlace] = (),
    settings: Settings | None = None,
    notes: Optional[List[str]] = None,
) -> Itinerary:
    """Build the day-indexed itinerary. Never raises.

    Days are generated strictly in order because each day starts from the
    previous day's check-in. A failing day is left empty; a failure outside
    the per-day loop yields an empty itinerary.
    """
    notes = notes if notes is not None else []
    try:
        return await _assemble(
            destination,
            list(interests),
            days,
            start_location,
            transport_mode,
            accommodation_type,
            provider,
            geocoder,
            booked,
            must_visit,
            settings or Settings.from_env(),
            notes,
        )
    except Exception as exc:
        logger.exception("Itinerary generation failed for %s", destination)
        notes.append(f"Itinerary generation failed: {exc}")
        return {}


def _is_degraded(itinerary: Itinerary, requested_days: int) -> bool:
    if len(itinerary) < requested_days:
        return True
    for stops in itinerary.values():
        if not stops:
            return True
        if any(stop.source in ("seed", "fallback") for stop in stops):
            return True
    return False


async def plan_itinerary(
    payload: Dict[str, Any] | ItineraryRequest,
    provider: Optional[PlaceProvider] = None,
    geocoder: Optional[GeocodeProvider] = None,
    settings: Settings | None = None,
) -> ItineraryResponse:
    """Validate a request payload, run the engine and attach per-day summaries."""
    request = payload if isinstance(payload, ItineraryRequest) else ItineraryRequest.model_validate(payload)
    settings = settings or Settings.from_env()
    foundation = extract_foundation(request)

    if provider is None or geocoder is None:
        client = KakaoLocalClient(api_key=settings.kakao_api_key, timeout=settings.provider_timeout)
        provider = provider or client
        geocoder = geocoder or client

    notes: List[str] = list(foundation["notes"])
    must_visit = await resolve_must_visit(request.must_visit, geocoder, notes)

    itinerary = await generate_itinerary(
        foundation["destination"],
        foundation["interests"],
        foundation["days"],
        request.start_location,
        foundation["transport_mode"],
        foundation["accommodation_type"],
        provider,
        geocoder,
        request.booked_accommodation,
        must_visit,
        settings,
        notes,
    )

    summaries = {day: day_summary(stops) for day, stops in itinerary.items()}
    degraded = _is_degraded(itinerary, foundation["days"])
    if degraded:
        logger.warning("Returning degraded itinerary for %s", foundation["destination"])

    return ItineraryResponse(
        destination=foundation["destination"],
        days=itinerary,
        summaries=summaries,
        notes=list(dict.fromkeys(notes)),
        degraded=degraded,
    )
