"""Nearest-neighbour ordering of a day's stops plus travel/visit estimates."""
from __future__ import annotations

import math
from typing import Dict, Iterable, List, Sequence, Tuple

from itinerary_engine.schemas import Coordinate, DaySummary, RecommendedPlace, TravelSegment

EARTH_RADIUS_KM = 6371.0

# Urban driving average; above LONG_DRIVE_KM the trip is assumed to use highways.
URBAN_DRIVING_KMH = 25.0
HIGHWAY_DRIVING_KMH = 60.0
LONG_DRIVE_KM = 20.0
DRIVING_COST_PER_KM = 500
WALKING_KMH = 4.0
BICYCLE_KMH = 15.0
TRANSIT_FACTOR = 1.8
TAXI_FACTOR = 0.9
TAXI_FLAG_FALL = 4800
TAXI_COST_PER_KM = 1000

# (max distance km, fare); beyond the last band the long-distance fare applies.
TRANSIT_FARES: Tuple[Tuple[float, int], ...] = ((10.0, 1500), (40.0, 2000))
TRANSIT_LONG_FARE = 3000

VISIT_MINUTES_BY_BUCKET: Dict[str, int] = {
    "culture": 75,
    "attraction": 60,
    "food": 90,
    "cafe": 45,
    "shopping": 120,
    "nightlife": 90,
    "transport": 30,
    "accommodation": 30,
}
DEFAULT_VISIT_MINUTES = 60

# Checked against the raw label before the bucket table.
VISIT_MINUTES_BY_KEYWORD: Tuple[Tuple[Tuple[str, ...], int], ...] = (
    (("테마파크", "체험", "워터파크", "theme park", "amusement", "experience"), 180),
    (("박물관", "미술관", "museum", "gallery"), 90),
)


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lng - a.lng)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def _driving_minutes(distance_km: float) -> float:
    speed = HIGHWAY_DRIVING_KMH if distance_km > LONG_DRIVE_KM else URBAN_DRIVING_KMH
    return distance_km / speed * 60


def _transit_fare(distance_km: float) -> int:
    for limit, fare in TRANSIT_FARES:
        if distance_km <= limit:
            return fare
    return TRANSIT_LONG_FARE


def estimate_travel(origin: Coordinate, destination: Coordinate, mode: str = "driving") -> TravelSegment:
    """Heuristic travel estimate; no live routing call is made."""
    distance = haversine_km(origin, destination)
    if mode == "walking":
        minutes, cost = distance / WALKING_KMH * 60, 0
    elif mode == "bicycle":
        minutes, cost = distance / BICYCLE_KMH * 60, 0
    elif mode == "transit":
        minutes, cost = _driving_minutes(distance) * TRANSIT_FACTOR, _transit_fare(distance)
    elif mode == "taxi":
        minutes = _driving_minutes(distance) * TAXI_FACTOR
        cost = TAXI_FLAG_FALL + math.ceil(distance * TAXI_COST_PER_KM)
    else:
        mode = "driving"
        minutes, cost = _driving_minutes(distance), math.ceil(distance * DRIVING_COST_PER_KM)
    return TravelSegment(
        distance_km=round(distance, 1),
        duration_minutes=math.ceil(round(minutes, 6)),
        cost=int(cost),
        mode=mode,
    )


def visit_minutes_for(place: RecommendedPlace) -> int:
    label = f"{place.category} {place.name}".lower()
    for keywords, minutes in VISIT_MINUTES_BY_KEYWORD:
        if any(keyword in label for keyword in keywords):
            return minutes
    return VISIT_MINUTES_BY_BUCKET.get(place.bucket, DEFAULT_VISIT_MINUTES)


def nearest_neighbor_order(start: Coordinate, stops: Sequence[RecommendedPlace]) -> List[RecommendedPlace]:
    """Greedy tour: always step to the closest unvisited stop."""
    remaining = list(stops)
    ordered: List[RecommendedPlace] = []
    current = start
    while remaining:
        nearest_index = 0
        shortest = haversine_km(current, remaining[0].coordinate)
        for index in range(1, len(remaining)):
            distance = haversine_km(current, remaining[index].coordinate)
            if distance < shortest:
                shortest = distance
                nearest_index = index
        nearest = remaining.pop(nearest_index)
        ordered.append(nearest)
        current = nearest.coordinate
    return ordered


def optimize_day(
    stops: Sequence[RecommendedPlace],
    start: Coordinate,
    transport_mode: str = "driving",
) -> List[RecommendedPlace]:
    """Order ``stops`` from ``start`` and attach segments and visit durations.

    Stops are mutated in place: each receives the travel segment leading into
    it (the first one relative to ``start``) and its suggested visit length.
    """
    ordered = nearest_neighbor_order(start, stops)
    current = start
    for stop in ordered:
        stop.segment = estimate_travel(current, stop.coordinate, transport_mode)
        stop.visit_minutes = visit_minutes_for(stop)
        current = stop.coordinate
    return ordered


def format_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}min"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}min" if rest else f"{hours}h"


def format_cost(won: int) -> str:
    return f"{won:,} KRW"


def day_summary(stops: Iterable[RecommendedPlace]) -> DaySummary:
    """Recompute a day's totals from its stops."""
    stops = list(stops)
    travel = sum(s.segment.duration_minutes for s in stops if s.segment)
    visit = sum(s.visit_minutes for s in stops)
    distance = round(sum(s.segment.distance_km for s in stops if s.segment), 1)
    cost = sum(s.segment.cost for s in stops if s.segment)
    return DaySummary(
        stops=sum(1 for s in stops if not s.is_accommodation_event),
        travel_minutes=travel,
        visit_minutes=visit,
        total_minutes=travel + visit,
        distance_km=distance,
        cost=cost,
        travel_label=format_duration(travel),
        cost_label=format_cost(cost),
    )
