"""Checks that a destination offers the chosen intercity transport facility."""
from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional, Tuple

from itinerary_engine.agents.route_optimizer import haversine_km
from itinerary_engine.schemas import Coordinate, TransportFacility, TransportValidation
from itinerary_engine.tools.kakao_local import GeocodeProvider, PlaceProvider

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

TRANSPORT_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "airplane": ("공항", "항공", "airport"),
    "ktx": ("KTX", "ktx역", "고속철도"),
    "train": ("역", "기차역", "철도역", "station"),
    "bus": ("터미널", "버스터미널", "시외버스", "terminal"),
}

FACILITY_NAMES: Dict[str, str] = {
    "airplane": "airport",
    "ktx": "KTX station",
    "train": "train station",
    "bus": "bus terminal",
}

ALTERNATIVE_RADIUS_KM = 100.0
ALTERNATIVES_PER_TYPE = 2
MAX_ALTERNATIVES = 3


async def find_alternatives(
    provider: PlaceProvider,
    geocoder: Optional[GeocodeProvider],
    destination: str,
    original_type: str,
) -> List[TransportFacility]:
    if geocoder is None:
        return []
    center = await geocoder.resolve(destination)
    if center is None:
        return []

    alternatives: List[TransportFacility] = []
    for transport_type, keywords in TRANSPORT_KEYWORDS.items():
        if transport_type == original_type:
            continue
        try:
            results = await provider.search(keywords[0], near=center)
        except Exception:
            logger.warning("Alternative search for %s near %s failed", transport_type, destination, exc_info=True)
            continue
        nearby: List[TransportFacility] = []
        for place in results:
            distance = haversine_km(center, Coordinate(lat=place.lat, lng=place.lng))
            if distance <= ALTERNATIVE_RADIUS_KM:
                nearby.append(
                    TransportFacility(
                        name=place.name,
                        address=place.address,
                        lat=place.lat,
                        lng=place.lng,
                        distance_km=round(distance, 1),
                    )
                )
        nearby.sort(key=lambda f: f.distance_km or 0.0)
        alternatives.extend(nearby[:ALTERNATIVES_PER_TYPE])
    return alternatives[:MAX_ALTERNATIVES]


async def validate_transport_facility(
    provider: PlaceProvider,
    geocoder: Optional[GeocodeProvider],
    destination: str,
    transport_type: str,
) -> TransportValidation:
    keywords = TRANSPORT_KEYWORDS.get(transport_type)
    if not keywords:
        return TransportValidation(is_valid=False, message=f"Unsupported transport type '{transport_type}'.")

    query = f"{destination} {keywords[0]}"
    logger.info("Validating transport facility: %s", query)
    try:
        results = await provider.search(query)
        destination_lower = destination.lower()
        valid = [
            place for place in results
            if (destination_lower in place.name.lower() or destination_lower in place.address.lower())
            and any(keyword.lower() in place.name.lower() for keyword in keywords)
        ]
        if valid:
            facility = valid[0]
            return TransportValidation(
                is_valid=True,
                facility=TransportFacility(
                    name=facility.name, address=facility.address, lat=facility.lat, lng=facility.lng
                ),
                message=f"{facility.name} is available.",
            )
        alternatives = await find_alternatives(provider, geocoder, destination, transport_type)
        return TransportValidation(
            is_valid=False,
            alternatives=alternatives,
            message=f"{destination} has no {FACILITY_NAMES[transport_type]}.",
        )
    except Exception:
        logger.warning("Transport facility validation failed for %s", query, exc_info=True)
        return TransportValidation(
            is_valid=False,
            message="Transport facility information is unavailable; please try again.",
        )
