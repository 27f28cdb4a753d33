"""Multi-query place aggregation with ranking and seed fallback."""
from __future__ import annotations

import asyncio
import logging
import os
import zlib
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from itinerary_engine.agents.categorizer import categorize, derive_tags
from itinerary_engine.agents.preference_scorer import composite_score, final_score
from itinerary_engine.agents.regions import DEFAULT_CENTER, region_seeds, region_specific_queries
from itinerary_engine.config import Settings
from itinerary_engine.errors import AggregationExhausted
from itinerary_engine.schemas import PlaceCandidate, RecommendedPlace
from itinerary_engine.tools.kakao_local import PlaceProvider, QueryOutcome

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

GENERIC_QUERY_TERMS = ("food", "attraction", "cafe", "shopping", "museum", "park", "landmark", "experience")
MIN_RATING = 3.5
PER_QUERY_CAP = 3
SEED_RATING = 4.5


@dataclass
class AggregationResult:
    places: List[RecommendedPlace] = field(default_factory=list)
    degraded: bool = False
    notes: List[str] = field(default_factory=list)
    failed_queries: List[str] = field(default_factory=list)


def build_queries(region: str) -> List[str]:
    queries = [f"{region} {term}" for term in GENERIC_QUERY_TERMS]
    for query in region_specific_queries(region):
        if query not in queries:
            queries.append(query)
    return queries


def place_id_for(candidate: PlaceCandidate) -> str:
    if candidate.id:
        return f"place:{candidate.id}"
    digest = zlib.crc32(f"{candidate.name}|{candidate.lat:.5f}|{candidate.lng:.5f}".encode("utf-8"))
    return f"place:{digest:08x}"


def normalise_candidate(candidate: PlaceCandidate, interests: Sequence[str]) -> RecommendedPlace:
    place = RecommendedPlace(
        id=place_id_for(candidate),
        name=candidate.name,
        bucket=categorize(candidate.category),
        category=candidate.category,
        address=candidate.address or candidate.road_address,
        lat=candidate.lat,
        lng=candidate.lng,
        rating=None if candidate.rating is None else max(0.0, min(5.0, candidate.rating)),
        review_count=max(0, candidate.review_count),
        tags=derive_tags(candidate.category),
        source="provider",
    )
    place.match_score = composite_score(place, interests, candidate.popularity)
    return place


def dedupe_places(places: Iterable[RecommendedPlace]) -> List[RecommendedPlace]:
    """Drop later entries sharing a name, an id or a non-empty address."""
    seen_names: set[str] = set()
    seen_addresses: set[str] = set()
    seen_ids: set[str] = set()
    unique: List[RecommendedPlace] = []
    for place in places:
        address = place.address.strip()
        if place.name in seen_names or place.id in seen_ids:
            continue
        if address and address in seen_addresses:
            continue
        seen_names.add(place.name)
        seen_ids.add(place.id)
        if address:
            seen_addresses.add(address)
        unique.append(place)
    return unique


async def _run_query(
    provider: PlaceProvider,
    query: str,
    semaphore: asyncio.Semaphore,
    timeout: float,
) -> QueryOutcome:
    async with semaphore:
        try:
            places = await asyncio.wait_for(provider.search(query), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Search query '%s' timed out after %.1fs", query, timeout)
            return QueryOutcome(query=query, ok=False, error="timeout")
        except Exception as exc:
            logger.warning("Search failed for query '%s'", query, exc_info=True)
            return QueryOutcome(query=query, ok=False, error=str(exc) or exc.__class__.__name__)
    return QueryOutcome(query=query, ok=True, places=list(places or []))


async def fan_out_queries(
    provider: PlaceProvider,
    queries: Sequence[str],
    settings: Settings,
) -> List[QueryOutcome]:
    semaphore = asyncio.Semaphore(max(1, settings.max_concurrency))
    results = await asyncio.gather(
        *[_run_query(provider, q, semaphore, settings.provider_timeout) for q in queries],
        return_exceptions=True,
    )
    outcomes: List[QueryOutcome] = []
    for query, result in zip(queries, results):
        if isinstance(result, BaseException):
            logger.warning("Query task for '%s' raised %r", query, result)
            outcomes.append(QueryOutcome(query=query, ok=False, error=repr(result)))
        else:
            outcomes.append(result)
    return outcomes


def seed_fallback(region: str, interests: Sequence[str]) -> List[RecommendedPlace]:
    """Built-in places for known regions, or one placeholder at the default centre."""
    seeds: List[RecommendedPlace] = []
    for index, (name, category, lat, lng) in enumerate(region_seeds(region)):
        place = RecommendedPlace(
            id=f"seed:{zlib.crc32(name.encode('utf-8')):08x}",
            name=name,
            bucket=categorize(category),
            category=category,
            lat=lat,
            lng=lng,
            rating=SEED_RATING,
            tags=derive_tags(category) + ["seed"],
            source="seed",
        )
        # Keep the curated order as a tie-breaker.
        place.match_score = composite_score(place, interests) - index * 0.01
        seeds.append(place)
    if seeds:
        return seeds

    name = f"{region.strip() or 'Destination'} city centre"
    return [
        RecommendedPlace(
            id=f"fallback:{zlib.crc32(name.encode('utf-8')):08x}",
            name=name,
            bucket="attraction",
            category="Placeholder",
            lat=DEFAULT_CENTER.lat,
            lng=DEFAULT_CENTER.lng,
            tags=["placeholder"],
            source="fallback",
        )
    ]


async def aggregate(
    provider: PlaceProvider,
    region: str,
    interests: Sequence[str],
    desired_count: int,
    settings: Settings | None = None,
) -> AggregationResult:
    """Search, normalise, de-duplicate and rank candidate places for ``region``.

    Never raises: provider failures are isolated per query and an empty
    outcome degrades to seed data (or a single placeholder place).
    """
    settings = settings or Settings.from_env()
    desired_count = max(1, int(desired_count))
    queries = build_queries(region)
    logger.info("Aggregating places for %s with %d queries", region, len(queries))

    result = AggregationResult()
    rated: List[RecommendedPlace] = []
    unrated: List[RecommendedPlace] = []
    try:
        outcomes = await fan_out_queries(provider, queries, settings)
        for outcome in outcomes:
            if not outcome.ok:
                result.failed_queries.append(outcome.query)
                continue
            places = [normalise_candidate(c, interests) for c in outcome.places]
            places.sort(key=lambda p: p.match_score, reverse=True)
            top = [p for p in places if p.rating is not None and p.rating >= MIN_RATING][:PER_QUERY_CAP]
            rated.extend(top)
            unrated.extend([p for p in places if p.rating is None][:PER_QUERY_CAP])
            logger.info("Query '%s' kept %d high-quality result(s)", outcome.query, len(top))

        pool = rated
        if not pool and unrated:
            logger.warning("No rated candidates for %s; accepting %d unrated place(s)", region, len(unrated))
            result.notes.append(f"No rated places found for {region}; unrated results were used.")
            pool = unrated

        ranked = sorted(dedupe_places(pool), key=final_score, reverse=True)
        if not ranked:
            raise AggregationExhausted(
                f"{len(result.failed_queries)}/{len(queries)} queries failed and none qualified"
            )
        result.places = ranked[:desired_count]
    except AggregationExhausted as exc:
        logger.warning("Aggregation exhausted for %s (%s); using built-in places", region, exc)
        result.places = seed_fallback(region, interests)[:desired_count]
        result.degraded = True
        result.notes.append(f"Live place search unavailable for {region}; showing built-in suggestions.")
    except Exception:
        logger.exception("Unexpected aggregation failure for %s; using built-in places", region)
        result.places = seed_fallback(region, interests)[:desired_count]
        result.degraded = True
        result.notes.append(f"Live place search unavailable for {region}; showing built-in suggestions.")

    logger.info(
        "Aggregated %d place(s) for %s (%d failed queries, degraded=%s)",
        len(result.places),
        region,
        len(result.failed_queries),
        result.degraded,
    )
    return result


async def aggregate_places(
    provider: PlaceProvider,
    region: str,
    interests: Sequence[str],
    desired_count: int,
    settings: Settings | None = None,
) -> List[RecommendedPlace]:
    result = await aggregate(provider, region, interests, desired_count, settings)
    return result.places
