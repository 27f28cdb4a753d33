from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from itinerary_engine.config import Settings
from itinerary_engine.errors import ProviderError
from itinerary_engine.schemas import Coordinate, PlaceCandidate

# Mixed category labels so every bucket of the slot template gets candidates.
_CATEGORIES = (
    "여행 > 관광,명소",
    "음식점 > 한식",
    "음식점 > 카페",
    "쇼핑 > 백화점",
    "문화,예술 > 박물관",
    "음식점 > 술집 > 호프",
    "여행 > 관광,명소 > 공원",
    "음식점 > 일식",
)


def synthetic_candidates(count: int = 20, prefix: str = "Spot") -> List[PlaceCandidate]:
    """Candidates spread around Jeju with ratings between 3.0 and 4.8."""
    candidates = []
    for i in range(count):
        rating = round(3.0 + (1.8 * i / max(1, count - 1)), 1)
        candidates.append(
            PlaceCandidate(
                id=f"{prefix.lower()}-{i}",
                name=f"{prefix} {i}",
                category=_CATEGORIES[i % len(_CATEGORIES)],
                address=f"제주특별자치도 제주시 {prefix} {i}",
                lat=33.45 + i * 0.01,
                lng=126.50 + (i % 5) * 0.02,
                rating=rating,
                review_count=40 + i * 10,
            )
        )
    return candidates


class StubProvider:
    """Place provider returning canned results per query (or a default list)."""

    def __init__(
        self,
        default: Optional[List[PlaceCandidate]] = None,
        by_query: Optional[Dict[str, List[PlaceCandidate]]] = None,
        fail_queries: Optional[set] = None,
        lodging: Optional[List[PlaceCandidate]] = None,
    ):
        self.default = default or []
        self.by_query = by_query or {}
        self.fail_queries = fail_queries or set()
        self.lodging = lodging or []
        self.calls: List[dict] = []

    async def search(self, query, category=None, near=None, radius_m=None):
        self.calls.append({"query": query, "category": category, "near": near, "radius_m": radius_m})
        if query in self.fail_queries:
            raise ProviderError(f"stub failure for {query}", reason="network")
        if category == "AD5":
            return list(self.lodging)
        return list(self.by_query.get(query, self.default))


class FailingProvider:
    def __init__(self):
        self.calls = 0

    async def search(self, query, category=None, near=None, radius_m=None):
        self.calls += 1
        raise ProviderError("provider offline", reason="network")


class StubGeocoder:
    def __init__(self, result: Optional[Coordinate] = None):
        self.result = result
        self.calls: List[str] = []

    async def resolve(self, address):
        self.calls.append(address)
        return self.result


@pytest.fixture
def settings() -> Settings:
    return Settings(kakao_api_key="test-key", provider_timeout=1.0, max_concurrency=3, lodging_radius_km=5.0)
