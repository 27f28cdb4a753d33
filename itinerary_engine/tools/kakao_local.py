from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol
import os
import zlib

import httpx

from itinerary_engine.errors import ProviderError
from itinerary_engine.schemas import Coordinate, PlaceCandidate

import logging

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

# Kakao category group code for lodging.
LODGING_CATEGORY = "AD5"


class PlaceProvider(Protocol):
    async def search(
        self,
        query: str,
        category: Optional[str] = None,
        near: Optional[Coordinate] = None,
        radius_m: Optional[int] = None,
    ) -> List[PlaceCandidate]:
        ...


class GeocodeProvider(Protocol):
    async def resolve(self, address: str) -> Optional[Coordinate]:
        ...


@dataclass
class QueryOutcome:
    """Result of one provider call: either places or the error that stopped it."""
    query: str
    ok: bool
    places: List[PlaceCandidate] = field(default_factory=list)
    error: Optional[str] = None


class KakaoLocalClient:
    """
    Place search and address geocoding over the Kakao Local REST API.
    Implements both ``PlaceProvider`` and ``GeocodeProvider``.
    """
    KEYWORD_ENDPOINT = "https://dapi.kakao.com/v2/local/search/keyword.json"
    ADDRESS_ENDPOINT = "https://dapi.kakao.com/v2/local/search/address.json"
    PAGE_SIZE = 15

    def __init__(self, *, api_key: Optional[str] = None, timeout: float = 8.0):
        self.api_key = api_key or os.getenv("KAKAO_REST_API_KEY")
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ProviderError("KAKAO_REST_API_KEY environment variable not configured", reason="auth")
        return {"Authorization": f"KakaoAK {self.api_key}"}

    async def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        headers = self._headers()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderError(f"Network error calling Kakao Local: {exc}", reason="network") from exc

        status = response.status_code
        if status == 401:
            raise ProviderError("Kakao API authentication failed; check the REST key", reason="auth", status=status)
        if status == 403:
            raise ProviderError("Kakao API access denied; check the app's domain settings", reason="forbidden", status=status)
        if status == 429:
            raise ProviderError("Kakao API quota exceeded", reason="rate_limit", status=status)
        if status >= 400:
            raise ProviderError(f"Kakao Local request failed (status {status})", reason="http", status=status)
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError("Kakao Local returned a non-JSON body", reason="http", status=status) from exc

    async def search(
        self,
        query: str,
        category: Optional[str] = None,
        near: Optional[Coordinate] = None,
        radius_m: Optional[int] = None,
    ) -> List[PlaceCandidate]:
        """Run a keyword search and return normalised candidates.

        Kakao does not expose ratings, so every candidate is enriched with a
        simulated rating, review count and popularity score derived from its
        category, name and address.
        """
        params: Dict[str, Any] = {"query": query, "size": self.PAGE_SIZE}
        if category:
            params["category_group_code"] = category
        if near is not None:
            params["x"] = near.lng
            params["y"] = near.lat
            if radius_m:
                params["radius"] = min(int(radius_m), 20000)
                params["sort"] = "distance"

        data = await self._get(self.KEYWORD_ENDPOINT, params)
        documents: Iterable[Dict[str, Any]] = data.get("documents", []) or []
        candidates = [c for c in (self._to_candidate(doc) for doc in documents) if c is not None]
        logger.info("Kakao search '%s' returned %d place(s)", query, len(candidates))
        return candidates

    async def resolve(self, address: str) -> Optional[Coordinate]:
        if not address or not address.strip():
            return None
        try:
            data = await self._get(self.ADDRESS_ENDPOINT, {"query": address})
        except ProviderError:
            logger.warning("Address lookup failed for %r", address, exc_info=True)
            return None
        documents = data.get("documents") or []
        if not documents:
            return None
        first = documents[0]
        try:
            return Coordinate(lat=float(first["y"]), lng=float(first["x"]))
        except (KeyError, TypeError, ValueError):
            logger.warning("Address lookup for %r returned malformed coordinates", address)
            return None

    @staticmethod
    def _to_candidate(doc: Dict[str, Any]) -> Optional[PlaceCandidate]:
        try:
            lat = float(doc.get("y"))
            lng = float(doc.get("x"))
        except (TypeError, ValueError):
            return None
        name = (doc.get("place_name") or "").strip()
        if not name:
            return None
        category = doc.get("category_name") or ""
        address = doc.get("address_name") or ""
        phone = doc.get("phone") or ""
        return PlaceCandidate(
            id=str(doc.get("id") or ""),
            name=name,
            category=category,
            address=address,
            road_address=doc.get("road_address_name") or "",
            lat=lat,
            lng=lng,
            phone=phone,
            rating=simulated_rating(name, category, address, phone),
            review_count=simulated_review_count(name, category, address),
            popularity=popularity_score(category, address),
        )


# ---------- rating simulation (Kakao exposes no review data) ----------
_PREMIUM_CATEGORY = ("호텔", "리조트", "프리미엄", "고급", "미슐랭")
_GOOD_CATEGORY = ("박물관", "미술관", "공원", "궁궐", "문화재")
_PREMIUM_BRANDS = ("롯데", "신세계", "현대", "스타벅스", "투썸", "설빙")
_LOCAL_FAMOUS = ("원조", "본점", "맛집", "유명")
_PREMIUM_AREAS = ("강남구", "서초구", "용산구", "중구")
_POPULAR_AREAS = ("명동", "홍대", "강남역", "여의도", "압구정")


def simulated_rating(name: str, category: str, address: str, phone: str = "") -> float:
    rating = 3.5
    if any(k in category for k in _PREMIUM_CATEGORY):
        rating += 0.5
    elif any(k in category for k in _GOOD_CATEGORY):
        rating += 0.3
    if any(k in name for k in _PREMIUM_BRANDS):
        rating += 0.3
    elif any(k in name for k in _LOCAL_FAMOUS):
        rating += 0.2
    if any(k in address for k in _PREMIUM_AREAS):
        rating += 0.2
    elif any(k in address for k in _POPULAR_AREAS):
        rating += 0.15
    if phone:
        rating += 0.1
    return round(min(5.0, rating), 1)


def simulated_review_count(name: str, category: str, address: str) -> int:
    # Stable per-place jitter in [0, 1) so repeated searches agree.
    jitter = (zlib.crc32(f"{name}|{address}".encode("utf-8")) % 1000) / 1000
    count = 50.0
    if "음식점" in category or "카페" in category:
        count += jitter * 200
    elif "관광" in category:
        count += jitter * 150
    elif "쇼핑" in category:
        count += jitter * 100
    if any(area in address for area in ("강남", "명동", "홍대")):
        count *= 1.5
    return int(count)


def popularity_score(category: str, address: str) -> float:
    score = 50.0
    if "관광" in category:
        score += 30
    if "음식점" in category:
        score += 25
    if "카페" in category:
        score += 20
    if "쇼핑" in category:
        score += 15
    if "제주" in address:
        score += 20
    if "부산" in address:
        score += 15
    if "강남" in address or "명동" in address:
        score += 25
    return min(100.0, score)
