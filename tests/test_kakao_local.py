import asyncio
from typing import Any, Dict, List

import httpx
import pytest

from itinerary_engine.errors import ProviderError
from itinerary_engine.schemas import Coordinate
from itinerary_engine.tools.kakao_local import (
    KakaoLocalClient,
    popularity_score,
    simulated_rating,
    simulated_review_count,
)


class DummyResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        return self._payload


class DummyAsyncClient:
    def __init__(self, response, requests, *args, **kwargs):
        self.response = response
        self.requests = requests

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def get(self, url, params=None, headers=None):
        self.requests.append({"url": url, "params": params, "headers": headers})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _patch_client(monkeypatch, response) -> List[Dict[str, Any]]:
    requests: List[Dict[str, Any]] = []
    monkeypatch.setattr(httpx, "AsyncClient", lambda *a, **kw: DummyAsyncClient(response, requests, *a, **kw))
    return requests


def test_search_normalises_documents_and_simulates_ratings(monkeypatch):
    async def run() -> None:
        payload = {
            "documents": [
                {
                    "id": "8137",
                    "place_name": "원조 고기국수 본점",
                    "category_name": "음식점 > 한식 > 국수",
                    "address_name": "제주특별자치도 제주시 삼도이동 1",
                    "road_address_name": "제주특별자치도 제주시 삼성로 67",
                    "phone": "064-000-0000",
                    "x": "126.52",
                    "y": "33.50",
                },
                {"id": "bad", "place_name": "No coordinates", "x": None, "y": None},
                {"id": "blank", "place_name": "   ", "x": "126.5", "y": "33.5"},
            ]
        }
        requests = _patch_client(monkeypatch, DummyResponse(payload))
        client = KakaoLocalClient(api_key="test-key")

        places = await client.search("제주 맛집")

        assert len(places) == 1
        place = places[0]
        assert (place.id, place.lat, place.lng) == ("8137", 33.50, 126.52)
        assert place.road_address.endswith("삼성로 67")
        # base 3.5 + local-famous name 0.2 + phone 0.1
        assert place.rating == 3.8
        assert place.review_count >= 50
        assert place.popularity == 50 + 25 + 20

        sent = requests[0]
        assert sent["headers"] == {"Authorization": "KakaoAK test-key"}
        assert sent["params"] == {"query": "제주 맛집", "size": 15}

    asyncio.run(run())


def test_search_near_coordinate_sorts_by_distance(monkeypatch):
    async def run() -> None:
        requests = _patch_client(monkeypatch, DummyResponse({"documents": []}))
        client = KakaoLocalClient(api_key="test-key")

        await client.search("제주 호텔", category="AD5", near=Coordinate(lat=33.5, lng=126.5), radius_m=50000)

        params = requests[0]["params"]
        assert params["category_group_code"] == "AD5"
        assert (params["x"], params["y"]) == (126.5, 33.5)
        assert params["radius"] == 20000
        assert params["sort"] == "distance"

    asyncio.run(run())


@pytest.mark.parametrize(
    "status, reason",
    [(401, "auth"), (403, "forbidden"), (429, "rate_limit"), (500, "http")],
)
def test_error_statuses_map_to_provider_errors(monkeypatch, status, reason):
    _patch_client(monkeypatch, DummyResponse({}, status_code=status))
    client = KakaoLocalClient(api_key="test-key")

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.search("부산 맛집"))

    assert excinfo.value.reason == reason
    assert excinfo.value.status == status


def test_network_errors_are_wrapped(monkeypatch):
    _patch_client(monkeypatch, httpx.ConnectError("connection refused"))
    client = KakaoLocalClient(api_key="test-key")

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.search("부산 맛집"))
    assert excinfo.value.reason == "network"


def test_missing_key_is_an_auth_error(monkeypatch):
    monkeypatch.delenv("KAKAO_REST_API_KEY", raising=False)
    client = KakaoLocalClient()

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.search("서울 명동"))
    assert excinfo.value.reason == "auth"


def test_resolve_returns_first_match(monkeypatch):
    payload = {"documents": [{"x": "126.9780", "y": "37.5665"}, {"x": "0", "y": "0"}]}
    requests = _patch_client(monkeypatch, DummyResponse(payload))
    client = KakaoLocalClient(api_key="test-key")

    coordinate = asyncio.run(client.resolve("서울 중구 세종대로 110"))

    assert coordinate == Coordinate(lat=37.5665, lng=126.9780)
    assert requests[0]["url"] == KakaoLocalClient.ADDRESS_ENDPOINT


def test_resolve_failures_return_none(monkeypatch):
    client = KakaoLocalClient(api_key="test-key")

    _patch_client(monkeypatch, DummyResponse({"documents": []}))
    assert asyncio.run(client.resolve("nowhere")) is None

    _patch_client(monkeypatch, DummyResponse({}, status_code=500))
    assert asyncio.run(client.resolve("서울")) is None

    assert asyncio.run(client.resolve("   ")) is None


def test_simulated_scores_are_stable_and_bounded():
    rating = simulated_rating("롯데호텔 제주", "여행 > 숙박 > 호텔", "서울 중구 을지로", "02-000")
    assert rating == 4.6
    assert simulated_rating("x", "", "") == 3.5

    first = simulated_review_count("Cafe", "음식점 > 카페", "서울 강남구")
    assert first == simulated_review_count("Cafe", "음식점 > 카페", "서울 강남구")
    assert 75 <= first < 375

    assert popularity_score("여행 > 관광,명소 > 음식점 카페 쇼핑", "제주 강남") == 100


class NonJsonResponse(DummyResponse):
    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


def test_non_json_body_is_a_provider_error(monkeypatch):
    _patch_client(monkeypatch, NonJsonResponse(None))
    client = KakaoLocalClient(api_key="test-key")

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.search("제주 맛집"))
    assert excinfo.value.reason == "http"

    assert asyncio.run(client.resolve("제주시 연동")) is None
