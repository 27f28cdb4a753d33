from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from itinerary_engine.main import app
from itinerary_engine.schemas import Coordinate, ItineraryResponse, PlaceCandidate, TransportValidation

from conftest import StubProvider, synthetic_candidates


class StubKakao(StubProvider):
    """Provider and geocoder in one object, like the real client."""

    def __init__(self, *args, center=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.center = center

    async def resolve(self, address):
        return self.center


def _sample_payload() -> dict:
    return {
        "destination": "Busan",
        "interests": ["food", "beach"],
        "dates": {"start": "2026-08-01", "end": "2026-08-02"},
        "localTransport": "taxi",
        "accommodationType": "resort",
    }


def test_healthz():
    client = TestClient(app)
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_itinerary_endpoint_passes_validated_request(monkeypatch):
    client = TestClient(app)
    planner = AsyncMock(return_value=ItineraryResponse(destination="Busan", notes=["ok"]))
    monkeypatch.setattr("itinerary_engine.main.plan_itinerary", planner)
    monkeypatch.setattr("itinerary_engine.main._client", lambda: StubKakao())

    response = client.post("/api/itinerary", json=_sample_payload())

    assert response.status_code == 200
    planner.assert_awaited_once()
    request = planner.await_args.args[0]
    assert request.transport_mode == "taxi"
    assert request.accommodation_type == "resort"
    assert response.json()["notes"] == ["ok"]


def test_itinerary_endpoint_end_to_end(monkeypatch):
    client = TestClient(app)
    monkeypatch.setattr("itinerary_engine.main._client", lambda: StubKakao(default=synthetic_candidates(20)))

    response = client.post("/api/itinerary", json=_sample_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["destination"] == "Busan"
    assert len(body["days"]) == 2
    assert len(body["summaries"]) == 2
    for stops in body["days"].values():
        assert stops[-1]["accommodation"]["event"] == "check_in"
        assert stops[-1]["accommodation"]["accommodation_type"] == "resort"


def test_itinerary_endpoint_rejects_missing_destination(monkeypatch):
    client = TestClient(app)
    planner = AsyncMock()
    monkeypatch.setattr("itinerary_engine.main.plan_itinerary", planner)

    payload = _sample_payload()
    payload.pop("destination")
    response = client.post("/api/itinerary", json=payload)

    assert response.status_code == 422
    assert any(err["loc"] == ["destination"] for err in response.json()["detail"])
    planner.assert_not_awaited()


def test_transport_validation_endpoint(monkeypatch):
    client = TestClient(app)
    airport = PlaceCandidate(
        id="1", name="김해국제공항", address="부산 강서구 공항진입로 108", lat=35.17, lng=128.94
    )
    stub = StubKakao(default=[airport], center=Coordinate(lat=35.18, lng=129.07))
    monkeypatch.setattr("itinerary_engine.main._client", lambda: stub)

    response = client.post("/api/transport/validate", json={"destination": "부산", "transport_type": "airplane"})

    assert response.status_code == 200
    result = TransportValidation.model_validate(response.json())
    assert result.is_valid is True
    assert result.facility.name == "김해국제공항"


def test_transport_validation_rejects_unknown_type():
    client = TestClient(app)
    response = client.post("/api/transport/validate", json={"destination": "Busan", "transport_type": "ferry"})
    assert response.status_code == 422
