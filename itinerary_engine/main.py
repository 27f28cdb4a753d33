from __future__ import annotations

from typing import Any, Dict

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from itinerary_engine.agents.transport_validator import validate_transport_facility
from itinerary_engine.config import get_settings
from itinerary_engine.orchestrator import plan_itinerary
from itinerary_engine.schemas import ItineraryRequest, TransportValidationRequest
from itinerary_engine.tools.kakao_local import KakaoLocalClient

app = FastAPI(title="Itinerary Engine API")

# Let the planner UI (dev server or static build) call the API directly.
# Operators can narrow this via ITINERARY_ALLOWED_ORIGINS.
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _client() -> KakaoLocalClient:
    return KakaoLocalClient(api_key=settings.kakao_api_key, timeout=settings.provider_timeout)


@app.get("/healthz")
async def healthz() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/api/itinerary")
async def api_itinerary(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Primary endpoint consumed by the planner UI."""
    try:
        request = ItineraryRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False)) from exc

    client = _client()
    response = await plan_itinerary(request, provider=client, geocoder=client, settings=settings)
    return response.model_dump(mode="json")


@app.post("/api/transport/validate")
async def api_transport_validate(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    try:
        request = TransportValidationRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False)) from exc

    client = _client()
    result = await validate_transport_facility(client, client, request.destination, request.transport_type)
    return result.model_dump(mode="json")
