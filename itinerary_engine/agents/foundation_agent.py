"""Utility agent that normalizes raw itinerary payloads."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from itinerary_engine.agents.preference_scorer import canonical_interest

TRANSPORT_MODE_ALIASES: Dict[str, str] = {
    "driving": "driving",
    "car": "driving",
    "rental-car": "driving",
    "walking": "walking",
    "walk": "walking",
    "bicycle": "bicycle",
    "bike": "bicycle",
    "transit": "transit",
    "public": "transit",
    "taxi": "taxi",
    "other": "taxi",
}

ACCOMMODATION_TYPES = ("hotel", "airbnb", "guesthouse", "resort", "other")
MAX_TRIP_DAYS = 30


def extract_foundation(payload: Any) -> Dict[str, Any]:
    """Return derived trip fundamentals from a raw payload or ItineraryRequest.

    Accepts the raw request dict, an ``ItineraryRequest`` instance, or
    anything exposing ``model_dump`` like Pydantic models. Downstream stages
    rely on the keys produced here rather than on the raw payload.
    """
    raw: Dict[str, Any]
    if hasattr(payload, "model_dump"):
        raw = payload.model_dump(mode="python")  # type: ignore[assignment]
    elif isinstance(payload, dict):
        raw = dict(payload)
    else:
        raise TypeError("Unsupported payload type for foundation extraction")

    destination = str(raw.get("destination") or "").strip()

    dates_raw = raw.get("dates") or {}
    start = str(dates_raw.get("start", "")) if isinstance(dates_raw, dict) else ""
    end = str(dates_raw.get("end", start)) if isinstance(dates_raw, dict) else ""
    start_dt, end_dt = _safe_parse(start), _safe_parse(end)
    if start_dt and end_dt and end_dt < start_dt:
        # swap to avoid negative durations
        start_dt, end_dt = end_dt, start_dt

    explicit_days = raw.get("days")
    if explicit_days:
        days = int(explicit_days)
    else:
        days = _duration_days(start_dt, end_dt)
    days = max(1, min(MAX_TRIP_DAYS, days))

    interests: List[str] = []
    raw_interests = raw.get("interests") or []
    if isinstance(raw_interests, str):
        raw_interests = [raw_interests]
    for item in raw_interests:
        if item is None:
            continue
        tag = canonical_interest(str(item))
        if tag and tag not in interests:
            interests.append(tag)

    raw_mode = str(raw.get("transport_mode") or "driving").strip().lower()
    transport_mode = TRANSPORT_MODE_ALIASES.get(raw_mode, "driving")

    raw_type = str(raw.get("accommodation_type") or "hotel").strip().lower()
    accommodation_type = raw_type if raw_type in ACCOMMODATION_TYPES else "hotel"

    notes: List[str] = []
    if raw_mode not in TRANSPORT_MODE_ALIASES:
        notes.append(f"Unknown transport mode '{raw_mode}'; estimating travel by car.")
    if explicit_days is None and not start_dt:
        notes.append("No trip length given; planning a single day.")

    return {
        "destination": destination,
        "days": days,
        "dates": {
            "start": start_dt.date().isoformat() if start_dt else None,
            "end": end_dt.date().isoformat() if end_dt else None,
        },
        "interests": interests,
        "transport_mode": transport_mode,
        "accommodation_type": accommodation_type,
        "start_location": raw.get("start_location"),
        "booked_accommodation": raw.get("booked_accommodation"),
        "must_visit": list(raw.get("must_visit") or []),
        "notes": notes,
    }


def _safe_parse(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        try:
            return datetime.strptime(value, "%Y-%m-%d")
        except ValueError:
            return None


def _duration_days(start: datetime | None, end: datetime | None) -> int:
    if not start or not end:
        return 1
    return (end - start).days + 1 if end >= start else 1
