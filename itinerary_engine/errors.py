"""Failure taxonomy for the itinerary engine.

None of these escape the engine boundary: each is raised at the call site
that detects it and recovered by the nearest caller, which substitutes a
fallback (seed places, a placeholder lodging, an empty day).
"""
from __future__ import annotations


class ItineraryEngineError(Exception):
    """Base class for all engine failures."""


class ProviderError(ItineraryEngineError):
    """A single Place/Geocode provider call failed."""

    def __init__(self, message: str, *, reason: str = "http", status: int | None = None):
        super().__init__(message)
        self.reason = reason
        self.status = status


class AggregationExhausted(ItineraryEngineError):
    """Every query for a region failed or produced nothing that qualified."""


class GeocodeFailure(ItineraryEngineError):
    """An address could not be resolved to a coordinate."""


class AccommodationNotFound(ItineraryEngineError):
    """No lodging could be found near the day's last stop."""


class DayGenerationFailure(ItineraryEngineError):
    """Building one day of the itinerary failed unexpectedly."""

    def __init__(self, day: int, message: str):
        super().__init__(f"day {day}: {message}")
        self.day = day


class ItineraryGenerationFailure(ItineraryEngineError):
    """The whole itinerary could not be generated."""
