"""Runtime settings sourced from the environment (and an optional .env file)."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

# Load .env file if present
load_dotenv()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s", name, raw, default)
        return default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("%s must be positive (got %s); using %s", name, value, default)
        return default
    return value


@dataclass
class Settings:
    kakao_api_key: str | None = None
    provider_timeout: float = 8.0
    max_concurrency: int = 4
    lodging_radius_km: float = 5.0
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        raw_origins = os.getenv("ITINERARY_ALLOWED_ORIGINS") or "*"
        origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
        return cls(
            kakao_api_key=os.getenv("KAKAO_REST_API_KEY") or None,
            provider_timeout=_float_env("ITINERARY_PROVIDER_TIMEOUT", 8.0),
            max_concurrency=_int_env("ITINERARY_MAX_CONCURRENCY", 4),
            lodging_radius_km=_float_env("ITINERARY_LODGING_RADIUS_KM", 5.0),
            allowed_origins=origins or ["*"],
        )


def get_settings() -> Settings:
    return Settings.from_env()
