"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    google_maps_api_key: str
    pantry_api_url: str
    default_location: Optional[str] = None
    default_postal_prefix: Optional[str] = None
    webhook_secret: str = ""
    nominatim_enabled: bool = True
    nominatim_user_agent: str = "PantryAssistant/1.0"
    nominatim_delay_seconds: float = 1.1
    geocode_timeout: float = 10.0
    geocode_max_workers: int = 8
    elevenlabs_api_key: str = ""
    elevenlabs_voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    port: int = 8080


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_maps_api_key = os.getenv("GOOGLE_MAPS_API_KEY", "")
    pantry_api_url = os.getenv("PANTRY_API_URL", "")
    default_location = _optional("DEFAULT_CITY_STATE")
    default_postal_prefix = _optional("DEFAULT_POSTAL_PREFIX")
    webhook_secret = os.getenv("AGENT_WEBHOOK_SECRET", "")
    nominatim_enabled = os.getenv("NOMINATIM_ENABLED", "true").lower() in _TRUTHY
    nominatim_user_agent = os.getenv("NOMINATIM_USER_AGENT") or "PantryAssistant/1.0"
    nominatim_delay_seconds = float(os.getenv("NOMINATIM_DELAY_SECONDS", "1.1"))
    geocode_timeout = float(os.getenv("GEOCODE_TIMEOUT_SECONDS", "10"))
    geocode_max_workers = int(os.getenv("GEOCODE_MAX_WORKERS", "8"))
    elevenlabs_api_key = os.getenv("ELEVENLABS_API_KEY", "")
    elevenlabs_voice_id = os.getenv("ELEVENLABS_VOICE_ID") or "21m00Tcm4TlvDq8ikWAM"
    port = int(os.getenv("PORT", "8080"))

    if not google_maps_api_key:
        if nominatim_enabled:
            logger.warning("GOOGLE_MAPS_API_KEY is not configured; falling back to rate-limited Nominatim.")
        else:
            logger.warning("GOOGLE_MAPS_API_KEY is not configured and Nominatim is disabled; geocoding will fail.")
    if not pantry_api_url:
        logger.warning("PANTRY_API_URL is not set; pantry lookups will fail.")
    if not default_location:
        logger.info("DEFAULT_CITY_STATE is not set; bare street addresses are geocoded as spoken.")

    return Settings(
        google_maps_api_key=google_maps_api_key,
        pantry_api_url=pantry_api_url,
        default_location=default_location,
        default_postal_prefix=default_postal_prefix,
        webhook_secret=webhook_secret,
        nominatim_enabled=nominatim_enabled,
        nominatim_user_agent=nominatim_user_agent,
        nominatim_delay_seconds=nominatim_delay_seconds,
        geocode_timeout=geocode_timeout,
        geocode_max_workers=geocode_max_workers,
        elevenlabs_api_key=elevenlabs_api_key,
        elevenlabs_voice_id=elevenlabs_voice_id,
        port=port,
    )
