"""Client utilities for the Google Geocoding API."""

import logging
from typing import Any, Dict

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

# Statuses that mean the key or quota is broken rather than the address.
CREDENTIAL_STATUSES = {"REQUEST_DENIED", "OVER_QUERY_LIMIT", "OVER_DAILY_LIMIT"}


class GoogleGeocodingError(RuntimeError):
    """Raised when the Geocoding API rejects the credential or quota."""


def geocode(address: str, api_key: str, timeout: float = 10) -> Dict[str, Any]:
    params = {"address": address, "key": api_key}
    response = _SESSION.get(_BASE_URL, params=params, timeout=timeout)
    response.raise_for_status()
    payload = response.json()
    if not isinstance(payload, dict):
        logger.warning("Google: unexpected payload type %s for '%s'", type(payload).__name__, address)
        return {}
    status = payload.get("status")
    if status in CREDENTIAL_STATUSES:
        logger.error("geocode failed: status=%s, error_message=%s", status, payload.get("error_message"))
        raise GoogleGeocodingError(payload.get("error_message") or status)
    if status != "OK":
        logger.info("Google: status '%s' for '%s'", status, address)
    return payload
