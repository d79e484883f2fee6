"""Client for the pantry listing endpoint that backs the admin dashboard."""

import logging
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()


class PantryApiError(RuntimeError):
    """Raised when the pantry listing cannot be fetched or parsed."""


def list_pantries(url: str, timeout: float = 10) -> List[Dict[str, Any]]:
    """Fetch every pantry record, active or not, in the order the store returns them."""
    if not url:
        raise PantryApiError("PANTRY_API_URL is not configured")

    response = _SESSION.get(url, headers={"Content-Type": "application/json"}, timeout=timeout)
    if response.status_code >= 400:
        logger.error("list_pantries failed: status=%s body=%s", response.status_code, response.text[:200])
        raise PantryApiError(f"Failed to fetch pantries: HTTP {response.status_code}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise PantryApiError("pantry listing is not valid JSON") from exc

    if not isinstance(payload, list):
        raise PantryApiError(f"expected a list of pantries, got {type(payload).__name__}")
    logger.info("Fetched %d pantry records", len(payload))
    return payload
