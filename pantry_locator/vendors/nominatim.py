"""Client utilities for the public OpenStreetMap Nominatim search API.

The public instance allows one request per second and requires every client
to identify itself with a stable User-Agent. Pacing is the caller's job.
"""

import logging
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://nominatim.openstreetmap.org/search"


def search(query: str, user_agent: str, timeout: float = 10) -> List[Dict[str, Any]]:
    params = {"format": "json", "q": query, "limit": 1, "addressdetails": 1}
    headers = {"User-Agent": user_agent}
    response = _SESSION.get(_BASE_URL, params=params, headers=headers, timeout=timeout)
    response.raise_for_status()
    payload = response.json()
    if not isinstance(payload, list):
        logger.warning("Nominatim returned unexpected payload type %s for '%s'", type(payload).__name__, query)
        return []
    if not payload:
        logger.info("Nominatim: no results for '%s'", query)
    return payload
