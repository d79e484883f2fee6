"""Utilities for transforming provider and gateway payloads into core models."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pantry_locator.core.models import GeoCoordinate, HoursEntry, PantryCandidate, PantryStatus, Provider

logger = logging.getLogger(__name__)


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def to_coordinate(lat: Any, lng: Any, provider: Provider) -> Optional[GeoCoordinate]:
    lat_val = _safe_float(lat)
    lng_val = _safe_float(lng)
    if lat_val is None or lng_val is None:
        return None
    try:
        return GeoCoordinate(lat=lat_val, lng=lng_val, provider=provider)
    except ValueError as exc:
        logger.warning("Discarding out-of-range coordinate from %s: %s", provider.value, exc)
        return None


def coordinate_from_google(payload: Any) -> Optional[GeoCoordinate]:
    """First result of a Google Geocoding response, or None."""
    if not isinstance(payload, dict) or payload.get("status") != "OK":
        return None
    results = payload.get("results")
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        return None
    geometry = results[0].get("geometry")
    location = geometry.get("location") if isinstance(geometry, dict) else None
    if not isinstance(location, dict):
        return None
    return to_coordinate(location.get("lat"), location.get("lng"), Provider.PRIMARY)


def coordinate_from_nominatim(payload: Any) -> Optional[GeoCoordinate]:
    """First result of a Nominatim search response, or None."""
    if not isinstance(payload, list) or not payload:
        return None
    first = payload[0]
    if not isinstance(first, dict):
        return None
    return to_coordinate(first.get("lat"), first.get("lon"), Provider.FALLBACK)


def parse_hours(raw_hours: Optional[Iterable[Dict[str, Any]]]) -> Tuple[HoursEntry, ...]:
    entries: List[HoursEntry] = []
    for item in raw_hours or []:
        if not isinstance(item, dict) or not item.get("day"):
            continue
        entries.append(HoursEntry(day=str(item["day"]), time=str(item.get("time") or "")))
    return tuple(entries)


def _parse_status(value: Any) -> PantryStatus:
    if value is None:
        return PantryStatus.ACTIVE
    try:
        return PantryStatus(str(value).strip().lower())
    except ValueError:
        logger.debug("Unknown pantry status %r treated as inactive", value)
        return PantryStatus.INACTIVE


def to_pantry_candidate(record: Dict[str, Any]) -> Optional[PantryCandidate]:
    """Build a candidate from a gateway record; records without a name or address are skipped."""
    name = str(record.get("name") or "").strip()
    address = str(record.get("address") or "").strip()
    if not name or not address:
        logger.debug("Skipping pantry record without name or address: %s", record)
        return None

    return PantryCandidate(
        id=str(record.get("_id") or record.get("id") or ""),
        name=name,
        address=address,
        phone_number=str(record.get("phoneNumber") or "").strip(),
        inventory=str(record.get("inventory") or "").strip(),
        hours=parse_hours(record.get("hours")),
        status=_parse_status(record.get("status")),
    )
