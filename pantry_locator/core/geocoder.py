"""Geocoding providers behind one capability.

Two implementations exist: the keyed Google Geocoding API (primary) and the
keyless Nominatim service (fallback). Exactly one is chosen from settings by
``build_geocoder``; call sites never branch on which one they hold.

Both expose the same batch contract, ``geocode_many``, but with different
concurrency: Google requests fan out across a thread pool, while Nominatim
requests are issued one at a time, at least ``delay_seconds`` apart, to honour
its one-request-per-second policy.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Protocol, Sequence

import requests

from pantry_locator.core.config import Settings
from pantry_locator.core.errors import PantryLocatorError, ProviderUnavailable, UpstreamTransportError
from pantry_locator.core.models import GeoCoordinate, Provider
from pantry_locator.etl.transform import coordinate_from_google, coordinate_from_nominatim
from pantry_locator.vendors import google_geocoding, nominatim

logger = logging.getLogger(__name__)


class GeocodeProvider(Protocol):
    provider: Provider
    name: str

    def geocode(self, address_text: str) -> Optional[GeoCoordinate]:
        """Resolve one address; None means not found."""
        ...

    def geocode_many(self, addresses: Sequence[str]) -> List[Optional[GeoCoordinate]]:
        """Resolve each address once, in input order; failures come back as None."""
        ...


def _geocode_or_none(geocoder: GeocodeProvider, address_text: str) -> Optional[GeoCoordinate]:
    try:
        coordinate = geocoder.geocode(address_text)
    except PantryLocatorError as exc:
        logger.warning("Failed to geocode candidate address '%s': %s", address_text, exc)
        return None
    if coordinate is None:
        logger.warning("No %s result for candidate address '%s'", geocoder.name, address_text)
    return coordinate


class GoogleGeocoder:
    provider = Provider.PRIMARY
    name = "Google Geocoding"

    def __init__(self, api_key: str, timeout: float = 10, max_workers: int = 8) -> None:
        if not api_key:
            raise ProviderUnavailable("Google Geocoding requires an API key")
        self._api_key = api_key
        self.timeout = timeout
        self.max_workers = max(1, max_workers)

    def geocode(self, address_text: str) -> Optional[GeoCoordinate]:
        try:
            payload = google_geocoding.geocode(address_text, self._api_key, timeout=self.timeout)
        except (requests.RequestException, google_geocoding.GoogleGeocodingError) as exc:
            raise UpstreamTransportError("location service", str(exc)) from exc
        return coordinate_from_google(payload)

    def geocode_many(self, addresses: Sequence[str]) -> List[Optional[GeoCoordinate]]:
        if not addresses:
            return []
        workers = min(self.max_workers, len(addresses))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(lambda text: _geocode_or_none(self, text), addresses))


class NominatimGeocoder:
    provider = Provider.FALLBACK
    name = "Nominatim"

    def __init__(self, user_agent: str, delay_seconds: float = 1.1, timeout: float = 10) -> None:
        self.user_agent = user_agent
        self.delay_seconds = delay_seconds
        self.timeout = timeout
        self._lock = threading.Lock()
        self._last_request_at: Optional[float] = None

    def _wait_for_slot(self) -> None:
        if self._last_request_at is None:
            return
        remaining = self.delay_seconds - (time.monotonic() - self._last_request_at)
        if remaining > 0:
            time.sleep(remaining)

    def geocode(self, address_text: str) -> Optional[GeoCoordinate]:
        with self._lock:
            self._wait_for_slot()
            self._last_request_at = time.monotonic()
            try:
                payload = nominatim.search(address_text, self.user_agent, timeout=self.timeout)
            except requests.RequestException as exc:
                raise UpstreamTransportError("location service", str(exc)) from exc
        return coordinate_from_nominatim(payload)

    def geocode_many(self, addresses: Sequence[str]) -> List[Optional[GeoCoordinate]]:
        return [_geocode_or_none(self, text) for text in addresses]


def build_geocoder(settings: Settings) -> GeocodeProvider:
    """Pick the provider once, from whether a Google key is configured."""
    if settings.google_maps_api_key:
        logger.info("Using Google Geocoding as the geocoding provider")
        return GoogleGeocoder(
            settings.google_maps_api_key,
            timeout=settings.geocode_timeout,
            max_workers=settings.geocode_max_workers,
        )
    if settings.nominatim_enabled:
        logger.info("Using Nominatim as the geocoding provider")
        return NominatimGeocoder(
            settings.nominatim_user_agent,
            delay_seconds=settings.nominatim_delay_seconds,
            timeout=settings.geocode_timeout,
        )
    raise ProviderUnavailable("no geocoding provider is configured")
