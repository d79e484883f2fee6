"""Resolve a free-text address to the nearest active pantry and narrate it."""

import argparse
import logging
from typing import Callable, List, Optional, Sequence

import requests

from pantry_locator.core import distance
from pantry_locator.core.config import Settings, get_settings
from pantry_locator.core.errors import (
    GeocodeNotFound,
    NoActiveCandidates,
    NoCandidatesNearby,
    NormalizationError,
    PantryLocatorError,
    ProviderUnavailable,
    UpstreamTransportError,
)
from pantry_locator.core.geocoder import GeocodeProvider, build_geocoder
from pantry_locator.core.models import Address, GeoCoordinate, PantryCandidate, RankedResult
from pantry_locator.etl.address import normalize
from pantry_locator.etl.transform import to_pantry_candidate
from pantry_locator.vendors import pantry_api

logger = logging.getLogger(__name__)

GENERIC_APOLOGY = "I'm sorry, I encountered an error while processing your request. Please try again."
EMPTY_MESSAGE_PROMPT = "I'm sorry, I didn't catch that. Could you please tell me your address?"


def fetch_candidates(settings: Settings) -> List[PantryCandidate]:
    """Load every pantry from the gateway as candidates, inactive ones included."""
    try:
        records = pantry_api.list_pantries(settings.pantry_api_url, timeout=settings.geocode_timeout)
    except (requests.RequestException, pantry_api.PantryApiError) as exc:
        raise UpstreamTransportError("pantry database", str(exc)) from exc

    candidates = []
    for record in records:
        if not isinstance(record, dict):
            continue
        candidate = to_pantry_candidate(record)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


class PantryLocator:
    """Runs one resolution: normalize, geocode the user, geocode candidates, rank."""

    def __init__(
        self,
        geocoder: GeocodeProvider,
        fetch_pantries: Callable[[], Sequence[PantryCandidate]],
        default_location: Optional[str] = None,
        postal_prefix: Optional[str] = None,
    ) -> None:
        self.geocoder = geocoder
        self.fetch_pantries = fetch_pantries
        self.default_location = default_location
        self.postal_prefix = postal_prefix

    def normalize(self, raw: str, default_location: Optional[str] = None) -> Address:
        return normalize(raw, default_location or self.default_location, self.postal_prefix)

    def resolve_user_location(self, address: Address) -> GeoCoordinate:
        coordinate = self.geocoder.geocode(address.normalized)
        logger.info("Geocoding attempt 1: '%s' found=%s", address.normalized, coordinate is not None)
        if coordinate is not None:
            return coordinate

        if address.default_locality:
            retry_text = f"{address.normalized}, {address.default_locality}"
            logger.info("Geocoding retry with default location: '%s'", retry_text)
            coordinate = self.geocoder.geocode(retry_text)
            if coordinate is not None:
                return coordinate
            logger.info("Geocoding retry failed for '%s'", retry_text)

        raise GeocodeNotFound(address.normalized)

    def active_candidates(self) -> List[PantryCandidate]:
        pantries = list(self.fetch_pantries())
        active = [pantry for pantry in pantries if pantry.is_active]
        if not active:
            raise NoActiveCandidates(total=len(pantries))
        logger.info("Ranking %d active pantries out of %d", len(active), len(pantries))
        return active

    def rank_candidates(self, origin: GeoCoordinate, candidates: Sequence[PantryCandidate]) -> List[RankedResult]:
        coordinates = self.geocoder.geocode_many([candidate.address for candidate in candidates])
        ranked = distance.rank(origin, zip(candidates, coordinates))
        if not ranked:
            raise NoCandidatesNearby(f"none of {len(candidates)} pantries could be located")
        return ranked

    def locate(self, raw: str, default_location: Optional[str] = None) -> List[RankedResult]:
        address = self.normalize(raw, default_location)
        logger.info("Extracted address '%s' from '%s'", address.normalized, raw)
        origin = self.resolve_user_location(address)
        return self.rank_candidates(origin, self.active_candidates())


def build_locator(settings: Optional[Settings] = None) -> PantryLocator:
    settings = settings or get_settings()
    return PantryLocator(
        geocoder=build_geocoder(settings),
        fetch_pantries=lambda: fetch_candidates(settings),
        default_location=settings.default_location,
        postal_prefix=settings.default_postal_prefix,
    )


def describe_result(result: RankedResult) -> str:
    """Spoken summary of the nearest pantry."""
    pantry = result.candidate
    parts = [
        f"The nearest pantry to you is {pantry.name}, located at {pantry.address}.",
        f"It's about {distance.display_km(result.distance_km)} kilometers away.",
    ]
    if pantry.phone_number:
        parts.append(f"You can contact them at {pantry.phone_number}.")
    if pantry.inventory:
        parts.append(f"They typically have items like {pantry.inventory}.")
    if pantry.hours:
        hours_text = ", ".join(f"{entry.day}: {entry.time or 'Not specified'}" for entry in pantry.hours)
        parts.append(f"Their hours are: {hours_text}.")
    return " ".join(parts)


def apology_for(exc: PantryLocatorError) -> str:
    if isinstance(exc, NormalizationError):
        return (
            "I need a valid address to find the nearest pantry. Please provide your address, "
            "for example: '112 Alden Street' or '112 Alden Street, Syracuse, NY'."
        )
    if isinstance(exc, GeocodeNotFound):
        return (
            f'I\'m sorry, I couldn\'t find the location for "{exc.address}". '
            "Could you please try providing the full address including city and state?"
        )
    if isinstance(exc, ProviderUnavailable):
        return "I'm sorry, the location service is not configured. Please contact support."
    if isinstance(exc, UpstreamTransportError):
        return f"I'm sorry, I'm having trouble accessing the {exc.service}. Please try again later."
    if isinstance(exc, NoActiveCandidates):
        if exc.total == 0:
            return "I'm sorry, but there are no pantries in the system yet."
        return "I'm sorry, but there are no active pantries available at the moment."
    if isinstance(exc, NoCandidatesNearby):
        return "I'm sorry, but I couldn't find any pantries near your location."
    return GENERIC_APOLOGY


def answer(locator: PantryLocator, message: str, default_location: Optional[str] = None) -> str:
    """Narrated reply for ``message``; domain failures become apologies."""
    if not message or not message.strip():
        return EMPTY_MESSAGE_PROMPT
    try:
        ranked = locator.locate(message, default_location)
    except PantryLocatorError as exc:
        logger.info("Resolution failed for '%s': %s", message, exc)
        return apology_for(exc)
    return describe_result(ranked[0])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find the nearest active pantry for an address")
    parser.add_argument("--address", dest="address", required=True, help="Address or spoken sentence")
    parser.add_argument(
        "--default-location",
        dest="default_location",
        default=None,
        help="Locality appended to bare street addresses (defaults to DEFAULT_CITY_STATE)",
    )
    parser.add_argument("--all", dest="show_all", action="store_true", help="List every ranked pantry")
    return parser


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args()

    try:
        locator = build_locator()
        ranked = locator.locate(args.address, args.default_location)
    except PantryLocatorError as exc:
        print(apology_for(exc))
        return 1

    print(describe_result(ranked[0]))
    if args.show_all:
        for position, result in enumerate(ranked, start=1):
            print(f"{position}. {result.candidate.name} - {distance.display_km(result.distance_km)} km")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
