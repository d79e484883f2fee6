"""Failure kinds raised while resolving a pantry for a user."""

from typing import Optional


class PantryLocatorError(RuntimeError):
    """Base class for every failure the resolution pipeline reports."""


class NormalizationError(PantryLocatorError):
    """Raised when the cleaned utterance is too short to be an address."""


class GeocodeNotFound(PantryLocatorError):
    """Raised when the user's address cannot be resolved, even after the locality retry."""

    def __init__(self, address: str) -> None:
        super().__init__(f"no geocoding result for {address!r}")
        self.address = address


class ProviderUnavailable(PantryLocatorError):
    """Raised when no geocoding provider is configured."""


class NoActiveCandidates(PantryLocatorError):
    """Raised when the gateway returned no pantry with an active status."""

    def __init__(self, total: int) -> None:
        super().__init__(f"no active pantries among {total} records")
        self.total = total


class NoCandidatesNearby(PantryLocatorError):
    """Raised when every candidate failed geocoding."""


class UpstreamTransportError(PantryLocatorError):
    """Raised on network or credential failures talking to a provider or the gateway."""

    def __init__(self, service: str, detail: Optional[str] = None) -> None:
        message = f"{service} request failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.service = service
