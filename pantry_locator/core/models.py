"""Core data models shared by the pantry resolution pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Provider(str, Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"


class PantryStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ConversationState(str, Enum):
    IDLE = "idle"
    WAITING_FOR_ADDRESS = "waiting_for_address"
    PROCESSING = "processing"
    FOUND_PANTRY = "found_pantry"


@dataclass(frozen=True, slots=True)
class Address:
    """A cleaned utterance ready to be geocoded."""

    raw: str
    normalized: str
    default_locality: Optional[str] = None

    def __post_init__(self) -> None:
        if len(self.normalized.strip()) < 3:
            raise ValueError("normalized address must have at least 3 characters")


@dataclass(frozen=True, slots=True)
class GeoCoordinate:
    lat: float
    lng: float
    provider: Provider = Provider.PRIMARY

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"longitude out of range: {self.lng}")


@dataclass(frozen=True, slots=True)
class HoursEntry:
    day: str
    time: str = ""


@dataclass(frozen=True, slots=True)
class PantryCandidate:
    """Read-only snapshot of a pantry record supplied by the gateway."""

    id: str
    name: str
    address: str
    phone_number: str = ""
    inventory: str = ""
    hours: Tuple[HoursEntry, ...] = ()
    status: PantryStatus = PantryStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status is PantryStatus.ACTIVE


@dataclass(frozen=True, slots=True)
class RankedResult:
    candidate: PantryCandidate
    coordinate: GeoCoordinate
    distance_km: float

    def __post_init__(self) -> None:
        if self.distance_km < 0:
            raise ValueError("distance_km must be non-negative")


@dataclass(frozen=True, slots=True)
class ConversationContext:
    """Session-scoped state for one voice conversation.

    Listening and speaking are mutually exclusive; constructing a context
    with both set raises ``ValueError``.
    """

    state: ConversationState = ConversationState.IDLE
    transcript: str = ""
    last_error: Optional[str] = None
    result: Optional[RankedResult] = None
    listening: bool = False
    speaking: bool = False
    session: int = 0

    def __post_init__(self) -> None:
        if self.listening and self.speaking:
            raise ValueError("a conversation cannot listen and speak at the same time")
