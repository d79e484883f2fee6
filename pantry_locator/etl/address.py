"""Turn a spoken or typed utterance into an address worth geocoding."""

import logging
import re
from typing import List, Optional, Tuple

from pantry_locator.core.errors import NormalizationError
from pantry_locator.core.models import Address

logger = logging.getLogger(__name__)

MIN_ADDRESS_LENGTH = 3

_FILLER_REGEX = re.compile(
    r"^\s*(my address is|i live at|i['’]m at|i['’]m located at|address:|location:|it['’]s|it is)",
    re.IGNORECASE,
)
_STARTS_WITH_NUMBER = re.compile(r"^\d+")

US_STATES = {
    "AL": "Alabama",
    "AK": "Alaska",
    "AZ": "Arizona",
    "AR": "Arkansas",
    "CA": "California",
    "CO": "Colorado",
    "CT": "Connecticut",
    "DE": "Delaware",
    "DC": "District of Columbia",
    "FL": "Florida",
    "GA": "Georgia",
    "HI": "Hawaii",
    "ID": "Idaho",
    "IL": "Illinois",
    "IN": "Indiana",
    "IA": "Iowa",
    "KS": "Kansas",
    "KY": "Kentucky",
    "LA": "Louisiana",
    "ME": "Maine",
    "MD": "Maryland",
    "MA": "Massachusetts",
    "MI": "Michigan",
    "MN": "Minnesota",
    "MS": "Mississippi",
    "MO": "Missouri",
    "MT": "Montana",
    "NE": "Nebraska",
    "NV": "Nevada",
    "NH": "New Hampshire",
    "NJ": "New Jersey",
    "NM": "New Mexico",
    "NY": "New York",
    "NC": "North Carolina",
    "ND": "North Dakota",
    "OH": "Ohio",
    "OK": "Oklahoma",
    "OR": "Oregon",
    "PA": "Pennsylvania",
    "RI": "Rhode Island",
    "SC": "South Carolina",
    "SD": "South Dakota",
    "TN": "Tennessee",
    "TX": "Texas",
    "UT": "Utah",
    "VT": "Vermont",
    "VA": "Virginia",
    "WA": "Washington",
    "WV": "West Virginia",
    "WI": "Wisconsin",
    "WY": "Wyoming",
}


def strip_filler(raw: str) -> str:
    """Remove a leading conversational phrase such as "my address is"."""
    cleaned = _FILLER_REGEX.sub("", raw.strip(), count=1)
    return cleaned.strip().lstrip(",:").strip()


def _locality_tokens(default_locality: str) -> Tuple[List[str], Optional[str]]:
    """Split a locality into case-insensitive words and an exact-case state abbreviation."""
    parts = [part.strip() for part in default_locality.split(",")]
    words = [parts[0]] if parts[0] else []
    abbreviation = None
    if len(parts) > 1 and parts[1]:
        state_name = US_STATES.get(parts[1].upper())
        if state_name:
            abbreviation = parts[1].upper()
            words.append(state_name)
        else:
            words.append(parts[1])
    return words, abbreviation


def mentions_locality(text: str, default_locality: str, postal_prefix: Optional[str] = None) -> bool:
    """Whether ``text`` already names the locality's city, state or postal area."""
    words, abbreviation = _locality_tokens(default_locality)
    patterns = [re.escape(word) for word in words]
    if postal_prefix and postal_prefix.isdigit() and len(postal_prefix) < 5:
        patterns.append(rf"{postal_prefix}\d{{{5 - len(postal_prefix)}}}")
    if patterns and re.search(rf"\b({'|'.join(patterns)})\b", text, re.IGNORECASE):
        return True
    # Abbreviations such as IN, OR and ME only count in capitals.
    return abbreviation is not None and re.search(rf"\b{abbreviation}\b", text) is not None


def normalize(raw: str, default_locality: Optional[str] = None, postal_prefix: Optional[str] = None) -> Address:
    """Clean a raw utterance and, for bare street addresses, append the default locality.

    Raises ``NormalizationError`` when fewer than three characters remain
    after the filler phrase is removed. Anything that does not look like a
    bare street address is returned as cleaned; the geocoder handles
    free-form text well.
    """
    cleaned = strip_filler(raw or "")
    if len(cleaned) < MIN_ADDRESS_LENGTH:
        raise NormalizationError(f"address too short after cleaning: {cleaned!r}")

    locality = default_locality.strip() if default_locality else None
    normalized = cleaned
    if locality and _STARTS_WITH_NUMBER.match(cleaned) and not mentions_locality(cleaned, locality, postal_prefix):
        normalized = f"{cleaned}, {locality}"
        logger.debug("Appended default locality to %r", cleaned)

    return Address(raw=raw, normalized=normalized, default_locality=locality)
