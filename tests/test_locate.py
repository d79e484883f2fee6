import sys

import pytest
import requests

from pantry_locator.core.config import Settings
from pantry_locator.core.errors import (
    GeocodeNotFound,
    NoActiveCandidates,
    NoCandidatesNearby,
    NormalizationError,
    ProviderUnavailable,
    UpstreamTransportError,
)
from pantry_locator.core.models import GeoCoordinate, HoursEntry, PantryCandidate, PantryStatus, Provider, RankedResult
from pantry_locator.jobs import locate

HOME = GeoCoordinate(0.0, 0.0)


class FakeGeocoder:
    provider = Provider.PRIMARY
    name = "Fake"

    def __init__(self, known):
        self.known = known
        self.calls = []
        self.batches = []

    def geocode(self, address_text):
        self.calls.append(address_text)
        return self.known.get(address_text)

    def geocode_many(self, addresses):
        self.batches.append(list(addresses))
        return [self.known.get(text) for text in addresses]


def _pantry(name, status=PantryStatus.ACTIVE, **kwargs):
    return PantryCandidate(id=name, name=name, address=f"{name} address", status=status, **kwargs)


def _locator(known, pantries, default_location="Syracuse, NY"):
    geocoder = FakeGeocoder(known)
    return locate.PantryLocator(geocoder, lambda: pantries, default_location=default_location), geocoder


def test_locate_ranks_nearest_first_and_drops_failures():
    pantries = [_pantry("A"), _pantry("B"), _pantry("C"), _pantry("D", status=PantryStatus.INACTIVE)]
    known = {
        "112 Alden Street, Syracuse, NY": HOME,
        "A address": GeoCoordinate(0.0, 0.0108),
        "B address": GeoCoordinate(0.0, 0.0045),
        "D address": GeoCoordinate(0.0, 0.0001),
    }
    locator, geocoder = _locator(known, pantries)

    ranked = locator.locate("my address is 112 Alden Street")

    assert [result.candidate.name for result in ranked] == ["B", "A"]
    assert geocoder.calls == ["112 Alden Street, Syracuse, NY"]
    assert geocoder.batches == [["A address", "B address", "C address"]]


def test_locate_retries_once_with_default_locality():
    retry_text = "Alden Street, Syracuse, NY"
    locator, geocoder = _locator({retry_text: HOME, "A address": HOME}, [_pantry("A")])

    ranked = locator.locate("Alden Street")

    assert geocoder.calls == ["Alden Street", retry_text]
    assert ranked[0].distance_km == 0


def test_locate_retry_override_location():
    locator, geocoder = _locator({}, [_pantry("A")])

    with pytest.raises(GeocodeNotFound) as excinfo:
        locator.locate("Alden Street", default_location="Ithaca, NY")

    assert geocoder.calls == ["Alden Street", "Alden Street, Ithaca, NY"]
    assert excinfo.value.address == "Alden Street"


def test_locate_without_locality_does_not_retry():
    locator, geocoder = _locator({}, [_pantry("A")], default_location=None)

    with pytest.raises(GeocodeNotFound):
        locator.locate("112 Alden Street")

    assert geocoder.calls == ["112 Alden Street"]
    assert geocoder.batches == []


def test_locate_with_no_active_pantries_skips_candidate_geocoding():
    pantries = [_pantry("A", status=PantryStatus.INACTIVE)]
    locator, geocoder = _locator({"112 Alden Street, Syracuse, NY": HOME}, pantries)

    with pytest.raises(NoActiveCandidates) as excinfo:
        locator.locate("112 Alden Street")

    assert excinfo.value.total == 1
    assert geocoder.batches == []


def test_locate_when_every_candidate_fails():
    locator, _ = _locator({"112 Alden Street, Syracuse, NY": HOME}, [_pantry("A"), _pantry("B")])
    with pytest.raises(NoCandidatesNearby):
        locator.locate("112 Alden Street")


def test_locate_rejects_short_input():
    locator, geocoder = _locator({}, [])
    with pytest.raises(NormalizationError):
        locator.locate("it's")
    assert geocoder.calls == []


def test_fetch_candidates_parses_records(monkeypatch):
    records = [
        {"_id": "1", "name": "Hope", "address": "1 Main St", "status": "active"},
        {"name": "Broken"},
        "junk",
    ]
    monkeypatch.setattr(locate.pantry_api, "list_pantries", lambda url, timeout: records)

    candidates = locate.fetch_candidates(Settings(google_maps_api_key="", pantry_api_url="https://x"))

    assert [candidate.name for candidate in candidates] == ["Hope"]


@pytest.mark.parametrize("error", [requests.ConnectionError("down"), locate.pantry_api.PantryApiError("bad")])
def test_fetch_candidates_transport_error(monkeypatch, error):
    def fake_list(url, timeout):
        raise error

    monkeypatch.setattr(locate.pantry_api, "list_pantries", fake_list)

    with pytest.raises(UpstreamTransportError) as excinfo:
        locate.fetch_candidates(Settings(google_maps_api_key="", pantry_api_url="https://x"))
    assert excinfo.value.service == "pantry database"


def test_build_locator_uses_settings():
    settings = Settings(google_maps_api_key="key", pantry_api_url="", default_location="Syracuse, NY")
    locator = locate.build_locator(settings)
    assert locator.geocoder.provider is Provider.PRIMARY
    assert locator.default_location == "Syracuse, NY"


def test_describe_result_full_record():
    pantry = _pantry(
        "Hope Pantry",
        phone_number="315-555-0100",
        inventory="canned goods, bread",
        hours=(HoursEntry("Monday", "9am-5pm"), HoursEntry("Friday", "")),
    )
    text = locate.describe_result(RankedResult(pantry, HOME, 1.26))

    assert text == (
        "The nearest pantry to you is Hope Pantry, located at Hope Pantry address. "
        "It's about 1.3 kilometers away. "
        "You can contact them at 315-555-0100. "
        "They typically have items like canned goods, bread. "
        "Their hours are: Monday: 9am-5pm, Friday: Not specified."
    )


def test_describe_result_minimal_record():
    text = locate.describe_result(RankedResult(_pantry("A"), HOME, 0.0))
    assert text == "The nearest pantry to you is A, located at A address. It's about 0.0 kilometers away."


def test_apology_for_each_failure_kind():
    messages = {
        locate.apology_for(NormalizationError("x")),
        locate.apology_for(GeocodeNotFound("1 Nowhere Rd")),
        locate.apology_for(ProviderUnavailable("x")),
        locate.apology_for(UpstreamTransportError("pantry database")),
        locate.apology_for(NoActiveCandidates(total=0)),
        locate.apology_for(NoActiveCandidates(total=3)),
        locate.apology_for(NoCandidatesNearby("x")),
    }
    assert len(messages) == 7
    assert '"1 Nowhere Rd"' in locate.apology_for(GeocodeNotFound("1 Nowhere Rd"))
    assert "pantry database" in locate.apology_for(UpstreamTransportError("pantry database", "timeout"))
    assert "timeout" not in locate.apology_for(UpstreamTransportError("pantry database", "timeout"))


def test_answer_handles_empty_and_failures():
    locator, _ = _locator({}, [], default_location=None)
    assert locate.answer(locator, "   ") == locate.EMPTY_MESSAGE_PROMPT
    assert "couldn't find the location" in locate.answer(locator, "112 Alden Street")


def test_main_prints_answer(monkeypatch, capsys):
    locator, _ = _locator({"112 Alden Street, Syracuse, NY": HOME, "A address": HOME}, [_pantry("A")])
    monkeypatch.setattr(locate, "build_locator", lambda: locator)
    monkeypatch.setattr(sys, "argv", ["pantry-locate", "--address", "112 Alden Street", "--all"])

    assert locate.main() == 0

    out = capsys.readouterr().out
    assert "The nearest pantry to you is A" in out
    assert "1. A - 0.0 km" in out


def test_main_reports_failure(monkeypatch, capsys):
    def no_provider():
        raise ProviderUnavailable("none")

    monkeypatch.setattr(locate, "build_locator", no_provider)
    monkeypatch.setattr(sys, "argv", ["pantry-locate", "--address", "112 Alden Street"])

    assert locate.main() == 1
    assert "not configured" in capsys.readouterr().out
