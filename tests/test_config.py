import pytest

from pantry_locator.core import config

_ENV_VARS = (
    "GOOGLE_MAPS_API_KEY",
    "PANTRY_API_URL",
    "DEFAULT_CITY_STATE",
    "DEFAULT_POSTAL_PREFIX",
    "AGENT_WEBHOOK_SECRET",
    "NOMINATIM_ENABLED",
    "NOMINATIM_DELAY_SECONDS",
    "NOMINATIM_USER_AGENT",
    "GEOCODE_MAX_WORKERS",
    "GEOCODE_TIMEOUT_SECONDS",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def test_get_settings_reads_env(monkeypatch):
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "abc123")
    monkeypatch.setenv("PANTRY_API_URL", "https://pantries.example/api/list")
    monkeypatch.setenv("DEFAULT_CITY_STATE", " Syracuse, NY ")
    monkeypatch.setenv("DEFAULT_POSTAL_PREFIX", "132")
    monkeypatch.setenv("NOMINATIM_DELAY_SECONDS", "2.5")
    monkeypatch.setenv("GEOCODE_TIMEOUT_SECONDS", "4")
    monkeypatch.setenv("PORT", "9100")

    settings = config.get_settings()

    assert settings.google_maps_api_key == "abc123"
    assert settings.pantry_api_url == "https://pantries.example/api/list"
    assert settings.default_location == "Syracuse, NY"
    assert settings.default_postal_prefix == "132"
    assert settings.nominatim_delay_seconds == 2.5
    assert settings.geocode_timeout == 4.0
    assert settings.port == 9100


def test_get_settings_warns_when_missing(caplog):
    with caplog.at_level("WARNING"):
        settings = config.get_settings()

    messages = " ".join(caplog.messages)
    assert "PANTRY_API_URL is not set" in messages
    assert "falling back to rate-limited Nominatim" in messages
    assert settings.google_maps_api_key == ""
    assert settings.default_location is None
    assert settings.nominatim_enabled is True
    assert settings.nominatim_delay_seconds == 1.1
    assert settings.nominatim_user_agent == "PantryAssistant/1.0"
    assert settings.port == 8080


def test_get_settings_disabling_nominatim(monkeypatch, caplog):
    monkeypatch.setenv("NOMINATIM_ENABLED", "false")

    with caplog.at_level("WARNING"):
        settings = config.get_settings()

    assert settings.nominatim_enabled is False
    assert "Nominatim is disabled" in " ".join(caplog.messages)
