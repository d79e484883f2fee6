"""HTTP entrypoint for voice agents that need the nearest pantry (Cloud Run friendly)."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify, request

from pantry_locator.core.config import get_settings
from pantry_locator.core.errors import PantryLocatorError
from pantry_locator.jobs.locate import GENERIC_APOLOGY, PantryLocator, answer, apology_for, build_locator
from pantry_locator.vendors import elevenlabs

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

# Agent platforms disagree on where the user's words go; first non-empty wins.
MESSAGE_FIELDS = ("message", "address", "user_input", "input", "query", "transcript", "content")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


@lru_cache(maxsize=1)
def get_locator() -> PantryLocator:
    """One locator per process so the Nominatim pacing spans requests."""
    return build_locator(get_settings())


def _extract_message(payload: Dict[str, Any]) -> str:
    for field in MESSAGE_FIELDS:
        value = payload.get(field)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def _is_authorized(secret: str) -> bool:
    if not secret:
        return True
    return request.headers.get("Authorization") == f"Bearer {secret}"


@app.after_request
def add_cors_headers(response: Response) -> Response:
    response.headers.update(CORS_HEADERS)
    return response


# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, never calls a provider."""
    settings = get_settings()
    if settings.google_maps_api_key:
        provider = "google"
    elif settings.nominatim_enabled:
        provider = "nominatim"
    else:
        provider = None
    return (
        jsonify(
            {
                "status": "ok",
                "geocoder": provider,
                "pantry_api_configured": bool(settings.pantry_api_url),
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.get("/agent")
def agent_ready() -> Any:
    return jsonify({"status": "ok", "message": "Pantry agent webhook is ready", "endpoint": "/agent"}), 200


@app.post("/agent")
def agent_webhook() -> Any:
    """
    Answer an agent turn with the nearest pantry.
    JSON body: one of MESSAGE_FIELDS holding the user's words.
    Query: default_location or default_city overrides DEFAULT_CITY_STATE.
    """
    settings = get_settings()
    if not _is_authorized(settings.webhook_secret):
        return jsonify({"error": "Unauthorized"}), 401

    default_location: Optional[str] = (
        request.args.get("default_location") or request.args.get("default_city") or None
    )
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    message = _extract_message(payload)

    try:
        reply = answer(get_locator(), message, default_location)
    except PantryLocatorError as exc:
        reply = apology_for(exc)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Agent webhook failed: %s", exc)
        return jsonify({"response": GENERIC_APOLOGY}), 500

    return jsonify({"response": reply}), 200


@app.post("/tts")
def synthesize_speech() -> Any:
    """Proxy text to ElevenLabs and return MPEG audio."""
    payload = request.get_json(silent=True) or {}
    text = payload.get("text") if isinstance(payload, dict) else None
    if not text:
        return jsonify({"error": "Text is required"}), 400

    settings = get_settings()
    if not settings.elevenlabs_api_key:
        return jsonify({"error": "ElevenLabs API key not configured"}), 500

    try:
        audio = elevenlabs.text_to_speech(text, settings.elevenlabs_api_key, settings.elevenlabs_voice_id)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Speech synthesis failed: %s", exc)
        return jsonify({"error": "Failed to generate speech"}), 500

    return Response(audio, status=200, mimetype="audio/mpeg")


def main() -> None:
    """
    Cloud Run injects PORT (usually 8080); fall back to the configured port locally.
    """
    port = int(os.getenv("PORT") or get_settings().port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
