"""Client utilities for the ElevenLabs text-to-speech API."""

import logging

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://api.elevenlabs.io/v1/text-to-speech"

MODEL_ID = "eleven_monolingual_v1"
VOICE_SETTINGS = {"stability": 0.5, "similarity_boost": 0.75}


class ElevenLabsError(RuntimeError):
    """Raised when speech synthesis fails."""


def text_to_speech(text: str, api_key: str, voice_id: str, timeout: float = 30) -> bytes:
    """Synthesize ``text`` and return MPEG audio bytes."""
    if not api_key:
        raise ElevenLabsError("ElevenLabs API key not configured")

    body = {"text": text, "model_id": MODEL_ID, "voice_settings": VOICE_SETTINGS}
    headers = {"xi-api-key": api_key, "Accept": "audio/mpeg"}
    response = _SESSION.post(f"{_BASE_URL}/{voice_id}", json=body, headers=headers, timeout=timeout)
    if response.status_code >= 400:
        logger.error("text_to_speech failed: status=%s body=%s", response.status_code, response.text[:200])
        raise ElevenLabsError(f"speech synthesis failed with HTTP {response.status_code}")
    return response.content
