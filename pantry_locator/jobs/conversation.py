"""Turn-taking state machine for the voice assistant.

One session owns one ``ConversationContext`` and drives it through an
explicit transition table::

    idle                --start-------------------> waiting_for_address
    waiting_for_address --utterance_received------> processing
    waiting_for_address --recognition_failed------> idle
    processing          --resolution_succeeded----> found_pantry
    processing          --resolution_failed-------> idle
    any state           --reset-------------------> idle

Every ``start`` and ``reset`` bumps a session token. Work that finishes
under an older token (a slow geocode, a late transcript, the tail of a
playback) is discarded instead of being applied to the new session.
"""

import asyncio
import itertools
import logging
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, List, Protocol, Tuple

from pantry_locator.core.errors import PantryLocatorError
from pantry_locator.core.models import ConversationContext, ConversationState, RankedResult
from pantry_locator.jobs.locate import GENERIC_APOLOGY, apology_for, describe_result

logger = logging.getLogger(__name__)

GREETING = "Hello! I can help you find the nearest pantry. Please tell me your address."
NOT_HEARD = "I'm sorry, I didn't catch that. Please start again and tell me your address."


class SpeechIOError(RuntimeError):
    """Raised by a SpeechIO implementation when recognition or playback fails."""


class SpeechIO(Protocol):
    async def recognize(self) -> str:
        """Listen once and return the final transcript."""
        ...

    async def speak(self, text: str) -> None:
        """Play ``text`` and return when playback has finished."""
        ...

    def stop_listening(self) -> None:
        ...

    def stop_speaking(self) -> None:
        ...


class ConversationEvent(str, Enum):
    START = "start"
    UTTERANCE_RECEIVED = "utterance_received"
    RECOGNITION_FAILED = "recognition_failed"
    RESOLUTION_SUCCEEDED = "resolution_succeeded"
    RESOLUTION_FAILED = "resolution_failed"
    RESET = "reset"


class InvalidTransition(ValueError):
    """Raised when an event is not accepted in the current state."""


TRANSITIONS: Dict[Tuple[ConversationState, ConversationEvent], ConversationState] = {
    (ConversationState.IDLE, ConversationEvent.START): ConversationState.WAITING_FOR_ADDRESS,
    (ConversationState.WAITING_FOR_ADDRESS, ConversationEvent.UTTERANCE_RECEIVED): ConversationState.PROCESSING,
    (ConversationState.WAITING_FOR_ADDRESS, ConversationEvent.RECOGNITION_FAILED): ConversationState.IDLE,
    (ConversationState.PROCESSING, ConversationEvent.RESOLUTION_SUCCEEDED): ConversationState.FOUND_PANTRY,
    (ConversationState.PROCESSING, ConversationEvent.RESOLUTION_FAILED): ConversationState.IDLE,
}


def transition(context: ConversationContext, event: ConversationEvent, **changes: Any) -> ConversationContext:
    """Return the context that follows ``event``; the input context is left untouched."""
    if event is ConversationEvent.RESET:
        return ConversationContext(session=context.session)

    target = TRANSITIONS.get((context.state, event))
    if target is None:
        raise InvalidTransition(f"{event.value} is not valid in state {context.state.value}")

    if event is ConversationEvent.START:
        changes = {"transcript": "", "result": None, "last_error": None, **changes}
    if target is not ConversationState.WAITING_FOR_ADDRESS:
        changes["listening"] = False
    return replace(context, state=target, **changes)


class ConversationSession:
    """Sequences listening, processing and speaking for one user at a time."""

    def __init__(self, speech: SpeechIO, resolver: Callable[[str], List[RankedResult]]) -> None:
        self._speech = speech
        self._resolver = resolver
        self._tokens = itertools.count(1)
        self._playbacks = itertools.count(1)
        self._playback = 0
        self._context = ConversationContext()

    @property
    def context(self) -> ConversationContext:
        return self._context

    def _is_current(self, token: int) -> bool:
        return self._context.session == token

    def _apply(self, token: int, event: ConversationEvent, **changes: Any) -> bool:
        if not self._is_current(token):
            logger.debug("Dropping %s from stale session %d", event.value, token)
            return False
        self._context = transition(self._context, event, **changes)
        return True

    def _update(self, token: int, **changes: Any) -> bool:
        if not self._is_current(token):
            return False
        self._context = replace(self._context, **changes)
        return True

    async def _say(self, token: int, text: str) -> None:
        if not self._update(token, listening=False, speaking=True):
            return
        playback = self._playback = next(self._playbacks)
        try:
            await self._speech.speak(text)
        except SpeechIOError as exc:
            logger.warning("Speech playback failed: %s", exc)
            self._update(token, last_error=str(exc))
        finally:
            # A newer playback owns the flag once this one was cut off.
            if self._playback == playback:
                self._update(token, speaking=False)

    def _silence(self) -> None:
        self._speech.stop_listening()
        self._speech.stop_speaking()

    def reset(self) -> ConversationContext:
        """Stop recognition and playback and return to an empty idle context."""
        self._silence()
        self._context = replace(transition(self._context, ConversationEvent.RESET), session=next(self._tokens))
        return self._context

    async def start(self) -> ConversationContext:
        """Greet the user, listen for one utterance and answer it."""
        self._silence()
        token = next(self._tokens)
        self._context = transition(ConversationContext(session=token), ConversationEvent.START)

        await self._say(token, GREETING)
        if (
            not self._is_current(token)
            or self._context.state is not ConversationState.WAITING_FOR_ADDRESS
            or self._context.speaking
        ):
            return self._context
        self._update(token, listening=True)

        try:
            transcript = await self._speech.recognize()
        except SpeechIOError as exc:
            logger.warning("Speech recognition failed: %s", exc)
            if self._is_current(token) and self._context.state is ConversationState.WAITING_FOR_ADDRESS:
                self._apply(token, ConversationEvent.RECOGNITION_FAILED, last_error=str(exc))
                await self._say(token, NOT_HEARD)
            return self._context
        finally:
            self._update(token, listening=False)

        if self._context.state is not ConversationState.WAITING_FOR_ADDRESS:
            return self._context
        return await self._process(token, transcript)

    async def submit(self, transcript: str) -> ConversationContext:
        """Answer a typed address while the session is waiting for one."""
        token = self._context.session
        if (self._context.state, ConversationEvent.UTTERANCE_RECEIVED) not in TRANSITIONS:
            raise InvalidTransition(f"cannot take an address in state {self._context.state.value}")
        # Cut off the greeting so the answer never plays over it.
        self._silence()
        self._playback = next(self._playbacks)
        self._update(token, listening=False, speaking=False)
        return await self._process(token, transcript)

    async def _process(self, token: int, transcript: str) -> ConversationContext:
        if not self._apply(token, ConversationEvent.UTTERANCE_RECEIVED, transcript=transcript):
            return self._context

        try:
            ranked = await asyncio.to_thread(self._resolver, transcript)
        except PantryLocatorError as exc:
            reply = apology_for(exc)
            failure = str(exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure resolving '%s'", transcript)
            reply = GENERIC_APOLOGY
            failure = str(exc) or type(exc).__name__
        else:
            if self._apply(token, ConversationEvent.RESOLUTION_SUCCEEDED, result=ranked[0]):
                await self._say(token, describe_result(ranked[0]))
            return self._context

        if self._apply(token, ConversationEvent.RESOLUTION_FAILED, last_error=failure):
            await self._say(token, reply)
        return self._context
