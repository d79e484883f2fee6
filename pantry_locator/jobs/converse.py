"""CLI that runs one spoken-style conversation turn on the terminal."""

import argparse
import asyncio
import logging

from pantry_locator.core.errors import PantryLocatorError
from pantry_locator.jobs.conversation import ConversationSession, SpeechIOError
from pantry_locator.jobs.locate import apology_for, build_locator

logger = logging.getLogger(__name__)


class ConsoleSpeech:
    """SpeechIO that reads typed lines and prints replies.

    ``input()`` cannot be interrupted, so ``stop_listening`` only marks the
    pending line as unwanted; the session discards it.
    """

    def __init__(self, prompt: str = "you> ") -> None:
        self.prompt = prompt
        self.listening = False

    async def recognize(self) -> str:
        self.listening = True
        try:
            return await asyncio.to_thread(input, self.prompt)
        except EOFError as exc:
            raise SpeechIOError("input closed before an address was given") from exc
        finally:
            self.listening = False

    async def speak(self, text: str) -> None:
        print(f"assistant> {text}", flush=True)

    def stop_listening(self) -> None:
        self.listening = False

    def stop_speaking(self) -> None:
        pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Talk to the pantry assistant on the terminal")
    parser.add_argument("--turns", dest="turns", type=int, default=1, help="Number of conversations to run")
    parser.add_argument("--verbose", dest="verbose", action="store_true", help="Show pipeline logs")
    return parser


async def run_turns(session: ConversationSession, turns: int) -> None:
    for _ in range(max(1, turns)):
        context = await session.start()
        logger.info("Conversation ended in state=%s error=%s", context.state.value, context.last_error)
        session.reset()


def main() -> int:
    args = build_parser().parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    try:
        locator = build_locator()
    except PantryLocatorError as exc:
        print(apology_for(exc))
        return 1

    session = ConversationSession(ConsoleSpeech(), locator.locate)
    try:
        asyncio.run(run_turns(session, args.turns))
    except KeyboardInterrupt:
        session.reset()
        logger.info("Shutdown requested by user.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
