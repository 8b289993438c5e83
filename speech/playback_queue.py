"""Single-flight, first-in first-out speech playback."""

import asyncio
import logging
from collections import deque
from typing import Callable, Deque, List, Optional

from providers.errors import DecodeError, SynthesisError
from providers.synthesis import BaseSpeechSynthesizer
from .audio_output import BaseAudioOutput
from .sanitizer import sanitize_for_speech

logger = logging.getLogger(__name__)

PLAYBACK_ERROR_NOTICE = "Failed to play speech. Please try again."


class SpeechPlaybackQueue:
    """
    Speaks queued texts one at a time, in order.

    A single worker task drains the queue: each item is sanitized,
    synthesized, decoded and played before the next one starts, with a short
    gap between consecutive items. `is_speaking` stays true across that gap.
    Failures are reported and skipped so later items still play.
    """

    def __init__(
        self,
        synthesizer: BaseSpeechSynthesizer,
        audio_output: BaseAudioOutput,
        gap: float = 0.3,
        on_error: Optional[Callable[[str], None]] = None,
        sanitize: Callable[[str], str] = sanitize_for_speech
    ):
        self.synthesizer = synthesizer
        self.audio_output = audio_output
        self.gap = gap
        self.on_error = on_error
        self.sanitize = sanitize

        self._pending: Deque[str] = deque()
        self._worker: Optional[asyncio.Task] = None
        self._speaking = False
        # Bumped by cancel_all(); work started under an older value is dropped
        self._generation = 0

    @property
    def is_speaking(self) -> bool:
        return self._speaking

    @property
    def pending(self) -> List[str]:
        return list(self._pending)

    def enqueue(self, text: str):
        """Queue `text`; playback starts right away when nothing is playing."""
        if not text.strip():
            logger.debug("Ignoring empty playback item")
            return

        self._pending.append(text)
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(
                self._drain(self._generation)
            )

    async def _drain(self, generation: int):
        try:
            while generation == self._generation and self._pending:
                text = self._pending.popleft()
                self._speaking = True
                await self._speak(text, generation)

                if self._pending and generation == self._generation:
                    await asyncio.sleep(self.gap)
        finally:
            if generation == self._generation:
                self._speaking = False

    async def _speak(self, text: str, generation: int):
        try:
            audio = await self.synthesizer.synthesize(self.sanitize(text))
            if generation != self._generation:
                logger.debug("Discarding speech synthesized after cancellation")
                return

            decoded = await self.audio_output.decode(audio)
            if generation != self._generation:
                return

            self.audio_output.stop()
            await self.audio_output.play(decoded)

        except (SynthesisError, DecodeError) as e:
            logger.error(f"Error playing speech: {e}")
            self._report(PLAYBACK_ERROR_NOTICE)
        except Exception as e:
            # Output device failures must not stall the remaining items
            logger.exception(f"Audio playback failed: {e}")
            self._report(PLAYBACK_ERROR_NOTICE)

    def _report(self, message: str):
        if self.on_error:
            self.on_error(message)

    async def wait_until_idle(self):
        """Return once every queued item has been played or dropped."""
        while self._worker is not None and not self._worker.done():
            await asyncio.wait({self._worker})

    def cancel_all(self):
        """Stop playback, release the audio output and drop pending items."""
        self._generation += 1
        dropped = len(self._pending)
        self._pending.clear()

        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
        self._worker = None
        self._speaking = False

        self.audio_output.stop()
        self.audio_output.close()

        if dropped:
            logger.info(f"Dropped {dropped} pending playback item(s)")
