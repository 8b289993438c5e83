"""Tests for the speech playback queue."""

import asyncio

from providers.errors import DecodeError
from speech.audio_output import DecodedAudio
from speech.playback_queue import PLAYBACK_ERROR_NOTICE, SpeechPlaybackQueue
from fakes import FakeAudioOutput, FakeSynthesizer


class TestSpeechPlaybackQueue:
    """Test ordering, failure handling and cancellation."""

    def setup_method(self):
        """Set up test fixtures."""
        self.synthesizer = FakeSynthesizer()
        self.audio_output = FakeAudioOutput()
        self.errors = []
        self.queue = SpeechPlaybackQueue(
            synthesizer=self.synthesizer,
            audio_output=self.audio_output,
            gap=0,
            on_error=self.errors.append,
        )

    def test_plays_in_order_without_overlap(self):
        """Test three items play sequentially in enqueue order."""
        async def run():
            self.queue.enqueue("first")
            self.queue.enqueue("second")
            self.queue.enqueue("third")
            await self.queue.wait_until_idle()

        asyncio.run(run())

        assert self.audio_output.played == ["first", "second", "third"]
        assert self.audio_output.max_active == 1
        assert self.audio_output.events == [
            ("start", "first"), ("end", "first"),
            ("start", "second"), ("end", "second"),
            ("start", "third"), ("end", "third"),
        ]

    def test_speaking_flag(self):
        """Test is_speaking is set while items play and cleared after."""
        seen = []

        async def run():
            assert not self.queue.is_speaking
            self.queue.enqueue("hello")
            await asyncio.sleep(0)
            seen.append(self.queue.is_speaking)
            await self.queue.wait_until_idle()
            seen.append(self.queue.is_speaking)

        asyncio.run(run())

        assert seen == [True, False]

    def test_text_is_sanitized(self):
        """Test markup is removed before synthesis."""
        async def run():
            self.queue.enqueue('*Sure*, see "[the page](http://x)"')
            await self.queue.wait_until_idle()

        asyncio.run(run())

        assert self.synthesizer.calls == ["Sure, see the page"]

    def test_blank_text_ignored(self):
        """Test whitespace-only items are not queued."""
        async def run():
            self.queue.enqueue("   ")
            await self.queue.wait_until_idle()

        asyncio.run(run())

        assert self.synthesizer.calls == []
        assert not self.queue.is_speaking

    def test_failure_skips_to_next_item(self):
        """Test a synthesis failure is reported and later items still play."""
        self.synthesizer.failures = {"second"}

        async def run():
            for text in ("first", "second", "third"):
                self.queue.enqueue(text)
            await self.queue.wait_until_idle()

        asyncio.run(run())

        assert self.audio_output.played == ["first", "third"]
        assert self.errors == [PLAYBACK_ERROR_NOTICE]
        assert not self.queue.is_speaking

    def test_cancel_all_drops_pending(self):
        """Test cancellation stops playback and releases the output."""
        self.synthesizer.delay = 0.05

        async def run():
            self.queue.enqueue("first")
            self.queue.enqueue("second")
            await asyncio.sleep(0.01)
            self.queue.cancel_all()
            await asyncio.sleep(0.1)

        asyncio.run(run())

        assert self.audio_output.played == []
        assert self.queue.pending == []
        assert not self.queue.is_speaking
        assert self.audio_output.close_calls == 1

    def test_enqueue_after_cancel(self):
        """Test the queue accepts new items once cancelled."""
        async def run():
            self.queue.enqueue("old")
            self.queue.cancel_all()
            self.queue.enqueue("new")
            await self.queue.wait_until_idle()

        asyncio.run(run())

        assert self.audio_output.played == ["new"]

    def test_cancel_all_is_idempotent(self):
        """Test repeated cancellation is harmless."""
        self.queue.cancel_all()
        self.queue.cancel_all()

        assert not self.queue.is_speaking
        assert self.audio_output.close_calls == 2


class FailingDecodeOutput(FakeAudioOutput):
    """Refuses to decode the texts listed in `undecodable`."""

    def __init__(self, undecodable):
        super().__init__()
        self.undecodable = set(undecodable)

    async def decode(self, audio: bytes) -> DecodedAudio:
        if audio.decode("utf-8") in self.undecodable:
            raise DecodeError("Could not decode audio")
        return await super().decode(audio)


class TestDecodeFailures:
    """Test playback continues past undecodable audio."""

    def test_decode_error_skips_item(self):
        """Test a decode failure is reported and the next item plays."""
        errors = []
        audio_output = FailingDecodeOutput(undecodable={"second"})
        queue = SpeechPlaybackQueue(
            synthesizer=FakeSynthesizer(),
            audio_output=audio_output,
            gap=0,
            on_error=errors.append,
        )

        async def run():
            for text in ("first", "second", "third"):
                queue.enqueue(text)
            await queue.wait_until_idle()

        asyncio.run(run())

        assert audio_output.played == ["first", "third"]
        assert errors == [PLAYBACK_ERROR_NOTICE]
        assert not queue.is_speaking
