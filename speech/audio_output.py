"""Audio decoding and playback on the local output device."""

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from providers.errors import DecodeError

logger = logging.getLogger(__name__)


class DecodedAudio(BaseModel):
    """PCM samples ready for playback."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    samples: Any
    sample_rate: int


class BaseAudioOutput(ABC):
    """An audio output owned by a single session."""

    @abstractmethod
    async def decode(self, audio: bytes) -> DecodedAudio:
        """
        Decode an encoded buffer (MP3, WAV, ...).

        Raises:
            DecodeError: If the buffer is empty or malformed
        """
        pass

    @abstractmethod
    async def play(self, decoded: DecodedAudio):
        """Play to completion, or until `stop()` is called."""
        pass

    @abstractmethod
    def stop(self):
        """Stop the active playback, if any."""
        pass

    @abstractmethod
    def close(self):
        """Release the device. Safe to call more than once."""
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass


class SoundDeviceAudioOutput(BaseAudioOutput):
    """Decodes with soundfile and plays through sounddevice (PortAudio)."""

    def __init__(self, device: Optional[int] = None):
        self.device = device
        self._sd = None

    @property
    def is_open(self) -> bool:
        return self._sd is not None

    def _ensure_open(self):
        # PortAudio is loaded on first playback only
        if self._sd is None:
            import sounddevice as sd
            self._sd = sd
            logger.info("Audio output opened")
        return self._sd

    async def decode(self, audio: bytes) -> DecodedAudio:
        return await asyncio.to_thread(self._decode_sync, audio)

    def _decode_sync(self, audio: bytes) -> DecodedAudio:
        import soundfile as sf

        if not audio:
            raise DecodeError("Empty audio buffer")

        try:
            samples, sample_rate = sf.read(io.BytesIO(audio), dtype="float32")
        except (sf.SoundFileError, RuntimeError) as e:
            raise DecodeError(f"Could not decode audio: {e}") from e

        return DecodedAudio(samples=samples, sample_rate=sample_rate)

    async def play(self, decoded: DecodedAudio):
        sd = self._ensure_open()
        sd.play(decoded.samples, samplerate=decoded.sample_rate, device=self.device)
        await asyncio.to_thread(sd.wait)

    def stop(self):
        if self._sd is not None:
            self._sd.stop()

    def close(self):
        if self._sd is None:
            return
        self._sd.stop()
        self._sd = None
        logger.info("Audio output released")
