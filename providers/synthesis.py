"""Text-to-speech providers: ElevenLabs with a local espeak fallback."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

import requests

from .errors import SynthesisError

logger = logging.getLogger(__name__)

FALLBACK_NOTICE = "Using local text-to-speech due to API limitations."


class BaseSpeechSynthesizer(ABC):
    """Turns text into playable audio bytes."""

    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        """
        Synthesize speech for `text`.

        Raises:
            SynthesisError: If no audio could be produced
        """
        pass


class ElevenLabsSynthesizer(BaseSpeechSynthesizer):
    """ElevenLabs streaming text-to-speech client."""

    VOICE_SETTINGS = {
        "stability": 0.5,
        "similarity_boost": 0.75,
        "style": 0.0,
        "use_speaker_boost": True,
    }

    def __init__(
        self,
        api_key: Optional[str],
        voice_id: str = "EXAVITQu4vr4xnSDxMaL",
        model_id: str = "eleven_turbo_v2",
        url: str = "https://api.elevenlabs.io/v1/text-to-speech",
        timeout: float = 30.0
    ):
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.url = url.rstrip("/")
        self.timeout = timeout

    async def synthesize(self, text: str) -> bytes:
        return await asyncio.to_thread(self._synthesize_sync, text)

    def _synthesize_sync(self, text: str) -> bytes:
        if not self.api_key:
            raise SynthesisError("ElevenLabs API key not configured")

        try:
            response = requests.post(
                f"{self.url}/{self.voice_id}/stream",
                headers={
                    "Content-Type": "application/json",
                    "xi-api-key": self.api_key,
                },
                json={
                    "text": text,
                    "model_id": self.model_id,
                    "voice_settings": self.VOICE_SETTINGS,
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise SynthesisError(f"Speech synthesis request failed: {e}") from e

        if not response.ok:
            # 401 here usually means the character quota is exhausted
            logger.warning(f"ElevenLabs error {response.status_code}: {response.text}")
            raise SynthesisError(
                f"Speech synthesis failed: {response.status_code}",
                status_code=response.status_code,
            )

        return response.content


class LocalSpeechSynthesizer(BaseSpeechSynthesizer):
    """On-device synthesis through the espeak command line tool (WAV output)."""

    def __init__(self, command: str = "espeak", rate: int = 175):
        self.command = command
        self.rate = rate

    async def synthesize(self, text: str) -> bytes:
        # Text goes through stdin so a leading "-" is never read as an option
        try:
            proc = await asyncio.create_subprocess_exec(
                self.command, "--stdout", "-s", str(self.rate), "--stdin",
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SynthesisError(f"Local speech synthesizer unavailable: {e}") from e

        try:
            stdout, stderr = await proc.communicate(text.encode("utf-8"))
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
            await proc.wait()
            raise

        if proc.returncode != 0 or not stdout:
            raise SynthesisError(
                f"{self.command} exited with {proc.returncode}: "
                f"{stderr.decode(errors='replace').strip()}"
            )
        return stdout


class FallbackSpeechSynthesizer(BaseSpeechSynthesizer):
    """Uses the primary synthesizer, switching to the fallback when it fails."""

    def __init__(
        self,
        primary: BaseSpeechSynthesizer,
        fallback: BaseSpeechSynthesizer,
        on_fallback: Optional[Callable[[str], None]] = None
    ):
        self.primary = primary
        self.fallback = fallback
        self.on_fallback = on_fallback

    async def synthesize(self, text: str) -> bytes:
        try:
            return await self.primary.synthesize(text)
        except SynthesisError as e:
            logger.warning(f"Primary speech synthesis failed, using fallback: {e}")
            if self.on_fallback:
                self.on_fallback(FALLBACK_NOTICE)
            return await self.fallback.synthesize(text)
