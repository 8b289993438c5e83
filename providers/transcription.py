"""Speech-to-text via the Deepgram pre-recorded audio API."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests

from .errors import TranscriptionError

logger = logging.getLogger(__name__)


class BaseTranscriber(ABC):
    """Turns recorded audio into text."""

    @abstractmethod
    async def transcribe(self, audio: bytes) -> str:
        """
        Transcribe one recorded utterance.

        Returns:
            The transcript; an empty string when nothing was heard

        Raises:
            TranscriptionError: If the provider fails
        """
        pass


class DeepgramTranscriber(BaseTranscriber):
    """Deepgram `/v1/listen` client."""

    def __init__(
        self,
        api_key: Optional[str],
        url: str = "https://api.deepgram.com/v1/listen",
        model: str = "nova-2",
        mimetype: str = "audio/webm",
        timeout: float = 30.0
    ):
        self.api_key = api_key
        self.url = url
        self.model = model
        self.mimetype = mimetype
        self.timeout = timeout

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": self.mimetype,
        }

    async def transcribe(self, audio: bytes) -> str:
        return await asyncio.to_thread(self._transcribe_sync, audio)

    def _transcribe_sync(self, audio: bytes) -> str:
        if not self.api_key:
            raise TranscriptionError("Deepgram API key not configured")

        try:
            response = requests.post(
                self.url,
                params={"model": self.model, "smart_format": "true"},
                headers=self._get_headers(),
                data=audio,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Deepgram request failed: {e}")
            raise TranscriptionError(f"Transcription request failed: {e}") from e

        if not response.ok:
            logger.error(f"Deepgram error {response.status_code}: {response.text}")
            raise TranscriptionError(
                f"Failed to transcribe audio: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
            transcript = data["results"]["channels"][0]["alternatives"][0]["transcript"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise TranscriptionError(f"Unexpected transcription payload: {e}") from e

        return transcript or ""
