"""Provider gateway: the three external calls a conversation depends on."""

from typing import Callable, List, Optional

from config.settings import Settings
from llm.factory import create_reply_client
from schemas.conversation import Message
from .reply import ReplyGenerator
from .synthesis import (
    BaseSpeechSynthesizer,
    ElevenLabsSynthesizer,
    FallbackSpeechSynthesizer,
    LocalSpeechSynthesizer,
)
from .transcription import BaseTranscriber, DeepgramTranscriber


class ProviderGateway:
    """Transcription, reply generation and speech synthesis behind one facade."""

    def __init__(
        self,
        transcriber: BaseTranscriber,
        reply_generator: ReplyGenerator,
        synthesizer: BaseSpeechSynthesizer
    ):
        self.transcriber = transcriber
        self.reply_generator = reply_generator
        self.synthesizer = synthesizer

    async def transcribe(self, audio: bytes) -> str:
        return await self.transcriber.transcribe(audio)

    async def generate_reply(self, messages: List[Message]) -> str:
        return await self.reply_generator.generate_reply(messages)

    async def synthesize_speech(self, text: str) -> bytes:
        return await self.synthesizer.synthesize(text)


def create_provider_gateway(
    settings: Settings,
    on_notice: Optional[Callable[[str], None]] = None
) -> ProviderGateway:
    """
    Wire the real providers from settings.

    Args:
        settings: Application settings
        on_notice: Receives informational messages, e.g. when speech falls
            back to the local synthesizer
    """
    transcriber = DeepgramTranscriber(
        api_key=settings.deepgram_api_key,
        url=settings.deepgram_url,
        model=settings.deepgram_model,
        mimetype=settings.audio_mimetype,
        timeout=settings.request_timeout,
    )
    reply_generator = ReplyGenerator(
        llm_client=create_reply_client(settings),
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )
    synthesizer = FallbackSpeechSynthesizer(
        primary=ElevenLabsSynthesizer(
            api_key=settings.elevenlabs_api_key,
            voice_id=settings.elevenlabs_voice_id,
            model_id=settings.elevenlabs_model,
            url=settings.elevenlabs_url,
            timeout=settings.request_timeout,
        ),
        fallback=LocalSpeechSynthesizer(command=settings.fallback_tts_command),
        on_fallback=on_notice,
    )
    return ProviderGateway(transcriber, reply_generator, synthesizer)
