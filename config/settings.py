"""Application settings."""

import os
from typing import Optional
from pydantic import BaseModel


class Settings(BaseModel):
    """Application configuration settings."""

    # Reply generation
    llm_provider: str = "openai"  # "openai" or "anthropic"
    llm_model: Optional[str] = None  # Override default model (gpt-4o or claude-sonnet-4)
    temperature: float = 0.7
    max_tokens: int = 500

    # Transcription (Deepgram)
    deepgram_model: str = "nova-2"
    deepgram_url: str = "https://api.deepgram.com/v1/listen"
    audio_mimetype: str = "audio/webm"

    # Speech synthesis (ElevenLabs + local fallback)
    elevenlabs_url: str = "https://api.elevenlabs.io/v1/text-to-speech"
    elevenlabs_voice_id: str = "EXAVITQu4vr4xnSDxMaL"  # Sarah
    elevenlabs_model: str = "eleven_turbo_v2"
    fallback_tts_command: str = "espeak"
    request_timeout: float = 30.0

    # API Keys
    deepgram_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    elevenlabs_api_key: Optional[str] = None

    # Storage
    storage_backend: str = "sqlite"  # "sqlite" or "memory"
    db_path: str = "data/assistant.db"

    # Playback timing (seconds)
    greeting_delay: float = 0.3
    playback_gap: float = 0.3

    # Logging
    verbose: bool = False

    def __init__(self, **data):
        # Auto-load API keys from environment if not provided
        for field, env_var in (
            ("deepgram_api_key", "DEEPGRAM_API_KEY"),
            ("openai_api_key", "OPENAI_API_KEY"),
            ("anthropic_api_key", "ANTHROPIC_API_KEY"),
            ("elevenlabs_api_key", "ELEVENLABS_API_KEY"),
        ):
            if data.get(field) is None:
                data[field] = os.environ.get(env_var)

        super().__init__(**data)

    def get_llm_api_key(self) -> Optional[str]:
        """Get the API key for the configured LLM provider."""
        if self.llm_provider == "openai":
            return self.openai_api_key
        elif self.llm_provider == "anthropic":
            return self.anthropic_api_key
        return None
