"""External providers: transcription, reply generation and speech synthesis."""

from .errors import (
    ProviderError,
    TranscriptionError,
    ReplyError,
    SynthesisError,
    DecodeError,
    StoreInconsistency,
    TurnInProgressError,
)
from .gateway import ProviderGateway, create_provider_gateway
from .reply import ReplyGenerator, SYSTEM_PROMPT, APOLOGY_REPLY

__all__ = [
    "ProviderError",
    "TranscriptionError",
    "ReplyError",
    "SynthesisError",
    "DecodeError",
    "StoreInconsistency",
    "TurnInProgressError",
    "ProviderGateway",
    "create_provider_gateway",
    "ReplyGenerator",
    "SYSTEM_PROMPT",
    "APOLOGY_REPLY",
]
