"""Error taxonomy for the voice assistant."""

from typing import Optional


class ProviderError(Exception):
    """Base class for failures of an external speech or language provider."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TranscriptionError(ProviderError):
    """Transcription provider unavailable or returned a non-2xx response."""


class ReplyError(ProviderError):
    """Reply generator unavailable or returned a non-2xx response."""


class SynthesisError(ProviderError):
    """Speech synthesis unavailable or out of quota."""


class DecodeError(ProviderError):
    """Synthesized audio could not be decoded."""


class StoreInconsistency(Exception):
    """Users and conversation history disagree about some conversations."""

    def __init__(self, conversation_ids: list[str]):
        super().__init__(
            f"{len(conversation_ids)} conversation(s) differ between users and history: "
            + ", ".join(conversation_ids)
        )
        self.conversation_ids = conversation_ids


class TurnInProgressError(RuntimeError):
    """An audio submission arrived while the previous turn is still running."""
