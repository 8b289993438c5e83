"""Speech output: sanitizing, decoding and sequential playback."""

from .sanitizer import sanitize_for_speech
from .audio_output import BaseAudioOutput, DecodedAudio, SoundDeviceAudioOutput
from .playback_queue import SpeechPlaybackQueue

__all__ = [
    "sanitize_for_speech",
    "BaseAudioOutput",
    "DecodedAudio",
    "SoundDeviceAudioOutput",
    "SpeechPlaybackQueue",
]
