"""Shared pytest fixtures."""

import pytest

from config.settings import Settings
from fakes import FakeAudioOutput, FakeLLMClient, FakeSynthesizer, FakeTranscriber
from memory import InMemoryKeyValueStore, PersistentStore
from providers.gateway import ProviderGateway
from providers.reply import ReplyGenerator


@pytest.fixture
def settings():
    return Settings(storage_backend="memory", greeting_delay=0, playback_gap=0)


@pytest.fixture
def store():
    return PersistentStore(InMemoryKeyValueStore())


@pytest.fixture
def transcriber():
    return FakeTranscriber()


@pytest.fixture
def llm_client():
    return FakeLLMClient()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def audio_output():
    return FakeAudioOutput()


@pytest.fixture
def gateway(transcriber, llm_client, synthesizer):
    return ProviderGateway(
        transcriber=transcriber,
        reply_generator=ReplyGenerator(llm_client),
        synthesizer=synthesizer,
    )
