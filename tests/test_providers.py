"""Tests for transcription, reply and speech synthesis providers."""

import asyncio
import os
import stat
import sys
from unittest.mock import Mock, patch

import pytest
import requests

from config.settings import Settings
from providers.errors import ReplyError, SynthesisError, TranscriptionError
from providers.gateway import create_provider_gateway
from providers.reply import SYSTEM_PROMPT, ReplyGenerator
from providers.synthesis import (
    FALLBACK_NOTICE,
    ElevenLabsSynthesizer,
    FallbackSpeechSynthesizer,
    LocalSpeechSynthesizer,
)
from providers.transcription import DeepgramTranscriber
from schemas.conversation import Message, Role
from fakes import FakeLLMClient, FakeSynthesizer


def mock_response(status_code=200, json_data=None, content=b"", text=""):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = json_data
    response.content = content
    response.text = text
    return response


class TestDeepgramTranscriber:
    """Test the Deepgram transcription client."""

    def setup_method(self):
        """Set up test fixtures."""
        self.transcriber = DeepgramTranscriber(api_key="dg-key", model="nova-2")

    @patch("requests.post")
    def test_returns_first_alternative(self, mock_post):
        """Test the transcript is read from the first channel alternative."""
        mock_post.return_value = mock_response(json_data={
            "results": {"channels": [{"alternatives": [{"transcript": "reset my password"}]}]}
        })

        transcript = asyncio.run(self.transcriber.transcribe(b"audio"))

        assert transcript == "reset my password"
        _, kwargs = mock_post.call_args
        assert kwargs["params"]["model"] == "nova-2"
        assert kwargs["params"]["smart_format"] == "true"
        assert kwargs["headers"]["Authorization"] == "Token dg-key"
        assert kwargs["data"] == b"audio"

    @patch("requests.post")
    def test_non_2xx_raises(self, mock_post):
        """Test an error status becomes a TranscriptionError."""
        mock_post.return_value = mock_response(status_code=500, text="boom")

        with pytest.raises(TranscriptionError) as exc_info:
            asyncio.run(self.transcriber.transcribe(b"audio"))

        assert exc_info.value.status_code == 500

    @patch("requests.post")
    def test_network_failure_raises(self, mock_post):
        """Test connection errors become a TranscriptionError."""
        mock_post.side_effect = requests.exceptions.ConnectionError("offline")

        with pytest.raises(TranscriptionError):
            asyncio.run(self.transcriber.transcribe(b"audio"))

    @patch("requests.post")
    def test_unexpected_payload_raises(self, mock_post):
        """Test a payload without alternatives is rejected."""
        mock_post.return_value = mock_response(json_data={"results": {"channels": []}})

        with pytest.raises(TranscriptionError):
            asyncio.run(self.transcriber.transcribe(b"audio"))

    def test_missing_key_raises(self):
        """Test the client refuses to run without an API key."""
        transcriber = DeepgramTranscriber(api_key=None)

        with pytest.raises(TranscriptionError):
            asyncio.run(transcriber.transcribe(b"audio"))


class TestReplyGenerator:
    """Test reply generation on top of an LLM client."""

    def test_system_prompt_prepended(self):
        """Test the persona instruction is sent first."""
        client = FakeLLMClient(replies=["Happy to help."])
        generator = ReplyGenerator(client)
        messages = [Message(role=Role.USER, content="hi")]

        reply = asyncio.run(generator.generate_reply(messages))

        assert reply == "Happy to help."
        sent = client.calls[0]
        assert sent[0].role == "system"
        assert sent[0].content == SYSTEM_PROMPT
        assert sent[1:] == messages

    def test_client_failure_raises_reply_error(self):
        """Test provider exceptions are wrapped."""
        client = FakeLLMClient(replies=[RuntimeError("rate limited")])

        with pytest.raises(ReplyError):
            asyncio.run(ReplyGenerator(client).generate_reply([]))

    def test_no_client_raises_reply_error(self):
        """Test a missing client is reported as a reply failure."""
        with pytest.raises(ReplyError):
            asyncio.run(ReplyGenerator(None).generate_reply([]))

    def test_settings_forwarded(self):
        """Test temperature and token limits reach the client."""
        client = Mock()
        client.chat.return_value = Mock(content="ok")
        generator = ReplyGenerator(client, temperature=0.2, max_tokens=50)

        asyncio.run(generator.generate_reply([]))

        _, kwargs = client.chat.call_args
        assert kwargs == {"temperature": 0.2, "max_tokens": 50}


class TestElevenLabsSynthesizer:
    """Test the ElevenLabs synthesis client."""

    def setup_method(self):
        """Set up test fixtures."""
        self.synthesizer = ElevenLabsSynthesizer(api_key="el-key", voice_id="voice-1")

    @patch("requests.post")
    def test_returns_audio_bytes(self, mock_post):
        """Test the response body is returned as audio."""
        mock_post.return_value = mock_response(content=b"mp3-bytes")

        audio = asyncio.run(self.synthesizer.synthesize("Hello there"))

        assert audio == b"mp3-bytes"
        args, kwargs = mock_post.call_args
        assert args[0].endswith("/voice-1/stream")
        assert kwargs["headers"]["xi-api-key"] == "el-key"
        assert kwargs["json"]["text"] == "Hello there"

    @patch("requests.post")
    def test_quota_error_raises(self, mock_post):
        """Test a 401 response becomes a SynthesisError."""
        mock_post.return_value = mock_response(status_code=401, text="quota_exceeded")

        with pytest.raises(SynthesisError) as exc_info:
            asyncio.run(self.synthesizer.synthesize("Hello"))

        assert exc_info.value.status_code == 401

    def test_missing_key_raises(self):
        """Test the client refuses to run without an API key."""
        with pytest.raises(SynthesisError):
            asyncio.run(ElevenLabsSynthesizer(api_key=None).synthesize("Hello"))


class TestFallbackSpeechSynthesizer:
    """Test switching to the local synthesizer."""

    def test_primary_used_when_available(self):
        """Test the fallback is untouched while the primary works."""
        fallback = FakeSynthesizer()
        synthesizer = FallbackSpeechSynthesizer(FakeSynthesizer(), fallback)

        assert asyncio.run(synthesizer.synthesize("hi")) == b"hi"
        assert fallback.calls == []

    def test_fallback_on_failure(self):
        """Test a primary failure switches to the fallback and notifies."""
        notices = []
        fallback = FakeSynthesizer()
        synthesizer = FallbackSpeechSynthesizer(
            FakeSynthesizer(failures={"hi"}),
            fallback,
            on_fallback=notices.append,
        )

        assert asyncio.run(synthesizer.synthesize("hi")) == b"hi"
        assert fallback.calls == ["hi"]
        assert notices == [FALLBACK_NOTICE]

    def test_both_failing_raises(self):
        """Test the error surfaces when no synthesizer can speak."""
        synthesizer = FallbackSpeechSynthesizer(
            FakeSynthesizer(failures={"hi"}),
            FakeSynthesizer(failures={"hi"}),
        )

        with pytest.raises(SynthesisError):
            asyncio.run(synthesizer.synthesize("hi"))


class TestLocalSpeechSynthesizer:
    """Test the espeak command line synthesizer."""

    @staticmethod
    def write_command(path, body):
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(path.stat().st_mode | stat.S_IEXEC)
        return str(path)

    def test_missing_command_raises(self):
        """Test an unavailable binary becomes a SynthesisError."""
        synthesizer = LocalSpeechSynthesizer(command="no-such-speech-binary-xyz")

        with pytest.raises(SynthesisError):
            asyncio.run(synthesizer.synthesize("hello"))

    @pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
    def test_text_sent_on_stdin(self, tmp_path):
        """Test reply text never reaches the command line as options."""
        args_file = tmp_path / "args"
        command = self.write_command(
            tmp_path / "fake-espeak",
            f'echo "$@" > {args_file}\ncat\n',
        )
        synthesizer = LocalSpeechSynthesizer(command=command)

        audio = asyncio.run(synthesizer.synthesize("- First, open settings"))

        assert audio == b"- First, open settings"
        assert args_file.read_text().split() == ["--stdout", "-s", "175", "--stdin"]

    @pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
    def test_cancel_kills_process(self, tmp_path):
        """Test cancelling synthesis terminates the child process."""
        pid_file = tmp_path / "pid"
        command = self.write_command(
            tmp_path / "slow-espeak",
            f"echo $$ > {pid_file}\nexec sleep 30\n",
        )
        synthesizer = LocalSpeechSynthesizer(command=command)

        async def run():
            task = asyncio.create_task(synthesizer.synthesize("hello"))
            for _ in range(100):
                if pid_file.exists() and pid_file.read_text().strip():
                    break
                await asyncio.sleep(0.02)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(run())

        pid = int(pid_file.read_text())
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)


class TestProviderGateway:
    """Test wiring of the real providers."""

    def test_gateway_without_llm_key(self):
        """Test a missing reply key still builds a working gateway."""
        settings = Settings(llm_provider="openai")
        settings.openai_api_key = None
        gateway = create_provider_gateway(settings)

        assert gateway.reply_generator.llm_client is None
        assert isinstance(gateway.synthesizer, FallbackSpeechSynthesizer)
        with pytest.raises(ReplyError):
            asyncio.run(gateway.generate_reply([]))
