"""Conversation session: greeting, per-turn pipeline and persistence."""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from config.settings import Settings
from memory.store import PersistentStore
from providers.errors import ReplyError, TranscriptionError, TurnInProgressError
from providers.gateway import ProviderGateway
from providers.reply import APOLOGY_REPLY
from schemas.conversation import ConversationRecord, Message, Role, UserRecord
from speech.audio_output import BaseAudioOutput, SoundDeviceAudioOutput
from speech.playback_queue import SpeechPlaybackQueue
from .notices import NoticeBoard
from .topics import GREETING_TOPIC_KEYWORDS, TopicTable, drop_generic_topic, extract_topics

logger = logging.getLogger(__name__)

NOTHING_HEARD_NOTICE = "I couldn't hear anything. Please try again."
TURN_FAILED_NOTICE = "Error processing your request. Please try again."
REPLY_FAILED_NOTICE = "Failed to get AI response. Please try again."


class ConversationSession:
    """
    One user's voice session, from greeting to teardown.

    The session id is fixed at construction and names this session's record
    in both the user's conversation list and the global history.
    """

    def __init__(
        self,
        name: str,
        email: str,
        store: PersistentStore,
        gateway: ProviderGateway,
        settings: Optional[Settings] = None,
        audio_output: Optional[BaseAudioOutput] = None,
        notices: Optional[NoticeBoard] = None,
        topic_table: TopicTable = GREETING_TOPIC_KEYWORDS,
        session_id: Optional[str] = None
    ):
        self.name = name
        self.email = email
        self.store = store
        self.gateway = gateway
        self.settings = settings or Settings()
        self.notices = notices or NoticeBoard()
        self.topic_table = topic_table
        self.session_id = session_id or uuid.uuid4().hex

        self.playback = SpeechPlaybackQueue(
            synthesizer=gateway.synthesizer,
            audio_output=audio_output or SoundDeviceAudioOutput(),
            gap=self.settings.playback_gap,
            on_error=self.notices.error,
        )

        self._messages: List[Message] = []
        self._processing = False
        self._greeting_task: Optional[asyncio.Task] = None

    # -- State --------------------------------------------------------------

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    @property
    def is_processing(self) -> bool:
        return self._processing

    @property
    def is_speaking(self) -> bool:
        return self.playback.is_speaking

    @property
    def default_greeting(self) -> str:
        return f"Hello {self.name}! I'm your AI Voice Assistant. How can I help you today?"

    @property
    def _remembered_prefix(self) -> str:
        return f"Hello {self.name}! I remember"

    def _is_remembered_greeting(self, msg: Message) -> bool:
        return msg.role == Role.ASSISTANT.value and self._remembered_prefix in msg.content

    def _is_greeting(self, msg: Message) -> bool:
        if msg.role != Role.ASSISTANT.value:
            return False
        return (
            msg.is_greeting
            or self._is_remembered_greeting(msg)
            or msg.content == self.default_greeting
        )

    def display_messages(self) -> List[Message]:
        """Transcript for continuity display, without remembered-topic greetings."""
        return [msg for msg in self._messages if not self._is_remembered_greeting(msg)]

    # -- Greeting -----------------------------------------------------------

    def _owns(self, record: ConversationRecord) -> bool:
        if record.email is not None:
            return record.email.lower() == self.email.lower()
        # Records written before ownership was tracked carry only the greeting
        marker = f"Hello {self.name}!"
        return any(
            msg.role == Role.ASSISTANT.value and marker in msg.content
            for msg in record.messages
        )

    def _previous_conversation(self) -> Optional[ConversationRecord]:
        for record in reversed(self.store.read_history()):
            if record.id != self.session_id and self._owns(record):
                return record
        return None

    def build_greeting(self) -> str:
        """Greeting that recalls the previous conversation's topics, if any."""
        previous = self._previous_conversation()
        if previous is not None:
            topics = drop_generic_topic(extract_topics(previous.messages, self.topic_table))
            if topics:
                return (
                    f"Hello {self.name}! I remember our previous conversation about "
                    f"{' and '.join(topics)}. Would you like to continue that conversation?"
                )
        return self.default_greeting

    async def load_conversation(self) -> bool:
        """
        Start the session with a greeting.

        Returns:
            False when the session cannot start (no email or storage failure)
        """
        if not self.email:
            logger.warning("Cannot load conversation without an email")
            return False

        try:
            greeting = self.build_greeting()
            greeting_message = Message(role=Role.ASSISTANT, content=greeting, is_greeting=True)
            self._messages = [greeting_message]
            self._save_greeting(greeting_message)
        except Exception as e:
            logger.error(f"Error loading conversation: {e}")
            return False

        if self._greeting_task is not None:
            self._greeting_task.cancel()
        self._greeting_task = asyncio.get_running_loop().create_task(
            self._speak_later(greeting, self.settings.greeting_delay)
        )
        logger.info(f"Session {self.session_id} started for {self.email}")
        return True

    def _save_greeting(self, greeting_message: Message):
        user = self.store.get(self.email) or UserRecord(name=self.name, email=self.email)
        record = ConversationRecord(
            id=self.session_id,
            email=user.email,
            messages=[greeting_message],
        )

        current = user.find_conversation(self.session_id)
        last = user.conversations[-1] if user.conversations else None
        if current is not None:
            current.messages = [greeting_message]
        elif last is not None and not last.has_non_system_messages():
            # Unused placeholder: this session takes it over
            user.conversations[-1] = record
        else:
            user.conversations.append(record)

        self.store.put(user)

    async def _speak_later(self, text: str, delay: float):
        await asyncio.sleep(delay)
        self.speak(text)

    # -- Turns --------------------------------------------------------------

    def _reply_context(self) -> List[Message]:
        return [msg for msg in self._messages if not self._is_greeting(msg)]

    async def handle_audio_submission(self, audio: bytes) -> Optional[str]:
        """
        Run one turn: transcribe, reply, persist, record analytics, speak.

        Returns:
            The assistant reply, or None when the turn was abandoned or failed

        Raises:
            TurnInProgressError: If the previous turn has not finished
        """
        if self._processing:
            raise TurnInProgressError("A turn is already being processed")

        self._processing = True
        try:
            try:
                transcript = await self.gateway.transcribe(audio)
            except TranscriptionError as e:
                logger.error(f"Error transcribing audio: {e}")
                self.notices.error(TURN_FAILED_NOTICE)
                return None

            if not transcript.strip():
                self.notices.info(NOTHING_HEARD_NOTICE)
                return None

            self._messages.append(Message(role=Role.USER, content=transcript))

            try:
                reply = await self.gateway.generate_reply(self._reply_context())
            except ReplyError as e:
                logger.error(f"Error getting AI response: {e}")
                self.notices.error(REPLY_FAILED_NOTICE)
                reply = APOLOGY_REPLY

            self._messages.append(Message(role=Role.ASSISTANT, content=reply))

            self._save_transcript()
            self.store.record_analytics(transcript, reply)
            self.store.record_faq(transcript, reply)

            self.speak(reply)
            return reply
        except Exception as e:
            logger.exception(f"Error processing turn: {e}")
            self.notices.error(TURN_FAILED_NOTICE)
            return None
        finally:
            self._processing = False

    def _save_transcript(self):
        """Persist the display copy of the transcript to users and history."""
        stored = self.display_messages()

        user = self.store.get(self.email) or UserRecord(name=self.name, email=self.email)
        current = user.find_conversation(self.session_id)
        if current is None:
            current = ConversationRecord(id=self.session_id, email=user.email)
            user.conversations.append(current)
        current.messages = stored
        current.date = datetime.now()

        self.store.put(user)
        self.store.increment_total_conversations()

    # -- Speech and teardown ------------------------------------------------

    def speak(self, text: str):
        """Queue `text` for speech."""
        self.playback.enqueue(text)

    async def wait_until_quiet(self):
        """Wait for the pending greeting and every queued utterance to finish."""
        if self._greeting_task is not None and not self._greeting_task.done():
            await asyncio.wait({self._greeting_task})
        await self.playback.wait_until_idle()

    def cleanup(self):
        """Stop speech and release audio. Safe to call repeatedly."""
        if self._greeting_task is not None and not self._greeting_task.done():
            self._greeting_task.cancel()
        self._greeting_task = None
        self.playback.cancel_all()
