"""Persistent store adapter for users, conversation history and analytics."""

import logging
import sqlite3
from typing import Callable, Dict, List, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError

from providers.errors import StoreInconsistency
from schemas.analytics import AnalyticsState, FAQEntry
from schemas.conversation import ConversationRecord, LastSession, Message, UserRecord
from .kv_store import BaseKeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

USERS_KEY = "users"
HISTORY_KEY = "conversation_history"
ANALYTICS_KEY = "analytics"
FAQS_KEY = "faqs"
TOTAL_CONVERSATIONS_KEY = "total_conversations"
LAST_SESSION_KEY = "last_session"

# Keywords counted in analytics topic frequency
ANALYTICS_KEYWORDS = [
    "password", "reset", "account", "login", "billing",
    "payment", "subscription", "cancel", "update", "problem",
]
QUESTION_KEY_LENGTH = 100

_users_adapter = TypeAdapter(List[UserRecord])
_history_adapter = TypeAdapter(List[ConversationRecord])
_faqs_adapter = TypeAdapter(List[FAQEntry])


class PersistentStore:
    """
    Read-modify-write access to the assistant's local tables.

    Every operation is synchronous and total: missing or unreadable values
    come back as empty defaults, and failed writes are logged. A user's
    conversations and the global history are written in the same batch so
    both stay reconcilable by conversation id.
    """

    def __init__(self, backend: BaseKeyValueStore):
        self.backend = backend

    # -- Raw access ---------------------------------------------------------

    def _read(self, key: str, parse: Callable[[str], T], default: Callable[[], T]) -> T:
        try:
            raw = self.backend.get(key)
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to read '{key}': {e}")
            return default()

        if raw is None:
            return default()

        try:
            return parse(raw)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Ignoring unreadable value for '{key}': {e}")
            return default()

    def _write(self, items: Dict[str, str]):
        try:
            self.backend.set_many(items)
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to write {', '.join(items)}: {e}")

    @staticmethod
    def _dump(adapter: TypeAdapter, value) -> str:
        return adapter.dump_json(value, by_alias=True).decode("utf-8")

    # -- Users --------------------------------------------------------------

    def read_all_users(self) -> List[UserRecord]:
        return self._read(USERS_KEY, _users_adapter.validate_json, list)

    def get(self, email: str) -> Optional[UserRecord]:
        """Find a user by email, ignoring case."""
        if not email:
            return None

        wanted = email.lower()
        for user in self.read_all_users():
            if user.email.lower() == wanted:
                return user
        return None

    def put(self, user: UserRecord):
        """
        Upsert a user and mirror their conversations into history.

        History records owned by this user that are no longer among the
        user's conversations are dropped, so both tables list the same ids.
        """
        users = self.read_all_users()
        wanted = user.email.lower()

        for index, existing in enumerate(users):
            if existing.email.lower() == wanted:
                users[index] = user
                break
        else:
            users.append(user)

        for conversation in user.conversations:
            if conversation.email is None:
                conversation.email = user.email

        owned_ids = {conversation.id for conversation in user.conversations}
        history = [
            record for record in self.read_history()
            if record.email is None
            or record.email.lower() != wanted
            or record.id in owned_ids
        ]
        history = self._upsert_records(history, user.conversations)

        self._write({
            USERS_KEY: self._dump(_users_adapter, users),
            HISTORY_KEY: self._dump(_history_adapter, history),
        })

    # -- Conversation history ----------------------------------------------

    def read_history(self) -> List[ConversationRecord]:
        return self._read(HISTORY_KEY, _history_adapter.validate_json, list)

    def get_history(self, conversation_id: str) -> Optional[ConversationRecord]:
        for record in self.read_history():
            if record.id == conversation_id:
                return record
        return None

    def append_history(self, record: ConversationRecord):
        """Add a conversation to history, replacing any record with the same id."""
        history = self._upsert_records(self.read_history(), [record])
        self._write_history_mirrored(history, record)

    def update_history(self, conversation_id: str, messages: List[Message]) -> bool:
        """
        Replace the messages of one history record.

        Returns:
            False when no record has that id
        """
        history = self.read_history()
        for record in history:
            if record.id == conversation_id:
                record.messages = list(messages)
                self._write_history_mirrored(history, record)
                return True
        return False

    def _write_history_mirrored(self, history: List[ConversationRecord], record: ConversationRecord):
        """
        Write history, copying `record` into its owner's conversation list.

        A record the owner does not list yet is appended to their
        conversations, so a later `put(user)` keeps it.
        """
        items = {HISTORY_KEY: self._dump(_history_adapter, history)}

        if record.email:
            users = self.read_all_users()
            for user in users:
                if user.email.lower() != record.email.lower():
                    continue
                owned = user.find_conversation(record.id)
                if owned is not None:
                    owned.messages = list(record.messages)
                else:
                    user.conversations.append(record.model_copy(deep=True))
                items[USERS_KEY] = self._dump(_users_adapter, users)
                break

        self._write(items)

    @staticmethod
    def _upsert_records(
        history: List[ConversationRecord],
        records: List[ConversationRecord]
    ) -> List[ConversationRecord]:
        index_by_id = {record.id: index for index, record in enumerate(history)}
        for record in records:
            copy = record.model_copy(deep=True)
            if record.id in index_by_id:
                history[index_by_id[record.id]] = copy
            else:
                index_by_id[record.id] = len(history)
                history.append(copy)
        return history

    def increment_total_conversations(self) -> int:
        total = self.read_total_conversations() + 1
        self._write({TOTAL_CONVERSATIONS_KEY: str(total)})
        return total

    def read_total_conversations(self) -> int:
        return self._read(TOTAL_CONVERSATIONS_KEY, int, int)

    # -- Analytics and FAQ --------------------------------------------------

    def read_analytics(self) -> AnalyticsState:
        return self._read(ANALYTICS_KEY, AnalyticsState.model_validate_json, AnalyticsState)

    def record_analytics(self, question: str, answer: str):
        """Count one interaction, its keyword topics and the (truncated) question."""
        analytics = self.read_analytics()
        analytics.total_interactions += 1

        lowered = question.lower()
        for keyword in ANALYTICS_KEYWORDS:
            if keyword in lowered:
                analytics.topic_frequency[keyword] = analytics.topic_frequency.get(keyword, 0) + 1

        short_question = question[:QUESTION_KEY_LENGTH]
        analytics.questions[short_question] = analytics.questions.get(short_question, 0) + 1

        self._write({ANALYTICS_KEY: analytics.model_dump_json(by_alias=True)})

    def read_faqs(self) -> List[FAQEntry]:
        return self._read(FAQS_KEY, _faqs_adapter.validate_json, list)

    def record_faq(self, question: str, answer: str):
        """Upsert an FAQ entry by exact question text."""
        faqs = self.read_faqs()
        for faq in faqs:
            if faq.question == question:
                faq.count += 1
                break
        else:
            faqs.append(FAQEntry(question=question, answer=answer, count=1))

        self._write({FAQS_KEY: self._dump(_faqs_adapter, faqs)})

    # -- Last session -------------------------------------------------------

    def save_last_session(self, name: str, email: str):
        self._write({LAST_SESSION_KEY: LastSession(name=name, email=email).model_dump_json()})

    def read_last_session(self) -> Optional[LastSession]:
        return self._read(LAST_SESSION_KEY, LastSession.model_validate_json, lambda: None)

    # -- Diagnostics --------------------------------------------------------

    def verify_consistency(self):
        """
        Compare users' conversations against history.

        Raises:
            StoreInconsistency: Listing ids that are missing from history or
                whose messages differ
        """
        history = {record.id: record for record in self.read_history()}
        diverging = []
        for user in self.read_all_users():
            for conversation in user.conversations:
                mirrored = history.get(conversation.id)
                if mirrored is None or mirrored.messages != conversation.messages:
                    diverging.append(conversation.id)

        if diverging:
            raise StoreInconsistency(diverging)
