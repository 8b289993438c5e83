"""Conversation orchestration: sessions, topics, notices."""

from .notices import Notice, NoticeBoard, NoticeLevel
from .topics import extract_topics, drop_generic_topic, TOPIC_KEYWORDS, GENERIC_TOPIC
from .session import ConversationSession
from .users import start_user_session, is_returning_user, is_valid_email
from .dashboard import build_dashboard

__all__ = [
    "Notice",
    "NoticeBoard",
    "NoticeLevel",
    "extract_topics",
    "drop_generic_topic",
    "TOPIC_KEYWORDS",
    "GENERIC_TOPIC",
    "ConversationSession",
    "start_user_session",
    "is_returning_user",
    "is_valid_email",
    "build_dashboard",
]
