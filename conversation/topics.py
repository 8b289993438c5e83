"""Keyword heuristics that name what a conversation was about."""

from typing import Iterable, List, Sequence, Tuple

from schemas.conversation import Message, Role

GENERIC_TOPIC = "various topics"
RECENT_USER_MESSAGES = 3

TopicTable = Sequence[Tuple[str, str]]

# Checked in order; the first keyword contained in a message wins
TOPIC_KEYWORDS: TopicTable = (
    ("weather", "the weather forecast"),
    ("calendar", "your calendar"),
    ("email", "email communications"),
    ("send", "sending information"),
    ("renewable", "renewable energy"),
    ("energy", "energy topics"),
    ("time", "time management"),
    ("management", "management strategies"),
    ("meeting", "scheduling meetings"),
    ("book", "booking appointments"),
    ("password", "password reset"),
    ("reset", "account resets"),
    ("account", "account management"),
    ("login", "login issues"),
    ("billing", "billing questions"),
    ("payment", "payment methods"),
    ("subscription", "subscription details"),
    ("cancel", "cancellation procedures"),
    ("update", "account updates"),
    ("problem", "technical issues"),
    ("help", "customer support"),
    ("question", "general inquiries"),
)

# Phrasing used when greeting a returning user; the general table follows it
GREETING_TOPIC_KEYWORDS: TopicTable = (
    ("weather", "the weather forecast"),
    ("calendar", "your calendar"),
    ("email", "sending information to your email"),
    ("send", "sending information to your email"),
    ("renewable energy", "renewable energy developments"),
    ("time management", "time management techniques"),
    ("meeting", "booking a meeting"),
    ("book", "booking a meeting"),
) + tuple(TOPIC_KEYWORDS)


def topic_for(content: str, table: TopicTable = TOPIC_KEYWORDS) -> str:
    """Phrase for the first table keyword found in `content`."""
    lowered = content.lower()
    for keyword, phrase in table:
        if keyword in lowered:
            return phrase
    return GENERIC_TOPIC


def extract_topics(messages: Iterable[Message], table: TopicTable = TOPIC_KEYWORDS) -> List[str]:
    """Topics of the last three user messages, de-duplicated in first-seen order."""
    user_messages = [msg for msg in messages if msg.role == Role.USER.value]

    topics: List[str] = []
    for msg in user_messages[-RECENT_USER_MESSAGES:]:
        topic = topic_for(msg.content, table)
        if topic not in topics:
            topics.append(topic)
    return topics


def drop_generic_topic(topics: List[str]) -> List[str]:
    """Remove the generic topic when at least one specific topic is present."""
    specific = [topic for topic in topics if topic != GENERIC_TOPIC]
    return specific if specific else list(topics)
