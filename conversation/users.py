"""Starting a session for a named user."""

import logging
import re

from memory.store import PersistentStore
from schemas.conversation import UserRecord

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_PATTERN.match(email))


def is_returning_user(store: PersistentStore, email: str) -> bool:
    """True when the user has at least one conversation with messages."""
    user = store.get(email)
    if user is None:
        return False
    return any(conversation.messages for conversation in user.conversations)


def start_user_session(store: PersistentStore, name: str, email: str) -> bool:
    """
    Register or refresh a user before their session starts.

    Creates the user on first visit, updates the stored name otherwise, and
    remembers the name/email as the last session.

    Returns:
        Whether the user is returning

    Raises:
        ValueError: If the name or email is missing or malformed
    """
    name = name.strip()
    email = email.strip()
    if not name or not email:
        raise ValueError("Please enter both name and email.")
    if not is_valid_email(email):
        raise ValueError("Please enter a valid email address.")

    returning = is_returning_user(store, email)

    user = store.get(email)
    if user is None:
        user = UserRecord(name=name, email=email)
        logger.info(f"Registered new user {email}")
    else:
        user.name = name

    store.put(user)
    store.save_last_session(name, email)
    return returning
