"""Pydantic schemas for the voice assistant."""

from .conversation import Role, Message, ConversationRecord, UserRecord, LastSession
from .analytics import AnalyticsState, FAQEntry, DashboardSummary

__all__ = [
    "Role",
    "Message",
    "ConversationRecord",
    "UserRecord",
    "LastSession",
    "AnalyticsState",
    "FAQEntry",
    "DashboardSummary",
]
