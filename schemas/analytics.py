"""Usage analytics and FAQ schemas."""

from pydantic import BaseModel, ConfigDict, Field


class AnalyticsState(BaseModel):
    """Aggregate interaction counters. Only ever incremented."""
    model_config = ConfigDict(populate_by_name=True)

    total_interactions: int = Field(0, alias="totalInteractions")
    questions: dict[str, int] = Field(default_factory=dict)
    topic_frequency: dict[str, int] = Field(default_factory=dict, alias="topicFrequency")


class FAQEntry(BaseModel):
    """A question asked at least once, with the first answer given."""
    question: str
    answer: str
    count: int = 1


class DashboardSummary(BaseModel):
    """Snapshot of usage data for the admin dashboard."""
    total_interactions: int = 0
    total_users: int = 0
    total_conversations: int = 0
    faq_count: int = 0
    topic_frequency: dict[str, int] = Field(default_factory=dict)
    question_frequency: dict[str, int] = Field(default_factory=dict)
    faqs: list[FAQEntry] = Field(default_factory=list)
