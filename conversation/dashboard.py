"""Usage summary for the admin dashboard."""

from memory.store import PersistentStore
from schemas.analytics import DashboardSummary


def build_dashboard(store: PersistentStore) -> DashboardSummary:
    """Collect analytics, FAQs and user counts; FAQs most asked first."""
    analytics = store.read_analytics()
    faqs = sorted(store.read_faqs(), key=lambda faq: faq.count, reverse=True)

    return DashboardSummary(
        total_interactions=analytics.total_interactions,
        total_users=len(store.read_all_users()),
        total_conversations=store.read_total_conversations(),
        faq_count=len(faqs),
        topic_frequency=analytics.topic_frequency,
        question_frequency=analytics.questions,
        faqs=faqs,
    )
