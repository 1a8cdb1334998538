"""
User profile model: one row per authenticated identity.
"""
from sqlalchemy import Boolean, Column, String, text

from ..base import Base, JSONDocument, TimestampMixin

PLAN_FREE = "free"
PLAN_PRO = "pro"


class Profile(Base, TimestampMixin):
    """
    Profile record keyed by the identity subject issued at first login.

    ``plan`` and ``is_active`` only change through the payment webhook;
    ``telegram_chat_id`` is written by the messaging bot integration.
    """
    __tablename__ = "profiles"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), index=True)
    contact_email = Column(String(255))

    # Subscription
    plan = Column(String(20), nullable=False, default=PLAN_FREE, server_default=text("'free'"))
    is_active = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    onboarding_completed = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    # Messaging bot linkage
    telegram_chat_id = Column(String(64))

    # Extended identity fields
    job_title = Column(String(255))
    industry = Column(String(255))
    seniority = Column(String(100))
    tone = Column(String(100))
    focus = Column(JSONDocument)
    stack_context = Column(JSONDocument)
    audience_target = Column(JSONDocument)

    # Free-form documents
    directive_json = Column(JSONDocument)
    onboarding_json = Column(JSONDocument)
    personal_json = Column(JSONDocument)
    profile_json = Column(JSONDocument)

    @property
    def is_subscribed(self) -> bool:
        return self.plan == PLAN_PRO and bool(self.is_active)
