"""
Session model for identities authenticated through the OAuth provider.
"""
from sqlalchemy import Column, String, DateTime, TEXT

from ..base import Base, UUIDMixin, TimestampMixin


class UserSession(Base, UUIDMixin, TimestampMixin):
    """
    Session bound to an identity and its email.

    Sessions are not tied to a profile row: the profile may be created after
    the session is established.
    """
    __tablename__ = "user_sessions"

    user_id = Column(String(255), nullable=False, index=True)
    email = Column(String(255))
    session_token = Column(TEXT, unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    last_activity = Column(DateTime, index=True)
