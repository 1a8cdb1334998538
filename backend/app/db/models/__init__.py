"""
Import all models to ensure they are registered with SQLAlchemy.
"""
from ..base import Base
from .auth_session import UserSession
from .profile import Profile

__all__ = ["Base", "UserSession", "Profile"]
