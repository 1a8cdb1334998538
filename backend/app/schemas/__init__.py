"""
Pydantic schemas for the application.
"""
from app.schemas import auth
from app.schemas import billing
from app.schemas import profile

__all__ = ["auth", "billing", "profile"]
