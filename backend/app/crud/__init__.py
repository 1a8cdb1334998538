"""
CRUD operations for the application.
"""
from app.crud import profile

__all__ = ["profile"]
