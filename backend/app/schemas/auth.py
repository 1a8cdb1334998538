"""
Authentication schemas.
"""
from typing import Optional

from pydantic import BaseModel, Field


class LogoutDetails(BaseModel):
    sessions_invalidated: int = 0


class LogoutResponse(BaseModel):
    """Response model for POST /auth/logout."""
    ok: bool = True
    message: str
    details: Optional[LogoutDetails] = None


class LoginPage(BaseModel):
    """View state of the login screen."""
    login_url: str = Field(..., description="Starts the LinkedIn authorization")
    error: Optional[str] = Field(None, description="Error carried back from a failed callback")
    next: Optional[str] = Field(None, description="Path restored after login")
