from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

StepStatus = Literal["completed", "current", "pending"]


class DashboardStep(BaseModel):
    key: str
    label: str
    status: StepStatus
    href: str


class DashboardPage(BaseModel):
    email: Optional[str] = None
    plan: str
    is_subscribed: bool
    steps: List[DashboardStep]
    next_step: Optional[DashboardStep] = None


class ProfilePage(BaseModel):
    onboarding_completed: bool
    profile_json: Dict[str, Any]
    completion: int


class BillingPage(BaseModel):
    is_subscribed: bool
    canceled: bool = False


class ConnectTelegramPage(BaseModel):
    telegram_url: Optional[str] = None
    connected: bool
    telegram_chat_id: Optional[str] = None
    is_subscribed: bool
    success: bool = False
