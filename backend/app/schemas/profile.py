"""
Pydantic schemas for profiles and the profile document (``profile_json``).
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

PronounStyle = Literal["tu", "vous", "mixte"]
AudienceMaturity = Literal["débutant", "intermédiaire", "avancé", "expert"]
Tone = Literal["professionnel", "détendu", "punchy", "pédagogique", "inspirant", "mixte"]
PreferredFormat = Literal["carousel", "article", "vidéo", "texte", "poll", "document"]
CTAStyle = Literal["soft", "direct", "question", "aucun"]
LinkType = Literal["website", "blog", "portfolio", "other"]


class DocumentModel(BaseModel):
    """Base for document parts: every field optional, unknown keys rejected."""
    model_config = ConfigDict(extra="forbid")


# --- Nested items ---

class CaseStudy(DocumentModel):
    title: Optional[str] = None
    description: Optional[str] = None
    result: Optional[str] = None
    url: Optional[str] = None


class AssetLink(DocumentModel):
    label: Optional[str] = None
    url: Optional[str] = None
    type: Optional[LinkType] = None


class ExamplePost(DocumentModel):
    url: Optional[str] = None
    description: Optional[str] = None
    why: Optional[str] = None


# --- Sections ---

class IdentitySection(DocumentModel):
    headline: Optional[str] = Field(None, description="Ex: CEO @ Startup | Expert en Growth")
    industry: Optional[str] = None
    level: Optional[str] = None
    language: Optional[str] = None
    location: Optional[str] = None
    pronoun_style: Optional[PronounStyle] = None


class AudienceSection(DocumentModel):
    icp: Optional[str] = Field(None, description="Ideal customer profile")
    pains: Optional[List[str]] = None
    objections: Optional[List[str]] = None
    maturity: Optional[AudienceMaturity] = None


class OfferSection(DocumentModel):
    primary_offer: Optional[str] = None
    promise: Optional[str] = None
    pricing_range: Optional[str] = None
    proof_points: Optional[List[str]] = None
    case_studies: Optional[List[CaseStudy]] = None


class PositioningSection(DocumentModel):
    differentiators: Optional[List[str]] = None
    strong_opinions: Optional[List[str]] = None
    topics_to_avoid: Optional[List[str]] = None


class VoiceSection(DocumentModel):
    tone: Optional[Tone] = None
    length: Optional[str] = None
    emojis: Optional[bool] = None
    preferred_formats: Optional[List[PreferredFormat]] = None
    cta_style: Optional[CTAStyle] = None
    hashtags: Optional[List[str]] = None
    words_to_use: Optional[List[str]] = None
    words_to_avoid: Optional[List[str]] = None


class ContentStrategySection(DocumentModel):
    pillars: Optional[List[str]] = None
    do_more_of: Optional[List[str]] = None
    do_less_of: Optional[List[str]] = None


class AssetsSection(DocumentModel):
    links: Optional[List[AssetLink]] = None
    lead_magnet_url: Optional[str] = None
    booking_url: Optional[str] = None


class ConstraintsSection(DocumentModel):
    legal_notes: Optional[str] = None
    forbidden_claims: Optional[List[str]] = None


class SignalsSection(DocumentModel):
    keywords: Optional[List[str]] = None
    companies_to_follow: Optional[List[str]] = None
    tickers: Optional[List[str]] = None


class ExamplesSection(DocumentModel):
    liked_posts: Optional[List[ExamplePost]] = None
    disliked_posts: Optional[List[ExamplePost]] = None


class CalendarSection(DocumentModel):
    preferred_days: Optional[List[int]] = Field(None, description="0=Sunday ... 6=Saturday")
    preferred_hours: Optional[List[str]] = Field(None, description="HH:MM")

    @field_validator("preferred_days")
    @classmethod
    def check_days(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        if v is not None:
            for day in v:
                if day < 0 or day > 6:
                    raise ValueError("preferred_days must be between 0 and 6")
        return v

    @field_validator("preferred_hours")
    @classmethod
    def check_hours(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is not None:
            for hour in v:
                parts = hour.split(":")
                if (
                    len(parts) != 2
                    or not all(len(p) == 2 and p.isdigit() for p in parts)
                    or int(parts[0]) > 23
                    or int(parts[1]) > 59
                ):
                    raise ValueError(f"preferred_hours must be HH:MM strings, got {hour!r}")
        return v


class ProfileDocument(DocumentModel):
    """The eleven sections of ``profile_json``; a missing section defaults to {}."""
    identity: IdentitySection = Field(default_factory=IdentitySection)
    audience: AudienceSection = Field(default_factory=AudienceSection)
    offer: OfferSection = Field(default_factory=OfferSection)
    positioning: PositioningSection = Field(default_factory=PositioningSection)
    voice: VoiceSection = Field(default_factory=VoiceSection)
    content_strategy: ContentStrategySection = Field(default_factory=ContentStrategySection)
    assets: AssetsSection = Field(default_factory=AssetsSection)
    constraints: ConstraintsSection = Field(default_factory=ConstraintsSection)
    signals: SignalsSection = Field(default_factory=SignalsSection)
    examples: ExamplesSection = Field(default_factory=ExamplesSection)
    calendar: CalendarSection = Field(default_factory=CalendarSection)

    @field_validator("*", mode="before")
    @classmethod
    def null_section_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v


# --- Request bodies ---

class SaveProfileRequest(BaseModel):
    """Body of POST /api/profile/save."""
    profile_json: Dict[str, Any]


class UpdateProfileRequest(BaseModel):
    """Body of POST /api/profile/update (legacy fields)."""
    directive_json: Optional[Dict[str, Any]] = None
    onboarding_json: Optional[Dict[str, Any]] = None
    onboarding_completed: Optional[bool] = None


class UpdateFullProfileRequest(BaseModel):
    """Body of POST /api/profile/update-full."""
    contact_email: Optional[EmailStr] = None
    job_title: Optional[str] = None
    industry: Optional[str] = None
    seniority: Optional[str] = None
    tone: Optional[str] = None
    focus: Optional[List[str]] = None
    stack_context: Optional[List[str]] = None
    audience_target: Optional[List[str]] = None
    directive_json: Optional[Dict[str, Any]] = None
    personal_json: Optional[Dict[str, Any]] = None
    onboarding_json: Optional[Dict[str, Any]] = None
    onboarding_completed: Optional[bool] = None


class SectionUpdateRequest(BaseModel):
    """Body of POST /api/profile/section: shallow merge of one section."""
    section: str = Field(..., description="One of the eleven profile_json sections")
    fields: Dict[str, Any] = Field(default_factory=dict)


class ArrayItemRequest(BaseModel):
    value: str


# --- Responses ---

class ProfileRead(BaseModel):
    """Profile as returned to its owner."""
    id: str
    email: Optional[str] = None
    contact_email: Optional[str] = None
    plan: str
    is_active: bool
    is_subscribed: bool
    onboarding_completed: bool
    telegram_chat_id: Optional[str] = None
    job_title: Optional[str] = None
    industry: Optional[str] = None
    seniority: Optional[str] = None
    tone: Optional[str] = None
    focus: Optional[List[str]] = None
    stack_context: Optional[List[str]] = None
    audience_target: Optional[List[str]] = None
    directive_json: Dict[str, Any] = Field(default_factory=dict)
    onboarding_json: Dict[str, Any] = Field(default_factory=dict)
    personal_json: Dict[str, Any] = Field(default_factory=dict)
    profile_json: Dict[str, Any] = Field(default_factory=dict)
    completion: int = 0

    model_config = ConfigDict(from_attributes=True)

    @field_validator("directive_json", "onboarding_json", "personal_json", "profile_json", mode="before")
    @classmethod
    def null_document_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class DocumentResponse(BaseModel):
    """Stored document after a section or array edit."""
    ok: bool = True
    profile_json: Dict[str, Any]
    completion: int


class OkResponse(BaseModel):
    ok: bool = True
    message: Optional[str] = None
