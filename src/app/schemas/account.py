from __future__ import annotations

from typing import List, Optional

from src.app.schemas.transcriptions import CamelModel


class ProfileResponse(CamelModel):
    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    subscription_tier: str
    credits_remaining: int
    max_file_size: int


class PlanResponse(CamelModel):
    id: str
    name: str
    price: int
    credits: int
    max_file_size: int
    features: List[str]
    stripe_price_id: str


class LanguageOption(CamelModel):
    code: str
    name: str


class PlansResponse(CamelModel):
    plans: List[PlanResponse]
    credits_per_minute: int
    supported_formats: List[str]
    languages: List[LanguageOption]
