# src/app/domain/plans.py
"""
Static subscription plan table: credits, upload ceilings and price metadata.
Built once at import and exposed read-only.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from src.app.config import settings
from src.app.domain.models import SubscriptionTier

MB = 1024 * 1024

CREDITS_PER_MINUTE = 1

SUPPORTED_AUDIO_FORMATS: tuple[str, ...] = (
    "mp3",
    "wav",
    "aac",
    "ogg",
    "webm",
    "flac",
    "m4a",
    "mp4",
)

# "auto" means no language hint is sent to the engine
AUTO_LANGUAGE = "auto"

TRANSCRIPTION_LANGUAGES: tuple[tuple[str, str], ...] = (
    (AUTO_LANGUAGE, "Auto-detect"),
    ("en", "English"),
    ("es", "Spanish"),
    ("fr", "French"),
    ("de", "German"),
    ("it", "Italian"),
    ("pt", "Portuguese"),
    ("ru", "Russian"),
    ("ja", "Japanese"),
    ("ko", "Korean"),
    ("zh", "Chinese"),
    ("ar", "Arabic"),
    ("hi", "Hindi"),
)


@dataclass(frozen=True)
class PlanLimits:
    id: str
    name: str
    price: int
    credits: int
    max_file_size: int
    features: tuple[str, ...]
    stripe_price_id: str


@dataclass(frozen=True)
class RateLimit:
    # Defined for each tier but not enforced anywhere.
    requests: int
    window_seconds: int


def build_subscription_plans(
    pro_price_id: str = "",
    enterprise_price_id: str = "",
) -> Mapping[SubscriptionTier, PlanLimits]:
    """Plan table with the Stripe price ids of the paid tiers filled in."""
    plans = {
        SubscriptionTier.FREE: PlanLimits(
            id="free",
            name="Free",
            price=0,
            credits=100,
            max_file_size=25 * MB,
            features=(
                "100 minutes of transcription",
                "Basic accuracy",
                "Standard support",
                "File upload up to 25MB",
            ),
            stripe_price_id="",
        ),
        SubscriptionTier.PRO: PlanLimits(
            id="pro",
            name="Pro",
            price=19,
            credits=1000,
            max_file_size=100 * MB,
            features=(
                "1000 minutes of transcription",
                "High accuracy",
                "Priority support",
                "File upload up to 100MB",
                "Custom vocabulary",
                "Speaker identification",
            ),
            stripe_price_id=pro_price_id,
        ),
        SubscriptionTier.ENTERPRISE: PlanLimits(
            id="enterprise",
            name="Enterprise",
            price=99,
            credits=10000,
            max_file_size=500 * MB,
            features=(
                "10000 minutes of transcription",
                "Highest accuracy",
                "24/7 support",
                "File upload up to 500MB",
                "Custom vocabulary",
                "Speaker identification",
                "API access",
                "Bulk processing",
                "Custom integrations",
            ),
            stripe_price_id=enterprise_price_id,
        ),
    }
    return MappingProxyType(plans)


SUBSCRIPTION_PLANS: Mapping[SubscriptionTier, PlanLimits] = build_subscription_plans(
    pro_price_id=settings.STRIPE_PRO_PRICE_ID,
    enterprise_price_id=settings.STRIPE_ENTERPRISE_PRICE_ID,
)

API_RATE_LIMITS: Mapping[SubscriptionTier, RateLimit] = MappingProxyType({
    SubscriptionTier.FREE: RateLimit(requests=10, window_seconds=60),
    SubscriptionTier.PRO: RateLimit(requests=100, window_seconds=60),
    SubscriptionTier.ENTERPRISE: RateLimit(requests=1000, window_seconds=60),
})


def get_plan(tier: SubscriptionTier | str) -> PlanLimits:
    """Return the plan for a tier; raises ValueError on an unknown tier."""
    return SUBSCRIPTION_PLANS[SubscriptionTier(tier)]


def max_file_size_for(tier: SubscriptionTier | str) -> int:
    return get_plan(tier).max_file_size
