from __future__ import annotations

from fastapi import APIRouter

from src.app.domain.plans import (
    CREDITS_PER_MINUTE,
    SUBSCRIPTION_PLANS,
    SUPPORTED_AUDIO_FORMATS,
    TRANSCRIPTION_LANGUAGES,
)
from src.app.schemas.account import LanguageOption, PlanResponse, PlansResponse

router = APIRouter(prefix="/plans", tags=["plans"])


@router.get("", response_model=PlansResponse)
def list_plans():
    return PlansResponse(
        plans=[
            PlanResponse(
                id=plan.id,
                name=plan.name,
                price=plan.price,
                credits=plan.credits,
                max_file_size=plan.max_file_size,
                features=list(plan.features),
                stripe_price_id=plan.stripe_price_id,
            )
            for plan in SUBSCRIPTION_PLANS.values()
        ],
        credits_per_minute=CREDITS_PER_MINUTE,
        supported_formats=list(SUPPORTED_AUDIO_FORMATS),
        languages=[LanguageOption(code=code, name=name) for code, name in TRANSCRIPTION_LANGUAGES],
    )
