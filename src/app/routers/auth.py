from __future__ import annotations

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from src.app.deps import CurrentUser, get_current_user, get_upload_service
from src.app.domain.plans import max_file_size_for
from src.app.schemas.account import ProfileResponse
from src.app.services.upload_service import UploadService

router = APIRouter(prefix="/auth", tags=["auth"])

@router.get("/me", response_model=ProfileResponse)
async def me(
    user: CurrentUser = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service),
):
    profile = await run_in_threadpool(service.load_profile, user.id)
    return ProfileResponse(
        id=profile.id,
        email=profile.email or user.email or "",
        full_name=profile.full_name or user.name,
        avatar_url=profile.avatar_url,
        subscription_tier=profile.subscription_tier.value,
        credits_remaining=profile.credits_remaining,
        max_file_size=max_file_size_for(profile.subscription_tier),
    )
