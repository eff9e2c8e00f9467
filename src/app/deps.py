# src/app/deps.py (singletons for external clients, exposed as dependencies)

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from supabase import Client, create_client

from src.app.config import settings
from src.app.domain.errors import UnauthorizedError
from src.app.infra.db.supabase_repo import (
    SupabaseProfileRepository,
    SupabaseTranscriptionRepository,
    SupabaseUsageLogRepository,
)
from src.app.infra.speech.base import SpeechEngine
from src.app.infra.speech.openai_whisper import OpenAIWhisperEngine
from src.app.infra.storage.base import StorageProvider
from src.app.infra.storage.r2_provider import R2StorageProvider
from src.app.infra.storage.supabase_provider import SupabaseStorageProvider
from src.app.services.credit_service import CreditService
from src.app.services.transcription_service import TranscriptionService
from src.app.services.upload_service import UploadService

_client: Client | None = None

def get_supabase() -> Client:
    global _client
    if _client is None:
        _client = create_client(str(settings.SUPABASE_URL),
                                settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


auth_scheme = HTTPBearer(auto_error=False)

class CurrentUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None

async def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase),
) -> CurrentUser:
    """
    Receives Authorization: Bearer <access_token> issued by Supabase,
    validates it against GoTrue and returns the minimal user data.
    """
    if cred is None or cred.scheme.lower() != "bearer":
        raise UnauthorizedError()

    try:
        res = supa.auth.get_user(cred.credentials)
    except Exception as e:
        raise UnauthorizedError("Invalid or expired token") from e

    user = res.user if res else None
    if not user:
        raise UnauthorizedError()

    name = None
    meta = getattr(user, "user_metadata", None) or {}
    if isinstance(meta, dict):
        name = meta.get("full_name") or meta.get("name")

    return CurrentUser(id=str(user.id), email=user.email, name=name)


def get_profile_repository(supa: Client = Depends(get_supabase)) -> SupabaseProfileRepository:
    return SupabaseProfileRepository(supa)


def get_transcription_repository(supa: Client = Depends(get_supabase)) -> SupabaseTranscriptionRepository:
    return SupabaseTranscriptionRepository(supa)


def get_usage_repository(supa: Client = Depends(get_supabase)) -> SupabaseUsageLogRepository:
    return SupabaseUsageLogRepository(supa)


@lru_cache(maxsize=1)
def _r2_storage() -> R2StorageProvider:
    return R2StorageProvider(
        account_id=settings.R2_ACCOUNT_ID,
        access_key_id=settings.R2_ACCESS_KEY_ID,
        secret_access_key=settings.R2_SECRET_ACCESS_KEY,
        bucket_name=settings.R2_BUCKET_NAME,
        public_url=settings.R2_PUBLIC_URL,
    )


def get_storage(supa: Client = Depends(get_supabase)) -> StorageProvider:
    if settings.STORAGE_BACKEND == "r2":
        return _r2_storage()
    return SupabaseStorageProvider(supa, bucket_name=settings.STORAGE_BUCKET)


@lru_cache(maxsize=1)
def get_speech_engine() -> SpeechEngine:
    return OpenAIWhisperEngine(
        api_key=settings.OPENAI_API_KEY,
        model=settings.TRANSCRIPTION_MODEL,
    )


def get_upload_service(
    profiles: SupabaseProfileRepository = Depends(get_profile_repository),
    jobs: SupabaseTranscriptionRepository = Depends(get_transcription_repository),
    storage: StorageProvider = Depends(get_storage),
) -> UploadService:
    return UploadService(profiles, jobs, storage)


def get_credit_service(
    profiles: SupabaseProfileRepository = Depends(get_profile_repository),
    usage: SupabaseUsageLogRepository = Depends(get_usage_repository),
) -> CreditService:
    return CreditService(profiles, usage)


def get_transcription_service(
    profiles: SupabaseProfileRepository = Depends(get_profile_repository),
    jobs: SupabaseTranscriptionRepository = Depends(get_transcription_repository),
    engine: SpeechEngine = Depends(get_speech_engine),
    credits: CreditService = Depends(get_credit_service),
) -> TranscriptionService:
    return TranscriptionService(
        profiles,
        jobs,
        engine,
        credits,
        confidence_score=settings.DEFAULT_CONFIDENCE_SCORE,
    )
