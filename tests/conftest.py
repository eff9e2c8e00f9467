"""
Test configuration, in-memory repositories and fixtures.
"""
from __future__ import annotations

import os

# Settings are read at import time of src.app.config
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from src.app.domain.errors import PersistenceError, StorageError
from src.app.domain.models import (
    EngineTranscript,
    JobPage,
    JobStatus,
    Profile,
    SubscriptionTier,
    TranscriptionJob,
    UsageLogEntry,
)
from src.app.infra.db.base import ProfileRepository, TranscriptionRepository, UsageLogRepository
from src.app.infra.speech.base import SpeechEngine
from src.app.infra.storage.base import StorageProvider
from src.app.services.credit_service import CreditService
from src.app.services.transcription_service import TranscriptionService
from src.app.services.upload_service import UploadService

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
MB = 1024 * 1024


class InMemoryProfileRepository(ProfileRepository):
    def __init__(self) -> None:
        self.profiles: dict[str, Profile] = {}
        self.deduct_calls: list[tuple[str, int]] = []
        self.fail_deduct = False

    def add(self, user_id: str, tier: SubscriptionTier = SubscriptionTier.FREE, credits: int = 100) -> Profile:
        profile = Profile(
            id=user_id,
            email=f"{user_id}@example.com",
            subscription_tier=tier,
            credits_remaining=credits,
        )
        self.profiles[user_id] = profile
        return profile

    def get_profile(self, user_id: str) -> Optional[Profile]:
        stored = self.profiles.get(user_id)
        if stored is None:
            return None
        # hand out a snapshot, like a row read from the database
        return Profile(**vars(stored))

    def deduct_credits(self, user_id: str, amount: int) -> Optional[int]:
        self.deduct_calls.append((user_id, amount))
        if self.fail_deduct:
            raise PersistenceError("deduct_credits", "simulated outage")
        profile = self.profiles[user_id]
        if profile.credits_remaining < amount:
            return None
        profile.credits_remaining -= amount
        return profile.credits_remaining


class InMemoryTranscriptionRepository(TranscriptionRepository):
    def __init__(self) -> None:
        self.jobs: dict[str, TranscriptionJob] = {}
        self.fail_create = False
        self.fail_transitions_to: set[JobStatus] = set()
        self._clock = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

    def create_job(
        self,
        user_id: str,
        title: str,
        original_filename: str,
        file_url: str,
        file_size_bytes: int,
    ) -> TranscriptionJob:
        if self.fail_create:
            raise PersistenceError("create_job", "simulated insert failure")
        self._clock += timedelta(seconds=1)
        job = TranscriptionJob(
            id=f"job-{len(self.jobs) + 1}",
            user_id=user_id,
            title=title,
            original_filename=original_filename,
            file_url=file_url,
            file_size_bytes=file_size_bytes,
            status=JobStatus.PENDING,
            created_at=self._clock,
            updated_at=self._clock,
        )
        self.jobs[job.id] = job
        return job

    def transition_status(
        self,
        job_id: str,
        user_id: str,
        from_status: JobStatus,
        to_status: JobStatus,
        changes: Optional[dict[str, Any]] = None,
    ) -> Optional[TranscriptionJob]:
        if to_status in self.fail_transitions_to:
            raise PersistenceError("transition_status", "simulated update failure")
        job = self.jobs.get(job_id)
        if job is None or job.user_id != user_id or job.status != from_status:
            return None
        for key, value in (changes or {}).items():
            setattr(job, key, value)
        job.status = to_status
        return job

    def get_job(self, job_id: str, user_id: str) -> Optional[TranscriptionJob]:
        job = self.jobs.get(job_id)
        if job is None or job.user_id != user_id:
            return None
        return job

    def list_jobs(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        status: Optional[JobStatus] = None,
    ) -> JobPage:
        owned = [
            job for job in self.jobs.values()
            if job.user_id == user_id and (status is None or job.status == status)
        ]
        owned.sort(key=lambda job: job.created_at, reverse=True)
        offset = (page - 1) * limit
        return JobPage(items=owned[offset:offset + limit], total=len(owned), page=page, limit=limit)


class InMemoryUsageLogRepository(UsageLogRepository):
    def __init__(self) -> None:
        self.entries: list[UsageLogEntry] = []
        self.fail_append = False

    def append(self, entry: UsageLogEntry) -> UsageLogEntry:
        if self.fail_append:
            raise PersistenceError("append_usage", "simulated insert failure")
        self.entries.append(entry)
        return entry


class StorageProviderStub(StorageProvider):
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_upload = False

    def upload_object(self, object_key: str, data: bytes, content_type: str) -> None:
        if self.fail_upload:
            raise StorageError("Upload failed: simulated")
        if object_key in self.objects:
            raise StorageError(f"Upload failed: {object_key} already exists")
        self.objects[object_key] = data

    def get_public_url(self, object_key: str) -> str:
        return f"https://storage.test/audio-files/{object_key}"

    def delete_object(self, object_key: str) -> bool:
        self.deleted.append(object_key)
        return self.objects.pop(object_key, None) is not None


class SpeechEngineStub(SpeechEngine):
    def __init__(self) -> None:
        self.result = EngineTranscript(text="Hello world", duration_seconds=125.0, language="english")
        self.error: Optional[Exception] = None
        self.calls: list[dict[str, Any]] = []

    def transcribe(
        self,
        audio: bytes,
        filename: str,
        content_type: str,
        language: Optional[str] = None,
        prompt: Optional[str] = None,
    ) -> EngineTranscript:
        self.calls.append({
            "size": len(audio),
            "filename": filename,
            "content_type": content_type,
            "language": language,
            "prompt": prompt,
        })
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def profile_repo() -> InMemoryProfileRepository:
    repo = InMemoryProfileRepository()
    repo.add(USER_ID, SubscriptionTier.FREE, credits=100)
    repo.add(OTHER_USER_ID, SubscriptionTier.PRO, credits=1000)
    return repo


@pytest.fixture
def job_repo() -> InMemoryTranscriptionRepository:
    return InMemoryTranscriptionRepository()


@pytest.fixture
def usage_repo() -> InMemoryUsageLogRepository:
    return InMemoryUsageLogRepository()


@pytest.fixture
def storage() -> StorageProviderStub:
    return StorageProviderStub()


@pytest.fixture
def engine() -> SpeechEngineStub:
    return SpeechEngineStub()


@pytest.fixture
def credit_service(profile_repo, usage_repo) -> CreditService:
    return CreditService(profile_repo, usage_repo)


@pytest.fixture
def upload_service(profile_repo, job_repo, storage) -> UploadService:
    return UploadService(profile_repo, job_repo, storage)


@pytest.fixture
def transcription_service(profile_repo, job_repo, engine, credit_service) -> TranscriptionService:
    return TranscriptionService(profile_repo, job_repo, engine, credit_service)


@pytest.fixture
def pending_job(job_repo) -> TranscriptionJob:
    return job_repo.create_job(
        user_id=USER_ID,
        title="Meeting Notes",
        original_filename="meeting_notes.mp3",
        file_url="https://storage.test/audio-files/audio/user-1/abc.mp3",
        file_size_bytes=2 * MB,
    )
