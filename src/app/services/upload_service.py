# src/app/services/upload_service.py
"""
Upload workflow: validate an audio file against the caller's plan, store the
blob and create a PENDING transcription record.

Blob storage and the record store share no transaction. The only consistency
guarantee is compensating: blob first, then record, and the blob is deleted
again if the record insert fails.
"""
from __future__ import annotations

import logging
from typing import Optional

from src.app.domain.errors import (
    FileTooLargeError,
    InvalidFileTypeError,
    InvalidInputError,
    JobNotFoundError,
    ProfileNotFoundError,
    UnauthorizedError,
)
from src.app.domain.media import generate_transcription_title, is_audio_mime
from src.app.domain.models import JobPage, JobStatus, Profile, TranscriptionJob
from src.app.domain.plans import max_file_size_for
from src.app.infra.db.base import ProfileRepository, TranscriptionRepository
from src.app.infra.storage.base import StorageProvider

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class UploadService:
    def __init__(
        self,
        profile_repository: ProfileRepository,
        transcription_repository: TranscriptionRepository,
        storage: StorageProvider,
    ):
        self._profiles = profile_repository
        self._jobs = transcription_repository
        self._storage = storage

    def load_profile(self, user_id: Optional[str]) -> Profile:
        if not user_id:
            raise UnauthorizedError()
        profile = self._profiles.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        return profile

    def validate_file(self, profile: Profile, filename: str, content_type: str | None, size: int) -> None:
        """
        Raises:
            InvalidInputError: No file content
            InvalidFileTypeError: MIME type outside the audio whitelist
            FileTooLargeError: Size above the tier ceiling
        """
        if not filename or size <= 0:
            raise InvalidInputError("No file provided")

        if not is_audio_mime(content_type):
            raise InvalidFileTypeError(content_type)

        max_size = max_file_size_for(profile.subscription_tier)
        if size > max_size:
            raise FileTooLargeError(
                tier=profile.subscription_tier.value,
                max_size=max_size,
                current_size=size,
            )

    def upload(
        self,
        user_id: Optional[str],
        data: bytes,
        filename: str,
        content_type: str | None,
        title: Optional[str] = None,
    ) -> TranscriptionJob:
        """
        Store an audio file and create its PENDING transcription.

        Raises:
            UnauthorizedError, ProfileNotFoundError, InvalidInputError,
            InvalidFileTypeError, FileTooLargeError, StorageError, PersistenceError
        """
        profile = self.load_profile(user_id)
        self.validate_file(profile, filename, content_type, len(data))

        object_key = self._storage.generate_object_key(user_id=profile.id, filename=filename)
        self._storage.upload_object(object_key, data, content_type)
        file_url = self._storage.get_public_url(object_key)

        job_title = title or generate_transcription_title(filename)

        try:
            job = self._jobs.create_job(
                user_id=profile.id,
                title=job_title,
                original_filename=filename,
                file_url=file_url,
                file_size_bytes=len(data),
            )
        except Exception:
            logger.warning("Record insert failed, removing orphaned blob: key=%s", object_key)
            if not self._storage.delete_object(object_key):
                logger.error("Orphaned blob could not be removed: key=%s", object_key)
            raise

        logger.info(
            "Upload accepted: user=%s, job=%s, key=%s, size=%d",
            profile.id,
            job.id,
            object_key,
            len(data),
        )
        return job

    def list_transcriptions(
        self,
        user_id: Optional[str],
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        status: Optional[str] = None,
    ) -> JobPage:
        """
        A page of the caller's transcriptions, newest first.

        ``status`` of None or "all" disables the filter.
        """
        if not user_id:
            raise UnauthorizedError()
        if page < 1:
            raise InvalidInputError("page must be >= 1")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise InvalidInputError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        status_filter = None
        if status and status != "all":
            try:
                status_filter = JobStatus(status)
            except ValueError:
                raise InvalidInputError(f"Unknown status: {status}")

        return self._jobs.list_jobs(user_id=user_id, page=page, limit=limit, status=status_filter)

    def get_transcription(self, user_id: Optional[str], job_id: str) -> TranscriptionJob:
        if not user_id:
            raise UnauthorizedError()
        job = self._jobs.get_job(job_id, user_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job
