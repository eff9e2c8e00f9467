# src/app/services/transcription_service.py
"""
Transcription workflow: run a PENDING job through the speech engine and
settle its credits.

The PENDING -> PROCESSING transition is a conditional update, so a job can be
settled at most once; repeated or concurrent calls for the same job are
rejected instead of charged twice.
"""
from __future__ import annotations

import logging
from typing import Optional

from src.app.domain.errors import (
    InsufficientCreditsError,
    InvalidInputError,
    JobNotFoundError,
    JobStateConflictError,
    PersistenceError,
    ProfileNotFoundError,
    TranscriberError,
    UnauthorizedError,
    UpstreamEngineError,
)
from src.app.domain.models import (
    EngineTranscript,
    JobStatus,
    Profile,
    TranscriptionJob,
    TranscriptionOutcome,
)
from src.app.domain.plans import AUTO_LANGUAGE
from src.app.infra.db.base import ProfileRepository, TranscriptionRepository
from src.app.infra.speech.base import SpeechEngine
from src.app.services.credit_service import CreditService

logger = logging.getLogger(__name__)

# The engine returns no confidence signal
DEFAULT_CONFIDENCE_SCORE = 0.95

INSUFFICIENT_CREDITS_REASON = "Insufficient credits"
TRANSCRIPTION_FAILED_REASON = "Transcription failed"


class TranscriptionService:
    def __init__(
        self,
        profile_repository: ProfileRepository,
        transcription_repository: TranscriptionRepository,
        engine: SpeechEngine,
        credit_service: CreditService,
        confidence_score: float = DEFAULT_CONFIDENCE_SCORE,
    ):
        self._profiles = profile_repository
        self._jobs = transcription_repository
        self._engine = engine
        self._credits = credit_service
        self.confidence_score = confidence_score

    def transcribe(
        self,
        user_id: Optional[str],
        job_id: Optional[str],
        audio: bytes,
        filename: str,
        content_type: str,
        language: Optional[str] = AUTO_LANGUAGE,
        prompt: Optional[str] = None,
    ) -> TranscriptionOutcome:
        """
        Transcribe the audio of a PENDING job owned by the caller and charge for it.

        Raises:
            UnauthorizedError, ProfileNotFoundError, InvalidInputError,
            JobNotFoundError, JobStateConflictError, InsufficientCreditsError,
            UpstreamEngineError, PersistenceError
        """
        profile = self._load_profile(user_id)

        if not job_id or not audio:
            raise InvalidInputError("Missing file or transcription ID")

        job = self._start_processing(job_id, profile.id)

        try:
            transcript = self._engine.transcribe(
                audio=audio,
                filename=filename,
                content_type=content_type,
                language=None if not language or language == AUTO_LANGUAGE else language,
                prompt=prompt or None,
            )

            cost = self._credits.calculate_cost(transcript.duration_seconds)
            self._credits.ensure_sufficient(profile, cost)
            self._complete(job, transcript)

        except InsufficientCreditsError as e:
            logger.warning(
                "Insufficient credits: user=%s, job=%s, needed=%d, remaining=%d",
                profile.id, job.id, e.credits_needed, e.credits_remaining,
            )
            self._fail(job, INSUFFICIENT_CREDITS_REASON)
            raise
        except TranscriberError as e:
            logger.error("Transcription error: job=%s, error=%s", job.id, e)
            self._fail(job, TRANSCRIPTION_FAILED_REASON)
            raise
        except Exception as e:
            logger.exception("Unexpected transcription error: job=%s", job.id)
            self._fail(job, TRANSCRIPTION_FAILED_REASON)
            raise UpstreamEngineError(str(e)) from e

        settlement = self._credits.settle(
            profile,
            cost,
            transcription_id=job.id,
            metadata={
                "duration": transcript.duration_seconds,
                "language": transcript.language,
                "file_size": len(audio),
            },
        )

        return TranscriptionOutcome(
            job_id=job.id,
            text=transcript.text,
            duration_seconds=transcript.duration_seconds,
            language=transcript.language,
            credits_used=settlement.credits_charged,
            credits_remaining=settlement.credits_remaining,
        )

    def _load_profile(self, user_id: Optional[str]) -> Profile:
        if not user_id:
            raise UnauthorizedError()
        profile = self._profiles.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        return profile

    def _start_processing(self, job_id: str, user_id: str) -> TranscriptionJob:
        job = self._jobs.transition_status(
            job_id,
            user_id,
            from_status=JobStatus.PENDING,
            to_status=JobStatus.PROCESSING,
            changes={"error_message": None},
        )
        if job is not None:
            return job

        existing = self._jobs.get_job(job_id, user_id)
        if existing is None:
            raise JobNotFoundError(job_id)
        raise JobStateConflictError(job_id, existing.status.value)

    def _complete(self, job: TranscriptionJob, transcript: EngineTranscript) -> None:
        completed = self._jobs.transition_status(
            job.id,
            job.user_id,
            from_status=JobStatus.PROCESSING,
            to_status=JobStatus.COMPLETED,
            changes={
                "transcript_text": transcript.text,
                "duration_seconds": transcript.duration_seconds,
                "language": transcript.language,
                "confidence_score": self.confidence_score,
                "error_message": None,
            },
        )
        if completed is None:
            raise PersistenceError("complete_job", "transcription is no longer processing")

        logger.info(
            "Transcription completed: job=%s, duration=%s, language=%s",
            job.id,
            transcript.duration_seconds,
            transcript.language,
        )

    def _fail(self, job: TranscriptionJob, reason: str) -> None:
        try:
            self._jobs.transition_status(
                job.id,
                job.user_id,
                from_status=JobStatus.PROCESSING,
                to_status=JobStatus.FAILED,
                changes={"error_message": reason},
            )
        except PersistenceError as e:
            logger.error("Could not mark transcription failed: job=%s, error=%s", job.id, e)
