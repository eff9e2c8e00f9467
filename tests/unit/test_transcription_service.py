from __future__ import annotations

import pytest

from src.app.domain.errors import (
    InsufficientCreditsError,
    InvalidInputError,
    JobNotFoundError,
    JobStateConflictError,
    PersistenceError,
    ProfileNotFoundError,
    UnauthorizedError,
    UpstreamEngineError,
)
from src.app.domain.models import EngineTranscript, JobStatus, UsageAction
from src.app.services.transcription_service import (
    DEFAULT_CONFIDENCE_SCORE,
    INSUFFICIENT_CREDITS_REASON,
    TRANSCRIPTION_FAILED_REASON,
    TranscriptionService,
)

AUDIO = b"ID3" + b"\x00" * 2048


def _run(service, job_id: str, user_id: str = "user-1", **kwargs):
    return service.transcribe(
        user_id=user_id,
        job_id=job_id,
        audio=AUDIO,
        filename="meeting_notes.mp3",
        content_type="audio/mpeg",
        **kwargs,
    )


class TestTranscribeSuccess:
    def test_completes_job_and_charges(self, transcription_service, pending_job, job_repo, profile_repo) -> None:
        outcome = _run(transcription_service, pending_job.id)

        assert outcome.job_id == pending_job.id
        assert outcome.text == "Hello world"
        assert outcome.duration_seconds == 125.0
        assert outcome.language == "english"
        assert outcome.credits_used == 3
        assert outcome.credits_remaining == 97

        job = job_repo.jobs[pending_job.id]
        assert job.status == JobStatus.COMPLETED
        assert job.transcript_text == "Hello world"
        assert job.duration_seconds == 125.0
        assert job.language == "english"
        assert job.confidence_score == DEFAULT_CONFIDENCE_SCORE
        assert job.error_message is None
        assert profile_repo.profiles["user-1"].credits_remaining == 97

    def test_appends_usage_log(self, transcription_service, pending_job, usage_repo) -> None:
        _run(transcription_service, pending_job.id)

        assert len(usage_repo.entries) == 1
        entry = usage_repo.entries[0]
        assert entry.user_id == "user-1"
        assert entry.transcription_id == pending_job.id
        assert entry.action == UsageAction.TRANSCRIPTION
        assert entry.credits_used == 3
        assert entry.metadata["duration"] == 125.0
        assert entry.metadata["language"] == "english"
        assert entry.metadata["file_size"] == len(AUDIO)

    def test_auto_language_sends_no_hint(self, transcription_service, pending_job, engine) -> None:
        _run(transcription_service, pending_job.id, language="auto")
        assert engine.calls[0]["language"] is None

    def test_language_and_prompt_forwarded(self, transcription_service, pending_job, engine) -> None:
        _run(transcription_service, pending_job.id, language="es", prompt="Glossary: Supabase")

        call = engine.calls[0]
        assert call["language"] == "es"
        assert call["prompt"] == "Glossary: Supabase"
        assert call["content_type"] == "audio/mpeg"
        assert call["size"] == len(AUDIO)

    def test_missing_duration_charged_one_minute(self, transcription_service, pending_job, engine) -> None:
        engine.result = EngineTranscript(text="short", duration_seconds=None, language="english")

        outcome = _run(transcription_service, pending_job.id)

        assert outcome.credits_used == 1
        assert outcome.credits_remaining == 99

    def test_exact_balance_is_enough(self, transcription_service, pending_job, profile_repo) -> None:
        profile_repo.profiles["user-1"].credits_remaining = 3

        outcome = _run(transcription_service, pending_job.id)

        assert outcome.credits_remaining == 0

    def test_injected_confidence_score(self, profile_repo, job_repo, engine, credit_service, pending_job) -> None:
        service = TranscriptionService(profile_repo, job_repo, engine, credit_service, confidence_score=0.5)

        _run(service, pending_job.id)

        assert job_repo.jobs[pending_job.id].confidence_score == 0.5


class TestTranscribeInsufficientCredits:
    def test_job_failed_and_balance_untouched(
        self, transcription_service, pending_job, job_repo, profile_repo, usage_repo
    ) -> None:
        profile_repo.profiles["user-1"].credits_remaining = 2

        with pytest.raises(InsufficientCreditsError) as exc_info:
            _run(transcription_service, pending_job.id)

        assert exc_info.value.credits_needed == 3
        assert exc_info.value.credits_remaining == 2

        job = job_repo.jobs[pending_job.id]
        assert job.status == JobStatus.FAILED
        assert job.error_message == INSUFFICIENT_CREDITS_REASON
        assert job.transcript_text is None
        assert profile_repo.profiles["user-1"].credits_remaining == 2
        assert profile_repo.deduct_calls == []
        assert usage_repo.entries == []


class TestTranscribeEngineFailure:
    def test_engine_error_marks_job_failed(self, transcription_service, pending_job, job_repo, engine, profile_repo) -> None:
        engine.error = UpstreamEngineError("rate limited")

        with pytest.raises(UpstreamEngineError) as exc_info:
            _run(transcription_service, pending_job.id)

        assert exc_info.value.payload()["details"] == "rate limited"
        job = job_repo.jobs[pending_job.id]
        assert job.status == JobStatus.FAILED
        assert job.error_message == TRANSCRIPTION_FAILED_REASON
        assert job.transcript_text is None
        assert profile_repo.profiles["user-1"].credits_remaining == 100

    def test_unexpected_error_is_wrapped(self, transcription_service, pending_job, job_repo, engine) -> None:
        engine.error = RuntimeError("socket closed")

        with pytest.raises(UpstreamEngineError) as exc_info:
            _run(transcription_service, pending_job.id)

        assert exc_info.value.reason == "socket closed"
        assert job_repo.jobs[pending_job.id].status == JobStatus.FAILED

    def test_failure_to_mark_failed_keeps_original_error(
        self, transcription_service, pending_job, job_repo, engine
    ) -> None:
        engine.error = UpstreamEngineError("timeout")
        job_repo.fail_transitions_to = {JobStatus.FAILED}

        with pytest.raises(UpstreamEngineError):
            _run(transcription_service, pending_job.id)

        assert job_repo.jobs[pending_job.id].status == JobStatus.PROCESSING

    def test_completion_write_failure_fails_job_without_charge(
        self, transcription_service, pending_job, job_repo, profile_repo
    ) -> None:
        job_repo.fail_transitions_to = {JobStatus.COMPLETED}

        with pytest.raises(PersistenceError):
            _run(transcription_service, pending_job.id)

        assert job_repo.jobs[pending_job.id].status == JobStatus.FAILED
        assert profile_repo.deduct_calls == []


class TestTranscribeSettlementOnce:
    def test_second_call_rejected_and_not_charged(
        self, transcription_service, pending_job, profile_repo, usage_repo, engine
    ) -> None:
        _run(transcription_service, pending_job.id)

        with pytest.raises(JobStateConflictError) as exc_info:
            _run(transcription_service, pending_job.id)

        assert exc_info.value.payload()["status"] == "completed"
        assert profile_repo.profiles["user-1"].credits_remaining == 97
        assert len(usage_repo.entries) == 1
        assert len(engine.calls) == 1

    def test_failed_job_cannot_be_retried(self, transcription_service, pending_job, engine) -> None:
        engine.error = UpstreamEngineError("boom")
        with pytest.raises(UpstreamEngineError):
            _run(transcription_service, pending_job.id)

        engine.error = None
        with pytest.raises(JobStateConflictError):
            _run(transcription_service, pending_job.id)

    def test_deduction_failure_keeps_job_completed(
        self, transcription_service, pending_job, job_repo, profile_repo, usage_repo
    ) -> None:
        profile_repo.fail_deduct = True

        outcome = _run(transcription_service, pending_job.id)

        assert job_repo.jobs[pending_job.id].status == JobStatus.COMPLETED
        assert outcome.credits_used == 0
        assert outcome.credits_remaining == 100
        assert profile_repo.profiles["user-1"].credits_remaining == 100
        assert usage_repo.entries == []

    def test_balance_drained_before_deduction(
        self, transcription_service, pending_job, job_repo, profile_repo, usage_repo, monkeypatch
    ) -> None:
        deduct = profile_repo.deduct_credits

        def drain_then_deduct(user_id: str, amount: int):
            profile_repo.profiles[user_id].credits_remaining = 1
            return deduct(user_id, amount)

        monkeypatch.setattr(profile_repo, "deduct_credits", drain_then_deduct)

        outcome = _run(transcription_service, pending_job.id)

        assert job_repo.jobs[pending_job.id].status == JobStatus.COMPLETED
        assert outcome.credits_used == 0
        assert outcome.credits_remaining == 1
        assert profile_repo.profiles["user-1"].credits_remaining == 1
        assert usage_repo.entries == []


class TestTranscribeAccess:
    def test_unauthenticated(self, transcription_service, pending_job) -> None:
        with pytest.raises(UnauthorizedError):
            _run(transcription_service, pending_job.id, user_id=None)

    def test_missing_profile(self, transcription_service, pending_job) -> None:
        with pytest.raises(ProfileNotFoundError):
            _run(transcription_service, pending_job.id, user_id="ghost")

    def test_missing_job_id(self, transcription_service) -> None:
        with pytest.raises(InvalidInputError):
            _run(transcription_service, "")

    def test_unknown_job(self, transcription_service, engine) -> None:
        with pytest.raises(JobNotFoundError):
            _run(transcription_service, "job-404")
        assert engine.calls == []

    def test_foreign_job_looks_missing(self, transcription_service, pending_job, job_repo, engine) -> None:
        with pytest.raises(JobNotFoundError):
            _run(transcription_service, pending_job.id, user_id="user-2")

        assert job_repo.jobs[pending_job.id].status == JobStatus.PENDING
        assert engine.calls == []

    def test_missing_profile_reported_before_missing_input(self, transcription_service) -> None:
        with pytest.raises(ProfileNotFoundError):
            transcription_service.transcribe(
                user_id="ghost",
                job_id=None,
                audio=b"",
                filename="audio",
                content_type="application/octet-stream",
            )
