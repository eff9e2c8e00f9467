from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.app.domain.models import TranscriptionJob, TranscriptionOutcome


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TranscriptionSummary(CamelModel):
    id: str
    title: str
    original_filename: str
    file_size: int
    status: str
    created_at: Optional[datetime] = None


class UploadResponse(CamelModel):
    success: bool = True
    transcription: TranscriptionSummary


class TranscriptionItem(CamelModel):
    id: str
    title: str
    original_filename: str
    status: str
    file_size: int
    file_url: str
    duration: Optional[float] = None
    transcript_text: Optional[str] = None
    language: Optional[str] = None
    confidence_score: Optional[float] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class TranscriptionListResponse(CamelModel):
    transcriptions: List[TranscriptionItem] = Field(default_factory=list)
    pagination: Pagination


class TranscriptResult(CamelModel):
    text: str
    duration: Optional[float] = None
    language: Optional[str] = None


class TranscribeResponse(CamelModel):
    success: bool = True
    transcription: TranscriptResult
    credits_used: int
    credits_remaining: int


def job_to_summary(job: TranscriptionJob) -> TranscriptionSummary:
    return TranscriptionSummary(
        id=job.id,
        title=job.title,
        original_filename=job.original_filename,
        file_size=job.file_size_bytes,
        status=job.status.value,
        created_at=job.created_at,
    )


def job_to_item(job: TranscriptionJob) -> TranscriptionItem:
    return TranscriptionItem(
        id=job.id,
        title=job.title,
        original_filename=job.original_filename,
        status=job.status.value,
        file_size=job.file_size_bytes,
        file_url=job.file_url,
        duration=job.duration_seconds,
        transcript_text=job.transcript_text,
        language=job.language,
        confidence_score=job.confidence_score,
        error_message=job.error_message,
        created_at=job.created_at,
        updated_at=job.updated_at,
    )


def outcome_to_response(outcome: TranscriptionOutcome) -> TranscribeResponse:
    return TranscribeResponse(
        transcription=TranscriptResult(
            text=outcome.text,
            duration=outcome.duration_seconds,
            language=outcome.language,
        ),
        credits_used=outcome.credits_used,
        credits_remaining=outcome.credits_remaining,
    )
