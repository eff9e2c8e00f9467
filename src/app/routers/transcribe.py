# src/app/routers/transcribe.py
"""
Synchronous transcription route: runs the engine and settles credits in one request.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from src.app.deps import CurrentUser, get_current_user, get_transcription_service
from src.app.domain.plans import AUTO_LANGUAGE
from src.app.schemas.transcriptions import TranscribeResponse, outcome_to_response
from src.app.services.transcription_service import TranscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transcribe", tags=["transcribe"])


@router.post("", response_model=TranscribeResponse)
async def transcribe_audio(
    file: Optional[UploadFile] = File(None),
    transcription_id: Optional[str] = Form(None, alias="transcriptionId"),
    language: Optional[str] = Form(None),
    prompt: Optional[str] = Form(None),
    current_user: CurrentUser = Depends(get_current_user),
    service: TranscriptionService = Depends(get_transcription_service),
):
    """
    Transcribe the audio for a pending transcription and charge credits.

    Responds 402 when the balance does not cover the audio duration.
    """
    audio = await file.read() if file is not None else b""

    # missing file or id is reported by the service, after the profile lookup
    outcome = await run_in_threadpool(
        service.transcribe,
        current_user.id,
        transcription_id,
        audio,
        (file.filename if file is not None else None) or "audio",
        (file.content_type if file is not None else None) or "application/octet-stream",
        language or AUTO_LANGUAGE,
        prompt or None,
    )

    logger.info(
        "Transcribed: user=%s, job=%s, credits_used=%d",
        current_user.id,
        outcome.job_id,
        outcome.credits_used,
    )
    return outcome_to_response(outcome)
