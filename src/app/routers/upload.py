# src/app/routers/upload.py
"""
Audio upload and transcription listing routes.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from starlette.concurrency import run_in_threadpool

from src.app.deps import CurrentUser, get_current_user, get_upload_service
from src.app.domain.errors import InvalidInputError
from src.app.schemas.transcriptions import (
    Pagination,
    TranscriptionItem,
    TranscriptionListResponse,
    UploadResponse,
    job_to_item,
    job_to_summary,
)
from src.app.services.upload_service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("", response_model=UploadResponse)
async def upload_audio(
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    current_user: CurrentUser = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service),
):
    """
    Store an audio file and create a pending transcription for it.

    The client then calls POST /transcribe with the returned id.
    """
    if file is None or not file.filename:
        raise InvalidInputError("No file provided")

    data = await file.read()

    job = await run_in_threadpool(
        service.upload,
        current_user.id,
        data,
        file.filename,
        file.content_type,
        title or None,
    )
    return UploadResponse(transcription=job_to_summary(job))


@router.get("", response_model=TranscriptionListResponse)
async def list_transcriptions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status: Optional[str] = Query(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service),
):
    """
    List the caller's transcriptions, newest first.
    """
    result = await run_in_threadpool(
        service.list_transcriptions,
        current_user.id,
        page,
        limit,
        status,
    )
    return TranscriptionListResponse(
        transcriptions=[job_to_item(job) for job in result.items],
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            pages=result.pages,
        ),
    )


@router.get("/{transcription_id}", response_model=TranscriptionItem)
async def get_transcription(
    transcription_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service),
):
    job = await run_in_threadpool(service.get_transcription, current_user.id, transcription_id)
    return job_to_item(job)
