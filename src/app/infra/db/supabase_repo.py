from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from src.app.domain.errors import PersistenceError
from src.app.domain.models import (
    JobPage,
    JobStatus,
    Profile,
    SubscriptionTier,
    TranscriptionJob,
    UsageAction,
    UsageLogEntry,
)
from src.app.infra.db.base import ProfileRepository, TranscriptionRepository, UsageLogRepository

logger = logging.getLogger(__name__)

_DB_ERRORS = (APIError, httpx.HTTPError, ConnectionError, TimeoutError)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _safe_int(value: object, default: int = 0) -> int:
    return int(value) if value else default


def _safe_float(value: object) -> float | None:
    return float(value) if value is not None else None


def _safe_str(value: object) -> str | None:
    return str(value) if value else None


def _is_uuid(value: str) -> bool:
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


def _row_to_profile(row: dict[str, Any]) -> Profile:
    return Profile(
        id=str(row["id"]),
        email=str(row.get("email") or ""),
        subscription_tier=SubscriptionTier(row.get("subscription_tier") or SubscriptionTier.FREE.value),
        credits_remaining=_safe_int(row.get("credits_remaining")),
        full_name=_safe_str(row.get("full_name")),
        avatar_url=_safe_str(row.get("avatar_url")),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )


def _row_to_job(row: dict[str, Any]) -> TranscriptionJob:
    return TranscriptionJob(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        title=str(row.get("title") or ""),
        original_filename=str(row.get("original_filename") or ""),
        file_url=str(row.get("file_url") or ""),
        file_size_bytes=_safe_int(row.get("file_size_bytes")),
        status=JobStatus(str(row["status"])),
        duration_seconds=_safe_float(row.get("duration_seconds")),
        language=_safe_str(row.get("language")),
        transcript_text=_safe_str(row.get("transcript_text")),
        confidence_score=_safe_float(row.get("confidence_score")),
        error_message=_safe_str(row.get("error_message")),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )


def _row_to_usage(row: dict[str, Any]) -> UsageLogEntry:
    return UsageLogEntry(
        id=_safe_str(row.get("id")),
        user_id=str(row["user_id"]),
        transcription_id=_safe_str(row.get("transcription_id")),
        action=UsageAction(str(row["action"])),
        credits_used=_safe_int(row.get("credits_used")),
        metadata=row.get("metadata") or {},
        created_at=_parse_datetime(row.get("created_at")),
    )


class SupabaseProfileRepository(ProfileRepository):
    TABLE_NAME = "profiles"
    DEDUCT_RPC = "deduct_credits"

    def __init__(self, client: Client):
        self._client = client

    def get_profile(self, user_id: str) -> Profile | None:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
        except _DB_ERRORS as error:
            logger.error("Error loading profile: user=%s, error=%s", user_id, error)
            raise PersistenceError("get_profile", str(error)) from error

        return _row_to_profile(result.data[0]) if result.data else None

    def deduct_credits(self, user_id: str, amount: int) -> int | None:
        try:
            result = self._client.rpc(
                self.DEDUCT_RPC,
                {"p_user_id": user_id, "p_amount": amount},
            ).execute()
        except _DB_ERRORS as error:
            logger.error("Error deducting credits: user=%s, amount=%d, error=%s", user_id, amount, error)
            raise PersistenceError("deduct_credits", str(error)) from error

        data = result.data
        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict):
            data = next(iter(data.values()), None)

        if data is None:
            return None
        return int(data)


class SupabaseTranscriptionRepository(TranscriptionRepository):
    TABLE_NAME = "transcriptions"

    def __init__(self, client: Client):
        self._client = client
        logger.info("SupabaseTranscriptionRepository initialized")

    def create_job(
        self,
        user_id: str,
        title: str,
        original_filename: str,
        file_url: str,
        file_size_bytes: int,
    ) -> TranscriptionJob:
        job_data = {
            "user_id": user_id,
            "title": title,
            "original_filename": original_filename,
            "file_url": file_url,
            "file_size_bytes": file_size_bytes,
            "status": JobStatus.PENDING.value,
        }

        try:
            result = self._client.table(self.TABLE_NAME).insert(job_data).execute()
        except _DB_ERRORS as error:
            logger.error("Error creating transcription: %s", error)
            raise PersistenceError("create_job", str(error)) from error

        if not result.data:
            raise PersistenceError("create_job", "insert returned no rows")

        job = _row_to_job(result.data[0])
        logger.info("Created transcription: id=%s, user=%s, file=%s", job.id, user_id, original_filename)
        return job

    def transition_status(
        self,
        job_id: str,
        user_id: str,
        from_status: JobStatus,
        to_status: JobStatus,
        changes: dict[str, Any] | None = None,
    ) -> TranscriptionJob | None:
        if not _is_uuid(job_id):
            return None

        update_data: dict[str, Any] = dict(changes or {})
        update_data["status"] = to_status.value
        update_data["updated_at"] = _now_utc().isoformat()

        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .update(update_data)
                .eq("id", job_id)
                .eq("user_id", user_id)
                .eq("status", from_status.value)
                .execute()
            )
        except _DB_ERRORS as error:
            logger.error("Error updating transcription %s -> %s: %s", job_id, to_status.value, error)
            raise PersistenceError("transition_status", str(error)) from error

        if not result.data:
            logger.warning(
                "No transcription updated: id=%s, user=%s, expected=%s",
                job_id, user_id, from_status.value,
            )
            return None

        logger.info("Transcription %s: %s -> %s", job_id, from_status.value, to_status.value)
        return _row_to_job(result.data[0])

    def get_job(self, job_id: str, user_id: str) -> TranscriptionJob | None:
        # ids are uuid columns; anything else cannot match a row
        if not _is_uuid(job_id):
            return None

        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("id", job_id)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except _DB_ERRORS as error:
            logger.error("Error getting transcription: %s", error)
            raise PersistenceError("get_job", str(error)) from error

        return _row_to_job(result.data[0]) if result.data else None

    def list_jobs(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        status: JobStatus | None = None,
    ) -> JobPage:
        offset = (page - 1) * limit

        query = (
            self._client.table(self.TABLE_NAME)
            .select("*", count="exact")
            .eq("user_id", user_id)
        )
        if status is not None:
            query = query.eq("status", status.value)

        try:
            result = (
                query
                .order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
        except _DB_ERRORS as error:
            logger.error("Error listing transcriptions for user=%s: %s", user_id, error)
            raise PersistenceError("list_jobs", str(error)) from error

        return JobPage(
            items=[_row_to_job(row) for row in (result.data or [])],
            total=result.count or 0,
            page=page,
            limit=limit,
        )


class SupabaseUsageLogRepository(UsageLogRepository):
    TABLE_NAME = "usage_logs"

    def __init__(self, client: Client):
        self._client = client

    def append(self, entry: UsageLogEntry) -> UsageLogEntry:
        row = {
            "user_id": entry.user_id,
            "transcription_id": entry.transcription_id,
            "action": entry.action.value,
            "credits_used": entry.credits_used,
            "metadata": entry.metadata,
        }

        try:
            result = self._client.table(self.TABLE_NAME).insert(row).execute()
        except _DB_ERRORS as error:
            logger.error("Error writing usage log: %s", error)
            raise PersistenceError("append_usage", str(error)) from error

        if not result.data:
            raise PersistenceError("append_usage", "insert returned no rows")
        return _row_to_usage(result.data[0])
